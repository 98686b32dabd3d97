"""
Periodic task execution.

- **analysis_scheduler.py**: Triggers a timed analysis cycle every polling
  interval on an asyncio task, with graceful cancellation on shutdown.
"""
