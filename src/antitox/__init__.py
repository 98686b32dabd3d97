"""
AntiToxicity - AI-Driven Chat Moderation Engine

Buffers player chat, periodically submits the unanalyzed messages to an
OpenAI-compatible classifier, and turns the verdicts into moderation commands.

Core Components:

- **Message Store**: Thread-safe buffer with an analysis cursor so every
  message is classified exactly once, and retained when classification fails
- **Classifier Adapter**: Evasion-aware request building, structured JSON
  output, and a single fallback-model retry when the primary model refuses
- **Cycle Orchestrator**: Per-player deduplication, repeat-offender
  escalation, serialized command dispatch, and cycle/daily reporting
- **Reporting**: Discord webhook embeds or log output
- **Interactive Console**: Operator commands and a line-based chat source

Usage:
    from antitox.main import main
    main()  # Starts the engine with the interactive console
"""
