"""
Cycle and daily reporting.

- **report_sink.py**: Report payloads, the sink protocol and a logging sink.
- **discord_webhook.py**: Embeds posted through a Discord webhook.
"""
