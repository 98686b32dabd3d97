"""
Moderation pipeline for AntiToxicity.

- **message_store.py**: Chat buffer with the analysis cursor, context lookup
  and retention purge.

- **chat_capture.py**: Capture callback with short-window duplicate suppression.

- **moderation_parsing.py**: Validates classifier JSON and converts it into verdicts.

- **severity.py**: Keeps the most severe verdict per player within a cycle.

- **escalation_ledger.py**: Sanction history, windowed escalation and counters.

- **command_mapping.py**: Table-driven sanction to command text rendering.

- **action_dispatcher.py**: Single-worker queue executing commands in order.

- **cycle_orchestrator.py**: Runs one analysis cycle end to end.
"""
