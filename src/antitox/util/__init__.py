"""
Utility functions and helpers for AntiToxicity.

- **logger.py**: Centralized logging configuration with colored console output,
  rotating file handlers, and per-session log files. Suppresses noise from
  verbose libraries (openai, httpx, Discord internals). Uses prompt_toolkit
  for non-blocking console I/O.

- **evasion.py**: Normalization of character-substitution evasion
  (leetspeak, spaced and punctuated letters) used to annotate messages before
  classification.
"""
