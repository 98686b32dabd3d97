"""
Configuration management for AntiToxicity.

- **app_configuration.py**: File-locked YAML loader for ``config/app_config.yml``
  exposing the shared ``app_config`` instance. Falls back to defaults on a
  missing or malformed file.

- **ai_settings.py**: Classifier endpoint, models, sampling and prompt settings.

- **moderation_settings.py**: Polling, retention, escalation, durations and
  command templates, plus webhook reporting settings.
"""
