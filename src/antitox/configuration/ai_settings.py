"""Typed accessors for the ``ai_settings`` block of ``app_config.yml``."""

import os
from typing import Any, Dict

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_MODEL = "gemini-1.5-flash"
DEFAULT_FALLBACK_MODEL = "gemini-2.0-flash"


class AISettings:
    """Helper exposing typed accessors for the classifier configuration.

    Mirrors the ``ai_settings`` block of ``app_config.yml``. The API key is
    never stored in the YAML file; ``api_key_env`` names the environment
    variable it is read from.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        """Return the underlying mapping (shallow copy recommended by callers)."""
        return self.data

    @property
    def api_key_env(self) -> str:
        return str(self.data.get("api_key_env") or "ANTITOX_API_KEY")

    @property
    def api_key(self) -> str:
        return os.getenv(self.api_key_env, "")

    @property
    def base_url(self) -> str:
        return str(self.data.get("base_url") or DEFAULT_BASE_URL)

    @property
    def model_name(self) -> str:
        return str(self.data.get("model") or DEFAULT_MODEL)

    @property
    def fallback_model_name(self) -> str:
        return str(self.data.get("fallback_model") or DEFAULT_FALLBACK_MODEL)

    @property
    def temperature(self) -> float:
        return float(self.data.get("temperature", 0.1))

    @property
    def max_output_tokens(self) -> int:
        return int(self.data.get("max_output_tokens", 2048))

    @property
    def request_timeout_seconds(self) -> float:
        return float(self.data.get("request_timeout_seconds", 60.0))

    @property
    def structured_output(self) -> bool:
        return bool(self.data.get("structured_output", True))

    @property
    def server_type(self) -> str:
        return str(self.data.get("server_type") or "SURVIVAL")

    @property
    def context_messages_per_player(self) -> int:
        return int(self.data.get("context_messages_per_player", 10))

    @property
    def system_prompt(self) -> str:
        return str(self.data.get("system_prompt") or "")
