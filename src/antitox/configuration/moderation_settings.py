"""Typed accessors for the ``moderation`` and ``reporting`` blocks of ``app_config.yml``."""

from typing import Any, Dict, List

from antitox.datatypes.action_datatypes import ActionKind

DEFAULT_COMMAND_TEMPLATES: Dict[str, str] = {
    "warn": "advancedban:warn {player} {reason}",
    "mute": "advancedban:tempmute {player} {duration} {reason}",
    "kick": "advancedban:kick {player} {reason}",
    "ban": "advancedban:tempban {player} {duration} {reason}",
    "ban_permanent": "advancedban:ban {player} {reason}",
    "ipban": "advancedban:ipban {player} {reason}",
    "ipban_temporary": "advancedban:tempipban {player} {duration} {reason}",
}

DEFAULT_ESCALATION_DURATIONS: Dict[str, str] = {
    "mute": "1h",
    "ban": "7d",
}


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key, {})
    return value if isinstance(value, dict) else {}


class ModerationSettings:
    """Typed accessors for the ``moderation`` block of ``app_config.yml``.

    Durations that feed command templates stay as strings (``"1h"``, ``"7d"``,
    ``"permanent"``); scheduling values are converted to seconds.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    # --------------------------
    # Cycle scheduling and retention
    # --------------------------
    @property
    def analysis_interval_seconds(self) -> float:
        return float(self.data.get("analysis_interval_minutes", 15)) * 60.0

    @property
    def message_max_age_seconds(self) -> float:
        return float(self.data.get("message_max_age_hours", 24)) * 3600.0

    @property
    def capture_dedup_window_seconds(self) -> float:
        return float(self.data.get("capture_dedup_window_ms", 500)) / 1000.0

    @property
    def daily_report_top_players(self) -> int:
        return int(self.data.get("daily_report_top_players", 5))

    @property
    def bypass_players(self) -> List[str]:
        """Players whose chat is never captured (staff accounts and the like)."""
        value = self.data.get("bypass_players") or []
        return [str(name) for name in value] if isinstance(value, list) else []

    # --------------------------
    # Escalation
    # --------------------------
    @property
    def warn_threshold(self) -> int:
        return int(_section(self.data, "escalation").get("warns_for_mute", 3))

    @property
    def mute_threshold(self) -> int:
        return int(_section(self.data, "escalation").get("mutes_for_ban", 2))

    @property
    def escalation_window_seconds(self) -> float:
        return float(_section(self.data, "escalation").get("window_days", 7)) * 86400.0

    @property
    def escalation_durations(self) -> Dict[ActionKind, str]:
        """Fixed durations applied to escalated sanctions, keyed by escalated tier."""
        merged = dict(DEFAULT_ESCALATION_DURATIONS)
        merged.update({str(k).lower(): str(v) for k, v in _section(_section(self.data, "escalation"), "durations").items()})
        return {ActionKind(key.upper()): value for key, value in merged.items()}

    # --------------------------
    # Command mapping
    # --------------------------
    @property
    def default_mute_duration(self) -> str:
        return str(_section(self.data, "durations").get("mute", "1h"))

    @property
    def default_ban_duration(self) -> str:
        return str(_section(self.data, "durations").get("ban", "1d"))

    @property
    def reason_prefix(self) -> str:
        return str(self.data.get("reason_prefix", "[ATOX AI]"))

    @property
    def command_templates(self) -> Dict[str, str]:
        templates = dict(DEFAULT_COMMAND_TEMPLATES)
        templates.update({str(k).lower(): str(v) for k, v in _section(self.data, "commands").items()})
        return templates


class ReportSettings:
    """Typed accessors for the ``reporting`` block of ``app_config.yml``."""

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    @property
    def webhook_url_env(self) -> str:
        return str(self.data.get("webhook_url_env") or "ANTITOX_WEBHOOK_URL")

    @property
    def server_name(self) -> str:
        return str(self.data.get("server_name") or "Unknown")

    @property
    def username(self) -> str:
        return str(self.data.get("username") or "ATOX")

    @property
    def avatar_url(self) -> str | None:
        value = self.data.get("avatar_url")
        return str(value) if value else None
