from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict
import yaml

from antitox.configuration.ai_settings import AISettings
from antitox.configuration.moderation_settings import ModerationSettings, ReportSettings
from antitox.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml``, exposes dictionary-like
    access helpers, and resolves section-specific settings through
    :class:`AISettings`, :class:`ModerationSettings` and :class:`ReportSettings`.
    Uses fcntl file locks for safe concurrent access across processes.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                if not isinstance(data, dict):
                    logger.warning("[APP CONFIGURATION] Config %s is not a mapping; using defaults.", self.config_path)
                    return {}
                return data
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    def _section(self, key: str) -> Dict[str, Any]:
        value = self._data.get(key, {})
        return value if isinstance(value, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error, in
        which case every settings accessor falls back to its default).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping. Callers should not mutate it."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def ai_settings(self) -> AISettings:
        return AISettings(self._section("ai_settings"))

    @property
    def moderation(self) -> ModerationSettings:
        return ModerationSettings(self._section("moderation"))

    @property
    def reporting(self) -> ReportSettings:
        return ReportSettings(self._section("reporting"))

    @property
    def database_path(self) -> Path | None:
        """Return the sanction history database path, or None when persistence is disabled."""
        database = self._section("database")
        if not database.get("enabled", True):
            return None
        return Path(str(database.get("path") or "./data/antitox.db")).resolve()


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
