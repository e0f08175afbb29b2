from __future__ import annotations
from pathlib import Path
import fcntl
import os
from typing import Any, Dict
import yaml

from profilereview.configuration.moderation_settings import ModerationSettings
from profilereview.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path(os.getenv("PROFILEREVIEW_CONFIG", "./config/app_config.yml")).resolve()

DEFAULT_SUSPENSION_REASON = (
    "Your account has been suspended because one or more of your photos "
    "violate our community guidelines."
)


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml``, exposes dictionary-like
    access helpers, and resolves vendor settings through :class:`ModerationSettings`.
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
                return data if isinstance(data, dict) else {}
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._data.get(name, {})
        return section if isinstance(section, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping.

        The returned dict is the internal cache; callers should not mutate it.
        """
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def moderation(self) -> ModerationSettings:
        """Return the vendor settings wrapped in a ModerationSettings helper."""
        return ModerationSettings(self._section("moderation"))

    @property
    def poll_interval_seconds(self) -> float:
        """Delay between two batch invocations. Default is 5 seconds."""
        return float(self._section("review_scheduler").get("interval_seconds", 5.0))

    @property
    def page_size(self) -> int:
        """Number of pending review records fetched per page. Default is 5000."""
        return int(self._section("review_scheduler").get("page_size", 5000))

    @property
    def temp_dir(self) -> Path | None:
        """Parent directory for per-user scratch directories (system default if unset)."""
        val = self._section("storage").get("temp_dir")
        return Path(val).resolve() if val else None

    @property
    def blob_root(self) -> Path:
        return Path(self._section("storage").get("blob_root", "./data/blobs")).resolve()

    @property
    def database_path(self) -> Path:
        return Path(self._section("database").get("path", "./data/app.db")).resolve()

    @property
    def suspension_reason(self) -> str:
        value = self._section("review").get("suspension_reason") or DEFAULT_SUSPENSION_REASON
        return str(value)

    @property
    def redis_url(self) -> str | None:
        """Realtime transport endpoint; the environment wins over the YAML value."""
        return os.getenv("REDIS_URL") or self._section("realtime").get("redis_url") or None
