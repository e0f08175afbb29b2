import os
from typing import Any, Dict

DEFAULT_IMAGE_API_URL = "https://api.sightengine.com/1.0/check.json"


class ModerationSettings:
    """Helper exposing typed accessors for the moderation vendor configuration.

    Non-secret values come from the ``moderation`` block of the YAML config.
    Credentials are never stored in the YAML file; they are read from the
    environment (populated from ``.env`` at startup).
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    @property
    def api_url(self) -> str:
        return str(self.data.get("api_url") or DEFAULT_IMAGE_API_URL)

    @property
    def text_api_url(self) -> str | None:
        val = self.data.get("text_api_url")
        return str(val) if val else None

    @property
    def pool_size(self) -> int:
        return int(self.data.get("pool_size", 100))

    @property
    def timeout_seconds(self) -> float | None:
        val = self.data.get("timeout_seconds")
        return float(val) if val is not None else None

    @property
    def bio_moderation_enabled(self) -> bool:
        bio = self.data.get("bio_moderation", {})
        if isinstance(bio, dict):
            return bool(bio.get("enabled", False))
        return bool(bio)

    @property
    def api_user(self) -> str:
        return os.getenv("SIGHTENGINE_API_USER", "")

    @property
    def api_secret(self) -> str:
        return os.getenv("SIGHTENGINE_API_SECRET", "")

    @property
    def text_api_key(self) -> str:
        return os.getenv("TEXT_MODERATION_API_KEY", "")
