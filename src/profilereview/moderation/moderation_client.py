"""
HTTP client for the external content moderation vendor.

Images are sent as a multipart upload to the SightEngine ``check.json``
endpoint together with the list of models to run. Bio text goes to a
separate, optional JSON endpoint. Both calls use one keep-alive
``requests.Session`` whose connection pool is sized from configuration; the
blocking requests are executed in worker threads.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

import requests
from requests.adapters import HTTPAdapter

from profilereview.configuration.moderation_settings import ModerationSettings
from profilereview.util.errors import ModerationAPIError
from profilereview.util.logger import get_logger

logger = get_logger("moderation_client")

# Bump the version whenever the model list changes; it is logged with every
# request so responses can be traced back to the models that produced them.
SIGHTENGINE_MODELS_VERSION = "2025.1"
SIGHTENGINE_MODELS: Tuple[str, ...] = (
    "nudity-2.1",
    "weapon",
    "recreational_drug",
    "medical",
    "type",
    "offensive-2.0",
    "faces",
    "scam",
    "text-content",
    "face-attributes",
    "gore-2.0",
    "text",
    "qr-content",
    "tobacco",
    "genai",
    "violence",
    "self-harm",
    "gambling",
)

USER_AGENT = "profilereview/1.0"


@dataclass(slots=True)
class TextModerationResult:
    """Parsed answer of the text moderation endpoint."""

    violations: List[Dict[str, Any]] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_violations(self) -> bool:
        return bool(self.violations)


class ModerationAPIClient:
    """
    Thin wrapper over the moderation vendor's HTTP API.

    Args:
        settings: Vendor endpoints, pool size, timeout and credentials.
        session: Pre-built session, mainly for tests. A pooled session is
            created when omitted.
    """

    def __init__(self, settings: ModerationSettings, session: requests.Session | None = None) -> None:
        self.settings = settings
        self.session = session or self._build_session(settings.pool_size)

    @staticmethod
    def _build_session(pool_size: int) -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        session.headers.update({"User-Agent": USER_AGENT})
        return session

    def close(self) -> None:
        self.session.close()

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def _post_image(self, path: Path) -> Dict[str, Any]:
        form = {
            "models": ",".join(SIGHTENGINE_MODELS),
            "api_user": self.settings.api_user,
            "api_secret": self.settings.api_secret,
        }
        try:
            with path.open("rb") as media:
                response = self.session.post(
                    self.settings.api_url,
                    files={"media": (path.name, media, "image/jpeg")},
                    data=form,
                    timeout=self.settings.timeout_seconds,
                )
        except requests.RequestException as exc:
            raise ModerationAPIError(f"Image moderation request failed: {exc}") from exc
        except OSError as exc:
            raise ModerationAPIError(f"Could not read {path.name} for moderation: {exc}") from exc

        if response.status_code != 200:
            raise ModerationAPIError(
                f"Image moderation returned HTTP {response.status_code}",
                status_code=response.status_code,
                details={"body": response.text[:500]},
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise ModerationAPIError(
                "Image moderation returned a non-JSON body",
                status_code=response.status_code,
            ) from exc

        if not isinstance(data, dict):
            raise ModerationAPIError("Image moderation returned an unexpected payload", status_code=200)
        return data

    async def check_image(self, path: Path) -> Dict[str, Any]:
        """
        Submit one image to every configured model.

        Returns:
            Dict[str, Any]: The raw vendor response.

        Raises:
            ModerationAPIError: On transport failures and non-200 answers.
        """
        logger.debug(
            "[MODERATION API] Checking %s with %d models (v%s)",
            path.name,
            len(SIGHTENGINE_MODELS),
            SIGHTENGINE_MODELS_VERSION,
        )
        return await asyncio.to_thread(self._post_image, path)

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def _post_text(self, url: str, content: str) -> TextModerationResult | None:
        headers = {}
        if self.settings.text_api_key:
            headers["Authorization"] = f"Bearer {self.settings.text_api_key}"
        try:
            response = self.session.post(
                url,
                json={"content": content},
                headers=headers,
                timeout=self.settings.timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.error("[MODERATION API] Text moderation request failed: %s", exc)
            return None

        if response.status_code != 200:
            logger.error("[MODERATION API] Text moderation returned HTTP %s", response.status_code)
            return None

        try:
            data = response.json()
        except ValueError:
            logger.error("[MODERATION API] Text moderation returned a non-JSON body")
            return None

        if not isinstance(data, dict):
            logger.error("[MODERATION API] Text moderation returned an unexpected payload")
            return None

        violations = data.get("violations") or []
        if not isinstance(violations, list):
            logger.error("[MODERATION API] Text moderation returned malformed violations: %r", violations)
            return None
        return TextModerationResult(
            violations=[v if isinstance(v, dict) else {"description": str(v)} for v in violations],
            raw=data,
        )

    async def check_text(self, content: str) -> TextModerationResult | None:
        """
        Moderate a bio.

        Failures never propagate: they are logged and reported as None, which
        callers treat as "no violation".
        """
        url = self.settings.text_api_url
        if not url:
            logger.warning("[MODERATION API] Bio moderation enabled but no text endpoint is configured")
            return None
        return await asyncio.to_thread(self._post_text, url, content)
