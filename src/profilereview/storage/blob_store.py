"""
Blob storage for user-uploaded photos.

The review pipeline only needs get/put/delete by key. ``LocalBlobStore`` maps
keys to files below a root directory; the filesystem calls are blocking, so
they are run in a worker thread.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path

from profilereview.util.logger import get_logger

logger = get_logger("blob_store")


class BlobStore(ABC):
    """Minimal key/value interface over photo storage."""

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """Return the object stored under ``key``. Raises if it does not exist."""

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        """Store ``data`` under ``key``. ``content_type`` is the MIME type, when known."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...


class LocalBlobStore(BlobStore):
    """Filesystem-backed store rooted at ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root).resolve()

    def _resolve(self, key: str) -> Path:
        path = (self.root / key.lstrip("/")).resolve()
        if not path.is_relative_to(self.root):
            raise ValueError(f"Blob key {key!r} escapes the storage root")
        return path

    async def get(self, key: str) -> bytes:
        path = self._resolve(key)
        return await asyncio.to_thread(path.read_bytes)

    async def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        # Files carry no metadata; readers infer the type from the content
        path = self._resolve(key)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        await asyncio.to_thread(_write)
        logger.debug("[BLOB STORE] Stored %d bytes at %s (%s)", len(data), key, content_type or "unknown type")

    async def delete(self, key: str) -> None:
        path = self._resolve(key)
        await asyncio.to_thread(path.unlink, missing_ok=True)
        logger.debug("[BLOB STORE] Deleted %s", key)
