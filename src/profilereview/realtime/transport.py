"""
Realtime delivery of review events to connected users.

The web tier subscribes to one Redis pub/sub channel per user
(``user:<id>``) and forwards every message to that user's open sockets.
Messages are JSON objects of the form ``{"type": <event>, "payload": {...}}``.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from redis.asyncio import Redis

from profilereview.util.logger import get_logger

logger = get_logger("realtime")

EVENT_PHOTOS_APPROVED = "account:photosApproved"
EVENT_PHOTOS_NOT_APPROVED = "account:photosNotApproved"


def user_channel(user_id: int) -> str:
    return f"user:{user_id}"


class RealtimeTransport(ABC):
    """Deliver event E to user U."""

    @abstractmethod
    async def emit(self, user_id: int, event_name: str, payload: Dict[str, Any]) -> None:
        ...

    async def close(self) -> None:
        """Release any connection held by the transport."""


class RedisRealtimeTransport(RealtimeTransport):
    """Publishes events on the user's Redis channel."""

    def __init__(self, url: str, client: Optional[Redis] = None) -> None:
        self.url = url
        self._redis: Optional[Redis] = client

    def _get_redis(self) -> Redis:
        if self._redis is None:
            self._redis = Redis.from_url(self.url, decode_responses=True)
        return self._redis

    async def emit(self, user_id: int, event_name: str, payload: Dict[str, Any]) -> None:
        message = json.dumps({"type": event_name, "payload": payload})
        receivers = await self._get_redis().publish(user_channel(user_id), message)
        logger.debug("[REALTIME] %s -> user %s (%s receivers)", event_name, user_id, receivers)

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


class NullRealtimeTransport(RealtimeTransport):
    """Used when no Redis endpoint is configured; events are only logged."""

    async def emit(self, user_id: int, event_name: str, payload: Dict[str, Any]) -> None:
        logger.info("[REALTIME] No transport configured, dropping %s for user %s", event_name, user_id)


def create_transport(url: Optional[str]) -> RealtimeTransport:
    if url:
        return RedisRealtimeTransport(url)
    return NullRealtimeTransport()
