"""
Tells users how their photos fared.

For every completed photo review the user ends up with exactly one live
"photos approved" or "photos not approved" notification, and a matching
realtime event is pushed to any open session. The event is sent from a
separate task so a slow or broken transport cannot hold up the review loop.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Sequence, Set, Tuple

from profilereview.database.db_connection import ConnectionManager
from profilereview.datatypes.review_datatypes import PhotoDecision
from profilereview.realtime.transport import (
    EVENT_PHOTOS_APPROVED,
    EVENT_PHOTOS_NOT_APPROVED,
    RealtimeTransport,
)
from profilereview.repositories.notification_repo import (
    PHOTOS_APPROVED,
    PHOTOS_NOT_APPROVED,
    NotificationRepo,
)
from profilereview.util.logger import get_logger

logger = get_logger("notification_dispatcher")


def partition_decisions(decisions: Sequence[PhotoDecision]) -> Tuple[List[PhotoDecision], List[PhotoDecision]]:
    """Split decisions into (rejected, approved), keeping their order."""
    rejected = [d for d in decisions if d.is_rejected]
    approved = [d for d in decisions if not d.is_rejected]
    return rejected, approved


def build_content(rejected: Sequence[PhotoDecision], approved: Sequence[PhotoDecision]) -> Dict[str, Any]:
    return {
        "rejectedPhotos": [{"path": d.path, "messages": list(d.messages)} for d in rejected],
        "approvedPhotos": [{"path": d.path} for d in approved],
    }


class NotificationDispatcher:
    """
    Persists the outcome notification and emits the realtime event.

    Args:
        connections: Connection manager used for the notification writes.
        transport: Realtime transport the events are published on.
    """

    def __init__(self, connections: ConnectionManager, transport: RealtimeTransport) -> None:
        self.connections = connections
        self.transport = transport
        self._pending: Set[asyncio.Task] = set()

    async def dispatch(self, user_id: int, decisions: Sequence[PhotoDecision]) -> str:
        """
        Replace the user's photo-outcome notification and notify them live.

        Store and transport failures are logged and never raised.

        Returns:
            str: The notification type that was chosen.
        """
        rejected, approved = partition_decisions(decisions)
        notification_type = PHOTOS_NOT_APPROVED if rejected else PHOTOS_APPROVED
        event_name = EVENT_PHOTOS_NOT_APPROVED if rejected else EVENT_PHOTOS_APPROVED
        content = build_content(rejected, approved)

        try:
            async with self.connections.transaction() as conn:
                await NotificationRepo.delete_notifications(conn, user_id, (PHOTOS_APPROVED, PHOTOS_NOT_APPROVED))
                await NotificationRepo.create_notification(conn, user_id, notification_type, content)
        except Exception as exc:
            logger.error("[NOTIFICATIONS] Failed to store %s notification for user %s: %s",
                         notification_type, user_id, exc)

        task = asyncio.create_task(self._emit(user_id, event_name, content), name=f"emit-{event_name}-{user_id}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

        logger.info("[NOTIFICATIONS] User %s: %d approved, %d rejected (%s)",
                    user_id, len(approved), len(rejected), notification_type)
        return notification_type

    async def _emit(self, user_id: int, event_name: str, payload: Dict[str, Any]) -> None:
        try:
            await self.transport.emit(user_id, event_name, payload)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("[NOTIFICATIONS] Realtime emit %s to user %s failed: %s", event_name, user_id, exc)

    async def drain(self) -> None:
        """Wait for every in-flight realtime emit to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
