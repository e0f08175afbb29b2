"""
Persistent user notifications produced by the review pipeline.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

import aiosqlite

from profilereview.util.logger import get_logger

logger = get_logger("notification_repo")

PHOTOS_APPROVED = "photos_approved"
PHOTOS_NOT_APPROVED = "photos_not_approved"


@dataclass
class NotificationRecord:
    """A single row from the ``notifications`` table."""
    id: int
    recipient_id: int
    type: str
    content: Dict[str, Any]


class NotificationRepo:
    """Low-level CRUD for the ``notifications`` table."""

    @staticmethod
    async def create_notification(
        conn: aiosqlite.Connection,
        recipient_id: int,
        notification_type: str,
        content: Dict[str, Any],
    ) -> int:
        cursor = await conn.execute(
            "INSERT INTO notifications (recipient_id, type, content) VALUES (?, ?, ?)",
            (recipient_id, notification_type, json.dumps(content)),
        )
        return int(cursor.lastrowid)

    @staticmethod
    async def delete_notifications(
        conn: aiosqlite.Connection,
        recipient_id: int,
        notification_types: Iterable[str],
    ) -> int:
        """Delete every notification of the given types for one recipient."""
        types = list(notification_types)
        if not types:
            return 0
        placeholders = ", ".join("?" for _ in types)
        cursor = await conn.execute(
            f"DELETE FROM notifications WHERE recipient_id = ? AND type IN ({placeholders})",
            (recipient_id, *types),
        )
        return cursor.rowcount

    @staticmethod
    async def list_for_recipient(conn: aiosqlite.Connection, recipient_id: int) -> List[NotificationRecord]:
        cursor = await conn.execute(
            "SELECT id, recipient_id, type, content FROM notifications WHERE recipient_id = ? ORDER BY id",
            (recipient_id,),
        )
        rows = await cursor.fetchall()
        return [
            NotificationRecord(
                id=row[0],
                recipient_id=row[1],
                type=row[2],
                content=json.loads(row[3]) if row[3] else {},
            )
            for row in rows
        ]
