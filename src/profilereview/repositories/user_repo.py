"""
Read and write access to the reviewable part of the ``users`` table.

Photos are stored as a JSON array using the web application's camelCase keys
(``path``, ``sortOrder``, ``isRejected``, ``messages``, ``croppedImageData``,
``uploadedAt``); conversion happens in :class:`UserPhoto`.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiosqlite

from profilereview.datatypes.review_datatypes import UserPhoto, UserProfile
from profilereview.util.logger import get_logger

logger = get_logger("user_repo")

_UNSET: Any = object()


def _load_photos(raw: Optional[str], user_id: int) -> List[UserPhoto]:
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("[USER REPO] Malformed photos JSON for user %s, treating as empty", user_id)
        return []
    return [UserPhoto.from_dict(item) for item in items if isinstance(item, dict) and item.get("path")]


def _row_to_profile(row: aiosqlite.Row) -> UserProfile:
    user_id = int(row["id"])
    suspended_at = row["suspended_at"]
    return UserProfile(
        id=user_id,
        bio=row["bio"] or "",
        photos=_load_photos(row["photos"], user_id),
        main_photo=row["main_photo"],
        num_of_photos=int(row["num_of_photos"] or 0),
        suspended_at=datetime.fromisoformat(suspended_at) if suspended_at else None,
        suspended_reason=row["suspended_reason"],
        is_under_review=bool(row["is_under_review"]),
    )


class UserRepo:
    """Low-level access to user rows for the review pipeline."""

    @staticmethod
    async def get_user(conn: aiosqlite.Connection, user_id: int) -> Optional[UserProfile]:
        cursor = await conn.execute(
            "SELECT id, bio, photos, main_photo, num_of_photos, suspended_at, "
            "suspended_reason, is_under_review FROM users WHERE id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        return _row_to_profile(row) if row is not None else None

    @staticmethod
    async def update_user_photos(conn: aiosqlite.Connection, user_id: int, photos: List[UserPhoto]) -> None:
        """Replace the stored photo array."""
        payload = json.dumps([photo.to_dict() for photo in photos])
        await conn.execute(
            "UPDATE users SET photos = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (payload, user_id),
        )

    @staticmethod
    async def set_suspended(
        conn: aiosqlite.Connection,
        user_id: int,
        reason: str,
        when: Optional[datetime] = None,
    ) -> None:
        suspended_at = (when or datetime.now(timezone.utc)).isoformat()
        await conn.execute(
            "UPDATE users SET suspended_at = ?, suspended_reason = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (suspended_at, reason, user_id),
        )

    @staticmethod
    async def set_under_review(conn: aiosqlite.Connection, user_id: int) -> None:
        await conn.execute(
            "UPDATE users SET is_under_review = 1, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (user_id,),
        )

    @staticmethod
    async def reconcile_main_photo_and_count(
        conn: aiosqlite.Connection,
        user_id: int,
        main_photo: Optional[str] = _UNSET,
        num_of_photos: Optional[int] = None,
    ) -> None:
        """Write back only the derived fields that were passed in.

        ``main_photo`` may legitimately be ``None`` (no visible photo left), so
        an omitted argument is distinguished from an explicit ``None``.
        """
        assignments: Dict[str, Any] = {}
        if main_photo is not _UNSET:
            assignments["main_photo"] = main_photo
        if num_of_photos is not None:
            assignments["num_of_photos"] = num_of_photos
        if not assignments:
            return

        columns = ", ".join(f"{column} = ?" for column in assignments)
        await conn.execute(
            f"UPDATE users SET {columns}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (*assignments.values(), user_id),
        )
