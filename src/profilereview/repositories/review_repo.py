"""
Persistent storage for pending and flagged profile reviews.

A row in ``user_reviews`` means "this user's content needs (re-)evaluation".
Rows whose ``needs_human_review`` flag is set are waiting for a moderator and
are invisible to the automated poll.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

import aiosqlite

from profilereview.datatypes.review_datatypes import ReviewRecord, ReviewType
from profilereview.util.logger import get_logger

logger = get_logger("review_repo")


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        logger.debug("Unparseable timestamp %r in user_reviews", value)
        return None


def _row_to_record(row: aiosqlite.Row) -> ReviewRecord:
    needs_human_review = row["needs_human_review"]
    analysis = row["analysis"]
    return ReviewRecord(
        user_id=int(row["user_id"]),
        review_type=ReviewType(row["review_type"]),
        needs_human_review=None if needs_human_review is None else bool(needs_human_review),
        analysis=json.loads(analysis) if analysis else None,
        created_at=_parse_timestamp(row["created_at"]),
    )


class ReviewRepo:
    """Low-level CRUD for the ``user_reviews`` table."""

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    async def insert(
        conn: aiosqlite.Connection,
        user_id: int,
        review_type: ReviewType = ReviewType.FULL,
    ) -> None:
        """Queue a user for automated review; an existing row is left untouched."""
        await conn.execute(
            "INSERT OR IGNORE INTO user_reviews (user_id, review_type) VALUES (?, ?)",
            (user_id, review_type.value),
        )

    @staticmethod
    async def upsert_flagged(
        conn: aiosqlite.Connection,
        user_id: int,
        review_type: ReviewType,
        analysis: Dict[str, Any],
    ) -> None:
        """Create or update the row so that it waits for a human moderator."""
        await conn.execute(
            """
            INSERT INTO user_reviews (user_id, review_type, needs_human_review, analysis)
            VALUES (?, ?, 1, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                needs_human_review = 1,
                analysis           = excluded.analysis
            """,
            (user_id, review_type.value, json.dumps(analysis)),
        )

    @staticmethod
    async def delete(conn: aiosqlite.Connection, user_id: int) -> None:
        """Remove the row once automation has nothing left to do for the user."""
        await conn.execute("DELETE FROM user_reviews WHERE user_id = ?", (user_id,))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    async def list_pending(
        conn: aiosqlite.Connection,
        page_size: int,
        offset: int = 0,
    ) -> List[ReviewRecord]:
        """Return rows not yet escalated to a human, oldest first."""
        cursor = await conn.execute(
            """
            SELECT user_id, review_type, needs_human_review, analysis, created_at
            FROM user_reviews
            WHERE needs_human_review IS NULL OR needs_human_review = 0
            ORDER BY created_at ASC, user_id ASC
            LIMIT ? OFFSET ?
            """,
            (page_size, offset),
        )
        rows = await cursor.fetchall()
        return [_row_to_record(row) for row in rows]

    @staticmethod
    async def get(conn: aiosqlite.Connection, user_id: int) -> Optional[ReviewRecord]:
        cursor = await conn.execute(
            "SELECT user_id, review_type, needs_human_review, analysis, created_at "
            "FROM user_reviews WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        return _row_to_record(row) if row is not None else None
