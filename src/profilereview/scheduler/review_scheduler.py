"""Polling scheduler for pending profile reviews.

`process_batch` drains the current backlog of pending review records once
and returns a summary; `start` runs it on a fixed interval in a background
task. A single user can also be reviewed on demand with `review_user`.
"""

from __future__ import annotations

import asyncio
import weakref
from typing import Optional, Set

from profilereview.database.db_connection import ConnectionManager
from profilereview.datatypes.review_datatypes import (
    BatchSummary,
    ReviewOutcome,
    ReviewRecord,
    ReviewType,
)
from profilereview.repositories.review_repo import ReviewRepo
from profilereview.services.user_review_service import UserReviewService
from profilereview.util.logger import get_logger

logger = get_logger("review_scheduler")


def should_delete_record(review_type: ReviewType, outcome: ReviewOutcome) -> bool:
    """
    Cleanup rule for a review record after its user was processed.

    Image-only reviews are always finished. Content and full reviews are
    finished unless a bio violation is waiting for a moderator. A suspended
    account has nothing left for automation either.
    """
    if outcome.is_suspended:
        return True
    if review_type is ReviewType.IMAGE:
        return True
    return not outcome.has_violations


class ReviewScheduler:
    """
    Drives `UserReviewService` over the pending review queue.

    Args:
        connections: Connection manager for review record reads and deletes.
        review_service: Performs the per-user review.
        page_size: Number of pending records fetched per query.
        interval: Seconds between two batches when running continuously.
    """

    def __init__(
        self,
        connections: ConnectionManager,
        review_service: UserReviewService,
        page_size: int = 5000,
        interval: float = 5.0,
    ) -> None:
        self.connections = connections
        self.review_service = review_service
        self.page_size = page_size
        self.interval = interval
        # Entries vanish once no review holds or awaits the user's lock
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()
        self._task: asyncio.Task | None = None

    def _lock_for(self, user_id: int) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    async def _delete_record(self, user_id: int) -> None:
        async with self.connections.transaction() as conn:
            await ReviewRepo.delete(conn, user_id)

    # ------------------------------------------------------------------
    # Single user
    # ------------------------------------------------------------------

    async def review_user(self, user_id: int) -> Optional[ReviewOutcome]:
        """
        Run a full review for one user, waiting for any review of the same
        user that is already in progress.

        A record already escalated to a moderator is left in place; only a
        human clears it. Errors propagate to the caller.
        """
        async with self._lock_for(user_id):
            async with self.connections.read() as conn:
                existing = await ReviewRepo.get(conn, user_id)

            outcome = await self.review_service.review_user(user_id, ReviewType.FULL)
            if outcome is None:
                logger.warning("[REVIEW SCHEDULER] User %s not found", user_id)
                await self._delete_record(user_id)
                return None
            if existing is not None and existing.needs_human_review:
                logger.info("[REVIEW SCHEDULER] Keeping review record of user %s for human review", user_id)
            elif should_delete_record(ReviewType.FULL, outcome):
                await self._delete_record(user_id)
            logger.info("[REVIEW SCHEDULER] User %s reviewed: %s", user_id, outcome.status)
            return outcome

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    async def _process_record(self, record: ReviewRecord, summary: BatchSummary) -> None:
        outcome = await self.review_service.review_user(record.user_id, record.review_type)

        if outcome is None:
            logger.warning("[REVIEW SCHEDULER] Review record for missing user %s deleted", record.user_id)
            await self._delete_record(record.user_id)
            summary.deleted += 1
            return

        summary.processed += 1
        if outcome.is_suspended:
            summary.suspended += 1

        if should_delete_record(record.review_type, outcome):
            await self._delete_record(record.user_id)
            summary.deleted += 1
        else:
            summary.retained += 1

    async def process_batch(self) -> BatchSummary:
        """
        Process every currently pending review record once.

        Records that fail or are skipped stay pending; the query offset
        advances past them so each invocation terminates.
        """
        summary = BatchSummary()
        seen: Set[int] = set()
        offset = 0

        while True:
            async with self.connections.read() as conn:
                records = await ReviewRepo.list_pending(conn, self.page_size, offset)

            fresh = [record for record in records if record.user_id not in seen]
            if not fresh:
                break

            for record in fresh:
                seen.add(record.user_id)
                lock = self._lock_for(record.user_id)
                if lock.locked():
                    logger.debug("[REVIEW SCHEDULER] User %s is being reviewed elsewhere, skipping", record.user_id)
                    summary.skipped += 1
                    offset += 1
                    continue

                async with lock:
                    try:
                        await self._process_record(record, summary)
                    except asyncio.CancelledError:
                        raise
                    except Exception as exc:
                        logger.error("[REVIEW SCHEDULER] Review failed for user %s: %s", record.user_id, exc)
                        summary.failed += 1
                        summary.failed_user_ids.append(record.user_id)
                        offset += 1

        if seen:
            logger.info("[REVIEW SCHEDULER] Batch complete: %s", summary)
        return summary

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def _run_loop(self, interval: float) -> None:
        """Infinite loop: process a batch, sleep, repeat."""
        logger.info("[REVIEW SCHEDULER] Starting review polling (interval=%.1fs, page size=%d)",
                    interval, self.page_size)
        try:
            while True:
                try:
                    await self.process_batch()
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    logger.error("[REVIEW SCHEDULER] Unexpected error during batch: %s", exc)
                await asyncio.sleep(interval)
        except asyncio.CancelledError:
            logger.info("[REVIEW SCHEDULER] Review polling cancelled")
            raise

    def start(self) -> None:
        """Start the background polling task if not already running."""
        if self._task and not self._task.done():
            logger.warning("[REVIEW SCHEDULER] Polling task already running")
            return
        self._task = asyncio.create_task(self._run_loop(self.interval), name="profilereview-review-scheduler")

    async def wait(self) -> None:
        """Block until the polling task ends."""
        if self._task is not None:
            await self._task

    async def shutdown(self) -> None:
        """Stop polling and wait for pending side effects."""
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

        await self.review_service.drain()
        logger.info("[REVIEW SCHEDULER] Scheduler shutdown complete")
