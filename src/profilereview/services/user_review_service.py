"""
Per-user orchestration of the review stages.

A review runs the photo stage when its type covers photos and then the bio
stage when its type covers the bio. Suspension during the photo stage ends
the review; the bio is not looked at for a suspended account.
"""

from __future__ import annotations

from typing import Optional

from profilereview.database.db_connection import ConnectionManager
from profilereview.datatypes.review_datatypes import ReviewOutcome, ReviewStatus, ReviewType
from profilereview.repositories.user_repo import UserRepo
from profilereview.services.bio_review_service import BioReviewService
from profilereview.services.photo_review_service import PhotoReviewService
from profilereview.util.logger import get_logger

logger = get_logger("user_review_service")


class UserReviewService:
    """Runs one user's review from the stored profile to a `ReviewOutcome`."""

    def __init__(
        self,
        connections: ConnectionManager,
        photo_service: PhotoReviewService,
        bio_service: BioReviewService,
    ) -> None:
        self.connections = connections
        self.photo_service = photo_service
        self.bio_service = bio_service

    async def review_user(self, user_id: int, review_type: ReviewType = ReviewType.FULL) -> Optional[ReviewOutcome]:
        """
        Review one user.

        Returns:
            Optional[ReviewOutcome]: None when the user does not exist.

        Raises:
            ReviewError: From the photo stage; nothing has been written then.
        """
        async with self.connections.read() as conn:
            user = await UserRepo.get_user(conn, user_id)
        if user is None:
            return None

        outcome = ReviewOutcome(user_id=user_id, review_type=review_type)

        if user.is_suspended:
            logger.info("[USER REVIEW] User %s is already suspended, skipping review", user_id)
            outcome.status = ReviewStatus.SUSPENDED
            return outcome

        if review_type.includes_photos:
            photo_result = await self.photo_service.review(user)
            outcome.photo_decisions = photo_result.decisions
            if photo_result.status is ReviewStatus.SUSPENDED:
                outcome.status = ReviewStatus.SUSPENDED
                return outcome

        if review_type.includes_bio:
            outcome.bio_decision = await self.bio_service.review(user, review_type)
            if outcome.has_violations:
                outcome.status = ReviewStatus.FLAGGED

        return outcome

    async def drain(self) -> None:
        """Wait for background side effects (realtime emits) to finish."""
        await self.photo_service.dispatcher.drain()
