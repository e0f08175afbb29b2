"""
Bio stage of a user review.

The bio is sent to the text moderation endpoint only when bio moderation is
enabled. Violations never act on the account automatically; the user is
marked as under review and the review record is kept for a moderator along
with the violation payload.
"""

from __future__ import annotations

from typing import Optional

from profilereview.database.db_connection import ConnectionManager
from profilereview.datatypes.review_datatypes import BioDecision, ReviewType, UserProfile
from profilereview.moderation import decision_engine
from profilereview.moderation.moderation_client import ModerationAPIClient
from profilereview.repositories.review_repo import ReviewRepo
from profilereview.repositories.user_repo import UserRepo
from profilereview.util.logger import get_logger

logger = get_logger("bio_review_service")


class BioReviewService:
    def __init__(self, connections: ConnectionManager, client: ModerationAPIClient, enabled: bool) -> None:
        self.connections = connections
        self.client = client
        self.enabled = enabled

    async def review(self, user: UserProfile, review_type: ReviewType) -> Optional[BioDecision]:
        """Return the bio verdict, or None when the bio was not checked."""
        if not self.enabled:
            return None
        if not user.bio or not user.bio.strip():
            logger.debug("[BIO REVIEW] User %s has an empty bio, skipping", user.id)
            return None

        result = await self.client.check_text(user.bio)
        decision = decision_engine.decide_bio(result)
        if not decision.needs_human_review:
            return decision

        analysis = {"bio": {"violations": decision.violations}}
        async with self.connections.transaction() as conn:
            await UserRepo.set_under_review(conn, user.id)
            await ReviewRepo.upsert_flagged(conn, user.id, review_type, analysis)

        logger.info("[BIO REVIEW] User %s flagged for human review (%d violations)",
                    user.id, len(decision.violations))
        return decision
