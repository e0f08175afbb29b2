"""
Photo stage of a user review.

For one user the service downloads every non-rejected photo into a private
scratch directory, normalises it, rejects unreadable photos and duplicates,
sends the rest to the moderation vendor one by one and applies the verdicts.
A high-severity rejection suspends the account immediately and ends the
stage without touching the photo array.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from profilereview.database.db_connection import ConnectionManager
from profilereview.datatypes.review_datatypes import PhotoDecision, ReviewStatus, UserPhoto, UserProfile
from profilereview.moderation import decision_engine
from profilereview.moderation.analysis_summarizer import summarize_image_analysis
from profilereview.moderation.image_similarity import ImageSimilarityDetector
from profilereview.moderation.moderation_client import ModerationAPIClient
from profilereview.moderation.notification_dispatcher import NotificationDispatcher
from profilereview.moderation.profile_reconciler import ProfileStateReconciler
from profilereview.repositories.user_repo import UserRepo
from profilereview.storage.blob_store import BlobStore
from profilereview.util import image_utils
from profilereview.util.errors import PhotoDownloadError, ReviewError
from profilereview.util.logger import get_logger

logger = get_logger("photo_review_service")

MSG_DUPLICATE = "Photo appears to be a duplicate of another photo"
MSG_CORRUPTED = "Photo appears to be corrupted or unreadable"


@dataclass
class PhotoReviewResult:
    status: ReviewStatus = ReviewStatus.COMPLETED
    decisions: List[PhotoDecision] = field(default_factory=list)


@dataclass
class _LocalPhoto:
    photo: UserPhoto
    path: Optional[Path]


def apply_decisions(photos: Sequence[UserPhoto], decisions: Sequence[PhotoDecision]) -> List[UserPhoto]:
    """Return ``photos`` with each decision written onto the photo it names.

    Photos without a decision keep their state. Decisions for photos that no
    longer exist are ignored.
    """
    by_path: Dict[str, PhotoDecision] = {d.path: d for d in decisions}
    updated: List[UserPhoto] = []
    for photo in photos:
        decision = by_path.get(photo.path)
        if decision is not None:
            photo.is_rejected = decision.is_rejected
            photo.messages = list(decision.messages) if decision.is_rejected else []
        updated.append(photo)
    return updated


class PhotoReviewService:
    """
    Runs the photo stage for one user at a time.

    Args:
        connections: Connection manager for user reads and writes.
        blob_store: Where the photo bytes live.
        client: Moderation vendor client.
        reconciler: Recomputes main photo and photo count after the write.
        dispatcher: Sends the outcome notification.
        suspension_reason: Stored on the user when the account is suspended.
        temp_root: Parent of the per-user scratch directories.
    """

    def __init__(
        self,
        connections: ConnectionManager,
        blob_store: BlobStore,
        client: ModerationAPIClient,
        reconciler: ProfileStateReconciler,
        dispatcher: NotificationDispatcher,
        suspension_reason: str,
        temp_root: Optional[Path] = None,
    ) -> None:
        self.connections = connections
        self.blob_store = blob_store
        self.client = client
        self.reconciler = reconciler
        self.dispatcher = dispatcher
        self.suspension_reason = suspension_reason
        self.temp_root = temp_root

    # ------------------------------------------------------------------
    # Download
    # ------------------------------------------------------------------

    async def _download(self, user_id: int, photos: Sequence[UserPhoto], directory: Path) -> List[_LocalPhoto]:
        local: List[_LocalPhoto] = []
        for index, photo in enumerate(photos):
            try:
                data = await self.blob_store.get(photo.path)
            except Exception as exc:
                raise PhotoDownloadError(f"Could not download {photo.path}: {exc}", user_id=user_id) from exc

            raw_path = await asyncio.to_thread(image_utils.write_temp_image, directory, index, data, user_id)
            normalised = await asyncio.to_thread(image_utils.normalize_image, raw_path)
            local.append(_LocalPhoto(photo=photo, path=normalised))
        return local

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    async def _moderate(self, local: _LocalPhoto) -> PhotoDecision:
        response = await self.client.check_image(local.path)
        report = summarize_image_analysis(response)
        return decision_engine.decide_photo(local.photo.path, report)

    async def _decide_all(self, user_id: int, local_photos: Sequence[_LocalPhoto]) -> PhotoReviewResult:
        result = PhotoReviewResult()
        detector = ImageSimilarityDetector()
        kept: List[Path] = []

        for local in local_photos:
            if local.path is None:
                decision = PhotoDecision.rejected(local.photo.path, [MSG_CORRUPTED])
            elif await detector.is_duplicate(local.path, kept):
                decision = PhotoDecision.rejected(local.photo.path, [MSG_DUPLICATE])
            else:
                kept.append(local.path)
                decision = await self._moderate(local)

            result.decisions.append(decision)
            logger.debug("[PHOTO REVIEW] User %s photo %s rejected=%s %s",
                         user_id, local.photo.path, decision.is_rejected, decision.messages)

            if decision_engine.should_suspend([decision]):
                result.status = ReviewStatus.SUSPENDED
                break

        return result

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def _suspend(self, user_id: int) -> None:
        async with self.connections.transaction() as conn:
            await UserRepo.set_suspended(conn, user_id, self.suspension_reason)
        logger.warning("[PHOTO REVIEW] User %s suspended: %s", user_id, self.suspension_reason)

    async def _store_decisions(self, user_id: int, decisions: Sequence[PhotoDecision]) -> None:
        # Re-read inside the write so concurrent photo edits are not overwritten
        async with self.connections.transaction() as conn:
            current = await UserRepo.get_user(conn, user_id)
            if current is None:
                logger.warning("[PHOTO REVIEW] User %s disappeared before decisions were stored", user_id)
                return
            await UserRepo.update_user_photos(conn, user_id, apply_decisions(current.photos, decisions))

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def review(self, user: UserProfile) -> PhotoReviewResult:
        """
        Review every non-rejected photo of ``user``.

        Raises:
            ReviewError: Any download, scratch-file, comparison or moderation
                failure. The photo array is left untouched in that case.
        """
        photos = user.active_photos()
        if not photos:
            logger.info("[PHOTO REVIEW] User %s has no photos to review", user.id)
            await self.reconciler.reconcile(user.id)
            return PhotoReviewResult()

        directory = await asyncio.to_thread(image_utils.create_user_temp_dir, user.id, self.temp_root)
        try:
            local_photos = await self._download(user.id, photos, directory)
            result = await self._decide_all(user.id, local_photos)
        except ReviewError as exc:
            if exc.user_id is None:
                exc.user_id = user.id
            raise
        finally:
            await asyncio.to_thread(image_utils.cleanup_temp_dir, directory)

        if result.status is ReviewStatus.SUSPENDED:
            await self._suspend(user.id)
            return result

        await self._store_decisions(user.id, result.decisions)
        reconciled = await self.reconciler.reconcile(user.id)
        await self.dispatcher.dispatch(user.id, result.decisions)

        rejected = sum(1 for d in result.decisions if d.is_rejected)
        logger.info("[PHOTO REVIEW] User %s: %d photos reviewed, %d rejected, main photo %s",
                    user.id, len(result.decisions), rejected, reconciled.main_photo)
        return result
