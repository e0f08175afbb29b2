"""Tests for the review scheduler."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import clean_response, image_bytes, insert_review, insert_user, make_pattern_image, photo_dict
from profilereview.datatypes.review_datatypes import (
    BatchSummary,
    BioDecision,
    ReviewOutcome,
    ReviewStatus,
    ReviewType,
)
from profilereview.moderation.moderation_client import TextModerationResult
from profilereview.moderation.notification_dispatcher import NotificationDispatcher
from profilereview.moderation.profile_reconciler import ProfileStateReconciler
from profilereview.repositories.review_repo import ReviewRepo
from profilereview.repositories.user_repo import UserRepo
from profilereview.scheduler.review_scheduler import ReviewScheduler, should_delete_record
from profilereview.services.bio_review_service import BioReviewService
from profilereview.services.photo_review_service import PhotoReviewResult, PhotoReviewService
from profilereview.services.user_review_service import UserReviewService
from profilereview.storage.blob_store import LocalBlobStore
from profilereview.util.errors import ModerationAPIError


def outcome(user_id, review_type=ReviewType.FULL, status=ReviewStatus.COMPLETED, flagged=False):
    bio = BioDecision(needs_human_review=flagged)
    return ReviewOutcome(user_id=user_id, review_type=review_type, status=status, bio_decision=bio)


@pytest.fixture
def review_service():
    mock = MagicMock()

    async def review_user(user_id, review_type=ReviewType.FULL):
        return outcome(user_id, review_type)

    mock.review_user = AsyncMock(side_effect=review_user)
    mock.drain = AsyncMock()
    return mock


async def pending_ids(connections):
    records = await ReviewRepo.list_pending(connections.connection, page_size=100)
    return [r.user_id for r in records]


class TestCleanupRule:
    @pytest.mark.parametrize(
        "review_type,status,flagged,expected",
        [
            (ReviewType.IMAGE, ReviewStatus.COMPLETED, False, True),
            (ReviewType.IMAGE, ReviewStatus.COMPLETED, True, True),
            (ReviewType.CONTENT, ReviewStatus.COMPLETED, False, True),
            (ReviewType.CONTENT, ReviewStatus.FLAGGED, True, False),
            (ReviewType.FULL, ReviewStatus.FLAGGED, True, False),
            (ReviewType.FULL, ReviewStatus.SUSPENDED, False, True),
        ],
    )
    def test_should_delete_record(self, review_type, status, flagged, expected):
        assert should_delete_record(review_type, outcome(1, review_type, status, flagged)) is expected


class TestProcessBatch:
    @pytest.mark.asyncio
    async def test_failure_is_isolated(self, connections, review_service):
        for user_id in (1, 2, 3):
            await insert_review(connections, user_id, created_at=f"2024-01-0{user_id} 00:00:00")

        async def review_user(user_id, review_type=ReviewType.FULL):
            if user_id == 2:
                raise ModerationAPIError("HTTP 503", status_code=503, user_id=2)
            return outcome(user_id, review_type)

        review_service.review_user.side_effect = review_user
        scheduler = ReviewScheduler(connections, review_service)

        summary = await scheduler.process_batch()

        assert summary.processed == 2
        assert summary.deleted == 2
        assert summary.failed == 1
        assert summary.failed_user_ids == [2]
        assert await pending_ids(connections) == [2]

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_isolated(self, connections, review_service):
        await insert_review(connections, 1, created_at="2024-01-01 00:00:00")
        await insert_review(connections, 2, created_at="2024-01-02 00:00:00")

        async def review_user(user_id, review_type=ReviewType.FULL):
            if user_id == 1:
                raise KeyError("boom")
            return outcome(user_id, review_type)

        review_service.review_user.side_effect = review_user
        summary = await ReviewScheduler(connections, review_service).process_batch()

        assert summary.failed == 1
        assert summary.processed == 1

    @pytest.mark.asyncio
    async def test_pages_past_failures_and_terminates(self, connections, review_service):
        for user_id in (1, 2, 3):
            await insert_review(connections, user_id, created_at=f"2024-01-0{user_id} 00:00:00")

        async def review_user(user_id, review_type=ReviewType.FULL):
            if user_id == 1:
                raise ModerationAPIError("HTTP 500", status_code=500)
            return outcome(user_id, review_type)

        review_service.review_user.side_effect = review_user
        scheduler = ReviewScheduler(connections, review_service, page_size=1)

        summary = await scheduler.process_batch()

        assert summary.processed == 2
        assert summary.failed == 1
        assert review_service.review_user.await_count == 3
        assert await pending_ids(connections) == [1]

    @pytest.mark.asyncio
    async def test_missing_user_record_is_deleted(self, connections, review_service):
        await insert_review(connections, 9)
        review_service.review_user.side_effect = None
        review_service.review_user.return_value = None

        summary = await ReviewScheduler(connections, review_service).process_batch()

        assert summary.deleted == 1
        assert summary.processed == 0
        assert await pending_ids(connections) == []

    @pytest.mark.asyncio
    async def test_suspension_is_counted_not_failed(self, connections, review_service):
        await insert_review(connections, 1)
        review_service.review_user.side_effect = None
        review_service.review_user.return_value = outcome(1, status=ReviewStatus.SUSPENDED)

        summary = await ReviewScheduler(connections, review_service).process_batch()

        assert summary.suspended == 1
        assert summary.failed == 0
        assert summary.deleted == 1

    @pytest.mark.asyncio
    async def test_flagged_record_is_retained(self, connections, review_service):
        await insert_review(connections, 1, review_type="content")

        async def review_user(user_id, review_type=ReviewType.FULL):
            async with connections.transaction() as conn:
                await ReviewRepo.upsert_flagged(conn, user_id, review_type, {"bio": {"violations": [{}]}})
            return outcome(user_id, review_type, ReviewStatus.FLAGGED, flagged=True)

        review_service.review_user.side_effect = review_user
        summary = await ReviewScheduler(connections, review_service).process_batch()

        assert summary.retained == 1
        record = await ReviewRepo.get(connections.connection, 1)
        assert record.needs_human_review is True

    @pytest.mark.asyncio
    async def test_locked_user_is_skipped(self, connections, review_service):
        await insert_review(connections, 1, created_at="2024-01-01 00:00:00")
        await insert_review(connections, 2, created_at="2024-01-02 00:00:00")
        scheduler = ReviewScheduler(connections, review_service)

        async with scheduler._lock_for(1):
            summary = await scheduler.process_batch()

        assert summary.skipped == 1
        assert summary.processed == 1
        assert await pending_ids(connections) == [1]

    @pytest.mark.asyncio
    async def test_user_locks_are_released_after_batch(self, connections, review_service):
        for user_id in range(1, 51):
            await insert_review(connections, user_id, review_type="image")
        scheduler = ReviewScheduler(connections, review_service)

        summary = await scheduler.process_batch()

        assert summary.processed == 50
        assert summary.deleted == 50
        assert len(scheduler._locks) == 0

    @pytest.mark.asyncio
    async def test_empty_queue(self, connections, review_service):
        summary = await ReviewScheduler(connections, review_service).process_batch()
        assert summary == BatchSummary()
        review_service.review_user.assert_not_awaited()


class TestReviewUser:
    @pytest.mark.asyncio
    async def test_single_user_is_always_full(self, connections, review_service):
        await insert_review(connections, 4, review_type="image")
        scheduler = ReviewScheduler(connections, review_service)

        result = await scheduler.review_user(4)

        assert result.review_type is ReviewType.FULL
        review_service.review_user.assert_awaited_once_with(4, ReviewType.FULL)
        assert await ReviewRepo.get(connections.connection, 4) is None

    @pytest.mark.asyncio
    async def test_single_user_keeps_record_awaiting_moderator(self, connections, review_service):
        await insert_review(connections, 4, review_type="content", needs_human_review=1)
        scheduler = ReviewScheduler(connections, review_service)

        result = await scheduler.review_user(4)

        assert result.has_violations is False
        record = await ReviewRepo.get(connections.connection, 4)
        assert record is not None
        assert record.needs_human_review is True

    @pytest.mark.asyncio
    async def test_single_user_with_bio_review_disabled_keeps_flagged_record(self, connections):
        await insert_user(connections, 1, bio="hello")
        await insert_review(connections, 1, review_type="content", needs_human_review=1)
        client = MagicMock()
        client.check_text = AsyncMock()
        photo_service = MagicMock()
        photo_service.review = AsyncMock(return_value=PhotoReviewResult())
        bio_service = BioReviewService(connections, client, enabled=False)
        scheduler = ReviewScheduler(connections, UserReviewService(connections, photo_service, bio_service))

        await scheduler.review_user(1)

        record = await ReviewRepo.get(connections.connection, 1)
        assert record is not None
        assert record.needs_human_review is True
        client.check_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_single_user_lock_is_released(self, connections, review_service):
        scheduler = ReviewScheduler(connections, review_service)
        await scheduler.review_user(4)
        assert 4 not in scheduler._locks

    @pytest.mark.asyncio
    async def test_single_user_waits_for_lock(self, connections, review_service):
        scheduler = ReviewScheduler(connections, review_service)
        lock = scheduler._lock_for(4)
        await lock.acquire()

        task = asyncio.create_task(scheduler.review_user(4))
        await asyncio.sleep(0.01)
        assert not task.done()

        lock.release()
        assert (await task).user_id == 4

    @pytest.mark.asyncio
    async def test_single_user_errors_propagate(self, connections, review_service):
        review_service.review_user.side_effect = ModerationAPIError("HTTP 500", status_code=500, user_id=4)
        with pytest.raises(ModerationAPIError):
            await ReviewScheduler(connections, review_service).review_user(4)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_loop_survives_batch_errors_and_shuts_down(self, connections, review_service):
        scheduler = ReviewScheduler(connections, review_service, interval=0.01)
        calls = []

        async def flaky_batch():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("database is locked")
            return BatchSummary()

        scheduler.process_batch = flaky_batch
        scheduler.start()
        await asyncio.sleep(0.1)
        await scheduler.shutdown()

        assert len(calls) >= 2
        review_service.drain.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_task(self, connections, review_service):
        scheduler = ReviewScheduler(connections, review_service, interval=10)
        scheduler.process_batch = AsyncMock(return_value=BatchSummary())
        scheduler.start()
        first = scheduler._task
        scheduler.start()
        assert scheduler._task is first
        await scheduler.shutdown()


@pytest.mark.asyncio
async def test_end_to_end_batch(connections, tmp_path: Path):
    blobs = LocalBlobStore(tmp_path / "blobs")
    for user_id in (1, 2, 3):
        await blobs.put(f"u{user_id}/a.png", image_bytes(make_pattern_image(user_id)))
        await insert_user(connections, user_id, photos=[photo_dict(f"u{user_id}/a.png", 0)], bio=f"bio {user_id}")
    await insert_review(connections, 1, review_type="full", created_at="2024-01-01 00:00:00")
    await insert_review(connections, 2, review_type="image", created_at="2024-01-02 00:00:00")
    await insert_review(connections, 3, review_type="full", created_at="2024-01-03 00:00:00")

    async def check_image(path):
        # scratch directories are named after the user under review
        if path.parent.name.startswith("review_3_"):
            return clean_response(nudity={"sexual_activity": 0.90})
        return clean_response()

    client = MagicMock()
    client.check_image = AsyncMock(side_effect=check_image)
    client.check_text = AsyncMock(return_value=TextModerationResult(violations=[{"category": "spam"}]))
    transport = MagicMock()
    transport.emit = AsyncMock()

    dispatcher = NotificationDispatcher(connections, transport)
    photo_service = PhotoReviewService(
        connections, blobs, client, ProfileStateReconciler(connections), dispatcher,
        suspension_reason="suspended", temp_root=tmp_path / "scratch",
    )
    bio_service = BioReviewService(connections, client, enabled=True)
    scheduler = ReviewScheduler(connections, UserReviewService(connections, photo_service, bio_service))

    summary = await scheduler.process_batch()
    await scheduler.shutdown()

    assert summary.processed == 3
    assert summary.suspended == 1
    assert summary.retained == 1
    assert summary.deleted == 2

    flagged = await ReviewRepo.get(connections.connection, 1)
    assert flagged.needs_human_review is True
    assert flagged.analysis == {"bio": {"violations": [{"category": "spam"}]}}
    user1 = await UserRepo.get_user(connections.connection, 1)
    assert user1.is_under_review is True
    assert user1.suspended_at is None
    assert user1.main_photo == "u1/a.png"

    assert await ReviewRepo.get(connections.connection, 2) is None
    assert await ReviewRepo.get(connections.connection, 3) is None
    user3 = await UserRepo.get_user(connections.connection, 3)
    assert user3.is_suspended is True
    assert client.check_text.await_count == 1
