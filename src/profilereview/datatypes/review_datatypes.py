"""
Review, profile and photo data structures.

This module defines the records exchanged between the repositories and the
review pipeline:

- `ReviewType` / `ReviewRecord`: one queued or flagged unit of work per user.
- `UserPhoto` / `UserProfile`: the slice of the user row the pipeline reads
  and writes.
- `PhotoDecision` / `BioDecision`: per-item verdicts produced by the decision
  engine.
- `ReviewOutcome` / `BatchSummary`: results reported back to the scheduler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class ReviewType(Enum):
    """Scope of a pending review."""

    IMAGE = "image"
    CONTENT = "content"
    FULL = "full"

    def __str__(self) -> str:
        return self.value

    @property
    def includes_photos(self) -> bool:
        return self in (ReviewType.IMAGE, ReviewType.FULL)

    @property
    def includes_bio(self) -> bool:
        return self in (ReviewType.CONTENT, ReviewType.FULL)


@dataclass(slots=True)
class ReviewRecord:
    """A row from the ``user_reviews`` table.

    Attributes:
        user_id: The user whose content needs (re-)evaluation.
        review_type: Which stages the review covers.
        needs_human_review: True once automation has escalated to a moderator.
            None and False both mean "pending for automation".
        analysis: Violation payload attached when human review is required.
        created_at: When the record was queued; the batch processes oldest first.
    """

    user_id: int
    review_type: ReviewType = ReviewType.FULL
    needs_human_review: Optional[bool] = None
    analysis: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None


@dataclass(slots=True)
class UserPhoto:
    """One element of a user's ordered photo collection.

    ``messages`` is only meaningful when ``is_rejected`` is True.
    """

    path: str
    sort_order: int = 0
    is_rejected: bool = False
    messages: List[str] = field(default_factory=list)
    cropped_image_data: Optional[Dict[str, Any]] = None
    uploaded_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserPhoto":
        return cls(
            path=str(data["path"]),
            sort_order=int(data.get("sortOrder", 0) or 0),
            is_rejected=bool(data.get("isRejected", False)),
            messages=list(data.get("messages") or []),
            cropped_image_data=data.get("croppedImageData"),
            uploaded_at=data.get("uploadedAt"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "path": self.path,
            "sortOrder": self.sort_order,
            "isRejected": self.is_rejected,
            "messages": list(self.messages) if self.is_rejected else [],
        }
        if self.cropped_image_data is not None:
            data["croppedImageData"] = self.cropped_image_data
        if self.uploaded_at is not None:
            data["uploadedAt"] = self.uploaded_at
        return data


@dataclass(slots=True)
class UserProfile:
    """The reviewable part of a user row."""

    id: int
    bio: str = ""
    photos: List[UserPhoto] = field(default_factory=list)
    main_photo: Optional[str] = None
    num_of_photos: int = 0
    suspended_at: Optional[datetime] = None
    suspended_reason: Optional[str] = None
    is_under_review: bool = False

    @property
    def is_suspended(self) -> bool:
        return self.suspended_at is not None

    def active_photos(self) -> List[UserPhoto]:
        """Return the non-rejected photos ordered by ``sort_order``."""
        return sorted((p for p in self.photos if not p.is_rejected), key=lambda p: p.sort_order)


@dataclass(slots=True)
class PhotoDecision:
    """Verdict for a single photo in one review pass.

    Attributes:
        path: Blob key of the photo the decision applies to.
        is_rejected: Whether the photo fails review.
        messages: Human-readable reasons, empty when approved.
        severe: Locale-independent flag set when the analysis report carries a
            high-severity category (nudity, violence, gore, scam).
    """

    path: str
    is_rejected: bool
    messages: List[str] = field(default_factory=list)
    severe: bool = False

    @classmethod
    def approved(cls, path: str) -> "PhotoDecision":
        return cls(path=path, is_rejected=False)

    @classmethod
    def rejected(cls, path: str, messages: List[str], severe: bool = False) -> "PhotoDecision":
        return cls(path=path, is_rejected=True, messages=list(messages), severe=severe)


@dataclass(slots=True)
class BioDecision:
    """Verdict for a user's bio. Bio review only ever escalates to a human."""

    needs_human_review: bool
    violations: List[Dict[str, Any]] = field(default_factory=list)


class ReviewStatus(Enum):
    """Terminal state of one user's review pass."""

    COMPLETED = "completed"
    SUSPENDED = "suspended"
    FLAGGED = "flagged"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True)
class ReviewOutcome:
    """What happened to a user during one pass through the pipeline."""

    user_id: int
    review_type: ReviewType
    status: ReviewStatus = ReviewStatus.COMPLETED
    photo_decisions: List[PhotoDecision] = field(default_factory=list)
    bio_decision: Optional[BioDecision] = None

    @property
    def has_violations(self) -> bool:
        """True when a bio violation is waiting for a human."""
        return self.bio_decision is not None and self.bio_decision.needs_human_review

    @property
    def is_suspended(self) -> bool:
        return self.status is ReviewStatus.SUSPENDED


@dataclass(slots=True)
class BatchSummary:
    """Counters reported by one bounded batch invocation."""

    processed: int = 0
    deleted: int = 0
    retained: int = 0
    suspended: int = 0
    failed: int = 0
    skipped: int = 0
    failed_user_ids: List[int] = field(default_factory=list)

    def __str__(self) -> str:
        return (
            f"processed={self.processed} deleted={self.deleted} retained={self.retained} "
            f"suspended={self.suspended} failed={self.failed} skipped={self.skipped}"
        )
