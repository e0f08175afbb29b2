"""
Exception types raised by the review pipeline.

Every error carries the id of the user whose review was being processed so
that the scheduler can log it with context and move on to the next record.
Subclasses of :class:`ReviewError` abandon the current user's review for this
pass only; the review record is left pending and is retried on the next poll.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ReviewError(Exception):
    """Base exception for a failed per-user review."""

    def __init__(
        self,
        message: str,
        user_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.user_id = user_id
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.user_id is None:
            return self.message
        return f"{self.message} (user {self.user_id})"


class PhotoDownloadError(ReviewError):
    """Raised when a photo cannot be fetched from blob storage."""


class TempFileError(ReviewError):
    """Raised when a downloaded photo cannot be written to local storage."""


class DuplicateDetectionError(ReviewError):
    """Raised when an image cannot be loaded or resized for comparison."""


class ModerationAPIError(ReviewError):
    """Raised when the image moderation endpoint answers with a non-200 status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        user_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, user_id=user_id, details={**(details or {}), "status_code": status_code})
        self.status_code = status_code


class AnalysisSummaryError(ReviewError):
    """Raised when a vendor response cannot be turned into an analysis report."""
