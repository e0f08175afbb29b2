"""
Maps analysis results onto review verdicts.

Photos are approved or rejected from their report messages; a rejected photo
in a high-severity category escalates to account suspension. Bios are never
auto-actioned: a violation only asks for a human moderator.
"""

from __future__ import annotations

from typing import Iterable, Optional

from profilereview.datatypes.analysis_datatypes import AnalysisReport
from profilereview.datatypes.review_datatypes import BioDecision, PhotoDecision
from profilereview.moderation.moderation_client import TextModerationResult
from profilereview.util.logger import get_logger

logger = get_logger("decision_engine")

# Used for decisions that only carry messages, e.g. ones built outside the summarizer
SEVERE_KEYWORDS = ("violence", "gore", "nudity", "scam")


def decide_photo(path: str, report: AnalysisReport) -> PhotoDecision:
    """Reject the photo iff the report has messages, keeping them verbatim."""
    if report.is_approved:
        return PhotoDecision.approved(path)
    return PhotoDecision.rejected(path, report.messages, severe=report.has_severe_violation)


def _has_severe_message(messages: Iterable[str]) -> bool:
    return any(keyword in message.lower() for message in messages for keyword in SEVERE_KEYWORDS)


def is_severe(decision: PhotoDecision) -> bool:
    return decision.is_rejected and (decision.severe or _has_severe_message(decision.messages))


def should_suspend(decisions: Iterable[PhotoDecision]) -> bool:
    """True if any rejected decision is grounds for suspending the account."""
    for decision in decisions:
        if is_severe(decision):
            logger.info("[DECISION ENGINE] Severe violation on %s: %s", decision.path, decision.messages)
            return True
    return False


def decide_bio(result: Optional[TextModerationResult]) -> BioDecision:
    """Flag the bio for human review iff the text endpoint reported violations."""
    if result is None or not result.has_violations:
        return BioDecision(needs_human_review=False)
    return BioDecision(needs_human_review=True, violations=list(result.violations))
