"""
Normalised image analysis report.

An `AnalysisReport` is built from one raw vendor response by the summarizer.
Every category the vendor may return has its own fixed record holding the
raw payload and the boolean flags derived from it; a category the vendor did
not return stays ``None``. The aggregated ``messages`` list is the union of
all category messages in evaluation order and is empty when the photo passes.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

# Scores strictly above this are treated as "likely positive"
LIKELY_THRESHOLD = 0.85
# AI-generated and minor detection require near certainty (inclusive)
CERTAIN_THRESHOLD = 0.98


@dataclass(slots=True)
class NudityAnalysis:
    raw: Dict[str, Any]
    is_nude: bool = False
    is_partial_nude: bool = False
    is_safe: bool = False


@dataclass(slots=True)
class WeaponAnalysis:
    raw: Dict[str, Any]
    contains_weapon: bool = False


@dataclass(slots=True)
class RecreationalDrugAnalysis:
    raw: Dict[str, Any]
    contains_recreational_drug: bool = False


@dataclass(slots=True)
class MedicalAnalysis:
    raw: Dict[str, Any]
    contains_medical_content: bool = False


@dataclass(slots=True)
class OffensiveAnalysis:
    raw: Dict[str, Any]
    is_offensive: bool = False


@dataclass(slots=True)
class GoreAnalysis:
    raw: Dict[str, Any]
    contains_gore: bool = False


@dataclass(slots=True)
class ViolenceAnalysis:
    raw: Dict[str, Any]
    contains_violence: bool = False


@dataclass(slots=True)
class SelfHarmAnalysis:
    raw: Dict[str, Any]
    contains_self_harm_content: bool = False


@dataclass(slots=True)
class ScamAnalysis:
    raw: Dict[str, Any]
    contains_scam_content: bool = False


@dataclass(slots=True)
class GamblingAnalysis:
    raw: Dict[str, Any]
    contains_gambling_content: bool = False


@dataclass(slots=True)
class TobaccoAnalysis:
    raw: Dict[str, Any]
    contains_tobacco_content: bool = False


@dataclass(slots=True)
class AIGeneratedAnalysis:
    raw: Dict[str, Any]
    is_ai_generated: bool = False


@dataclass(slots=True)
class IllustrationAnalysis:
    raw: Dict[str, Any]
    is_illustration: bool = False


@dataclass(slots=True)
class QRContentAnalysis:
    raw: Dict[str, Any]
    has_links: bool = False
    has_social_links: bool = False
    has_spam_content: bool = False
    has_profanity: bool = False
    is_blacklisted: bool = False
    has_personal_info: bool = False


@dataclass(slots=True)
class TextAnalysis:
    raw: Dict[str, Any]
    has_profanity: bool = False
    has_personal_info: bool = False
    has_links: bool = False
    has_social_links: bool = False
    has_extremism: bool = False
    has_medical_content: bool = False
    has_drug_references: bool = False
    has_weapon_references: bool = False
    has_content_trade: bool = False
    has_money_transactions: bool = False
    has_spam: bool = False
    has_violence: bool = False
    has_self_harm: bool = False
    has_artificial_text: bool = False
    has_natural_text: bool = False


@dataclass(slots=True)
class FacesAnalysis:
    raw: List[Dict[str, Any]]
    count: int = 0
    has_faces: bool = False
    has_minors: bool = False
    has_sunglasses: bool = False


@dataclass(slots=True)
class AnalysisReport:
    """Normalised, per-category view of one image moderation response."""

    nudity: Optional[NudityAnalysis] = None
    weapon: Optional[WeaponAnalysis] = None
    recreational_drug: Optional[RecreationalDrugAnalysis] = None
    medical: Optional[MedicalAnalysis] = None
    offensive: Optional[OffensiveAnalysis] = None
    gore: Optional[GoreAnalysis] = None
    violence: Optional[ViolenceAnalysis] = None
    self_harm: Optional[SelfHarmAnalysis] = None
    scam: Optional[ScamAnalysis] = None
    gambling: Optional[GamblingAnalysis] = None
    tobacco: Optional[TobaccoAnalysis] = None
    ai_generated: Optional[AIGeneratedAnalysis] = None
    is_illustration: Optional[IllustrationAnalysis] = None
    qr_content: Optional[QRContentAnalysis] = None
    text: Optional[TextAnalysis] = None
    faces: Optional[FacesAnalysis] = None
    messages: List[str] = field(default_factory=list)

    @property
    def is_approved(self) -> bool:
        return not self.messages

    @property
    def has_severe_violation(self) -> bool:
        """True when a category that warrants account suspension fired."""
        return bool(
            (self.nudity and self.nudity.is_nude)
            or (self.violence and self.violence.contains_violence)
            or (self.gore and self.gore.contains_gore)
            or (self.scam and self.scam.contains_scam_content)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serialisable mapping, omitting absent categories."""
        return {key: value for key, value in asdict(self).items() if value is not None}
