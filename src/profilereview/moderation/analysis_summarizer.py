"""
Normalisation of raw image moderation responses.

Each vendor category is mapped by its own pure function into a fixed record
of the `AnalysisReport`, together with the user-facing message for that
category (if its flag holds). `summarize_image_analysis` runs every mapper in
a fixed order so the aggregated messages are deterministic.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from profilereview.datatypes.analysis_datatypes import (
    CERTAIN_THRESHOLD,
    LIKELY_THRESHOLD,
    AIGeneratedAnalysis,
    AnalysisReport,
    FacesAnalysis,
    GamblingAnalysis,
    GoreAnalysis,
    IllustrationAnalysis,
    MedicalAnalysis,
    NudityAnalysis,
    OffensiveAnalysis,
    QRContentAnalysis,
    RecreationalDrugAnalysis,
    ScamAnalysis,
    SelfHarmAnalysis,
    TextAnalysis,
    TobaccoAnalysis,
    ViolenceAnalysis,
    WeaponAnalysis,
)
from profilereview.util.errors import AnalysisSummaryError
from profilereview.util.logger import get_logger

logger = get_logger("analysis_summarizer")

MSG_FULL_NUDITY = "Photo contains full nudity"
MSG_PARTIAL_NUDITY = "Photo contains partial nudity"
MSG_WEAPON = "Photo contains weapon"
MSG_RECREATIONAL_DRUG = "Photo contains recreational drug"
MSG_MEDICAL = "Photo contains medical content"
MSG_OFFENSIVE = "Photo contains offensive content"
MSG_GORE = "Photo contains gore"
MSG_VIOLENCE = "Photo contains violence"
MSG_SELF_HARM = "Photo contains self-harm content"
MSG_SCAM = "Photo has been identified as scam content"
MSG_GAMBLING = "Photo contains gambling content"
MSG_TOBACCO = "Photo contains tobacco content"
MSG_AI_GENERATED = "Photo appears to be AI-generated"
MSG_ILLUSTRATION = "Photo appears to be an illustration"
MSG_BLACKLISTED_QR = "Photo contains blacklisted QR code"
MSG_INAPPROPRIATE_TEXT = "Photo contains inappropriate text"
MSG_MINORS = "Photo contains faces of minors"
MSG_NO_FACE = "You must have a clear face in your photo"

Mapped = Tuple[Any, List[str]]


# ---------------------------------------------------------------------------
# Score helpers
# ---------------------------------------------------------------------------

def _score(section: Any, key: str) -> float:
    """Return ``section[key]`` as a float, 0.0 when missing or not numeric."""
    if not isinstance(section, dict):
        return 0.0
    value = section.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def _any_likely(section: Any, keys: Iterable[str]) -> bool:
    return any(_score(section, key) > LIKELY_THRESHOLD for key in keys)


def _prob_or_classes(section: Dict[str, Any], class_keys: Iterable[str], nested: str = "classes") -> bool:
    return _score(section, "prob") > LIKELY_THRESHOLD or _any_likely(section.get(nested), class_keys)


def _non_empty_list(section: Dict[str, Any], key: str) -> bool:
    value = section.get(key)
    return isinstance(value, list) and len(value) > 0


# ---------------------------------------------------------------------------
# Per-category mappers
# ---------------------------------------------------------------------------

def summarize_nudity(raw: Dict[str, Any]) -> Tuple[NudityAnalysis, List[str]]:
    analysis = NudityAnalysis(
        raw=raw,
        is_nude=_any_likely(raw, ("sexual_activity", "sexual_display", "erotica")),
        is_partial_nude=_any_likely(raw, ("very_suggestive", "suggestive")),
        is_safe=_score(raw, "none") > LIKELY_THRESHOLD,
    )
    messages: List[str] = []
    if analysis.is_nude:
        messages.append(MSG_PARTIAL_NUDITY if analysis.is_partial_nude else MSG_FULL_NUDITY)
    return analysis, messages


def summarize_weapon(raw: Dict[str, Any]) -> Tuple[WeaponAnalysis, List[str]]:
    contains = _any_likely(raw.get("classes"), ("firearm", "firearm_gesture", "firearm_toy", "knife"))
    return WeaponAnalysis(raw=raw, contains_weapon=contains), [MSG_WEAPON] if contains else []


def summarize_recreational_drug(raw: Dict[str, Any]) -> Tuple[RecreationalDrugAnalysis, List[str]]:
    contains = _prob_or_classes(
        raw,
        ("cannabis", "cannabis_logo_only", "cannabis_plant", "cannabis_drug", "recreational_drugs_not_cannabis"),
    )
    return (
        RecreationalDrugAnalysis(raw=raw, contains_recreational_drug=contains),
        [MSG_RECREATIONAL_DRUG] if contains else [],
    )


def summarize_medical(raw: Dict[str, Any]) -> Tuple[MedicalAnalysis, List[str]]:
    contains = _prob_or_classes(raw, ("pills", "paraphernalia"))
    return MedicalAnalysis(raw=raw, contains_medical_content=contains), [MSG_MEDICAL] if contains else []


def summarize_offensive(raw: Dict[str, Any]) -> Tuple[OffensiveAnalysis, List[str]]:
    offensive = _any_likely(
        raw, ("nazi", "asian_swastika", "confederate", "supremacist", "terrorist", "middle_finger")
    )
    return OffensiveAnalysis(raw=raw, is_offensive=offensive), [MSG_OFFENSIVE] if offensive else []


def summarize_gore(raw: Dict[str, Any]) -> Tuple[GoreAnalysis, List[str]]:
    contains = _prob_or_classes(
        raw,
        (
            "very_bloody",
            "slightly_bloody",
            "body_organ",
            "serious_injury",
            "superficial_injury",
            "corpse",
            "skull",
            "unconscious",
            "body_waste",
            "other",
        ),
    )
    return GoreAnalysis(raw=raw, contains_gore=contains), [MSG_GORE] if contains else []


def summarize_violence(raw: Dict[str, Any]) -> Tuple[ViolenceAnalysis, List[str]]:
    contains = _prob_or_classes(raw, ("physical_violence", "firearm_threat", "combat_sport"))
    return ViolenceAnalysis(raw=raw, contains_violence=contains), [MSG_VIOLENCE] if contains else []


def summarize_self_harm(raw: Dict[str, Any]) -> Tuple[SelfHarmAnalysis, List[str]]:
    contains = _prob_or_classes(raw, ("real", "fake", "animated"), nested="type")
    return SelfHarmAnalysis(raw=raw, contains_self_harm_content=contains), [MSG_SELF_HARM] if contains else []


def summarize_scam(raw: Dict[str, Any]) -> Tuple[ScamAnalysis, List[str]]:
    contains = _score(raw, "prob") > LIKELY_THRESHOLD
    return ScamAnalysis(raw=raw, contains_scam_content=contains), [MSG_SCAM] if contains else []


def summarize_gambling(raw: Dict[str, Any]) -> Tuple[GamblingAnalysis, List[str]]:
    contains = _score(raw, "prob") > LIKELY_THRESHOLD
    return GamblingAnalysis(raw=raw, contains_gambling_content=contains), [MSG_GAMBLING] if contains else []


def summarize_tobacco(raw: Dict[str, Any]) -> Tuple[TobaccoAnalysis, List[str]]:
    contains = _prob_or_classes(raw, ("regular_tobacco", "ambiguous_tobacco"))
    return TobaccoAnalysis(raw=raw, contains_tobacco_content=contains), [MSG_TOBACCO] if contains else []


def summarize_ai_generated(raw: Dict[str, Any]) -> Tuple[AIGeneratedAnalysis, List[str]]:
    generated = _score(raw, "ai_generated") >= CERTAIN_THRESHOLD
    return AIGeneratedAnalysis(raw=raw, is_ai_generated=generated), [MSG_AI_GENERATED] if generated else []


def summarize_illustration(raw: Dict[str, Any]) -> Tuple[IllustrationAnalysis, List[str]]:
    illustration = _score(raw, "illustration") > LIKELY_THRESHOLD
    return IllustrationAnalysis(raw=raw, is_illustration=illustration), [MSG_ILLUSTRATION] if illustration else []


def summarize_qr_content(raw: Dict[str, Any]) -> Tuple[QRContentAnalysis, List[str]]:
    analysis = QRContentAnalysis(
        raw=raw,
        has_links=_non_empty_list(raw, "link"),
        has_social_links=_non_empty_list(raw, "social"),
        has_spam_content=_non_empty_list(raw, "spam"),
        has_profanity=_non_empty_list(raw, "profanity"),
        is_blacklisted=_non_empty_list(raw, "blacklist"),
        has_personal_info=_non_empty_list(raw, "personal"),
    )
    return analysis, [MSG_BLACKLISTED_QR] if analysis.is_blacklisted else []


def summarize_text(raw: Dict[str, Any]) -> Tuple[TextAnalysis, List[str]]:
    analysis = TextAnalysis(
        raw=raw,
        has_profanity=_non_empty_list(raw, "profanity"),
        has_personal_info=_non_empty_list(raw, "personal"),
        has_links=_non_empty_list(raw, "link"),
        has_social_links=_non_empty_list(raw, "social"),
        has_extremism=_non_empty_list(raw, "extremism"),
        has_medical_content=_non_empty_list(raw, "medical"),
        has_drug_references=_non_empty_list(raw, "drug"),
        has_weapon_references=_non_empty_list(raw, "weapon"),
        has_content_trade=_non_empty_list(raw, "content-trade"),
        has_money_transactions=_non_empty_list(raw, "money-transaction"),
        has_spam=_non_empty_list(raw, "spam"),
        has_violence=_non_empty_list(raw, "violence"),
        has_self_harm=_non_empty_list(raw, "self-harm"),
        has_artificial_text=_score(raw, "has_artificial") > LIKELY_THRESHOLD,
        has_natural_text=_score(raw, "has_natural") > LIKELY_THRESHOLD,
    )
    return analysis, [MSG_INAPPROPRIATE_TEXT] if analysis.has_profanity else []


def summarize_faces(raw: Any) -> Tuple[FacesAnalysis, List[str]]:
    faces = [face for face in raw if isinstance(face, dict)] if isinstance(raw, list) else []
    attributes = [face.get("attributes") or {} for face in faces]
    analysis = FacesAnalysis(
        raw=faces,
        count=len(faces),
        has_faces=len(faces) > 0,
        has_minors=any(_score(attr, "minor") >= CERTAIN_THRESHOLD for attr in attributes),
        has_sunglasses=any(_score(attr, "sunglasses") > LIKELY_THRESHOLD for attr in attributes),
    )
    messages: List[str] = []
    if analysis.has_minors:
        messages.append(MSG_MINORS)
    if not analysis.has_faces:
        messages.append(MSG_NO_FACE)
    return analysis, messages


# (report field, vendor key, mapper) in message order
CATEGORY_MAPPERS: Tuple[Tuple[str, str, Callable[[Any], Mapped]], ...] = (
    ("nudity", "nudity", summarize_nudity),
    ("weapon", "weapon", summarize_weapon),
    ("recreational_drug", "recreational_drug", summarize_recreational_drug),
    ("medical", "medical", summarize_medical),
    ("offensive", "offensive", summarize_offensive),
    ("gore", "gore", summarize_gore),
    ("violence", "violence", summarize_violence),
    ("self_harm", "self-harm", summarize_self_harm),
    ("scam", "scam", summarize_scam),
    ("gambling", "gambling", summarize_gambling),
    ("tobacco", "tobacco", summarize_tobacco),
    ("ai_generated", "type", summarize_ai_generated),
    ("is_illustration", "type", summarize_illustration),
    ("qr_content", "qr", summarize_qr_content),
    ("text", "text", summarize_text),
    ("faces", "faces", summarize_faces),
)


def _present(data: Dict[str, Any], key: str) -> Optional[Any]:
    value = data.get(key)
    # faces is meaningful even when the vendor returns an empty list
    if key == "faces":
        return value if isinstance(value, list) else None
    return value if isinstance(value, dict) and value else None


def summarize_image_analysis(data: Dict[str, Any]) -> AnalysisReport:
    """
    Build an `AnalysisReport` from a raw vendor response.

    Args:
        data: Decoded JSON answer of the image moderation endpoint.

    Returns:
        AnalysisReport: One record per category the vendor returned, and the
            aggregated messages (empty when the photo passes).

    Raises:
        AnalysisSummaryError: If the response does not report success.
    """
    if not isinstance(data, dict) or data.get("status") != "success":
        error = data.get("error") if isinstance(data, dict) else None
        raise AnalysisSummaryError("Image analysis failed", details={"error": error})

    report = AnalysisReport()
    for field_name, vendor_key, mapper in CATEGORY_MAPPERS:
        raw = _present(data, vendor_key)
        if raw is None:
            continue
        analysis, messages = mapper(raw)
        setattr(report, field_name, analysis)
        report.messages.extend(messages)

    if report.messages:
        logger.debug("[SUMMARIZER] Report messages: %s", report.messages)
    return report
