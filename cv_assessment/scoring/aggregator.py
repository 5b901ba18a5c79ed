"""
Score Aggregator

Converts the alignment call's per-requirement judgments into a finalized
CandidateAnalysis:
- weighted candidate/max point totals
- 0-100 alignment score and recommendation tier
- MUST-HAVE disqualification overrides and their weakness notes
- Title Case candidate name
- experience justifications rewritten to the precomputed total

aggregate() is deterministic: identical inputs give identical output.
Errors are never caught here.
"""

import math
import re
from typing import List, Optional

from cv_assessment.common.types import (
    AlignmentDetail,
    AlignmentResult,
    AlignmentStatus,
    AnalyzedJD,
    CandidateAnalysis,
    Priority,
    Recommendation,
)
from cv_assessment.scoring.matching import match_details

STRONG_THRESHOLD = 75
RESERVATIONS_THRESHOLD = 50

CORE_DISQUALIFICATION_WEAKNESS = (
    "Does not meet a core MUST-HAVE requirement in Education or Experience."
)
CRITICAL_MISS_WEAKNESS = "Does not meet one or more critical MUST-HAVE requirements."

_CORE_CATEGORIES = ("education", "experience")
_YEARS_PATTERN = re.compile(r"\b\d+(?:\.\d+)?\+?\s*years?\b", re.IGNORECASE)
_NAME_SPLIT = re.compile(r"[\s-]+")


def title_case(name: str) -> str:
    """
    Title Case a person's name; hyphens become spaces.

    Examples:
        >>> title_case("JOHN smith-jones")
        'John Smith Jones'
    """
    tokens = [t for t in _NAME_SPLIT.split((name or "").strip().lower()) if t]
    return " ".join(t[0].upper() + t[1:] for t in tokens)


def award_for(status: AlignmentStatus, weight: float) -> float:
    """Points for one judged requirement."""
    if status == AlignmentStatus.ALIGNED:
        return weight
    if status == AlignmentStatus.PARTIALLY_ALIGNED:
        return weight / 2
    return 0


def alignment_score(candidate_score: float, max_score: float) -> int:
    """Round-half-up percentage clamped to [0, 100]; 0 when nothing is scorable."""
    if max_score <= 0:
        return 0
    percent = math.floor(100 * candidate_score / max_score + 0.5)
    return max(0, min(100, int(percent)))


def recommendation_for_score(score: int) -> Recommendation:
    if score >= STRONG_THRESHOLD:
        return Recommendation.STRONGLY_RECOMMENDED
    if score >= RESERVATIONS_THRESHOLD:
        return Recommendation.RECOMMENDED_WITH_RESERVATIONS
    return Recommendation.NOT_RECOMMENDED


def rewrite_experience_justification(justification: str, total_experience: str) -> str:
    """Replace "<n> year(s)" phrases with the precomputed experience total."""
    return _YEARS_PATTERN.sub(f"a calculated total of {total_experience}", justification)


def _is_core_category(category: str) -> bool:
    lowered = category.lower()
    return any(core in lowered for core in _CORE_CATEGORIES)


def _is_critical_miss(detail: AlignmentDetail) -> bool:
    return detail.priority == Priority.MUST_HAVE and detail.status == AlignmentStatus.NOT_ALIGNED


def apply_disqualification(
    recommendation: Recommendation,
    score: int,
    details: List[AlignmentDetail],
    weaknesses: List[str],
) -> Recommendation:
    """
    Apply MUST-HAVE overrides after tier assignment; weaknesses are appended in place.

    A core miss (Education/Experience) always yields Not Recommended. Any other
    MUST-HAVE miss caps a passing score at Recommended with Reservations and
    never upgrades.
    """
    misses = [d for d in details if _is_critical_miss(d)]
    if not misses:
        return recommendation

    if any(_is_core_category(d.category) for d in misses):
        if CORE_DISQUALIFICATION_WEAKNESS not in weaknesses:
            weaknesses.append(CORE_DISQUALIFICATION_WEAKNESS)
        return Recommendation.NOT_RECOMMENDED

    if CRITICAL_MISS_WEAKNESS not in weaknesses:
        weaknesses.append(CRITICAL_MISS_WEAKNESS)
    if score >= RESERVATIONS_THRESHOLD:
        return Recommendation.RECOMMENDED_WITH_RESERVATIONS
    return recommendation


def aggregate(
    jd: AnalyzedJD,
    alignment: AlignmentResult,
    candidate_name: str,
    total_experience: Optional[str] = None,
    processing_time: Optional[float] = None,
) -> CandidateAnalysis:
    """
    Finalize one candidate's analysis.

    Args:
        jd: Current requirement set
        alignment: Output of the alignment call
        candidate_name: Resolved candidate name (already non-empty)
        total_experience: Precomputed total experience, e.g. "4.3 years"
        processing_time: Seconds spent in the alignment call

    Returns:
        CandidateAnalysis with scores, tier and amended weaknesses
    """
    details = [
        d.model_copy(update={"score": 0, "max_score": 0})
        for d in alignment.alignment_details
    ]

    candidate_score: float = 0
    max_score: float = 0
    items = [item for _category, item in jd.iter_items()]
    for item, detail in zip(items, match_details(items, details)):
        weight = item.weight
        max_score += weight
        if detail is None:
            continue
        award = award_for(detail.status, weight)
        candidate_score += award
        detail.score = award
        detail.max_score = weight
        detail.priority = item.effective_priority

    if total_experience:
        for detail in details:
            if "experience" in detail.category.lower():
                detail.justification = rewrite_experience_justification(
                    detail.justification, total_experience
                )

    score = alignment_score(candidate_score, max_score)
    weaknesses = list(alignment.weaknesses)
    recommendation = apply_disqualification(
        recommendation_for_score(score), score, details, weaknesses
    )

    return CandidateAnalysis(
        candidate_name=title_case(candidate_name),
        email=(alignment.email or "").strip() or None,
        alignment_score=score,
        recommendation=recommendation,
        alignment_summary=alignment.alignment_summary,
        alignment_details=details,
        strengths=list(alignment.strengths),
        weaknesses=weaknesses,
        interview_probes=list(alignment.interview_probes),
        candidate_score=candidate_score,
        max_score=max_score,
        total_experience=total_experience,
        processing_time=processing_time,
    )
