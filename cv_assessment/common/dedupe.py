"""
Candidate deduplication.

Single source of truth for deciding whether two analyses describe the same
candidate. Email wins when both sides have one; otherwise the candidate
names are compared case-insensitively.

Usage:
    from cv_assessment.common.dedupe import candidate_key, is_same_candidate

    candidate_key("Jane Doe", "Jane.Doe@Example.com")
    # Result: "jane.doe@example.com"
"""

from typing import Iterable, Optional

from cv_assessment.common.types import CandidateAnalysis


def normalize_email(email: Optional[str]) -> str:
    """
    Lowercase and trim an email address.

    Examples:
        >>> normalize_email("  A@X.com ")
        'a@x.com'
        >>> normalize_email(None)
        ''
    """
    if not email:
        return ""
    return email.strip().lower()


def candidate_key(name: str, email: Optional[str] = None) -> str:
    """Identity key for a candidate: normalized email when known, else lowercased name."""
    return normalize_email(email) or (name or "").strip().lower()


def is_same_candidate(a: CandidateAnalysis, b: CandidateAnalysis) -> bool:
    """
    Match by email when both sides have one, else by case-insensitive exact name.
    """
    email_a, email_b = normalize_email(a.email), normalize_email(b.email)
    if email_a and email_b:
        return email_a == email_b
    return a.candidate_name.strip().lower() == b.candidate_name.strip().lower()


def find_duplicate(
    analysis: CandidateAnalysis, existing: Iterable[CandidateAnalysis]
) -> Optional[CandidateAnalysis]:
    """Return the first existing analysis describing the same candidate, if any."""
    for other in existing:
        if is_same_candidate(analysis, other):
            return other
    return None
