"""
Requirement-to-judgment matching.

The alignment call does not always echo requirement text verbatim. A
judgment whose trimmed text equals the requirement wins; otherwise judgments
are joined by bidirectional substring containment on the first 50 characters
of each side. A judgment is joined to at most one requirement. This module is
the only place that knows the join rule.
"""

from typing import Iterable, List, Optional, Sequence, Set, Union

from cv_assessment.common.types import AlignmentDetail, Requirement, RequirementGroup

MATCH_PREFIX_LENGTH = 50


def requirement_matches(requirement_text: str, detail_text: str) -> bool:
    """
    True when either text's first 50 characters occur inside the other.

    Comparison is case-sensitive on whitespace-trimmed text; an empty side
    never matches.

    Examples:
        >>> requirement_matches("5 years experience", "5 years experience in Python")
        True
        >>> requirement_matches("Python", "")
        False
    """
    req = (requirement_text or "").strip()
    detail = (detail_text or "").strip()
    if not req or not detail:
        return False
    return req[:MATCH_PREFIX_LENGTH] in detail or detail[:MATCH_PREFIX_LENGTH] in req


def item_matches(item: Union[Requirement, RequirementGroup], detail: AlignmentDetail) -> bool:
    """Match a requirement or a group (joined text or any member) to one detail."""
    match item:
        case Requirement():
            return requirement_matches(item.description, detail.requirement)
        case RequirementGroup():
            if requirement_matches(item.description, detail.requirement):
                return True
            return any(requirement_matches(r.description, detail.requirement) for r in item.requirements)
        case _:
            raise TypeError(f"Unsupported requirement item: {type(item).__name__}")


def item_equals(item: Union[Requirement, RequirementGroup], detail: AlignmentDetail) -> bool:
    """Exact (trimmed) text match for a requirement, a group or any group member."""
    text = (detail.requirement or "").strip()
    if not text:
        return False
    if item.description.strip() == text:
        return True
    if isinstance(item, RequirementGroup):
        return any(r.description.strip() == text for r in item.requirements)
    return False


def find_detail(
    item: Union[Requirement, RequirementGroup],
    details: Iterable[AlignmentDetail],
    claimed: Optional[Set[int]] = None,
) -> Optional[AlignmentDetail]:
    """
    Return the detail judged against this requirement, or None.

    An exact text match is preferred over containment; among equals the
    first one wins. Details whose id() is in claimed are skipped.
    """
    claimed = claimed or set()
    available = [d for d in details if id(d) not in claimed]
    for detail in available:
        if item_equals(item, detail):
            return detail
    for detail in available:
        if item_matches(item, detail):
            return detail
    return None


def match_details(
    items: Sequence[Union[Requirement, RequirementGroup]],
    details: Sequence[AlignmentDetail],
) -> List[Optional[AlignmentDetail]]:
    """
    Join every requirement to at most one detail, in requirement order.

    Exact matches are settled for all requirements before containment is
    tried, so a short requirement cannot take the detail of a longer one
    that was echoed verbatim.
    """
    claimed: Set[int] = set()
    matched: List[Optional[AlignmentDetail]] = [None] * len(items)
    for index, item in enumerate(items):
        for detail in details:
            if id(detail) not in claimed and item_equals(item, detail):
                matched[index] = detail
                claimed.add(id(detail))
                break
    for index, item in enumerate(items):
        if matched[index] is None:
            detail = find_detail(item, details, claimed)
            if detail is not None:
                matched[index] = detail
                claimed.add(id(detail))
    return matched
