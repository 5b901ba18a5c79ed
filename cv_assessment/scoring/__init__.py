"""
Score aggregation.

Turns per-requirement alignment judgments into a weighted 0-100 score and a
recommendation tier. Everything in this package is pure and synchronous.
"""

from cv_assessment.scoring.aggregator import aggregate, recommendation_for_score, title_case
from cv_assessment.scoring.matching import find_detail, match_details, requirement_matches

__all__ = [
    "aggregate",
    "recommendation_for_score",
    "title_case",
    "find_detail",
    "match_details",
    "requirement_matches",
]
