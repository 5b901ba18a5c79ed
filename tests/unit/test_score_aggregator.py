"""
Unit tests for the score aggregator.

Covers weighting, the 0-100 score, recommendation tiers, MUST-HAVE
disqualification overrides, name casing and the experience-justification
rewrite.
"""

import pytest

from cv_assessment.common.types import (
    AlignmentDetail,
    AlignmentResult,
    AlignmentStatus,
    AnalyzedJD,
    Priority,
    Recommendation,
    Requirement,
    RequirementGroup,
)
from cv_assessment.scoring.aggregator import (
    CORE_DISQUALIFICATION_WEAKNESS,
    CRITICAL_MISS_WEAKNESS,
    aggregate,
    alignment_score,
    recommendation_for_score,
    rewrite_experience_justification,
    title_case,
)


# ===== HELPERS =====

def detail(category: str, requirement: str, status: AlignmentStatus, justification: str = "") -> AlignmentDetail:
    return AlignmentDetail(
        category=category,
        requirement=requirement,
        status=status,
        justification=justification,
    )


def alignment(*details: AlignmentDetail, weaknesses=None) -> AlignmentResult:
    return AlignmentResult(
        candidate_name="jane doe",
        email="jane@example.com",
        alignment_summary="Solid match",
        alignment_details=list(details),
        strengths=["Python"],
        weaknesses=list(weaknesses or []),
        interview_probes=["Ask about scaling"],
    )


# ===== WEIGHTING =====

class TestWeighting:
    """Tests for candidate/max point totals."""

    def test_partially_aligned_gets_half_weight(self):
        """A partially aligned 10-point requirement awards 5 and adds 10 to the max."""
        jd = AnalyzedJD(experience=[Requirement(description="5 years experience", score=10)])
        result = aggregate(
            jd,
            alignment(detail("Experience", "5 years experience", AlignmentStatus.PARTIALLY_ALIGNED)),
            "Jane Doe",
        )

        assert result.candidate_score == 5
        assert result.max_score == 10
        assert result.alignment_details[0].score == 5
        assert result.alignment_details[0].max_score == 10
        assert result.alignment_score == 50

    def test_unmatched_requirement_counts_towards_max_only(self):
        jd = AnalyzedJD(
            technical_skills=[
                Requirement(description="Python", score=15),
                Requirement(description="Terraform", score=15),
            ]
        )
        result = aggregate(jd, alignment(detail("Technical Skill", "Python", AlignmentStatus.ALIGNED)), "x")

        assert result.candidate_score == 15
        assert result.max_score == 30
        assert result.alignment_score == 50

    def test_unmatched_detail_is_kept_with_zero_points(self):
        jd = AnalyzedJD(technical_skills=[Requirement(description="Python", score=15)])
        result = aggregate(
            jd,
            alignment(
                detail("Technical Skill", "Python", AlignmentStatus.ALIGNED),
                detail("Technical Skill", "Cobol", AlignmentStatus.ALIGNED),
            ),
            "x",
        )

        cobol = result.alignment_details[1]
        assert cobol.requirement == "Cobol"
        assert cobol.score == 0
        assert cobol.max_score == 0

    def test_group_uses_max_member_weight_and_member_match(self):
        """A group is worth its heaviest member and matches via any member's text."""
        jd = AnalyzedJD(
            technical_skills=[
                RequirementGroup(requirements=[
                    Requirement(description="Django", priority=Priority.NICE_TO_HAVE, score=8),
                    Requirement(description="Flask", score=15),
                ])
            ]
        )
        result = aggregate(jd, alignment(detail("Technical Skill", "Flask", AlignmentStatus.ALIGNED)), "x")

        assert result.max_score == 15
        assert result.candidate_score == 15
        assert result.alignment_details[0].priority == Priority.MUST_HAVE

    def test_detail_priority_follows_requirement(self):
        jd = AnalyzedJD(
            technical_skills=[
                Requirement(description="Go", priority=Priority.NICE_TO_HAVE, score=8),
            ]
        )
        judged = AlignmentDetail(
            category="Technical Skill",
            requirement="Go",
            priority=Priority.MUST_HAVE,
            status=AlignmentStatus.NOT_ALIGNED,
        )
        result = aggregate(jd, alignment(judged), "x")

        assert result.alignment_details[0].priority == Priority.NICE_TO_HAVE
        assert CRITICAL_MISS_WEAKNESS not in result.weaknesses

    def test_exact_text_wins_over_containment(self):
        """A short requirement cannot take the judgment of a longer one echoed verbatim."""
        jd = AnalyzedJD(
            technical_skills=[
                Requirement(description="Python", score=15),
                Requirement(description="Python programming with Django", score=15),
            ]
        )
        details = [
            detail("Technical Skill", "Python", AlignmentStatus.ALIGNED),
            detail("Technical Skill", "Python programming with Django", AlignmentStatus.NOT_ALIGNED),
        ]
        result = aggregate(jd, alignment(*details), "x")

        assert result.candidate_score == 15
        assert result.max_score == 30
        assert result.alignment_score == 50
        assert result.recommendation == Recommendation.RECOMMENDED_WITH_RESERVATIONS
        assert [d.max_score for d in result.alignment_details] == [15, 15]

    def test_one_judgment_scores_one_requirement(self):
        jd = AnalyzedJD(
            technical_skills=[
                Requirement(description="Python", score=15),
                Requirement(description="Python 3", priority=Priority.NICE_TO_HAVE, score=8),
            ]
        )
        result = aggregate(jd, alignment(detail("Technical Skill", "Python 3", AlignmentStatus.ALIGNED)), "x")

        # "Python 3" is claimed by its exact requirement; "Python" stays unmatched
        assert result.candidate_score == 8
        assert result.max_score == 23
        assert result.alignment_details[0].max_score == 8

    def test_not_mentioned_awards_nothing(self):
        jd = AnalyzedJD(technical_skills=[Requirement(description="Rust", priority=Priority.NICE_TO_HAVE, score=8)])
        result = aggregate(jd, alignment(detail("Technical Skill", "Rust", AlignmentStatus.NOT_MENTIONED)), "x")

        assert result.candidate_score == 0
        assert result.max_score == 8


# ===== SCORE AND TIERS =====

class TestScoreAndTiers:
    """Tests for the percentage score and recommendation tiers."""

    @pytest.mark.parametrize(
        "candidate,maximum,expected",
        [
            (0, 0, 0),
            (1, 8, 13),      # 12.5 rounds half up
            (10, 10, 100),
            (2, 3, 67),
            (1, 3, 33),
        ],
    )
    def test_alignment_score(self, candidate, maximum, expected):
        assert alignment_score(candidate, maximum) == expected

    @pytest.mark.parametrize(
        "score,expected",
        [
            (100, Recommendation.STRONGLY_RECOMMENDED),
            (75, Recommendation.STRONGLY_RECOMMENDED),
            (74, Recommendation.RECOMMENDED_WITH_RESERVATIONS),
            (50, Recommendation.RECOMMENDED_WITH_RESERVATIONS),
            (49, Recommendation.NOT_RECOMMENDED),
            (0, Recommendation.NOT_RECOMMENDED),
        ],
    )
    def test_recommendation_thresholds(self, score, expected):
        assert recommendation_for_score(score) == expected

    def test_empty_requirement_set_scores_zero(self):
        result = aggregate(AnalyzedJD(), alignment(), "x")

        assert result.alignment_score == 0
        assert result.recommendation == Recommendation.NOT_RECOMMENDED

    def test_all_aligned_scores_hundred(self, sample_jd):
        details = [
            detail("Education", "Bachelor's degree in Computer Science", AlignmentStatus.ALIGNED),
            detail("Experience", "5 years experience in Python development", AlignmentStatus.ALIGNED),
            detail("Technical Skill", "Django OR Flask", AlignmentStatus.ALIGNED),
            detail("Technical Skill", "Kubernetes knowledge is a plus", AlignmentStatus.ALIGNED),
            detail("Responsibility", "Lead code reviews", AlignmentStatus.ALIGNED),
        ]
        result = aggregate(sample_jd, alignment(*details), "x")

        assert result.candidate_score == result.max_score == 73
        assert result.alignment_score == 100
        assert result.recommendation == Recommendation.STRONGLY_RECOMMENDED

    def test_score_is_within_bounds(self, sample_jd):
        details = [
            detail("Education", "Bachelor's degree in Computer Science", AlignmentStatus.PARTIALLY_ALIGNED),
            detail("Responsibility", "Lead code reviews", AlignmentStatus.ALIGNED),
        ]
        result = aggregate(sample_jd, alignment(*details), "x")

        assert 0 <= result.candidate_score <= result.max_score
        assert 0 <= result.alignment_score <= 100


# ===== DISQUALIFICATION =====

class TestDisqualification:
    """Tests for MUST-HAVE overrides applied after tiering."""

    @pytest.fixture
    def strong_jd(self):
        return AnalyzedJD(
            education=[Requirement(description="Bachelor degree", score=20)],
            experience=[Requirement(description="Team leadership", score=20)],
            technical_skills=[
                Requirement(description="Python", score=15),
                Requirement(description="SQL", score=15),
                Requirement(description="Docker", score=15),
            ],
            responsibilities=[Requirement(description="Mentoring", score=10)],
        )

    def test_core_miss_is_not_recommended_despite_high_score(self, strong_jd):
        details = [
            detail("Education", "Bachelor degree", AlignmentStatus.NOT_ALIGNED),
            detail("Experience", "Team leadership", AlignmentStatus.ALIGNED),
            detail("Technical Skill", "Python", AlignmentStatus.ALIGNED),
            detail("Technical Skill", "SQL", AlignmentStatus.ALIGNED),
            detail("Technical Skill", "Docker", AlignmentStatus.ALIGNED),
            detail("Responsibility", "Mentoring", AlignmentStatus.ALIGNED),
        ]
        result = aggregate(strong_jd, alignment(*details), "x")

        assert result.alignment_score == 79
        assert result.recommendation == Recommendation.NOT_RECOMMENDED
        assert CORE_DISQUALIFICATION_WEAKNESS in result.weaknesses
        assert CRITICAL_MISS_WEAKNESS not in result.weaknesses

    def test_other_must_have_miss_caps_at_reservations(self, strong_jd):
        details = [
            detail("Education", "Bachelor degree", AlignmentStatus.ALIGNED),
            detail("Experience", "Team leadership", AlignmentStatus.ALIGNED),
            detail("Technical Skill", "Python", AlignmentStatus.NOT_ALIGNED),
            detail("Technical Skill", "SQL", AlignmentStatus.ALIGNED),
            detail("Technical Skill", "Docker", AlignmentStatus.ALIGNED),
            detail("Responsibility", "Mentoring", AlignmentStatus.ALIGNED),
        ]
        result = aggregate(strong_jd, alignment(*details), "x")

        assert result.alignment_score == 84
        assert result.recommendation == Recommendation.RECOMMENDED_WITH_RESERVATIONS
        assert CRITICAL_MISS_WEAKNESS in result.weaknesses

    def test_other_must_have_miss_never_upgrades(self):
        jd = AnalyzedJD(
            technical_skills=[
                Requirement(description="Python", score=15),
                Requirement(description="SQL", score=15),
            ]
        )
        details = [
            detail("Technical Skill", "Python", AlignmentStatus.NOT_ALIGNED),
            detail("Technical Skill", "SQL", AlignmentStatus.PARTIALLY_ALIGNED),
        ]
        result = aggregate(jd, alignment(*details), "x")

        assert result.alignment_score == 25
        assert result.recommendation == Recommendation.NOT_RECOMMENDED
        assert CRITICAL_MISS_WEAKNESS in result.weaknesses

    def test_weakness_note_is_not_duplicated(self, strong_jd):
        details = [detail("Education", "Bachelor degree", AlignmentStatus.NOT_ALIGNED)]
        result = aggregate(
            strong_jd,
            alignment(*details, weaknesses=[CORE_DISQUALIFICATION_WEAKNESS]),
            "x",
        )

        assert result.weaknesses.count(CORE_DISQUALIFICATION_WEAKNESS) == 1

    def test_nice_to_have_miss_has_no_effect(self):
        jd = AnalyzedJD(
            education=[Requirement(description="Master degree", priority=Priority.NICE_TO_HAVE, score=10)],
            technical_skills=[Requirement(description="Python", score=15)],
        )
        details = [
            detail("Education", "Master degree", AlignmentStatus.NOT_ALIGNED),
            detail("Technical Skill", "Python", AlignmentStatus.ALIGNED),
        ]
        result = aggregate(jd, alignment(*details), "x")

        assert result.alignment_score == 60
        assert result.recommendation == Recommendation.RECOMMENDED_WITH_RESERVATIONS
        assert result.weaknesses == []


# ===== NAME AND JUSTIFICATION =====

class TestPresentation:
    """Tests for name casing and experience rewrites."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("JOHN SMITH", "John Smith"),
            ("mary-jane watson", "Mary Jane Watson"),
            ("  ana   maria  ", "Ana Maria"),
        ],
    )
    def test_title_case(self, raw, expected):
        assert title_case(raw) == expected

    def test_rewrite_years_phrase(self):
        assert rewrite_experience_justification(
            "candidate has 4 years of relevant experience", "4.3 years"
        ) == "candidate has a calculated total of 4.3 years of relevant experience"

    def test_rewrite_applies_to_experience_details_only(self):
        jd = AnalyzedJD(
            experience=[Requirement(description="Backend development", score=20)],
            technical_skills=[Requirement(description="Python", score=15)],
        )
        details = [
            detail("Experience", "Backend development", AlignmentStatus.ALIGNED,
                   "candidate has 4 years of relevant experience"),
            detail("Technical Skill", "Python", AlignmentStatus.ALIGNED, "used Python for 2 years"),
        ]
        result = aggregate(jd, alignment(*details), "x", total_experience="4.3 years")

        assert result.alignment_details[0].justification == (
            "candidate has a calculated total of 4.3 years of relevant experience"
        )
        assert result.alignment_details[1].justification == "used Python for 2 years"
        assert result.total_experience == "4.3 years"

    def test_no_rewrite_without_total(self):
        jd = AnalyzedJD(experience=[Requirement(description="Backend development", score=20)])
        text = "candidate has 4 years of relevant experience"
        result = aggregate(jd, alignment(detail("Experience", "Backend development", AlignmentStatus.ALIGNED, text)), "x")

        assert result.alignment_details[0].justification == text

    def test_name_and_passthrough_fields(self):
        jd = AnalyzedJD(technical_skills=[Requirement(description="Python", score=15)])
        result = aggregate(
            jd,
            alignment(detail("Technical Skill", "Python", AlignmentStatus.ALIGNED)),
            "jane o'neil-smith",
            processing_time=1.23,
        )

        assert result.candidate_name == "Jane O'neil Smith"
        assert result.email == "jane@example.com"
        assert result.interview_probes == ["Ask about scaling"]
        assert result.processing_time == 1.23


# ===== DETERMINISM =====

class TestDeterminism:
    """aggregate() is pure."""

    def test_same_inputs_same_output(self, sample_jd):
        result_alignment = alignment(
            detail("Education", "Bachelor's degree in Computer Science", AlignmentStatus.NOT_ALIGNED),
            detail("Technical Skill", "Django", AlignmentStatus.PARTIALLY_ALIGNED),
        )
        first = aggregate(sample_jd, result_alignment, "Jane Doe", total_experience="3 years")
        second = aggregate(sample_jd, result_alignment, "Jane Doe", total_experience="3 years")

        assert first.model_dump() == second.model_dump()

    def test_input_alignment_is_not_mutated(self):
        jd = AnalyzedJD(education=[Requirement(description="Bachelor degree", score=20)])
        judged = detail("Education", "Bachelor degree", AlignmentStatus.NOT_ALIGNED)
        source = alignment(judged)

        aggregate(jd, source, "x")

        assert source.alignment_details[0].score == 0
        assert source.alignment_details[0].max_score == 0
        assert source.weaknesses == []
