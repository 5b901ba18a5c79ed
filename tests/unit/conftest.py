"""
Global fixtures for all unit tests.

This conftest provides autouse fixtures that prevent real external service calls:
- MongoDB connection attempts (would hang on localhost:27017)
- Environment variable isolation (prevents credential leakage and auth leaking
  between API tests)

Plus builders for the domain objects most tests need: a small requirement
set, candidate analyses, sessions and a store backed by a temporary
directory.
"""

import os

import pytest
from unittest.mock import MagicMock, patch

# Set test environment BEFORE any imports so settings never see real values
os.environ["ENVIRONMENT"] = "development"
os.environ.pop("API_SECRET", None)

from cv_assessment.api.config import get_settings
from cv_assessment.common.repositories import JsonFileStateRepository, reset_state_repository
from cv_assessment.common.repositories.atlas_state_repository import AtlasStateRepository
from cv_assessment.common.retry import RetryPolicy
from cv_assessment.common.state_store import AppStateStore
from cv_assessment.common.types import (
    AlignmentDetail,
    AlignmentStatus,
    AnalyzedJD,
    AssessmentSession,
    CandidateAnalysis,
    CandidateRecord,
    Priority,
    Requirement,
    RequirementGroup,
)
from cv_assessment.scoring.aggregator import recommendation_for_score


@pytest.fixture(autouse=True)
def mock_mongodb():
    """
    Prevent MongoDB connection attempts in all unit tests.

    AtlasStateRepository imports MongoClient at module level, so the name is
    patched where it is used.
    """
    with patch("cv_assessment.common.repositories.atlas_state_repository.MongoClient") as mock_client:
        mock_instance = MagicMock()
        mock_db = MagicMock()
        mock_collection = MagicMock()

        # Setup chain: client["db"]["collection"]
        mock_instance.__getitem__ = MagicMock(return_value=mock_db)
        mock_db.__getitem__ = MagicMock(return_value=mock_collection)
        mock_collection.find_one = MagicMock(return_value=None)

        mock_client.return_value = mock_instance
        AtlasStateRepository._client = None
        yield mock_client
        AtlasStateRepository._client = None


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Isolate test environment from real credentials and configurations.

    Settings and the repository singleton are reset around every test.
    """
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-mock-key")
    monkeypatch.setenv("STATE_BACKEND", "json")
    monkeypatch.delenv("API_SECRET", raising=False)
    monkeypatch.delenv("CORS_ORIGINS", raising=False)
    get_settings.cache_clear()
    reset_state_repository()
    yield
    get_settings.cache_clear()
    reset_state_repository()


# ===== DOMAIN BUILDERS =====

@pytest.fixture
def sample_jd() -> AnalyzedJD:
    """Small requirement set covering single requirements, an OR-group and a nice-to-have."""
    return AnalyzedJD(
        job_title="Senior Python Developer",
        position_number="P-1001",
        code="OCN",
        grade="G7",
        department="Engineering",
        education=[
            Requirement(description="Bachelor's degree in Computer Science", score=20),
        ],
        experience=[
            Requirement(description="5 years experience in Python development", score=20),
        ],
        technical_skills=[
            RequirementGroup(requirements=[
                Requirement(description="Django", score=15),
                Requirement(description="Flask", score=15),
            ]),
            Requirement(
                description="Kubernetes knowledge is a plus",
                priority=Priority.NICE_TO_HAVE,
                score=8,
            ),
        ],
        responsibilities=[
            Requirement(description="Lead code reviews", score=10),
        ],
    )


@pytest.fixture
def make_analysis():
    """Factory for finalized analyses with a given score."""

    def _make(name: str, score: int, email: str = None) -> CandidateAnalysis:
        return CandidateAnalysis(
            candidate_name=name,
            email=email,
            alignment_score=score,
            recommendation=recommendation_for_score(score),
            alignment_summary=f"{name} summary",
            alignment_details=[
                AlignmentDetail(
                    category="Experience",
                    requirement="5 years experience in Python development",
                    priority=Priority.MUST_HAVE,
                    status=AlignmentStatus.ALIGNED,
                    score=20,
                    max_score=20,
                ),
            ],
            strengths=["Python"],
            candidate_score=score,
            max_score=100,
        )

    return _make


@pytest.fixture
def make_record(make_analysis):
    """Factory for candidate records; the CV text carries the email when given."""

    def _make(name: str, score: int, email: str = None, is_stale: bool = False) -> CandidateRecord:
        return CandidateRecord(
            cv_name=f"{name.lower().replace(' ', '_')}.pdf",
            cv_content=f"{name}\n{email or ''}\nPython developer",
            analysis=make_analysis(name, score, email),
            is_stale=is_stale,
        )

    return _make


@pytest.fixture
def make_session(sample_jd):
    """Factory for sessions whose snapshot equals the current requirement set."""

    def _make(session_id: str = "session-1", candidates=None, jd: AnalyzedJD = None) -> AssessmentSession:
        jd = jd or sample_jd
        return AssessmentSession(
            id=session_id,
            jd_name="senior_python_developer.docx",
            analyzed_jd=jd.model_copy(deep=True),
            original_analyzed_jd=jd.model_copy(deep=True),
            candidates=candidates or [],
        )

    return _make


# ===== PERSISTENCE =====

@pytest.fixture
def state_repo(tmp_path) -> JsonFileStateRepository:
    return JsonFileStateRepository(tmp_path / "state")


@pytest.fixture
def store(state_repo) -> AppStateStore:
    return AppStateStore(state_repo).load()


@pytest.fixture
def no_wait_policy() -> RetryPolicy:
    return RetryPolicy.no_wait(max_attempts=3)
