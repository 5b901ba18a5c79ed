"""
Tests for the HTTP API.

Services are real but their LLM collaborators are replaced with mocks;
get_services is overridden so no state is read from disk outside tmp_path.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from cv_assessment.api.app import app
from cv_assessment.api.config import get_settings
from cv_assessment.api.dependencies import build_services, get_services
from cv_assessment.common.error_handling import ExtractionError
from cv_assessment.common.types import CandidateSummary, CvDatabaseRecord


class FakeAnalyzer:
    def __init__(self, outcomes: dict):
        self.outcomes = outcomes

    async def analyze(self, jd, cv_text, parsed_cv=None, session_id=None):
        return self.outcomes[cv_text]


# ===== FIXTURES =====

@pytest.fixture
def services(store, make_session, make_analysis, sample_jd):
    store.sessions.append(make_session("session-1"))
    container = build_services(store)

    container.sessions.extractor = MagicMock()
    container.sessions.extractor.extract = AsyncMock(
        return_value=sample_jd.model_copy(update={"position_number": "P-2002"}, deep=True)
    )
    container.sessions.batch_service.analyzer = FakeAnalyzer({
        "alice cv": make_analysis("Alice Adams", 80, "alice@example.com"),
    })
    container.sessions.summary_generator = MagicMock()
    container.sessions.summary_generator.generate = AsyncMock(
        return_value=CandidateSummary(top_tier=["Alice Adams"])
    )
    container.sessions.query_answerer = MagicMock()
    container.sessions.query_answerer.answer = AsyncMock(return_value="Alice knows Django well.")
    container.knowledge_base.answerer = MagicMock()
    container.knowledge_base.answerer.answer = AsyncMock(return_value="One session is open.")
    # The session has job code OCN; no CV database upsert while adding candidates
    container.sessions.cv_database = None
    return container


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


# ===== HEALTH =====

class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["sessions"] == 1


# ===== SESSIONS =====

class TestSessionRoutes:
    """Tests for /sessions."""

    def test_list_sessions(self, client):
        response = client.get("/sessions")

        assert response.status_code == 200
        item = response.json()[0]
        assert item["id"] == "session-1"
        assert item["position_number"] == "P-1001"
        assert item["is_dirty"] is False

    def test_search_sessions(self, client):
        assert client.get("/sessions", params={"q": "nothing-like-this"}).json() == []

    def test_unknown_session_is_404(self, client):
        response = client.get("/sessions/missing")

        assert response.status_code == 404
        assert response.json()["error_type"] == "SessionNotFoundError"

    def test_create_session(self, client):
        response = client.post("/sessions", json={"jd_name": "backend.docx", "jd_text": "JD text"})

        assert response.status_code == 201
        assert response.json()["analyzed_jd"]["position_number"] == "P-2002"

    def test_create_conflict_is_409(self, client, services, sample_jd):
        services.sessions.extractor.extract = AsyncMock(return_value=sample_jd.model_copy(deep=True))

        response = client.post("/sessions", json={"jd_name": "again.docx", "jd_text": "JD text"})

        assert response.status_code == 409
        assert response.json()["error_type"] == "ConflictError"

    def test_extraction_failure_is_502(self, client, services):
        services.sessions.extractor.extract = AsyncMock(side_effect=ExtractionError("JD analysis found no requirements"))

        response = client.post("/sessions", json={"jd_name": "x.docx", "jd_text": "JD text"})

        assert response.status_code == 502

    def test_create_rejects_empty_text(self, client):
        response = client.post("/sessions", json={"jd_name": "x.docx", "jd_text": ""})

        assert response.status_code == 422

    def test_criteria(self, client):
        response = client.get("/sessions/session-1/criteria")

        assert response.json()["formatted_criteria"].startswith("- Education (MUST HAVE)")

    def test_priority_edit(self, client):
        response = client.patch(
            "/sessions/session-1/requirements/priority",
            json={"category": "education", "index": 0, "priority": "NICE-TO-HAVE"},
        )

        assert response.status_code == 200
        assert response.json()["analyzed_jd"]["education"][0]["score"] == 10

    def test_priority_edit_bad_index_is_422(self, client):
        response = client.patch(
            "/sessions/session-1/requirements/priority",
            json={"category": "education", "index": 7, "priority": "MUST-HAVE"},
        )

        assert response.status_code == 422
        assert response.json()["error_type"] == "IndexError"

    def test_additional_requirement(self, client):
        response = client.post(
            "/sessions/session-1/requirements/additional",
            json={"description": "Fluent German"},
        )

        assert response.json()["analyzed_jd"]["additional_requirements"][0]["score"] == 5
        assert client.delete("/sessions/session-1/requirements/additional/0").status_code == 200

    def test_candidates_and_summary(self, client):
        response = client.post(
            "/sessions/session-1/candidates",
            json={"cvs": [{"file_name": "alice.pdf", "content": "alice cv"}]},
        )

        assert response.status_code == 200
        assert response.json()["results"][0]["candidate_name"] == "Alice Adams"

        summary = client.post("/sessions/session-1/summary").json()
        assert summary["stored"] is True
        assert summary["summary"]["top_tier"] == ["Alice Adams"]

        assert client.delete("/sessions/session-1/candidates/alice@example.com").status_code == 200
        assert client.get("/sessions/session-1").json()["summary"] is None

    def test_summary_without_candidates_is_502(self, client):
        response = client.post("/sessions/session-1/summary")

        assert response.status_code == 502
        assert response.json()["error_type"] == "SummaryError"

    def test_reassess_without_candidates_is_422(self, client):
        assert client.post("/sessions/session-1/reassess", json={}).status_code == 422

    def test_delete_session(self, client):
        assert client.delete("/sessions/session-1").json()["success"] is True
        assert client.get("/sessions/session-1").status_code == 404


# ===== CV DATABASE / SUITABLE POSITIONS =====

class TestCvDatabaseRoutes:
    def test_search_excludes_cv_text(self, client, store):
        store.cv_database.append(CvDatabaseRecord(
            name="Alice Adams", email="alice@example.com", job_code="OCN",
            cv_file_name="alice.pdf", cv_content="Alice CV",
        ))

        records = client.get("/cv-database", params={"job_code": "OCN"}).json()

        assert records[0]["email"] == "alice@example.com"
        assert "cv_content" not in records[0]
        assert client.get("/cv-database/alice@example.com").json()["cv_content"] == "Alice CV"

    def test_unknown_record_is_404(self, client):
        assert client.get("/cv-database/nobody@example.com").status_code == 404
        assert client.delete("/cv-database/nobody@example.com").status_code == 404

    def test_invalid_job_code_is_422(self, client):
        response = client.post(
            "/cv-database",
            json={"job_code": "XYZ", "cvs": [{"file_name": "a.pdf", "content": "text"}]},
        )

        assert response.status_code == 422

    def test_dismiss_unknown_is_404(self, client):
        response = client.post(
            "/suitable-positions/dismiss",
            json={"candidate_email": "alice@example.com", "session_id": "session-1"},
        )

        assert response.status_code == 404
        assert client.get("/suitable-positions").json() == []


# ===== QUESTIONS =====

class TestQuestionRoutes:
    def test_candidate_question(self, client):
        client.post(
            "/sessions/session-1/candidates",
            json={"cvs": [{"file_name": "alice.pdf", "content": "alice cv"}]},
        )

        response = client.post(
            "/sessions/session-1/candidates/alice@example.com/query",
            json={"question": "Does Alice know Django?"},
        )

        assert response.status_code == 200
        assert response.json()["answer"] == "Alice knows Django well."
        candidate = client.get("/sessions/session-1").json()["candidates"][0]
        assert [m["role"] for m in candidate["chat_history"]] == ["user", "assistant"]

    def test_candidate_question_unknown_candidate_is_404(self, client):
        response = client.post(
            "/sessions/session-1/candidates/nobody@example.com/query",
            json={"question": "Anything?"},
        )

        assert response.status_code == 404

    def test_knowledge_base_question(self, client):
        response = client.post("/knowledge-base/query", json={"question": "How many sessions are open?"})

        assert response.status_code == 200
        assert response.json()["answer"] == "One session is open."

    def test_blank_question_is_422(self, client):
        assert client.post("/knowledge-base/query", json={"question": ""}).status_code == 422
        assert client.post("/knowledge-base/query", json={"question": "   "}).status_code == 422


# ===== AUTH =====

class TestAuth:
    """Bearer auth is enforced once a secret is configured."""

    SECRET = "test-secret-for-unit-tests-9f3k"

    @pytest.fixture
    def secured(self, monkeypatch):
        monkeypatch.setenv("API_SECRET", self.SECRET)
        get_settings.cache_clear()

    def test_open_without_secret(self, client):
        assert client.get("/sessions").status_code == 200

    def test_missing_token_rejected(self, client, secured):
        assert client.get("/sessions").status_code == 401

    def test_wrong_token_rejected(self, client, secured):
        response = client.get("/sessions", headers={"Authorization": "Bearer wrong-token-value"})

        assert response.status_code == 401

    def test_valid_token_accepted(self, client, secured):
        response = client.get("/sessions", headers={"Authorization": f"Bearer {self.SECRET}"})

        assert response.status_code == 200

    def test_health_is_public(self, client, secured):
        assert client.get("/health").status_code == 200

    def test_production_without_secret_is_500(self, client, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")
        get_settings.cache_clear()

        assert client.get("/sessions").status_code == 500
