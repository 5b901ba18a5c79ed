"""
Unit tests for the application state store and its repositories.
"""

import json
from unittest.mock import MagicMock

import pytest

from cv_assessment.common.config import Config
from cv_assessment.common.repositories import (
    ASSESSMENT_SESSIONS_KEY,
    CV_DATABASE_KEY,
    SUITABLE_POSITIONS_KEY,
    JsonFileStateRepository,
    get_state_repository,
    reset_state_repository,
)
from cv_assessment.common.repositories import json_state_repository
from cv_assessment.common.repositories.atlas_state_repository import AtlasStateRepository
from cv_assessment.common.state_store import AppStateStore
from cv_assessment.common.types import RequirementGroup, SuitablePosition


# ===== JSON FILE REPOSITORY =====

class TestJsonFileStateRepository:
    """Tests for the default file backend."""

    def test_missing_file_is_empty(self, state_repo):
        assert state_repo.load_items(CV_DATABASE_KEY) == []

    def test_save_and_load(self, state_repo, tmp_path):
        assert state_repo.save_items(CV_DATABASE_KEY, [{"email": "a@example.com"}]) is True

        assert state_repo.load_items(CV_DATABASE_KEY) == [{"email": "a@example.com"}]
        assert (tmp_path / "state" / "cv_database.json").exists()
        assert not list((tmp_path / "state").glob("*.tmp"))

    def test_corrupt_file_is_empty(self, state_repo, tmp_path):
        (tmp_path / "state").mkdir()
        (tmp_path / "state" / "cv_database.json").write_text("{not json", encoding="utf-8")

        assert state_repo.load_items(CV_DATABASE_KEY) == []

    def test_non_array_payload_is_empty(self, state_repo, tmp_path):
        (tmp_path / "state").mkdir()
        (tmp_path / "state" / "cv_database.json").write_text('{"email": "a@example.com"}', encoding="utf-8")

        assert state_repo.load_items(CV_DATABASE_KEY) == []

    def test_failed_write_leaves_no_temp_file(self, state_repo, tmp_path):
        state_repo.save_items(CV_DATABASE_KEY, [{"email": "a@example.com"}])

        assert state_repo.save_items(CV_DATABASE_KEY, [{"email": object()}]) is False

        assert not list((tmp_path / "state").glob("*.tmp"))
        assert state_repo.load_items(CV_DATABASE_KEY) == [{"email": "a@example.com"}]

    def test_failed_replace_leaves_no_temp_file(self, state_repo, tmp_path, monkeypatch):
        def fail_replace(src, dst):
            raise PermissionError("read-only")

        monkeypatch.setattr(json_state_repository.os, "replace", fail_replace)

        assert state_repo.save_items(CV_DATABASE_KEY, []) is False
        assert not list((tmp_path / "state").glob("*.tmp"))

    def test_delete(self, state_repo):
        state_repo.save_items(CV_DATABASE_KEY, [])

        assert state_repo.delete_items(CV_DATABASE_KEY) is True
        assert state_repo.delete_items(CV_DATABASE_KEY) is False


# ===== ATLAS REPOSITORY =====

class TestAtlasStateRepository:
    """Tests for the MongoDB backend against the mocked client."""

    def _collection(self, mock_mongodb):
        return mock_mongodb.return_value["cv_assessment"]["app_state"]

    def test_requires_uri(self):
        with pytest.raises(ValueError):
            AtlasStateRepository(mongodb_uri="")

    def test_load_items(self, mock_mongodb):
        collection = self._collection(mock_mongodb)
        collection.find_one.return_value = {"_id": CV_DATABASE_KEY, "items": [{"email": "a@example.com"}]}
        repo = AtlasStateRepository(mongodb_uri="mongodb://localhost:27017")

        assert repo.load_items(CV_DATABASE_KEY) == [{"email": "a@example.com"}]
        collection.find_one.assert_called_with({"_id": CV_DATABASE_KEY})

    def test_load_missing_or_malformed(self, mock_mongodb):
        collection = self._collection(mock_mongodb)
        repo = AtlasStateRepository(mongodb_uri="mongodb://localhost:27017")

        assert repo.load_items(CV_DATABASE_KEY) == []
        collection.find_one.return_value = {"_id": CV_DATABASE_KEY, "items": "oops"}
        assert repo.load_items(CV_DATABASE_KEY) == []

    def test_save_items_upserts(self, mock_mongodb):
        collection = self._collection(mock_mongodb)
        collection.update_one.return_value = MagicMock(modified_count=0, upserted_id=CV_DATABASE_KEY)
        repo = AtlasStateRepository(mongodb_uri="mongodb://localhost:27017")

        assert repo.save_items(CV_DATABASE_KEY, [{"email": "a@example.com"}]) is True

        query, update = collection.update_one.call_args[0]
        assert query == {"_id": CV_DATABASE_KEY}
        assert update["$set"]["items"] == [{"email": "a@example.com"}]
        assert collection.update_one.call_args[1]["upsert"] is True

    def test_save_failure_returns_false(self, mock_mongodb):
        self._collection(mock_mongodb).update_one.side_effect = RuntimeError("network down")
        repo = AtlasStateRepository(mongodb_uri="mongodb://localhost:27017")

        assert repo.save_items(CV_DATABASE_KEY, []) is False

    def test_client_is_shared(self, mock_mongodb):
        first = AtlasStateRepository(mongodb_uri="mongodb://localhost:27017")
        second = AtlasStateRepository(mongodb_uri="mongodb://localhost:27017")

        first.load_items(CV_DATABASE_KEY)
        second.load_items(CV_DATABASE_KEY)

        assert mock_mongodb.call_count == 1


# ===== FACTORY =====

class TestRepositoryFactory:
    def test_json_backend(self, monkeypatch):
        monkeypatch.setattr(Config, "STATE_BACKEND", "json")

        assert isinstance(get_state_repository(), JsonFileStateRepository)
        assert get_state_repository() is get_state_repository()

    def test_mongodb_backend(self, monkeypatch):
        monkeypatch.setattr(Config, "STATE_BACKEND", "mongodb")
        monkeypatch.setattr(Config, "MONGODB_URI", "mongodb://localhost:27017")
        reset_state_repository()

        assert isinstance(get_state_repository(), AtlasStateRepository)


# ===== STATE STORE =====

class TestAppStateStore:
    """Tests for load validation and write-through."""

    def test_round_trip(self, store, state_repo, make_session, make_record):
        store.sessions.append(make_session(candidates=[make_record("Alice Adams", 80, "alice@example.com")]))
        store.suitable_positions.append(
            SuitablePosition(candidate_email="bob@example.com", candidate_name="Bob Brown", session_id="session-1")
        )
        store.save_all()

        reloaded = AppStateStore(state_repo).load()

        session = reloaded.get_session("session-1")
        assert session.candidates[0].analysis.email == "alice@example.com"
        assert isinstance(session.analyzed_jd.technical_skills[0], RequirementGroup)
        assert session.analyzed_jd.same_requirements_as(store.sessions[0].analyzed_jd)
        assert reloaded.suitable_positions[0].candidate_email == "bob@example.com"
        assert reloaded.load_errors == []

    def test_persisted_json_is_snake_case(self, store, state_repo, tmp_path, make_session):
        store.sessions.append(make_session())
        store.save_sessions()

        raw = json.loads((tmp_path / "state" / "assessment_sessions.json").read_text(encoding="utf-8"))

        assert {"id", "jd_name", "analyzed_jd", "original_analyzed_jd", "candidates", "summary"} <= set(raw[0])
        assert raw[0]["analyzed_jd"]["technical_skills"][0]["group_type"] == "OR"

    def test_invalid_entries_are_dropped(self, state_repo, make_session):
        valid = make_session("good").model_dump(mode="json")
        state_repo.save_items(ASSESSMENT_SESSIONS_KEY, [valid, {"id": "bad"}, "not an object"])
        state_repo.save_items(
            SUITABLE_POSITIONS_KEY,
            [{"candidate_email": "a@example.com", "candidate_name": "A", "session_id": "good"}],
        )

        store = AppStateStore(state_repo).load()

        assert [s.id for s in store.sessions] == ["good"]
        assert len(store.suitable_positions) == 1
        assert [(e.key, e.index) for e in store.load_errors] == [
            (ASSESSMENT_SESSIONS_KEY, 1),
            (ASSESSMENT_SESSIONS_KEY, 2),
        ]

    def test_invalid_job_code_record_dropped(self, state_repo):
        state_repo.save_items(CV_DATABASE_KEY, [
            {"name": "A", "email": "a@example.com", "job_code": "XYZ", "cv_file_name": "a.pdf", "cv_content": "A"},
            {"name": "B", "email": "b@example.com", "job_code": "san", "cv_file_name": "b.pdf", "cv_content": "B"},
        ])

        store = AppStateStore(state_repo).load()

        assert [r.job_code for r in store.cv_database] == ["SAN"]
        assert store.load_errors[0].index == 0

    def test_lookups(self, store, make_session):
        store.sessions.append(make_session("abc"))

        assert store.get_session("abc").id == "abc"
        assert store.get_session("zzz") is None
        assert store.get_cv_record("") is None

    def test_defaults_to_configured_repository(self, monkeypatch):
        monkeypatch.setattr(Config, "STATE_BACKEND", "json")
        store = AppStateStore()

        assert isinstance(store.repository, JsonFileStateRepository)
        assert store.is_loaded is False
