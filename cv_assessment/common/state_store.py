"""
Application state store.

Holds the session list, the CV database and the suitable-position
notifications in memory for the lifetime of the process. State is loaded
once on start, validated entry by entry (invalid entries are dropped and
loading continues) and written back after every mutation. Concurrent
mutations are last-write-wins.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from cv_assessment.common.error_handling import StateValidationError
from cv_assessment.common.repositories import (
    ASSESSMENT_SESSIONS_KEY,
    CV_DATABASE_KEY,
    SUITABLE_POSITIONS_KEY,
    StateRepositoryInterface,
    get_state_repository,
)
from cv_assessment.common.types import AssessmentSession, CvDatabaseRecord, SuitablePosition

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _validate_entries(key: str, raw_items: List[Any], model: Type[M]) -> tuple:
    """Validate each raw entry; return (valid models, StateValidationErrors)."""
    valid: List[M] = []
    errors: List[StateValidationError] = []
    for index, raw in enumerate(raw_items):
        try:
            valid.append(model.model_validate(raw))
        except ValidationError as e:
            first = e.errors()[0] if e.errors() else {"loc": (), "msg": str(e)}
            loc = " -> ".join(str(x) for x in first["loc"])
            errors.append(StateValidationError(key, index, f"{loc}: {first['msg']}"))
    return valid, errors


class AppStateStore:
    """Explicit in-memory store mirrored to a StateRepositoryInterface."""

    def __init__(self, repository: Optional[StateRepositoryInterface] = None):
        self._repository = repository
        self.sessions: List[AssessmentSession] = []
        self.cv_database: List[CvDatabaseRecord] = []
        self.suitable_positions: List[SuitablePosition] = []
        self.load_errors: List[StateValidationError] = []
        self._loaded = False

    @property
    def repository(self) -> StateRepositoryInterface:
        if self._repository is None:
            self._repository = get_state_repository()
        return self._repository

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    # ===== LOAD =====

    def load(self) -> "AppStateStore":
        """Load all three keys, dropping entries that fail validation."""
        self.load_errors = []
        self.sessions = self._load_key(ASSESSMENT_SESSIONS_KEY, AssessmentSession)
        self.cv_database = self._load_key(CV_DATABASE_KEY, CvDatabaseRecord)
        self.suitable_positions = self._load_key(SUITABLE_POSITIONS_KEY, SuitablePosition)
        self._loaded = True
        logger.info(
            f"Loaded state: {len(self.sessions)} session(s), {len(self.cv_database)} CV record(s), "
            f"{len(self.suitable_positions)} suitable position(s); dropped {len(self.load_errors)} invalid"
        )
        return self

    def _load_key(self, key: str, model: Type[M]) -> List[M]:
        raw_items = self.repository.load_items(key)
        valid, errors = _validate_entries(key, raw_items, model)
        for error in errors:
            logger.warning(f"Dropping invalid persisted record {error}")
        self.load_errors.extend(errors)
        return valid

    # ===== SAVE =====

    def _save(self, key: str, models: List[BaseModel]) -> None:
        items: List[Dict[str, Any]] = [m.model_dump(mode="json") for m in models]
        if not self.repository.save_items(key, items):
            logger.error(f"Failed to persist state key {key}")

    def save_sessions(self) -> None:
        self._save(ASSESSMENT_SESSIONS_KEY, self.sessions)

    def save_cv_database(self) -> None:
        self._save(CV_DATABASE_KEY, self.cv_database)

    def save_suitable_positions(self) -> None:
        self._save(SUITABLE_POSITIONS_KEY, self.suitable_positions)

    def save_all(self) -> None:
        self.save_sessions()
        self.save_cv_database()
        self.save_suitable_positions()

    # ===== LOOKUPS =====

    def get_session(self, session_id: str) -> Optional[AssessmentSession]:
        for session in self.sessions:
            if session.id == session_id:
                return session
        return None

    def get_cv_record(self, email: str) -> Optional[CvDatabaseRecord]:
        key = (email or "").strip().lower()
        for record in self.cv_database:
            if record.key == key:
                return record
        return None
