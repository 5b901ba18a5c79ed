"""
Repository Pattern for Persisted Application State

Public API:
- get_state_repository(): Factory returning the configured backend (singleton)
- reset_state_repository(): Drop the singleton (tests, config changes)
- StateRepositoryInterface: Abstract interface
- STATE_KEYS and the three logical key constants

Usage:
    from cv_assessment.common.repositories import get_state_repository, CV_DATABASE_KEY

    repo = get_state_repository()
    records = repo.load_items(CV_DATABASE_KEY)
"""

import logging
from typing import Optional

from cv_assessment.common.config import Config

from .base import (
    ASSESSMENT_SESSIONS_KEY,
    CV_DATABASE_KEY,
    STATE_KEYS,
    SUITABLE_POSITIONS_KEY,
    StateRepositoryInterface,
)
from .json_state_repository import JsonFileStateRepository

logger = logging.getLogger(__name__)

_state_repository_instance: Optional[StateRepositoryInterface] = None


def get_state_repository() -> StateRepositoryInterface:
    """
    Get the state repository instance (singleton).

    STATE_BACKEND=json (default) stores files under STATE_DIR;
    STATE_BACKEND=mongodb stores documents via MONGODB_URI.
    """
    global _state_repository_instance

    if _state_repository_instance is None:
        if Config.STATE_BACKEND == "mongodb":
            from .atlas_state_repository import AtlasStateRepository
            _state_repository_instance = AtlasStateRepository(
                mongodb_uri=Config.MONGODB_URI,
                database=Config.MONGO_DB_NAME,
            )
            logger.info("Initialized MongoDB state repository")
        else:
            _state_repository_instance = JsonFileStateRepository(Config.STATE_DIR)
            logger.info(f"Initialized JSON file state repository at {Config.STATE_DIR}")

    return _state_repository_instance


def reset_state_repository() -> None:
    """Reset the repository singleton."""
    global _state_repository_instance

    if _state_repository_instance is not None:
        from .atlas_state_repository import AtlasStateRepository
        if isinstance(_state_repository_instance, AtlasStateRepository):
            AtlasStateRepository.reset_connection()

    _state_repository_instance = None


__all__ = [
    "get_state_repository",
    "reset_state_repository",
    "StateRepositoryInterface",
    "JsonFileStateRepository",
    "ASSESSMENT_SESSIONS_KEY",
    "CV_DATABASE_KEY",
    "SUITABLE_POSITIONS_KEY",
    "STATE_KEYS",
]
