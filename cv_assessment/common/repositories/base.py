"""
State Repository Interface

Application state is persisted as independent JSON arrays, one per logical
key (assessment sessions, CV database, suitable-position notifications).
Implementations only move raw lists of dicts; schema validation happens in
the state store.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

# Logical state keys
ASSESSMENT_SESSIONS_KEY = "assessment_sessions"
CV_DATABASE_KEY = "cv_database"
SUITABLE_POSITIONS_KEY = "suitable_positions"

STATE_KEYS = (ASSESSMENT_SESSIONS_KEY, CV_DATABASE_KEY, SUITABLE_POSITIONS_KEY)


class StateRepositoryInterface(ABC):
    """Abstract interface for persisted application state."""

    @abstractmethod
    def load_items(self, key: str) -> List[Dict[str, Any]]:
        """
        Load the array stored under a logical key.

        Args:
            key: One of STATE_KEYS

        Returns:
            Stored items, or an empty list if nothing is stored.
            Non-list payloads are treated as empty.
        """
        pass

    @abstractmethod
    def save_items(self, key: str, items: List[Dict[str, Any]]) -> bool:
        """
        Replace the array stored under a logical key.

        Args:
            key: One of STATE_KEYS
            items: JSON-serializable dicts

        Returns:
            True if successful
        """
        pass

    @abstractmethod
    def delete_items(self, key: str) -> bool:
        """
        Remove everything stored under a logical key.

        Returns:
            True if deleted, False if nothing was stored
        """
        pass
