"""
Atlas State Repository

MongoDB backend for persisted application state. Each logical key is one
document in the app_state collection: {_id: key, items: [...], updated_at}.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import MongoClient

from .base import StateRepositoryInterface

logger = logging.getLogger(__name__)


class AtlasStateRepository(StateRepositoryInterface):
    """
    Atlas MongoDB implementation of StateRepositoryInterface.
    """

    _client: Optional[MongoClient] = None

    def __init__(
        self,
        mongodb_uri: str,
        database: str = "cv_assessment",
        collection: str = "app_state",
    ):
        """
        Initialize the repository.

        Args:
            mongodb_uri: MongoDB connection string
            database: Database name
            collection: Collection name
        """
        if not mongodb_uri:
            raise ValueError("MongoDB URI is required")
        self._mongodb_uri = mongodb_uri
        self._database = database
        self._collection_name = collection

    def _get_client(self) -> MongoClient:
        """Get or create the MongoDB client (singleton)."""
        if AtlasStateRepository._client is None:
            AtlasStateRepository._client = MongoClient(self._mongodb_uri)
            logger.info("Created new MongoDB client for app_state repository")
        return AtlasStateRepository._client

    def _get_collection(self):
        client = self._get_client()
        return client[self._database][self._collection_name]

    @classmethod
    def reset_connection(cls) -> None:
        """Reset the MongoDB client connection."""
        if cls._client is not None:
            cls._client.close()
            cls._client = None
            logger.info("App state repository connection reset")

    def load_items(self, key: str) -> List[Dict[str, Any]]:
        doc = self._get_collection().find_one({"_id": key})
        if not doc:
            return []
        items = doc.get("items")
        if not isinstance(items, list):
            logger.warning(f"State document {key} has no items array, ignoring it")
            return []
        return items

    def save_items(self, key: str, items: List[Dict[str, Any]]) -> bool:
        try:
            result = self._get_collection().update_one(
                {"_id": key},
                {"$set": {"items": items, "updated_at": datetime.now(timezone.utc)}},
                upsert=True,
            )
            return result.modified_count > 0 or result.upserted_id is not None
        except Exception as e:
            logger.error(f"Error saving state {key}: {e}")
            return False

    def delete_items(self, key: str) -> bool:
        try:
            result = self._get_collection().delete_one({"_id": key})
            return result.deleted_count > 0
        except Exception as e:
            logger.error(f"Error deleting state {key}: {e}")
            return False
