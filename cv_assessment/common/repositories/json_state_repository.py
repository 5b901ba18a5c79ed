"""
JSON File State Repository

Default backend: one <key>.json file per logical key under a state
directory. Writes go to a temporary file which then replaces the target,
so a crash never leaves a half-written array behind.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Union

from .base import StateRepositoryInterface

logger = logging.getLogger(__name__)


class JsonFileStateRepository(StateRepositoryInterface):
    """Local-filesystem implementation of StateRepositoryInterface."""

    def __init__(self, state_dir: Union[str, Path]):
        self._state_dir = Path(state_dir)

    def _path(self, key: str) -> Path:
        return self._state_dir / f"{key}.json"

    def load_items(self, key: str) -> List[Dict[str, Any]]:
        path = self._path(key)
        if not path.exists():
            return []
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read state file {path}: {e}")
            return []
        if not isinstance(payload, list):
            logger.warning(f"State file {path} does not hold a JSON array, ignoring it")
            return []
        return payload

    def save_items(self, key: str, items: List[Dict[str, Any]]) -> bool:
        path = self._path(key)
        tmp_name = None
        try:
            self._state_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._state_dir, prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(items, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
            return True
        except Exception as e:
            logger.error(f"Error saving state {key} to {path}: {e}")
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            return False

    def delete_items(self, key: str) -> bool:
        path = self._path(key)
        if not path.exists():
            return False
        try:
            path.unlink()
            return True
        except OSError as e:
            logger.error(f"Error deleting state {key}: {e}")
            return False
