"""
Local (per-user) persistence

Keeps premium edits, local benefits edits, manual plans, custom providers and
report history on this machine, one JSON file per storage key.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class LocalStore:
    """JSON files under a directory, keyed like browser local storage."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory).expanduser()
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """
        Read a stored value.

        A file that does not parse is removed and the default returned.
        """
        path = self._path(key)
        if not path.exists():
            return copy.deepcopy(default)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Corrupted local data for '{key}', clearing it: {e}")
            self.remove(key)
            return copy.deepcopy(default)

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix('.json.tmp')
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(value, f, indent=2)
        tmp_path.replace(path)

    def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
