"""Key-value persistence — the local state a session leaves behind.

JsonFileStore keeps every key in one JSON file; MemoryStore keeps them in
process. Callers go through safe_get()/safe_set(), which log and swallow
storage failures so a full disk or unreadable file never stops the viewer.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

LAST_DANCE_KEY = "ceilidh_last_dance_id"
CATALOG_CACHE_KEY = "ceilidh_catalog_cache"
WORKING_SETLISTS_KEY = "ceilidh_working_setlists"
ROLE_SET_KEY = "ceilidh_role_set"
SESSION_KEYS = (LAST_DANCE_KEY, WORKING_SETLISTS_KEY, ROLE_SET_KEY)

_STORAGE_ERRORS = (OSError, TypeError, ValueError)
_MISSING = object()


class MemoryStore:
    """In-process store."""

    def __init__(self, data: dict | None = None):
        self.data = dict(data or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        # Round-trip through JSON so stored values behave like the file store.
        self.data[key] = json.loads(json.dumps(value))

    def delete(self, key: str) -> None:
        self.data.pop(key, None)

    @classmethod
    def copy_of(cls, store, keys) -> MemoryStore:
        """Session copy of ``keys`` from another store; writes stay in memory."""
        data = {}
        for key in keys:
            value = safe_get(store, key, _MISSING)
            if value is not _MISSING:
                data[key] = value
        return cls(data)


class JsonFileStore:
    """All keys in a single JSON object on disk.

    Reads the file on every get so two viewers sharing a state file see each
    other's last write. Writes go through a temp file and os.replace().
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path}: expected a JSON object")
        return data

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(data, indent=2)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".state-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def _read_for_update(self) -> dict:
        try:
            return self._read()
        except ValueError as e:
            # A corrupt file is replaced by the next write.
            logger.warning("Discarding unreadable state file %s: %s", self.path, e)
            return {}

    def set(self, key: str, value: Any) -> None:
        data = self._read_for_update()
        data[key] = value
        self._write(data)

    def delete(self, key: str) -> None:
        data = self._read_for_update()
        if key in data:
            del data[key]
            self._write(data)


def safe_get(store, key: str, default: Any = None) -> Any:
    """store.get(), logging failures and returning default instead."""
    if store is None:
        return default
    try:
        return store.get(key, default)
    except _STORAGE_ERRORS as e:
        logger.warning("Failed to read %s from state store: %s", key, e)
        return default


def safe_set(store, key: str, value: Any) -> bool:
    """store.set(), logging failures. Returns False if the write failed."""
    if store is None:
        return False
    try:
        store.set(key, value)
        return True
    except _STORAGE_ERRORS as e:
        logger.warning("Failed to store %s: %s", key, e)
        return False
