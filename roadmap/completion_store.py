#!/usr/bin/env python3
"""
Per-department completed-course persistence.

Storage is any object with get(key) -> str | None and set(key, value).
Storage failures and corrupt values never reach the caller: loads fall back
to an empty set and failed writes are logged and dropped.
"""

import json
import logging
from pathlib import Path
from typing import Dict, FrozenSet, Optional, Union

logger = logging.getLogger(__name__)

KEY_PREFIX = "completed-courses::"


def storage_key(department_id: str) -> str:
    return f"{KEY_PREFIX}{department_id}"


# ============================================================================
# STORAGE BACKENDS
# ============================================================================


class MemoryStorage:
    """In-memory key/value storage"""

    def __init__(self):
        self.values: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


class JsonFileStorage:
    """Key/value storage kept in one JSON object file"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Storage file is not a JSON object: {self.path}")
        return data

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read()
        except ValueError:
            logger.warning("Replacing unreadable storage file %s", self.path)
            data = {}
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


# ============================================================================
# COMPLETION STORE
# ============================================================================


class CompletionStore:
    """Completed course ids, scoped per department.

    Snapshots handed out are frozensets; every mutation replaces the
    department's snapshot and persists it before returning.
    """

    def __init__(self, storage=None):
        self.storage = storage if storage is not None else MemoryStorage()
        self._snapshots: Dict[str, FrozenSet[str]] = {}

    def load(self, department_id: str) -> FrozenSet[str]:
        """Read the persisted set, empty on first use or any failure"""
        completed = self._read(department_id)
        self._snapshots[department_id] = completed
        return completed

    def completed(self, department_id: str) -> FrozenSet[str]:
        """Current snapshot, loading it on first access"""
        if department_id not in self._snapshots:
            return self.load(department_id)
        return self._snapshots[department_id]

    def toggle(self, department_id: str, course_id: str) -> FrozenSet[str]:
        """Flip one course's membership and persist"""
        current = self.completed(department_id)
        if course_id in current:
            updated = current - {course_id}
        else:
            updated = current | {course_id}
        return self._commit(department_id, updated)

    def clear_all(self, department_id: str) -> FrozenSet[str]:
        return self._commit(department_id, frozenset())

    def _commit(self, department_id: str, completed: FrozenSet[str]) -> FrozenSet[str]:
        self._snapshots[department_id] = completed
        try:
            self.storage.set(storage_key(department_id), json.dumps(sorted(completed), ensure_ascii=False))
        except Exception as e:
            logger.warning("Could not persist completed courses for %s: %s", department_id, e)
        return completed

    def _read(self, department_id: str) -> FrozenSet[str]:
        try:
            raw = self.storage.get(storage_key(department_id))
            if not raw:
                return frozenset()
            ids = json.loads(raw)
        except Exception as e:
            logger.warning("Could not load completed courses for %s: %s", department_id, e)
            return frozenset()

        if not isinstance(ids, list) or not all(isinstance(cid, str) for cid in ids):
            logger.warning("Ignoring malformed completed courses for %s", department_id)
            return frozenset()
        return frozenset(ids)
