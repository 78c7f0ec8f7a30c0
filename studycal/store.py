"""Keyed read/write stores backing the live collections and backups.

The core only needs get/set/delete by key. ``JsonFileStore`` keeps one
``<key>.json`` file per key; ``MemoryStore`` is for tests and embedding.
"""

from __future__ import annotations

import copy
import re
from pathlib import Path
from typing import Any, Protocol

from studycal.fileio import read_json, write_json_atomic

RECORDS_KEY = "records"
PLANS_KEY = "plans"
SESSIONS_KEY = "sessions"
BACKUPS_KEY = "backups"
RESTORE_CONTEXT_KEY = "restore_context"

_KEY_RE = re.compile(r"^[A-Za-z0-9_-]+$")


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """In-process store. Values are deep-copied in and out."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial or {})

    def get(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """One atomically written JSON file per key under a directory.

    Read errors (unreadable file, malformed JSON) propagate as OSError or
    ValueError; callers log and degrade.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid store key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Any:
        return read_json(self.path_for(key))

    def set(self, key: str, value: Any) -> None:
        write_json_atomic(self.path_for(key), value)

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)
