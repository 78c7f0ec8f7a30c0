"""Atomic file I/O utilities for studycal."""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml


def read_text(path: Path) -> str:
    """Read a text file, returning empty string if missing."""
    if not path.exists():
        return ""
    return path.read_text(encoding="utf-8")


def read_json(path: Path) -> Any:
    """Read a JSON file, returning None if missing or blank.

    Malformed JSON raises ``json.JSONDecodeError`` (a ``ValueError``);
    callers decide how to degrade.
    """
    text = read_text(path)
    if not text.strip():
        return None
    return json.loads(text)


def read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML file, returning empty dict if missing, empty or not a mapping."""
    text = read_text(path)
    if not text.strip():
        return {}
    result = yaml.safe_load(text)
    return result if isinstance(result, dict) else {}


def _atomic_write(path: Path, content: str) -> None:
    """Write content next to path under an exclusive lock, then swap it in.

    Readers see either the old file or the new one, never a partial write.
    The temp file is removed if anything fails before the swap.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=path.suffix or ".tmp")
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        os.replace(temp_path, path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise


def write_text_atomic(path: Path, content: str) -> None:
    _atomic_write(path, content)


def write_json_atomic(path: Path, data: Any) -> None:
    """Atomic JSON write. Accepts any JSON-serialisable value, lists included.

    Serialisation happens first, so an unserialisable value leaves the
    existing file untouched.
    """
    _atomic_write(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def write_yaml_atomic(path: Path, data: dict[str, Any]) -> None:
    """Atomic YAML write; keys keep their insertion order."""
    _atomic_write(path, yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False))
