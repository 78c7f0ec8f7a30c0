"""Capacity-bounded, deduplicating history of backup snapshots.

Snapshots are kept newest-first. Creating a snapshot whose content equals
the most recent one is a no-op; going over capacity evicts the oldest.
Storage failures are logged and the store keeps working in memory.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from typing import Any

from studycal.dates import Clock, format_timestamp, is_valid_date_string, utc_now
from studycal.models import ActualRecord, BackupSnapshot, PlanEntry, SessionLogEntry
from studycal.store import BACKUPS_KEY, KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_BACKUPS = 20


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def check_entries(items: Any, required_ints: tuple[str, ...], label: str) -> None:
    """Raise ValueError unless items is a list of dated objects with integer fields."""
    if not isinstance(items, list):
        raise ValueError(f"{label} is not a list")
    for item in items:
        if not isinstance(item, dict):
            raise ValueError(f"{label} entry is not an object")
        if not is_valid_date_string(item.get("date")):
            raise ValueError(f"{label} entry has an invalid date: {item.get('date')!r}")
        for key in required_ints:
            if not _is_int(item.get(key)):
                raise ValueError(f"{label} entry has a non-integer {key}: {item.get(key)!r}")


def parse_snapshots(raw: Any) -> list[BackupSnapshot]:
    """Strictly parse a persisted snapshot list.

    Raises ValueError on any structural mismatch; a partially valid list is
    never trusted.
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError("Backups value is not a list")
    snapshots = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValueError("Backup entry is not an object")
        if not isinstance(item.get("id"), str) or not item["id"]:
            raise ValueError("Backup entry has no id")
        if not isinstance(item.get("createdAt"), str):
            raise ValueError(f"Backup {item['id']} has no createdAt")
        note = item.get("note")
        if note is not None and not isinstance(note, str):
            raise ValueError(f"Backup {item['id']} has a non-string note")
        check_entries(item.get("records"), ("minutes",), "records")
        check_entries(item.get("plans"), ("hours", "minutes"), "plans")
        # Snapshots taken before the session log existed have no sessions.
        sessions = item.get("sessions", [])
        check_entries(sessions, ("previousMinutes", "minutes"), "sessions")
        snapshots.append(BackupSnapshot.from_dict(item))
    return snapshots


class SnapshotStore:
    """Backup history bound to one keyed store.

    Lifecycle: ``load()`` once, operate, ``flush()`` on teardown. Every
    mutating call also writes through immediately.
    """

    def __init__(
        self,
        store: KeyValueStore,
        max_backups: int = DEFAULT_MAX_BACKUPS,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self.max_backups = max(1, int(max_backups))
        self._clock = clock
        self._snapshots: list[BackupSnapshot] = []

    @property
    def snapshots(self) -> list[BackupSnapshot]:
        """Current snapshots, newest first."""
        return list(self._snapshots)

    def __len__(self) -> int:
        return len(self._snapshots)

    def get(self, backup_id: str) -> BackupSnapshot | None:
        for s in self._snapshots:
            if s.id == backup_id:
                return s
        return None

    def load(self) -> list[BackupSnapshot]:
        """Read persisted snapshots; corrupt or unreadable data loads as empty."""
        try:
            raw = self._store.get(BACKUPS_KEY)
        except (OSError, ValueError) as e:
            logger.warning("Failed to load backups: %s", e)
            self._snapshots = []
            return []
        try:
            snapshots = parse_snapshots(raw)
        except (ValueError, TypeError) as e:
            logger.warning("Discarding malformed backups: %s", e)
            snapshots = []
        self._snapshots = snapshots[: self.max_backups]
        return self.snapshots

    def flush(self) -> None:
        self._persist()

    def _persist(self) -> None:
        try:
            self._store.set(BACKUPS_KEY, [s.to_dict() for s in self._snapshots])
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Failed to persist backups, keeping them in memory only: %s", e)

    def create_snapshot(
        self,
        records: Iterable[ActualRecord],
        plans: Iterable[PlanEntry],
        sessions: Iterable[SessionLogEntry] = (),
        note: str | None = None,
    ) -> list[BackupSnapshot]:
        """Snapshot the given state unless it matches the latest snapshot.

        Returns the resulting list, newest first.
        """
        # Frozen value records plus fresh tuples: nothing aliases live state.
        snapshot = BackupSnapshot(
            id=str(uuid.uuid4()),
            created_at=format_timestamp(self._clock()),
            records=tuple(records),
            plans=tuple(plans),
            sessions=tuple(sessions),
            note=note,
        )
        if self._snapshots and self._snapshots[0].content() == snapshot.content():
            logger.debug("Skipping backup identical to %s", self._snapshots[0].id)
            return self.snapshots

        self._snapshots = [snapshot, *self._snapshots][: self.max_backups]
        self._persist()
        logger.info("Created backup %s (%s)", snapshot.id, note or "no note")
        return self.snapshots

    def delete_by_id(self, backup_id: str) -> list[BackupSnapshot]:
        """Delete one snapshot; an unknown id is a no-op."""
        remaining = [s for s in self._snapshots if s.id != backup_id]
        if len(remaining) != len(self._snapshots):
            self._snapshots = remaining
            self._persist()
        return self.snapshots

    def delete_all(self) -> list[BackupSnapshot]:
        self._snapshots = []
        self._persist()
        return []
