"""Restore a backup snapshot with a single, time-boxed undo.

State machine over one slot:

    idle  --restore-->  active   (a second restore replaces the first)
    active --undo-->     idle    (previous state put back)
    active --dismiss-->  idle    (restored state kept)
    active --expiry-->   idle    (hard cutoff at expires_at)

The slot is persisted so a pending undo survives a restart; an expired or
malformed persisted context is dropped on load.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import timedelta
from typing import Protocol

from studycal import achievement
from studycal.backups import SnapshotStore, check_entries
from studycal.dates import Clock, format_timestamp, parse_timestamp, utc_now
from studycal.models import ActualRecord, BackupSnapshot, PlanEntry, RestoreContext, SessionLogEntry
from studycal.store import RESTORE_CONTEXT_KEY, KeyValueStore
from studycal.tracker import StudyState, StudyTracker
from studycal.validation import sanitize_plan, sanitize_record, sanitize_session

logger = logging.getLogger(__name__)

IDLE = "idle"
ACTIVE = "active"

DEFAULT_TTL = timedelta(minutes=5)

AUTO_BACKUP_NOTE = "Auto backup before restore"
UNDO_NOTE = "Restore undone"
MANUAL_BACKUP_NOTE = "Manual backup"


# ── Scheduling ────────────────────────────────────────────────


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class ExpiryScheduler(Protocol):
    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingScheduler:
    """One-shot callbacks on daemon ``threading.Timer`` threads (monotonic clock)."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(max(0.0, delay), callback)
        timer.daemon = True
        timer.start()
        return timer


# ── Coordinator ───────────────────────────────────────────────


class RestoreCoordinator:
    def __init__(
        self,
        tracker: StudyTracker,
        snapshots: SnapshotStore,
        store: KeyValueStore,
        ttl: timedelta = DEFAULT_TTL,
        clock: Clock = utc_now,
        scheduler: ExpiryScheduler | None = None,
    ) -> None:
        self.tracker = tracker
        self.snapshots = snapshots
        self._store = store
        self.ttl = ttl
        self._clock = clock
        self._scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self._lock = threading.RLock()
        self._context: RestoreContext | None = None
        self._timer: TimerHandle | None = None
        self._closed = False

    # ── Reads ─────────────────────────────────────────────────

    @property
    def context(self) -> RestoreContext | None:
        """The active restore context, or None once dismissed, undone or expired."""
        with self._lock:
            if self._context is not None and self._context.is_expired(self._clock()):
                logger.info("Restore undo window for %s expired", self._context.backup_id)
                self._clear()
            return self._context

    @property
    def state(self) -> str:
        return ACTIVE if self.context is not None else IDLE

    # ── Lifecycle ─────────────────────────────────────────────

    def load(self) -> RestoreContext | None:
        """Resume a persisted undo window if it is still open."""
        with self._lock:
            self._closed = False
            try:
                raw = self._store.get(RESTORE_CONTEXT_KEY)
            except (OSError, ValueError) as e:
                logger.warning("Failed to load restore context: %s", e)
                self._clear()
                return None
            if raw is None:
                return None
            context = self._parse_context(raw)
            if context is None or context.is_expired(self._clock()):
                logger.debug("Discarding stale restore context")
                self._clear()
                return None
            self._context = context
            self._arm()
            return context

    def close(self) -> None:
        """Cancel the expiry timer; a callback already in flight becomes a no-op."""
        with self._lock:
            self._closed = True
            self._cancel_timer()

    @staticmethod
    def _parse_context(raw: object) -> RestoreContext | None:
        """Strict parse; any structural mismatch discards the whole context."""
        if not isinstance(raw, dict):
            return None
        try:
            check_entries(raw.get("previousRecords"), ("minutes",), "previousRecords")
            check_entries(raw.get("previousPlans"), ("hours", "minutes"), "previousPlans")
            # contexts written before the session log existed have no sessions
            check_entries(raw.get("previousSessions", []), ("previousMinutes", "minutes"), "previousSessions")
            context = RestoreContext.from_dict(raw)
        except (TypeError, ValueError) as e:
            logger.debug("Malformed restore context: %s", e)
            return None
        if not context.backup_id or parse_timestamp(context.expires_at) is None:
            return None
        return context

    # ── Transitions ───────────────────────────────────────────

    def restore(self, backup_id: str) -> RestoreContext | None:
        """Apply a snapshot's contents as live state and open the undo window.

        Unknown ids are a no-op. Current state is captured for undo and
        backed up (tagged "Auto backup before restore") first.
        """
        with self._lock:
            snapshot = self.snapshots.get(backup_id)
            if snapshot is None:
                logger.warning("Backup with id %s not found", backup_id)
                return None

            previous_records, previous_plans, previous_sessions = self.tracker.state()
            self.tracker.snapshot(note=AUTO_BACKUP_NOTE)

            self.tracker.replace(*self._sanitized(snapshot.records, snapshot.plans, snapshot.sessions))

            now = self._clock()
            context = RestoreContext(
                previous_records=tuple(previous_records),
                previous_plans=tuple(previous_plans),
                previous_sessions=tuple(previous_sessions),
                backup_id=snapshot.id,
                applied_at=format_timestamp(now),
                expires_at=format_timestamp(now + self.ttl),
            )
            self._set(context)
            logger.info("Restored backup %s; undo available until %s", snapshot.id, context.expires_at)
            return context

    def undo(self) -> bool:
        """Put back the state captured by the last restore. No-op when idle."""
        with self._lock:
            context = self.context
            if context is None:
                logger.debug("No restore to undo")
                return False
            self.tracker.replace(*self._sanitized(
                context.previous_records,
                context.previous_plans,
                context.previous_sessions,
            ))
            self.tracker.snapshot(note=UNDO_NOTE)
            self._clear()
            logger.info("Undid restore of backup %s", context.backup_id)
            return True

    def dismiss(self) -> None:
        """Keep the restored data and close the undo window."""
        with self._lock:
            if self._context is not None:
                self._clear()

    def expire(self) -> None:
        """Timer callback: close the window once expires_at has passed."""
        with self._lock:
            if self._closed or self._context is None:
                return
            if self._context.is_expired(self._clock()):
                logger.info("Restore undo window for %s expired", self._context.backup_id)
                self._clear()
            else:
                # Fired early relative to the wall clock; wait out the rest.
                self._arm()

    # ── Backup management ─────────────────────────────────────

    def backup_now(self, note: str | None = None) -> list[BackupSnapshot]:
        records, plans, sessions = self.tracker.state()
        return self.snapshots.create_snapshot(records, plans, sessions, note=note or MANUAL_BACKUP_NOTE)

    def delete_backup(self, backup_id: str) -> list[BackupSnapshot]:
        """Delete one backup; closes the undo window if it came from that backup."""
        with self._lock:
            remaining = self.snapshots.delete_by_id(backup_id)
            if self._context is not None and self._context.backup_id == backup_id:
                self._clear()
            return remaining

    def delete_all_backups(self) -> list[BackupSnapshot]:
        with self._lock:
            self.snapshots.delete_all()
            self._clear()
            return []

    # ── Internals ─────────────────────────────────────────────

    def _sanitized(
        self,
        records: Iterable[ActualRecord],
        plans: Iterable[PlanEntry],
        sessions: Iterable[SessionLogEntry],
    ) -> StudyState:
        now = self._clock()
        clean_records = achievement.index_records(sanitize_record(r) for r in records)
        clean_plans = achievement.index_plans(sanitize_plan(p) for p in plans)
        return (
            list(clean_records.values()),
            list(clean_plans.values()),
            [sanitize_session(s, now) for s in sessions],
        )

    def _set(self, context: RestoreContext) -> None:
        self._context = context
        try:
            self._store.set(RESTORE_CONTEXT_KEY, context.to_dict())
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Failed to persist restore context: %s", e)
        self._arm()

    def _clear(self) -> None:
        self._context = None
        self._cancel_timer()
        try:
            self._store.delete(RESTORE_CONTEXT_KEY)
        except OSError as e:
            logger.warning("Failed to remove restore context: %s", e)

    def _arm(self) -> None:
        self._cancel_timer()
        if self._closed or self._context is None:
            return
        expires = parse_timestamp(self._context.expires_at)
        delay = (expires - self._clock()).total_seconds() if expires else 0.0
        self._timer = self._scheduler.schedule(max(0.0, delay), self.expire)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
