"""Live plans, records and session log, plus the mutations that change them.

Every mutation follows the same pipeline:
1. Validate the raw input (raises ValidationError)
2. Sanitise and compute previous/next minutes
3. Skip entirely if the minutes did not change
4. Apply, append one session log entry, persist
5. Take one backup snapshot of the post-mutation state
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, timedelta
from typing import Any

from studycal import achievement
from studycal.backups import SnapshotStore
from studycal.colors import CANONICAL_BANDS, BandTable
from studycal.dates import Clock, normalize_date, to_date, utc_now
from studycal.errors import ValidationError
from studycal.models import AchievementResult, ActualRecord, CalendarCell, PlanEntry, RangeStats, SessionLogEntry
from studycal.session_log import SessionLog
from studycal.store import PLANS_KEY, RECORDS_KEY, SESSIONS_KEY, KeyValueStore
from studycal.timecalc import clamp_minutes, format_duration
from studycal.validation import (
    repair_plans,
    repair_records,
    repair_sessions,
    sanitize_plan,
    validate_date,
    validate_date_range,
    validate_plan,
    validate_record,
)

logger = logging.getLogger(__name__)

StudyState = tuple[list[ActualRecord], list[PlanEntry], list[SessionLogEntry]]


def _raise_if(errors: list[str]) -> None:
    if errors:
        raise ValidationError(errors)


class StudyTracker:
    def __init__(
        self,
        store: KeyValueStore,
        snapshots: SnapshotStore | None = None,
        clock: Clock = utc_now,
        policy: str = achievement.STRICT,
        band_table: BandTable = CANONICAL_BANDS,
    ) -> None:
        self._store = store
        self.snapshots = snapshots
        self._clock = clock
        self.policy = policy
        self.band_table = band_table
        self.records: dict[str, ActualRecord] = {}
        self.plans: dict[str, PlanEntry] = {}
        self.session_log = SessionLog(clock=clock)

    # ── Persistence ───────────────────────────────────────────

    def _read(self, key: str) -> Any:
        try:
            return self._store.get(key)
        except (OSError, ValueError) as e:
            logger.warning("Failed to read %s, starting empty: %s", key, e)
            return None

    def load(self) -> None:
        """Load and repair the persisted collections."""
        self.records = achievement.index_records(repair_records(self._read(RECORDS_KEY)))
        self.plans = achievement.index_plans(repair_plans(self._read(PLANS_KEY)))
        self.session_log.replace(repair_sessions(self._read(SESSIONS_KEY), self._clock()))

    def flush(self) -> None:
        records, plans, _ = self.state()
        writes = (
            (RECORDS_KEY, [r.to_dict() for r in records]),
            (PLANS_KEY, [p.to_dict() for p in plans]),
            (SESSIONS_KEY, self.session_log.to_list()),
        )
        for key, value in writes:
            try:
                self._store.set(key, value)
            except (OSError, TypeError, ValueError) as e:
                logger.warning("Failed to persist %s: %s", key, e)

    def state(self) -> StudyState:
        """Current (records, plans, sessions); records and plans sorted by date."""
        return (
            [self.records[d] for d in sorted(self.records)],
            [self.plans[d] for d in sorted(self.plans)],
            self.session_log.entries,
        )

    def replace(
        self,
        records: Iterable[ActualRecord],
        plans: Iterable[PlanEntry],
        sessions: Iterable[SessionLogEntry],
    ) -> None:
        """Overwrite all live state (used by restore/undo). Does not snapshot."""
        self.records = {r.date: r for r in records}
        self.plans = {p.date: p for p in plans}
        self.session_log.replace(sessions)
        self.flush()

    def snapshot(self, note: str | None = None) -> None:
        if self.snapshots is not None:
            self.snapshots.create_snapshot(*self.state(), note=note)

    def _commit(self, kind: str, day: str, previous: int, current: int, source: str) -> SessionLogEntry | None:
        logger.debug("%s %s: %s -> %s (%s)", kind, day, format_duration(previous), format_duration(current), source)
        entry = self.session_log.append(kind, day, previous, current, source)
        self.flush()
        self.snapshot()
        return entry

    # ── Records ───────────────────────────────────────────────

    def add_record(self, day: str, minutes: int | float, source: str = "record") -> ActualRecord:
        """Add study time to a date; repeated calls accumulate up to 24h."""
        _raise_if(validate_record({"date": day, "minutes": minutes}))
        key = normalize_date(day)
        previous = achievement.actual_minutes_for(self.records, key)
        current = clamp_minutes(previous + clamp_minutes(minutes))
        if current == previous:
            return self.records.get(key, ActualRecord(date=key, minutes=previous))
        record = ActualRecord(date=key, minutes=current)
        self.records[key] = record
        self._commit("actual", key, previous, current, source)
        return record

    def set_record(self, day: str, minutes: int | float, source: str = "edit") -> ActualRecord:
        """Replace the total actual time for a date."""
        _raise_if(validate_record({"date": day, "minutes": minutes}))
        key = normalize_date(day)
        previous = achievement.actual_minutes_for(self.records, key)
        current = clamp_minutes(minutes)
        if current == previous:
            return self.records.get(key, ActualRecord(date=key, minutes=previous))
        record = ActualRecord(date=key, minutes=current)
        self.records[key] = record
        self._commit("actual", key, previous, current, source)
        return record

    def delete_record(self, day: str, source: str = "delete") -> bool:
        _raise_if(validate_date(day))
        record = self.records.pop(day, None)
        if record is None:
            return False
        if record.minutes:
            self._commit("actual", day, record.minutes, 0, source)
        else:
            self.flush()
        return True

    # ── Plans ─────────────────────────────────────────────────

    def set_plan(self, day: str, hours: int, minutes: int, source: str = "plan") -> PlanEntry:
        _raise_if(validate_plan({"date": day, "hours": hours, "minutes": minutes}))
        plan = sanitize_plan(PlanEntry(date=day, hours=hours, minutes=minutes))
        previous = achievement.planned_minutes_for(self.plans, plan.date)
        if plan.total_minutes == previous:
            return self.plans.get(plan.date, plan)
        self.plans[plan.date] = plan
        self._commit("plan", plan.date, previous, plan.total_minutes, source)
        return plan

    def delete_plan(self, day: str, source: str = "delete") -> bool:
        _raise_if(validate_date(day))
        plan = self.plans.pop(day, None)
        if plan is None:
            return False
        if plan.total_minutes:
            self._commit("plan", day, plan.total_minutes, 0, source)
        else:
            self.flush()
        return True

    def duplicate_plan(self, day: str, target: str | None = None) -> PlanEntry | None:
        """Copy a date's plan onto target (default: the following day)."""
        _raise_if(validate_date(day))
        plan = self.plans.get(day)
        if plan is None:
            return None
        if target is None:
            target = (to_date(day) + timedelta(days=1)).isoformat()
        return self.set_plan(target, plan.hours, plan.minutes, source="duplicate")

    # ── History ───────────────────────────────────────────────

    def history_for(self, day: str) -> list[SessionLogEntry]:
        return self.session_log.entries_for_date(day)

    def clear_history(self, day: str) -> list[SessionLogEntry]:
        """Remove a date's session entries; returns the resulting log."""
        _raise_if(validate_date(day))
        before = len(self.session_log)
        remaining = self.session_log.clear_for_date(day)
        if len(remaining) != before:
            self.flush()
            self.snapshot()
        return remaining

    # ── Queries ───────────────────────────────────────────────

    def daily(self, day: date | str) -> AchievementResult:
        return achievement.daily_achievement(self.records, self.plans, day, self.policy)

    def weekly(self, day: date | str) -> RangeStats:
        return achievement.weekly_stats(self.records, self.plans, day, self.policy)

    def monthly(self, day: date | str) -> RangeStats:
        return achievement.monthly_stats(self.records, self.plans, day, self.policy)

    def yearly(self, day: date | str) -> RangeStats:
        return achievement.yearly_stats(self.records, self.plans, day, self.policy)

    def custom(self, start: str, end: str) -> RangeStats:
        _raise_if(validate_date_range(start, end))
        return achievement.custom_period_stats(self.records, self.plans, start, end, self.policy)

    def series(self, start: str, end: str) -> list[AchievementResult]:
        _raise_if(validate_date_range(start, end))
        return achievement.daily_series(self.records, self.plans, start, end, self.policy)

    def month_calendar(self, year: int, month: int, today: date | str | None = None) -> list[CalendarCell]:
        if today is None:
            today = self._clock().date()
        return achievement.month_calendar(
            self.records, self.plans, year, month, today, self.policy, self.band_table
        )

