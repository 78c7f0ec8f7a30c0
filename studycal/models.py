"""Typed dataclasses for the studycal data model.

All persisted models use from_dict/to_dict for JSON/YAML serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from studycal.dates import parse_timestamp
from studycal.timecalc import to_minutes

SESSION_KINDS = ("plan", "actual")


def coerce_kind(kind: Any) -> str:
    """Anything that is not exactly "plan" is an actual-time edit."""
    return "plan" if kind == "plan" else "actual"


# ── Plans & records ───────────────────────────────────────────


@dataclass(frozen=True)
class PlanEntry:
    """Planned study time for one date."""

    date: str
    hours: int = 0
    minutes: int = 0

    @property
    def total_minutes(self) -> int:
        return to_minutes(self.hours, self.minutes)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> PlanEntry:
        return cls(
            date=str(d.get("date", "")),
            hours=int(d.get("hours", 0)),
            minutes=int(d.get("minutes", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "hours": self.hours, "minutes": self.minutes}


@dataclass(frozen=True)
class ActualRecord:
    """Actual study time logged for one date (all record actions summed)."""

    date: str
    minutes: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ActualRecord:
        return cls(date=str(d.get("date", "")), minutes=int(d.get("minutes", 0)))

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "minutes": self.minutes}


# ── Derived results ───────────────────────────────────────────


@dataclass(frozen=True)
class AchievementResult:
    date: str
    planned_minutes: int
    actual_minutes: int
    achievement_rate: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "plannedMinutes": self.planned_minutes,
            "actualMinutes": self.actual_minutes,
            "achievementRate": self.achievement_rate,
        }


@dataclass(frozen=True)
class RangeStats:
    planned: int
    actual: int
    achievement_rate: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "planned": self.planned,
            "actual": self.actual,
            "achievementRate": self.achievement_rate,
        }


@dataclass(frozen=True)
class CalendarCell:
    """One cell of the 6x7 month grid."""

    date: str
    day: int
    is_current_month: bool
    is_today: bool
    achievement_rate: int
    planned_minutes: int
    actual_minutes: int
    band: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "day": self.day,
            "isCurrentMonth": self.is_current_month,
            "isToday": self.is_today,
            "achievementRate": self.achievement_rate,
            "plannedMinutes": self.planned_minutes,
            "actualMinutes": self.actual_minutes,
            "color": self.band,
        }


# ── Session log ───────────────────────────────────────────────


@dataclass(frozen=True)
class SessionLogEntry:
    """Audit record of one plan or actual-time change."""

    id: str
    date: str
    kind: str  # plan, actual
    previous_minutes: int
    minutes: int
    recorded_at: str
    source: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> SessionLogEntry:
        return cls(
            id=str(d.get("id", "")),
            date=str(d.get("date", "")),
            kind=coerce_kind(d.get("kind")),
            previous_minutes=int(d.get("previousMinutes", 0) or 0),
            minutes=int(d.get("minutes", 0) or 0),
            recorded_at=str(d.get("recordedAt", "")),
            source=str(d.get("source") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "kind": self.kind,
            "previousMinutes": self.previous_minutes,
            "minutes": self.minutes,
            "recordedAt": self.recorded_at,
            "source": self.source,
        }


# ── Backups ───────────────────────────────────────────────────


@dataclass(frozen=True)
class BackupSnapshot:
    """Point-in-time copy of records, plans and sessions."""

    id: str
    created_at: str
    records: tuple[ActualRecord, ...] = ()
    plans: tuple[PlanEntry, ...] = ()
    sessions: tuple[SessionLogEntry, ...] = ()
    note: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> BackupSnapshot:
        return cls(
            id=str(d.get("id", "")),
            created_at=str(d.get("createdAt", "")),
            records=tuple(ActualRecord.from_dict(r) for r in (d.get("records") or [])),
            plans=tuple(PlanEntry.from_dict(p) for p in (d.get("plans") or [])),
            sessions=tuple(SessionLogEntry.from_dict(s) for s in (d.get("sessions") or [])),
            note=d.get("note"),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "createdAt": self.created_at,
            "records": [r.to_dict() for r in self.records],
            "plans": [p.to_dict() for p in self.plans],
            "sessions": [s.to_dict() for s in self.sessions],
        }
        if self.note is not None:
            d["note"] = self.note
        return d

    def content(self) -> tuple[list[dict[str, Any]], ...]:
        """The (records, plans, sessions) payload used for duplicate detection."""
        return (
            [r.to_dict() for r in self.records],
            [p.to_dict() for p in self.plans],
            [s.to_dict() for s in self.sessions],
        )


@dataclass(frozen=True)
class RestoreContext:
    """Undo window opened by a restore."""

    previous_records: tuple[ActualRecord, ...]
    previous_plans: tuple[PlanEntry, ...]
    previous_sessions: tuple[SessionLogEntry, ...]
    backup_id: str
    applied_at: str
    expires_at: str

    def is_expired(self, now: datetime) -> bool:
        """True once now >= expires_at. Unparseable expiry counts as expired."""
        expires = parse_timestamp(self.expires_at)
        if expires is None:
            return True
        return now >= expires

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> RestoreContext:
        return cls(
            previous_records=tuple(ActualRecord.from_dict(r) for r in (d.get("previousRecords") or [])),
            previous_plans=tuple(PlanEntry.from_dict(p) for p in (d.get("previousPlans") or [])),
            # older contexts were written without sessions
            previous_sessions=tuple(SessionLogEntry.from_dict(s) for s in (d.get("previousSessions") or [])),
            backup_id=str(d.get("backupId", "")),
            applied_at=str(d.get("appliedAt", "")),
            expires_at=str(d.get("expiresAt", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "previousRecords": [r.to_dict() for r in self.previous_records],
            "previousPlans": [p.to_dict() for p in self.previous_plans],
            "previousSessions": [s.to_dict() for s in self.previous_sessions],
            "backupId": self.backup_id,
            "appliedAt": self.applied_at,
            "expiresAt": self.expires_at,
        }


# ── Colours ───────────────────────────────────────────────────


@dataclass(frozen=True)
class ColorToken:
    """Visual token for one calendar cell under one theme."""

    band: str
    theme: str
    background: str
    foreground: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "band": self.band,
            "theme": self.theme,
            "background": self.background,
            "foreground": self.foreground,
        }


# ── Settings ──────────────────────────────────────────────────


@dataclass
class Settings:
    timezone: str = "UTC"
    max_backups: int = 20
    restore_ttl_minutes: int = 5
    color_theme: str = "classic"  # classic, green, github
    band_table: str = "canonical"  # canonical, legacy
    rate_policy: str = "strict"  # strict, reward_effort
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        defaults = cls()
        known = {
            "timezone", "max_backups", "restore_ttl_minutes",
            "color_theme", "band_table", "rate_policy",
        }
        return cls(
            timezone=str(d.get("timezone") or defaults.timezone),
            max_backups=_positive_int(d.get("max_backups"), defaults.max_backups),
            restore_ttl_minutes=_positive_int(d.get("restore_ttl_minutes"), defaults.restore_ttl_minutes),
            color_theme=str(d.get("color_theme") or defaults.color_theme).strip().lower(),
            band_table=str(d.get("band_table") or defaults.band_table).strip().lower(),
            rate_policy=str(d.get("rate_policy") or defaults.rate_policy).strip().lower(),
            extra={k: v for k, v in d.items() if k not in known},
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "timezone": self.timezone,
            "max_backups": self.max_backups,
            "restore_ttl_minutes": self.restore_ttl_minutes,
            "color_theme": self.color_theme,
            "band_table": self.band_table,
            "rate_policy": self.rate_policy,
        }
        d.update(self.extra)
        return d


def _positive_int(value: Any, default: int) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return default
    return n if n >= 1 else default
