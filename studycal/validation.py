"""Validation, sanitisation and integrity repair for plans and records.

Validators return a list of error strings (empty when valid). Sanitisers
always return a well-formed value. The ``repair_*`` helpers are for data
read back from storage or imports: entries that cannot be salvaged are
dropped with a warning.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from studycal.dates import format_timestamp, is_valid_date_string, normalize_date, to_date
from studycal.models import ActualRecord, PlanEntry, SessionLogEntry, coerce_kind
from studycal.timecalc import MAX_HOURS, MAX_MINUTES, MAX_MINUTES_PER_DAY, clamp_minutes, round_half_up

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    # ints are always finite; math.isfinite overflows on very large ones
    return isinstance(value, int) or math.isfinite(value)


def new_session_id() -> str:
    return f"log-{uuid.uuid4().hex[:12]}"


# ── Validation ────────────────────────────────────────────────


def validate_date(value: Any) -> list[str]:
    if not value or not isinstance(value, str):
        return ["Date is required"]
    if not is_valid_date_string(value):
        return ["Invalid date format. Expected YYYY-MM-DD"]
    return []


def validate_record(d: dict[str, Any]) -> list[str]:
    """Validate a raw ``{date, minutes}`` record."""
    errors = validate_date(d.get("date"))
    minutes = d.get("minutes")
    if not _is_number(minutes):
        errors.append("Minutes must be a number")
    elif minutes < 0:
        errors.append("Minutes cannot be negative")
    elif minutes > MAX_MINUTES_PER_DAY:
        errors.append("Study time cannot exceed 24 hours per day")
    return errors


def validate_plan(d: dict[str, Any]) -> list[str]:
    """Validate a raw ``{date, hours, minutes}`` plan."""
    errors = validate_date(d.get("date"))
    hours = d.get("hours")
    minutes = d.get("minutes")
    if not _is_number(hours):
        errors.append("Hours must be a number")
    elif hours < 0 or hours > MAX_HOURS:
        errors.append(f"Hours must be between 0 and {MAX_HOURS}")
    if not _is_number(minutes):
        errors.append("Minutes must be a number")
    elif minutes < 0 or minutes > MAX_MINUTES:
        errors.append(f"Minutes must be between 0 and {MAX_MINUTES}")
    return errors


def validate_date_range(start: Any, end: Any) -> list[str]:
    """Validate a custom period; from must not be after to."""
    errors = [f"from: {e}" for e in validate_date(start)]
    errors += [f"to: {e}" for e in validate_date(end)]
    if not errors and to_date(start) > to_date(end):
        errors.append("Start date must be on or before end date")
    return errors


# ── Sanitisation ──────────────────────────────────────────────


def sanitize_record(record: ActualRecord) -> ActualRecord:
    return ActualRecord(date=normalize_date(record.date), minutes=clamp_minutes(record.minutes))


def sanitize_plan(plan: PlanEntry) -> PlanEntry:
    """Clamp the plan's total into [0, 1440] and re-split into hours/minutes."""
    total = clamp_minutes(
        round_half_up(plan.hours) * 60 + round_half_up(plan.minutes)
        if _is_number(plan.hours) and _is_number(plan.minutes)
        else 0
    )
    hours, minutes = divmod(total, 60)
    return PlanEntry(date=normalize_date(plan.date), hours=hours, minutes=minutes)


def sanitize_session(entry: SessionLogEntry, now: datetime) -> SessionLogEntry:
    """Clamp minutes, coerce kind, and fill a missing id or timestamp."""
    return SessionLogEntry(
        id=entry.id or new_session_id(),
        date=entry.date,
        kind=coerce_kind(entry.kind),
        previous_minutes=clamp_minutes(entry.previous_minutes),
        minutes=clamp_minutes(entry.minutes),
        recorded_at=entry.recorded_at or format_timestamp(now),
        source=entry.source,
    )


# ── Integrity repair ──────────────────────────────────────────


def repair_record(raw: Any) -> ActualRecord | None:
    if not isinstance(raw, dict):
        return None
    if not is_valid_date_string(raw.get("date")):
        logger.warning("Invalid record date, skipping: %r", raw.get("date"))
        return None
    if not _is_number(raw.get("minutes")):
        logger.warning("Invalid record minutes, skipping: %r", raw.get("minutes"))
        return None
    return ActualRecord(date=raw["date"], minutes=clamp_minutes(raw["minutes"]))


def repair_plan(raw: Any) -> PlanEntry | None:
    if not isinstance(raw, dict):
        return None
    if not is_valid_date_string(raw.get("date")):
        logger.warning("Invalid plan date, skipping: %r", raw.get("date"))
        return None
    for key in ("hours", "minutes"):
        if not _is_number(raw.get(key)):
            logger.warning("Invalid plan %s, skipping: %r", key, raw.get(key))
            return None
    return sanitize_plan(PlanEntry(date=raw["date"], hours=raw["hours"], minutes=raw["minutes"]))


def repair_records(raw: Any) -> list[ActualRecord]:
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("Records is not a list, using an empty list")
        return []
    return [r for r in (repair_record(item) for item in raw) if r is not None]


def repair_plans(raw: Any) -> list[PlanEntry]:
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("Plans is not a list, using an empty list")
        return []
    return [p for p in (repair_plan(item) for item in raw) if p is not None]


def repair_sessions(raw: Any, now: datetime) -> list[SessionLogEntry]:
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("Sessions is not a list, using an empty list")
        return []
    out = []
    for item in raw:
        if not isinstance(item, dict) or not is_valid_date_string(item.get("date")):
            logger.warning("Invalid session entry, skipping: %r", item)
            continue
        try:
            entry = SessionLogEntry.from_dict(item)
        except (TypeError, ValueError, OverflowError):
            logger.warning("Invalid session minutes, skipping: %r", item)
            continue
        out.append(sanitize_session(entry, now))
    return out


@dataclass
class IntegrityReport:
    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    records: list[ActualRecord] = field(default_factory=list)
    plans: list[PlanEntry] = field(default_factory=list)


def check_data_integrity(records: Any, plans: Any) -> IntegrityReport:
    """Repair raw record/plan collections and report what had to change."""
    report = IntegrityReport()
    if not isinstance(records, list):
        report.errors.append("Records is not a list")
    if not isinstance(plans, list):
        report.errors.append("Plans is not a list")

    report.records = repair_records(records)
    report.plans = repair_plans(plans)

    if isinstance(records, list) and len(report.records) != len(records):
        report.errors.append(f"Repaired {len(records) - len(report.records)} invalid records")
    if isinstance(plans, list) and len(report.plans) != len(plans):
        report.errors.append(f"Repaired {len(plans) - len(report.plans)} invalid plans")

    report.is_valid = not report.errors
    return report
