"""Calendar date and timestamp helpers.

Dates travel through studycal as ISO ``YYYY-MM-DD`` strings; the helpers
here accept ``date`` objects or strings and always produce strings.
"""

from __future__ import annotations

import calendar
import re
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def to_date(value: date | datetime | str) -> date:
    """Coerce a date, datetime or ISO date string into a ``date``."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def is_valid_date_string(value: object) -> bool:
    """Strict YYYY-MM-DD check that also rejects impossible dates."""
    if not isinstance(value, str) or not _DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def normalize_date(value: str) -> str:
    """Trim and re-format a parseable date; unparseable input is returned trimmed."""
    trimmed = (value or "").strip()
    if not trimmed:
        return trimmed
    try:
        return to_date(trimmed).isoformat()
    except ValueError:
        return trimmed


def dates_in_range(start: date | str, end: date | str) -> list[str]:
    """Every ISO date from start to end inclusive; empty when start > end."""
    current = to_date(start)
    last = to_date(end)
    out = []
    while current <= last:
        out.append(current.isoformat())
        current += timedelta(days=1)
    return out


def week_bounds(day: date | str) -> tuple[date, date]:
    """Monday..Sunday of the ISO week containing day."""
    d = to_date(day)
    start = d - timedelta(days=d.weekday())
    return start, start + timedelta(days=6)


def month_bounds(day: date | str) -> tuple[date, date]:
    d = to_date(day)
    last = calendar.monthrange(d.year, d.month)[1]
    return d.replace(day=1), d.replace(day=last)


def year_bounds(day: date | str) -> tuple[date, date]:
    d = to_date(day)
    return date(d.year, 1, 1), date(d.year, 12, 31)


# ── Timestamps ────────────────────────────────────────────────


def format_timestamp(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds")


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO timestamp; returns None when missing or malformed.

    A trailing ``Z`` is accepted. Naive values are taken to be UTC.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
