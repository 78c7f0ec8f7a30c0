"""Append-only audit trail of plan and actual-time edits.

The log is held newest-first, which is what history lists show. Per-date
history is produced on demand in chronological order.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

from studycal.dates import Clock, format_timestamp, parse_timestamp, utc_now
from studycal.models import SessionLogEntry, coerce_kind
from studycal.validation import new_session_id

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class SessionLog:
    def __init__(self, entries: Iterable[SessionLogEntry] = (), clock: Clock = utc_now) -> None:
        self._entries: list[SessionLogEntry] = list(entries)
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[SessionLogEntry]:
        """All entries, newest first."""
        return list(self._entries)

    def append(
        self,
        kind: str,
        date: str,
        previous_minutes: int,
        minutes: int,
        source: str = "",
    ) -> SessionLogEntry | None:
        """Record one change. Returns None (and logs nothing) for a no-op edit."""
        if previous_minutes == minutes:
            return None
        entry = SessionLogEntry(
            id=new_session_id(),
            date=date,
            kind=coerce_kind(kind),
            previous_minutes=previous_minutes,
            minutes=minutes,
            recorded_at=format_timestamp(self._clock()),
            source=source,
        )
        self._entries.insert(0, entry)
        return entry

    def entries_for_date(self, date: str) -> list[SessionLogEntry]:
        """Entries for one date, oldest first.

        Entries sharing a timestamp keep the order they were appended in.
        """
        # Reverse the newest-first log so a stable sort keeps creation order on ties.
        chronological = [e for e in reversed(self._entries) if e.date == date]
        return sorted(chronological, key=lambda e: parse_timestamp(e.recorded_at) or _EPOCH)

    def clear_for_date(self, date: str) -> list[SessionLogEntry]:
        """Drop every entry for date and return the resulting log."""
        self._entries = [e for e in self._entries if e.date != date]
        return self.entries

    def replace(self, entries: Iterable[SessionLogEntry]) -> None:
        self._entries = list(entries)

    def to_list(self) -> list[dict]:
        return [e.to_dict() for e in self._entries]
