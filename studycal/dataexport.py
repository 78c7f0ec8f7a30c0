"""JSON and CSV export/import of records and plans."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from studycal.dates import format_timestamp, utc_now
from studycal.fileio import write_text_atomic
from studycal.models import ActualRecord, PlanEntry
from studycal.timecalc import from_minutes
from studycal.validation import repair_plans, repair_records

EXPORT_VERSION = "1.0"
CSV_HEADER = ["Type", "Date", "Hours", "Minutes"]


@dataclass
class ImportResult:
    records: list[ActualRecord] = field(default_factory=list)
    plans: list[PlanEntry] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def export_json(
    records: Iterable[ActualRecord],
    plans: Iterable[PlanEntry],
    exported_at: datetime | None = None,
) -> str:
    data = {
        "records": [r.to_dict() for r in records],
        "plans": [p.to_dict() for p in plans],
        "exportDate": format_timestamp(exported_at or utc_now()),
        "version": EXPORT_VERSION,
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


def export_csv(records: Iterable[ActualRecord], plans: Iterable[PlanEntry]) -> str:
    """One row per record then per plan; record minutes are split into h/m."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for r in records:
        hours, minutes = from_minutes(r.minutes)
        writer.writerow(["Record", r.date, hours, minutes])
    for p in plans:
        writer.writerow(["Plan", p.date, p.hours, p.minutes])
    return buf.getvalue()


def save_export(path: Path, content: str) -> None:
    write_text_atomic(path, content)


def import_json(text: str) -> ImportResult:
    try:
        data = json.loads(text)
    except ValueError as e:
        return ImportResult(error=f"Failed to parse JSON: {e}")
    if not isinstance(data, dict) or not isinstance(data.get("records"), list) or not isinstance(data.get("plans"), list):
        return ImportResult(error="Invalid data format. Expected records and plans arrays.")
    return ImportResult(records=repair_records(data["records"]), plans=repair_plans(data["plans"]))


def _to_int(value: str) -> int:
    try:
        return int(value.strip())
    except (AttributeError, ValueError):
        return 0


def import_csv(text: str) -> ImportResult:
    """Parse the export_csv layout. Unknown row types and blank lines are skipped."""
    raw_records = []
    raw_plans = []
    rows = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    for row in rows[1:]:
        if len(row) < 2 or not row[0].strip() or not row[1].strip():
            continue
        kind = row[0].strip()
        day = row[1].strip()
        hours = _to_int(row[2]) if len(row) > 2 else 0
        minutes = _to_int(row[3]) if len(row) > 3 else 0
        if kind == "Record":
            raw_records.append({"date": day, "minutes": hours * 60 + minutes})
        elif kind == "Plan":
            raw_plans.append({"date": day, "hours": hours, "minutes": minutes})
    return ImportResult(records=repair_records(raw_records), plans=repair_plans(raw_plans))
