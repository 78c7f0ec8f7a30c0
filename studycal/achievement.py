"""Achievement rate engine for studycal.

Turns plan entries and actual records into daily and range statistics.
Everything here is a pure function of its inputs; collections are
mappings keyed by ISO date (see ``index_records``/``index_plans``).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, timedelta

from studycal.colors import CANONICAL_BANDS, BandTable, band_for_rate
from studycal.dates import dates_in_range, month_bounds, to_date, week_bounds, year_bounds
from studycal.models import AchievementResult, ActualRecord, CalendarCell, PlanEntry, RangeStats
from studycal.timecalc import MAX_MINUTES_PER_DAY, round_half_up

STRICT = "strict"
REWARD_EFFORT = "reward_effort"
RATE_POLICIES = {STRICT, REWARD_EFFORT}

Records = Mapping[str, ActualRecord]
Plans = Mapping[str, PlanEntry]

CALENDAR_WEEKS = 6
CALENDAR_CELLS = CALENDAR_WEEKS * 7


# ── Rate formula ──────────────────────────────────────────────


def calculate_achievement_rate(planned: int, actual: int, policy: str = STRICT) -> int:
    """Achievement rate as a rounded percentage, never negative, never capped.

    With nothing planned the strict policy reports 0 (a plan is required to
    show achievement); reward_effort reports 100 when any time was logged.
    """
    if planned <= 0:
        if policy == REWARD_EFFORT and actual > 0:
            return 100
        return 0
    return max(0, round_half_up(actual / planned * 100))


# ── Lookups ───────────────────────────────────────────────────


def index_records(records: Iterable[ActualRecord]) -> dict[str, ActualRecord]:
    """Key records by date, summing duplicates and capping at one day."""
    out: dict[str, ActualRecord] = {}
    for r in records:
        total = r.minutes + (out[r.date].minutes if r.date in out else 0)
        out[r.date] = ActualRecord(date=r.date, minutes=min(total, MAX_MINUTES_PER_DAY))
    return out


def index_plans(plans: Iterable[PlanEntry]) -> dict[str, PlanEntry]:
    """Key plans by date; a later entry for the same date wins."""
    return {p.date: p for p in plans}


def planned_minutes_for(plans: Plans, day: str) -> int:
    plan = plans.get(day)
    return plan.total_minutes if plan else 0


def actual_minutes_for(records: Records, day: str) -> int:
    record = records.get(day)
    return record.minutes if record else 0


# ── Daily & range statistics ──────────────────────────────────


def daily_achievement(
    records: Records,
    plans: Plans,
    day: date | str,
    policy: str = STRICT,
) -> AchievementResult:
    key = to_date(day).isoformat()
    planned = planned_minutes_for(plans, key)
    actual = actual_minutes_for(records, key)
    return AchievementResult(
        date=key,
        planned_minutes=planned,
        actual_minutes=actual,
        achievement_rate=calculate_achievement_rate(planned, actual, policy),
    )


def range_stats(
    records: Records,
    plans: Plans,
    dates: Iterable[str],
    policy: str = STRICT,
) -> RangeStats:
    """Sum planned and actual minutes over the dates, then compute one rate.

    This is not an average of daily rates: a short fully-met day and a long
    missed day weigh by their minutes.
    """
    planned = 0
    actual = 0
    for d in dates:
        planned += planned_minutes_for(plans, d)
        actual += actual_minutes_for(records, d)
    return RangeStats(
        planned=planned,
        actual=actual,
        achievement_rate=calculate_achievement_rate(planned, actual, policy),
    )


def weekly_stats(records: Records, plans: Plans, day: date | str, policy: str = STRICT) -> RangeStats:
    """Stats for the Monday-to-Sunday week containing day."""
    return range_stats(records, plans, dates_in_range(*week_bounds(day)), policy)


def monthly_stats(records: Records, plans: Plans, day: date | str, policy: str = STRICT) -> RangeStats:
    return range_stats(records, plans, dates_in_range(*month_bounds(day)), policy)


def yearly_stats(records: Records, plans: Plans, day: date | str, policy: str = STRICT) -> RangeStats:
    return range_stats(records, plans, dates_in_range(*year_bounds(day)), policy)


def custom_period_stats(
    records: Records,
    plans: Plans,
    start: date | str,
    end: date | str,
    policy: str = STRICT,
) -> RangeStats:
    """Stats for an inclusive [start, end] period.

    A reversed period enumerates no dates and yields zeros; callers that
    need to reject it use ``validation.validate_date_range`` first.
    """
    return range_stats(records, plans, dates_in_range(start, end), policy)


# ── Chart & calendar data ─────────────────────────────────────


def daily_series(
    records: Records,
    plans: Plans,
    start: date | str,
    end: date | str,
    policy: str = STRICT,
) -> list[AchievementResult]:
    """Per-day results for every date in [start, end]."""
    return [daily_achievement(records, plans, d, policy) for d in dates_in_range(start, end)]


def month_calendar(
    records: Records,
    plans: Plans,
    year: int,
    month: int,
    today: date | str | None = None,
    policy: str = STRICT,
    table: BandTable = CANONICAL_BANDS,
) -> list[CalendarCell]:
    """Cells for a 6-week month grid starting on Sunday.

    The month is padded with the trailing days of the previous month and
    the leading days of the next one, always 42 cells.
    """
    first = date(year, month, 1)
    # date.weekday() has Monday=0; the grid starts on Sunday.
    lead = (first.weekday() + 1) % 7
    grid_start = first - timedelta(days=lead)
    today_date = to_date(today) if today is not None else None

    cells = []
    for offset in range(CALENDAR_CELLS):
        d = grid_start + timedelta(days=offset)
        result = daily_achievement(records, plans, d, policy)
        cells.append(CalendarCell(
            date=result.date,
            day=d.day,
            is_current_month=(d.year, d.month) == (year, month),
            is_today=d == today_date,
            achievement_rate=result.achievement_rate,
            planned_minutes=result.planned_minutes,
            actual_minutes=result.actual_minutes,
            band=band_for_rate(result.achievement_rate, table),
        ))
    return cells
