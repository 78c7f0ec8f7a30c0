"""Tests for studycal/achievement.py — rate formula, range stats, calendar grid."""

import pytest
from studycal.achievement import (
    CALENDAR_CELLS,
    REWARD_EFFORT,
    STRICT,
    calculate_achievement_rate,
    custom_period_stats,
    daily_achievement,
    daily_series,
    index_plans,
    index_records,
    month_calendar,
    monthly_stats,
    range_stats,
    weekly_stats,
    yearly_stats,
)
from studycal.colors import LEGACY_BANDS
from studycal.models import ActualRecord, PlanEntry


def _records(*pairs):
    return index_records(ActualRecord(d, m) for d, m in pairs)


def _plans(*triples):
    return index_plans(PlanEntry(d, h, m) for d, h, m in triples)


# ── Rate formula ──────────────────────────────────────────────


def test_rate_basic():
    assert calculate_achievement_rate(60, 30) == 50
    assert calculate_achievement_rate(60, 60) == 100
    assert calculate_achievement_rate(120, 90) == 75


def test_rate_not_capped():
    assert calculate_achievement_rate(60, 90) == 150
    assert calculate_achievement_rate(10, 1440) == 14400


def test_rate_rounds_half_up():
    # 1/8 = 12.5%
    assert calculate_achievement_rate(8, 1) == 13
    # 2/3 = 66.67%
    assert calculate_achievement_rate(3, 2) == 67


def test_rate_never_negative():
    assert calculate_achievement_rate(60, -30) == 0


def test_rate_no_plan_strict():
    assert calculate_achievement_rate(0, 0) == 0
    assert calculate_achievement_rate(0, 45) == 0
    assert calculate_achievement_rate(0, 45, STRICT) == 0


def test_rate_no_plan_reward_effort():
    assert calculate_achievement_rate(0, 45, REWARD_EFFORT) == 100
    assert calculate_achievement_rate(0, 0, REWARD_EFFORT) == 0
    assert calculate_achievement_rate(60, 30, REWARD_EFFORT) == 50


# ── Indexing ──────────────────────────────────────────────────


def test_index_records_sums_duplicates():
    records = _records(("2025-03-01", 40), ("2025-03-01", 50))
    assert records["2025-03-01"].minutes == 90


def test_index_records_caps_at_one_day():
    records = _records(("2025-03-01", 1000), ("2025-03-01", 1000))
    assert records["2025-03-01"].minutes == 1440


def test_index_plans_last_wins():
    plans = _plans(("2025-03-01", 1, 0), ("2025-03-01", 2, 30))
    assert plans["2025-03-01"].total_minutes == 150


# ── Daily & range ─────────────────────────────────────────────


def test_daily_achievement_end_to_end():
    records = _records(("2025-03-01", 40), ("2025-03-01", 50))
    plans = _plans(("2025-03-01", 2, 0))
    result = daily_achievement(records, plans, "2025-03-01")
    assert result.planned_minutes == 120
    assert result.actual_minutes == 90
    assert result.achievement_rate == 75


def test_daily_achievement_missing_data():
    result = daily_achievement({}, {}, "2025-03-01")
    assert result.planned_minutes == 0
    assert result.actual_minutes == 0
    assert result.achievement_rate == 0


def test_range_is_sum_then_rate():
    records = _records(("2025-03-01", 30))
    plans = _plans(("2025-03-01", 0, 30), ("2025-03-02", 1, 30))
    stats = range_stats(records, plans, ["2025-03-01", "2025-03-02"])
    assert stats.planned == 120
    assert stats.actual == 30
    assert stats.achievement_rate == 25


def test_range_empty_dates():
    stats = range_stats({}, {}, [])
    assert (stats.planned, stats.actual, stats.achievement_rate) == (0, 0, 0)


def test_weekly_stats_monday_to_sunday():
    # Week of Mon 2025-02-24 .. Sun 2025-03-02; 2025-03-03 is the next week
    records = _records(("2025-02-24", 60), ("2025-03-02", 60), ("2025-03-03", 600))
    plans = _plans(("2025-02-24", 1, 0), ("2025-03-02", 1, 0), ("2025-03-03", 1, 0))
    stats = weekly_stats(records, plans, "2025-02-27")
    assert stats.planned == 120
    assert stats.actual == 120
    assert stats.achievement_rate == 100


def test_monthly_stats():
    records = _records(("2025-03-01", 60), ("2025-03-31", 30), ("2025-04-01", 999))
    plans = _plans(("2025-03-01", 1, 0), ("2025-03-31", 1, 0))
    stats = monthly_stats(records, plans, "2025-03-15")
    assert stats.planned == 120
    assert stats.actual == 90
    assert stats.achievement_rate == 75


def test_yearly_stats():
    records = _records(("2025-01-01", 60), ("2025-12-31", 60), ("2024-12-31", 60))
    plans = _plans(("2025-01-01", 1, 0), ("2025-12-31", 3, 0))
    stats = yearly_stats(records, plans, "2025-07-01")
    assert stats.planned == 240
    assert stats.actual == 120
    assert stats.achievement_rate == 50


def test_custom_period_stats_inclusive():
    records = _records(("2025-03-01", 60), ("2025-03-03", 60))
    plans = _plans(("2025-03-01", 1, 0), ("2025-03-03", 1, 0))
    stats = custom_period_stats(records, plans, "2025-03-01", "2025-03-03")
    assert stats.achievement_rate == 100
    assert stats.actual == 120


def test_custom_period_reversed_yields_zeros():
    records = _records(("2025-03-01", 60))
    plans = _plans(("2025-03-01", 1, 0))
    stats = custom_period_stats(records, plans, "2025-03-05", "2025-03-01")
    assert (stats.planned, stats.actual, stats.achievement_rate) == (0, 0, 0)


def test_range_policy_reward_effort():
    records = _records(("2025-03-01", 30))
    stats = range_stats(records, {}, ["2025-03-01"], REWARD_EFFORT)
    assert stats.achievement_rate == 100


def test_daily_series():
    records = _records(("2025-03-02", 30))
    plans = _plans(("2025-03-02", 1, 0))
    series = daily_series(records, plans, "2025-03-01", "2025-03-03")
    assert [r.date for r in series] == ["2025-03-01", "2025-03-02", "2025-03-03"]
    assert [r.achievement_rate for r in series] == [0, 50, 0]


# ── Month calendar ────────────────────────────────────────────


def test_month_calendar_shape():
    cells = month_calendar({}, {}, 2025, 3)
    assert len(cells) == CALENDAR_CELLS == 42
    # 2025-03-01 is a Saturday; the Sunday-first grid opens on 2025-02-23
    assert cells[0].date == "2025-02-23"
    assert cells[6].date == "2025-03-01"
    assert cells[-1].date == "2025-04-05"
    assert not cells[0].is_current_month
    assert cells[6].is_current_month
    assert sum(c.is_current_month for c in cells) == 31


def test_month_calendar_starting_on_sunday():
    # 2025-06-01 is a Sunday
    cells = month_calendar({}, {}, 2025, 6)
    assert cells[0].date == "2025-06-01"
    assert cells[0].day == 1


def test_month_calendar_today_and_bands():
    records = _records(("2025-03-01", 40), ("2025-03-01", 50))
    plans = _plans(("2025-03-01", 2, 0))
    cells = month_calendar(records, plans, 2025, 3, today="2025-03-01")
    cell = cells[6]
    assert cell.is_today
    assert cell.achievement_rate == 75
    assert cell.band == "brown"
    assert sum(c.is_today for c in cells) == 1
    assert cells[7].band == "white"


def test_month_calendar_legacy_table():
    records = _records(("2025-03-01", 102))
    plans = _plans(("2025-03-01", 2, 0))
    cells = month_calendar(records, plans, 2025, 3, table=LEGACY_BANDS)
    # 102/120 = 85% -> black under the legacy table (no blue band)
    assert cells[6].achievement_rate == 85
    assert cells[6].band == "black"


@pytest.mark.parametrize("year,month", [(2024, 2), (2025, 12), (2026, 1)])
def test_month_calendar_always_42(year, month):
    cells = month_calendar({}, {}, year, month)
    assert len(cells) == 42
    assert cells[0].date < cells[-1].date
