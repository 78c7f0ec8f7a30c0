"""Tests for studycal/dates.py — date strings, ranges and timestamps."""

from datetime import date, datetime, timezone

from studycal.dates import (
    dates_in_range,
    format_timestamp,
    is_valid_date_string,
    month_bounds,
    normalize_date,
    parse_timestamp,
    to_date,
    week_bounds,
    year_bounds,
)


def test_is_valid_date_string():
    assert is_valid_date_string("2025-03-01")
    assert is_valid_date_string("2024-02-29")
    assert not is_valid_date_string("2025-02-29")
    assert not is_valid_date_string("2025-13-01")
    assert not is_valid_date_string("2025-3-1")
    assert not is_valid_date_string("")
    assert not is_valid_date_string(None)
    assert not is_valid_date_string(20250301)


def test_to_date():
    assert to_date("2025-03-01") == date(2025, 3, 1)
    assert to_date(date(2025, 3, 1)) == date(2025, 3, 1)
    assert to_date(datetime(2025, 3, 1, 23, 59)) == date(2025, 3, 1)


def test_normalize_date():
    assert normalize_date("  2025-03-01 ") == "2025-03-01"
    assert normalize_date("not a date") == "not a date"
    assert normalize_date("") == ""


def test_dates_in_range_inclusive():
    assert dates_in_range("2025-02-27", "2025-03-02") == [
        "2025-02-27", "2025-02-28", "2025-03-01", "2025-03-02",
    ]


def test_dates_in_range_single_day():
    assert dates_in_range("2025-03-01", "2025-03-01") == ["2025-03-01"]


def test_dates_in_range_reversed_is_empty():
    assert dates_in_range("2025-03-05", "2025-03-01") == []


def test_week_bounds_monday_start():
    # 2025-03-01 is a Saturday
    start, end = week_bounds("2025-03-01")
    assert start == date(2025, 2, 24)
    assert end == date(2025, 3, 2)


def test_week_bounds_on_monday():
    start, end = week_bounds("2025-03-03")
    assert start == date(2025, 3, 3)
    assert end == date(2025, 3, 9)


def test_month_bounds():
    assert month_bounds("2024-02-10") == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_bounds("2025-12-31") == (date(2025, 12, 1), date(2025, 12, 31))


def test_year_bounds():
    assert year_bounds("2025-06-15") == (date(2025, 1, 1), date(2025, 12, 31))


def test_format_timestamp_milliseconds():
    moment = datetime(2025, 3, 1, 9, 0, 5, 123456, tzinfo=timezone.utc)
    assert format_timestamp(moment) == "2025-03-01T09:00:05.123+00:00"


def test_parse_timestamp_z_suffix():
    parsed = parse_timestamp("2025-03-01T09:00:00.000Z")
    assert parsed == datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def test_parse_timestamp_naive_is_utc():
    parsed = parse_timestamp("2025-03-01T09:00:00")
    assert parsed.tzinfo is not None
    assert parsed == datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc)


def test_parse_timestamp_invalid():
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None
    assert parse_timestamp(12345) is None


def test_timestamp_roundtrip():
    moment = datetime(2025, 3, 1, 9, 30, 0, 250000, tzinfo=timezone.utc)
    assert parse_timestamp(format_timestamp(moment)) == moment
