"""Tests for studycal/timecalc.py — hour/minute arithmetic and clamping."""

import pytest
from studycal.timecalc import (
    MAX_MINUTES_PER_DAY,
    clamp_minutes,
    format_duration,
    from_minutes,
    round_half_up,
    to_minutes,
)


def test_to_minutes():
    assert to_minutes(2, 30) == 150
    assert to_minutes(0, 0) == 0
    assert to_minutes(24, 0) == MAX_MINUTES_PER_DAY


def test_from_minutes():
    assert from_minutes(150) == (2, 30)
    assert from_minutes(59) == (0, 59)
    assert from_minutes(1440) == (24, 0)


def test_from_minutes_negative():
    with pytest.raises(ValueError, match="Negative"):
        from_minutes(-1)


@pytest.mark.parametrize("total", [0, 1, 59, 60, 61, 725, 1440])
def test_from_minutes_inverts_to_minutes(total):
    assert to_minutes(*from_minutes(total)) == total


def test_clamp_minutes_bounds():
    assert clamp_minutes(-10) == 0
    assert clamp_minutes(5000) == MAX_MINUTES_PER_DAY
    assert clamp_minutes(90) == 90
    assert clamp_minutes(100, maximum=60) == 60


def test_clamp_minutes_rounds_half_up():
    assert clamp_minutes(29.5) == 30
    assert clamp_minutes(29.4) == 29
    assert clamp_minutes(0.5) == 1


@pytest.mark.parametrize("value", [None, True, "abc", float("nan"), float("inf"), float("-inf"), [1]])
def test_clamp_minutes_garbage_is_zero(value):
    assert clamp_minutes(value) == 0


def test_clamp_minutes_numeric_string():
    assert clamp_minutes("45") == 45


def test_clamp_minutes_huge_int():
    assert clamp_minutes(10**400) == MAX_MINUTES_PER_DAY
    assert clamp_minutes(-(10**400)) == 0
    assert round_half_up(10**400) == 10**400


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(-0.5) == 0
    assert round_half_up(74.9) == 75


def test_format_duration():
    assert format_duration(90) == "1h 30m"
    assert format_duration(0) == "0h 0m"
