"""Tests for schedule parsing and matching."""

from datetime import date, datetime, timedelta, timezone

import pytest

from theme_newsletter.core import (
    Biweekly,
    Monthly,
    ScheduleParseError,
    Weekly,
    next_delivery_date,
    parse_schedule,
    should_deliver_on,
)

# 2024-12-02 is a Monday
MONDAY = date(2024, 12, 2)


@pytest.mark.parametrize(
    "schedule, expected",
    [
        ("weekly:monday", Weekly(0)),
        ("WEEKLY:Monday", Weekly(0)),
        ("weekly :monday", Weekly(0)),
        (" Biweekly : Friday ", Biweekly(4)),
        ("weekly:sunday", Weekly(6)),
        ("biweekly:friday", Biweekly(4)),
        ("BiWeekly:FRIDAY", Biweekly(4)),
        ("monthly:1,15", Monthly(frozenset({1, 15}))),
        ("monthly: 1, 15 ,31", Monthly(frozenset({1, 15, 31}))),
        ("Monthly:7", Monthly(frozenset({7}))),
    ],
)
def test_parse_valid_schedules(schedule: str, expected) -> None:
    """Test that valid schedules parse case-insensitively."""
    assert parse_schedule(schedule) == expected


@pytest.mark.parametrize(
    "schedule",
    [
        "weekly",
        "weekly:",
        "weekly:funday",
        "weekly:monday:extra",
        "daily:monday",
        "monthly:",
        "monthly:0",
        "monthly:32",
        "monthly:1,abc",
        "monthly:1,,15",
        "monthly:-1",
        "monthly:1.5",
        "",
    ],
)
def test_parse_invalid_schedules(schedule: str) -> None:
    """Test that malformed schedules are rejected."""
    with pytest.raises(ScheduleParseError):
        parse_schedule(schedule)


def test_parse_monthly_is_all_or_nothing() -> None:
    """Test that one bad entry invalidates the whole monthly list."""
    with pytest.raises(ScheduleParseError, match="day out of range"):
        parse_schedule("monthly:1,15,40")


def test_parse_error_is_value_error() -> None:
    """Test that parse errors can be caught as ValueError."""
    with pytest.raises(ValueError):
        parse_schedule("hourly:1")


def test_cadence_invariants() -> None:
    """Test that out-of-range cadences cannot be built directly."""
    with pytest.raises(ValueError):
        Weekly(7)
    with pytest.raises(ValueError):
        Biweekly(-1)
    with pytest.raises(ValueError):
        Monthly(frozenset())
    with pytest.raises(ValueError):
        Monthly(frozenset({0}))


@pytest.mark.parametrize("schedule", [None, ""])
def test_no_schedule_always_delivers(schedule) -> None:
    """Test that a missing schedule means daily delivery."""
    for offset in range(7):
        target = MONDAY + timedelta(days=offset)
        assert should_deliver_on(schedule, target)
        assert should_deliver_on(schedule, target, MONDAY)


def test_weekly_matches_only_its_day() -> None:
    """Test weekly schedule on every day of a week."""
    for offset in range(14):
        target = MONDAY + timedelta(days=offset)
        assert should_deliver_on("weekly:monday", target) == (target.weekday() == 0)


def test_weekly_accepts_parsed_spec() -> None:
    """Test matching with an already parsed cadence."""
    assert should_deliver_on(Weekly(2), date(2024, 12, 4))
    assert not should_deliver_on(Weekly(2), date(2024, 12, 5))


def test_biweekly_first_delivery() -> None:
    """Test biweekly fires on the matching day when never delivered."""
    assert should_deliver_on("biweekly:monday", MONDAY)
    assert not should_deliver_on("biweekly:monday", MONDAY + timedelta(days=1))


def test_biweekly_waits_two_weeks() -> None:
    """Test biweekly is anchored on the last delivery."""
    last = date(2024, 12, 2)
    assert not should_deliver_on("biweekly:monday", date(2024, 12, 9), last)
    assert should_deliver_on("biweekly:monday", date(2024, 12, 16), last)
    assert should_deliver_on("biweekly:monday", date(2024, 12, 23), last)


def test_biweekly_with_timestamps() -> None:
    """Test biweekly counts calendar days when given datetimes."""
    last = datetime(2024, 12, 2, 9, 30, tzinfo=timezone.utc)
    target = datetime(2024, 12, 16, 6, 0, tzinfo=timezone.utc)
    assert should_deliver_on("biweekly:monday", target, last)


def test_biweekly_missed_week_self_corrects() -> None:
    """Test a late delivery shifts the following fortnight."""
    # Delivered on the third Monday instead of the second
    last = date(2024, 12, 16)
    assert not should_deliver_on("biweekly:monday", date(2024, 12, 23), last)
    assert should_deliver_on("biweekly:monday", date(2024, 12, 30), last)


def test_monthly_days() -> None:
    """Test monthly schedule on listed days."""
    assert should_deliver_on("monthly:1,15", date(2024, 12, 1))
    assert not should_deliver_on("monthly:1,15", date(2024, 12, 10))
    assert should_deliver_on("monthly:1,15", date(2024, 12, 15))


def test_monthly_31_skips_short_months() -> None:
    """Test day 31 never matches in a 30-day month."""
    for day in range(1, 31):
        assert not should_deliver_on("monthly:31", date(2024, 11, day))


@pytest.mark.parametrize("schedule", ["weekly:funday", "monthly:0", "nonsense"])
def test_invalid_schedule_never_delivers(schedule: str, caplog) -> None:
    """Test that invalid schedules fail closed and log a warning."""
    with caplog.at_level("WARNING"):
        assert not should_deliver_on(schedule, MONDAY)
    assert "Invalid schedule format" in caplog.text


def test_next_delivery_without_schedule_is_today() -> None:
    """Test next delivery for daily themes."""
    assert next_delivery_date(None, MONDAY) == MONDAY


def test_next_delivery_weekly() -> None:
    """Test next delivery scans forward to the matching day."""
    assert next_delivery_date("weekly:friday", MONDAY) == date(2024, 12, 6)
    assert next_delivery_date("weekly:monday", MONDAY) == MONDAY


def test_next_delivery_biweekly() -> None:
    """Test next delivery respects the last delivery anchor."""
    assert next_delivery_date("biweekly:monday", date(2024, 12, 3), date(2024, 12, 2)) == date(2024, 12, 16)


def test_next_delivery_monthly_crosses_month() -> None:
    """Test next delivery for monthly days in the following month."""
    assert next_delivery_date("monthly:1", date(2024, 12, 2)) == date(2025, 1, 1)


def test_next_delivery_monthly_31_from_february() -> None:
    """Test a day-31 schedule skips February."""
    assert next_delivery_date("monthly:31", date(2025, 2, 1)) == date(2025, 3, 31)


def test_next_delivery_invalid_schedule() -> None:
    """Test next delivery returns None for invalid schedules."""
    assert next_delivery_date("weekly:funday", MONDAY) is None


def test_next_delivery_accepts_datetime() -> None:
    """Test next delivery returns a date when given a datetime."""
    result = next_delivery_date("weekly:tuesday", datetime(2024, 12, 2, 18, 0))
    assert result == date(2024, 12, 3)
