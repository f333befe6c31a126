"""Delivery cadence parsing and matching.

Schedules are stored as ``<kind>:<value>`` strings:

* ``weekly:monday`` - every Monday
* ``biweekly:friday`` - every other Friday, counted from the last delivery
* ``monthly:1,15`` - on the 1st and 15th of each month

A missing schedule means the theme is delivered every day.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union

from theme_newsletter.core.errors import ScheduleParseError

logger = logging.getLogger(__name__)

DAY_OF_WEEK = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

LOOKAHEAD_DAYS = 62


@dataclass(frozen=True)
class Weekly:
    """Deliver on one day of every week."""

    day_of_week: int

    def __post_init__(self) -> None:
        if not 0 <= self.day_of_week <= 6:
            raise ValueError(f"day_of_week out of range: {self.day_of_week}")


@dataclass(frozen=True)
class Biweekly:
    """Deliver on one day of every other week."""

    day_of_week: int

    def __post_init__(self) -> None:
        if not 0 <= self.day_of_week <= 6:
            raise ValueError(f"day_of_week out of range: {self.day_of_week}")


@dataclass(frozen=True)
class Monthly:
    """Deliver on fixed days of the month."""

    days_of_month: frozenset[int]

    def __post_init__(self) -> None:
        if not self.days_of_month:
            raise ValueError("days_of_month cannot be empty")
        if any(not 1 <= d <= 31 for d in self.days_of_month):
            raise ValueError(f"days_of_month out of range: {sorted(self.days_of_month)}")


CadenceSpec = Union[Weekly, Biweekly, Monthly]
ScheduleLike = Union[str, Weekly, Biweekly, Monthly, None]


def parse_schedule(schedule: str) -> CadenceSpec:
    """Parse a schedule string.

    Raises:
        ScheduleParseError: if the string is malformed. Nothing is coerced:
            one bad day number invalidates the whole monthly list.
    """
    if not isinstance(schedule, str) or not schedule:
        raise ScheduleParseError(schedule, "expected a non-empty string")

    parts = schedule.strip().lower().split(":")
    if len(parts) != 2:
        raise ScheduleParseError(schedule, "expected exactly one ':' separator")

    kind, value = (part.strip() for part in parts)

    if kind in ("weekly", "biweekly"):
        day = DAY_OF_WEEK.get(value)
        if day is None:
            raise ScheduleParseError(schedule, f"unknown day name {value!r}")
        return Weekly(day) if kind == "weekly" else Biweekly(day)

    if kind == "monthly":
        days = set()
        for token in value.split(","):
            token = token.strip()
            if not token.isdecimal():
                raise ScheduleParseError(schedule, f"not a day number: {token!r}")
            day = int(token)
            if day < 1 or day > 31:
                raise ScheduleParseError(schedule, f"day out of range: {day}")
            days.add(day)
        return Monthly(frozenset(days))

    raise ScheduleParseError(schedule, f"unknown schedule kind {kind!r}")


def should_deliver_on(
    schedule: ScheduleLike,
    target_date: Union[date, datetime],
    last_delivered_at: Optional[Union[date, datetime]] = None,
) -> bool:
    """Check whether a theme is due on the target date.

    An unparsable schedule never fires; the anomaly is logged and the
    caller carries on with the next theme.
    """
    if not schedule:
        return True

    if isinstance(schedule, str):
        try:
            spec = parse_schedule(schedule)
        except ScheduleParseError as e:
            logger.warning("Invalid schedule format: %s", e)
            return False
    else:
        spec = schedule

    return _matches(spec, _as_date(target_date), _as_date(last_delivered_at))


def next_delivery_date(
    schedule: ScheduleLike,
    from_date: Union[date, datetime],
    last_delivered_at: Optional[Union[date, datetime]] = None,
) -> Optional[date]:
    """Find the first due date on or after `from_date`.

    Scans day by day for `LOOKAHEAD_DAYS` days. Returns None when the schedule
    is unparsable or nothing in the window matches.
    """
    start = _as_date(from_date)
    if not schedule:
        return start

    if isinstance(schedule, str):
        try:
            spec = parse_schedule(schedule)
        except ScheduleParseError:
            return None
    else:
        spec = schedule

    last = _as_date(last_delivered_at)
    for offset in range(LOOKAHEAD_DAYS):
        candidate = start + timedelta(days=offset)
        if _matches(spec, candidate, last):
            return candidate
    return None


def _matches(spec: CadenceSpec, target: date, last: Optional[date]) -> bool:
    if isinstance(spec, Weekly):
        return target.weekday() == spec.day_of_week

    if isinstance(spec, Biweekly):
        if target.weekday() != spec.day_of_week:
            return False
        if last is None:
            return True
        # Counted from the last delivery, not from calendar week parity
        weeks_since = (target - last).days // 7
        return weeks_since >= 2

    if isinstance(spec, Monthly):
        return target.day in spec.days_of_month

    return False


def _as_date(value: Optional[Union[date, datetime]]) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    return value
