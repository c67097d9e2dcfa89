"""
DateTime utilities for slot arithmetic and timezone conversion.

All wall-clock values in the scheduling core are paired with an IANA zone
name and converted with pytz, so daylight-saving offsets are resolved for
the specific date rather than assumed from a static zone label.
"""
from datetime import datetime, timedelta, date, time

import pytz


UTC = pytz.utc


def get_current_datetime() -> datetime:
    """Get the current instant as an aware UTC datetime."""
    return datetime.now(UTC)


def get_timezone(name: str) -> pytz.BaseTzInfo:
    """
    Resolve an IANA zone name.

    Raises:
        pytz.UnknownTimeZoneError: if the name is not a known zone
    """
    return pytz.timezone(name)


def is_valid_timezone(name: str) -> bool:
    """Check whether a string names a known IANA zone."""
    try:
        pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        return False
    return True


def localize(slot_date: date, slot_time: time, timezone: str) -> datetime:
    """
    Attach a zone to a local wall-clock date and time.

    Ambiguous or non-existent local times (DST transitions) are resolved
    with pytz's standard-time interpretation.
    """
    tz = get_timezone(timezone)
    return tz.localize(datetime.combine(slot_date, slot_time), is_dst=False)


def to_utc(slot_date: date, slot_time: time, timezone: str) -> datetime:
    """Convert a local date and time in ``timezone`` to an aware UTC datetime."""
    return localize(slot_date, slot_time, timezone).astimezone(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Normalize a datetime to aware UTC; naive values are taken as UTC."""
    if dt.tzinfo is None:
        return UTC.localize(dt)
    return dt.astimezone(UTC)


def timezone_abbr(slot_date: date, slot_time: time, timezone: str) -> str:
    """
    Abbreviation of ``timezone`` in effect at the given local date and time.

    Returns e.g. "AEST" in winter and "AEDT" in summer for Australia/Sydney.
    """
    return localize(slot_date, slot_time, timezone).tzname() or timezone


def minutes_of_day(value: time) -> int:
    """Minutes elapsed since midnight."""
    return value.hour * 60 + value.minute


def time_from_minutes(total_minutes: int) -> time:
    """Inverse of :func:`minutes_of_day` for values within one day."""
    return time(total_minutes // 60, total_minutes % 60)


def add_minutes(value: time, minutes: int) -> time:
    """Add minutes to a time-of-day, wrapping past midnight."""
    return time_from_minutes((minutes_of_day(value) + minutes) % (24 * 60))


def sunday_based_weekday(value: date) -> int:
    """
    Weekday number with Sunday as 0 and Saturday as 6.

    Availability blocks store their recurring day in this numbering.
    """
    return (value.weekday() + 1) % 7


def date_range(start: date, end: date):
    """Yield each date from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
