"""
Time grid generation.

Turns one provider's window on one date into fixed-size bookable slots.
"""
from datetime import date, time
from typing import List

from core.exceptions import InvalidWindow
from core.utils_datetime import (
    is_valid_timezone,
    minutes_of_day,
    time_from_minutes,
    timezone_abbr,
    to_utc,
)
from domain.slots import TimeSlot


DEFAULT_GRANULARITY_MINUTES = 5


def validate_window(start_time: time, end_time: time, timezone: str) -> None:
    """
    Reject a malformed availability window.

    Raises:
        InvalidWindow: if start_time >= end_time or the zone is unknown
    """
    if start_time >= end_time:
        raise InvalidWindow(
            f"Window start {start_time:%H:%M} must be before end {end_time:%H:%M}",
            details={"start_time": start_time.isoformat(), "end_time": end_time.isoformat()},
        )
    if not is_valid_timezone(timezone):
        raise InvalidWindow(f"Unknown timezone: {timezone}", details={"timezone": timezone})


def calculate_slot_count(
    start_time: time,
    end_time: time,
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
) -> int:
    """Number of whole slots that fit in [start_time, end_time)."""
    span = minutes_of_day(end_time) - minutes_of_day(start_time)
    if span <= 0:
        return 0
    return span // granularity_minutes


def generate_time_grid(
    start_time: time,
    end_time: time,
    slot_date: date,
    provider_id: str,
    timezone: str,
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
) -> List[TimeSlot]:
    """
    Generate the slots of one provider's window on one date.

    Only slots fully contained in [start_time, end_time) are produced; a
    trailing remainder shorter than the granularity is dropped. The zone
    abbreviation is resolved per slot so DST is reflected.

    Args:
        start_time: window start (local wall clock)
        end_time: window end, exclusive
        slot_date: calendar date of the window
        provider_id: provider offering the window
        timezone: IANA zone of the window
        granularity_minutes: slot length

    Returns:
        Slots ordered by time, each carrying only ``provider_id``

    Raises:
        InvalidWindow: if start_time >= end_time or the zone is unknown
    """
    validate_window(start_time, end_time, timezone)

    start = minutes_of_day(start_time)
    providers = frozenset([provider_id])

    slots = []
    for index in range(calculate_slot_count(start_time, end_time, granularity_minutes)):
        slot_time = time_from_minutes(start + index * granularity_minutes)
        slots.append(
            TimeSlot(
                date=slot_date,
                time=slot_time,
                utc_timestamp=to_utc(slot_date, slot_time, timezone),
                display_timezone=timezone,
                timezone_abbr=timezone_abbr(slot_date, slot_time, timezone),
                provider_ids=providers,
            )
        )
    return slots
