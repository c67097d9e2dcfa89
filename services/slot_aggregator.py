"""
Slot aggregation across providers.

Merges every provider's grid for a date into one list of time-of-day slots,
each annotated with the providers free at that time. ``blocked`` entries
never add capacity; they only remove their provider from overlapping slots.
"""
import logging
from datetime import date, time
from typing import Dict, Iterable, List, Optional, Set

from core.exceptions import InvalidWindow
from core.utils_datetime import is_valid_timezone, minutes_of_day, sunday_based_weekday
from domain.enums import AvailabilityKind
from domain.models import AvailabilityBlockRecord
from domain.slots import SlotKey, TimeSlot
from .slot_grid import DEFAULT_GRANULARITY_MINUTES, generate_time_grid


logger = logging.getLogger(__name__)


def block_matches_date(block: AvailabilityBlockRecord, slot_date: date) -> bool:
    """
    Check if a block applies to a date.

    Recurring blocks match on weekday (Sunday = 0); one-off and blocked
    entries match on their specific date. Inactive blocks never match.
    """
    if not block.is_active:
        return False

    kind = AvailabilityKind(block.kind)
    if kind == AvailabilityKind.RECURRING:
        return block.day_of_week is not None and block.day_of_week == sunday_based_weekday(slot_date)
    return block.specific_date is not None and block.specific_date == slot_date


def _block_order(block: AvailabilityBlockRecord):
    return (block.provider_id, block.start_time, block.end_time, str(block.id))


def _slot_overlaps_block(slot: TimeSlot, block: AvailabilityBlockRecord, granularity_minutes: int) -> bool:
    slot_start = minutes_of_day(slot.time)
    slot_end = slot_start + granularity_minutes
    return slot_start < minutes_of_day(block.end_time) and slot_end > minutes_of_day(block.start_time)


def aggregate_slots(
    slot_date: date,
    blocks: Iterable[AvailabilityBlockRecord],
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
) -> List[TimeSlot]:
    """
    Build the merged slot list for one date.

    Args:
        slot_date: date to aggregate
        blocks: availability blocks of all providers (any date; filtered here)
        granularity_minutes: slot length

    Returns:
        Slots sorted by time, each with the union of contributing providers
        minus providers blocked at that time. Empty when nothing is offered.
    """
    offering: List[AvailabilityBlockRecord] = []
    blocked: List[AvailabilityBlockRecord] = []
    for block in blocks:
        if not block_matches_date(block, slot_date):
            continue
        if AvailabilityKind(block.kind) == AvailabilityKind.BLOCKED:
            blocked.append(block)
        else:
            offering.append(block)

    # Stable order so the representative slot of each key is deterministic.
    offering.sort(key=_block_order)

    merged: Dict[SlotKey, TimeSlot] = {}
    providers: Dict[SlotKey, Set[str]] = {}
    for block in offering:
        try:
            grid = generate_time_grid(
                block.start_time,
                block.end_time,
                slot_date,
                block.provider_id,
                block.timezone,
                granularity_minutes,
            )
        except InvalidWindow as e:
            logger.warning(f"Skipping malformed availability block {block.id}: {e.message}")
            continue

        for slot in grid:
            if slot.key not in merged:
                merged[slot.key] = slot
                providers[slot.key] = set()
            providers[slot.key].update(slot.provider_ids)

    for block in blocked:
        for key, slot in merged.items():
            if block.provider_id in providers[key] and _slot_overlaps_block(slot, block, granularity_minutes):
                providers[key].discard(block.provider_id)

    result = [
        merged[key].with_providers(providers[key])
        for key in sorted(merged)
        if providers[key]
    ]
    logger.debug(
        f"Aggregated {len(result)} slots for {slot_date} "
        f"from {len(offering)} blocks ({len(blocked)} blocked)"
    )
    return result


def provider_timezone(
    slot_date: date,
    blocks: Iterable[AvailabilityBlockRecord],
    provider_id: str,
    slot_time: time,
    granularity_minutes: int = DEFAULT_GRANULARITY_MINUTES,
) -> Optional[str]:
    """
    Zone of the provider's own window that offers ``slot_time`` on a date.

    A merged slot carries the instant of its first provider only, so callers
    acting for one provider resolve that provider's zone here.
    """
    start = minutes_of_day(slot_time)
    own = sorted(
        (
            block for block in blocks
            if block.provider_id == provider_id
            and AvailabilityKind(block.kind) != AvailabilityKind.BLOCKED
            and block_matches_date(block, slot_date)
            and is_valid_timezone(block.timezone)
        ),
        key=_block_order,
    )
    for block in own:
        offset = start - minutes_of_day(block.start_time)
        if offset >= 0 and offset % granularity_minutes == 0 and start + granularity_minutes <= minutes_of_day(block.end_time):
            return block.timezone
    return None
