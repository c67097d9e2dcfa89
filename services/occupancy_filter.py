"""
Occupancy filtering.

Removes provider/time pairs already consumed by a booking or held by an
active reservation. Always recomputed from the current snapshot; never cache
the output across requests.
"""
from datetime import datetime
from typing import Iterable, List, Optional, Set

from domain.enums import BookingStatus
from domain.models import BookingRecord, ReservationRecord
from domain.slots import OccupancyKey, TimeSlot


def booking_occupies(booking: BookingRecord, now: Optional[datetime] = None) -> bool:
    """
    Whether a booking still consumes its slot at ``now``.

    Cancelled bookings never do. An unpaid booking stops occupying once the
    hold it was opened on has lapsed.
    """
    status = BookingStatus(booking.status)
    if status == BookingStatus.CANCELLED:
        return False
    if (
        status == BookingStatus.PENDING_PAYMENT
        and now is not None
        and booking.reservation_expires_at is not None
        and booking.reservation_expires_at <= now
    ):
        return False
    return True


def occupied_keys(
    bookings: Iterable[BookingRecord],
    reservations: Iterable[ReservationRecord],
    now: Optional[datetime] = None,
) -> Set[OccupancyKey]:
    """(provider, date, time) keys taken by live bookings or holds."""
    keys: Set[OccupancyKey] = set()
    for booking in bookings:
        if booking_occupies(booking, now):
            keys.add((booking.provider_id, booking.scheduled_date, booking.time_window_start))
    for reservation in reservations:
        keys.add((reservation.provider_id, reservation.date, reservation.time))
    return keys


def filter_occupied(
    slots: Iterable[TimeSlot],
    bookings: Iterable[BookingRecord],
    reservations: Iterable[ReservationRecord],
    now: Optional[datetime] = None,
) -> List[TimeSlot]:
    """
    Subtract occupied providers from each slot.

    ``reservations`` must already be restricted to active holds. Pass ``now``
    so unpaid bookings on lapsed holds are ignored. Slots left with no
    provider are dropped. Output order follows ``slots``.
    """
    taken = occupied_keys(bookings, reservations, now)
    if not taken:
        return [slot for slot in slots if slot.provider_ids]

    result = []
    for slot in slots:
        free = frozenset(
            provider_id
            for provider_id in slot.provider_ids
            if (provider_id, slot.date, slot.time) not in taken
        )
        if free:
            result.append(slot if free == slot.provider_ids else slot.with_providers(free))
    return result
