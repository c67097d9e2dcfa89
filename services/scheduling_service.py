"""
Scheduling facade.

One object per unit of work: it binds the availability, reservation and
booking services to a single session and clock, and is what the HTTP layer
talks to.
"""
from datetime import date, datetime, time
from typing import Callable, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from core.config import Settings, settings as default_settings
from core.utils_datetime import get_current_datetime
from domain.enums import BookingStatus
from domain.models import (
    AvailabilityBlockCreate,
    AvailabilityBlockRecord,
    BookingRecord,
    CallAttemptRecord,
    ReservationRecord,
)
from domain.slots import TimeSlot
from .availability_service import AvailabilityService
from .booking_service import BookingService
from .reservation_manager import ReservationManager


class SchedulingService:
    """Public entry point for slot discovery, holds and bookings."""

    def __init__(
        self,
        session: Session,
        clock: Callable[[], datetime] = get_current_datetime,
        settings: Optional[Settings] = None,
    ):
        self.session = session
        self.settings = settings or default_settings
        self.reservations = ReservationManager(
            session,
            ttl_minutes=self.settings.reservation_ttl_minutes,
            clock=clock,
        )
        self.availability = AvailabilityService(session, self.reservations, clock=clock, settings=self.settings)
        self.bookings = BookingService(session, self.reservations, clock=clock, settings=self.settings)

    # Availability

    def create_block(self, data: AvailabilityBlockCreate) -> AvailabilityBlockRecord:
        return self.availability.create_block(data)

    def deactivate_block(self, block_id: UUID) -> AvailabilityBlockRecord:
        return self.availability.deactivate_block(block_id)

    def list_provider_blocks(self, provider_id: str, include_inactive: bool = False) -> List[AvailabilityBlockRecord]:
        return self.availability.list_provider_blocks(provider_id, include_inactive=include_inactive)

    def list_available_slots(self, slot_date: date) -> List[TimeSlot]:
        return self.availability.list_available_slots(slot_date)

    def get_dates_with_availability(self, start_date: date, end_date: date) -> List[date]:
        return self.availability.get_dates_with_availability(start_date, end_date)

    # Reservations

    def reserve_slot(self, requester_id: str, provider_id: str, slot_date: date, slot_time: time) -> ReservationRecord:
        return self.availability.reserve_slot(requester_id, provider_id, slot_date, slot_time)

    def release_reservation(self, reservation_id: UUID) -> None:
        self.reservations.release_reservation(reservation_id)

    def get_reservation(self, reservation_id: UUID) -> Optional[ReservationRecord]:
        return self.reservations.get_active(reservation_id)

    def seconds_remaining(self, reservation: ReservationRecord) -> int:
        return self.reservations.seconds_remaining(reservation)

    # Bookings

    def create_booking(self, reservation_id: UUID) -> BookingRecord:
        return self.bookings.create_booking(reservation_id)

    def confirm_payment(
        self,
        booking_id: UUID,
        amount_paid: Optional[int] = None,
        payment_reference: Optional[str] = None,
    ) -> BookingRecord:
        return self.bookings.confirm_payment(booking_id, amount_paid=amount_paid, payment_reference=payment_reference)

    def log_call_attempt(self, booking_id: UUID, answered: bool, notes: Optional[str] = None) -> CallAttemptRecord:
        return self.bookings.log_call_attempt(booking_id, answered, notes=notes)

    def mark_no_answer(self, booking_id: UUID) -> BookingRecord:
        return self.bookings.mark_no_answer(booking_id)

    def complete_booking(self, booking_id: UUID, doctor_notes: Optional[str] = None) -> BookingRecord:
        return self.bookings.complete(booking_id, doctor_notes=doctor_notes)

    def cancel_booking(self, booking_id: UUID) -> BookingRecord:
        return self.bookings.cancel_booking(booking_id)

    def reschedule_booking(self, booking_id: UUID, reservation_id: UUID) -> BookingRecord:
        return self.bookings.reschedule_booking(booking_id, reservation_id)

    def get_booking(self, booking_id: UUID) -> BookingRecord:
        return self.bookings.get_booking(booking_id)

    def list_provider_bookings(
        self,
        provider_id: str,
        statuses: Optional[Iterable[BookingStatus]] = None,
    ) -> List[BookingRecord]:
        return self.bookings.list_provider_bookings(provider_id, statuses)

    def list_requester_bookings(self, requester_id: str) -> List[BookingRecord]:
        return self.bookings.list_requester_bookings(requester_id)

    def list_call_attempts(self, booking_id: UUID) -> List[CallAttemptRecord]:
        return self.bookings.list_call_attempts(booking_id)
