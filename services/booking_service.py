"""
Booking lifecycle for phone consultations.

    pending_payment -> booked -> in_progress -> completed
                          |
                          +-> no_answer (after 3 unanswered call attempts)

``cancelled`` is reachable from any non-terminal status. Guard violations
raise typed errors; nothing here retries.
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.config import Settings, settings as default_settings
from core.exceptions import (
    BookingNotFound,
    InsufficientAttempts,
    InvalidBookingTransition,
    MaxAttemptsReached,
    PaymentNotConfirmed,
    RescheduleWindowClosed,
    ReservationExpired,
    SlotNoLongerAvailable,
)
from core.utils_datetime import add_minutes, ensure_utc, get_current_datetime
from db.models_sqlalchemy import Booking, CallAttempt
from db.repositories import AuditRepository, BookingRepository
from domain.enums import AuditAction, BookingStatus
from domain.models import BookingRecord, CallAttemptRecord, ReservationRecord
from .reservation_manager import ReservationManager


logger = logging.getLogger(__name__)


class BookingService:
    """Drives a booking through its status machine."""

    def __init__(
        self,
        session: Session,
        reservation_manager: Optional[ReservationManager] = None,
        clock: Callable[[], datetime] = get_current_datetime,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the booking service.

        Args:
            session: SQLAlchemy session; the service flushes but never commits
            reservation_manager: manager sharing the same session
            clock: returns the current aware datetime
            settings: scheduling settings, defaults to the global instance
        """
        self.session = session
        self.settings = settings or default_settings
        self.clock = clock
        self.reservation_manager = reservation_manager or ReservationManager(
            session, ttl_minutes=self.settings.reservation_ttl_minutes, clock=clock
        )
        self.bookings = BookingRepository(session)
        self.audit = AuditRepository(session)

    def now(self) -> datetime:
        return ensure_utc(self.clock())

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _load(self, booking_id: UUID) -> Booking:
        booking = self.bookings.get(booking_id)
        if booking is None:
            raise BookingNotFound(f"Booking {booking_id} not found", details={"booking_id": str(booking_id)})
        return booking

    def get_booking(self, booking_id: UUID) -> BookingRecord:
        return BookingRecord.model_validate(self._load(booking_id))

    def list_provider_bookings(
        self,
        provider_id: str,
        statuses: Optional[Iterable[BookingStatus]] = None,
    ) -> List[BookingRecord]:
        return [BookingRecord.model_validate(b) for b in self.bookings.list_for_provider(provider_id, statuses)]

    def list_requester_bookings(self, requester_id: str) -> List[BookingRecord]:
        return [BookingRecord.model_validate(b) for b in self.bookings.list_for_requester(requester_id)]

    def list_call_attempts(self, booking_id: UUID) -> List[CallAttemptRecord]:
        return [CallAttemptRecord.model_validate(a) for a in self._load(booking_id).call_attempts]

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _require_active_reservation(self, reservation_id: UUID) -> ReservationRecord:
        reservation = self.reservation_manager.get_active(reservation_id, self.now())
        if reservation is None:
            raise ReservationExpired(
                f"Reservation {reservation_id} has expired or was released",
                details={"reservation_id": str(reservation_id)},
            )
        return reservation

    def create_booking(self, reservation_id: UUID) -> BookingRecord:
        """
        Open a booking awaiting payment on a held slot.

        Calling again with the same reservation returns the booking already
        opened for it.

        Raises:
            ReservationExpired: if the hold is missing or lapsed
        """
        reservation = self._require_active_reservation(reservation_id)

        existing = self.bookings.get_open_for_reservation(reservation.id)
        if existing is not None:
            return BookingRecord.model_validate(existing)

        booking = Booking(
            requester_id=reservation.requester_id,
            provider_id=reservation.provider_id,
            scheduled_date=reservation.date,
            time_window_start=reservation.time,
            time_window_end=add_minutes(reservation.time, self.settings.slot_granularity_minutes),
            timezone=reservation.timezone,
            utc_timestamp=reservation.utc_timestamp,
            status=BookingStatus.PENDING_PAYMENT.value,
            reservation_id=reservation.id,
            reservation_expires_at=reservation.expires_at,
        )
        self.bookings.add(booking)
        self.audit.record(
            AuditAction.BOOKING_CREATED,
            "booking",
            booking.id,
            actor_id=booking.requester_id,
            details={"reservation_id": str(reservation.id)},
        )
        logger.info(
            f"Booking {booking.id} created in pending_payment for {booking.provider_id} "
            f"on {booking.scheduled_date} at {booking.time_window_start:%H:%M}"
        )
        return BookingRecord.model_validate(booking)

    def _ensure_slot_free(self, booking: Booking, provider_id: str, slot_date: date, slot_time: time) -> None:
        """
        Raises:
            SlotNoLongerAvailable: if another paid booking owns the slot
        """
        conflict = self.bookings.find_paid_for_slot(
            provider_id,
            slot_date,
            slot_time,
            exclude_booking_id=booking.id,
        )
        if conflict is not None:
            logger.warning(f"Booking {booking.id} lost {provider_id} {slot_date} {slot_time:%H:%M} to {conflict.id}")
            raise SlotNoLongerAvailable(
                "This time was booked by someone else. Please choose another slot.",
                details={"booking_id": str(booking.id), "conflicting_booking_id": str(conflict.id)},
            )

    def _flush_claim(self, booking_id: UUID) -> None:
        """Flush a slot-occupying change, translating a lost race on the unique index."""
        try:
            self.session.flush()
        except IntegrityError as exc:
            self.session.rollback()
            logger.warning(f"Booking {booking_id} lost its slot on flush: {exc.orig}")
            raise SlotNoLongerAvailable(
                "This time was booked by someone else. Please choose another slot.",
                details={"booking_id": str(booking_id)},
            ) from exc

    def confirm_payment(
        self,
        booking_id: UUID,
        amount_paid: Optional[int] = None,
        payment_reference: Optional[str] = None,
    ) -> BookingRecord:
        """
        Mark a booking paid after the external payment event.

        Raises:
            PaymentNotConfirmed: if the booking is not awaiting payment
            ReservationExpired: if the slot hold lapsed before payment
            SlotNoLongerAvailable: if another booking was paid for the slot first
        """
        booking = self._load(booking_id)
        if booking.status_enum != BookingStatus.PENDING_PAYMENT:
            logger.warning(f"Payment confirmation on booking {booking_id} in status {booking.status}")
            raise PaymentNotConfirmed(
                f"Booking {booking_id} is {booking.status}, not awaiting payment",
                details={"booking_id": str(booking_id), "status": booking.status},
            )

        now = self.now()
        if booking.reservation_expires_at is not None and booking.reservation_expires_at <= now:
            raise ReservationExpired(
                f"Reservation for booking {booking_id} expired before payment",
                details={"booking_id": str(booking_id)},
            )

        self._ensure_slot_free(booking, booking.provider_id, booking.scheduled_date, booking.time_window_start)

        booking.status = BookingStatus.BOOKED.value
        booking.amount_paid = self.settings.consultation_fee_cents if amount_paid is None else amount_paid
        booking.paid_at = now
        booking.payment_reference = payment_reference
        self._flush_claim(booking_id)

        reservation_id = booking.reservation_id
        booking.reservation_id = None
        booking.reservation_expires_at = None
        if reservation_id is not None:
            self.reservation_manager.release_reservation(reservation_id)

        self.audit.record(
            AuditAction.BOOKING_PAID,
            "booking",
            booking.id,
            actor_id=booking.requester_id,
            details={"amount_paid": booking.amount_paid, "payment_reference": payment_reference},
        )
        self.session.flush()
        logger.info(
            f"Booking {booking.id} paid and booked",
            extra={"booking_id": booking.id, "provider_id": booking.provider_id, "amount_paid": booking.amount_paid},
        )
        return BookingRecord.model_validate(booking)

    def log_call_attempt(
        self,
        booking_id: UUID,
        answered: bool,
        notes: Optional[str] = None,
    ) -> CallAttemptRecord:
        """
        Record a phone-contact attempt.

        An answered call moves a booked consultation to in_progress.

        Raises:
            InvalidBookingTransition: unless the booking is booked or in_progress
            MaxAttemptsReached: if the attempt cap is already reached
        """
        booking = self._load(booking_id)
        if booking.status_enum not in (BookingStatus.BOOKED, BookingStatus.IN_PROGRESS):
            raise InvalidBookingTransition(
                f"Cannot log a call attempt on a booking in status {booking.status}",
                details={"booking_id": str(booking_id), "status": booking.status},
            )

        max_attempts = self.settings.max_call_attempts
        if len(booking.call_attempts) >= max_attempts:
            logger.warning(f"Booking {booking_id} already has {max_attempts} call attempts")
            raise MaxAttemptsReached(
                f"Maximum call attempts ({max_attempts}) reached",
                details={"booking_id": str(booking_id)},
            )

        attempt = CallAttempt(
            attempt_number=len(booking.call_attempts) + 1,
            answered=answered,
            notes=notes,
            attempted_at=self.now(),
        )
        booking.call_attempts.append(attempt)

        if answered and booking.status_enum == BookingStatus.BOOKED:
            booking.status = BookingStatus.IN_PROGRESS.value

        self.audit.record(
            AuditAction.CALL_ATTEMPT_LOGGED,
            "booking",
            booking.id,
            actor_id=booking.provider_id,
            details={"attempt_number": attempt.attempt_number, "answered": answered},
        )
        self.session.flush()
        logger.info(
            f"Call attempt {attempt.attempt_number} on booking {booking.id}: "
            f"{'answered' if answered else 'no answer'}"
        )
        return CallAttemptRecord.model_validate(attempt)

    def mark_no_answer(self, booking_id: UUID) -> BookingRecord:
        """
        Close a booking whose patient never answered.

        Raises:
            InsufficientAttempts: without the full set of unanswered attempts
        """
        booking = self._load(booking_id)
        attempts = booking.call_attempts
        max_attempts = self.settings.max_call_attempts
        if (
            booking.status_enum != BookingStatus.BOOKED
            or len(attempts) < max_attempts
            or any(a.answered for a in attempts)
        ):
            raise InsufficientAttempts(
                f"Need {max_attempts} unanswered call attempts before marking no answer",
                details={
                    "booking_id": str(booking_id),
                    "status": booking.status,
                    "attempts": len(attempts),
                },
            )

        booking.status = BookingStatus.NO_ANSWER.value
        self.audit.record(AuditAction.BOOKING_NO_ANSWER, "booking", booking.id, actor_id=booking.provider_id)
        self.session.flush()
        logger.info(f"Booking {booking.id} marked no_answer")
        return BookingRecord.model_validate(booking)

    def complete(self, booking_id: UUID, doctor_notes: Optional[str] = None) -> BookingRecord:
        """
        Finish a consultation once the clinical decision is recorded.

        Raises:
            InvalidBookingTransition: unless the booking is in_progress
        """
        booking = self._load(booking_id)
        if booking.status_enum != BookingStatus.IN_PROGRESS:
            raise InvalidBookingTransition(
                f"Only in-progress consultations can be completed (status is {booking.status})",
                details={"booking_id": str(booking_id), "status": booking.status},
            )

        booking.status = BookingStatus.COMPLETED.value
        booking.completed_at = self.now()
        if doctor_notes is not None:
            booking.doctor_notes = doctor_notes
        self.audit.record(AuditAction.BOOKING_COMPLETED, "booking", booking.id, actor_id=booking.provider_id)
        self.session.flush()
        logger.info(f"Booking {booking.id} completed")
        return BookingRecord.model_validate(booking)

    def cancel_booking(self, booking_id: UUID) -> BookingRecord:
        """
        Cancel a booking and free its slot.

        Cancelling an already cancelled booking returns it unchanged.

        Raises:
            InvalidBookingTransition: if the booking already reached
                completed or no_answer
        """
        booking = self._load(booking_id)
        status = booking.status_enum
        if status == BookingStatus.CANCELLED:
            return BookingRecord.model_validate(booking)
        if status.is_terminal:
            raise InvalidBookingTransition(
                f"Cannot cancel a booking in status {booking.status}",
                details={"booking_id": str(booking_id), "status": booking.status},
            )

        reservation_id = booking.reservation_id
        booking.status = BookingStatus.CANCELLED.value
        booking.cancelled_at = self.now()
        booking.reservation_id = None
        booking.reservation_expires_at = None
        if reservation_id is not None:
            self.reservation_manager.release_reservation(reservation_id)

        self.audit.record(
            AuditAction.BOOKING_CANCELLED,
            "booking",
            booking.id,
            details={"previous_status": status.value},
        )
        self.session.flush()
        logger.info(f"Booking {booking.id} cancelled from {status.value}")
        return BookingRecord.model_validate(booking)

    def reschedule_booking(self, booking_id: UUID, reservation_id: UUID) -> BookingRecord:
        """
        Move a paid booking onto a newly reserved slot.

        Allowed only while more than ``reschedule_cutoff_hours`` remain before
        the current appointment. The old slot is freed; the new one must not
        already be paid for by someone else.

        Raises:
            InvalidBookingTransition: unless the booking is booked
            RescheduleWindowClosed: if the appointment is too close
            ReservationExpired: if the new hold lapsed
            SlotNoLongerAvailable: if the new slot was paid for by someone else
        """
        booking = self._load(booking_id)
        if booking.status_enum != BookingStatus.BOOKED:
            raise InvalidBookingTransition(
                f"Only booked consultations can be rescheduled (status is {booking.status})",
                details={"booking_id": str(booking_id), "status": booking.status},
            )

        now = self.now()
        cutoff = timedelta(hours=self.settings.reschedule_cutoff_hours)
        if booking.utc_timestamp - now <= cutoff:
            raise RescheduleWindowClosed(
                f"Changes are not permitted within {self.settings.reschedule_cutoff_hours} hours of the appointment",
                details={"booking_id": str(booking_id)},
            )

        reservation = self._require_active_reservation(reservation_id)
        if reservation.requester_id != booking.requester_id:
            raise ReservationExpired(
                f"Reservation {reservation_id} does not belong to this patient",
                details={"reservation_id": str(reservation_id)},
            )

        self._ensure_slot_free(booking, reservation.provider_id, reservation.date, reservation.time)

        previous = {
            "provider_id": booking.provider_id,
            "date": booking.scheduled_date.isoformat(),
            "time": booking.time_window_start.strftime("%H:%M"),
        }
        booking.provider_id = reservation.provider_id
        booking.scheduled_date = reservation.date
        booking.time_window_start = reservation.time
        booking.time_window_end = add_minutes(reservation.time, self.settings.slot_granularity_minutes)
        booking.timezone = reservation.timezone
        booking.utc_timestamp = reservation.utc_timestamp
        self._flush_claim(booking_id)

        self.reservation_manager.release_reservation(reservation.id)
        self.audit.record(
            AuditAction.BOOKING_RESCHEDULED,
            "booking",
            booking.id,
            actor_id=booking.requester_id,
            details={"from": previous, "reservation_id": str(reservation.id)},
        )
        self.session.flush()
        logger.info(f"Booking {booking.id} rescheduled to {booking.scheduled_date} {booking.time_window_start:%H:%M}")
        return BookingRecord.model_validate(booking)
