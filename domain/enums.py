"""Domain enums for the telehealth scheduling core."""

from enum import Enum


class AvailabilityKind(str, Enum):
    """Kind of availability block offered by a provider."""

    RECURRING = "recurring"
    ONE_OFF = "one_off"
    BLOCKED = "blocked"


class BookingStatus(str, Enum):
    """Consultation booking status."""

    PENDING_PAYMENT = "pending_payment"
    BOOKED = "booked"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_ANSWER = "no_answer"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    BookingStatus.COMPLETED,
    BookingStatus.CANCELLED,
    BookingStatus.NO_ANSWER,
})

# Statuses covered by the one-booking-per-slot unique index.
PAID_STATUSES = frozenset({
    BookingStatus.BOOKED,
    BookingStatus.IN_PROGRESS,
    BookingStatus.COMPLETED,
    BookingStatus.NO_ANSWER,
})


class AuditAction(str, Enum):
    """Audit log action types."""

    BLOCK_CREATED = "block_created"
    BLOCK_DEACTIVATED = "block_deactivated"
    RESERVATION_CREATED = "reservation_created"
    RESERVATION_RELEASED = "reservation_released"
    BOOKING_CREATED = "booking_created"
    BOOKING_PAID = "booking_paid"
    BOOKING_RESCHEDULED = "booking_rescheduled"
    CALL_ATTEMPT_LOGGED = "call_attempt_logged"
    BOOKING_NO_ANSWER = "booking_no_answer"
    BOOKING_COMPLETED = "booking_completed"
    BOOKING_CANCELLED = "booking_cancelled"


class DayOfWeek(int, Enum):
    """Days of the week, Sunday first, as stored on recurring blocks."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
