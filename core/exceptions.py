"""Typed errors raised by the scheduling core."""
from typing import Any, Dict, Optional


class SchedulingError(Exception):
    """Base class for every caller-recoverable scheduling error."""

    code = "scheduling_error"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form used by the HTTP layer."""
        return {"error": self.code, "message": self.message, "details": self.details}


class InvalidWindow(SchedulingError):
    """Availability window is malformed (start >= end, bad zone, bad shape)."""

    code = "invalid_window"
    status_code = 422


class SlotNoLongerAvailable(SchedulingError):
    """The slot was taken by someone else; re-query and pick again."""

    code = "slot_no_longer_available"
    status_code = 409


class PaymentNotConfirmed(SchedulingError):
    """Payment confirmation attempted on a booking not awaiting payment."""

    code = "payment_not_confirmed"
    status_code = 409


class MaxAttemptsReached(SchedulingError):
    """The booking already has the maximum number of call attempts."""

    code = "max_attempts_reached"
    status_code = 409


class InsufficientAttempts(SchedulingError):
    """Not enough unanswered call attempts to mark a booking no-answer."""

    code = "insufficient_attempts"
    status_code = 409


class ReservationExpired(SchedulingError):
    """The slot hold is missing or its TTL has lapsed."""

    code = "reservation_expired"
    status_code = 410


class InvalidBookingTransition(SchedulingError):
    """The requested status change is not allowed from the current status."""

    code = "invalid_booking_transition"
    status_code = 409


class RescheduleWindowClosed(SchedulingError):
    """The booking is too close to its start time to be moved."""

    code = "reschedule_window_closed"
    status_code = 409


class BookingNotFound(SchedulingError):
    code = "booking_not_found"
    status_code = 404


class AvailabilityBlockNotFound(SchedulingError):
    code = "availability_block_not_found"
    status_code = 404
