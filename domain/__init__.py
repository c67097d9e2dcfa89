"""Domain layer for the telehealth scheduling core."""

from .enums import (
    AvailabilityKind,
    BookingStatus,
    AuditAction,
    DayOfWeek,
    TERMINAL_STATUSES,
    PAID_STATUSES,
)
from .slots import TimeSlot, SlotKey, OccupancyKey
from .models import (
    AvailabilityBlockCreate,
    AvailabilityBlockRecord,
    ReservationRecord,
    CallAttemptRecord,
    BookingRecord,
    TimeSlotSchema,
    AvailabilityResponse,
    ReserveSlotRequest,
    CreateBookingRequest,
    ConfirmPaymentRequest,
    CallAttemptRequest,
    CompleteBookingRequest,
    RescheduleBookingRequest,
)

__all__ = [
    # Enums
    "AvailabilityKind",
    "BookingStatus",
    "AuditAction",
    "DayOfWeek",
    "TERMINAL_STATUSES",
    "PAID_STATUSES",
    # Slots
    "TimeSlot",
    "SlotKey",
    "OccupancyKey",
    # Models
    "AvailabilityBlockCreate",
    "AvailabilityBlockRecord",
    "ReservationRecord",
    "CallAttemptRecord",
    "BookingRecord",
    "TimeSlotSchema",
    "AvailabilityResponse",
    "ReserveSlotRequest",
    "CreateBookingRequest",
    "ConfirmPaymentRequest",
    "CallAttemptRequest",
    "CompleteBookingRequest",
    "RescheduleBookingRequest",
]
