"""Domain models using Pydantic v2 for the telehealth scheduling core."""

from datetime import date, time, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict, model_validator

from .enums import AvailabilityKind, BookingStatus
from .slots import TimeSlot


class AvailabilityBlockCreate(BaseModel):
    """Model for creating an availability block."""

    provider_id: str = Field(..., min_length=1, max_length=100, description="Opaque provider identifier")
    kind: AvailabilityKind
    day_of_week: Optional[int] = Field(None, ge=0, le=6, description="0 = Sunday; recurring blocks only")
    specific_date: Optional[date] = Field(None, description="One-off and blocked entries only")
    start_time: time
    end_time: time
    timezone: Optional[str] = Field(None, max_length=64, description="IANA zone name")
    max_bookings: int = Field(default=1, ge=1, le=50)

    model_config = ConfigDict(str_strip_whitespace=True)

    @model_validator(mode="after")
    def check_day_or_date(self) -> "AvailabilityBlockCreate":
        """Exactly one of day_of_week / specific_date, matching the kind."""
        if self.kind == AvailabilityKind.RECURRING:
            if self.day_of_week is None or self.specific_date is not None:
                raise ValueError("recurring blocks need day_of_week and no specific_date")
        else:
            if self.specific_date is None or self.day_of_week is not None:
                raise ValueError(f"{self.kind.value} blocks need specific_date and no day_of_week")
        return self


class AvailabilityBlockRecord(BaseModel):
    """Availability block as read from the store."""

    id: UUID
    provider_id: str
    kind: AvailabilityKind
    day_of_week: Optional[int] = None
    specific_date: Optional[date] = None
    start_time: time
    end_time: time
    timezone: str
    max_bookings: int = 1
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReservationRecord(BaseModel):
    """Temporary hold on a provider/date/time."""

    id: UUID
    requester_id: str
    provider_id: str
    date: date
    time: time
    utc_timestamp: datetime
    timezone: str
    expires_at: datetime
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CallAttemptRecord(BaseModel):
    """One logged phone-contact attempt."""

    id: int
    booking_id: UUID
    attempt_number: int
    answered: bool
    notes: Optional[str] = None
    attempted_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingRecord(BaseModel):
    """Complete booking record from database."""

    id: UUID
    requester_id: str
    provider_id: str
    scheduled_date: date
    time_window_start: time
    time_window_end: time
    timezone: str
    utc_timestamp: datetime
    status: BookingStatus
    amount_paid: Optional[int] = None
    paid_at: Optional[datetime] = None
    payment_reference: Optional[str] = None
    reservation_id: Optional[UUID] = None
    reservation_expires_at: Optional[datetime] = None
    doctor_notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    call_attempts: List[CallAttemptRecord] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class TimeSlotSchema(BaseModel):
    """Available slot as returned to front-ends."""

    date: date
    time: time
    utc_timestamp: datetime
    display_timezone: str
    timezone_abbr: str
    provider_ids: List[str]

    @classmethod
    def from_slot(cls, slot: TimeSlot) -> "TimeSlotSchema":
        return cls(
            date=slot.date,
            time=slot.time,
            utc_timestamp=slot.utc_timestamp,
            display_timezone=slot.display_timezone,
            timezone_abbr=slot.timezone_abbr,
            provider_ids=sorted(slot.provider_ids),
        )


class AvailabilityResponse(BaseModel):
    """Response with available slots for one date."""

    date: date
    slots: List[TimeSlotSchema]
    total_available: int


class ReserveSlotRequest(BaseModel):
    requester_id: str = Field(..., min_length=1, max_length=100)
    provider_id: str = Field(..., min_length=1, max_length=100)
    date: date
    time: time

    model_config = ConfigDict(str_strip_whitespace=True)


class CreateBookingRequest(BaseModel):
    reservation_id: UUID


class ConfirmPaymentRequest(BaseModel):
    amount_paid: Optional[int] = Field(None, ge=0, description="Amount in cents")
    payment_reference: Optional[str] = Field(None, max_length=255)


class CallAttemptRequest(BaseModel):
    answered: bool
    notes: Optional[str] = Field(None, max_length=1000)


class CompleteBookingRequest(BaseModel):
    doctor_notes: Optional[str] = Field(None, max_length=2000)


class RescheduleBookingRequest(BaseModel):
    reservation_id: UUID
