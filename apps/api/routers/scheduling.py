"""Patient- and provider-facing endpoints for slots, holds and bookings."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from apps.api.deps import get_scheduling_service
from core.exceptions import ReservationExpired
from domain.enums import BookingStatus
from domain.models import (
    AvailabilityResponse,
    BookingRecord,
    CallAttemptRecord,
    CallAttemptRequest,
    CompleteBookingRequest,
    ConfirmPaymentRequest,
    CreateBookingRequest,
    ReservationRecord,
    RescheduleBookingRequest,
    ReserveSlotRequest,
    TimeSlotSchema,
)
from services.scheduling_service import SchedulingService


router = APIRouter(tags=["scheduling"])


@router.get("/slots", response_model=AvailabilityResponse)
def list_available_slots(
    slot_date: date = Query(..., alias="date", description="Date to list slots for"),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    List bookable slots on a date.

    Each slot carries every provider still free at that time.
    """
    slots = service.list_available_slots(slot_date)
    return AvailabilityResponse(
        date=slot_date,
        slots=[TimeSlotSchema.from_slot(s) for s in slots],
        total_available=len(slots),
    )


@router.get("/slots/dates", response_model=List[date])
def list_dates_with_availability(
    start_date: date = Query(..., description="First date to check"),
    end_date: date = Query(..., description="Last date to check, inclusive"),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Dates in a range with at least one bookable slot."""
    return service.get_dates_with_availability(start_date, end_date)


@router.post("/reservations", response_model=ReservationRecord, status_code=status.HTTP_201_CREATED)
def reserve_slot(
    request: ReserveSlotRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Hold a slot for the payment window."""
    return service.reserve_slot(request.requester_id, request.provider_id, request.date, request.time)


@router.get("/reservations/{reservation_id}", response_model=ReservationRecord)
def get_reservation(
    reservation_id: UUID,
    service: SchedulingService = Depends(get_scheduling_service),
):
    reservation = service.get_reservation(reservation_id)
    if reservation is None:
        raise ReservationExpired(
            f"Reservation {reservation_id} has expired or was released",
            details={"reservation_id": str(reservation_id)},
        )
    return reservation


@router.delete("/reservations/{reservation_id}", status_code=status.HTTP_204_NO_CONTENT)
def release_reservation(
    reservation_id: UUID,
    service: SchedulingService = Depends(get_scheduling_service),
):
    service.release_reservation(reservation_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/bookings", response_model=BookingRecord, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: CreateBookingRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Open a booking awaiting payment on a held slot."""
    return service.create_booking(request.reservation_id)


@router.get("/bookings", response_model=List[BookingRecord])
def list_bookings(
    provider_id: Optional[str] = Query(None, description="Provider whose consultations to list"),
    requester_id: Optional[str] = Query(None, description="Patient whose bookings to list"),
    statuses: Optional[List[BookingStatus]] = Query(None, alias="status", description="Filter by status"),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """
    List bookings for a provider or a requester.

    Exactly one of provider_id and requester_id is expected; with neither
    the result is empty.
    """
    if provider_id:
        return service.list_provider_bookings(provider_id, statuses)
    if requester_id:
        bookings = service.list_requester_bookings(requester_id)
        if statuses:
            bookings = [b for b in bookings if b.status in statuses]
        return bookings
    return []


@router.get("/bookings/{booking_id}", response_model=BookingRecord)
def get_booking(
    booking_id: UUID,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.get_booking(booking_id)


@router.post("/bookings/{booking_id}/payment", response_model=BookingRecord)
def confirm_payment(
    booking_id: UUID,
    request: Optional[ConfirmPaymentRequest] = None,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Record the external payment event and book the slot."""
    request = request or ConfirmPaymentRequest()
    return service.confirm_payment(
        booking_id,
        amount_paid=request.amount_paid,
        payment_reference=request.payment_reference,
    )


@router.post(
    "/bookings/{booking_id}/call-attempts",
    response_model=CallAttemptRecord,
    status_code=status.HTTP_201_CREATED,
)
def log_call_attempt(
    booking_id: UUID,
    request: CallAttemptRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.log_call_attempt(booking_id, request.answered, notes=request.notes)


@router.get("/bookings/{booking_id}/call-attempts", response_model=List[CallAttemptRecord])
def list_call_attempts(
    booking_id: UUID,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.list_call_attempts(booking_id)


@router.post("/bookings/{booking_id}/no-answer", response_model=BookingRecord)
def mark_no_answer(
    booking_id: UUID,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.mark_no_answer(booking_id)


@router.post("/bookings/{booking_id}/complete", response_model=BookingRecord)
def complete_booking(
    booking_id: UUID,
    request: Optional[CompleteBookingRequest] = None,
    service: SchedulingService = Depends(get_scheduling_service),
):
    doctor_notes = request.doctor_notes if request else None
    return service.complete_booking(booking_id, doctor_notes=doctor_notes)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingRecord)
def cancel_booking(
    booking_id: UUID,
    service: SchedulingService = Depends(get_scheduling_service),
):
    return service.cancel_booking(booking_id)


@router.post("/bookings/{booking_id}/reschedule", response_model=BookingRecord)
def reschedule_booking(
    booking_id: UUID,
    request: RescheduleBookingRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Move a booked consultation onto a newly reserved slot."""
    return service.reschedule_booking(booking_id, request.reservation_id)
