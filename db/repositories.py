"""
Repositories for availability, reservation, booking and audit tables.

Each repository wraps one SQLAlchemy session and exposes the reads and
writes the scheduling services need, so the slot pipeline can be fed from
plain records and tested without a database.
"""
import logging
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from domain.enums import AuditAction, AvailabilityKind, BookingStatus, PAID_STATUSES
from .models_sqlalchemy import AuditLog, AvailabilityBlock, Booking, SlotReservation


logger = logging.getLogger(__name__)


class AvailabilityRepository:
    """Reads and writes provider availability blocks."""

    def __init__(self, session: Session):
        self._session = session

    def add(self, block: AvailabilityBlock) -> AvailabilityBlock:
        self._session.add(block)
        self._session.flush()
        return block

    def get(self, block_id: UUID) -> Optional[AvailabilityBlock]:
        return self._session.get(AvailabilityBlock, block_id)

    def list_for_provider(self, provider_id: str, include_inactive: bool = False) -> List[AvailabilityBlock]:
        query = select(AvailabilityBlock).where(AvailabilityBlock.provider_id == provider_id)
        if not include_inactive:
            query = query.where(AvailabilityBlock.is_active.is_(True))
        query = query.order_by(
            AvailabilityBlock.kind,
            AvailabilityBlock.day_of_week,
            AvailabilityBlock.specific_date,
            AvailabilityBlock.start_time,
        )
        return list(self._session.scalars(query))

    def list_active_for_dates(self, dates: Iterable[date], weekdays: Iterable[int]) -> List[AvailabilityBlock]:
        """
        Active blocks that could apply to any of the given dates.

        Recurring blocks are matched on weekday (Sunday = 0), dated blocks on
        their specific date. Final per-date matching happens in the pipeline.
        """
        dates = list(dates)
        weekdays = list(weekdays)
        query = (
            select(AvailabilityBlock)
            .where(AvailabilityBlock.is_active.is_(True))
            .where(
                or_(
                    (AvailabilityBlock.kind == AvailabilityKind.RECURRING.value)
                    & AvailabilityBlock.day_of_week.in_(weekdays),
                    (AvailabilityBlock.kind != AvailabilityKind.RECURRING.value)
                    & AvailabilityBlock.specific_date.in_(dates),
                )
            )
            .order_by(AvailabilityBlock.provider_id, AvailabilityBlock.start_time)
        )
        return list(self._session.scalars(query))


class ReservationRepository:
    """Storage for short-lived slot holds."""

    def __init__(self, session: Session):
        self._session = session

    def add(self, reservation: SlotReservation) -> SlotReservation:
        self._session.add(reservation)
        self._session.flush()
        return reservation

    def get(self, reservation_id: UUID) -> Optional[SlotReservation]:
        return self._session.get(SlotReservation, reservation_id)

    def delete(self, reservation_id: UUID) -> int:
        result = self._session.execute(
            delete(SlotReservation).where(SlotReservation.id == reservation_id)
        )
        return result.rowcount or 0

    def list_unexpired(self, now: datetime) -> List[SlotReservation]:
        query = (
            select(SlotReservation)
            .where(SlotReservation.expires_at > now)
            .order_by(SlotReservation.date, SlotReservation.time, SlotReservation.created_at)
        )
        return list(self._session.scalars(query))

    def purge_expired(self, now: datetime) -> int:
        result = self._session.execute(
            delete(SlotReservation).where(SlotReservation.expires_at <= now)
        )
        return result.rowcount or 0


class BookingRepository:
    """Storage for bookings and their call attempts."""

    def __init__(self, session: Session):
        self._session = session

    def add(self, booking: Booking) -> Booking:
        self._session.add(booking)
        self._session.flush()
        return booking

    def get(self, booking_id: UUID) -> Optional[Booking]:
        return self._session.get(Booking, booking_id)

    def get_open_for_reservation(self, reservation_id: UUID) -> Optional[Booking]:
        query = (
            select(Booking)
            .where(Booking.reservation_id == reservation_id)
            .where(Booking.status == BookingStatus.PENDING_PAYMENT.value)
        )
        return self._session.scalars(query).first()

    def list_occupying(self, dates: Iterable[date]) -> List[Booking]:
        """Every non-cancelled booking on the given dates."""
        query = (
            select(Booking)
            .where(Booking.scheduled_date.in_(list(dates)))
            .where(Booking.status != BookingStatus.CANCELLED.value)
        )
        return list(self._session.scalars(query))

    def find_paid_for_slot(
        self,
        provider_id: str,
        scheduled_date: date,
        slot_time: time,
        exclude_booking_id: Optional[UUID] = None,
    ) -> Optional[Booking]:
        query = (
            select(Booking)
            .where(Booking.provider_id == provider_id)
            .where(Booking.scheduled_date == scheduled_date)
            .where(Booking.time_window_start == slot_time)
            .where(Booking.status.in_([s.value for s in PAID_STATUSES]))
        )
        if exclude_booking_id is not None:
            query = query.where(Booking.id != exclude_booking_id)
        return self._session.scalars(query).first()

    def list_for_provider(self, provider_id: str, statuses: Optional[Iterable[BookingStatus]] = None) -> List[Booking]:
        query = select(Booking).where(Booking.provider_id == provider_id)
        if statuses:
            query = query.where(Booking.status.in_([BookingStatus(s).value for s in statuses]))
        query = query.order_by(Booking.scheduled_date, Booking.time_window_start)
        return list(self._session.scalars(query))

    def list_for_requester(self, requester_id: str) -> List[Booking]:
        query = (
            select(Booking)
            .where(Booking.requester_id == requester_id)
            .order_by(Booking.scheduled_date.desc(), Booking.time_window_start.desc())
        )
        return list(self._session.scalars(query))


class AuditRepository:
    """Append-only audit trail."""

    def __init__(self, session: Session):
        self._session = session

    def record(
        self,
        action: AuditAction,
        entity_type: str,
        entity_id: Any,
        actor_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        entry = AuditLog(
            action=action.value,
            entity_type=entity_type,
            entity_id=str(entity_id),
            actor_id=actor_id,
            details=details or {},
        )
        self._session.add(entry)
        logger.debug(f"Audit log: {action.value} for {entity_type} {entity_id}")
        return entry

    def list_for_entity(self, entity_type: str, entity_id: Any) -> List[AuditLog]:
        query = (
            select(AuditLog)
            .where(AuditLog.entity_type == entity_type)
            .where(AuditLog.entity_id == str(entity_id))
            .order_by(AuditLog.id)
        )
        return list(self._session.scalars(query))
