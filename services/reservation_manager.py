"""
Reservation Manager for short-lived slot holds.

A reservation keeps a provider/date/time out of the available list while the
requester completes payment. Holds expire after a fixed TTL and are swept
lazily by :meth:`ReservationManager.list_active`; there is no background
sweeper.

Concurrency note: two requesters who both saw a slot as free can both
create a hold for it here. This narrow double-hold window is accepted; the
authoritative guard is the unique index on paid bookings, which makes the
second payment confirmation fail with ``SlotNoLongerAvailable``.
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from core.config import settings
from core.utils_datetime import ensure_utc, get_current_datetime
from db.models_sqlalchemy import SlotReservation
from db.repositories import AuditRepository, ReservationRepository
from domain.enums import AuditAction
from domain.models import ReservationRecord


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class ReservationManager:
    """Creates, lists and releases slot holds."""

    def __init__(
        self,
        session: Session,
        ttl_minutes: Optional[int] = None,
        clock: Clock = get_current_datetime,
    ):
        """
        Initialize the reservation manager.

        Args:
            session: SQLAlchemy session shared with the calling service
            ttl_minutes: hold lifetime, defaults to settings.reservation_ttl_minutes
            clock: returns the current aware datetime
        """
        self.session = session
        self.ttl = timedelta(minutes=ttl_minutes or settings.reservation_ttl_minutes)
        self.clock = clock
        self.reservations = ReservationRepository(session)
        self.audit = AuditRepository(session)

    def now(self) -> datetime:
        return ensure_utc(self.clock())

    def create_reservation(
        self,
        requester_id: str,
        provider_id: str,
        slot_date: date,
        slot_time: time,
        utc_timestamp: datetime,
        timezone: Optional[str] = None,
    ) -> ReservationRecord:
        """
        Hold a slot for a requester.

        The caller is expected to have checked the slot against the
        occupancy filter in the same request; no exclusivity check is made.

        Returns:
            The new reservation, expiring ``ttl`` from now
        """
        now = self.now()
        reservation = SlotReservation(
            requester_id=requester_id,
            provider_id=provider_id,
            date=slot_date,
            time=slot_time,
            utc_timestamp=ensure_utc(utc_timestamp),
            timezone=timezone or settings.default_timezone,
            expires_at=now + self.ttl,
            created_at=now,
        )
        self.reservations.add(reservation)
        self.audit.record(
            AuditAction.RESERVATION_CREATED,
            "reservation",
            reservation.id,
            actor_id=requester_id,
            details={
                "provider_id": provider_id,
                "date": slot_date.isoformat(),
                "time": slot_time.strftime("%H:%M"),
            },
        )
        logger.info(
            f"Reservation {reservation.id} created for {provider_id} "
            f"on {slot_date} at {slot_time:%H:%M}",
            extra={
                "reservation_id": reservation.id,
                "provider_id": provider_id,
                "requester_id": requester_id,
                "expires_at": reservation.expires_at.isoformat(),
            },
        )
        return ReservationRecord.model_validate(reservation)

    def release_reservation(self, reservation_id: UUID) -> None:
        """Remove a hold. Releasing an unknown or already-released id is a no-op."""
        removed = self.reservations.delete(reservation_id)
        if removed:
            self.audit.record(AuditAction.RESERVATION_RELEASED, "reservation", reservation_id)
            logger.info(f"Reservation {reservation_id} released")

    def list_active(self, now: Optional[datetime] = None) -> List[ReservationRecord]:
        """
        Reservations still holding their slot at ``now``.

        Expired rows are deleted as a side effect.
        """
        now = ensure_utc(now) if now is not None else self.now()
        purged = self.reservations.purge_expired(now)
        if purged:
            logger.debug(f"Swept {purged} expired reservations")
        return [ReservationRecord.model_validate(r) for r in self.reservations.list_unexpired(now)]

    def get_active(self, reservation_id: UUID, now: Optional[datetime] = None) -> Optional[ReservationRecord]:
        """Return the reservation if it exists and has not expired, else None."""
        now = ensure_utc(now) if now is not None else self.now()
        reservation = self.reservations.get(reservation_id)
        if reservation is None or reservation.expires_at <= now:
            return None
        return ReservationRecord.model_validate(reservation)

    def seconds_remaining(self, reservation: ReservationRecord, now: Optional[datetime] = None) -> int:
        """Whole seconds left before a hold lapses, never negative."""
        now = ensure_utc(now) if now is not None else self.now()
        return max(0, int((reservation.expires_at - now).total_seconds()))
