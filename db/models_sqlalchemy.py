"""SQLAlchemy models for the telehealth scheduling database tables."""

from datetime import datetime, date, time
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    Time,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UTCDateTime, utcnow
from domain.enums import AvailabilityKind, BookingStatus


# Paid bookings hold their slot exclusively. Unpaid holds may race and are
# settled when the second payment hits this index.
PAID_SLOT_PREDICATE = (
    f"status NOT IN ('{BookingStatus.PENDING_PAYMENT.value}', "
    f"'{BookingStatus.CANCELLED.value}')"
)


class AvailabilityBlock(Base, TimestampMixin):
    """Provider availability window table model."""

    __tablename__ = "availability_blocks"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )

    provider_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )

    kind: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=AvailabilityKind.RECURRING.value,
    )

    day_of_week: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )

    specific_date: Mapped[Optional[date]] = mapped_column(
        Date,
        nullable=True,
    )

    start_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
    )

    end_time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
    )

    timezone: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    max_bookings: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
    )

    __table_args__ = (
        Index("ix_availability_blocks_provider_kind", "provider_id", "kind"),
        Index("ix_availability_blocks_specific_date", "specific_date"),
        Index("ix_availability_blocks_day_of_week", "day_of_week"),
    )

    def __repr__(self) -> str:
        return (
            f"<AvailabilityBlock(id={self.id}, provider='{self.provider_id}', "
            f"kind='{self.kind}', day={self.day_of_week}, date={self.specific_date}, "
            f"{self.start_time}-{self.end_time}, active={self.is_active})>"
        )


class SlotReservation(Base):
    """Short-lived hold on a provider/date/time while the requester pays."""

    __tablename__ = "slot_reservations"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )

    requester_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )

    provider_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    time: Mapped[time] = mapped_column(
        Time,
        nullable=False,
    )

    utc_timestamp: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
    )

    timezone: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    expires_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        Index("ix_slot_reservations_slot", "provider_id", "date", "time"),
    )

    def __repr__(self) -> str:
        return (
            f"<SlotReservation(id={self.id}, requester='{self.requester_id}', "
            f"provider='{self.provider_id}', date={self.date}, time={self.time}, "
            f"expires_at={self.expires_at})>"
        )


class Booking(Base, TimestampMixin):
    """Consultation booking table model."""

    __tablename__ = "bookings"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )

    requester_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )

    provider_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )

    scheduled_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )

    time_window_start: Mapped[time] = mapped_column(
        Time,
        nullable=False,
    )

    time_window_end: Mapped[time] = mapped_column(
        Time,
        nullable=False,
    )

    timezone: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    utc_timestamp: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.PENDING_PAYMENT.value,
        index=True,
    )

    amount_paid: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )

    paid_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    payment_reference: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )

    # No FK: reservations are swept once expired, the booking keeps the id.
    reservation_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        nullable=True,
        index=True,
    )

    reservation_expires_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    doctor_notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    cancelled_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    completed_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    call_attempts: Mapped[List["CallAttempt"]] = relationship(
        back_populates="booking",
        order_by="CallAttempt.attempt_number",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_bookings_provider_date", "provider_id", "scheduled_date"),
        Index("ix_bookings_status_date", "status", "scheduled_date"),
        Index(
            "uq_bookings_paid_slot",
            "provider_id",
            "scheduled_date",
            "time_window_start",
            unique=True,
            sqlite_where=text(PAID_SLOT_PREDICATE),
            postgresql_where=text(PAID_SLOT_PREDICATE),
        ),
    )

    @property
    def status_enum(self) -> BookingStatus:
        return BookingStatus(self.status)

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, requester='{self.requester_id}', "
            f"provider='{self.provider_id}', date={self.scheduled_date}, "
            f"time={self.time_window_start}, status='{self.status}')>"
        )


class CallAttempt(Base):
    """Immutable log of one phone-contact attempt against a booking."""

    __tablename__ = "call_attempts"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    booking_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    attempt_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    answered: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    attempted_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
    )

    booking: Mapped[Booking] = relationship(back_populates="call_attempts")

    __table_args__ = (
        UniqueConstraint("booking_id", "attempt_number", name="uq_call_attempts_booking_attempt"),
    )

    def __repr__(self) -> str:
        return (
            f"<CallAttempt(booking={self.booking_id}, attempt={self.attempt_number}, "
            f"answered={self.answered})>"
        )


class AuditLog(Base):
    """Audit log table for tracking all scheduling actions."""

    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    action: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )

    entity_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )

    entity_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )

    actor_id: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        index=True,
    )

    details: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
        index=True,
    )

    __table_args__ = (
        Index("ix_audit_log_entity", "entity_type", "entity_id"),
        Index("ix_audit_log_action_created", "action", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, action='{self.action}', "
            f"entity_type='{self.entity_type}', entity_id='{self.entity_id}')>"
        )
