"""Database layer for the telehealth scheduling core."""

from .base import Base, TimestampMixin, UTCDateTime
from .models_sqlalchemy import (
    AvailabilityBlock,
    SlotReservation,
    Booking,
    CallAttempt,
    AuditLog,
)
from .session import (
    engine,
    SessionLocal,
    create_engine,
    create_session_factory,
    get_session,
    init_db,
    drop_db,
    close_db,
)

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "UTCDateTime",
    # Models
    "AvailabilityBlock",
    "SlotReservation",
    "Booking",
    "CallAttempt",
    "AuditLog",
    # Session
    "engine",
    "SessionLocal",
    "create_engine",
    "create_session_factory",
    "get_session",
    "init_db",
    "drop_db",
    "close_db",
]
