"""Pytest configuration and fixtures for telehealth scheduling tests."""
import pytest
from datetime import date, datetime, time, timedelta
from uuid import uuid4

from core.config import Settings
from core.utils_datetime import UTC
from db.session import create_engine, create_session_factory, drop_db, init_db
from domain.enums import AvailabilityKind, DayOfWeek
from domain.models import AvailabilityBlockCreate, AvailabilityBlockRecord
from services.scheduling_service import SchedulingService


# Monday 18 March 2024; Brisbane is UTC+10 with no DST.
MONDAY = date(2024, 3, 18)
TUESDAY = date(2024, 3, 19)
BRISBANE = "Australia/Brisbane"


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    init_db(bind=engine)
    yield engine
    drop_db(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for testing."""
    session = create_session_factory(db_engine)()
    yield session
    session.close()


@pytest.fixture(scope="function")
def test_settings():
    """Settings with the production defaults, independent of the environment."""
    return Settings(
        _env_file=None,
        database_url="sqlite:///:memory:",
        default_timezone=BRISBANE,
        slot_granularity_minutes=5,
        reservation_ttl_minutes=10,
        max_call_attempts=3,
        reschedule_cutoff_hours=24,
        consultation_fee_cents=4900,
        availability_search_days=28,
    )


@pytest.fixture(scope="function")
def clock():
    """Fixed clock: Sunday 17 March 2024 20:00 UTC (Monday 06:00 in Brisbane)."""
    return FakeClock(datetime(2024, 3, 17, 20, 0, tzinfo=UTC))


@pytest.fixture(scope="function")
def scheduling_service(db_session, clock, test_settings):
    """Create a scheduling facade bound to the test session and clock."""
    return SchedulingService(db_session, clock=clock, settings=test_settings)


@pytest.fixture(scope="function")
def reservation_manager(scheduling_service):
    return scheduling_service.reservations


@pytest.fixture(scope="function")
def booking_service(scheduling_service):
    return scheduling_service.bookings


@pytest.fixture(scope="function")
def availability_service(scheduling_service):
    return scheduling_service.availability


@pytest.fixture(scope="function")
def create_block(availability_service):
    """Factory fixture to persist an availability block."""
    def _create(
        provider_id="dr-smith",
        kind=AvailabilityKind.RECURRING,
        day_of_week=DayOfWeek.MONDAY,
        specific_date=None,
        start_time=time(9, 0),
        end_time=time(9, 15),
        timezone=BRISBANE,
    ):
        if kind != AvailabilityKind.RECURRING:
            day_of_week = None
        return availability_service.create_block(
            AvailabilityBlockCreate(
                provider_id=provider_id,
                kind=kind,
                day_of_week=day_of_week,
                specific_date=specific_date,
                start_time=start_time,
                end_time=end_time,
                timezone=timezone,
            )
        )
    return _create


@pytest.fixture(scope="function")
def block_record():
    """Factory fixture for in-memory block records used by the pure pipeline."""
    def _make(
        provider_id="dr-smith",
        kind=AvailabilityKind.RECURRING,
        day_of_week=DayOfWeek.MONDAY,
        specific_date=None,
        start_time=time(9, 0),
        end_time=time(9, 15),
        timezone=BRISBANE,
        is_active=True,
    ):
        if kind != AvailabilityKind.RECURRING:
            day_of_week = None
        return AvailabilityBlockRecord(
            id=uuid4(),
            provider_id=provider_id,
            kind=kind,
            day_of_week=day_of_week,
            specific_date=specific_date,
            start_time=start_time,
            end_time=end_time,
            timezone=timezone,
            is_active=is_active,
        )
    return _make


@pytest.fixture(scope="function")
def paid_booking(scheduling_service, create_block):
    """Factory fixture: reserve, book and pay for a slot."""
    def _create(
        requester_id="patient-1",
        provider_id="dr-smith",
        slot_date=MONDAY,
        slot_time=time(9, 0),
    ):
        reservation = scheduling_service.reserve_slot(requester_id, provider_id, slot_date, slot_time)
        booking = scheduling_service.create_booking(reservation.id)
        return scheduling_service.confirm_payment(booking.id, payment_reference="pi_test")
    return _create
