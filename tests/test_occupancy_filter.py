"""Unit tests for occupancy filtering."""
import pytest
from datetime import datetime, time, timedelta
from uuid import uuid4

from core.utils_datetime import UTC
from domain.enums import BookingStatus
from domain.models import BookingRecord, ReservationRecord
from services.occupancy_filter import filter_occupied, occupied_keys
from services.slot_aggregator import aggregate_slots

from .conftest import BRISBANE, MONDAY, TUESDAY


NOW = datetime(2024, 3, 17, 20, 0, tzinfo=UTC)


def make_booking(provider_id="dr-smith", slot_date=MONDAY, slot_time=time(9, 5), status=BookingStatus.BOOKED):
    return BookingRecord(
        id=uuid4(),
        requester_id="patient-1",
        provider_id=provider_id,
        scheduled_date=slot_date,
        time_window_start=slot_time,
        time_window_end=(datetime.combine(slot_date, slot_time) + timedelta(minutes=5)).time(),
        timezone=BRISBANE,
        utc_timestamp=NOW,
        status=status,
    )


def make_reservation(provider_id="dr-smith", slot_date=MONDAY, slot_time=time(9, 5)):
    return ReservationRecord(
        id=uuid4(),
        requester_id="patient-2",
        provider_id=provider_id,
        date=slot_date,
        time=slot_time,
        utc_timestamp=NOW,
        timezone=BRISBANE,
        expires_at=NOW + timedelta(minutes=10),
    )


@pytest.fixture
def two_provider_slots(block_record):
    return aggregate_slots(MONDAY, [
        block_record(provider_id="dr-smith"),
        block_record(provider_id="dr-jones"),
    ])


@pytest.mark.unit
class TestOccupiedKeys:

    def test_cancelled_bookings_do_not_occupy(self):
        keys = occupied_keys([make_booking(status=BookingStatus.CANCELLED)], [])

        assert keys == set()

    @pytest.mark.parametrize("status", [
        BookingStatus.PENDING_PAYMENT,
        BookingStatus.BOOKED,
        BookingStatus.IN_PROGRESS,
        BookingStatus.COMPLETED,
        BookingStatus.NO_ANSWER,
    ])
    def test_every_other_status_occupies(self, status):
        keys = occupied_keys([make_booking(status=status)], [])

        assert keys == {("dr-smith", MONDAY, time(9, 5))}

    def test_unpaid_booking_on_lapsed_hold_frees_slot(self):
        lapsed = make_booking(status=BookingStatus.PENDING_PAYMENT).model_copy(
            update={"reservation_expires_at": NOW}
        )
        live = lapsed.model_copy(update={"reservation_expires_at": NOW + timedelta(minutes=1)})

        assert occupied_keys([lapsed], [], now=NOW) == set()
        assert occupied_keys([live], [], now=NOW) == {("dr-smith", MONDAY, time(9, 5))}

    def test_lapsed_hold_ignored_for_paid_statuses(self):
        paid = make_booking(status=BookingStatus.BOOKED).model_copy(update={"reservation_expires_at": NOW})

        assert occupied_keys([paid], [], now=NOW) == {("dr-smith", MONDAY, time(9, 5))}


@pytest.mark.unit
class TestFilterOccupied:
    """Test subtraction of bookings and holds from slots."""

    def test_nothing_occupied_returns_all(self, two_provider_slots):
        assert filter_occupied(two_provider_slots, [], []) == two_provider_slots

    def test_booking_removes_only_its_provider(self, two_provider_slots):
        result = {s.time: s for s in filter_occupied(two_provider_slots, [make_booking()], [])}

        assert result[time(9, 5)].provider_ids == frozenset(["dr-jones"])
        assert result[time(9, 0)].provider_ids == frozenset(["dr-smith", "dr-jones"])

    def test_slot_dropped_when_every_provider_taken(self, two_provider_slots):
        result = filter_occupied(
            two_provider_slots,
            [make_booking(provider_id="dr-smith")],
            [make_reservation(provider_id="dr-jones")],
        )

        assert [s.time for s in result] == [time(9, 0), time(9, 10)]

    def test_reservation_occupies_like_booking(self, block_record):
        slots = aggregate_slots(MONDAY, [block_record()])

        result = filter_occupied(slots, [], [make_reservation()])

        assert [s.time for s in result] == [time(9, 0), time(9, 10)]

    def test_cancelled_booking_frees_slot(self, block_record):
        slots = aggregate_slots(MONDAY, [block_record()])

        result = filter_occupied(slots, [make_booking(status=BookingStatus.CANCELLED)], [])

        assert [s.time for s in result] == [time(9, 0), time(9, 5), time(9, 10)]

    def test_occupancy_on_other_date_ignored(self, block_record):
        slots = aggregate_slots(MONDAY, [block_record()])

        result = filter_occupied(slots, [make_booking(slot_date=TUESDAY)], [make_reservation(slot_date=TUESDAY)])

        assert len(result) == 3

    def test_input_slots_not_mutated(self, two_provider_slots):
        before = [s.provider_ids for s in two_provider_slots]

        filter_occupied(two_provider_slots, [make_booking()], [])

        assert [s.provider_ids for s in two_provider_slots] == before
