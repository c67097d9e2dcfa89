"""Unit tests for slot aggregation across providers."""
import pytest
from datetime import date, time

from domain.enums import AvailabilityKind
from services.slot_aggregator import aggregate_slots, block_matches_date, provider_timezone

from .conftest import MONDAY, TUESDAY


def _times(slots):
    return [s.time for s in slots]


@pytest.mark.unit
class TestBlockMatching:
    """Test which blocks apply to a date."""

    def test_recurring_matches_sunday_based_weekday(self, block_record):
        monday_block = block_record(day_of_week=1)

        assert block_matches_date(monday_block, MONDAY)
        assert not block_matches_date(monday_block, TUESDAY)

    def test_sunday_is_zero(self, block_record):
        assert block_matches_date(block_record(day_of_week=0), date(2024, 3, 17))

    def test_one_off_matches_only_its_date(self, block_record):
        block = block_record(kind=AvailabilityKind.ONE_OFF, specific_date=TUESDAY)

        assert block_matches_date(block, TUESDAY)
        assert not block_matches_date(block, MONDAY)

    def test_inactive_never_matches(self, block_record):
        assert not block_matches_date(block_record(is_active=False), MONDAY)


@pytest.mark.unit
class TestAggregateSlots:
    """Test merging provider grids into one slot list."""

    def test_no_blocks_gives_empty_list(self):
        assert aggregate_slots(MONDAY, []) == []

    def test_single_provider(self, block_record):
        slots = aggregate_slots(MONDAY, [block_record()])

        assert _times(slots) == [time(9, 0), time(9, 5), time(9, 10)]
        assert all(s.provider_ids == frozenset(["dr-smith"]) for s in slots)

    def test_provider_ids_are_unioned(self, block_record):
        """Test overlapping windows from two providers share slots."""
        blocks = [
            block_record(provider_id="dr-smith", start_time=time(9, 0), end_time=time(9, 15)),
            block_record(provider_id="dr-jones", start_time=time(9, 5), end_time=time(9, 20)),
        ]

        slots = {s.time: s for s in aggregate_slots(MONDAY, blocks)}

        assert list(slots) == [time(9, 0), time(9, 5), time(9, 10), time(9, 15)]
        assert slots[time(9, 0)].provider_ids == frozenset(["dr-smith"])
        assert slots[time(9, 5)].provider_ids == frozenset(["dr-smith", "dr-jones"])
        assert slots[time(9, 10)].provider_ids == frozenset(["dr-smith", "dr-jones"])
        assert slots[time(9, 15)].provider_ids == frozenset(["dr-jones"])

    def test_union_is_independent_of_input_order(self, block_record):
        blocks = [
            block_record(provider_id="dr-smith", start_time=time(9, 0), end_time=time(9, 15)),
            block_record(provider_id="dr-jones", start_time=time(9, 5), end_time=time(9, 20)),
            block_record(provider_id="dr-brown", kind=AvailabilityKind.ONE_OFF, specific_date=MONDAY,
                         start_time=time(8, 50), end_time=time(9, 5)),
        ]

        forward = aggregate_slots(MONDAY, blocks)
        backward = aggregate_slots(MONDAY, list(reversed(blocks)))

        assert forward == backward

    def test_output_sorted_by_time(self, block_record):
        blocks = [
            block_record(provider_id="dr-smith", start_time=time(14, 0), end_time=time(14, 10)),
            block_record(provider_id="dr-jones", start_time=time(8, 0), end_time=time(8, 10)),
        ]

        assert _times(aggregate_slots(MONDAY, blocks)) == [time(8, 0), time(8, 5), time(14, 0), time(14, 5)]

    def test_same_provider_duplicate_windows_do_not_duplicate_slots(self, block_record):
        blocks = [block_record(), block_record(start_time=time(9, 5), end_time=time(9, 20))]

        slots = aggregate_slots(MONDAY, blocks)

        assert _times(slots) == [time(9, 0), time(9, 5), time(9, 10), time(9, 15)]

    def test_blocks_for_other_dates_ignored(self, block_record):
        blocks = [
            block_record(day_of_week=2),
            block_record(kind=AvailabilityKind.ONE_OFF, specific_date=TUESDAY),
        ]

        assert aggregate_slots(MONDAY, blocks) == []

    def test_blocked_window_removes_provider(self, block_record):
        blocks = [
            block_record(provider_id="dr-smith", start_time=time(9, 0), end_time=time(10, 0)),
            block_record(provider_id="dr-smith", kind=AvailabilityKind.BLOCKED, specific_date=MONDAY,
                         start_time=time(9, 20), end_time=time(9, 40)),
        ]

        times = _times(aggregate_slots(MONDAY, blocks))

        assert time(9, 15) in times
        assert time(9, 20) not in times
        assert time(9, 35) not in times
        assert time(9, 40) in times

    def test_blocked_window_suppresses_partially_overlapping_slot(self, block_record):
        blocks = [
            block_record(start_time=time(9, 0), end_time=time(9, 15)),
            block_record(kind=AvailabilityKind.BLOCKED, specific_date=MONDAY,
                         start_time=time(9, 7), end_time=time(9, 8)),
        ]

        assert _times(aggregate_slots(MONDAY, blocks)) == [time(9, 0), time(9, 10)]

    def test_blocked_window_only_affects_its_provider(self, block_record):
        blocks = [
            block_record(provider_id="dr-smith"),
            block_record(provider_id="dr-jones"),
            block_record(provider_id="dr-smith", kind=AvailabilityKind.BLOCKED, specific_date=MONDAY,
                         start_time=time(9, 0), end_time=time(9, 15)),
        ]

        slots = aggregate_slots(MONDAY, blocks)

        assert len(slots) == 3
        assert all(s.provider_ids == frozenset(["dr-jones"]) for s in slots)

    def test_blocked_entry_never_adds_capacity(self, block_record):
        blocks = [block_record(kind=AvailabilityKind.BLOCKED, specific_date=MONDAY)]

        assert aggregate_slots(MONDAY, blocks) == []

    def test_malformed_block_is_skipped(self, block_record):
        blocks = [
            block_record(provider_id="dr-legacy", start_time=time(10, 0), end_time=time(9, 0)),
            block_record(provider_id="dr-smith"),
        ]

        slots = aggregate_slots(MONDAY, blocks)

        assert len(slots) == 3
        assert all("dr-legacy" not in s.provider_ids for s in slots)


@pytest.mark.unit
class TestProviderTimezone:
    """Test resolving one provider's own zone behind a merged slot."""

    def test_each_provider_keeps_its_zone(self, block_record):
        blocks = [
            block_record(provider_id="dr-a", timezone="Australia/Brisbane"),
            block_record(provider_id="dr-b", timezone="Australia/Sydney"),
        ]

        assert provider_timezone(MONDAY, blocks, "dr-a", time(9, 0)) == "Australia/Brisbane"
        assert provider_timezone(MONDAY, blocks, "dr-b", time(9, 0)) == "Australia/Sydney"

    def test_time_outside_own_windows_is_none(self, block_record):
        blocks = [block_record(provider_id="dr-a")]

        assert provider_timezone(MONDAY, blocks, "dr-a", time(9, 15)) is None
        assert provider_timezone(MONDAY, blocks, "dr-a", time(9, 2)) is None
        assert provider_timezone(MONDAY, blocks, "dr-b", time(9, 0)) is None

    def test_blocked_entries_are_not_offering_windows(self, block_record):
        blocks = [block_record(provider_id="dr-a", kind=AvailabilityKind.BLOCKED, specific_date=MONDAY)]

        assert provider_timezone(MONDAY, blocks, "dr-a", time(9, 0)) is None
