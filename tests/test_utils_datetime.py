"""Unit tests for datetime helpers and the UTC column type."""
import pytest
from datetime import date, datetime, time, timedelta, timezone

from core.utils_datetime import (
    UTC,
    add_minutes,
    date_range,
    ensure_utc,
    sunday_based_weekday,
    to_utc,
)
from db.base import UTCDateTime
from domain.enums import DayOfWeek


@pytest.mark.unit
class TestDateHelpers:

    @pytest.mark.parametrize("value,expected", [
        (date(2024, 3, 17), DayOfWeek.SUNDAY),
        (date(2024, 3, 18), DayOfWeek.MONDAY),
        (date(2024, 3, 23), DayOfWeek.SATURDAY),
    ])
    def test_sunday_based_weekday(self, value, expected):
        assert sunday_based_weekday(value) == expected

    def test_add_minutes_wraps_midnight(self):
        assert add_minutes(time(9, 55), 5) == time(10, 0)
        assert add_minutes(time(23, 55), 10) == time(0, 5)

    def test_date_range_inclusive(self):
        days = list(date_range(date(2024, 3, 30), date(2024, 4, 1)))

        assert days == [date(2024, 3, 30), date(2024, 3, 31), date(2024, 4, 1)]

    def test_ensure_utc_converts_offsets(self):
        aest = datetime(2024, 3, 18, 9, 0, tzinfo=timezone(timedelta(hours=10)))

        assert ensure_utc(aest) == datetime(2024, 3, 17, 23, 0, tzinfo=UTC)
        assert ensure_utc(datetime(2024, 3, 17, 23, 0)).tzinfo is not None

    def test_nonexistent_local_time_resolved(self):
        """Test 02:30 on Sydney's spring-forward night still converts."""
        assert to_utc(date(2024, 10, 6), time(2, 30), "Australia/Sydney").tzinfo is not None


@pytest.mark.unit
class TestUTCDateTime:

    def test_bind_stores_naive_utc(self):
        column_type = UTCDateTime()
        aest = datetime(2024, 3, 18, 9, 0, tzinfo=timezone(timedelta(hours=10)))

        assert column_type.process_bind_param(aest, None) == datetime(2024, 3, 17, 23, 0)

    def test_result_is_tagged_utc(self):
        value = UTCDateTime().process_result_value(datetime(2024, 3, 17, 23, 0), None)

        assert value.tzinfo is not None
        assert value.utcoffset() == timedelta(0)

    def test_naive_bind_rejected(self):
        with pytest.raises(ValueError):
            UTCDateTime().process_bind_param(datetime(2024, 3, 17, 23, 0), None)
