"""Value types flowing through the slot pipeline."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time
from typing import FrozenSet, Iterable, Tuple


SlotKey = Tuple[date, time]
OccupancyKey = Tuple[str, date, time]


@dataclass(frozen=True)
class TimeSlot:
    """
    A single bookable instant, derived per request and never persisted.

    ``provider_ids`` holds every provider still free at this instant.
    """

    date: date
    time: time
    utc_timestamp: datetime
    display_timezone: str
    timezone_abbr: str
    provider_ids: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def key(self) -> SlotKey:
        return (self.date, self.time)

    def with_providers(self, provider_ids: Iterable[str]) -> "TimeSlot":
        """Copy of this slot carrying a different provider set."""
        return replace(self, provider_ids=frozenset(provider_ids))
