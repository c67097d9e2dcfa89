"""
Availability Service.

Owns provider availability blocks and the public read path: load one
snapshot of blocks, bookings and active holds, then run the slot pipeline
(grid -> aggregate -> occupancy) in memory.
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from core.config import Settings, settings as default_settings
from core.exceptions import AvailabilityBlockNotFound, SlotNoLongerAvailable
from core.utils_datetime import date_range, ensure_utc, get_current_datetime, sunday_based_weekday, to_utc
from db.models_sqlalchemy import AvailabilityBlock
from db.repositories import AuditRepository, AvailabilityRepository, BookingRepository
from domain.enums import AuditAction
from domain.models import (
    AvailabilityBlockCreate,
    AvailabilityBlockRecord,
    BookingRecord,
    ReservationRecord,
)
from domain.slots import TimeSlot
from .occupancy_filter import filter_occupied
from .reservation_manager import ReservationManager
from .slot_aggregator import aggregate_slots, provider_timezone
from .slot_grid import validate_window


logger = logging.getLogger(__name__)


class AvailabilityService:
    """Service for provider availability and the available-slot list."""

    def __init__(
        self,
        session: Session,
        reservation_manager: Optional[ReservationManager] = None,
        clock: Callable[[], datetime] = get_current_datetime,
        settings: Optional[Settings] = None,
    ):
        self.session = session
        self.settings = settings or default_settings
        self.clock = clock
        self.reservation_manager = reservation_manager or ReservationManager(
            session, ttl_minutes=self.settings.reservation_ttl_minutes, clock=clock
        )
        self.blocks = AvailabilityRepository(session)
        self.bookings = BookingRepository(session)
        self.audit = AuditRepository(session)

    def now(self) -> datetime:
        return ensure_utc(self.clock())

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def create_block(self, data: AvailabilityBlockCreate) -> AvailabilityBlockRecord:
        """
        Add an availability window for a provider.

        Raises:
            InvalidWindow: if start_time >= end_time or the zone is unknown
        """
        timezone = data.timezone or self.settings.default_timezone
        validate_window(data.start_time, data.end_time, timezone)

        block = AvailabilityBlock(
            provider_id=data.provider_id,
            kind=data.kind.value,
            day_of_week=data.day_of_week,
            specific_date=data.specific_date,
            start_time=data.start_time,
            end_time=data.end_time,
            timezone=timezone,
            max_bookings=data.max_bookings,
            is_active=True,
        )
        self.blocks.add(block)
        self.audit.record(
            AuditAction.BLOCK_CREATED,
            "availability_block",
            block.id,
            actor_id=block.provider_id,
            details={"kind": block.kind},
        )
        logger.info(
            f"Availability block {block.id} ({block.kind}) created for {block.provider_id}: "
            f"{block.start_time:%H:%M}-{block.end_time:%H:%M} {timezone}"
        )
        return AvailabilityBlockRecord.model_validate(block)

    def deactivate_block(self, block_id: UUID) -> AvailabilityBlockRecord:
        """Retire a block. Blocks are never deleted; deactivating twice is a no-op."""
        block = self.blocks.get(block_id)
        if block is None:
            raise AvailabilityBlockNotFound(
                f"Availability block {block_id} not found",
                details={"block_id": str(block_id)},
            )

        if block.is_active:
            block.is_active = False
            self.audit.record(
                AuditAction.BLOCK_DEACTIVATED,
                "availability_block",
                block.id,
                actor_id=block.provider_id,
            )
            self.session.flush()
            logger.info(f"Availability block {block.id} deactivated")
        return AvailabilityBlockRecord.model_validate(block)

    def list_provider_blocks(self, provider_id: str, include_inactive: bool = False) -> List[AvailabilityBlockRecord]:
        return [
            AvailabilityBlockRecord.model_validate(b)
            for b in self.blocks.list_for_provider(provider_id, include_inactive=include_inactive)
        ]

    # ------------------------------------------------------------------
    # Slot pipeline
    # ------------------------------------------------------------------

    def _active_blocks(self, dates: List[date]) -> List[AvailabilityBlockRecord]:
        return [
            AvailabilityBlockRecord.model_validate(b)
            for b in self.blocks.list_active_for_dates(dates, {sunday_based_weekday(d) for d in dates})
        ]

    def _slots_by_date(
        self,
        dates: List[date],
        blocks: Optional[List[AvailabilityBlockRecord]] = None,
    ) -> Dict[date, List[TimeSlot]]:
        """Run the pipeline for several dates against a single snapshot."""
        if blocks is None:
            blocks = self._active_blocks(dates)
        now = self.now()
        bookings = [BookingRecord.model_validate(b) for b in self.bookings.list_occupying(dates)]
        reservations = self.reservation_manager.list_active(now)

        granularity = self.settings.slot_granularity_minutes
        result = {}
        for slot_date in dates:
            day_bookings = [b for b in bookings if b.scheduled_date == slot_date]
            day_reservations = [r for r in reservations if r.date == slot_date]
            slots = aggregate_slots(slot_date, blocks, granularity)
            result[slot_date] = filter_occupied(slots, day_bookings, day_reservations, now)
        return result

    def list_available_slots(self, slot_date: date) -> List[TimeSlot]:
        """
        Slots on a date with at least one free provider.

        Returns:
            Slots ordered by time; empty when nothing is offered
        """
        slots = self._slots_by_date([slot_date])[slot_date]
        logger.debug(f"{len(slots)} available slots on {slot_date}")
        return slots

    def get_dates_with_availability(self, start_date: date, end_date: date) -> List[date]:
        """
        Dates in [start_date, end_date] that have at least one available slot.

        The range is capped at ``availability_search_days`` days.
        """
        if end_date < start_date:
            return []

        max_end = start_date + timedelta(days=self.settings.availability_search_days - 1)
        if end_date > max_end:
            logger.warning(f"Availability search {start_date}..{end_date} capped at {max_end}")
            end_date = max_end

        slots = self._slots_by_date(list(date_range(start_date, end_date)))
        return [d for d in sorted(slots) if slots[d]]

    def reserve_slot(
        self,
        requester_id: str,
        provider_id: str,
        slot_date: date,
        slot_time: time,
    ) -> ReservationRecord:
        """
        Hold a provider's slot if it is free in the current snapshot.

        Raises:
            SlotNoLongerAvailable: if the provider is not free at that slot
        """
        blocks = self._active_blocks([slot_date])
        slots = self._slots_by_date([slot_date], blocks)[slot_date]
        slot = self._find_free_slot(slots, provider_id, slot_time)
        if slot is None:
            logger.warning(
                f"Slot {provider_id} {slot_date} {slot_time:%H:%M} not available for {requester_id}"
            )
            raise SlotNoLongerAvailable(
                "This time is no longer available. Please choose another slot.",
                details={
                    "provider_id": provider_id,
                    "date": slot_date.isoformat(),
                    "time": slot_time.strftime("%H:%M"),
                },
            )

        timezone = provider_timezone(
            slot_date, blocks, provider_id, slot_time, self.settings.slot_granularity_minutes
        ) or slot.display_timezone
        return self.reservation_manager.create_reservation(
            requester_id=requester_id,
            provider_id=provider_id,
            slot_date=slot_date,
            slot_time=slot_time,
            utc_timestamp=to_utc(slot_date, slot_time, timezone),
            timezone=timezone,
        )

    @staticmethod
    def _find_free_slot(slots: Iterable[TimeSlot], provider_id: str, slot_time: time) -> Optional[TimeSlot]:
        for slot in slots:
            if slot.time == slot_time and provider_id in slot.provider_ids:
                return slot
        return None
