"""Scheduling services: slot pipeline, reservations and booking lifecycle."""

from .slot_grid import calculate_slot_count, generate_time_grid
from .slot_aggregator import aggregate_slots, block_matches_date, provider_timezone
from .occupancy_filter import booking_occupies, filter_occupied
from .reservation_manager import ReservationManager
from .booking_service import BookingService
from .availability_service import AvailabilityService
from .scheduling_service import SchedulingService

__all__ = [
    "calculate_slot_count",
    "generate_time_grid",
    "aggregate_slots",
    "block_matches_date",
    "provider_timezone",
    "booking_occupies",
    "filter_occupied",
    "ReservationManager",
    "BookingService",
    "AvailabilityService",
    "SchedulingService",
]
