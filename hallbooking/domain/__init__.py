"""
Domain layer - Pure booking logic without external dependencies.
"""

from .availability import AvailabilityAggregator, month_bounds
from .conflicts import find_conflicts, has_conflict, overlaps
from .models import (
    AvailabilityResult,
    Booking,
    BookingStatus,
    BusinessHours,
    CalendarDay,
    DayState,
    DurationLimits,
    TimeSlot,
    Venue,
    add_minutes,
    generate_day_slots,
    to_calendar_day,
    to_minutes,
)
from .statistics import DashboardStats, VenueUsage, summarize_dashboard, venue_usage

__all__ = [
    "AvailabilityAggregator",
    "AvailabilityResult",
    "Booking",
    "BookingStatus",
    "BusinessHours",
    "CalendarDay",
    "DashboardStats",
    "DayState",
    "DurationLimits",
    "TimeSlot",
    "Venue",
    "VenueUsage",
    "add_minutes",
    "find_conflicts",
    "generate_day_slots",
    "has_conflict",
    "month_bounds",
    "overlaps",
    "summarize_dashboard",
    "to_calendar_day",
    "to_minutes",
    "venue_usage",
]
