"""
Booking statistics for the admin dashboard and hall utilization reports.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from pendulum import Date

from .conflicts import active_only
from .models import Booking, BookingStatus, to_calendar_day


@dataclass
class DashboardStats:
    """
    Counts shown on the admin dashboard.

    ``monthly`` counts every stored booking of the current month by status,
    cancelled ones included.
    """
    day: Date
    today_confirmed: int = 0
    today_completed: int = 0
    total_active: int = 0
    upcoming: int = 0
    monthly: Dict[BookingStatus, int] = field(default_factory=dict)

    @property
    def today_total(self) -> int:
        return self.today_confirmed + self.today_completed

    @property
    def monthly_total(self) -> int:
        return sum(self.monthly.values())


@dataclass(frozen=True)
class VenueUsage:
    """Booking count and share of booked days of one venue over a period."""
    venue_id: str
    bookings: int
    booked_days: int
    total_days: int

    @property
    def utilization(self) -> int:
        """Percentage of days with at least one booking, rounded half up."""
        if self.total_days <= 0:
            return 0
        return math.floor(self.booked_days * 100 / self.total_days + 0.5)


def summarize_dashboard(bookings: Iterable[Booking], today: Date) -> DashboardStats:
    """
    Build dashboard counts relative to ``today``.

    Today's counts cover confirmed and completed bookings. Upcoming bookings
    are pending or confirmed ones after today.
    """
    today = to_calendar_day(today)
    stats = DashboardStats(day=today, monthly={status: 0 for status in BookingStatus})

    for booking in bookings:
        if booking.date.year == today.year and booking.date.month == today.month:
            stats.monthly[booking.status] += 1

        if not booking.blocks_slot:
            continue
        stats.total_active += 1

        if booking.date == today:
            if booking.status is BookingStatus.CONFIRMED:
                stats.today_confirmed += 1
            elif booking.status is BookingStatus.COMPLETED:
                stats.today_completed += 1
        elif booking.date > today and booking.status in (BookingStatus.PENDING, BookingStatus.CONFIRMED):
            stats.upcoming += 1

    return stats


def venue_usage(venue_id: str, bookings: Iterable[Booking], start: Date, end: Date) -> VenueUsage:
    """Count the active bookings of a venue in ``[start, end]`` and the days they occupy."""
    start = to_calendar_day(start)
    end = to_calendar_day(end)
    in_range: List[Booking] = [
        booking for booking in active_only(bookings)
        if booking.venue_id == venue_id and start <= booking.date <= end
    ]
    return VenueUsage(
        venue_id=venue_id,
        bookings=len(in_range),
        booked_days=len({booking.date for booking in in_range}),
        total_days=max(1, end.toordinal() - start.toordinal() + 1),
    )
