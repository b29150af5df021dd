"""
Availability queries over a venue's bookings.

Pure domain logic: callers fetch the bookings and pass them in, nothing here
performs I/O or logs.

Two kinds of question are answered:
1. Is an exact interval free? Checked directly against the booked intervals,
   without snapping to the grid, so 09:15-09:45 is a valid request.
2. Which days of a month are fully booked? Answered on the atomic grid: a day
   is full only when every grid slot overlaps some booking, even if the free
   remainder is a single 30-minute slot.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Sequence, Tuple

import pendulum
from pendulum import Date

from .conflicts import active_only, find_conflicts, has_conflict, slots_overlap
from .exceptions import InvalidBookingDate
from .models import (
    AvailabilityResult,
    Booking,
    BusinessHours,
    CalendarDay,
    DayState,
    TimeSlot,
    to_calendar_day,
)


def month_bounds(year: int, month: int) -> Tuple[Date, Date]:
    """
    Return the first and last calendar day of a month.

    Raises:
        InvalidBookingDate: If the year or month is out of range
    """
    if not 1 <= month <= 12:
        raise InvalidBookingDate(f"Month must be between 1 and 12, got {month}")
    if not 1 <= year <= 9999:
        raise InvalidBookingDate(f"Year must be between 1 and 9999, got {year}")
    first = pendulum.date(year, month, 1)
    return first, first.end_of("month")


class AvailabilityAggregator:
    """
    Answers availability questions for one business-hours grid.

    Venues sharing a grid can share an aggregator; bookings are always
    filtered by ``venue_id`` before use.
    """

    def __init__(self, business_hours: BusinessHours | None = None):
        self.business_hours = business_hours or BusinessHours()

    def bookable_grid(self) -> List[TimeSlot]:
        """
        Grid slots that can actually host a booking.

        The closing mark is part of the grid but no booking may run past
        closing, so it can never be covered and is left out.
        """
        closing = self.business_hours.closing_minutes
        return [slot for slot in self.business_hours.day_slots() if slot.start < closing]

    def free_slots(self, bookings: Iterable[Booking]) -> List[TimeSlot]:
        """Grid slots of a single day not overlapped by any active booking."""
        booked = [booking.slot for booking in active_only(bookings)]
        return [
            slot for slot in self.bookable_grid()
            if not any(slots_overlap(slot, taken) for taken in booked)
        ]

    def compute_fully_booked_dates(
        self,
        venue_id: str,
        month_start: Date,
        month_end: Date,
        bookings: Iterable[Booking],
    ) -> List[str]:
        """
        Find the days in ``[month_start, month_end]`` with no free grid slot.

        Days without bookings are never reported. The result is a sorted list
        of unique ISO date strings.
        """
        by_day = self._group_by_day(venue_id, month_start, month_end, bookings)

        fully_booked = [
            day_key for day_key, day_bookings in by_day.items()
            if not self.free_slots(day_bookings)
        ]
        return sorted(fully_booked)

    def booked_dates(
        self,
        venue_id: str,
        start: Date,
        end: Date,
        bookings: Iterable[Booking],
    ) -> List[str]:
        """Days in ``[start, end]`` holding at least one active booking, sorted."""
        return sorted(self._group_by_day(venue_id, start, end, bookings))

    def is_slot_available(
        self,
        venue_id: str,
        day: Date,
        start_time: str,
        end_time: str,
        bookings: Iterable[Booking],
    ) -> bool:
        candidate = TimeSlot.from_strings(start_time, end_time)
        existing = [booking.slot for booking in self._bookings_on(venue_id, day, bookings)]
        return not has_conflict(candidate, existing)

    def check_slot(
        self,
        venue_id: str,
        day: Date,
        start_time: str,
        end_time: str,
        bookings: Iterable[Booking],
    ) -> AvailabilityResult:
        """Like ``is_slot_available`` but also reports the conflicting bookings."""
        candidate = TimeSlot.from_strings(start_time, end_time)
        conflicts = find_conflicts(candidate, self._bookings_on(venue_id, day, bookings))
        return AvailabilityResult(available=not conflicts, conflicts=conflicts)

    @staticmethod
    def is_past(day: Date, today: Date) -> bool:
        """Compare calendar days only; today itself is not past."""
        return to_calendar_day(day) < to_calendar_day(today)

    def month_calendar(
        self,
        venue_id: str,
        year: int,
        month: int,
        bookings: Iterable[Booking],
        today: Date,
    ) -> List[CalendarDay]:
        """
        Classify every day of a month as past, booked or available.

        Past days win over fully booked ones.
        """
        month_start, month_end = month_bounds(year, month)
        fully_booked = set(
            self.compute_fully_booked_dates(venue_id, month_start, month_end, bookings)
        )

        days: List[CalendarDay] = []
        current = month_start
        while current <= month_end:
            if self.is_past(current, today):
                state = DayState.PAST
            elif current.isoformat() in fully_booked:
                state = DayState.BOOKED
            else:
                state = DayState.AVAILABLE
            days.append(CalendarDay(date=current, state=state))
            current = current.add(days=1)
        return days

    @staticmethod
    def _bookings_on(venue_id: str, day: Date, bookings: Iterable[Booking]) -> List[Booking]:
        day = to_calendar_day(day)
        return [
            booking for booking in active_only(bookings)
            if booking.venue_id == venue_id and booking.date == day
        ]

    @staticmethod
    def _group_by_day(
        venue_id: str,
        start: Date,
        end: Date,
        bookings: Iterable[Booking],
    ) -> Dict[str, Sequence[Booking]]:
        start = to_calendar_day(start)
        end = to_calendar_day(end)
        by_day: Dict[str, List[Booking]] = defaultdict(list)
        for booking in active_only(bookings):
            if booking.venue_id != venue_id:
                continue
            if start <= booking.date <= end:
                by_day[booking.day_key].append(booking)
        return by_day
