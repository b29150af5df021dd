"""
Tests for the availability aggregator.
"""

import pendulum
import pytest

from hallbooking.domain.availability import AvailabilityAggregator, month_bounds
from hallbooking.domain.exceptions import InvalidBookingDate
from hallbooking.domain.models import Booking, BusinessHours, DayState, TimeSlot

VENUE = "video-conference"


def _booking(date: str, start: str, end: str, venue: str = VENUE, **kwargs) -> Booking:
    return Booking(venue_id=venue, date=date, start_time=start, end_time=end, **kwargs)


def _march() -> tuple:
    return month_bounds(2025, 3)


class TestFullyBookedDates:
    """Tests for the month-level fully booked computation."""

    def test_single_booking_spanning_business_hours_fills_day(self):
        aggregator = AvailabilityAggregator()
        start, end = _march()

        result = aggregator.compute_fully_booked_dates(
            VENUE, start, end, [_booking("2025-03-12", "09:00", "16:30")]
        )

        assert result == ["2025-03-12"]

    def test_half_hour_gap_keeps_day_open(self):
        """A free 12:00-12:30 grid slot is enough for the day not to be full."""
        aggregator = AvailabilityAggregator()
        start, end = _march()
        bookings = [
            _booking("2025-03-12", "09:00", "12:00"),
            _booking("2025-03-12", "12:30", "16:30"),
        ]

        assert aggregator.compute_fully_booked_dates(VENUE, start, end, bookings) == []
        assert aggregator.free_slots(bookings) == [TimeSlot.from_strings("12:00", "12:30")]

    def test_back_to_back_bookings_fill_day(self):
        aggregator = AvailabilityAggregator()
        start, end = _march()
        bookings = [
            _booking("2025-03-12", "09:00", "12:00"),
            _booking("2025-03-12", "12:00", "16:30"),
        ]

        assert aggregator.compute_fully_booked_dates(VENUE, start, end, bookings) == ["2025-03-12"]

    def test_sub_slot_gap_still_fills_day(self):
        """A 15-minute gap does not leave any whole grid slot free."""
        aggregator = AvailabilityAggregator()
        start, end = _march()
        bookings = [
            _booking("2025-03-12", "09:00", "12:15"),
            _booking("2025-03-12", "12:30", "16:30"),
        ]

        assert aggregator.compute_fully_booked_dates(VENUE, start, end, bookings) == ["2025-03-12"]

    def test_days_without_bookings_are_not_reported(self):
        aggregator = AvailabilityAggregator()
        start, end = _march()

        assert aggregator.compute_fully_booked_dates(VENUE, start, end, []) == []

    def test_cancelled_bookings_free_the_day(self):
        aggregator = AvailabilityAggregator()
        start, end = _march()
        bookings = [
            _booking("2025-03-12", "09:00", "16:30", status="cancelled"),
            _booking("2025-03-13", "09:00", "16:30", is_active=False),
        ]

        assert aggregator.compute_fully_booked_dates(VENUE, start, end, bookings) == []

    def test_completed_bookings_still_count(self):
        aggregator = AvailabilityAggregator()
        start, end = _march()

        result = aggregator.compute_fully_booked_dates(
            VENUE, start, end, [_booking("2025-03-12", "09:00", "16:30", status="completed")]
        )

        assert result == ["2025-03-12"]

    def test_other_venues_and_months_are_ignored(self):
        aggregator = AvailabilityAggregator()
        start, end = _march()
        bookings = [
            _booking("2025-03-12", "09:00", "16:30", venue="lab"),
            _booking("2025-04-01", "09:00", "16:30"),
        ]

        assert aggregator.compute_fully_booked_dates(VENUE, start, end, bookings) == []

    def test_result_is_sorted_and_unique(self):
        aggregator = AvailabilityAggregator()
        start, end = _march()
        bookings = [
            _booking("2025-03-20", "09:00", "16:30"),
            _booking("2025-03-05", "09:00", "13:00"),
            _booking("2025-03-05", "13:00", "16:30"),
        ]

        assert aggregator.compute_fully_booked_dates(VENUE, start, end, bookings) == ["2025-03-05", "2025-03-20"]

    def test_custom_grid(self):
        aggregator = AvailabilityAggregator(BusinessHours(start_hour=10, end_hour=12, end_minute=0, interval_minutes=60))
        start, end = _march()

        result = aggregator.compute_fully_booked_dates(
            VENUE, start, end, [_booking("2025-03-12", "10:00", "12:00")]
        )

        assert result == ["2025-03-12"]


class TestBookedDates:
    """Tests for days holding any booking."""

    def test_partial_days_count_as_booked(self):
        aggregator = AvailabilityAggregator()
        start, end = _march()
        bookings = [
            _booking("2025-03-20", "10:00", "11:00"),
            _booking("2025-03-05", "09:00", "16:30"),
            _booking("2025-03-05", "10:00", "11:00", venue="lab"),
            _booking("2025-03-21", "10:00", "11:00", status="cancelled"),
            _booking("2025-04-01", "10:00", "11:00"),
        ]

        assert aggregator.booked_dates(VENUE, start, end, bookings) == ["2025-03-05", "2025-03-20"]
        assert aggregator.compute_fully_booked_dates(VENUE, start, end, bookings) == ["2025-03-05"]


class TestMonthBounds:
    def test_bounds(self):
        assert month_bounds(2024, 2) == (pendulum.date(2024, 2, 1), pendulum.date(2024, 2, 29))

    @pytest.mark.parametrize("year,month", [(2025, 0), (2025, 13), (0, 1), (10000, 1)])
    def test_out_of_range(self, year, month):
        with pytest.raises(InvalidBookingDate):
            month_bounds(year, month)


class TestSlotAvailability:
    """Tests for single-interval checks."""

    def test_unaligned_overlap_is_detected(self):
        aggregator = AvailabilityAggregator()
        bookings = [_booking("2025-03-12", "10:00", "11:00")]

        assert not aggregator.is_slot_available(VENUE, pendulum.date(2025, 3, 12), "10:15", "10:45", bookings)

    def test_back_to_back_is_available(self):
        aggregator = AvailabilityAggregator()
        bookings = [_booking("2025-03-12", "10:00", "11:00")]

        assert aggregator.is_slot_available(VENUE, pendulum.date(2025, 3, 12), "11:00", "11:30", bookings)

    def test_other_days_and_venues_do_not_conflict(self):
        aggregator = AvailabilityAggregator()
        bookings = [
            _booking("2025-03-13", "10:00", "11:00"),
            _booking("2025-03-12", "10:00", "11:00", venue="lab"),
        ]

        assert aggregator.is_slot_available(VENUE, "2025-03-12", "10:00", "11:00", bookings)

    def test_cancelled_booking_does_not_conflict(self):
        aggregator = AvailabilityAggregator()
        bookings = [_booking("2025-03-12", "10:00", "11:00", status="cancelled", is_active=False)]

        assert aggregator.is_slot_available(VENUE, "2025-03-12", "10:00", "11:00", bookings)

    def test_check_slot_reports_conflicts(self):
        aggregator = AvailabilityAggregator()
        blocking = _booking("2025-03-12", "10:00", "11:00", id="a")

        result = aggregator.check_slot(VENUE, "2025-03-12", "10:30", "12:00", [blocking])

        assert not result.available
        assert not result
        assert [b.id for b in result.conflicts] == ["a"]

    def test_check_slot_available(self):
        result = AvailabilityAggregator().check_slot(VENUE, "2025-03-12", "10:30", "12:00", [])

        assert result.available
        assert result.conflicts == []


class TestMonthCalendar:
    """Tests for the month view with past-date handling."""

    def test_states(self):
        aggregator = AvailabilityAggregator()
        bookings = [
            _booking("2025-03-05", "09:00", "16:30"),
            _booking("2025-03-20", "09:00", "16:30"),
            _booking("2025-03-21", "09:00", "12:00"),
        ]

        days = aggregator.month_calendar(VENUE, 2025, 3, bookings, today=pendulum.date(2025, 3, 10))
        states = {day.date.isoformat(): day.state for day in days}

        assert len(days) == 31
        assert states["2025-03-01"] is DayState.PAST
        assert states["2025-03-05"] is DayState.PAST
        assert states["2025-03-09"] is DayState.PAST
        assert states["2025-03-10"] is DayState.AVAILABLE
        assert states["2025-03-20"] is DayState.BOOKED
        assert states["2025-03-21"] is DayState.AVAILABLE
        assert [day.date.isoformat() for day in days if day.is_bookable][0] == "2025-03-10"

    def test_february_leap_year(self):
        days = AvailabilityAggregator().month_calendar(VENUE, 2024, 2, [], today=pendulum.date(2024, 1, 1))

        assert len(days) == 29
        assert all(day.state is DayState.AVAILABLE for day in days)

    def test_is_past_compares_days_only(self):
        today = pendulum.date(2025, 3, 10)

        assert AvailabilityAggregator.is_past(pendulum.date(2025, 3, 9), today)
        assert not AvailabilityAggregator.is_past(pendulum.date(2025, 3, 10), today)
        assert not AvailabilityAggregator.is_past(pendulum.datetime(2025, 3, 10, 23, 0, tz="UTC"), today)
