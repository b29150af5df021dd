"""
Application services for requesting and managing hall bookings.

The service coordinates the booking repository, the clock and an optional
notifier, and delegates every availability decision to the domain-level
``AvailabilityAggregator``. Collaborators are described by protocols so they
can be replaced by stubs in tests or by a database-backed store.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Protocol, Sequence

import pendulum
from pendulum import Date, DateTime

from ..config import AppConfig
from ..domain.availability import AvailabilityAggregator, month_bounds
from ..domain.conflicts import find_conflicts
from ..domain.exceptions import (
    BookingNotFound,
    InvalidBookingDate,
    InvalidStatus,
    OutsideBusinessHours,
    SlotConflict,
    UnknownVenue,
)
from ..domain.models import (
    BLOCKING_STATUSES,
    AvailabilityResult,
    Booking,
    BookingStatus,
    CalendarDay,
    DurationLimits,
    TimeSlot,
    Venue,
    minutes_to_time,
    to_calendar_day,
)
from ..domain.statistics import DashboardStats, VenueUsage, summarize_dashboard, venue_usage

logger = logging.getLogger(__name__)

ConflictGuard = Callable[[Sequence[Booking]], None]


class BookingRepositoryProtocol(Protocol):
    """Persistence behaviour needed by the service."""

    async def fetch_active_bookings(
        self,
        venue_id: str,
        start_day: Date,
        end_day: Optional[Date] = None,
    ) -> List[Booking]:
        """Return blocking bookings of a venue between two days, inclusive."""

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        """Return a booking by id, or None."""

    async def reserve(self, booking: Booking, guard: ConflictGuard) -> Booking:
        """
        Insert a booking unless ``guard`` raises.

        The guard receives the active bookings of the same venue and day,
        read inside the same atomic step as the insert.
        """

    async def update(self, booking: Booking, guard: Optional[ConflictGuard] = None) -> Booking:
        """Replace a stored booking, optionally re-checking conflicts atomically."""

    async def list_bookings(
        self,
        venue_id: Optional[str] = None,
        include_inactive: bool = False,
    ) -> List[Booking]:
        """Return stored bookings, newest day first."""


class ClockProtocol(Protocol):
    """Source of the current day and time in the college's timezone."""

    def today(self) -> Date:
        ...

    def now(self) -> DateTime:
        ...


class BookingNotifierProtocol(Protocol):
    """Receives booking lifecycle events, e.g. to send emails."""

    def booking_confirmed(self, booking: Booking, venue: Venue) -> None:
        ...

    def booking_cancelled(self, booking: Booking, venue: Venue) -> None:
        ...


class BookingService:
    """
    Orchestrates booking requests, cancellations and calendar queries.

    Cancellation is always a soft delete: the booking stays stored with
    ``is_active=False`` and status ``cancelled``.
    """

    def __init__(
        self,
        repository: BookingRepositoryProtocol,
        venues: Sequence[Venue],
        clock: ClockProtocol,
        limits: DurationLimits | None = None,
        max_advance_days: int = 90,
        notifier: BookingNotifierProtocol | None = None,
    ) -> None:
        self._repository = repository
        self._venues: Dict[str, Venue] = {venue.id.lower(): venue for venue in venues}
        self._clock = clock
        self._limits = limits or DurationLimits()
        self._max_advance_days = max_advance_days
        self._notifier = notifier
        self._aggregators: Dict[str, AvailabilityAggregator] = {}

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        repository: BookingRepositoryProtocol,
        clock: ClockProtocol,
        notifier: BookingNotifierProtocol | None = None,
    ) -> "BookingService":
        return cls(
            repository=repository,
            venues=config.build_venues(),
            clock=clock,
            limits=config.limits.to_duration_limits(),
            max_advance_days=config.limits.max_advance_days,
            notifier=notifier,
        )

    @property
    def venues(self) -> List[Venue]:
        return list(self._venues.values())

    def today(self) -> Date:
        return to_calendar_day(self._clock.today())

    def get_venue(self, venue_id: str) -> Venue:
        venue = self._venues.get(venue_id.lower())
        if venue is None:
            raise UnknownVenue(f"Unknown venue: '{venue_id}'")
        return venue

    def aggregator_for(self, venue: Venue) -> AvailabilityAggregator:
        aggregator = self._aggregators.get(venue.id)
        if aggregator is None:
            aggregator = AvailabilityAggregator(venue.business_hours)
            self._aggregators[venue.id] = aggregator
        return aggregator

    def validate_request(self, venue: Venue, day: Date, start_time: str, end_time: str) -> TimeSlot:
        """
        Validate a booking request before any bookings are read.

        Raises:
            InvalidTimeFormat: If a time is not HH:MM
            InvalidDuration: If the interval is reversed, empty or outside the limits
            OutsideBusinessHours: If the interval leaves the venue's business hours
            InvalidBookingDate: If the day is past or too far ahead
        """
        slot = TimeSlot.from_strings(start_time, end_time)
        hours = venue.business_hours
        opening = minutes_to_time(hours.opening_minutes)
        closing = minutes_to_time(hours.closing_minutes)

        if not hours.is_within(start_time):
            raise OutsideBusinessHours(f"Start time must be between {opening} and {closing}")
        if slot.end > hours.closing_minutes:
            raise OutsideBusinessHours(f"End time cannot be later than {closing}")

        self._limits.validate(slot)

        today = self.today()
        if AvailabilityAggregator.is_past(day, today):
            raise InvalidBookingDate("Date cannot be in the past")
        if day > today.add(days=self._max_advance_days):
            raise InvalidBookingDate(
                f"Date cannot be more than {self._max_advance_days} days in advance"
            )
        return slot

    async def request_booking(
        self,
        *,
        venue_id: str,
        date: Date | str,
        start_time: str,
        end_time: str,
        name: str = "",
        department: str = "",
        purpose: str = "",
    ) -> Booking:
        """
        Validate, conflict-check and store a new booking.

        The initial status depends on the venue: venues requiring approval
        start ``pending``, the others are confirmed and notified at once.
        """
        venue = self.get_venue(venue_id)
        day = to_calendar_day(date)
        slot = self.validate_request(venue, day, start_time, end_time)

        booking = Booking(
            venue_id=venue.id,
            date=day,
            start_time=start_time,
            end_time=end_time,
            status=venue.initial_status,
            name=name,
            department=department,
            purpose=purpose,
        )

        saved = await self._repository.reserve(booking, self._conflict_guard(venue, slot))
        logger.info("Booked %s on %s %s (%s)", venue.name, saved.day_key, slot, saved.status.value)

        if saved.status is BookingStatus.CONFIRMED:
            self._notify_confirmed(saved, venue)
        return saved

    async def check_availability(
        self,
        venue_id: str,
        date: Date | str,
        start_time: str,
        end_time: str,
    ) -> AvailabilityResult:
        """Check an arbitrary interval against the venue's active bookings."""
        venue = self.get_venue(venue_id)
        day = to_calendar_day(date)
        bookings = await self._repository.fetch_active_bookings(venue.id, day)
        return self.aggregator_for(venue).check_slot(venue.id, day, start_time, end_time, bookings)

    async def fully_booked_dates(self, venue_id: str, year: int, month: int) -> List[str]:
        venue = self.get_venue(venue_id)
        month_start, month_end = month_bounds(year, month)
        bookings = await self._repository.fetch_active_bookings(venue.id, month_start, month_end)
        return self.aggregator_for(venue).compute_fully_booked_dates(
            venue.id, month_start, month_end, bookings
        )

    async def booked_dates(self, venue_id: str, year: int, month: int) -> List[str]:
        """Days of a month with any active booking, for admin calendars."""
        venue = self.get_venue(venue_id)
        month_start, month_end = month_bounds(year, month)
        bookings = await self._repository.fetch_active_bookings(venue.id, month_start, month_end)
        return self.aggregator_for(venue).booked_dates(venue.id, month_start, month_end, bookings)

    async def dashboard_stats(self) -> DashboardStats:
        """Today's, upcoming and this month's booking counts across all venues."""
        bookings = await self._repository.list_bookings(include_inactive=True)
        return summarize_dashboard(bookings, self.today())

    async def venue_utilization(self, year: int, month: int) -> List[VenueUsage]:
        """Booking count and share of booked days per venue for one month."""
        month_start, month_end = month_bounds(year, month)
        usage: List[VenueUsage] = []
        for venue in self.venues:
            bookings = await self._repository.fetch_active_bookings(venue.id, month_start, month_end)
            usage.append(venue_usage(venue.id, bookings, month_start, month_end))
        return usage

    async def month_calendar(self, venue_id: str, year: int, month: int) -> List[CalendarDay]:
        """Month view with past days marked using the injected clock."""
        venue = self.get_venue(venue_id)
        month_start, month_end = month_bounds(year, month)
        bookings = await self._repository.fetch_active_bookings(venue.id, month_start, month_end)
        return self.aggregator_for(venue).month_calendar(
            venue.id, year, month, bookings, today=self.today()
        )

    async def free_slots(self, venue_id: str, date: Date | str) -> List[TimeSlot]:
        venue = self.get_venue(venue_id)
        day = to_calendar_day(date)
        bookings = await self._repository.fetch_active_bookings(venue.id, day)
        return self.aggregator_for(venue).free_slots(bookings)

    async def bookings_on(self, venue_id: str, date: Date | str) -> List[Booking]:
        """Active bookings of a venue on one day, ordered by start time."""
        venue = self.get_venue(venue_id)
        day = to_calendar_day(date)
        bookings = await self._repository.fetch_active_bookings(venue.id, day)
        return sorted(bookings, key=lambda booking: booking.slot)

    async def list_bookings(
        self,
        venue_id: Optional[str] = None,
        include_inactive: bool = False,
    ) -> List[Booking]:
        if venue_id is not None:
            venue_id = self.get_venue(venue_id).id
        return await self._repository.list_bookings(venue_id=venue_id, include_inactive=include_inactive)

    async def cancel_booking(self, booking_id: str, admin_note: str = "") -> Booking:
        """Soft-delete a booking, freeing its slot."""
        booking = await self._get_booking(booking_id)
        if not booking.is_active:
            return booking

        cancelled = replace(
            booking,
            status=BookingStatus.CANCELLED,
            is_active=False,
            admin_note=admin_note or booking.admin_note,
        )
        saved = await self._repository.update(cancelled)
        venue = self.get_venue(saved.venue_id)
        logger.info("Cancelled booking %s for %s on %s", saved.id, venue.name, saved.day_key)

        self._notify_cancelled(saved, venue)
        return saved

    async def update_status(
        self,
        booking_id: str,
        status: BookingStatus | str,
        admin_note: str = "",
    ) -> Booking:
        """
        Apply an admin status change.

        Moving a pending booking to confirmed notifies the requester.
        Re-entering a blocking status re-checks conflicts.

        Raises:
            InvalidStatus: If the status is unknown or the booking was cancelled
        """
        new_status = BookingStatus.parse(status)
        booking = await self._get_booking(booking_id)

        if not booking.is_active:
            raise InvalidStatus("Cancelled bookings cannot be updated")

        if new_status is BookingStatus.CANCELLED:
            return await self.cancel_booking(booking_id, admin_note=admin_note)

        venue = self.get_venue(booking.venue_id)
        previous = booking.status
        updated = replace(booking, status=new_status, admin_note=admin_note or booking.admin_note)

        guard = None
        if previous not in BLOCKING_STATUSES:
            guard = self._conflict_guard(venue, updated.slot, exclude_id=updated.id)

        saved = await self._repository.update(updated, guard)
        logger.info("Booking %s status %s -> %s", saved.id, previous.value, new_status.value)

        if previous is BookingStatus.PENDING and new_status is BookingStatus.CONFIRMED:
            self._notify_confirmed(saved, venue)
        return saved

    async def complete_elapsed_bookings(self) -> List[Booking]:
        """Mark confirmed bookings whose end time has passed as completed."""
        now = self._clock.now()
        completed: List[Booking] = []

        for booking in await self._repository.list_bookings():
            if booking.status is not BookingStatus.CONFIRMED:
                continue
            if now > self._ends_at(booking, now):
                saved = await self._repository.update(replace(booking, status=BookingStatus.COMPLETED))
                completed.append(saved)

        if completed:
            logger.info("Marked %d booking(s) as completed", len(completed))
        return completed

    async def _get_booking(self, booking_id: str) -> Booking:
        booking = await self._repository.get_booking(booking_id)
        if booking is None:
            raise BookingNotFound(f"Booking not found: '{booking_id}'")
        return booking

    @staticmethod
    def _conflict_guard(venue: Venue, slot: TimeSlot, exclude_id: str = "") -> ConflictGuard:
        def guard(existing: Sequence[Booking]) -> None:
            others = [booking for booking in existing if not exclude_id or booking.id != exclude_id]
            conflicts = find_conflicts(slot, others)
            if conflicts:
                raise SlotConflict(f"{venue.name} is already booked for this time slot", conflicts)

        return guard

    @staticmethod
    def _ends_at(booking: Booking, now: DateTime) -> DateTime:
        day = booking.date
        start_of_day = pendulum.datetime(day.year, day.month, day.day, tz=now.tzinfo)
        return start_of_day.add(minutes=booking.slot.end)

    def _notify_confirmed(self, booking: Booking, venue: Venue) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.booking_confirmed(booking, venue)
        except Exception:
            logger.exception("Confirmation notification failed for booking %s", booking.id)

    def _notify_cancelled(self, booking: Booking, venue: Venue) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.booking_cancelled(booking, venue)
        except Exception:
            logger.exception("Cancellation notification failed for booking %s", booking.id)
