"""
Domain models for slots, business hours and bookings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List

import pendulum
from pendulum import Date, DateTime

from .exceptions import InvalidBookingDate, InvalidDuration, InvalidStatus, InvalidTimeFormat

MINUTES_PER_DAY = 24 * 60

TIME_PATTERN = re.compile(r"([0-1]?[0-9]|2[0-3]):[0-5][0-9]")


def to_minutes(time_string: str) -> int:
    """
    Parse an ``HH:MM`` string into minutes since midnight.

    Raises:
        InvalidTimeFormat: If the string does not match ``HH:MM``
    """
    if not isinstance(time_string, str) or not TIME_PATTERN.fullmatch(time_string):
        raise InvalidTimeFormat(f"Invalid time '{time_string}', expected HH:MM")
    hours, minutes = time_string.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """Format minutes since midnight as a zero-padded ``HH:MM`` string."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes(time_string: str, minutes: int) -> str:
    """
    Shift a time string by a number of minutes.

    The result wraps around midnight; there is no day rollover.
    """
    return minutes_to_time((to_minutes(time_string) + minutes) % MINUTES_PER_DAY)


def to_calendar_day(value: Any) -> Date:
    """
    Normalize a date-like value to a calendar day.

    This is the only place a calendar day is derived from a timestamp.
    Datetimes are converted to UTC before the time of day is dropped (naive
    ones are taken as UTC), ISO strings are parsed as UTC and plain dates
    pass through unchanged.
    """
    if isinstance(value, datetime):
        return pendulum.instance(value).in_timezone("UTC").date()

    if isinstance(value, date):
        return pendulum.date(value.year, value.month, value.day)

    if isinstance(value, str):
        try:
            parsed = pendulum.parse(value.strip(), tz="UTC")
        except ValueError as exc:
            raise InvalidBookingDate(f"Invalid date '{value}', expected YYYY-MM-DD") from exc
        if isinstance(parsed, DateTime):
            return parsed.in_timezone("UTC").date()
        if isinstance(parsed, date):
            return pendulum.date(parsed.year, parsed.month, parsed.day)

    raise InvalidBookingDate(f"Invalid date '{value}', expected YYYY-MM-DD")


@dataclass(frozen=True, order=True)
class TimeSlot:
    """
    Half-open interval ``[start, end)`` on a single day, in minutes since midnight.

    Invariant: 0 <= start < end <= 1440.
    """
    start: int
    end: int

    def __post_init__(self):
        if self.end <= self.start:
            raise InvalidDuration(
                f"End {minutes_to_time(self.end)} must be after start {minutes_to_time(self.start)}"
            )
        if self.start < 0 or self.end > MINUTES_PER_DAY:
            raise InvalidDuration(f"Slot {self.start}-{self.end} does not fit in a single day")

    @classmethod
    def from_strings(cls, start_time: str, end_time: str) -> "TimeSlot":
        return cls(start=to_minutes(start_time), end=to_minutes(end_time))

    def duration_minutes(self) -> int:
        """Return the duration in minutes."""
        return self.end - self.start

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end % MINUTES_PER_DAY)

    def __str__(self) -> str:
        return f"{self.start_time}-{self.end_time}"


@dataclass(frozen=True)
class DurationLimits:
    """Allowed booking length in minutes, inclusive on both ends."""
    min_minutes: int = 30
    max_minutes: int = 8 * 60

    def validate(self, slot: TimeSlot) -> None:
        duration = slot.duration_minutes()
        if duration < self.min_minutes:
            raise InvalidDuration(f"Minimum booking duration is {self.min_minutes} minutes")
        if duration > self.max_minutes:
            raise InvalidDuration(f"Maximum booking duration is {self.max_minutes} minutes")


@dataclass(frozen=True)
class BusinessHours:
    """
    The business-hours grid of a venue day.

    The grid opens at ``start_hour:00`` and closes at ``end_hour:end_minute``,
    with one atomic slot every ``interval_minutes``.
    """
    start_hour: int = 9
    end_hour: int = 16
    end_minute: int = 30
    interval_minutes: int = 30

    @property
    def opening_minutes(self) -> int:
        return self.start_hour * 60

    @property
    def closing_minutes(self) -> int:
        return self.end_hour * 60 + self.end_minute

    def day_slots(self) -> List[TimeSlot]:
        return generate_day_slots(self)

    def contains(self, slot: TimeSlot) -> bool:
        """Check if a slot lies entirely between opening and closing."""
        return self.opening_minutes <= slot.start and slot.end <= self.closing_minutes

    def is_within(self, time_string: str) -> bool:
        """Check if a single time lies between opening and closing, inclusive."""
        minutes = to_minutes(time_string)
        return self.opening_minutes <= minutes <= self.closing_minutes

    def __str__(self) -> str:
        return f"{minutes_to_time(self.opening_minutes)}-{minutes_to_time(self.closing_minutes)}"


def generate_day_slots(business_hours: BusinessHours) -> List[TimeSlot]:
    """
    Enumerate the atomic slots of a day.

    A slot starts at every interval mark from opening up to and including
    closing, so the default 09:00-16:30 grid yields 16 slots, the last one
    starting at 16:30.
    """
    interval = business_hours.interval_minutes
    if interval <= 0:
        raise InvalidDuration(f"Slot interval must be positive, got {interval}")

    slots: List[TimeSlot] = []
    for mark in range(business_hours.opening_minutes, business_hours.closing_minutes + 1, interval):
        slots.append(TimeSlot(start=mark, end=min(mark + interval, MINUTES_PER_DAY)))
    return slots


def _parse_flag(value: Any) -> bool:
    """Read a stored boolean, accepting the usual string spellings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes"):
            return True
        if lowered in ("false", "0", "no"):
            return False
    raise ValueError(f"Invalid boolean flag {value!r}")


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: "str | BookingStatus") -> "BookingStatus":
        try:
            return cls(value)
        except ValueError as exc:
            allowed = ", ".join(status.value for status in cls)
            raise InvalidStatus(f"Status must be one of: {allowed}") from exc


BLOCKING_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.COMPLETED})


@dataclass
class Booking:
    """
    A booking of one venue on one calendar day.

    Only active bookings in a blocking status occupy their slot; cancelled or
    soft-deleted bookings free it.
    """
    venue_id: str
    date: Date
    start_time: str
    end_time: str
    status: BookingStatus = BookingStatus.PENDING
    is_active: bool = True
    name: str = ""
    department: str = ""
    purpose: str = ""
    admin_note: str = ""
    id: str = ""
    created_at: DateTime | None = None

    def __post_init__(self):
        self.date = to_calendar_day(self.date)
        self.status = BookingStatus.parse(self.status)
        TimeSlot.from_strings(self.start_time, self.end_time)

    @property
    def slot(self) -> TimeSlot:
        return TimeSlot.from_strings(self.start_time, self.end_time)

    @property
    def day_key(self) -> str:
        return self.date.isoformat()

    @property
    def blocks_slot(self) -> bool:
        return self.is_active and self.status in BLOCKING_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "venue_id": self.venue_id,
            "date": self.day_key,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "status": self.status.value,
            "is_active": self.is_active,
            "name": self.name,
            "department": self.department,
            "purpose": self.purpose,
            "admin_note": self.admin_note,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Booking":
        created_at = data.get("created_at")
        return cls(
            venue_id=data["venue_id"],
            date=data["date"],
            start_time=data["start_time"],
            end_time=data["end_time"],
            status=data.get("status", BookingStatus.PENDING),
            is_active=_parse_flag(data.get("is_active", True)),
            name=data.get("name", ""),
            department=data.get("department", ""),
            purpose=data.get("purpose", ""),
            admin_note=data.get("admin_note", ""),
            id=data.get("id", ""),
            created_at=pendulum.parse(created_at) if created_at else None,
        )

    def __str__(self) -> str:
        return f"{self.venue_id} {self.day_key} {self.slot} [{self.status.value}]"


@dataclass(frozen=True)
class Venue:
    """A bookable hall with its own independent calendar."""
    id: str
    name: str
    requires_approval: bool = False
    business_hours: BusinessHours = field(default_factory=BusinessHours)

    @property
    def initial_status(self) -> BookingStatus:
        return BookingStatus.PENDING if self.requires_approval else BookingStatus.CONFIRMED


@dataclass
class AvailabilityResult:
    """Outcome of a single-slot availability check."""
    available: bool
    conflicts: List[Booking] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.available


class DayState(str, Enum):
    PAST = "past"
    BOOKED = "booked"
    AVAILABLE = "available"


@dataclass(frozen=True)
class CalendarDay:
    """One day of a rendered month calendar."""
    date: Date
    state: DayState

    @property
    def is_bookable(self) -> bool:
        return self.state is DayState.AVAILABLE
