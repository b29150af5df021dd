"""
Domain-specific exception hierarchy for the hall booking engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .models import Booking


class BookingError(Exception):
    """Base class for all application-level errors."""


class BookingValidationError(BookingError):
    """Raised when a request is malformed and can be corrected by the caller."""


class InvalidTimeFormat(BookingValidationError):
    """Raised when a time string is not in HH:MM format."""


class InvalidDuration(BookingValidationError):
    """Raised when an interval is empty, reversed or outside the allowed length."""


class OutsideBusinessHours(BookingValidationError):
    """Raised when a booking starts or ends outside the venue's business hours."""


class InvalidBookingDate(BookingValidationError):
    """Raised when a booking date is in the past or too far ahead."""


class InvalidStatus(BookingValidationError):
    """Raised for unknown booking statuses or forbidden status changes."""


class SlotConflict(BookingError):
    """
    Raised when a candidate interval overlaps an existing active booking.

    ``conflicts`` holds the overlapping bookings when the caller collected
    them; it may be empty.
    """

    def __init__(self, message: str = "Time slot already booked", conflicts: Sequence["Booking"] = ()):
        super().__init__(message)
        self.conflicts = list(conflicts)


class UnknownVenue(BookingError):
    """Raised when a venue id is not configured."""


class BookingNotFound(BookingError):
    """Raised when a booking id does not exist."""
