"""
Interval overlap checks between a candidate slot and existing bookings.
"""

from typing import Iterable, List

from .models import Booking, TimeSlot


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """
    Check if two half-open intervals overlap.

    Touching intervals (one ends exactly when the other starts) do not overlap.
    """
    return a_start < b_end and b_start < a_end


def slots_overlap(a: TimeSlot, b: TimeSlot) -> bool:
    return overlaps(a.start, a.end, b.start, b.end)


def has_conflict(candidate: TimeSlot, existing: Iterable[TimeSlot]) -> bool:
    """Return True as soon as any existing slot overlaps the candidate."""
    return any(slots_overlap(candidate, slot) for slot in existing)


def active_only(bookings: Iterable[Booking]) -> List[Booking]:
    """Drop cancelled and soft-deleted bookings."""
    return [booking for booking in bookings if booking.blocks_slot]


def find_conflicts(candidate: TimeSlot, bookings: Iterable[Booking]) -> List[Booking]:
    """
    Collect the active bookings overlapping the candidate, in input order.
    """
    return [
        booking for booking in active_only(bookings)
        if slots_overlap(candidate, booking.slot)
    ]
