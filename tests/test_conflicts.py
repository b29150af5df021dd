"""
Tests for interval overlap checks.
"""

import itertools

import pytest

from hallbooking.domain.conflicts import find_conflicts, has_conflict, overlaps
from hallbooking.domain.models import Booking, TimeSlot


def _booking(start: str, end: str, **kwargs) -> Booking:
    return Booking(venue_id="lab", date="2025-03-10", start_time=start, end_time=end, **kwargs)


class TestOverlaps:
    """Tests for the overlap primitive."""

    def test_overlapping(self):
        assert overlaps(540, 720, 660, 840)

    def test_contained(self):
        assert overlaps(540, 990, 600, 630)
        assert overlaps(600, 630, 540, 990)

    def test_touching_endpoints_do_not_overlap(self):
        assert not overlaps(600, 660, 660, 690)
        assert not overlaps(660, 690, 600, 660)

    def test_disjoint(self):
        assert not overlaps(540, 600, 700, 760)

    def test_symmetry(self):
        points = [540, 570, 600, 630, 660]
        for a_start, a_end, b_start, b_end in itertools.product(points, repeat=4):
            if a_start >= a_end or b_start >= b_end:
                continue
            assert overlaps(a_start, a_end, b_start, b_end) == overlaps(b_start, b_end, a_start, a_end)


class TestHasConflict:
    """Tests for checking a candidate against existing slots."""

    def test_no_existing_slots(self):
        assert not has_conflict(TimeSlot.from_strings("10:00", "11:00"), [])

    def test_detects_any_overlap(self):
        existing = [TimeSlot.from_strings("09:00", "10:00"), TimeSlot.from_strings("10:30", "11:30")]

        assert has_conflict(TimeSlot.from_strings("10:00", "10:45"), existing)

    def test_back_to_back_is_free(self):
        existing = [TimeSlot.from_strings("09:00", "10:00"), TimeSlot.from_strings("11:00", "12:00")]

        assert not has_conflict(TimeSlot.from_strings("10:00", "11:00"), existing)

    @pytest.mark.parametrize("order", list(itertools.permutations(range(3))))
    def test_order_does_not_matter(self, order):
        slots = [
            TimeSlot.from_strings("09:00", "09:30"),
            TimeSlot.from_strings("10:00", "12:00"),
            TimeSlot.from_strings("13:00", "14:00"),
        ]
        existing = [slots[i] for i in order]

        assert has_conflict(TimeSlot.from_strings("11:30", "12:30"), existing)
        assert not has_conflict(TimeSlot.from_strings("12:00", "13:00"), existing)


class TestFindConflicts:
    """Tests for collecting conflicting bookings."""

    def test_returns_overlapping_bookings_in_order(self):
        first = _booking("09:00", "10:30", id="a")
        second = _booking("10:00", "11:00", id="b")
        unrelated = _booking("12:00", "13:00", id="c")

        conflicts = find_conflicts(TimeSlot.from_strings("10:15", "10:45"), [first, second, unrelated])

        assert [b.id for b in conflicts] == ["a", "b"]

    def test_ignores_cancelled_and_soft_deleted(self):
        cancelled = _booking("10:00", "11:00", status="cancelled")
        deleted = _booking("10:00", "11:00", status="confirmed", is_active=False)

        assert find_conflicts(TimeSlot.from_strings("10:00", "11:00"), [cancelled, deleted]) == []
