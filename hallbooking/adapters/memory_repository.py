"""
In-memory booking repository with optional JSON file persistence.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import pendulum
from pendulum import Date

from ..domain.exceptions import BookingError, BookingNotFound
from ..domain.models import Booking, to_calendar_day

logger = logging.getLogger(__name__)


class InMemoryBookingRepository:
    """
    Stores bookings in a dict, optionally mirrored to a JSON file.

    ``reserve`` and ``update`` run their read-check-write under one lock, so
    two concurrent requests for the same slot cannot both pass the conflict
    check. Callers always receive copies; mutating them does not touch the
    store.
    """

    def __init__(self, bookings: Iterable[Booking] = (), storage_path: Path | None = None):
        """
        Initialize the repository.

        Args:
            bookings: Bookings to seed the store with
            storage_path: Optional JSON file written after every change
        """
        self.storage_path = storage_path
        self._bookings: Dict[str, Booking] = {}
        self._lock = asyncio.Lock()

        for booking in bookings:
            stored = self._prepare(booking)
            self._bookings[stored.id] = stored

    @classmethod
    def from_json_file(cls, path: Path) -> "InMemoryBookingRepository":
        """
        Load bookings from a JSON file written by this repository.

        A missing file yields an empty store that will be created on the
        first write. Invalid records are skipped with a warning.
        """
        records: List[dict] = []
        if path.exists():
            try:
                with open(path, "r", encoding="utf-8") as f:
                    records = json.load(f) or []
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid JSON in {path}: {exc}") from exc

        bookings: List[Booking] = []
        if not isinstance(records, list):
            raise ValueError(f"Invalid booking file {path}: expected a list of records")

        for record in records:
            if not isinstance(record, dict):
                logger.warning("Skipping booking record that is not an object: %r", record)
                continue
            try:
                bookings.append(Booking.from_dict(record))
            except (KeyError, ValueError, BookingError) as exc:
                logger.warning("Skipping invalid booking record %r: %s", record.get("id"), exc)

        logger.debug("Loaded %d booking(s) from %s", len(bookings), path)
        return cls(bookings=bookings, storage_path=path)

    async def fetch_active_bookings(
        self,
        venue_id: str,
        start_day: Date,
        end_day: Optional[Date] = None,
    ) -> List[Booking]:
        return [replace(b) for b in self._active_between(venue_id, start_day, end_day or start_day)]

    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        booking = self._bookings.get(booking_id)
        return replace(booking) if booking else None

    async def reserve(self, booking: Booking, guard: Callable[[Sequence[Booking]], None]) -> Booking:
        async with self._lock:
            existing = self._active_between(booking.venue_id, booking.date, booking.date)
            guard([replace(b) for b in existing])

            stored = self._prepare(booking)
            self._commit(stored)
            logger.debug("Reserved booking %s", stored.id)
            return replace(stored)

    async def update(
        self,
        booking: Booking,
        guard: Optional[Callable[[Sequence[Booking]], None]] = None,
    ) -> Booking:
        async with self._lock:
            if booking.id not in self._bookings:
                raise BookingNotFound(f"Booking not found: '{booking.id}'")

            if guard is not None:
                existing = [
                    b for b in self._active_between(booking.venue_id, booking.date, booking.date)
                    if b.id != booking.id
                ]
                guard([replace(b) for b in existing])

            stored = replace(booking)
            self._commit(stored)
            logger.debug("Updated booking %s", stored.id)
            return replace(stored)

    async def list_bookings(
        self,
        venue_id: Optional[str] = None,
        include_inactive: bool = False,
    ) -> List[Booking]:
        bookings = [
            b for b in self._bookings.values()
            if (venue_id is None or b.venue_id == venue_id) and (include_inactive or b.is_active)
        ]
        # Newest day first, earliest start first within a day
        bookings.sort(key=lambda b: b.slot)
        bookings.sort(key=lambda b: b.date, reverse=True)
        return [replace(b) for b in bookings]

    def _active_between(self, venue_id: str, start_day: Date, end_day: Date) -> List[Booking]:
        start_day = to_calendar_day(start_day)
        end_day = to_calendar_day(end_day)
        return [
            b for b in self._bookings.values()
            if b.venue_id == venue_id and b.blocks_slot and start_day <= b.date <= end_day
        ]

    @staticmethod
    def _prepare(booking: Booking) -> Booking:
        return replace(
            booking,
            id=booking.id or uuid.uuid4().hex,
            created_at=booking.created_at or pendulum.now("UTC"),
        )

    def _commit(self, booking: Booking) -> None:
        """Write the file with ``booking`` applied, then update the store."""
        pending = dict(self._bookings)
        pending[booking.id] = booking
        self._flush(pending.values())
        self._bookings = pending

    def _flush(self, bookings: Iterable[Booking]) -> None:
        if self.storage_path is None:
            return
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        records = [b.to_dict() for b in bookings]
        with open(self.storage_path, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2)
