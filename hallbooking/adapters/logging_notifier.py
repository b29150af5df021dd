"""
Notifier that records booking events in the log instead of sending emails.
"""

import logging

from ..domain.models import Booking, Venue

logger = logging.getLogger(__name__)


class LoggingNotifier:
    """
    Stand-in for an email notifier.

    Real delivery lives outside this package; this adapter keeps the events
    visible when running the CLI.
    """

    def booking_confirmed(self, booking: Booking, venue: Venue) -> None:
        logger.info(
            "Confirmation for %s: %s on %s %s",
            booking.name or "requester",
            venue.name,
            booking.day_key,
            booking.slot,
        )

    def booking_cancelled(self, booking: Booking, venue: Venue) -> None:
        logger.info(
            "Cancellation for %s: %s on %s %s",
            booking.name or "requester",
            venue.name,
            booking.day_key,
            booking.slot,
        )
