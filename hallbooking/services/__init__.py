"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .booking_service import (
    BookingNotifierProtocol,
    BookingRepositoryProtocol,
    BookingService,
    ClockProtocol,
)

__all__ = [
    "BookingNotifierProtocol",
    "BookingRepositoryProtocol",
    "BookingService",
    "ClockProtocol",
]
