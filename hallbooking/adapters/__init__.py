"""
Adapters layer - Storage, clock and notification integrations.
"""

from .clock import FixedClock, SystemClock
from .logging_notifier import LoggingNotifier
from .memory_repository import InMemoryBookingRepository

__all__ = ["FixedClock", "InMemoryBookingRepository", "LoggingNotifier", "SystemClock"]
