"""
Clock adapters providing "today" and "now" to the booking service.
"""

import pendulum
from pendulum import Date, DateTime


class SystemClock:
    """Reads the wall clock in the college's timezone."""

    def __init__(self, timezone: str = "Asia/Kolkata"):
        self.timezone = timezone

    def now(self) -> DateTime:
        return pendulum.now(self.timezone)

    def today(self) -> Date:
        return self.now().date()


class FixedClock:
    """
    Clock frozen at a given instant.

    Useful for tests and for evaluating a calendar "as of" another day.
    """

    def __init__(self, now: DateTime):
        self._now = now

    @classmethod
    def at(cls, value: str, timezone: str = "Asia/Kolkata") -> "FixedClock":
        return cls(pendulum.parse(value, tz=timezone))

    def now(self) -> DateTime:
        return self._now

    def today(self) -> Date:
        return self._now.date()
