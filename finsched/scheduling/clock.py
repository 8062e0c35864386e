"""
Clock

Injectable source of "today" so that overdue posting never reads the system
date directly and stays deterministic under test.
"""

from abc import ABC, abstractmethod
from datetime import date, timedelta


class Clock(ABC):
    """Provides the current calendar date."""

    @abstractmethod
    def today(self) -> date:
        ...


class SystemClock(Clock):
    """Local calendar date of the host."""

    def today(self) -> date:
        return date.today()


class FixedClock(Clock):
    """
    Clock frozen on a given date.

    Used in tests and when replaying a book as of a past date.
    """

    def __init__(self, fixed_date: date):
        self._date = fixed_date

    def today(self) -> date:
        return self._date

    def set_date(self, value: date) -> None:
        self._date = value

    def advance(self, days: int = 1) -> date:
        """Move the clock forward and return the new date."""
        self._date = self._date + timedelta(days=days)
        return self._date
