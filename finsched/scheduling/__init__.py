"""
Scheduling Package

The recurring event engine: date stepping, the schedule state machine and
the schedule collection.
"""

from finsched.scheduling.clock import Clock, FixedClock, SystemClock
from finsched.scheduling.collection import ScheduledEventCollection
from finsched.scheduling.event import (
    ScheduledEvent,
    SchedulerError,
    ScheduleValidationError,
)
from finsched.scheduling.recurrence import (
    build_calendar,
    count_occurrences,
    iter_occurrences,
    next_occurrence,
)
from finsched.scheduling.signals import Signal

__all__ = [
    # Clock
    "Clock",
    "FixedClock",
    "SystemClock",
    # Engine
    "ScheduledEvent",
    "ScheduledEventCollection",
    "Signal",
    # Recurrence
    "build_calendar",
    "count_occurrences",
    "iter_occurrences",
    "next_occurrence",
    # Exceptions
    "SchedulerError",
    "ScheduleValidationError",
]
