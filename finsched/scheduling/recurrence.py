"""
Recurrence Arithmetic

Pure date stepping for schedules. A calendar is always built by stepping the
running date, never by multiplying the step from the start date, so a day
clamped at a month end stays clamped for the following occurrences
(Jan 31 -> Feb 28 -> Mar 28).
"""

from datetime import date
from typing import Iterator

from dateutil.relativedelta import relativedelta

from finsched.models.schedule import RecurrenceUnit


def _delta(unit: RecurrenceUnit, step: int) -> relativedelta:
    if unit == RecurrenceUnit.DAY:
        return relativedelta(days=step)
    if unit == RecurrenceUnit.WEEK:
        return relativedelta(days=step * 7)
    if unit == RecurrenceUnit.MONTH:
        return relativedelta(months=step)
    if unit == RecurrenceUnit.YEAR:
        return relativedelta(years=step)
    raise ValueError(f"Unknown recurrence unit: {unit!r}")


def next_occurrence(value: date, unit: RecurrenceUnit, step: int = 1) -> date:
    """
    Return the occurrence following ``value``.

    Month and year steps keep the day of month when it exists in the target
    month and clamp it to the month's last day otherwise.
    """
    return value + _delta(unit, step)


def iter_occurrences(start: date, unit: RecurrenceUnit, step: int = 1) -> Iterator[date]:
    """Yield ``start`` then every following occurrence, forever."""
    current = start
    delta = _delta(unit, step)
    while True:
        yield current
        current = current + delta


def build_calendar(
    start: date,
    unit: RecurrenceUnit,
    step: int,
    count: int,
) -> list[date]:
    """Return the first ``count`` occurrences starting at ``start``."""
    calendar = []
    for occurrence in iter_occurrences(start, unit, step):
        if len(calendar) >= count:
            break
        calendar.append(occurrence)
    return calendar


def count_occurrences(
    start: date,
    end: date,
    unit: RecurrenceUnit,
    step: int = 1,
) -> int:
    """Count occurrences from ``start`` up to ``end``, both inclusive."""
    count = 0
    for occurrence in iter_occurrences(start, unit, step):
        if occurrence > end:
            break
        count += 1
    return count
