"""
Tests for recurrence arithmetic and the clock.
"""

import pytest
from datetime import date
from itertools import islice

from finsched.models.schedule import RecurrenceUnit
from finsched.scheduling.clock import FixedClock
from finsched.scheduling.recurrence import (
    build_calendar,
    count_occurrences,
    iter_occurrences,
    next_occurrence,
)


class TestNextOccurrence:
    """Tests for single date steps."""

    @pytest.mark.parametrize(
        "unit, step, expected",
        [
            (RecurrenceUnit.DAY, 1, date(2021, 5, 13)),
            (RecurrenceUnit.DAY, 30, date(2021, 6, 11)),
            (RecurrenceUnit.WEEK, 2, date(2021, 5, 26)),
            (RecurrenceUnit.MONTH, 1, date(2021, 6, 12)),
            (RecurrenceUnit.MONTH, 8, date(2022, 1, 12)),
            (RecurrenceUnit.YEAR, 3, date(2024, 5, 12)),
        ],
    )
    def test_steps_by_unit(self, unit, step, expected):
        """Test each unit with a plain step."""
        assert next_occurrence(date(2021, 5, 12), unit, step) == expected

    def test_month_end_clamps(self):
        """Test that Jan 31 plus one month is the last day of February."""
        assert next_occurrence(date(2021, 1, 31), RecurrenceUnit.MONTH) == date(2021, 2, 28)
        assert next_occurrence(date(2024, 1, 31), RecurrenceUnit.MONTH) == date(2024, 2, 29)

    def test_leap_day_clamps_on_non_leap_year(self):
        """Test that Feb 29 plus one year is Feb 28."""
        assert next_occurrence(date(2024, 2, 29), RecurrenceUnit.YEAR) == date(2025, 2, 28)

    def test_day_step_crosses_year(self):
        """Test rollover into the next year."""
        assert next_occurrence(date(2021, 12, 31), RecurrenceUnit.DAY) == date(2022, 1, 1)


class TestCalendars:
    """Tests for calendar building and counting."""

    def test_calendar_steps_running_date(self):
        """Test that a clamped day stays clamped."""
        calendar = build_calendar(date(2021, 1, 31), RecurrenceUnit.MONTH, 1, 3)
        assert calendar == [date(2021, 1, 31), date(2021, 2, 28), date(2021, 3, 28)]

    def test_calendar_is_strictly_increasing(self):
        """Test monotonicity for every unit."""
        for unit in RecurrenceUnit:
            calendar = build_calendar(date(2020, 2, 29), unit, 1, 12)
            assert all(a < b for a, b in zip(calendar, calendar[1:]))

    def test_calendar_with_zero_count_is_empty(self):
        """Test an empty calendar."""
        assert build_calendar(date(2021, 5, 12), RecurrenceUnit.DAY, 1, 0) == []

    def test_iter_occurrences_starts_with_start(self):
        """Test the generator's first values."""
        dates = list(islice(iter_occurrences(date(2021, 5, 12), RecurrenceUnit.WEEK), 3))
        assert dates == [date(2021, 5, 12), date(2021, 5, 19), date(2021, 5, 26)]

    def test_count_is_inclusive(self):
        """Test that both bounds are counted."""
        count = count_occurrences(
            date(2021, 5, 12), date(2021, 8, 12), RecurrenceUnit.MONTH
        )
        assert count == 4

    def test_count_stops_before_end(self):
        """Test an end date between two occurrences."""
        count = count_occurrences(
            date(2021, 5, 12), date(2021, 8, 11), RecurrenceUnit.MONTH
        )
        assert count == 3

    def test_count_same_day(self):
        """Test that a one-day range holds one occurrence."""
        count = count_occurrences(
            date(2021, 5, 12), date(2021, 5, 12), RecurrenceUnit.YEAR, 5
        )
        assert count == 1


class TestFixedClock:
    """Tests for the frozen clock."""

    def test_today_is_fixed(self):
        """Test that today does not move."""
        clock = FixedClock(date(2021, 9, 1))
        assert clock.today() == date(2021, 9, 1)
        assert clock.today() == date(2021, 9, 1)

    def test_advance_and_set(self):
        """Test moving the clock."""
        clock = FixedClock(date(2021, 9, 1))
        assert clock.advance(30) == date(2021, 10, 1)
        clock.set_date(date(2022, 1, 1))
        assert clock.today() == date(2022, 1, 1)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
