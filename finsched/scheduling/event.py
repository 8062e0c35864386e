"""
Scheduled Event

A recurring schedule that posts occurrences into a ledger.

The schedule keeps three values consistent: start date, end date and
repeat count. Two recompute paths maintain them:

- DATE-DRIVEN (start, end, unit or step changed): the repeat count is the
  number of occurrences fitting from the start date to the end date.
- COUNT-DRIVEN (repeat count changed): the end date is raised, if needed,
  to the last occurrence of the count, then the date-driven path runs.

Posting consumes exactly one occurrence per call. The "raised" signal is
emitted with the occurrence date BEFORE the schedule advances, so listeners
see the date being posted. Listener failures are not rolled back here: if a
listener raises, the exception leaves post() and the schedule does not
advance; if a listener handles its own failure, the schedule advances.
"""

from datetime import date, datetime
from typing import Any, Optional, Union
from uuid import UUID, uuid4

from pydantic import TypeAdapter, ValidationError

from finsched.models.schedule import (
    PostingAction,
    RecurrenceUnit,
    ScheduledEventRecord,
)
from finsched.scheduling.clock import Clock, SystemClock
from finsched.scheduling.recurrence import (
    build_calendar,
    count_occurrences,
    next_occurrence,
)
from finsched.scheduling.signals import Signal

NAME_MAX_LENGTH = 255

DateLike = Union[date, datetime, str]

_UUID_ADAPTER = TypeAdapter(UUID)
_UNIT_ADAPTER = TypeAdapter(RecurrenceUnit)


class SchedulerError(Exception):
    """Base exception for the scheduler."""
    pass


class ScheduleValidationError(SchedulerError, ValueError):
    """A value assigned to a schedule was rejected. The field is unchanged."""
    pass


def _coerce_date(value: Any, field: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            text = value.strip()
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            return datetime.fromisoformat(text).date()
        except ValueError:
            raise ScheduleValidationError(f"Invalid {field}: {value!r}")
    raise ScheduleValidationError(
        f"Invalid {field}: expected a date, got {type(value).__name__}"
    )


def _coerce_ledger_id(value: Any) -> UUID:
    if value is None:
        raise ScheduleValidationError("A ledger target is required")
    try:
        ledger_id = _UUID_ADAPTER.validate_python(value)
    except ValidationError:
        raise ScheduleValidationError(f"Invalid ledger target id: {value!r}")
    if ledger_id.int == 0:
        raise ScheduleValidationError("A ledger target is required")
    return ledger_id


def _coerce_unit(value: Any) -> RecurrenceUnit:
    try:
        return _UNIT_ADAPTER.validate_python(value)
    except ValidationError:
        raise ScheduleValidationError(f"Invalid repeat unit: {value!r}")


class ScheduledEvent:
    """
    A recurring event posting into one ledger target.

    Signals:
        raised(occurrence_date, event): an occurrence is being posted
        changed(event, field_name): a field effectively changed

    A new schedule is inactive; callers activate it explicitly.
    """

    def __init__(
        self,
        name: str,
        ledger_target_id: Union[UUID, str],
        start_date: DateLike,
        end_date: Optional[DateLike] = None,
        count: int = 1,
        step: int = 1,
        unit: RecurrenceUnit = RecurrenceUnit.MONTH,
        *,
        action: Optional[PostingAction] = None,
        event_id: Optional[UUID] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Create a schedule.

        Args:
            name: Schedule name, trimmed and truncated to 255 characters
            ledger_target_id: Ledger receiving the posted occurrences
            start_date: First occurrence
            end_date: Last possible occurrence. When given it is authoritative
                     and the repeat count is derived from it.
            count: Total occurrences, used only when end_date is None.
                   The end date is then derived from it.
            step: Every ``step`` units (values below 1 become 1)
            unit: Repetition unit
            action: Payload applied to the ledger on each occurrence
            event_id: Identifier to restore; a new one is generated otherwise
            clock: Source of "today" for post_overdue()
        """
        self.raised = Signal("raised")
        self.changed = Signal("changed")

        self._id: UUID = event_id or uuid4()
        self._clock: Clock = clock or SystemClock()
        self._action: Optional[PostingAction] = action

        start = _coerce_date(start_date, "start date")
        self._name = ""
        self._active = False
        self._ledger_target_id: Optional[UUID] = None
        self._start_date = start
        self._end_date = start
        self._next_date = start
        self._repeat_unit = RecurrenceUnit.MONTH
        self._repeat_step = 1
        self._repeat_count = 1
        self._counter = 1

        self.name = name
        self.ledger_target_id = ledger_target_id
        self.repeat_step = step
        self.repeat_unit = unit
        if end_date is None:
            self.repeat_count = count
        else:
            self.end_date = end_date

    # -------------------------------------------------------------------------
    # Recompute
    # -------------------------------------------------------------------------

    def _next(self, value: date) -> date:
        return next_occurrence(value, self._repeat_unit, self._repeat_step)

    def _compute_counts(self) -> None:
        """Derive repeat count and counter from the dates."""
        self._repeat_count = count_occurrences(
            self._start_date,
            self._end_date,
            self._repeat_unit,
            self._repeat_step,
        )
        self._counter = self._repeat_count

    def _compute_end_date(self) -> None:
        """Derive the end date from the repeat count, then resync the counts."""
        last = self._start_date
        for _ in range(1, self._repeat_count):
            last = self._next(last)

        if last > self._end_date:
            self._end_date = last

        self._compute_counts()

        if self._next_date > self._end_date:
            self._next_date = self._end_date
            self._counter = 0

    def _recompute(self, field: str) -> None:
        if field == "repeat_count":
            self._compute_end_date()
        else:
            self._compute_counts()

    def _notify(self, field: str) -> None:
        self.changed.emit(self, field)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if not isinstance(value, str):
            raise ScheduleValidationError("Schedule name must be a string")
        value = value.strip()[:NAME_MAX_LENGTH]
        if not value:
            raise ScheduleValidationError("Schedule name is required")
        if value != self._name:
            self._name = value
            self._notify("name")

    @property
    def active(self) -> bool:
        return self._active

    @active.setter
    def active(self, value: bool) -> None:
        value = bool(value)
        if value != self._active:
            self._active = value
            self._notify("active")

    @property
    def ledger_target_id(self) -> UUID:
        return self._ledger_target_id

    @ledger_target_id.setter
    def ledger_target_id(self, value: Union[UUID, str]) -> None:
        value = _coerce_ledger_id(value)
        if value != self._ledger_target_id:
            self._ledger_target_id = value
            self._notify("ledger_target_id")

    @property
    def action(self) -> Optional[PostingAction]:
        return self._action

    @action.setter
    def action(self, value: Optional[PostingAction]) -> None:
        if value != self._action:
            self._action = value
            self._notify("action")

    @property
    def start_date(self) -> date:
        return self._start_date

    @start_date.setter
    def start_date(self, value: DateLike) -> None:
        value = _coerce_date(value, "start date")

        if value > self._end_date:
            self.end_date = value

        if value != self._start_date:
            self._start_date = value
            if self._next_date < value:
                self._next_date = value
            self._recompute("start_date")
            self._notify("start_date")

    @property
    def end_date(self) -> date:
        return self._end_date

    @end_date.setter
    def end_date(self, value: DateLike) -> None:
        value = _coerce_date(value, "end date")

        if value < self._start_date:
            value = self._start_date

        if value != self._end_date:
            self._end_date = value
            self._recompute("end_date")
            self._notify("end_date")

    @property
    def next_date(self) -> date:
        return self._next_date

    @next_date.setter
    def next_date(self, value: DateLike) -> None:
        value = _coerce_date(value, "next date")

        if value < self._start_date:
            value = self._start_date

        if value != self._next_date:
            self._next_date = value
            self._notify("next_date")

    @property
    def repeat_unit(self) -> RecurrenceUnit:
        return self._repeat_unit

    @repeat_unit.setter
    def repeat_unit(self, value: Union[RecurrenceUnit, str]) -> None:
        value = _coerce_unit(value)
        if value != self._repeat_unit:
            self._repeat_unit = value
            self._recompute("repeat_unit")
            self._notify("repeat_unit")

    @property
    def repeat_step(self) -> int:
        return self._repeat_step

    @repeat_step.setter
    def repeat_step(self, value: int) -> None:
        value = max(1, int(value))
        if value != self._repeat_step:
            self._repeat_step = value
            self._recompute("repeat_step")
            self._notify("repeat_step")

    @property
    def repeat_count(self) -> int:
        return self._repeat_count

    @repeat_count.setter
    def repeat_count(self, value: int) -> None:
        value = max(0, int(value))
        if value != self._repeat_count:
            self._repeat_count = value
            self._recompute("repeat_count")
            self._notify("repeat_count")

    @property
    def counter(self) -> int:
        """Occurrences remaining to post."""
        return self._counter

    @property
    def has_future(self) -> bool:
        """True if an occurrence exists after the next known one."""
        return self._next(self._next_date) <= self._end_date

    @property
    def clock(self) -> Clock:
        return self._clock

    # -------------------------------------------------------------------------
    # Calendars
    # -------------------------------------------------------------------------

    def get_calendar(self) -> list[date]:
        """All occurrence dates of the schedule."""
        return build_calendar(
            self._start_date,
            self._repeat_unit,
            self._repeat_step,
            self._repeat_count,
        )

    def get_next_calendar(self) -> list[date]:
        """Occurrence dates still to post, from the next date onward."""
        calendar = []
        current = self._next_date
        for _ in range(self._repeat_count):
            if current > self._end_date:
                break
            calendar.append(current)
            current = self._next(current)
        return calendar

    def reset(self) -> None:
        """Rewind the next occurrence to the start date."""
        self.next_date = self._start_date

    # -------------------------------------------------------------------------
    # Posting
    # -------------------------------------------------------------------------

    def post(self) -> bool:
        """
        Post the next occurrence, whether past, present or future.

        Returns:
            True if the schedule is still active afterwards

        Moving past the end date leaves no occurrence to post, so the
        counter drops to 0 even if the dates changed since the count was set.
        """
        if not self._active:
            return False

        if self._next_date > self._end_date:
            self._counter = 0
            self.active = False
            return False

        self.raised.emit(self._next_date, self)

        self.next_date = self._next(self._next_date)

        self._counter = max(0, self._counter - 1)
        if self._next_date > self._end_date:
            self._counter = 0

        self.active = (
            self._active
            and self._next_date <= self._end_date
            and self._counter > 0
        )
        return self._active

    def post_until(self, until: DateLike) -> None:
        """Post every remaining occurrence up to ``until``, inclusive."""
        until = _coerce_date(until, "posting date")
        while True:
            if not self.post():
                break
            if self._next_date > until:
                break

    def post_all(self) -> None:
        """Post every remaining occurrence of the calendar."""
        self.post_until(self._end_date)

    def post_overdue(self) -> None:
        """Post every remaining occurrence up to today."""
        self.post_until(self._clock.today())

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def to_record(self) -> ScheduledEventRecord:
        return ScheduledEventRecord(
            id=self._id,
            name=self._name,
            active=self._active,
            ledger_target_id=self._ledger_target_id,
            start_date=datetime.combine(self._start_date, datetime.min.time()),
            end_date=datetime.combine(self._end_date, datetime.min.time()),
            next_date=datetime.combine(self._next_date, datetime.min.time()),
            repeat_unit=self._repeat_unit,
            repeat_step=self._repeat_step,
            repeat_count=self._repeat_count,
            action=self._action,
        )

    @classmethod
    def from_record(
        cls,
        record: ScheduledEventRecord,
        clock: Optional[Clock] = None,
    ) -> "ScheduledEvent":
        """
        Restore a schedule from its persisted record.

        The end date is authoritative. A stored repeat count larger than
        the dates allow extends the end date. The remaining counter is
        the number of calendar dates left from the stored next date.
        """
        event = cls(
            name=record.name,
            ledger_target_id=record.ledger_target_id,
            start_date=record.start_date,
            end_date=record.end_date,
            step=record.repeat_step,
            unit=record.repeat_unit,
            action=record.action,
            event_id=record.id,
            clock=clock,
        )
        if record.repeat_count > event.repeat_count:
            event.repeat_count = record.repeat_count

        next_date = record.next_date.date()
        if next_date > event.end_date:
            event._next_date = next_date
            event._counter = 0
        else:
            event.next_date = next_date
            event._counter = len(event.get_next_calendar())

        event.active = record.active
        return event

    def __repr__(self) -> str:
        return (
            f"ScheduledEvent(id={self._id}, name={self._name!r}, "
            f"active={self._active}, next_date={self._next_date.isoformat()}, "
            f"counter={self._counter}/{self._repeat_count})"
        )
