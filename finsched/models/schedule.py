"""
Core Data Models for the Scheduler

These models define the persisted and exchanged shapes of the scheduler:
1. The repetition unit used for date stepping
2. The posting payload a schedule carries (operation or transfer)
3. The persisted record of a schedule
4. The records produced when an occurrence is posted

DESIGN DECISION: The live ScheduledEvent is a plain stateful object because
its setters trigger recomputation. Everything that crosses a boundary
(storage, ledger, audit) is a Pydantic model defined here.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    model_validator,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS
# =============================================================================

class RecurrenceUnit(str, Enum):
    """
    Repetition unit of a schedule.

    The values are the persisted tokens.
    """
    DAY = "Day"
    WEEK = "Week"
    MONTH = "Month"
    YEAR = "Year"


# =============================================================================
# POSTING ACTIONS
# =============================================================================

class OperationAction(BaseModel):
    """A single ledger line written to the schedule's target on each occurrence."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    kind: Literal["operation"] = "operation"
    label: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Label of the ledger line"
    )
    amount: Decimal = Field(
        ...,
        decimal_places=2,
        description="Signed amount (negative for expenses)"
    )
    category: Optional[str] = Field(
        default=None,
        max_length=100,
    )
    payee: Optional[str] = Field(
        default=None,
        max_length=255,
    )


class TransferAction(BaseModel):
    """
    Money moved from the schedule's target ledger to another ledger.

    The amount is always positive; direction is given by the ledgers.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    kind: Literal["transfer"] = "transfer"
    label: str = Field(
        ...,
        min_length=1,
        max_length=255,
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
    )
    to_ledger_id: UUID = Field(
        ...,
        description="Ledger receiving the transferred amount"
    )


PostingAction = Annotated[
    Union[OperationAction, TransferAction],
    Field(discriminator="kind"),
]


# =============================================================================
# PERSISTED SCHEDULE
# =============================================================================

class ScheduledEventRecord(BaseModel):
    """
    Persisted representation of a schedule.

    Dates are stored as date-with-time values at midnight. The remaining
    counter is not stored; it is derived again when the schedule is restored.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID
    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
    )
    active: bool = False
    ledger_target_id: UUID
    start_date: datetime
    end_date: datetime
    next_date: datetime
    repeat_unit: RecurrenceUnit = RecurrenceUnit.MONTH
    repeat_step: int = Field(default=1, ge=1)
    repeat_count: int = Field(default=1, ge=0)
    action: Optional[PostingAction] = None

    @model_validator(mode='after')
    def validate_dates(self) -> 'ScheduledEventRecord':
        """Validate date relationships."""
        if self.end_date.date() < self.start_date.date():
            raise ValueError("End date cannot be before start date")
        if self.next_date.date() < self.start_date.date():
            raise ValueError("Next date cannot be before start date")
        if self.ledger_target_id.int == 0:
            raise ValueError("A ledger target is required")
        return self

    @field_serializer('start_date', 'end_date', 'next_date')
    def serialize_dates(self, value: datetime) -> str:
        return value.replace(tzinfo=None).isoformat()


class ScheduleSnapshot(BaseModel):
    """Everything a schedule book persists in one save."""

    book_id: UUID = Field(default_factory=uuid4)
    name: str = Field(
        default="Schedules",
        min_length=1,
        max_length=255,
    )
    saved_at: datetime = Field(default_factory=_utcnow)
    events: list[ScheduledEventRecord] = Field(default_factory=list)


# =============================================================================
# POSTING RESULTS
# =============================================================================

class LedgerEntry(BaseModel):
    """A line written to a ledger by a posting sink."""

    id: UUID = Field(default_factory=uuid4)
    ledger_id: UUID
    schedule_id: UUID
    entry_date: date
    label: str
    amount: Decimal
    kind: Literal["operation", "transfer"] = "operation"
    category: Optional[str] = None
    payee: Optional[str] = None
    counterpart_ledger_id: Optional[UUID] = None


class PostedOccurrence(BaseModel):
    """One occurrence that a schedule book applied to its ledger."""

    schedule_id: UUID
    schedule_name: str
    occurrence_date: date
    ledger_target_id: UUID
    posted_at: datetime = Field(default_factory=_utcnow)
    entry_ids: list[UUID] = Field(default_factory=list)


class PostingFailure(BaseModel):
    """An occurrence the posting sink refused."""

    schedule_id: UUID
    schedule_name: str
    occurrence_date: date
    ledger_target_id: UUID
    error_message: str
    failed_at: datetime = Field(default_factory=_utcnow)
    # False when the schedule moved past the occurrence anyway
    retained: bool = False
