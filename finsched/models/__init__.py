"""
Data Models Package

This package contains all Pydantic models used by the scheduler.
Everything persisted, posted or audited conforms to these schemas.
"""

from finsched.models.schedule import (
    LedgerEntry,
    OperationAction,
    PostedOccurrence,
    PostingAction,
    PostingFailure,
    RecurrenceUnit,
    ScheduledEventRecord,
    ScheduleSnapshot,
    TransferAction,
)
from finsched.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Schedule models
    "LedgerEntry",
    "OperationAction",
    "PostedOccurrence",
    "PostingAction",
    "PostingFailure",
    "RecurrenceUnit",
    "ScheduledEventRecord",
    "ScheduleSnapshot",
    "TransferAction",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
