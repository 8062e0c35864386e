"""
Audit Models for the Scheduler

Every significant action on a schedule book is logged for audit purposes.
This provides:
1. Traceability of every posted occurrence
2. Visibility of occurrences the ledger refused
3. A history of schedule changes

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Schedule lifecycle
    SCHEDULE_ADDED = "schedule_added"
    SCHEDULE_UPDATED = "schedule_updated"
    SCHEDULE_REMOVED = "schedule_removed"
    SCHEDULE_EXHAUSTED = "schedule_exhausted"

    # Posting
    OCCURRENCE_POSTED = "occurrence_posted"
    OCCURRENCE_POST_FAILED = "occurrence_post_failed"

    # Persistence
    BOOK_SAVED = "book_saved"
    BOOK_LOADED = "book_loaded"
    SAVE_FAILED = "save_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'schedule', 'book')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_row(self) -> list:
        """
        Convert to a flat row for tabular export.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.schedule_added(schedule_id, name)
        event = AuditEventBuilder.occurrence_posted(schedule_id, name, ...)
    """

    @staticmethod
    def schedule_added(schedule_id: UUID, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCHEDULE_ADDED,
            entity_type="schedule",
            entity_id=schedule_id,
            description=f"Schedule added: {name}",
            details={"name": name},
        )

    @staticmethod
    def schedule_updated(schedule_id: UUID, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCHEDULE_UPDATED,
            severity=AuditSeverity.DEBUG,
            entity_type="schedule",
            entity_id=schedule_id,
            description=f"Schedule updated: {name}",
            details={"name": name},
        )

    @staticmethod
    def schedule_removed(schedule_id: UUID, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCHEDULE_REMOVED,
            entity_type="schedule",
            entity_id=schedule_id,
            description=f"Schedule removed: {name}",
            details={"name": name},
        )

    @staticmethod
    def schedule_exhausted(
        schedule_id: UUID,
        name: str,
        repeat_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SCHEDULE_EXHAUSTED,
            entity_type="schedule",
            entity_id=schedule_id,
            description=f"Schedule exhausted after {repeat_count} occurrences: {name}",
            details={
                "name": name,
                "repeat_count": repeat_count,
            },
        )

    @staticmethod
    def occurrence_posted(
        schedule_id: UUID,
        name: str,
        occurrence_date: date,
        ledger_target_id: UUID,
        entry_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OCCURRENCE_POSTED,
            entity_type="schedule",
            entity_id=schedule_id,
            description=f"Occurrence posted: {name} on {occurrence_date.isoformat()}",
            details={
                "occurrence_date": occurrence_date.isoformat(),
                "ledger_target_id": str(ledger_target_id),
                "entry_count": entry_count,
            },
        )

    @staticmethod
    def occurrence_post_failed(
        schedule_id: UUID,
        name: str,
        occurrence_date: date,
        ledger_target_id: UUID,
        error_message: str,
        retained: bool,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OCCURRENCE_POST_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="schedule",
            entity_id=schedule_id,
            description=f"Occurrence could not be posted: {name} on {occurrence_date.isoformat()}",
            details={
                "occurrence_date": occurrence_date.isoformat(),
                "ledger_target_id": str(ledger_target_id),
                "retained": retained,
            },
            error_message=error_message,
        )

    @staticmethod
    def book_saved(book_id: UUID, schedule_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BOOK_SAVED,
            entity_type="book",
            entity_id=book_id,
            description=f"Schedule book saved with {schedule_count} schedules",
            details={"schedule_count": schedule_count},
        )

    @staticmethod
    def book_loaded(book_id: UUID, schedule_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BOOK_LOADED,
            entity_type="book",
            entity_id=book_id,
            description=f"Schedule book loaded with {schedule_count} schedules",
            details={"schedule_count": schedule_count},
        )

    @staticmethod
    def save_failed(book_id: UUID, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="book",
            entity_id=book_id,
            description="Schedule book could not be saved",
            error_message=error_message,
        )
