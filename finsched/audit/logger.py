"""
Audit Logger

DESIGN DECISION: Every significant action on a schedule book is logged.
This provides:
1. Complete traceability of posted occurrences
2. Debugging capability
3. A history of schedule changes

The audit logger:
- Is synchronous, like the scheduling engine it observes
- Gracefully handles failures (doesn't break posting if logging fails)
"""

from datetime import date
from typing import Optional
from uuid import UUID

import structlog

from finsched.models.audit import AuditEvent, AuditEventBuilder
from finsched.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("finsched.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        severity = event.severity.value
        if severity in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif severity == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif severity == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is not None:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_schedule_added(self, schedule_id: UUID, name: str) -> None:
        self.log(AuditEventBuilder.schedule_added(schedule_id, name))

    def log_schedule_updated(self, schedule_id: UUID, name: str) -> None:
        self.log(AuditEventBuilder.schedule_updated(schedule_id, name))

    def log_schedule_removed(self, schedule_id: UUID, name: str) -> None:
        self.log(AuditEventBuilder.schedule_removed(schedule_id, name))

    def log_schedule_exhausted(
        self,
        schedule_id: UUID,
        name: str,
        repeat_count: int,
    ) -> None:
        """Log a schedule that posted its last occurrence."""
        self.log(AuditEventBuilder.schedule_exhausted(
            schedule_id=schedule_id,
            name=name,
            repeat_count=repeat_count,
        ))

    def log_occurrence_posted(
        self,
        schedule_id: UUID,
        name: str,
        occurrence_date: date,
        ledger_target_id: UUID,
        entry_count: int,
    ) -> None:
        """Log an occurrence applied to its ledger."""
        self.log(AuditEventBuilder.occurrence_posted(
            schedule_id=schedule_id,
            name=name,
            occurrence_date=occurrence_date,
            ledger_target_id=ledger_target_id,
            entry_count=entry_count,
        ))

    def log_occurrence_post_failed(
        self,
        schedule_id: UUID,
        name: str,
        occurrence_date: date,
        ledger_target_id: UUID,
        error_message: str,
        retained: bool,
    ) -> None:
        """Log an occurrence the ledger refused."""
        self.log(AuditEventBuilder.occurrence_post_failed(
            schedule_id=schedule_id,
            name=name,
            occurrence_date=occurrence_date,
            ledger_target_id=ledger_target_id,
            error_message=error_message,
            retained=retained,
        ))

    def log_book_saved(self, book_id: UUID, schedule_count: int) -> None:
        self.log(AuditEventBuilder.book_saved(book_id, schedule_count))

    def log_book_loaded(self, book_id: UUID, schedule_count: int) -> None:
        self.log(AuditEventBuilder.book_loaded(book_id, schedule_count))

    def log_save_failed(self, book_id: UUID, error_message: str) -> None:
        self.log(AuditEventBuilder.save_failed(book_id, error_message))
