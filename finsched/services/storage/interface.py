"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep schedule books on disk or in memory behind one API
2. Use in-memory storage for testing
3. Keep the scheduling engine unaware of the storage format

The interface is intentionally small - a schedule book is saved and loaded
as a whole snapshot.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from finsched.models.audit import AuditEvent
from finsched.models.schedule import ScheduleSnapshot


class ScheduleStorageInterface(ABC):
    """
    Abstract interface for schedule book storage.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    def save(self, snapshot: ScheduleSnapshot) -> None:
        """
        Persist a schedule book snapshot, replacing any previous one.

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    def load(self) -> ScheduleSnapshot:
        """
        Load the last saved snapshot.

        Raises:
            NotFoundError: If nothing was saved yet
            StorageError: If the stored data cannot be read
        """
        pass

    @abstractmethod
    def exists(self) -> bool:
        """Check whether a snapshot was saved."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Nothing stored under the requested location."""
    pass
