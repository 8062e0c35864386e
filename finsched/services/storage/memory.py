"""
In-Memory Storage

Storage backends kept in process memory. Used by tests and by books that
do not need to outlive the process.
"""

from collections import deque
from typing import Optional
from uuid import UUID

from finsched.config import get_settings
from finsched.models.audit import AuditEvent
from finsched.models.schedule import ScheduleSnapshot
from finsched.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    ScheduleStorageInterface,
)


class InMemoryScheduleStorage(ScheduleStorageInterface):
    """
    Keeps the last saved snapshot as JSON text.

    Storing the serialized form means a load always goes through the same
    validation as a file load.
    """

    def __init__(self):
        self._payload: Optional[str] = None

    def save(self, snapshot: ScheduleSnapshot) -> None:
        self._payload = snapshot.model_dump_json()

    def load(self) -> ScheduleSnapshot:
        if self._payload is None:
            raise NotFoundError("No schedule book saved")
        return ScheduleSnapshot.model_validate_json(self._payload)

    def exists(self) -> bool:
        return self._payload is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Bounded append-only audit log."""

    def __init__(self, max_events: Optional[int] = None):
        if max_events is None:
            max_events = get_settings().audit.max_events
        self._events: deque[AuditEvent] = deque(maxlen=max_events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        return [
            event for event in self._events
            if event.entity_type == entity_type and event.entity_id == entity_id
        ]

    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]

    def __len__(self) -> int:
        return len(self._events)
