"""Services package."""

from finsched.services.posting import (
    InMemoryLedger,
    LedgerTargetNotFoundError,
    PostingError,
    PostingSink,
)
from finsched.services.storage import (
    AuditStorageInterface,
    FileScheduleStorage,
    InMemoryAuditStorage,
    InMemoryScheduleStorage,
    NotFoundError,
    ScheduleStorageInterface,
    StorageError,
)

__all__ = [
    # Posting services
    "InMemoryLedger",
    "LedgerTargetNotFoundError",
    "PostingError",
    "PostingSink",
    # Storage services
    "AuditStorageInterface",
    "FileScheduleStorage",
    "InMemoryAuditStorage",
    "InMemoryScheduleStorage",
    "NotFoundError",
    "ScheduleStorageInterface",
    "StorageError",
]
