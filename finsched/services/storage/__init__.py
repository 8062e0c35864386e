"""
Storage Services Package

Provides abstract interfaces and concrete implementations for saving
schedule books and audit trails. File and in-memory backends are
interchangeable behind the interfaces.
"""

from finsched.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    ScheduleStorageInterface,
    StorageError,
)
from finsched.services.storage.file_storage import FileScheduleStorage
from finsched.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryScheduleStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "ScheduleStorageInterface",
    # Exceptions
    "NotFoundError",
    "StorageError",
    # Implementations
    "FileScheduleStorage",
    "InMemoryAuditStorage",
    "InMemoryScheduleStorage",
]
