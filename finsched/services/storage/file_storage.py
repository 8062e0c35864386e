"""
File Storage Implementation

Saves a schedule book as one JSON document, deflate-compressed by default.

DESIGN DECISION: Writes go to a temporary file that replaces the target in
one step, so a crash mid-write never leaves a truncated book behind.
Reads and writes are retried on transient OS errors.

TRADEOFFS:
- The whole book is rewritten on every save (fine for personal use)
- No locking; one process owns a book file at a time
"""

import os
import zlib
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from finsched.config import get_settings
from finsched.models.schedule import ScheduleSnapshot
from finsched.services.storage.interface import (
    NotFoundError,
    ScheduleStorageInterface,
    StorageError,
)


class FileScheduleStorage(ScheduleStorageInterface):
    """Schedule book stored in a single file."""

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        compress: Optional[bool] = None,
        retry_attempts: Optional[int] = None,
    ):
        """
        Initialize file storage.

        Args:
            path: Target file. Defaults to the configured storage path.
            compress: Deflate-compress on save. Defaults to configuration.
                     Loading detects the format on its own.
            retry_attempts: Attempts per read or write. Defaults to configuration.
        """
        settings = get_settings().storage
        self._path = Path(path).expanduser() if path is not None else settings.path
        self._compress = settings.compress if compress is None else compress
        attempts = settings.retry_attempts if retry_attempts is None else retry_attempts
        self._retrying = Retrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )

    @property
    def path(self) -> Path:
        return self._path

    def _write_bytes(self, data: bytes) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            with open(tmp, "wb") as f:
                f.write(data)
            os.replace(tmp, self._path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    def _read_bytes(self) -> bytes:
        with open(self._path, "rb") as f:
            return f.read()

    def save(self, snapshot: ScheduleSnapshot) -> None:
        data = snapshot.model_dump_json().encode("utf-8")
        if self._compress:
            data = zlib.compress(data)
        try:
            self._retrying(self._write_bytes, data)
        except OSError as e:
            raise StorageError(f"Failed to write schedule book to {self._path}: {e}")

    def load(self) -> ScheduleSnapshot:
        if not self._path.exists():
            raise NotFoundError(f"No schedule book at {self._path}")

        try:
            data = self._retrying(self._read_bytes)
        except OSError as e:
            raise StorageError(f"Failed to read schedule book from {self._path}: {e}")

        if not data.lstrip().startswith(b"{"):
            try:
                data = zlib.decompress(data)
            except zlib.error as e:
                raise StorageError(f"Corrupt schedule book at {self._path}: {e}")

        try:
            return ScheduleSnapshot.model_validate_json(data)
        except ValidationError as e:
            raise StorageError(f"Invalid schedule book at {self._path}: {e}")

    def exists(self) -> bool:
        return self._path.exists()
