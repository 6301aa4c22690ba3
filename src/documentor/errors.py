"""Errors raised by documentor run coordination."""

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import LockRecord


class DocumentorError(Exception):
    """Base exception for documentor errors."""


class ConfigError(DocumentorError):
    """Raised when the config file cannot be parsed or validated."""


class LockStoreError(DocumentorError):
    """Base exception for lock record storage errors."""

    def __init__(self, message: str, path: Path) -> None:
        super().__init__(message)
        self.path = path


class CorruptRecordError(LockStoreError):
    """Raised when a lock file exists but does not hold a valid record."""


class PersistError(LockStoreError):
    """Raised when a lock record cannot be written or removed."""


class AlreadyRunningError(DocumentorError):
    """Raised when another live session holds the lock for a target."""

    def __init__(self, record: "LockRecord") -> None:
        super().__init__(
            f"Documentation already in progress (PID {record.owner_id} on {record.hostname}, "
            f"phase: {record.current_phase}, {record.progress_percent}%)"
        )
        self.record = record


class SessionAbortedError(DocumentorError):
    """Raised when a session was finalized by a termination hook before the operation returned."""

    def __init__(self, record: "LockRecord") -> None:
        super().__init__(
            f"Session ended as '{record.status.value}' before the operation returned"
            + (f": {record.error}" if record.error else "")
        )
        self.record = record
