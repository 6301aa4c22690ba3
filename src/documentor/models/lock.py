"""Lock record model for documentation run coordination.

A single record per target describes the current or last run: who holds
it, when it last proved liveness, how far it got, and what it needs to
resume.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from ..constants import INITIAL_PHASE


class LockStatus(str, Enum):
    """Lifecycle status of a run."""

    RUNNING = "running"
    INTERRUPTED = "interrupted"
    FAILED = "failed"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        """Return True once the run has ended, whatever the outcome."""
        return self is not LockStatus.RUNNING

    @property
    def is_resumable(self) -> bool:
        """Return True if a later run may pick up this run's checkpoint."""
        return self in (LockStatus.INTERRUPTED, LockStatus.FAILED)


class LockRecord(BaseModel):
    """Persisted lock record written next to (or on behalf of) a target.

    Attributes:
        owner_id: Process ID of the lock holder.
        hostname: Host the holder runs on.
        session_id: Unique ID of the run that wrote the record.
        target_path: Resolved path of the target being documented.
        started_at: When the run acquired the lock.
        last_heartbeat_at: Last liveness refresh (for stale detection).
        status: Lifecycle status.
        current_phase: Short label of work in progress.
        progress_percent: Progress within this run, 0-100.
        completed_tasks: Task identifiers finished so far, in order.
        checkpoint: Operation-defined resume payload.
        error: Failure or interruption reason.
    """

    owner_id: int = Field(description="Process ID holding the lock")
    hostname: str = Field(description="Host of the lock holder")
    session_id: str = Field(description="Unique ID of the owning run")
    target_path: str = Field(description="Target directory being documented")
    started_at: datetime = Field(default_factory=datetime.now)
    last_heartbeat_at: datetime = Field(default_factory=datetime.now)
    status: LockStatus = LockStatus.RUNNING
    current_phase: str = INITIAL_PHASE
    progress_percent: int = Field(default=0, ge=0, le=100)
    completed_tasks: list[str] = Field(default_factory=list)
    checkpoint: Any = None
    error: str | None = None

    def is_owned_by(self, session_id: str) -> bool:
        """Check whether the record was written by the given session."""
        return self.session_id == session_id


class ResumeData(BaseModel):
    """Progress carried over from an abandoned or failed run."""

    previous_status: LockStatus
    previous_started_at: datetime
    current_phase: str
    progress_percent: int = 0
    completed_tasks: list[str] = Field(default_factory=list)
    checkpoint: Any = None
    error: str | None = None

    @classmethod
    def from_record(cls, record: LockRecord) -> "ResumeData":
        """Build resume data from the record a new run is taking over."""
        return cls(
            previous_status=record.status,
            previous_started_at=record.started_at,
            current_phase=record.current_phase,
            progress_percent=record.progress_percent,
            completed_tasks=list(record.completed_tasks),
            checkpoint=record.checkpoint,
            error=record.error,
        )
