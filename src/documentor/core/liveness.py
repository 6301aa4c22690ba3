"""Liveness classification of existing lock records.

The heartbeat age is the authority on whether a running record is still
held. The pid check is a fast path for detecting a dead holder on the same
host; a recycled pid can make a dead holder look alive, which the heartbeat
age then catches.
"""

import os
import socket
from datetime import datetime, timedelta
from enum import Enum

from ..models import LockRecord, LockStatus


class Liveness(str, Enum):
    """Classification of a target's lock record."""

    ABSENT = "absent"  # No record on disk
    FOREIGN_ACTIVE = "foreign_active"  # Live holder, acquisition must fail
    RECLAIMABLE = "reclaimable"  # Abandoned running record
    RESUMABLE = "resumable"  # Interrupted or failed, checkpoint reusable
    TERMINAL = "terminal"  # Completed, start clean

    @property
    def carries_resume(self) -> bool:
        """Return True if a new run should receive the prior checkpoint."""
        return self in (Liveness.RECLAIMABLE, Liveness.RESUMABLE)


def is_pid_running(pid: int) -> bool:
    """Check if a process with given PID is running."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)  # Signal 0 doesn't kill, just checks
    except ProcessLookupError:
        return False
    except PermissionError:
        # Exists but owned by another user
        return True
    except OSError:
        return False
    return True


def is_owner_alive(record: LockRecord) -> bool:
    """Probe the holder's pid when it runs on this host.

    Holders on other hosts cannot be checked by pid and are assumed alive, leaving
    the decision to the heartbeat age.
    """
    if record.hostname != socket.gethostname():
        return True
    return is_pid_running(record.owner_id)


def heartbeat_age(record: LockRecord, now: datetime) -> timedelta:
    """Get time elapsed since the record's last heartbeat."""
    return now - record.last_heartbeat_at


def classify(
    record: LockRecord | None,
    now: datetime,
    stale_threshold: float,
) -> Liveness:
    """Classify a lock record.

    Args:
        record: Record read from disk, or None if absent
        now: Current wall clock time
        stale_threshold: Seconds after which a heartbeat is no longer trusted

    Returns:
        Liveness classification
    """
    if record is None:
        return Liveness.ABSENT

    if record.status is LockStatus.COMPLETED:
        return Liveness.TERMINAL

    if record.status.is_resumable:
        return Liveness.RESUMABLE

    if not is_owner_alive(record):
        return Liveness.RECLAIMABLE

    if heartbeat_age(record, now) >= timedelta(seconds=stale_threshold):
        return Liveness.RECLAIMABLE

    return Liveness.FOREIGN_ACTIVE
