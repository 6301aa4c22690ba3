"""Core run coordination for documentor.

- lock_store: atomic persistence of per-target lock records
- liveness: classification of existing records
- heartbeat: background liveness refresh
- termination: scoped signal, crash and exit hooks
- session: lock acquisition, session handle and finalization
"""

from .heartbeat import HeartbeatPublisher
from .liveness import Liveness, classify, is_pid_running
from .lock_store import LockStore, hash_target, resolve_target
from .session import SessionCoordinator, SessionHandle, create_coordinator, run_with_lock
from .termination import TerminationInterceptor

__all__ = [
    "HeartbeatPublisher",
    "Liveness",
    "LockStore",
    "SessionCoordinator",
    "SessionHandle",
    "TerminationInterceptor",
    "classify",
    "create_coordinator",
    "hash_target",
    "is_pid_running",
    "resolve_target",
    "run_with_lock",
]
