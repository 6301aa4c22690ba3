"""Pydantic data models for documentor run coordination.

- LockStatus: run lifecycle enum
- LockRecord: the persisted per-target lock record
- ResumeData: progress handed to a run that takes over an earlier one

Example:
    >>> from documentor.models import LockRecord
    >>> record = LockRecord(owner_id=100, hostname="box", session_id="s1", target_path="/p")
    >>> record.model_dump_json()
"""

from .lock import LockRecord, LockStatus, ResumeData

__all__ = [
    "LockRecord",
    "LockStatus",
    "ResumeData",
]
