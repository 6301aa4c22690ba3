"""Lock record storage for documentation runs.

Every write replaces the whole record through a temp file and
``os.replace``, so readers never see a half-written record. Merging field
updates is the caller's job; the store has no partial-update API.
"""

import contextlib
import hashlib
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from ..config import LockLocation
from ..constants import LOCK_FILE_NAME, STATE_LOCK_PREFIX, STATE_LOCK_SUFFIX
from ..errors import CorruptRecordError, PersistError
from ..models import LockRecord

logger = logging.getLogger(__name__)


def resolve_target(target: Path | str) -> Path:
    """Normalize a target path so equivalent spellings share one lock."""
    return Path(target).expanduser().resolve()


def hash_target(target: Path | str) -> str:
    """Get a stable, collision-resistant key for a target path."""
    return hashlib.sha256(str(resolve_target(target)).encode()).hexdigest()[:32]


class LockStore:
    """Reads and writes the lock record of a target.

    Args:
        location: Where records live (inside the target or in the state dir)
        state_dir: Documentor state directory, used for ``state_dir`` location
            and for listing records
    """

    def __init__(self, location: LockLocation, state_dir: Path) -> None:
        self.location = location
        self.state_dir = state_dir

    @property
    def locks_dir(self) -> Path:
        """Directory holding hashed lock files."""
        return self.state_dir / "locks"

    def path_for(self, target: Path | str) -> Path:
        """Get the lock file path for a target."""
        resolved = resolve_target(target)
        if self.location is LockLocation.STATE_DIR:
            return self.locks_dir / f"{STATE_LOCK_PREFIX}{hash_target(resolved)}{STATE_LOCK_SUFFIX}"
        return resolved / LOCK_FILE_NAME

    def read(self, target: Path | str) -> LockRecord | None:
        """Read the lock record for a target.

        Returns:
            The record, or None if no lock file exists

        Raises:
            CorruptRecordError: If the file exists but is not a valid record
        """
        return self._read_path(self.path_for(target))

    def write(self, target: Path | str, record: LockRecord) -> Path:
        """Atomically replace the lock record for a target.

        Returns:
            Path of the written lock file

        Raises:
            PersistError: If the record cannot be written
        """
        lock_path = self.path_for(target)
        try:
            _atomic_write_text(lock_path, record.model_dump_json(indent=2))
        except OSError as e:
            raise PersistError(f"Failed to write lock file {lock_path}: {e}", lock_path) from e
        return lock_path

    def delete(self, target: Path | str) -> bool:
        """Remove the lock record for a target.

        Returns:
            True if a record was removed, False if none existed

        Raises:
            PersistError: If the file exists but cannot be removed
        """
        lock_path = self.path_for(target)
        try:
            lock_path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise PersistError(f"Failed to remove lock file {lock_path}: {e}", lock_path) from e
        return True

    def list_records(self) -> list[tuple[Path, LockRecord]]:
        """List records stored in the state directory.

        Corrupt files are logged and skipped. Records kept inside target
        directories are not discoverable from here.
        """
        if not self.locks_dir.is_dir():
            return []

        records = []
        for lock_path in sorted(self.locks_dir.glob(f"{STATE_LOCK_PREFIX}*{STATE_LOCK_SUFFIX}")):
            try:
                record = self._read_path(lock_path)
            except CorruptRecordError as e:
                logger.warning(str(e))
                continue
            if record is not None:
                records.append((lock_path, record))
        return records

    def _read_path(self, lock_path: Path) -> LockRecord | None:
        try:
            content = lock_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CorruptRecordError(f"Unreadable lock file {lock_path}: {e}", lock_path) from e

        try:
            return LockRecord.model_validate_json(content)
        except ValidationError as e:
            raise CorruptRecordError(
                f"Corrupt lock file {lock_path}: {e.error_count()} validation error(s)", lock_path
            ) from e


def _atomic_write_text(path: Path, content: str) -> None:
    """Write content to path via a synced temp file and rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            tmp_path.unlink()
        raise
