"""Session lifecycle for documentation runs.

A session owns the lock record of one target for the duration of one
operation: it acquires the lock, keeps it alive with a heartbeat, records
progress reported through its handle, and writes the final status exactly
once, whether the operation returns, raises, or the process is torn down.

Usage:
    >>> coordinator = SessionCoordinator(LockStore(LockLocation.TARGET, state_dir))
    >>> def document(handle, resume):
    ...     handle.update_phase("analyzing")
    ...     handle.update_progress(40)
    >>> coordinator.run("/path/to/project", document)
"""

import asyncio
import logging
import os
import socket
import threading
import time
import uuid
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

from ..config import DocumentorConfig, LockConfig, get_state_dir, load_config
from ..errors import AlreadyRunningError, CorruptRecordError, LockStoreError, SessionAbortedError
from ..models import LockRecord, LockStatus, ResumeData
from .heartbeat import HeartbeatPublisher
from .liveness import Liveness, classify
from .lock_store import LockStore, resolve_target
from .termination import TerminationInterceptor

logger = logging.getLogger(__name__)
heartbeat_logger = logging.getLogger(f"{__name__}.heartbeat")

T = TypeVar("T")
Clock = Callable[[], datetime]
Operation = Callable[["SessionHandle", ResumeData | None], T]
AsyncOperation = Callable[["SessionHandle", ResumeData | None], Awaitable[T]]

# Serializes read-classify-write across coordinators in this process
_claim_lock = threading.Lock()


class SessionHandle:
    """Progress API handed to the operation.

    Mutators only touch the in-memory record; the next heartbeat tick or
    the final write persists them.
    """

    def __init__(
        self,
        target: Path,
        record: LockRecord,
        store: LockStore,
        config: LockConfig,
        clock: Clock,
    ) -> None:
        self._target = target
        self._record = record
        self._store = store
        self._config = config
        self._clock = clock
        self._lock = threading.RLock()
        # Serializes disk writes between the heartbeat and finalize
        self._write_lock = threading.Lock()
        self._finalized = False
        self._heartbeat: HeartbeatPublisher | None = None

    @property
    def target(self) -> Path:
        return self._target

    @property
    def session_id(self) -> str:
        return self._record.session_id

    @property
    def record(self) -> LockRecord:
        """Snapshot of the in-memory record."""
        with self._lock:
            return self._record.model_copy(deep=True)

    @property
    def finalized(self) -> bool:
        with self._lock:
            return self._finalized

    def update_phase(self, name: str) -> None:
        with self._lock:
            self._record.current_phase = name

    def update_progress(self, percent: float) -> None:
        """Set progress, clamped to 0-100. Decreases are ignored."""
        value = max(0, min(100, int(percent)))
        with self._lock:
            if value < self._record.progress_percent:
                logger.debug(
                    "Ignoring progress decrease %d%% -> %d%%", self._record.progress_percent, value
                )
                return
            self._record.progress_percent = value

    def mark_task_complete(self, task_id: str) -> None:
        with self._lock:
            if task_id not in self._record.completed_tasks:
                self._record.completed_tasks.append(task_id)

    def set_checkpoint(self, data: Any) -> None:
        with self._lock:
            self._record.checkpoint = data

    def attach_heartbeat(self, heartbeat: HeartbeatPublisher) -> None:
        self._heartbeat = heartbeat

    def persist_heartbeat(self) -> bool:
        """Write the in-memory record with a fresh heartbeat.

        Only the snapshot is taken under the state lock, so mutators never
        wait on disk I/O.

        Returns:
            False if publishing should stop (session finalized, or the
            on-disk record no longer belongs to this session)
        """
        with self._lock:
            if self._finalized:
                return False
            self._record.last_heartbeat_at = self._clock()
            snapshot = self._record.model_copy(deep=True)

        with self._write_lock:
            # Finalize may have won the race for the write lock. Reading the
            # flag without the state lock keeps the lock order one-way
            if self._finalized:
                return False

            try:
                on_disk = self._store.read(self._target)
            except CorruptRecordError as e:
                logger.warning("%s, rewriting from memory", e)
                on_disk = snapshot

            if on_disk is None or not on_disk.is_owned_by(self.session_id):
                logger.warning(
                    "Lock for %s was removed or taken over, heartbeat stopped", self._target
                )
                return False
            if on_disk.status.is_terminal:
                logger.warning(
                    "Lock for %s is already '%s', heartbeat stopped",
                    self._target,
                    on_disk.status.value,
                )
                return False

            self._store.write(self._target, snapshot)
        heartbeat_logger.debug("Heartbeat written for %s", self._target)
        return True

    def finalize(self, status: LockStatus, error: str | None = None) -> bool:
        """Record the final status of the run, once.

        The heartbeat is stopped before the final write so that no tick can
        land after it. A signal arriving mid-write does not leave the record
        'running': the write is repeated before the signal's exception
        propagates.

        Returns:
            True if this call finalized the session, False if it already was

        Raises:
            PersistError: If every write attempt failed
        """
        if not status.is_terminal:
            raise ValueError(f"Cannot finalize a session as '{status.value}'")

        with self._lock:
            if self._finalized:
                logger.debug("Session already finalized, ignoring '%s'", status.value)
                return False
            self._finalized = True
            self._record.status = status
            if status is LockStatus.COMPLETED:
                self._record.progress_percent = 100
                self._record.error = None
            else:
                self._record.error = error

        if self._heartbeat is not None:
            self._heartbeat.stop()

        with self._lock:
            self._record.last_heartbeat_at = self._clock()
            snapshot = self._record.model_copy(deep=True)

        with self._write_lock:
            try:
                self._write_final(snapshot)
            except (KeyboardInterrupt, SystemExit):
                logger.warning("Final write for %s interrupted, retrying", self._target)
                self._write_final(snapshot)
                raise
        logger.debug("Run on %s finalized as '%s'", self._target, status.value)
        return True

    def finalize_from_hook(self, status: LockStatus, error: str) -> None:
        """Finalize callback for termination hooks, which must not raise."""
        try:
            self.finalize(status, error)
        except LockStoreError as e:
            logger.error("Could not record '%s' status: %s", status.value, e)

    def _write_final(self, record: LockRecord) -> None:
        try:
            on_disk = self._store.read(self._target)
        except CorruptRecordError:
            on_disk = None
        if on_disk is not None and not on_disk.is_owned_by(self.session_id):
            logger.warning(
                "Lock for %s now belongs to session %s, final status not written",
                self._target,
                on_disk.session_id,
            )
            return

        attempts = self._config.finalize_retries
        for attempt in range(1, attempts + 1):
            try:
                self._store.write(self._target, record)
                return
            except LockStoreError as e:
                if attempt == attempts:
                    raise
                logger.warning("Final write failed (attempt %d/%d): %s", attempt, attempts, e)
                time.sleep(self._config.finalize_retry_delay)


class SessionCoordinator:
    """Runs operations under the lock of their target.

    Args:
        store: Lock record storage
        config: Lock timing and policy settings
        clock: Wall clock, replaceable in tests
    """

    def __init__(
        self,
        store: LockStore,
        config: LockConfig | None = None,
        clock: Clock = datetime.now,
    ) -> None:
        self.store = store
        self.config = config or LockConfig()
        self._clock = clock

    def inspect(self, target: Path | str) -> tuple[LockRecord | None, Liveness]:
        """Read and classify a target's record. Corrupt records read as absent."""
        try:
            record = self.store.read(target)
        except CorruptRecordError as e:
            logger.warning("%s; treating as absent", e)
            record = None
        return record, classify(record, self._clock(), self.config.stale_threshold)

    def acquire(self, target: Path | str) -> tuple[SessionHandle, ResumeData | None]:
        """Take the lock of a target.

        Returns:
            Handle for the new session, and resume data when taking over an
            abandoned, interrupted or failed run

        Raises:
            AlreadyRunningError: If another live session holds the lock
            PersistError: If the new record cannot be written
        """
        resolved = resolve_target(target)
        with _claim_lock:
            existing, liveness = self.inspect(resolved)
            if liveness is Liveness.FOREIGN_ACTIVE and existing is not None:
                raise AlreadyRunningError(existing)

            now = self._clock()
            record = LockRecord(
                owner_id=os.getpid(),
                hostname=socket.gethostname(),
                session_id=uuid.uuid4().hex,
                target_path=str(resolved),
                started_at=now,
                last_heartbeat_at=now,
            )

            resume = None
            if liveness.carries_resume and existing is not None:
                resume = ResumeData.from_record(existing)
                record.checkpoint = existing.checkpoint
                record.completed_tasks = list(existing.completed_tasks)
                logger.info(
                    "Resuming %s run on %s from phase '%s' (%d%%)",
                    "abandoned" if liveness is Liveness.RECLAIMABLE else existing.status.value,
                    resolved,
                    existing.current_phase,
                    existing.progress_percent,
                )
            elif liveness is Liveness.TERMINAL:
                logger.debug("Previous run on %s completed, starting fresh", resolved)

            self.store.write(resolved, record)

        logger.debug("Acquired lock for %s (session %s)", resolved, record.session_id)
        return SessionHandle(resolved, record, self.store, self.config, self._clock), resume

    def run(self, target: Path | str, operation: Operation[T]) -> T:
        """Run an operation while holding the target's lock.

        Raises:
            AlreadyRunningError: If another live session holds the lock
            SessionAbortedError: If a termination hook ended the session
                before the operation returned
        """
        handle, resume = self.acquire(target)
        with self._activate(handle):
            try:
                result = operation(handle, resume)
            except BaseException as e:
                self._fail(handle, e)
                raise
            self._complete(handle)
            return result

    async def run_async(self, target: Path | str, operation: AsyncOperation[T]) -> T:
        """Async variant of ``run`` for coroutine operations.

        Unhandled exceptions reported to the running event loop also fail the
        session.
        """
        handle, resume = self.acquire(target)
        with self._activate(handle, loop=asyncio.get_running_loop()):
            try:
                result = await operation(handle, resume)
            except BaseException as e:
                self._fail(handle, e)
                raise
            self._complete(handle)
            return result

    @contextmanager
    def _activate(
        self,
        handle: SessionHandle,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> Iterator[None]:
        heartbeat = HeartbeatPublisher(handle.persist_heartbeat, self.config.heartbeat_interval)
        handle.attach_heartbeat(heartbeat)
        interceptor = TerminationInterceptor(handle.finalize_from_hook, loop=loop)
        heartbeat.start()
        try:
            with interceptor:
                yield
        finally:
            heartbeat.stop()

    def _complete(self, handle: SessionHandle) -> None:
        if not handle.finalize(LockStatus.COMPLETED):
            raise SessionAbortedError(handle.record)
        if self.config.remove_on_complete:
            self.store.delete(handle.target)
        logger.info("Run on %s completed", handle.target)

    def _fail(self, handle: SessionHandle, exc: BaseException) -> None:
        # The operation's exception is re-raised by the caller; a failed final
        # write is only logged so it cannot replace it
        if isinstance(exc, (KeyboardInterrupt, SystemExit, asyncio.CancelledError)):
            status = LockStatus.INTERRUPTED
        else:
            status = LockStatus.FAILED
        try:
            finalized = handle.finalize(status, str(exc) or type(exc).__name__)
        except LockStoreError as e:
            logger.error("Could not record '%s' status for %s: %s", status.value, handle.target, e)
            return
        if finalized:
            logger.info("Run on %s ended as '%s'", handle.target, status.value)


def create_coordinator(
    state_dir: Path | None = None,
    config: DocumentorConfig | None = None,
) -> SessionCoordinator:
    """Build a coordinator from file-based config.

    Args:
        state_dir: Documentor state directory, defaults to ~/.documentor
        config: Configuration, loaded from the state directory if omitted

    Raises:
        ConfigError: If the config file is invalid
    """
    state_dir = get_state_dir(state_dir)
    if config is None:
        config = load_config(state_dir)
    store = LockStore(config.lock.location, state_dir)
    return SessionCoordinator(store, config.lock)


def run_with_lock(
    target: Path | str,
    operation: Operation[T],
    config: DocumentorConfig | None = None,
    state_dir: Path | None = None,
) -> T:
    """Run an operation under the target's lock using file-based config.

    Returns:
        Whatever the operation returns
    """
    return create_coordinator(state_dir, config).run(target, operation)
