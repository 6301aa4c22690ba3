"""Background heartbeat for an active run.

The publisher only schedules; what a tick writes is decided by the
callback the session supplies. A callback returning False stops the
publisher (the record was finalized or taken over).
"""

import logging
import threading
from collections.abc import Callable

from ..constants import HEARTBEAT_STOP_TIMEOUT_SECONDS
from ..errors import LockStoreError

logger = logging.getLogger(__name__)


class HeartbeatPublisher:
    """Calls ``tick`` every ``interval`` seconds on a daemon thread.

    Args:
        tick: Persist callback; returns False to stop publishing
        interval: Seconds between ticks
        name: Thread name, for diagnostics
    """

    def __init__(
        self,
        tick: Callable[[], bool],
        interval: float,
        name: str = "documentor-heartbeat",
    ) -> None:
        self._tick = tick
        self._interval = interval
        self._name = name
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        """Return True while the heartbeat thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start publishing. Starting twice is an error."""
        if self._thread is not None:
            raise RuntimeError("Heartbeat publisher already started")
        self._thread = threading.Thread(target=self._loop, name=self._name, daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Stop publishing and wait for an in-flight tick to finish.

        Idempotent, and safe to call from the tick callback itself.
        """
        self._stop.set()
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return
        if timeout is None:
            timeout = HEARTBEAT_STOP_TIMEOUT_SECONDS
        thread.join(timeout)
        if thread.is_alive():
            logger.warning("Heartbeat thread did not stop within %.1fs", timeout)

    def _loop(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                keep_going = self._tick()
            except LockStoreError as e:
                # A single missed tick stays well inside the staleness window
                logger.warning("Heartbeat failed, retrying next tick: %s", e)
                continue
            if not keep_going:
                logger.debug("Heartbeat stopped by session")
                self._stop.set()
                return
