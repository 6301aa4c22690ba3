"""Process termination hooks scoped to one session.

Registration covers termination signals, uncaught exceptions on the main
thread and on worker threads, unhandled asyncio errors, and interpreter
exit. Each hook funnels into the session's ``finalize`` callback, which is
idempotent: only the first hook to fire changes the record.

Process-wide hooks are shared. The first interceptor to register installs a
single dispatcher per hook, every active interceptor is notified through it,
and the last one to unregister restores what was there before. Sessions that
overlap and finish in any order leave no handlers behind.
"""

import asyncio
import atexit
import logging
import signal
import sys
import threading
from collections.abc import Callable
from datetime import datetime
from types import FrameType, TracebackType
from typing import Any

from ..models import LockStatus

logger = logging.getLogger(__name__)

# (status, error message) -> None
FinalizeCallback = Callable[[LockStatus, str], None]

_SIGNAL_LABELS = {
    "SIGINT": "SIGINT (Ctrl+C)",
    "SIGTERM": "SIGTERM (Kill signal)",
    "SIGHUP": "SIGHUP (Terminal closed)",
}


def _termination_signals() -> list[signal.Signals]:
    """Get termination signals available on this platform."""
    return [getattr(signal, name) for name in _SIGNAL_LABELS if hasattr(signal, name)]


def _timestamp() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


class _HookRegistry:
    """Dispatchers for process-wide hooks, shared by active interceptors."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._active: list["TerminationInterceptor"] = []
        self._signal_holders: list["TerminationInterceptor"] = []
        self._loop_holders: dict[asyncio.AbstractEventLoop, list["TerminationInterceptor"]] = {}
        self._previous_signals: dict[signal.Signals, Any] = {}
        self._previous_excepthook: Callable[..., Any] | None = None
        self._previous_thread_excepthook: Callable[..., Any] | None = None
        self._previous_loop_handlers: dict[asyncio.AbstractEventLoop, Any] = {}

    def add(self, interceptor: "TerminationInterceptor") -> None:
        with self._lock:
            if not self._active:
                self._previous_excepthook = sys.excepthook
                sys.excepthook = self.dispatch_uncaught
                self._previous_thread_excepthook = threading.excepthook
                threading.excepthook = self.dispatch_thread_uncaught
            self._active.append(interceptor)

            if threading.current_thread() is threading.main_thread():
                if not self._signal_holders:
                    for signum in _termination_signals():
                        self._previous_signals[signum] = signal.signal(
                            signum, self.dispatch_signal
                        )
                self._signal_holders.append(interceptor)
            else:
                logger.debug("Not on the main thread, signal hooks skipped")

            loop = interceptor.loop
            if loop is not None:
                holders = self._loop_holders.setdefault(loop, [])
                if not holders:
                    self._previous_loop_handlers[loop] = loop.get_exception_handler()
                    loop.set_exception_handler(self.dispatch_loop_exception)
                holders.append(interceptor)

    def remove(self, interceptor: "TerminationInterceptor") -> None:
        with self._lock:
            if interceptor in self._signal_holders:
                self._signal_holders.remove(interceptor)
                if not self._signal_holders:
                    self._restore_signals()

            loop = interceptor.loop
            holders = self._loop_holders.get(loop) if loop is not None else None
            if holders is not None and interceptor in holders:
                holders.remove(interceptor)
                if not holders:
                    del self._loop_holders[loop]
                    previous = self._previous_loop_handlers.pop(loop, None)
                    if not loop.is_closed() and (
                        loop.get_exception_handler() == self.dispatch_loop_exception
                    ):
                        loop.set_exception_handler(previous)

            if interceptor in self._active:
                self._active.remove(interceptor)
                if not self._active:
                    # Leave hooks alone if someone replaced ours meanwhile
                    if sys.excepthook == self.dispatch_uncaught:
                        sys.excepthook = self._previous_excepthook or sys.__excepthook__
                    if threading.excepthook == self.dispatch_thread_uncaught:
                        threading.excepthook = (
                            self._previous_thread_excepthook or threading.__excepthook__
                        )
                    self._previous_excepthook = None
                    self._previous_thread_excepthook = None

    def _restore_signals(self) -> None:
        if threading.current_thread() is not threading.main_thread():
            logger.warning("Signal hooks released off the main thread, leaving them installed")
            return
        for signum, previous in self._previous_signals.items():
            # None means the handler was not installed from Python
            signal.signal(signum, previous if previous is not None else signal.SIG_DFL)
        self._previous_signals.clear()

    def dispatch_signal(self, signum: int, frame: FrameType | None) -> None:
        """Record interruption, then raise the signal's conventional exception."""
        name = signal.Signals(signum).name
        label = _SIGNAL_LABELS.get(name, name)
        logger.warning("Received %s, marking run as interrupted", label)
        with self._lock:
            holders = list(self._signal_holders)
        message = f"Process interrupted by {label} at {_timestamp()}"
        for interceptor in holders:
            interceptor.finalize(LockStatus.INTERRUPTED, message)

        if signum == signal.SIGINT:
            raise KeyboardInterrupt()
        raise SystemExit(128 + signum)

    def dispatch_uncaught(
        self,
        exc_type: type[BaseException],
        exc: BaseException,
        tb: TracebackType | None,
    ) -> None:
        with self._lock:
            active = list(self._active)
            previous = self._previous_excepthook
        message = f"Crashed: {_describe(exc)} at {_timestamp()}"
        for interceptor in active:
            interceptor.finalize(LockStatus.FAILED, message)
        (previous or sys.__excepthook__)(exc_type, exc, tb)

    def dispatch_thread_uncaught(self, args: threading.ExceptHookArgs) -> None:
        with self._lock:
            active = list(self._active)
            previous = self._previous_thread_excepthook
        thread_name = args.thread.name if args.thread is not None else "unknown"
        message = f"Crashed in thread {thread_name}: {_describe(args.exc_value)} at {_timestamp()}"
        for interceptor in active:
            interceptor.finalize(LockStatus.FAILED, message)
        (previous or threading.__excepthook__)(args)

    def dispatch_loop_exception(
        self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
    ) -> None:
        with self._lock:
            holders = list(self._loop_holders.get(loop, []))
            previous = self._previous_loop_handlers.get(loop)
        exc = context.get("exception")
        reason = _describe(exc) if exc is not None else context.get("message", "unknown error")
        message = f"Unhandled async error: {reason} at {_timestamp()}"
        for interceptor in holders:
            interceptor.finalize(LockStatus.FAILED, message)
        if previous is not None:
            previous(loop, context)
        else:
            loop.default_exception_handler(context)


_hooks = _HookRegistry()


class TerminationInterceptor:
    """Installs and removes termination hooks for one session.

    Args:
        finalize: Idempotent callback recording the final status
        loop: Event loop whose unhandled exceptions should fail the session
    """

    def __init__(
        self,
        finalize: FinalizeCallback,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.finalize = finalize
        self.loop = loop
        self._registered = False

    @property
    def registered(self) -> bool:
        """Return True while hooks are installed."""
        return self._registered

    def register(self) -> None:
        """Install all hooks. No-op if already registered."""
        if self._registered:
            return
        _hooks.add(self)
        atexit.register(self._handle_exit)
        self._registered = True

    def unregister(self) -> None:
        """Release every hook taken by ``register``. Idempotent."""
        if not self._registered:
            return
        _hooks.remove(self)
        atexit.unregister(self._handle_exit)
        self._registered = False

    def __enter__(self) -> "TerminationInterceptor":
        self.register()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.unregister()

    def _handle_exit(self) -> None:
        # Interpreter shutdown: synchronous I/O still completes here
        self.finalize(
            LockStatus.INTERRUPTED, f"Process exited before the run finished at {_timestamp()}"
        )


def _describe(exc: BaseException | None) -> str:
    if exc is None:
        return "unknown error"
    return str(exc) or type(exc).__name__
