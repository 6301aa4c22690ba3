"""Logging configuration for documentor CLI."""

import logging
from enum import IntEnum
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler

# Loggers that emit a line on every heartbeat tick
HEARTBEAT_LOGGERS = (
    "documentor.core.heartbeat",
    "documentor.core.session.heartbeat",
)


class LogLevel(IntEnum):
    """Log level enumeration."""

    QUIET = logging.WARNING
    NORMAL = logging.INFO
    VERBOSE = logging.DEBUG


def _heartbeat_level(level: int, verbosity: int, debug: bool) -> int:
    """Per-tick chatter only shows at -vv or with debug."""
    if debug or verbosity >= 2:
        return level
    return max(level, LogLevel.NORMAL)


def configure_logging(
    verbosity: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    stream: TextIO | None = None,
    debug: bool = False,
) -> Console:
    """Configure logging based on CLI options.

    Args:
        verbosity: Number of -v flags (0=normal, 1=lock decisions, 2+=every heartbeat)
        quiet: Suppress non-error output (takes precedence over debug/verbosity)
        no_color: Disable colored output
        stream: Output stream for logs (defaults to stderr)
        debug: Enable debug logging with timestamps and source paths

    Returns:
        Configured Rich console for output

    Note:
        Flag precedence: quiet > debug > verbosity.
        A single -v shows acquisition, resume and finalize decisions; the
        heartbeat loggers stay at INFO until -vv so a long run is not
        drowned in one line per tick.
    """
    if quiet:
        level = LogLevel.QUIET
    elif debug or verbosity >= 1:
        level = LogLevel.VERBOSE
    else:
        level = LogLevel.NORMAL

    console = Console(
        file=stream,
        stderr=stream is None,
        force_terminal=not no_color,
        no_color=no_color,
    )

    handler = RichHandler(
        console=console,
        show_time=debug or verbosity >= 2,
        show_path=debug,
        rich_tracebacks=debug,
    )

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )

    heartbeat_level = _heartbeat_level(level, verbosity, debug)
    for name in HEARTBEAT_LOGGERS:
        logging.getLogger(name).setLevel(heartbeat_level)

    return console
