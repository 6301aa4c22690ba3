"""CLI command implementations for documentor.

This package contains the implementation of each CLI command,
separated from the CLI framework setup in cli.py.
"""

from .init import init
from .locks import locks
from .status import status
from .unlock import unlock

__all__ = [
    "init",
    "locks",
    "status",
    "unlock",
]
