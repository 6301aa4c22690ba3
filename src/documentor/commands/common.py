"""Helpers shared by CLI commands."""

from pathlib import Path

import typer

from ..core import SessionCoordinator, create_coordinator
from ..errors import ConfigError
from ..output import get_output_context

EXIT_NOT_FOUND = 1
EXIT_LOCKED = 1
EXIT_CONFIG = 3


def get_state_dir_option(typer_ctx: typer.Context) -> Path | None:
    """Get the --state-dir value stored by the main callback."""
    obj = typer_ctx.find_root().obj
    return obj.get("state_dir") if isinstance(obj, dict) else None


def load_coordinator(typer_ctx: typer.Context) -> SessionCoordinator:
    """Build a coordinator, exiting with an error on invalid config."""
    try:
        return create_coordinator(get_state_dir_option(typer_ctx))
    except ConfigError as e:
        get_output_context().error(str(e))
        raise typer.Exit(EXIT_CONFIG) from None
