"""Unlock command: administrative override for a target's lock."""

from pathlib import Path
from typing import Annotated

import typer

from ..core import Liveness
from ..errors import PersistError
from ..output import format_lock_info, get_output_context
from .common import EXIT_LOCKED, EXIT_NOT_FOUND, load_coordinator


def unlock(
    typer_ctx: typer.Context,
    target: Annotated[
        Path,
        typer.Argument(help="Directory being documented"),
    ] = Path("."),
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Remove the lock even if its holder still looks alive",
        ),
    ] = False,
) -> None:
    """Remove a target's lock record, discarding any resume checkpoint."""
    ctx = get_output_context()
    coordinator = load_coordinator(typer_ctx)

    record, liveness = coordinator.inspect(target)
    if liveness is Liveness.FOREIGN_ACTIVE and not force:
        ctx.error(
            "A documentation run is still active. Use --force to remove its lock anyway.",
            {"record": record.model_dump(mode="json") if record else None},
        )
        if record is not None:
            ctx.print(format_lock_info(record))
        raise typer.Exit(EXIT_LOCKED)

    try:
        removed = coordinator.store.delete(target)
    except PersistError as e:
        ctx.error(str(e))
        raise typer.Exit(EXIT_LOCKED) from None

    if not removed:
        ctx.error(f"No lock record for {target}")
        raise typer.Exit(EXIT_NOT_FOUND)

    ctx.success(f"Unlocked {target}", {"target": str(target), "previous": liveness.value})
