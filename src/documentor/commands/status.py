"""Status command for inspecting a target's lock."""

from pathlib import Path
from typing import Annotated

import typer

from ..core import Liveness
from ..output import format_lock_info, get_output_context
from .common import EXIT_NOT_FOUND, load_coordinator

_LIVENESS_HINTS = {
    Liveness.FOREIGN_ACTIVE: "[yellow]A documentation run is in progress[/yellow]",
    Liveness.RECLAIMABLE: "[yellow]Abandoned run, the next run will take over and resume[/yellow]",
    Liveness.RESUMABLE: "[cyan]The next run will resume from the last checkpoint[/cyan]",
    Liveness.TERMINAL: "[green]Last run completed, the next run starts fresh[/green]",
}


def status(
    typer_ctx: typer.Context,
    target: Annotated[
        Path,
        typer.Argument(help="Directory being documented"),
    ] = Path("."),
) -> None:
    """Show the lock record of a target and whether a new run could start."""
    ctx = get_output_context()
    coordinator = load_coordinator(typer_ctx)

    record, liveness = coordinator.inspect(target)
    if record is None:
        ctx.error(f"No lock record for {target}", {"liveness": liveness.value})
        raise typer.Exit(EXIT_NOT_FOUND)

    if ctx.json_mode:
        ctx.print_json({"liveness": liveness.value, "record": record.model_dump(mode="json")})
        return

    ctx.console.print(format_lock_info(record))
    ctx.console.print(f"\n{_LIVENESS_HINTS[liveness]}")
