"""Locks command for listing records in the state directory."""

from datetime import datetime

import typer
from rich.table import Table

from ..config import LockLocation
from ..core import classify
from ..output import get_output_context
from .common import load_coordinator


def locks(typer_ctx: typer.Context) -> None:
    """List lock records kept in the state directory."""
    ctx = get_output_context()
    coordinator = load_coordinator(typer_ctx)
    store = coordinator.store

    if store.location is not LockLocation.STATE_DIR:
        ctx.print(
            "[yellow]Lock records are stored inside each target "
            '(lock.location = "target"); nothing to list.[/yellow]'
        )

    now = datetime.now()
    threshold = coordinator.config.stale_threshold
    rows = [
        (lock_path, record, classify(record, now, threshold))
        for lock_path, record in store.list_records()
    ]

    if ctx.json_mode:
        ctx.print_json(
            [
                {
                    "path": str(lock_path),
                    "liveness": liveness.value,
                    "record": record.model_dump(mode="json"),
                }
                for lock_path, record, liveness in rows
            ]
        )
        return

    if not rows:
        ctx.console.print("No lock records found")
        return

    table = Table(title="Documentor locks")
    table.add_column("Target")
    table.add_column("Status")
    table.add_column("Liveness")
    table.add_column("PID", justify="right")
    table.add_column("Phase")
    table.add_column("Progress", justify="right")
    for _, record, liveness in rows:
        table.add_row(
            record.target_path,
            record.status.value,
            liveness.value,
            str(record.owner_id),
            record.current_phase,
            f"{record.progress_percent}%",
        )
    ctx.console.print(table)
