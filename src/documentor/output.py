"""Output formatting for documentor CLI."""

import json
from dataclasses import dataclass
from typing import Any

from rich.console import Console
from rich.markup import escape

from .models import LockRecord


@dataclass
class OutputContext:
    """Context for output formatting."""

    console: Console
    json_mode: bool = False

    def print(self, message: str, style: str | None = None) -> None:
        """Print message respecting output mode."""
        if not self.json_mode:
            self.console.print(message, style=style)

    def print_json(self, data: dict[str, Any] | list[Any]) -> None:
        """Print JSON data."""
        if self.json_mode:
            print(json.dumps(data, indent=2, default=str))

    def result(self, data: dict[str, Any] | list[Any], message: str = "") -> None:
        """Print result in appropriate format."""
        if self.json_mode:
            self.print_json(data)
        elif message:
            self.console.print(message)

    def error(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Print error in appropriate format."""
        if self.json_mode:
            self.print_json({"error": message, **(data or {})})
        else:
            self.console.print(f"[red]Error: {escape(message)}[/red]")

    def success(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Print success message in appropriate format."""
        if self.json_mode:
            self.print_json({"success": message, **(data or {})})
        else:
            self.console.print(f"[green]{escape(message)}[/green]")


def format_lock_info(record: LockRecord) -> str:
    """Render a lock record for humans."""
    lines = [
        f"[bold]PID:[/bold] {record.owner_id} ({escape(record.hostname)})",
        f"[bold]Status:[/bold] {record.status.value}",
        f"[bold]Target:[/bold] {escape(record.target_path)}",
        f"[bold]Started:[/bold] {record.started_at:%Y-%m-%d %H:%M:%S}",
        f"[bold]Last heartbeat:[/bold] {record.last_heartbeat_at:%Y-%m-%d %H:%M:%S}",
        f"[bold]Current phase:[/bold] {escape(record.current_phase)}",
        f"[bold]Progress:[/bold] {record.progress_percent}%",
        f"[bold]Completed tasks:[/bold] {len(record.completed_tasks)}",
    ]
    if record.error:
        lines.append(f"[bold]Error:[/bold] {escape(record.error)}")
    return "\n".join(lines)


# Global output context (set by cli.py main callback)
_ctx: OutputContext | None = None


def get_output_context() -> OutputContext:
    """Get the current output context.

    Returns a default OutputContext if not yet initialized by CLI.
    """
    if _ctx is None:
        return OutputContext(Console())
    return _ctx


def set_output_context(ctx: OutputContext) -> None:
    """Set the global output context. Called by CLI main callback."""
    global _ctx
    _ctx = ctx
