"""Init command implementation."""

import typer

from ..config import CONFIG_FILE, get_state_dir, write_config_template
from ..output import get_output_context
from .common import get_state_dir_option


def init(typer_ctx: typer.Context) -> None:
    """Create the documentor state directory and config template."""
    ctx = get_output_context()
    state_dir = get_state_dir(get_state_dir_option(typer_ctx))
    config_path = state_dir / CONFIG_FILE

    if config_path.exists():
        ctx.print(f"[yellow]Config already exists:[/yellow] {config_path}")
        ctx.print_json({"config": str(config_path), "created": False})
        return

    write_config_template(state_dir)
    ctx.print(f"[green]Created config template:[/green] {config_path}")
    ctx.print_json({"config": str(config_path), "created": True})
