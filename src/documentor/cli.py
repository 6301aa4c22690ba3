"""Documentor CLI: inspect and manage documentation run locks."""

from pathlib import Path

import typer

from documentor import __version__

from .commands import init, locks, status, unlock
from .logging import configure_logging
from .output import OutputContext, set_output_context


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"documentor {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="documentor",
    help="Crash-safe run coordination for documentation runs",
    no_args_is_help=True,
)


@app.callback()
def main(
    typer_ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v, -vv)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress non-error output",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in JSON format for automation",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    state_dir: Path | None = typer.Option(
        None,
        "--state-dir",
        help="Documentor state directory (default: ~/.documentor)",
    ),
) -> None:
    """Documentor - crash-safe run coordination."""
    console = configure_logging(
        verbosity=verbose,
        quiet=quiet,
        no_color=no_color,
    )
    set_output_context(OutputContext(console=console, json_mode=json_output))
    typer_ctx.obj = {"state_dir": state_dir}


app.command()(init)
app.command()(status)
app.command()(unlock)
app.command()(locks)


if __name__ == "__main__":
    app()
