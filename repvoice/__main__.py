"""Entry point for repvoice."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from repvoice import __version__
from repvoice.commands import logs as logs_commands
from repvoice.commands import triggers as trigger_commands
from repvoice.commands.common import configure_logging
from repvoice.commands.parse import parse_command_cli
from repvoice.commands.session import session_command
from repvoice.core.config import ConfigError, default_config_path, load_config
from repvoice.core.state import CLIState

app = typer.Typer(
    add_completion=False,
    help="Voice-driven workout logging assistant",
    invoke_without_command=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output JSON where available"),
    plain_output: bool = typer.Option(
        False,
        "--plain",
        help="Output plain text (no rich formatting/tables)",
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Quiet output"),
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
) -> None:
    """Initialize global CLI state."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if json_output and plain_output:
        typer.echo("Options --json and --plain are mutually exclusive.")
        raise typer.Exit(code=2)

    cfg_path = (config or default_config_path()).expanduser().resolve()
    try:
        cfg = load_config(cfg_path)
    except ConfigError as exc:
        typer.echo(f"Config error: {exc}")
        raise typer.Exit(code=2)

    console = Console(
        quiet=quiet,
        no_color=plain_output,
        log_time=False,
        log_path=False,
    )
    configure_logging(Console(stderr=True, no_color=plain_output), verbose=verbose, quiet=quiet)
    ctx.obj = CLIState(
        json_output=(json_output and not plain_output),
        plain_output=plain_output,
        verbose=verbose,
        quiet=quiet,
        config_path=cfg_path,
        config=cfg,
        console=console,
    )

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


# Top-level commands
app.command("parse")(parse_command_cli)
app.command("session")(session_command)
app.add_typer(trigger_commands.app, name="triggers")
app.add_typer(logs_commands.app, name="logs")


def main() -> None:
    """Console script entrypoint."""
    app()


if __name__ == "__main__":
    main()
