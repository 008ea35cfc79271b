"""Trigger phrase management commands."""

from __future__ import annotations

import typer

from repvoice.commands.common import get_state, print_json_payload
from repvoice.core.config import (
    ConfigError,
    add_trigger_phrase,
    custom_trigger_phrases,
    remove_trigger_phrase,
    resolve_trigger_phrases,
    save_config,
)
from repvoice.core.constants import DEFAULT_TRIGGER_PHRASES

app = typer.Typer(help="Manage voice trigger phrases")


@app.command("list")
def list_command(ctx: typer.Context) -> None:
    """List built-in and custom trigger phrases."""
    state = get_state(ctx)
    phrases = resolve_trigger_phrases(state.config)

    if state.json_output:
        print_json_payload(
            state,
            {"defaults": list(DEFAULT_TRIGGER_PHRASES), "custom": custom_trigger_phrases(state.config)},
        )
        return

    for phrase in phrases:
        kind = "default" if phrase in DEFAULT_TRIGGER_PHRASES else "custom"
        if state.plain_output:
            typer.echo(f"{kind}\t{phrase}")
        else:
            state.console.print(f"{phrase} [dim]({kind})[/]")


@app.command("add")
def add_command(
    ctx: typer.Context,
    phrase: str = typer.Argument(..., help="Phrase to add"),
) -> None:
    """Add a custom trigger phrase."""
    state = get_state(ctx)
    if not add_trigger_phrase(state.config, phrase):
        typer.echo(f"Trigger phrase already present or empty: {phrase!r}")
        raise typer.Exit(code=1)

    save_config(state.config, state.config_path)
    if state.json_output:
        print_json_payload(state, {"status": "added", "custom": custom_trigger_phrases(state.config)})
        return
    typer.echo(f"Added trigger phrase: {phrase.strip().lower()}")


@app.command("remove")
def remove_command(
    ctx: typer.Context,
    phrase: str = typer.Argument(..., help="Phrase to remove"),
) -> None:
    """Remove a custom trigger phrase."""
    state = get_state(ctx)
    try:
        removed = remove_trigger_phrase(state.config, phrase)
    except ConfigError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=2)

    if not removed:
        typer.echo(f"No custom trigger phrase {phrase!r}")
        raise typer.Exit(code=1)

    save_config(state.config, state.config_path)
    if state.json_output:
        print_json_payload(state, {"status": "removed", "custom": custom_trigger_phrases(state.config)})
        return
    typer.echo(f"Removed trigger phrase: {phrase.strip().lower()}")
