"""Single-utterance parse command."""

from __future__ import annotations

from typing import Any, Dict

import typer

from repvoice.commands.common import get_state, print_json_payload
from repvoice.core.config import resolve_trigger_phrases
from repvoice.core.models import CommandType
from repvoice.utils.numbers import normalize
from repvoice.utils.parsing import parse_command
from repvoice.utils.triggers import find_trigger


def parse_command_cli(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Transcript text, e.g. 'hey trainer 180 for 6'"),
    require_trigger: bool = typer.Option(
        True,
        "--require-trigger/--no-trigger",
        help="Only parse text following a trigger phrase",
    ),
) -> None:
    """Show how an utterance would be interpreted."""
    state = get_state(ctx)

    if require_trigger:
        match = find_trigger(text, resolve_trigger_phrases(state.config))
        command_text = match.after_trigger
        trigger: Dict[str, Any] = {"found": match.found, "phrase": match.phrase or None}
    else:
        command_text = text
        trigger = {"found": None, "phrase": None}

    command = parse_command(command_text) if (trigger["found"] or not require_trigger) else None
    payload = {
        "text": text,
        "normalized": normalize(command_text) if command is not None else None,
        "trigger": trigger,
        "command": command.to_dict() if command is not None else None,
    }

    if state.json_output:
        print_json_payload(state, payload)
        return

    if command is None:
        if state.plain_output:
            typer.echo("trigger\tnone")
            return
        state.console.print("No trigger phrase found")
        return

    if state.plain_output:
        typer.echo(f"type\t{command.type.value}")
        typer.echo(f"weight\t{command.weight if command.weight is not None else ''}")
        typer.echo(f"reps\t{command.reps if command.reps is not None else ''}")
        return

    state.console.print(f"Command: {command.type.value}")
    if command.weight is not None and command.reps is not None:
        state.console.print(f"Weight: {command.weight}  Reps: {command.reps}")
    elif command.type is CommandType.LOG_SET:
        state.console.print("Weight/reps not resolved; waiting for more speech")
