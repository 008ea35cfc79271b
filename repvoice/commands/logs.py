"""Saved workout log commands."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from repvoice.commands.common import build_store, get_state, print_json_payload
from repvoice.core.store import PersistenceError, edit_logged_set, workout_stats
from repvoice.utils.formatting import format_elapsed, format_set, format_set_list

app = typer.Typer(help="Browse, correct and delete saved workout logs")


@app.command("list")
def list_command(
    ctx: typer.Context,
    limit: int = typer.Option(50, "--limit", min=1, help="Maximum number of logs"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Override workout log directory"),
) -> None:
    """List saved workouts, newest first."""
    state = get_state(ctx)
    store = build_store(state, log_dir=log_dir)
    try:
        logs = store.list(state.user_id, limit=limit)
    except PersistenceError as exc:
        typer.echo(f"Could not list workout logs: {exc}")
        raise typer.Exit(code=1)

    stats = workout_stats(logs)
    if state.json_output:
        print_json_payload(state, {"logs": logs, "stats": stats})
        return

    if state.plain_output:
        for log in logs:
            typer.echo(f"{log.get('id')}\t{log.get('startTime')}\t{log.get('routineName')}")
        return

    table = Table(title=f"{stats['totalWorkouts']} workouts, {stats['totalSets']} sets")
    table.add_column("ID")
    table.add_column("Started")
    table.add_column("Routine")
    table.add_column("Duration", justify="right")
    for log in logs:
        table.add_row(
            str(log.get("id", "")),
            str(log.get("startTime", ""))[:16],
            str(log.get("routineName", "")),
            format_elapsed(log.get("duration")),
        )
    state.console.print(table)


@app.command("show")
def show_command(
    ctx: typer.Context,
    log_id: str = typer.Argument(..., help="Workout log ID"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Override workout log directory"),
) -> None:
    """Show one saved workout."""
    state = get_state(ctx)
    store = build_store(state, log_dir=log_dir)
    try:
        log = store.get(state.user_id, log_id)
    except PersistenceError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1)

    if state.machine_output:
        print_json_payload(state, log)
        return

    state.console.print(f"{log.get('routineName')} - {format_elapsed(log.get('duration'))}")
    for exercise in log.get("exercisesCompleted", []):
        state.console.print(f"  {exercise.get('name')}: {format_set_list(exercise.get('sets', []))}")


@app.command("edit")
def edit_command(
    ctx: typer.Context,
    log_id: str = typer.Argument(..., help="Workout log ID"),
    exercise: str = typer.Argument(..., help="Exercise name as logged"),
    set_number: int = typer.Argument(..., min=1, help="Set position, starting at 1"),
    weight: float = typer.Argument(..., help="Corrected weight"),
    reps: int = typer.Argument(..., help="Corrected reps"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Override workout log directory"),
) -> None:
    """Correct one set of a saved workout."""
    state = get_state(ctx)
    store = build_store(state, log_dir=log_dir)
    try:
        updated = edit_logged_set(store, state.user_id, log_id, exercise, set_number, weight, reps)
    except (PersistenceError, ValueError) as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1)

    payload = {
        "status": "updated",
        "logId": log_id,
        "exercise": exercise,
        "set": set_number,
        "weight": updated.weight,
        "reps": updated.reps,
    }
    if state.json_output:
        print_json_payload(state, payload)
        return

    if state.plain_output:
        typer.echo("status\tupdated")
        typer.echo(f"set\t{set_number}")
        return

    state.console.print(f"Updated {exercise} set {set_number}: {format_set(updated.weight, updated.reps)}")


@app.command("delete")
def delete_command(
    ctx: typer.Context,
    log_id: str = typer.Argument(..., help="Workout log ID"),
    force: bool = typer.Option(False, "--force", help="Skip confirmation prompt"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Override workout log directory"),
) -> None:
    """Delete a saved workout by ID."""
    state = get_state(ctx)

    if not force:
        confirmed = typer.confirm(f"Delete workout log {log_id}?", default=False)
        if not confirmed:
            raise typer.Exit(code=0)

    store = build_store(state, log_dir=log_dir)
    try:
        store.delete(state.user_id, log_id)
    except PersistenceError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1)

    payload = {"status": "deleted", "logId": log_id}
    if state.json_output:
        print_json_payload(state, payload)
        return

    if state.plain_output:
        typer.echo("status\tdeleted")
        typer.echo(f"log_id\t{log_id}")
        return

    state.console.print(f"Deleted workout log {log_id}")
