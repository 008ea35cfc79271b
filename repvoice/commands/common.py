"""Shared command helpers."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from repvoice.core.api import APIError, DocumentStoreAPI
from repvoice.core.config import resolve_api_token, resolve_log_dir
from repvoice.core.state import CLIState
from repvoice.core.store import LocalWorkoutLogStore, RemoteWorkoutLogStore, WorkoutLogStore


def get_state(ctx: typer.Context) -> CLIState:
    """Extract validated CLI state from Typer context."""
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=2)
    return state


def configure_logging(console: Console, verbose: bool = False, quiet: bool = False) -> None:
    """Route package loggers through rich."""
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logger = logging.getLogger("repvoice")
    logger.handlers.clear()
    logger.addHandler(RichHandler(console=console, show_time=False, show_path=False, markup=False))
    logger.setLevel(level)
    logger.propagate = False


def print_json_payload(state: CLIState, payload: Any) -> None:
    """Print JSON payload with plain-mode fallback for piping."""
    if state.plain_output:
        typer.echo(json.dumps(payload, separators=(",", ":"), ensure_ascii=False))
        return
    state.console.print_json(data=payload)


def build_store(state: CLIState, log_dir: Optional[Path] = None) -> WorkoutLogStore:
    """Create the configured workout log store."""
    storage_cfg = state.config.get("storage", {})
    backend = str(storage_cfg.get("backend", "local")).lower()

    if backend == "local":
        return LocalWorkoutLogStore(resolve_log_dir(state.config, explicit=log_dir))

    if backend == "remote":
        api_cfg = state.config.get("api", {})
        try:
            api = DocumentStoreAPI(
                base_url=str(api_cfg.get("base_url") or ""),
                token=resolve_api_token(state.config),
                rate_limit_delay=float(api_cfg.get("rate_limit_delay", 0.0)),
                max_retries=int(api_cfg.get("max_retries", 3)),
                timeout_seconds=int(api_cfg.get("timeout_seconds", 30)),
            )
        except APIError as exc:
            raise typer.BadParameter(str(exc))
        return RemoteWorkoutLogStore(api)

    raise typer.BadParameter(f"Unknown storage backend: {backend}")
