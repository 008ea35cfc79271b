"""Replay a transcript script through a live workout session."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.table import Table

from repvoice.commands.common import build_store, get_state, print_json_payload
from repvoice.core.driver import DriverSettings, VoiceCommandDriver
from repvoice.core.session import FinishResult, SessionEngine, SessionError, SessionStatus
from repvoice.core.speech import ConsoleSpeechSink, RecordingSpeechSink, ScriptedTranscriptSource, SpeechSink
from repvoice.core.state import CLIState
from repvoice.utils.formatting import format_elapsed, format_set_list
from repvoice.utils.parsing import load_routine, load_transcript_script, parse_manual_action


class ReplayClock:
    """Monotonic clock advanced by `!wait` lines."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("Cannot wait a negative number of seconds")
        self.now += seconds


def _blank(value: Any) -> str:
    return "" if value is None else str(value)


def _apply_action(driver: VoiceCommandDriver, action: str, args: List[str]) -> Optional[FinishResult]:
    """Run one `!action` line against the driver."""
    engine = driver.engine
    if action == "log" and len(args) == 2:
        driver.log_manual_set(float(args[0]), int(args[1]))
    elif action == "edit" and len(args) == 3:
        engine.update_set(int(args[0]), float(args[1]), int(args[2]))
    elif action == "jump" and len(args) == 1:
        driver.jump_to_exercise(int(args[0]) - 1)
    elif action == "next" and not args:
        driver.next_exercise()
    elif action == "finish" and not args:
        return driver.finish(persist=True)
    elif action == "abandon" and not args:
        return driver.finish(persist=False)
    elif action == "voice" and len(args) == 1 and args[0] in {"on", "off"}:
        driver.set_enabled(args[0] == "on")
    else:
        raise ValueError(f"Unsupported action: !{action} {' '.join(args)}".strip())
    return None


def run_script(
    driver: VoiceCommandDriver,
    source: ScriptedTranscriptSource,
    lines: List[str],
    clock: Optional[ReplayClock] = None,
) -> List[Dict[str, Any]]:
    """Feed script lines to the session and return what each one changed."""
    events: List[Dict[str, Any]] = []
    engine = driver.engine

    for number, line in enumerate(lines, start=1):
        if engine.status is not SessionStatus.IN_PROGRESS:
            break

        before = driver.last_command
        try:
            action = parse_manual_action(line)
            if action is not None and action[0] == "wait" and clock is not None and len(action[1]) == 1:
                clock.advance(float(action[1][0]))
                cleared = driver.tick()
                events.append({"line": number, "action": "wait", "args": action[1], "cleared": cleared})
                continue
            if action is not None:
                _apply_action(driver, *action)
                events.append({"line": number, "action": action[0], "args": action[1]})
                continue
        except (SessionError, ValueError) as exc:
            events.append({"line": number, "error": str(exc)})
            continue

        source.push(line.strip())
        if driver.last_command is not before and driver.last_command is not None:
            events.append({"line": number, "transcript": line.strip(), "command": driver.last_command.to_dict()})

    return events


def _print_summary(state: CLIState, engine: SessionEngine) -> None:
    summary = engine.summary()
    table = Table(title=f"{summary['routine']} ({format_elapsed(summary['elapsedSeconds'])})")
    table.add_column("#", justify="right")
    table.add_column("Exercise")
    table.add_column("Sets", justify="right")
    table.add_column("Logged")
    for row in summary["exercises"]:
        table.add_row(
            str(row["index"]),
            row["name"],
            f"{row['loggedSets']}/{row['targetSets']}",
            format_set_list(row["sets"]),
        )
    state.console.print(table)


def session_command(
    ctx: typer.Context,
    routine_file: Path = typer.Argument(..., help="Routine YAML/JSON file"),
    script: Optional[Path] = typer.Option(None, "--script", help="Transcript script, one update per line"),
    stdin: bool = typer.Option(False, "--stdin", help="Read the transcript script from stdin"),
    save: bool = typer.Option(True, "--save/--no-save", help="Persist the workout log when the session ends"),
    voice: bool = typer.Option(True, "--voice/--no-voice", help="Process voice commands"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Override workout log directory"),
) -> None:
    """Run a workout session from a routine and a transcript script."""
    state = get_state(ctx)

    try:
        routine = load_routine(routine_file)
    except (OSError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="ROUTINE_FILE")

    if script is not None:
        text = script.read_text()
    elif stdin:
        text = sys.stdin.read()
    else:
        raise typer.BadParameter("Provide --script or --stdin")

    store = build_store(state, log_dir=log_dir) if save else None
    engine = SessionEngine(routine, store=store, user_id=state.user_id)

    settings = DriverSettings.from_config(state.config)
    settings.enabled = settings.enabled and voice

    recorder = RecordingSpeechSink()
    speech: SpeechSink = recorder if state.machine_output else ConsoleSpeechSink(state.console)
    source = ScriptedTranscriptSource()
    clock = ReplayClock()
    driver = VoiceCommandDriver(engine, settings=settings, source=source, speech=speech, clock=clock)

    driver.start()
    events = run_script(driver, source, load_transcript_script(text), clock=clock)

    result = engine.finish_result
    if engine.status is SessionStatus.IN_PROGRESS:
        result = driver.finish(persist=save)
    if result is None:
        raise RuntimeError("Session ended without a finish result")

    payload = {
        "routine": routine.name,
        "events": events,
        "spoken": recorder.spoken,
        "summary": engine.summary(),
        "finish": {
            "persisted": result.persisted,
            "logId": result.log_id,
            "error": result.error,
            "totalSets": result.log.total_sets,
        },
    }

    if state.json_output:
        print_json_payload(state, payload)
    elif state.plain_output:
        for event in events:
            if "command" in event:
                command = event["command"]
                typer.echo(f"{event['line']}\t{command['type']}\t{_blank(command['weight'])}\t{_blank(command['reps'])}")
            elif "error" in event:
                typer.echo(f"{event['line']}\terror\t{event['error']}")
        typer.echo(f"total_sets\t{result.log.total_sets}")
        typer.echo(f"log_id\t{result.log_id or ''}")
    else:
        for event in events:
            if "error" in event:
                state.console.print(f"[yellow]line {event['line']}: {event['error']}[/]")
        _print_summary(state, engine)
        if result.persisted:
            state.console.print(f"Saved workout log {result.log_id}")
        elif save and result.log.total_sets == 0:
            state.console.print("No sets logged; nothing saved")

    if result.error:
        typer.echo(f"Failed to save workout: {result.error}", err=True)
        raise typer.Exit(code=1)
