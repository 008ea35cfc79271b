from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest
from typer.testing import CliRunner

from repvoice.core.models import Exercise, Routine, WorkoutLog
from repvoice.core.session import SessionEngine
from repvoice.core.speech import RecordingSpeechSink
from repvoice.core.store import PersistenceError


class StepClock:
    """Datetime clock that moves one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 2, 14, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


class ManualClock:
    """Monotonic float clock moved explicitly by tests."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class FakeStore:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.saved: List[Tuple[str, WorkoutLog]] = []

    def save(self, user_id: str, log: WorkoutLog) -> str:
        if self.fail:
            raise PersistenceError("store offline")
        self.saved.append((user_id, log))
        return f"log-{len(self.saved)}"

    def update(self, user_id: str, log_id: str, log: WorkoutLog) -> None:
        raise NotImplementedError

    def delete(self, user_id: str, log_id: str) -> None:
        raise NotImplementedError

    def get(self, user_id: str, log_id: str) -> Dict[str, Any]:
        raise NotImplementedError

    def list(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        return [log.to_dict() for _, log in self.saved][:limit]


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def routine() -> Routine:
    return Routine(
        id="push-day",
        name="Push Day",
        exercises=(
            Exercise(name="Bench Press", target_sets=2, target_reps=8, muscle_group="Chest"),
            Exercise(name="Overhead Press", target_sets=2, target_reps=10, muscle_group="Shoulders"),
        ),
    )


@pytest.fixture()
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture()
def engine(routine: Routine, store: FakeStore) -> SessionEngine:
    return SessionEngine(routine, store=store, user_id="athlete", clock=StepClock())


@pytest.fixture()
def started_engine(engine: SessionEngine) -> SessionEngine:
    engine.start()
    return engine


@pytest.fixture()
def speech() -> RecordingSpeechSink:
    return RecordingSpeechSink()


@pytest.fixture()
def manual_clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def routine_file(tmp_path: Path) -> Path:
    path = tmp_path / "push.yaml"
    path.write_text(
        "\n".join(
            [
                "id: push-day",
                "name: Push Day",
                "exercises:",
                "  - name: Bench Press",
                "    targetSets: 2",
                "    targetReps: 8",
                "    muscleGroup: Chest",
                "  - name: Overhead Press",
                "    targetSets: 2",
                "    targetReps: 10",
                "    muscleGroup: Shoulders",
            ]
        )
        + "\n"
    )
    return path


@pytest.fixture()
def write_temp_toml(tmp_path: Path):
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content.strip() + "\n")
        return path

    return _write


@pytest.fixture()
def make_engine(routine: Routine):
    def _make(store: Any = None, fail: bool = False) -> SessionEngine:
        return SessionEngine(
            routine,
            store=store if store is not None else FakeStore(fail=fail),
            user_id="athlete",
            clock=StepClock(),
        )

    return _make
