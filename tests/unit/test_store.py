from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from repvoice.core.api import APIError
from repvoice.core.models import CompletedExercise, LoggedSet, WorkoutLog
from repvoice.core.store import (
    LocalWorkoutLogStore,
    PersistenceError,
    RemoteWorkoutLogStore,
    edit_logged_set,
    workout_stats,
)


def _log(start: datetime, weight: float = 135, reps: int = 8) -> WorkoutLog:
    return WorkoutLog(
        routine_id="push-day",
        routine_name="Push Day",
        start_time=start,
        end_time=start + timedelta(minutes=30),
        exercises=(CompletedExercise(name="Bench Press", sets=[LoggedSet(weight, reps, start)]),),
        muscle_groups={"Bench Press": "Chest"},
    )


START = datetime(2026, 2, 14, 9, 0, tzinfo=timezone.utc)


def test_local_store_save_and_get(tmp_path: Path) -> None:
    store = LocalWorkoutLogStore(tmp_path)
    log_id = store.save("Athlete One", _log(START))

    assert log_id.startswith("20260214T090000-push-day-")
    assert (tmp_path / "athlete-one" / f"{log_id}.json").exists()
    assert [path.name for path in (tmp_path / "athlete-one").iterdir()] == [f"{log_id}.json"]

    payload = store.get("Athlete One", log_id)
    assert payload["id"] == log_id
    assert payload["routineName"] == "Push Day"
    assert payload["duration"] == 1800
    assert payload["exercisesCompleted"][0]["muscleGroup"] == "Chest"
    assert payload["exercisesCompleted"][0]["sets"][0] == {
        "weight": 135,
        "reps": 8,
        "timestamp": "2026-02-14T09:00:00+00:00",
    }


def test_local_store_lists_newest_first(tmp_path: Path) -> None:
    store = LocalWorkoutLogStore(tmp_path)
    older = store.save("athlete", _log(START))
    newer = store.save("athlete", _log(START + timedelta(days=1)))
    (tmp_path / "athlete" / "garbage.json").write_text("{not json")

    logs = store.list("athlete")
    assert [item["id"] for item in logs] == [newer, older]
    assert [item["id"] for item in store.list("athlete", limit=1)] == [newer]
    assert store.list("nobody") == []


def test_local_store_update_and_delete(tmp_path: Path) -> None:
    store = LocalWorkoutLogStore(tmp_path)
    log_id = store.save("athlete", _log(START))

    store.update("athlete", log_id, _log(START, weight=145, reps=5))
    assert store.get("athlete", log_id)["exercisesCompleted"][0]["sets"][0]["weight"] == 145

    store.delete("athlete", log_id)
    with pytest.raises(PersistenceError, match="not found"):
        store.get("athlete", log_id)
    with pytest.raises(PersistenceError, match="not found"):
        store.delete("athlete", log_id)


def test_local_store_rejects_invalid_ids(tmp_path: Path) -> None:
    store = LocalWorkoutLogStore(tmp_path)
    for bad in ("", "../escape", ".hidden"):
        with pytest.raises(PersistenceError, match="Invalid"):
            store.get("athlete", bad)


class _FailingAPI:
    def create_log(self, user_id, payload):  # type: ignore[no-untyped-def]
        raise APIError("API request failed for POST /users/athlete/workout_logs: down")

    def list_logs(self, user_id, limit=50):  # type: ignore[no-untyped-def]
        raise APIError("down")


class _ListingAPI:
    def __init__(self) -> None:
        self.created = []

    def create_log(self, user_id, payload):  # type: ignore[no-untyped-def]
        self.created.append((user_id, payload))
        return "remote-1"

    def list_logs(self, user_id, limit=50):  # type: ignore[no-untyped-def]
        return {"logs": [{"id": "remote-1"}, "noise"]}


def test_remote_store_wraps_api_errors() -> None:
    store = RemoteWorkoutLogStore(_FailingAPI())  # type: ignore[arg-type]
    with pytest.raises(PersistenceError, match="down"):
        store.save("athlete", _log(START))
    with pytest.raises(PersistenceError):
        store.list("athlete")


def test_remote_store_sends_log_payload() -> None:
    api = _ListingAPI()
    store = RemoteWorkoutLogStore(api)  # type: ignore[arg-type]

    assert store.save("athlete", _log(START)) == "remote-1"
    assert api.created[0][1]["routineId"] == "push-day"
    assert store.list("athlete") == [{"id": "remote-1"}]


def test_workout_stats() -> None:
    logs = [
        _log(START).to_dict(),
        {"duration": 1200, "exercisesCompleted": [{"sets": [{"weight": 100, "reps": 5}, {"weight": 0, "reps": 12}]}]},
    ]
    assert workout_stats(logs) == {
        "totalWorkouts": 2,
        "totalSets": 3,
        "totalVolume": 1580.0,
        "totalMinutes": 50,
    }
    assert workout_stats([])["totalWorkouts"] == 0


def test_local_store_delete_failure_raises_persistence_error(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    store = LocalWorkoutLogStore(tmp_path)
    log_id = store.save("athlete", _log(START))

    def fail_unlink(self, *args, **kwargs):  # type: ignore[no-untyped-def]
        raise PermissionError("read-only file system")

    monkeypatch.setattr(Path, "unlink", fail_unlink)
    with pytest.raises(PersistenceError, match="Could not delete"):
        store.delete("athlete", log_id)


def test_workout_log_from_dict_reads_saved_payload(tmp_path: Path) -> None:
    store = LocalWorkoutLogStore(tmp_path)
    original = _log(START)
    log_id = store.save("athlete", original)

    restored = WorkoutLog.from_dict(store.get("athlete", log_id))
    assert restored.routine_id == "push-day"
    assert restored.start_time == START
    assert restored.duration_seconds == 1800
    assert restored.muscle_groups == {"Bench Press": "Chest"}
    assert restored.exercises[0].sets[0] == original.exercises[0].sets[0]


def test_workout_log_from_dict_rejects_malformed_payload() -> None:
    with pytest.raises(ValueError, match="Malformed"):
        WorkoutLog.from_dict({"routineName": "Push Day"})


def test_edit_logged_set_rewrites_saved_log(tmp_path: Path) -> None:
    store = LocalWorkoutLogStore(tmp_path)
    log_id = store.save("athlete", _log(START))

    updated = edit_logged_set(store, "athlete", log_id, "bench press", 1, 140, 6)
    assert (updated.weight, updated.reps) == (140, 6)

    payload = store.get("athlete", log_id)
    assert payload["id"] == log_id
    item = payload["exercisesCompleted"][0]["sets"][0]
    assert (item["weight"], item["reps"]) == (140, 6)
    assert item["timestamp"] == START.isoformat()


@pytest.mark.parametrize(
    ("exercise", "set_number", "weight", "match"),
    [
        ("Squat", 1, 100, "no exercise"),
        ("Bench Press", 2, 100, "no set #2"),
        ("Bench Press", 1, float("nan"), "non-negative"),
    ],
)
def test_edit_logged_set_rejects_bad_references(
    tmp_path: Path, exercise: str, set_number: int, weight: float, match: str
) -> None:
    store = LocalWorkoutLogStore(tmp_path)
    log_id = store.save("athlete", _log(START))
    before = store.get("athlete", log_id)

    with pytest.raises(ValueError, match=match):
        edit_logged_set(store, "athlete", log_id, exercise, set_number, weight, 5)
    assert store.get("athlete", log_id) == before


def test_remote_store_update_wraps_api_errors() -> None:
    class _UpdateAPI:
        def update_log(self, user_id, log_id, payload):  # type: ignore[no-untyped-def]
            raise APIError("conflict")

    store = RemoteWorkoutLogStore(_UpdateAPI())  # type: ignore[arg-type]
    with pytest.raises(PersistenceError, match="conflict"):
        store.update("athlete", "remote-1", _log(START))
