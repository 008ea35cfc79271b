"""Workout log persistence boundary."""

from __future__ import annotations

import dataclasses
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List, Protocol

from repvoice.core.api import APIError, DocumentStoreAPI
from repvoice.core.models import LoggedSet, WorkoutLog, check_set_values
from repvoice.exporters.json_export import read_json_object, write_json
from repvoice.utils.text import slugify

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """Raised when a workout log cannot be read or written."""


class WorkoutLogStore(Protocol):
    def save(self, user_id: str, log: WorkoutLog) -> str: ...

    def update(self, user_id: str, log_id: str, log: WorkoutLog) -> None: ...

    def delete(self, user_id: str, log_id: str) -> None: ...

    def get(self, user_id: str, log_id: str) -> Dict[str, Any]: ...

    def list(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]: ...


class LocalWorkoutLogStore:
    """Stores each workout log as a JSON document under ``<root>/<user>/``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _user_dir(self, user_id: str) -> Path:
        return self.root / slugify(user_id, max_len=64)

    def _path(self, user_id: str, log_id: str) -> Path:
        if not log_id or "/" in log_id or log_id.startswith("."):
            raise PersistenceError(f"Invalid workout log id: {log_id!r}")
        return self._user_dir(user_id) / f"{log_id}.json"

    def save(self, user_id: str, log: WorkoutLog) -> str:
        log_id = f"{log.start_time:%Y%m%dT%H%M%S}-{slugify(log.routine_name, max_len=30)}-{uuid.uuid4().hex[:6]}"
        try:
            write_json(self._path(user_id, log_id), {"id": log_id, **log.to_dict()})
        except OSError as exc:
            raise PersistenceError(f"Could not write workout log {log_id}: {exc}") from exc
        logger.debug("Saved workout log %s", log_id)
        return log_id

    def update(self, user_id: str, log_id: str, log: WorkoutLog) -> None:
        path = self._path(user_id, log_id)
        if not path.exists():
            raise PersistenceError(f"Workout log {log_id} not found")
        try:
            write_json(path, {"id": log_id, **log.to_dict()})
        except OSError as exc:
            raise PersistenceError(f"Could not update workout log {log_id}: {exc}") from exc

    def delete(self, user_id: str, log_id: str) -> None:
        path = self._path(user_id, log_id)
        if not path.exists():
            raise PersistenceError(f"Workout log {log_id} not found")
        try:
            path.unlink()
        except OSError as exc:
            raise PersistenceError(f"Could not delete workout log {log_id}: {exc}") from exc

    def get(self, user_id: str, log_id: str) -> Dict[str, Any]:
        path = self._path(user_id, log_id)
        if not path.exists():
            raise PersistenceError(f"Workout log {log_id} not found")
        try:
            return read_json_object(path)
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not read workout log {log_id}: {exc}") from exc

    def list(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        user_dir = self._user_dir(user_id)
        if not user_dir.exists():
            return []
        logs: List[Dict[str, Any]] = []
        for path in user_dir.glob("*.json"):
            try:
                logs.append(read_json_object(path))
            except (OSError, ValueError) as exc:
                logger.warning("Skipping unreadable workout log %s: %s", path.name, exc)
        logs.sort(key=lambda item: str(item.get("startTime", "")), reverse=True)
        return logs[:limit]


class RemoteWorkoutLogStore:
    """Workout logs kept in the remote document store."""

    def __init__(self, api: DocumentStoreAPI) -> None:
        self.api = api

    def save(self, user_id: str, log: WorkoutLog) -> str:
        try:
            return self.api.create_log(user_id, log.to_dict())
        except APIError as exc:
            raise PersistenceError(str(exc)) from exc

    def update(self, user_id: str, log_id: str, log: WorkoutLog) -> None:
        try:
            self.api.update_log(user_id, log_id, log.to_dict())
        except APIError as exc:
            raise PersistenceError(str(exc)) from exc

    def delete(self, user_id: str, log_id: str) -> None:
        try:
            self.api.delete_log(user_id, log_id)
        except APIError as exc:
            raise PersistenceError(str(exc)) from exc

    def get(self, user_id: str, log_id: str) -> Dict[str, Any]:
        try:
            payload = self.api.get_log(user_id, log_id)
        except APIError as exc:
            raise PersistenceError(str(exc)) from exc
        if not isinstance(payload, dict):
            raise PersistenceError(f"Unexpected payload for workout log {log_id}")
        return payload

    def list(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        try:
            payload = self.api.list_logs(user_id, limit=limit)
        except APIError as exc:
            raise PersistenceError(str(exc)) from exc
        if isinstance(payload, dict):
            payload = payload.get("logs", [])
        return [item for item in payload if isinstance(item, dict)] if isinstance(payload, list) else []


def edit_logged_set(
    store: WorkoutLogStore,
    user_id: str,
    log_id: str,
    exercise_name: str,
    set_number: int,
    weight: float,
    reps: int,
) -> LoggedSet:
    """Replace weight/reps of one set (1-based) in a saved log and write it back.

    Raises ValueError for bad values or a set that does not exist.
    """
    check_set_values(weight, reps)
    log = WorkoutLog.from_dict(store.get(user_id, log_id))

    wanted = exercise_name.strip().lower()
    exercise = next((item for item in log.exercises if item.name.lower() == wanted), None)
    if exercise is None:
        raise ValueError(f"Workout log {log_id} has no exercise {exercise_name!r}")
    if not 1 <= set_number <= len(exercise.sets):
        raise ValueError(f"{exercise.name} has no set #{set_number}")

    updated = dataclasses.replace(exercise.sets[set_number - 1], weight=weight, reps=int(reps))
    exercise.sets[set_number - 1] = updated
    store.update(user_id, log_id, log)
    return updated


def workout_stats(logs: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Aggregate totals over stored workout log payloads."""
    total_workouts = 0
    total_sets = 0
    total_volume = 0.0
    total_seconds = 0
    for log in logs:
        total_workouts += 1
        total_seconds += int(log.get("duration") or 0)
        for exercise in log.get("exercisesCompleted", []):
            for item in exercise.get("sets", []):
                total_sets += 1
                total_volume += float(item.get("weight") or 0) * int(item.get("reps") or 0)
    return {
        "totalWorkouts": total_workouts,
        "totalSets": total_sets,
        "totalVolume": total_volume,
        "totalMinutes": round(total_seconds / 60),
    }

