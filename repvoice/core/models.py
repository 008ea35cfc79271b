"""Lightweight data models shared by the session engine and voice driver."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from repvoice.core.constants import DEFAULT_MUSCLE_GROUP


@dataclass(frozen=True)
class Exercise:
    """One exercise slot in a routine."""

    name: str
    target_sets: int
    target_reps: int
    muscle_group: str = DEFAULT_MUSCLE_GROUP

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Exercise name must be non-empty")
        if self.target_sets < 1:
            raise ValueError(f"Exercise {self.name!r} needs at least one target set")
        if self.target_reps < 1:
            raise ValueError(f"Exercise {self.name!r} needs at least one target rep")


@dataclass(frozen=True)
class Routine:
    """Ordered, read-only list of exercises for a session."""

    name: str
    exercises: Tuple[Exercise, ...]
    id: str = ""

    def __post_init__(self) -> None:
        if not self.exercises:
            raise ValueError(f"Routine {self.name!r} has no exercises")

    def muscle_group_map(self) -> Dict[str, str]:
        return {exercise.name: exercise.muscle_group or DEFAULT_MUSCLE_GROUP for exercise in self.exercises}


def check_set_values(weight: float, reps: int) -> None:
    """Reject negative or non-finite set values."""
    if not math.isfinite(weight) or weight < 0:
        raise ValueError(f"Weight must be a non-negative number, got {weight}")
    if reps < 0:
        raise ValueError(f"Reps must be non-negative, got {reps}")


@dataclass(frozen=True)
class LoggedSet:
    """A single recorded set."""

    weight: float
    reps: int
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weight": self.weight,
            "reps": self.reps,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggedSet":
        return cls(
            weight=float(data["weight"]),
            reps=int(data["reps"]),
            timestamp=datetime.fromisoformat(str(data["timestamp"])),
        )


@dataclass
class CompletedExercise:
    """Sets logged for one exercise, keyed by exercise name."""

    name: str
    sets: List[LoggedSet] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "sets": [item.to_dict() for item in self.sets]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompletedExercise":
        return cls(name=str(data["name"]), sets=[LoggedSet.from_dict(item) for item in data.get("sets", [])])


@dataclass(frozen=True)
class WorkoutLog:
    """Finalized session handed to persistence."""

    routine_id: str
    routine_name: str
    start_time: datetime
    end_time: datetime
    exercises: Tuple[CompletedExercise, ...]
    muscle_groups: Dict[str, str] = field(default_factory=dict)

    @property
    def duration_seconds(self) -> int:
        return int((self.end_time - self.start_time).total_seconds())

    @property
    def total_sets(self) -> int:
        return sum(len(exercise.sets) for exercise in self.exercises)

    @property
    def total_volume(self) -> float:
        return sum(item.weight * item.reps for exercise in self.exercises for item in exercise.sets)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "routineId": self.routine_id,
            "routineName": self.routine_name,
            "startTime": self.start_time.isoformat(),
            "endTime": self.end_time.isoformat(),
            "duration": self.duration_seconds,
            "exercisesCompleted": [
                {
                    **exercise.to_dict(),
                    "muscleGroup": self.muscle_groups.get(exercise.name, DEFAULT_MUSCLE_GROUP),
                }
                for exercise in self.exercises
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkoutLog":
        """Rebuild a log from its stored payload; raises ValueError when malformed."""
        try:
            raw_exercises = data.get("exercisesCompleted", [])
            return cls(
                routine_id=str(data.get("routineId", "")),
                routine_name=str(data["routineName"]),
                start_time=datetime.fromisoformat(str(data["startTime"])),
                end_time=datetime.fromisoformat(str(data["endTime"])),
                exercises=tuple(CompletedExercise.from_dict(item) for item in raw_exercises),
                muscle_groups={
                    str(item["name"]): str(item.get("muscleGroup") or DEFAULT_MUSCLE_GROUP) for item in raw_exercises
                },
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise ValueError(f"Malformed workout log payload: {exc!r}") from exc


class CommandType(str, Enum):
    LOG_SET = "log_set"
    NEXT_EXERCISE = "next_exercise"
    NEXT_SET = "next_set"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class WeightReps:
    """Result of weight/rep extraction; both fields are None on a parse miss."""

    weight: Optional[int] = None
    reps: Optional[int] = None

    @property
    def complete(self) -> bool:
        return self.weight is not None and self.reps is not None


@dataclass(frozen=True)
class ParsedCommand:
    """One recognized utterance after its trigger phrase."""

    type: CommandType
    raw_text: str
    weight: Optional[int] = None
    reps: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "weight": self.weight,
            "reps": self.reps,
            "rawText": self.raw_text,
        }
