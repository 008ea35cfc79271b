"""Workout session state machine."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from repvoice.core.models import CompletedExercise, Exercise, LoggedSet, Routine, WorkoutLog, check_set_values
from repvoice.core.store import PersistenceError, WorkoutLogStore

logger = logging.getLogger(__name__)


class SessionError(RuntimeError):
    """Base class for session engine failures."""


class InvalidStateError(SessionError):
    """Raised when an operation is not allowed in the current session state."""


class NotFoundError(SessionError):
    """Raised for references to exercises or sets that do not exist."""


class SessionStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


@dataclass(frozen=True)
class FinishResult:
    """Outcome of closing a session."""

    log: WorkoutLog
    persisted: bool = False
    log_id: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class AdvanceResult:
    """Position after an exercise advance, or the finish outcome."""

    finished: bool
    exercise_index: int
    set_number: int
    finish: Optional[FinishResult] = None


@dataclass(frozen=True)
class LogSetResult:
    """What a single log_set call did."""

    logged: LoggedSet
    exercise_name: str
    set_position: int
    advance: Optional[AdvanceResult] = None

    @property
    def finished(self) -> bool:
        return self.advance is not None and self.advance.finished


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionEngine:
    """Tracks the active exercise, set counter and logged sets for one routine run.

    Logged sets are keyed by exercise name so navigation can jump around the
    routine freely. While in progress, every mutating call leaves ``current_set_number``
    equal to the logged set count of the active exercise plus one.
    """

    def __init__(
        self,
        routine: Routine,
        store: Optional[WorkoutLogStore] = None,
        user_id: str = "local",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.routine = routine
        self.store = store
        self.user_id = user_id
        self._clock = clock
        self._status = SessionStatus.NOT_STARTED
        self._exercise_index = 0
        self._set_number = 1
        self._completed: Dict[str, CompletedExercise] = {}
        self._start_time: Optional[datetime] = None
        self._end_time: Optional[datetime] = None
        self._finish_result: Optional[FinishResult] = None

    # -- read-only views -------------------------------------------------

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def current_exercise_index(self) -> int:
        return self._exercise_index

    @property
    def current_set_number(self) -> int:
        return self._set_number

    @property
    def current_exercise(self) -> Exercise:
        return self.routine.exercises[self._exercise_index]

    @property
    def is_last_exercise(self) -> bool:
        return self._exercise_index == len(self.routine.exercises) - 1

    @property
    def start_time(self) -> Optional[datetime]:
        return self._start_time

    @property
    def end_time(self) -> Optional[datetime]:
        return self._end_time

    @property
    def finish_result(self) -> Optional[FinishResult]:
        return self._finish_result

    @property
    def completed_exercises(self) -> Tuple[CompletedExercise, ...]:
        """Snapshot of logged exercises in first-logged order."""
        return tuple(CompletedExercise(name=item.name, sets=list(item.sets)) for item in self._completed.values())

    def sets_for(self, exercise_index: int) -> List[LoggedSet]:
        exercise = self._exercise_at(exercise_index)
        existing = self._completed.get(exercise.name)
        return list(existing.sets) if existing else []

    def current_log(self) -> Optional[CompletedExercise]:
        existing = self._completed.get(self.current_exercise.name)
        if existing is None:
            return None
        return CompletedExercise(name=existing.name, sets=list(existing.sets))

    def last_logged_set(self) -> Optional[LoggedSet]:
        """Most recent set of the active exercise, used to prefill manual entry."""
        existing = self._completed.get(self.current_exercise.name)
        if existing is None or not existing.sets:
            return None
        return existing.sets[-1]

    def is_routine_complete(self) -> bool:
        return all(
            exercise.name in self._completed and len(self._completed[exercise.name].sets) >= exercise.target_sets
            for exercise in self.routine.exercises
        )

    def elapsed_seconds(self, now: Optional[datetime] = None) -> int:
        if self._start_time is None:
            return 0
        end = self._end_time or now or self._clock()
        return max(0, int((end - self._start_time).total_seconds()))

    # -- lifecycle -------------------------------------------------------

    def start(self) -> None:
        if self._status is not SessionStatus.NOT_STARTED:
            raise InvalidStateError(f"Cannot start a session that is {self._status.value}")
        self._status = SessionStatus.IN_PROGRESS
        self._start_time = self._clock()
        self._exercise_index = 0
        self._set_number = self._next_set_number(0)
        logger.debug("Session started for routine %r", self.routine.name)

    def log_set(self, weight: float, reps: int) -> LogSetResult:
        """Record a set and advance in one step.

        The advance/finish decision reads the already-appended set, so logging
        the final set of the final exercise finishes the session with that set
        included in the persisted log.
        """
        self._require_in_progress("log a set")
        check_set_values(weight, reps)

        exercise = self.current_exercise
        logged = LoggedSet(weight=weight, reps=int(reps), timestamp=self._clock())
        entry = self._completed.setdefault(exercise.name, CompletedExercise(name=exercise.name))
        entry.sets.append(logged)
        position = len(entry.sets)

        if position < exercise.target_sets:
            self._set_number = position + 1
            logger.debug("Set %s/%s logged for %s", position, exercise.target_sets, exercise.name)
            return LogSetResult(logged=logged, exercise_name=exercise.name, set_position=position)

        logger.debug("All %s sets complete for %s, advancing", exercise.target_sets, exercise.name)
        advance = self.advance_exercise()
        return LogSetResult(logged=logged, exercise_name=exercise.name, set_position=position, advance=advance)

    def update_set(
        self,
        set_number: int,
        weight: float,
        reps: int,
        exercise_index: Optional[int] = None,
    ) -> LoggedSet:
        """Replace weight/reps of an existing set (1-based) in place."""
        self._require_in_progress("edit a set")
        index = self._exercise_index if exercise_index is None else exercise_index
        exercise = self._exercise_at(index)
        entry = self._completed.get(exercise.name)
        if entry is None or not 1 <= set_number <= len(entry.sets):
            raise NotFoundError(f"{exercise.name} has no set #{set_number}")
        check_set_values(weight, reps)

        updated = dataclasses.replace(entry.sets[set_number - 1], weight=weight, reps=int(reps))
        entry.sets[set_number - 1] = updated
        return updated

    def jump_to_exercise(self, index: int) -> int:
        """Move to any exercise and return its next set number."""
        self._require_in_progress("change exercise")
        self._exercise_at(index)
        self._exercise_index = index
        self._set_number = self._next_set_number(index)
        return self._set_number

    def advance_exercise(self) -> AdvanceResult:
        self._require_in_progress("advance")
        if self.is_last_exercise:
            result = self.finish(persist=True)
            return AdvanceResult(
                finished=True,
                exercise_index=self._exercise_index,
                set_number=self._set_number,
                finish=result,
            )

        self._exercise_index += 1
        self._set_number = self._next_set_number(self._exercise_index)
        return AdvanceResult(finished=False, exercise_index=self._exercise_index, set_number=self._set_number)

    def build_log(self) -> WorkoutLog:
        if self._start_time is None:
            raise InvalidStateError("Session was never started")
        return WorkoutLog(
            routine_id=self.routine.id,
            routine_name=self.routine.name,
            start_time=self._start_time,
            end_time=self._end_time or self._clock(),
            exercises=self.completed_exercises,
            muscle_groups=self.routine.muscle_group_map(),
        )

    def finish(self, persist: bool = True) -> FinishResult:
        """End the session, persisting it when asked and there is something to save.

        A failed write is reported on the result; the session stays finished
        and the in-memory log is kept for a retry.
        """
        self._require_in_progress("finish")
        self._status = SessionStatus.FINISHED
        self._end_time = self._clock()
        log = self.build_log()

        result = FinishResult(log=log)
        if persist and log.total_sets > 0 and self.store is not None:
            try:
                log_id = self.store.save(self.user_id, log)
            except PersistenceError as exc:
                logger.warning("Failed to save workout log: %s", exc)
                result = FinishResult(log=log, error=str(exc))
            else:
                result = FinishResult(log=log, persisted=True, log_id=log_id)

        self._finish_result = result
        logger.debug("Session finished with %s sets (persisted=%s)", log.total_sets, result.persisted)
        return result

    def retry_save(self) -> FinishResult:
        """Retry persisting a finished session whose save failed."""
        if self._status is not SessionStatus.FINISHED or self._finish_result is None:
            raise InvalidStateError("Only a finished session can be saved again")
        if self._finish_result.persisted:
            return self._finish_result
        if self.store is None:
            raise InvalidStateError("No workout log store configured")

        log = self._finish_result.log
        try:
            log_id = self.store.save(self.user_id, log)
        except PersistenceError as exc:
            logger.warning("Retry failed to save workout log: %s", exc)
            self._finish_result = FinishResult(log=log, error=str(exc))
        else:
            self._finish_result = FinishResult(log=log, persisted=True, log_id=log_id)
        return self._finish_result

    def summary(self) -> Dict[str, Any]:
        exercises = []
        for index, exercise in enumerate(self.routine.exercises):
            sets = self.sets_for(index)
            exercises.append(
                {
                    "index": index + 1,
                    "name": exercise.name,
                    "targetSets": exercise.target_sets,
                    "targetReps": exercise.target_reps,
                    "loggedSets": len(sets),
                    "sets": [{"weight": item.weight, "reps": item.reps} for item in sets],
                }
            )
        return {
            "routine": self.routine.name,
            "status": self._status.value,
            "currentExercise": self._exercise_index + 1,
            "currentSet": self._set_number,
            "routineComplete": self.is_routine_complete(),
            "elapsedSeconds": self.elapsed_seconds(),
            "exercises": exercises,
        }

    # -- internals -------------------------------------------------------

    def _require_in_progress(self, action: str) -> None:
        if self._status is not SessionStatus.IN_PROGRESS:
            raise InvalidStateError(f"Cannot {action}: session is {self._status.value}")

    def _exercise_at(self, index: int) -> Exercise:
        if not 0 <= index < len(self.routine.exercises):
            raise NotFoundError(f"No exercise at position {index + 1}")
        return self.routine.exercises[index]

    def _next_set_number(self, index: int) -> int:
        existing = self._completed.get(self.routine.exercises[index].name)
        return (len(existing.sets) if existing else 0) + 1
