"""Command extraction from spoken text and input file loading."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Tuple

import yaml

from repvoice.core.constants import (
    NEXT_EXERCISE_KEYWORDS,
    NEXT_SET_KEYWORDS,
    REP_CEILING,
    WEIGHT_UNIT_PATTERN,
)
from repvoice.core.models import CommandType, Exercise, ParsedCommand, Routine, WeightReps
from repvoice.utils.numbers import normalize

logger = logging.getLogger(__name__)

# Tried in order; the first match wins.
WEIGHT_REPS_PATTERNS: Tuple[Pattern[str], ...] = (
    # "180 lbs 6 reps", "180 pounds 6"
    re.compile(rf"(\d+)\s*{WEIGHT_UNIT_PATTERN}s?\s*(\d+)\s*(?:reps?)?", re.IGNORECASE),
    # "180 6"
    re.compile(r"(\d+)\s+(\d+)(?:\s*reps?)?", re.IGNORECASE),
    # "6 reps at 180 pounds"
    re.compile(rf"(\d+)\s*reps?\s*(?:at|with|@)?\s*(\d+)\s*(?:{WEIGHT_UNIT_PATTERN})?", re.IGNORECASE),
    # "180 for 6", "180 x 6"
    re.compile(r"(\d+)\s*(?:for|by|x|times)\s*(\d+)", re.IGNORECASE),
)

_DIGIT = re.compile(r"\d")


def assign_weight_and_reps(first: int, second: int) -> WeightReps:
    """Decide which of two spoken numbers is the weight.

    Numbers above the rep ceiling read as weights. When both or neither are
    above it, the larger one is taken as the weight, which misreads light,
    high-rep sets such as "0 pounds 30 reps".
    """
    if first > REP_CEILING and second <= REP_CEILING:
        return WeightReps(weight=first, reps=second)
    if second > REP_CEILING and first <= REP_CEILING:
        return WeightReps(weight=second, reps=first)
    if first > second:
        return WeightReps(weight=first, reps=second)
    return WeightReps(weight=second, reps=first)


def parse_weight_and_reps(text: str) -> WeightReps:
    """Extract a weight/rep pair, or an empty result when nothing matches."""
    normalized = normalize(text)
    logger.debug("Normalized text: %r", normalized)

    for pattern in WEIGHT_REPS_PATTERNS:
        match = pattern.search(normalized)
        if match:
            try:
                first, second = int(match.group(1)), int(match.group(2))
            except ValueError:
                # digit runs past the interpreter's int conversion limit
                logger.debug("Ignoring oversized number in %r", normalized[:80])
                return WeightReps()
            logger.debug("Matched numbers %s, %s with %s", first, second, pattern.pattern)
            return assign_weight_and_reps(first, second)
    return WeightReps()


def parse_command_type(text: str) -> CommandType:
    """Classify the text following a trigger phrase."""
    lowered = text.lower()
    if any(keyword in lowered for keyword in NEXT_EXERCISE_KEYWORDS):
        return CommandType.NEXT_EXERCISE
    if any(keyword in lowered for keyword in NEXT_SET_KEYWORDS):
        return CommandType.NEXT_SET
    if _DIGIT.search(normalize(lowered)):
        return CommandType.LOG_SET
    return CommandType.UNKNOWN


def parse_command(text: str) -> ParsedCommand:
    """Build a command from post-trigger text."""
    raw_text = text.strip()
    command_type = parse_command_type(raw_text)
    if command_type is not CommandType.LOG_SET:
        return ParsedCommand(type=command_type, raw_text=raw_text)

    parsed = parse_weight_and_reps(raw_text)
    return ParsedCommand(type=command_type, raw_text=raw_text, weight=parsed.weight, reps=parsed.reps)


def _read_structured(path: Path) -> Any:
    text = path.read_text()
    if path.suffix.lower() in {".yaml", ".yml"}:
        return yaml.safe_load(text)
    return json.loads(text)


def _field(data: Dict[str, Any], *names: str, default: Any = None) -> Any:
    for name in names:
        if name in data and data[name] is not None:
            return data[name]
    return default


def routine_from_dict(data: Dict[str, Any]) -> Routine:
    """Build a routine from a camelCase or snake_case mapping."""
    raw_exercises = data.get("exercises")
    if not isinstance(raw_exercises, list):
        raise ValueError("Routine must define a list of exercises")

    exercises: List[Exercise] = []
    for index, item in enumerate(raw_exercises, start=1):
        if not isinstance(item, dict):
            raise ValueError(f"Exercise #{index} must be a mapping")
        try:
            exercises.append(
                Exercise(
                    name=str(_field(item, "name", default="")).strip(),
                    target_sets=int(_field(item, "targetSets", "target_sets", "sets", default=0)),
                    target_reps=int(_field(item, "targetReps", "target_reps", "reps", default=0)),
                    muscle_group=str(_field(item, "muscleGroup", "muscle_group", default="Other")),
                )
            )
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Exercise #{index}: {exc}") from exc

    return Routine(
        id=str(_field(data, "id", "routineId", default="")),
        name=str(_field(data, "name", default="Workout")),
        exercises=tuple(exercises),
    )


def load_routine(path: Path) -> Routine:
    """Load a routine definition from a YAML or JSON file."""
    try:
        raw_data = _read_structured(path)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValueError(f"Could not parse routine file {path}: {exc}") from exc
    if not isinstance(raw_data, dict):
        raise ValueError(f"Routine file {path} must contain a mapping at the root")
    return routine_from_dict(raw_data)


def load_transcript_script(text: str) -> List[str]:
    """Split a replay script into transcript updates, one per line."""
    return [line.rstrip("\r") for line in text.splitlines() if not line.lstrip().startswith("#")]


def parse_manual_action(line: str) -> Optional[Tuple[str, List[str]]]:
    """Parse a `!action args...` script line into (action, args)."""
    stripped = line.strip()
    if not stripped.startswith("!"):
        return None
    parts = stripped[1:].split()
    if not parts:
        raise ValueError("Empty manual action")
    return parts[0].lower(), parts[1:]
