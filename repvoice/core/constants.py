"""Static constants and mappings for repvoice."""

from __future__ import annotations

WORD_NUMBERS = {
    "zero": 0,
    "one": 1,
    "two": 2,
    "three": 3,
    "four": 4,
    "five": 5,
    "six": 6,
    "seven": 7,
    "eight": 8,
    "nine": 9,
    "ten": 10,
    "eleven": 11,
    "twelve": 12,
    "thirteen": 13,
    "fourteen": 14,
    "fifteen": 15,
    "sixteen": 16,
    "seventeen": 17,
    "eighteen": 18,
    "nineteen": 19,
    "twenty": 20,
    "thirty": 30,
    "forty": 40,
    "fifty": 50,
    "sixty": 60,
    "seventy": 70,
    "eighty": 80,
    "ninety": 90,
    "hundred": 100,
}

# Near-miss transcriptions of "hey trainer" seen from browser recognizers.
# Phrases containing another phrase must come before it.
DEFAULT_TRIGGER_PHRASES = [
    "hey trainer",
    "hey traina",
    "a trainer",
    "who trainer",
    "the trainer",
    "eight trainer",
    "hey training",
    "hey trener",
    "hey train",
    "trainer",
]

WEIGHT_UNIT_PATTERN = r"(?:lbs?|pounds?)"

NEXT_EXERCISE_KEYWORDS = ("next exercise", "skip")
NEXT_SET_KEYWORDS = ("next set", "done")

# A number above this is read as a weight, at or below as a rep count.
REP_CEILING = 30

DEFAULT_MUSCLE_GROUP = "Other"

SPEECH_TEMPLATES = {
    "exercise": "{name}. Set {set_number} of {total_sets}.",
    "set_logged": "Logged {weight} pounds, {reps} reps.",
    "next_exercise": "Next exercise: {name}",
    "workout_complete": "Great job! Workout complete.",
}

ACKNOWLEDGMENT_TEMPLATE = "Logged: {weight} lbs × {reps} reps"
