"""Spoken number normalization."""

from __future__ import annotations

import re

from repvoice.core.constants import WORD_NUMBERS

_WORD_PATTERN = re.compile(
    r"\b(" + "|".join(sorted(WORD_NUMBERS, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)
# Tens followed by a single ones digit: "20 5" -> "25", never "20 15".
_COMPOUND_PATTERN = re.compile(r"\b([2-9]0)\s+([1-9])\b")


def words_to_digits(text: str) -> str:
    """Replace standalone number words with their digit strings."""
    return _WORD_PATTERN.sub(lambda match: str(WORD_NUMBERS[match.group(1).lower()]), text)


def merge_compounds(text: str) -> str:
    """Merge tens/ones digit pairs into a single number."""
    return _COMPOUND_PATTERN.sub(lambda match: str(int(match.group(1)) + int(match.group(2))), text)


def normalize(text: str) -> str:
    """Lower-case text and turn spoken numbers into digit tokens."""
    return merge_compounds(words_to_digits(text.lower()))
