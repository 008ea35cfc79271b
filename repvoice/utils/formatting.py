"""Formatting helpers used by speech feedback and console output."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from repvoice.core.constants import ACKNOWLEDGMENT_TEMPLATE


def format_weight(weight: Optional[float]) -> str:
    """Format weight without a trailing .0 for whole numbers."""
    if weight is None:
        return "N/A"
    value = float(weight)
    if value.is_integer():
        return str(int(value))
    return f"{value:g}"


def format_set(weight: float, reps: int) -> str:
    return f"{format_weight(weight)} lbs × {reps} reps"


def format_acknowledgment(weight: float, reps: int) -> str:
    return ACKNOWLEDGMENT_TEMPLATE.format(weight=format_weight(weight), reps=reps)


def format_elapsed(seconds: Optional[int]) -> str:
    """Format seconds as MM:SS, or H:MM:SS past an hour."""
    if not seconds:
        return "00:00"
    h, rem = divmod(int(seconds), 3600)
    m, s = divmod(rem, 60)
    if h:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m:02d}:{s:02d}"


def format_set_list(sets: List[Dict[str, Any]]) -> str:
    """Join set payloads as '135x8, 135x6'."""
    if not sets:
        return "-"
    return ", ".join(f"{format_weight(item.get('weight'))}x{item.get('reps')}" for item in sets)
