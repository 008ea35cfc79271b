"""Trigger phrase detection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from repvoice.core.constants import DEFAULT_TRIGGER_PHRASES


@dataclass(frozen=True)
class TriggerMatch:
    found: bool
    before_trigger: str = ""
    after_trigger: str = ""
    phrase: str = ""


NO_TRIGGER = TriggerMatch(found=False)


def find_trigger(text: str, trigger_phrases: Sequence[str] = DEFAULT_TRIGGER_PHRASES) -> TriggerMatch:
    """Split text around the first configured phrase that occurs in it.

    Phrases are tried in list order and the first one present anywhere in the
    text wins, even when a later phrase occurs further left.
    """
    normalized = text.lower()
    for phrase in trigger_phrases:
        needle = phrase.strip().lower()
        if not needle:
            continue
        index = normalized.find(needle)
        if index == -1:
            continue
        return TriggerMatch(
            found=True,
            before_trigger=normalized[:index].strip(),
            after_trigger=normalized[index + len(needle):].strip(),
            phrase=needle,
        )
    return NO_TRIGGER
