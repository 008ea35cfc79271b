"""Suppress repeat firing of a stabilizing transcript."""

from __future__ import annotations

from typing import Set


class TranscriptDeduplicator:
    """Remembers transcripts that already produced a dispatched command.

    Continuous recognition re-emits the same utterance as it stabilizes, so an
    identical transcript must never fire twice until the stream goes silent.
    """

    def __init__(self) -> None:
        self._processed: Set[str] = set()

    @staticmethod
    def key(transcript: str) -> str:
        return transcript.strip().lower()

    def should_process(self, transcript: str) -> bool:
        return self.key(transcript) not in self._processed

    def mark_processed(self, transcript: str) -> None:
        self._processed.add(self.key(transcript))

    def reset(self) -> None:
        self._processed.clear()

    def __len__(self) -> int:
        return len(self._processed)
