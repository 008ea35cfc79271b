"""Routes live transcripts into the session engine."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from repvoice.core.config import resolve_trigger_phrases
from repvoice.core.constants import DEFAULT_TRIGGER_PHRASES
from repvoice.core.dedup import TranscriptDeduplicator
from repvoice.core.models import CommandType, ParsedCommand
from repvoice.core.session import (
    AdvanceResult,
    FinishResult,
    LogSetResult,
    SessionEngine,
    SessionError,
    SessionStatus,
)
from repvoice.core.speech import Announcer, SpeechSink, TranscriptSource
from repvoice.utils.formatting import format_acknowledgment
from repvoice.utils.parsing import parse_command
from repvoice.utils.triggers import find_trigger

logger = logging.getLogger(__name__)


@dataclass
class DriverSettings:
    """Voice options injected into the driver."""

    trigger_phrases: List[str] = field(default_factory=lambda: list(DEFAULT_TRIGGER_PHRASES))
    enabled: bool = True
    announce: bool = True
    silence_timeout_seconds: float = 3.0
    acknowledgment_seconds: float = 3.0

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "DriverSettings":
        voice_cfg = config.get("voice", {})
        return cls(
            trigger_phrases=resolve_trigger_phrases(config),
            enabled=bool(voice_cfg.get("enabled", True)),
            announce=bool(voice_cfg.get("announce", True)),
            silence_timeout_seconds=float(voice_cfg.get("silence_timeout_seconds", 3.0)),
            acknowledgment_seconds=float(voice_cfg.get("acknowledgment_seconds", 3.0)),
        )


class VoiceCommandDriver:
    """Turns transcript updates into session engine calls.

    Each update is handled synchronously: trigger detection, command
    extraction, dedup check, dispatch, then spoken feedback. Incomplete or
    unrecognized utterances are ignored until the transcript grows.
    """

    def __init__(
        self,
        engine: SessionEngine,
        settings: Optional[DriverSettings] = None,
        source: Optional[TranscriptSource] = None,
        speech: Optional[SpeechSink] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.engine = engine
        self.settings = settings or DriverSettings()
        self.source = source
        self.announcer = Announcer(speech, enabled=self.settings.announce)
        self.dedup = TranscriptDeduplicator()
        self._clock = clock
        self._last_transcript = ""
        self._last_growth: Optional[float] = None
        self._acknowledgment: Optional[str] = None
        self._acknowledgment_until = 0.0
        self.last_command: Optional[ParsedCommand] = None

        if source is not None:
            source.subscribe(self.on_transcript)

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    def set_enabled(self, enabled: bool) -> None:
        """Toggle voice processing; logged sets are unaffected."""
        self.settings.enabled = enabled
        self.announcer.enabled = enabled and self.settings.announce

    def start(self) -> None:
        """Start the session and begin listening."""
        if self.engine.status is SessionStatus.NOT_STARTED:
            self.engine.start()
        if self.source is not None:
            self.source.start()
        exercise = self.engine.current_exercise
        self.announcer.announce_exercise(exercise.name, self.engine.current_set_number, exercise.target_sets)

    def stop(self) -> None:
        if self.source is not None:
            self.source.stop()

    def on_transcript(self, transcript: str) -> Optional[ParsedCommand]:
        """Handle one transcript update; returns the dispatched command, if any."""
        if not transcript or not transcript.strip():
            self.dedup.reset()
            self._last_transcript = ""
            self._last_growth = None
            return None

        if transcript != self._last_transcript:
            self._last_transcript = transcript
            self._last_growth = self._clock()

        if not self.settings.enabled or self.engine.status is not SessionStatus.IN_PROGRESS:
            return None
        if not self.dedup.should_process(transcript):
            return None

        match = find_trigger(transcript, self.settings.trigger_phrases)
        if not match.found:
            return None
        logger.debug("Trigger %r found, after trigger: %r", match.phrase, match.after_trigger)

        command = parse_command(match.after_trigger)
        if command.type is CommandType.LOG_SET and command.weight is not None and command.reps is not None:
            self._dispatch_log(command.weight, command.reps, command.raw_text)
        elif command.type is CommandType.NEXT_EXERCISE:
            self._dispatch_next_exercise()
        else:
            return None

        self.dedup.mark_processed(transcript)
        self.last_command = command
        logger.debug("Dispatched %s", command)

        if self.source is not None:
            self.source.reset_transcript()
        if self.engine.status is SessionStatus.FINISHED:
            self.stop()
        return command

    def log_manual_set(self, weight: float, reps: int) -> LogSetResult:
        """Manual entry goes through the same engine call as voice logging."""
        result = self.engine.log_set(weight, reps)
        if result.advance is not None:
            self._announce_advance(result.advance)
        if result.finished:
            self.stop()
        return result

    def jump_to_exercise(self, index: int) -> int:
        set_number = self.engine.jump_to_exercise(index)
        exercise = self.engine.current_exercise
        self.announcer.announce_exercise(exercise.name, set_number, exercise.target_sets)
        return set_number

    def finish(self, persist: bool = True) -> FinishResult:
        """End the session early; listening stops before anything is saved."""
        self.stop()
        return self.engine.finish(persist=persist)

    def next_exercise(self) -> AdvanceResult:
        result = self.engine.advance_exercise()
        self._announce_advance(result)
        if result.finished:
            self.stop()
        return result

    def tick(self, now: Optional[float] = None) -> bool:
        """Clear a transcript that stopped growing for the silence window."""
        if not self._last_transcript or self._last_growth is None:
            return False
        current = self._clock() if now is None else now
        if current - self._last_growth < self.settings.silence_timeout_seconds:
            return False

        logger.debug("Silence window elapsed, clearing transcript")
        if self.source is not None:
            self.source.reset_transcript()
        else:
            self.on_transcript("")
        return True

    def acknowledgment(self, now: Optional[float] = None) -> Optional[str]:
        """Transient on-screen confirmation of the last voice-logged set."""
        if self._acknowledgment is None:
            return None
        current = self._clock() if now is None else now
        if current >= self._acknowledgment_until:
            self._acknowledgment = None
            return None
        return self._acknowledgment

    def _dispatch_log(self, weight: int, reps: int, raw_text: str) -> None:
        try:
            result = self.engine.log_set(weight, reps)
        except (SessionError, ValueError) as exc:
            logger.warning("Could not log voice set %r: %s", raw_text, exc)
            return

        self._acknowledgment = format_acknowledgment(weight, reps)
        self._acknowledgment_until = self._clock() + self.settings.acknowledgment_seconds
        self.announcer.announce_set_logged(weight, reps)
        if result.advance is not None:
            self._announce_advance(result.advance)

    def _dispatch_next_exercise(self) -> None:
        try:
            result = self.engine.advance_exercise()
        except SessionError as exc:
            logger.warning("Could not advance exercise: %s", exc)
            return
        self._announce_advance(result)

    def _announce_advance(self, result: AdvanceResult) -> None:
        if result.finished:
            self.announcer.announce_workout_complete()
            return
        exercise = self.engine.routine.exercises[result.exercise_index]
        self.announcer.announce_next_exercise(exercise.name)
