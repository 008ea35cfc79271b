"""Speech collaborator boundaries: transcript sources and speech sinks."""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, List, Optional, Protocol

from rich.console import Console

from repvoice.core.constants import SPEECH_TEMPLATES
from repvoice.utils.formatting import format_weight

logger = logging.getLogger(__name__)

TranscriptListener = Callable[[str], None]


class SpeechSink(Protocol):
    def speak(self, text: str) -> None: ...


class TranscriptSource(Protocol):
    @property
    def transcript(self) -> str: ...

    @property
    def listening(self) -> bool: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def reset_transcript(self) -> None: ...

    def subscribe(self, listener: TranscriptListener) -> None: ...


class ConsoleSpeechSink:
    """Prints utterances instead of synthesizing audio."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def speak(self, text: str) -> None:
        self.console.print(f"[bold cyan]speak[/]: {text}", highlight=False)


class Announcer:
    """Spoken feedback templates over a speech sink.

    Sink failures are logged and swallowed so speech problems never interrupt
    set logging.
    """

    def __init__(self, sink: Optional[SpeechSink], enabled: bool = True) -> None:
        self.sink = sink
        self.enabled = enabled

    def say(self, text: str) -> bool:
        if not self.enabled or self.sink is None:
            return False
        try:
            self.sink.speak(text)
        except Exception as exc:
            logger.warning("Speech output failed: %s", exc)
            return False
        return True

    def announce_exercise(self, name: str, set_number: int, total_sets: int) -> bool:
        return self.say(SPEECH_TEMPLATES["exercise"].format(name=name, set_number=set_number, total_sets=total_sets))

    def announce_set_logged(self, weight: float, reps: int) -> bool:
        return self.say(SPEECH_TEMPLATES["set_logged"].format(weight=format_weight(weight), reps=reps))

    def announce_next_exercise(self, name: str) -> bool:
        return self.say(SPEECH_TEMPLATES["next_exercise"].format(name=name))

    def announce_workout_complete(self) -> bool:
        return self.say(SPEECH_TEMPLATES["workout_complete"])


class ScriptedTranscriptSource:
    """In-process transcript stream fed by `push` calls.

    Updates raised while listeners are still handling a previous one are
    queued, so each update is fully processed before the next is delivered.
    """

    def __init__(self) -> None:
        self._transcript = ""
        self._listening = False
        self._listeners: List[TranscriptListener] = []
        self._pending: Deque[str] = deque()
        self._delivering = False

    @property
    def transcript(self) -> str:
        return self._transcript

    @property
    def listening(self) -> bool:
        return self._listening

    def start(self) -> None:
        self._listening = True

    def stop(self) -> None:
        self._listening = False

    def subscribe(self, listener: TranscriptListener) -> None:
        self._listeners.append(listener)

    def push(self, transcript: str) -> None:
        """Deliver a new transcript value; ignored while not listening."""
        if not self._listening:
            return
        self._emit(transcript)

    def reset_transcript(self) -> None:
        self._emit("")

    def _emit(self, transcript: str) -> None:
        self._pending.append(transcript)
        if self._delivering:
            return
        self._delivering = True
        try:
            while self._pending:
                value = self._pending.popleft()
                if value == self._transcript and value:
                    continue
                self._transcript = value
                for listener in list(self._listeners):
                    listener(value)
        finally:
            self._delivering = False


class RecordingSpeechSink:
    """Collects utterances, for JSON output and tests."""

    def __init__(self) -> None:
        self.spoken: List[str] = []

    def speak(self, text: str) -> None:
        self.spoken.append(text)
