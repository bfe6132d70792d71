"""Speech output: synthesizer interface and the "most recent wins" channel."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from itertools import count
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)

DoneCallback = Callable[[], None]


@dataclass(slots=True)
class SpeechConfig:
    """Voice selection and prosody."""

    preferred_voice: str = "Male"
    rate: float = 0.9
    pitch: float = 0.8


class Synthesizer(Protocol):
    def speak(self, text: str, config: SpeechConfig, on_done: DoneCallback, on_error: DoneCallback) -> None:
        ...

    def cancel(self) -> None:
        ...


_token_ids = count(1)


@dataclass(slots=True)
class CancellationToken:
    id: int = field(default_factory=lambda: next(_token_ids))
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class SpeechChannel:
    """Single output channel: a new utterance cancels the one in progress.

    Completion callbacks of a cancelled utterance are dropped, so only the
    current utterance can report that speech has finished.
    """

    def __init__(self, synthesizer: Synthesizer, config: SpeechConfig, on_finished: Optional[DoneCallback] = None) -> None:
        self.synthesizer = synthesizer
        self.config = config
        self.on_finished = on_finished
        self._current: Optional[CancellationToken] = None

    @property
    def busy(self) -> bool:
        return self._current is not None and not self._current.cancelled

    def speak(self, text: str) -> CancellationToken:
        self.cancel()
        token = CancellationToken()
        self._current = token
        self.synthesizer.speak(
            text,
            self.config,
            on_done=lambda: self._finish(token),
            on_error=lambda: self._finish(token, failed=True),
        )
        return token

    def cancel(self) -> None:
        if self._current is None:
            return
        self._current.cancel()
        self._current = None
        self.synthesizer.cancel()

    def _finish(self, token: CancellationToken, *, failed: bool = False) -> None:
        if token.cancelled or token is not self._current:
            return
        if failed:
            logger.warning("Speech synthesis failed for utterance %s", token.id)
        self._current = None
        if self.on_finished:
            self.on_finished()


class ConsoleSynthesizer:
    """Writes spoken text through ``writer``; completes on the next loop turn."""

    def __init__(self, writer: Callable[[str], None], schedule: Callable[[DoneCallback], object] | None = None) -> None:
        self.writer = writer
        self.schedule = schedule
        self.cancelled = 0

    def speak(self, text: str, config: SpeechConfig, on_done: DoneCallback, on_error: DoneCallback) -> None:
        self.writer(f"[{config.preferred_voice.lower()} voice] {text}")
        if self.schedule is not None:
            self.schedule(on_done)
        else:
            on_done()

    def cancel(self) -> None:
        self.cancelled += 1
