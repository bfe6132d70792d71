"""Voice session state machine.

``transition`` is a pure function of (state, event): it returns the next
state and the list of effects the controller must issue. Nothing here touches
the recognizer, the synthesizer or the collections directly.

Phases::

    IDLE --start--> LISTENING --wake word--> ACTIVE
      ^                 |                      |
      +------stop-------+----------stop--------+

ACTIVE is sticky: utterances without the wake word keep being dispatched
until the stop phrase is heard.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Union


class Phase(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    ACTIVE = "active"


class RecognitionErrorKind(str, Enum):
    NOT_ALLOWED = "not-allowed"
    NO_SPEECH = "no-speech"
    NETWORK = "network"
    ABORTED = "aborted"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "RecognitionErrorKind":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


LISTENING_STATUS = "SCAR is listening..."
STOPPED_STATUS = "SCAR stopped."
IDLE_TEXT = "SCAR is idle."
MIC_DENIED_NOTICE = "Microphone access denied. Please allow to use SCAR."


@dataclass(frozen=True, slots=True)
class SessionState:
    phase: Phase = Phase.IDLE
    speaking: bool = False

    @property
    def listening(self) -> bool:
        return self.phase is not Phase.IDLE

    @property
    def wake_active(self) -> bool:
        return self.phase is Phase.ACTIVE


@dataclass(frozen=True, slots=True)
class Triggers:
    wake_word: str = "scar"
    stop_phrase: str = "stop"


# ---------------------------------------------------------------------- #
# Events
# ---------------------------------------------------------------------- #
@dataclass(frozen=True, slots=True)
class StartRequested:
    pass


@dataclass(frozen=True, slots=True)
class FinalUtterance:
    text: str


@dataclass(frozen=True, slots=True)
class RecognizerEnded:
    pass


@dataclass(frozen=True, slots=True)
class RecognizerFailed:
    kind: RecognitionErrorKind


@dataclass(frozen=True, slots=True)
class ResponseReady:
    text: str
    voice: bool


@dataclass(frozen=True, slots=True)
class SpeechEnded:
    pass


Event = Union[StartRequested, FinalUtterance, RecognizerEnded, RecognizerFailed, ResponseReady, SpeechEnded]


# ---------------------------------------------------------------------- #
# Effects
# ---------------------------------------------------------------------- #
@dataclass(frozen=True, slots=True)
class StartCapture:
    pass


@dataclass(frozen=True, slots=True)
class RestartCapture:
    pass


@dataclass(frozen=True, slots=True)
class StopCapture:
    pass


@dataclass(frozen=True, slots=True)
class CancelSpeech:
    pass


@dataclass(frozen=True, slots=True)
class SetStatus:
    text: str


@dataclass(frozen=True, slots=True)
class ShowText:
    text: str


@dataclass(frozen=True, slots=True)
class ShowNotice:
    text: str


@dataclass(frozen=True, slots=True)
class Speak:
    text: str


@dataclass(frozen=True, slots=True)
class RecordHistory:
    text: str


@dataclass(frozen=True, slots=True)
class Dispatch:
    command: str


Effect = Union[
    StartCapture,
    RestartCapture,
    StopCapture,
    CancelSpeech,
    SetStatus,
    ShowText,
    ShowNotice,
    Speak,
    RecordHistory,
    Dispatch,
]

Outcome = tuple[SessionState, list[Effect]]


def _stop(state: SessionState) -> Outcome:
    return (
        SessionState(phase=Phase.IDLE, speaking=False),
        [StopCapture(), CancelSpeech(), SetStatus(STOPPED_STATUS), ShowText(IDLE_TEXT)],
    )


def _on_utterance(state: SessionState, text: str, triggers: Triggers) -> Outcome:
    effects: list[Effect] = [RecordHistory(text)]
    if state.phase is Phase.IDLE:
        return state, effects

    if triggers.stop_phrase in text:
        new_state, stop_effects = _stop(state)
        return new_state, effects + stop_effects

    if triggers.wake_word in text:
        command = text.replace(triggers.wake_word, "", 1).strip()
        effects.append(Dispatch(command))
        return replace(state, phase=Phase.ACTIVE), effects

    if state.phase is Phase.ACTIVE:
        effects.append(Dispatch(text.strip()))
    return state, effects


def _on_response(state: SessionState, event: ResponseReady) -> Outcome:
    effects: list[Effect] = [ShowText(event.text)]
    if not event.voice:
        return state, effects
    if state.speaking:
        effects.append(CancelSpeech())
    effects.append(Speak(event.text))
    return replace(state, speaking=True), effects


def transition(state: SessionState, event: Event, triggers: Triggers = Triggers()) -> Outcome:
    """Return the next state and the effects to issue for ``event``."""
    if isinstance(event, StartRequested):
        if state.listening:
            return state, []
        return replace(state, phase=Phase.LISTENING), [StartCapture(), SetStatus(LISTENING_STATUS)]

    if isinstance(event, FinalUtterance):
        return _on_utterance(state, event.text, triggers)

    if isinstance(event, RecognizerEnded):
        return state, [RestartCapture()] if state.listening else []

    if isinstance(event, RecognizerFailed):
        if event.kind is RecognitionErrorKind.NOT_ALLOWED:
            return state, [ShowNotice(MIC_DENIED_NOTICE)]
        return state, []

    if isinstance(event, ResponseReady):
        return _on_response(state, event)

    if isinstance(event, SpeechEnded):
        return replace(state, speaking=False), []

    raise TypeError(f"unknown session event: {event!r}")


def stop(state: SessionState) -> Outcome:
    """Explicit stop (same effects as hearing the stop phrase); no-op when idle."""
    if state.phase is Phase.IDLE:
        return state, []
    return _stop(state)
