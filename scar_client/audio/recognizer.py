"""Speech recognizer interface consumed by the assistant controller."""

from __future__ import annotations

from typing import Callable, Optional, Protocol, Sequence

from ..services.schemas import RecognitionResult

ResultCallback = Callable[[int, Sequence[RecognitionResult]], None]
EndCallback = Callable[[], None]
ErrorCallback = Callable[[str], None]


class RecognizerError(RuntimeError):
    pass


class RecognizerAlreadyStarted(RecognizerError):
    """``start`` was called on an engine that is already capturing."""


class RecognizerPermissionDenied(RecognizerError):
    """Microphone access was refused."""


class Recognizer(Protocol):
    """Continuous recognizer delivering ``(result_index, results)`` events."""

    def bind(self, on_result: ResultCallback, on_end: EndCallback, on_error: ErrorCallback) -> None:
        ...

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


class ConsoleRecognizer:
    """Recognizer fed by typed lines, one final result per line."""

    def __init__(self) -> None:
        self.active = False
        self._on_result: Optional[ResultCallback] = None
        self._on_end: Optional[EndCallback] = None
        self._on_error: Optional[ErrorCallback] = None

    def bind(self, on_result: ResultCallback, on_end: EndCallback, on_error: ErrorCallback) -> None:
        self._on_result = on_result
        self._on_end = on_end
        self._on_error = on_error

    def start(self) -> None:
        if self.active:
            raise RecognizerAlreadyStarted("recognition already started")
        self.active = True

    def stop(self) -> None:
        self.active = False

    def feed(self, line: str) -> None:
        """Deliver a typed line as a final result."""
        if not self.active or self._on_result is None:
            return
        self._on_result(0, [RecognitionResult.of(line, final=True)])
