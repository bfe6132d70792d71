"""Turn a dispatched utterance into a command and its response."""

from __future__ import annotations

import inspect
from dataclasses import dataclass

from .locale import Language, ResponseMode, detect_language, localize
from .responder import AsyncResponseGenerator, ResponseGenerator, RuleResponder


@dataclass(frozen=True, slots=True)
class Command:
    raw: str
    mode: ResponseMode
    language: Language


@dataclass(frozen=True, slots=True)
class RouteOutcome:
    command: Command
    response: str
    wants_reminder: bool

    @property
    def voiced(self) -> bool:
        return self.command.mode is ResponseMode.VOICE


class CommandRouter:
    """Structural triggers only; command semantics belong to the responder."""

    def __init__(
        self,
        responder: ResponseGenerator | AsyncResponseGenerator | None = None,
        *,
        text_mode_phrase: str = "write it",
        reminder_phrase: str = "remind me",
    ) -> None:
        self.responder = responder or RuleResponder()
        self.text_mode_phrase = text_mode_phrase
        self.reminder_phrase = reminder_phrase

    @property
    def asynchronous(self) -> bool:
        """True when the responder's ``generate`` must be awaited."""
        return inspect.iscoroutinefunction(self.responder.generate)

    def parse(self, text: str) -> Command:
        raw = text.strip()
        mode = ResponseMode.VOICE
        if self.text_mode_phrase in raw:
            raw = raw.replace(self.text_mode_phrase, "", 1).strip()
            mode = ResponseMode.TEXT
        return Command(raw=raw, mode=mode, language=detect_language(raw))

    def route(self, text: str) -> RouteOutcome:
        if self.asynchronous:
            raise TypeError("responder is asynchronous, use aroute()")
        command = self.parse(text)
        return self._outcome(command, self.responder.generate(command.raw, command.language))

    async def aroute(self, text: str) -> RouteOutcome:
        command = self.parse(text)
        response = self.responder.generate(command.raw, command.language)
        if inspect.isawaitable(response):
            response = await response
        return self._outcome(command, response)

    def _outcome(self, command: Command, response: str) -> RouteOutcome:
        response = localize(response, command.language, command.mode)
        # Reminder detection runs after generation and never alters the reply.
        wants_reminder = self.reminder_phrase in command.raw
        return RouteOutcome(command=command, response=response, wants_reminder=wants_reminder)
