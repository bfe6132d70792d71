"""Response generators plugged behind the command router."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

import httpx

from ..config.settings import ServerSettings
from .locale import Language

logger = logging.getLogger(__name__)


class ResponseGenerator(Protocol):
    def generate(self, command: str, language: Language) -> str:
        ...


class AsyncResponseGenerator(Protocol):
    async def generate(self, command: str, language: Language) -> str:
        ...


class RuleResponder:
    """Keyword rules standing in for a real assistant model."""

    def generate(self, command: str, language: Language) -> str:
        if "hello" in command or "hi" in command:
            return "Hello! How can I assist you today?"
        if "time" in command:
            return f"The current time is {datetime.now().strftime('%H:%M:%S')}."
        if "goal" in command:
            return "I can help you manage your goals. Open the Goals menu to see your list."
        if "memory" in command:
            return "I remember important things for you. Check the Memory menu."
        if "thank" in command:
            return "You're welcome!"
        return f"I understand you said: {command}. I'm still learning."


class RemoteResponder:
    """Ask the backend ``/api/ai`` endpoint, falling back to local rules.

    ``generate`` is a coroutine; the assistant awaits it in a task.
    """

    def __init__(
        self,
        server: ServerSettings,
        *,
        fallback: ResponseGenerator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.fallback = fallback or RuleResponder()
        self._client = httpx.AsyncClient(
            base_url=server.base_url,
            verify=server.verify_ssl,
            timeout=httpx.Timeout(server.timeout_seconds),
            transport=transport,
        )

    async def generate(self, command: str, language: Language) -> str:
        try:
            response = await self._client.post("/api/ai", json={"text": command, "language": language.value})
            response.raise_for_status()
            data = response.json()
            answer = data.get("response") if isinstance(data, dict) else None
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Remote responder unavailable, using local rules: %s", exc)
            return self.fallback.generate(command, language)
        if not isinstance(answer, str) or not answer:
            return self.fallback.generate(command, language)
        return answer

    async def close(self) -> None:
        await self._client.aclose()
