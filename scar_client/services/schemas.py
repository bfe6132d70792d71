"""Data schemas shared by the session core and the sync service."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(slots=True)
class RecognitionAlternative:
    """One interpretation proposed by the recognizer for a result slot."""

    transcript: str
    confidence: Optional[float] = None


@dataclass(slots=True)
class RecognitionResult:
    """A recognizer result slot: interpretations plus the final flag."""

    alternatives: list[RecognitionAlternative]
    is_final: bool = False

    @classmethod
    def of(cls, transcript: str, *, final: bool = True) -> "RecognitionResult":
        """Build a single-interpretation slot."""
        return cls([RecognitionAlternative(transcript)], is_final=final)


@dataclass(slots=True)
class Goal:
    """A user goal; identity is its position in the goal list."""

    text: str
    completed: bool = False
    created_at: str = field(default_factory=now_iso)

    def to_payload(self) -> dict[str, Any]:
        return {"text": self.text, "completed": self.completed, "createdAt": self.created_at}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Goal":
        return cls(
            text=str(payload.get("text", "")),
            completed=bool(payload.get("completed", False)),
            created_at=str(payload.get("createdAt") or now_iso()),
        )


@dataclass(slots=True)
class Reminder:
    """An append-only reminder; ``id`` grows monotonically within a session."""

    text: str
    time: str
    id: int

    def to_payload(self) -> dict[str, Any]:
        return {"text": self.text, "time": self.time, "id": self.id}

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Reminder":
        return cls(
            text=str(payload.get("text", "")),
            time=str(payload.get("time") or now_iso()),
            id=int(payload.get("id", 0)),
        )


@dataclass(slots=True)
class SyncPayload:
    """Full-collection snapshot pushed to the sync service."""

    user_id: str
    memory: Optional[list[str]] = None
    goals: Optional[list[Goal]] = None
    reminders: Optional[list[Reminder]] = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize for ``POST /api/sync``; absent collections are omitted."""
        body: dict[str, Any] = {"userId": self.user_id}
        if self.memory is not None:
            body["memory"] = list(self.memory)
        if self.goals is not None:
            body["goals"] = [goal.to_payload() for goal in self.goals]
        if self.reminders is not None:
            body["reminders"] = [reminder.to_payload() for reminder in self.reminders]
        return body


def _convert(items: Iterable[Any], build: Callable[[dict[str, Any]], T], kind: str) -> list[T]:
    """Decode stored items, skipping (and logging) the ones that cannot be read."""
    converted: list[T] = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning("Skipping %s entry that is not an object: %r", kind, item)
            continue
        try:
            converted.append(build(item))
        except (TypeError, ValueError):
            logger.warning("Skipping unreadable %s entry: %r", kind, item)
    return converted


def goals_from_payload(items: Iterable[Any]) -> list[Goal]:
    return _convert(items, Goal.from_payload, "goal")


def reminders_from_payload(items: Iterable[Any]) -> list[Reminder]:
    return _convert(items, Reminder.from_payload, "reminder")
