"""Shared state model for the SCAR client."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterable

from ..config.settings import AppSettings
from ..runtime.locale import Language
from ..runtime.session import SessionState
from ..services.schemas import Goal, Reminder, now_iso

HISTORY_LIMIT = 100


def new_history(items: Iterable[str] = (), limit: int = HISTORY_LIMIT) -> Deque[str]:
    """Bounded utterance history; the oldest entries are evicted first."""
    return deque(items, maxlen=limit)


@dataclass(slots=True)
class UserCollections:
    """The four locally owned collections."""

    memory: list[str] = field(default_factory=list)
    goals: list[Goal] = field(default_factory=list)
    history: Deque[str] = field(default_factory=new_history)
    reminders: list[Reminder] = field(default_factory=list)
    _last_reminder_id: int = 0

    def __post_init__(self) -> None:
        if self.reminders:
            self._last_reminder_id = max(r.id for r in self.reminders)

    def record_history(self, text: str) -> None:
        self.history.append(text)

    def add_memory(self, note: str) -> None:
        self.memory.append(note)

    def add_goal(self, text: str) -> Goal:
        goal = Goal(text=text)
        self.goals.append(goal)
        return goal

    def toggle_goal(self, index: int) -> Goal:
        """Flip ``completed`` on the goal at ``index`` (IndexError if absent)."""
        if index < 0 or index >= len(self.goals):
            raise IndexError(f"no goal at index {index}")
        goal = self.goals[index]
        goal.completed = not goal.completed
        return goal

    def add_reminder(self, text: str) -> Reminder:
        # Creation time in ms, bumped so ids never repeat within a session.
        rid = max(int(time.time() * 1000), self._last_reminder_id + 1)
        self._last_reminder_id = rid
        reminder = Reminder(text=text, time=now_iso(), id=rid)
        self.reminders.append(reminder)
        return reminder

    def replace(self, *, memory=None, goals=None, reminders=None) -> None:
        """Wholesale replacement of the synced collections."""
        if memory is not None:
            self.memory = list(memory)
        if goals is not None:
            self.goals = list(goals)
        if reminders is not None:
            self.reminders = list(reminders)
            if self.reminders:
                self._last_reminder_id = max(self._last_reminder_id, max(r.id for r in self.reminders))


@dataclass(slots=True)
class AppState:
    """Global state for one client session."""

    settings: AppSettings = field(default_factory=AppSettings)
    session: SessionState = field(default_factory=SessionState)
    collections: UserCollections = field(default_factory=UserCollections)
    language: Language = Language.EN
    live_screen: bool = False
    bluetooth: bool = False

    @property
    def listening(self) -> bool:
        return self.session.listening

    @property
    def speaking(self) -> bool:
        return self.session.speaking
