"""Local persistence of the user collections.

Each collection lives under its own key (one JSON file per key), is loaded
once at session start and rewritten after every mutation.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ..services.schemas import goals_from_payload, reminders_from_payload
from .app_state import HISTORY_LIMIT, UserCollections, new_history

logger = logging.getLogger(__name__)

MEMORY_KEY = "scar_memory"
GOALS_KEY = "scar_goals"
HISTORY_KEY = "scar_history"
REMINDERS_KEY = "scar_reminders"


class JsonFileStorage:
    """Key/value storage of JSON documents in a directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def get(self, key: str) -> Any:
        """Return the decoded value, ``None`` when missing.

        Raises ``ValueError`` when the stored document is not valid JSON.
        """
        path = self._path(key)
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def set(self, key: str, value: Any) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(json.dumps(value, ensure_ascii=False), encoding="utf-8")


class CollectionStore:
    """Maps :class:`UserCollections` onto the storage keys."""

    def __init__(self, storage: JsonFileStorage, *, history_limit: int = HISTORY_LIMIT) -> None:
        self.storage = storage
        self.history_limit = history_limit

    def _read_list(self, key: str) -> list[Any]:
        try:
            value = self.storage.get(key)
        except (OSError, ValueError):
            logger.warning("Failed to load %s from storage", key, exc_info=True)
            return []
        return value if isinstance(value, list) else []

    def load(self) -> UserCollections:
        history = [str(item) for item in self._read_list(HISTORY_KEY)]
        return UserCollections(
            memory=[str(item) for item in self._read_list(MEMORY_KEY)],
            goals=goals_from_payload(self._read_list(GOALS_KEY)),
            history=new_history(history, self.history_limit),
            reminders=reminders_from_payload(self._read_list(REMINDERS_KEY)),
        )

    def save(self, collections: UserCollections) -> None:
        self.storage.set(MEMORY_KEY, list(collections.memory))
        self.storage.set(GOALS_KEY, [goal.to_payload() for goal in collections.goals])
        self.storage.set(HISTORY_KEY, list(collections.history))
        self.storage.set(REMINDERS_KEY, [r.to_payload() for r in collections.reminders])
