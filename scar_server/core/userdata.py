"""Remote copy of the owner's collections (memory, goals, reminders)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from scar_server.core.errors import DataFileError, UnauthorizedSync
from scar_server.core.logger import get_logger

__all__ = ["COLLECTIONS", "UserDataStore"]

COLLECTIONS = ("memory", "goals", "reminders")

logger = get_logger("sync")


def _empty() -> Dict[str, List[Any]]:
    return {name: [] for name in COLLECTIONS}


class UserDataStore:
    """Single JSON document rewritten wholesale on every accepted sync.

    Each collection is replaced as a whole: the last writer wins per
    collection, there is no per-element merge.
    """

    def __init__(self, path: str | Path, owner_id: str = "owner") -> None:
        self.path = Path(path)
        self.owner_id = owner_id
        self._data = self._load()

    def _load(self) -> Dict[str, List[Any]]:
        if not self.path.exists():
            return _empty()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.exception("Failed to load data file %s", self.path)
            return _empty()
        if not isinstance(raw, dict):
            logger.warning("Data file %s is not an object, starting empty", self.path)
            return _empty()
        data = _empty()
        for name in COLLECTIONS:
            value = raw.get(name)
            if isinstance(value, list):
                data[name] = value
        return data

    def _save(self, data: Dict[str, List[Any]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            raise DataFileError(f"Unable to write {self.path}: {exc}") from exc

    def snapshot(self) -> Dict[str, List[Any]]:
        """Return a shallow copy of the stored collections."""
        return {name: list(self._data[name]) for name in COLLECTIONS}

    def authorize(self, user_id: Optional[str]) -> None:
        """Raise ``UnauthorizedSync`` unless ``user_id`` is the owner."""
        if user_id != self.owner_id:
            logger.warning("Rejected sync for identity %r", user_id)
            raise UnauthorizedSync("Unauthorized")

    def apply_sync(
        self,
        user_id: Optional[str],
        *,
        memory: Optional[List[Any]] = None,
        goals: Optional[List[Any]] = None,
        reminders: Optional[List[Any]] = None,
    ) -> Dict[str, List[Any]]:
        """Replace every collection present in the payload and persist.

        ``None`` means "absent": that collection is left untouched. An empty
        list is present and clears the stored collection. A failed write
        raises ``DataFileError`` and leaves the store as it was.
        """
        self.authorize(user_id)

        incoming = {"memory": memory, "goals": goals, "reminders": reminders}
        updated = [name for name, value in incoming.items() if value is not None]
        merged = self.snapshot()
        for name in updated:
            merged[name] = list(incoming[name] or [])
        # Only a successful write becomes the stored copy.
        self._save(merged)
        self._data = merged
        logger.info("Synced collections: %s", ", ".join(updated) or "none")
        return self.snapshot()
