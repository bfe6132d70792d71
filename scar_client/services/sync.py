"""Client side of the collection sync (last writer wins per collection)."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Callable, Optional

import httpx

from ..config.settings import AppSettings
from ..state.app_state import UserCollections
from .api import ScarAPI, SyncUnauthorizedError
from .schemas import SyncPayload

logger = logging.getLogger(__name__)

EchoCallback = Callable[[dict[str, Any]], None]


class SyncReconciler:
    """Push full collections to the service without blocking the session.

    Every call sends a complete snapshot; calls are neither retried nor
    ordered against each other, and a failure never rolls back local state.
    """

    def __init__(self, api: ScarAPI, settings: AppSettings, *, on_echo: Optional[EchoCallback] = None) -> None:
        self.api = api
        self.settings = settings
        self.on_echo = on_echo
        self._tasks: set[asyncio.Task[bool]] = set()

    @property
    def online(self) -> bool:
        return self.settings.sync.online

    def build_payload(self, collections: UserCollections) -> SyncPayload:
        """Snapshot the collections as they are now; later edits do not leak in."""
        return SyncPayload(
            user_id=self.settings.server.owner_id,
            memory=list(collections.memory),
            goals=[replace(goal) for goal in collections.goals],
            reminders=[replace(reminder) for reminder in collections.reminders],
        )

    def sync(self, collections: UserCollections) -> Optional[asyncio.Task[bool]]:
        """Schedule a push on the running loop; ``None`` when offline.

        The task resolves to ``True`` when the service accepted the payload.
        """
        if not self.online:
            return None
        payload = self.build_payload(collections)
        logger.info("Syncing with cloud...")
        task = asyncio.get_running_loop().create_task(self._push(payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _push(self, payload: SyncPayload) -> bool:
        try:
            merged = await self.api.sync(payload)
        except SyncUnauthorizedError as exc:
            logger.warning("Sync rejected: %s", exc)
            return False
        except httpx.HTTPError as exc:
            logger.warning("Sync failed (offline?): %s", exc)
            return False
        logger.info("Sync response: %s collections", len(merged))
        if self.on_echo is not None:
            self.on_echo(merged)
        return True

    async def drain(self) -> None:
        """Wait for the pushes in flight."""
        while self._tasks:
            pending = list(self._tasks)
            results = await asyncio.gather(*pending, return_exceptions=True)
            self._tasks.difference_update(pending)
            for result in results:
                if isinstance(result, Exception):
                    logger.error("Sync task crashed", exc_info=result)
