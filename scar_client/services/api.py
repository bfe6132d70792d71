"""HTTP client used to talk to the SCAR sync service."""

from __future__ import annotations

import asyncio
from typing import Any, Callable

import httpx

from ..config.settings import ServerSettings
from .schemas import SyncPayload


class SyncUnauthorizedError(RuntimeError):
    """The service refused the payload's identity tag."""


class ScarAPI:
    """Async client for the sync service."""

    def __init__(self, server: ServerSettings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.server = server
        self._client = httpx.AsyncClient(
            base_url=server.base_url,
            verify=server.verify_ssl,
            timeout=httpx.Timeout(server.timeout_seconds),
            transport=transport,
        )

    async def sync(self, payload: SyncPayload) -> dict[str, Any]:
        """Push the collections and return the merged copy echoed back."""
        response = await self._client.post("/api/sync", json=payload.to_payload())
        if response.status_code == 403:
            raise SyncUnauthorizedError(f"Sync refused for identity {payload.user_id!r}")
        response.raise_for_status()
        try:
            data = response.json()
        except ValueError as exc:
            raise httpx.DecodingError(f"Non-JSON sync response: {response.text[:200]}") from exc
        merged = data.get("data") if isinstance(data, dict) else None
        return merged if isinstance(merged, dict) else {}

    async def close(self) -> None:
        await self._client.aclose()


def detect_server_status(server: ServerSettings) -> Callable[[], bool]:
    """Return a helper that pings the service."""

    async def _ping() -> bool:
        async with httpx.AsyncClient(base_url=server.base_url, verify=server.verify_ssl) as client:
            try:
                response = await client.get("/health")
                return response.status_code == 200
            except httpx.HTTPError:
                return False

    return lambda: asyncio.run(_ping())
