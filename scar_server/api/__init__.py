from __future__ import annotations

from .routes_ai import router as ai_router
from .routes_health import router as health_router
from .routes_sync import router as sync_router

__all__ = [
    "ai_router",
    "health_router",
    "sync_router",
]
