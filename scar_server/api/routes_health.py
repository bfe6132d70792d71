from __future__ import annotations

from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from fastapi import APIRouter

from scar_server.core.config import get_settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def get_health() -> dict[str, object]:
    """Return the service health."""
    try:
        pkg_version = version("scar")
    except PackageNotFoundError:  # pragma: no cover - depends on installation
        pkg_version = "unknown"

    settings = get_settings()
    data_file = Path(settings.data_file)

    return {
        "status": "ok",
        "version": pkg_version,
        "time": datetime.now(timezone.utc).isoformat(),
        "data_file": str(data_file),
        "data_ok": data_file.exists(),
    }
