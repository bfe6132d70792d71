"""Persistence helpers for SCAR client settings."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path

from .paths import config_dir
from .settings import AppSettings, ServerSettings, SyncSettings, ToggleSettings, VoiceSettings

logger = logging.getLogger(__name__)


def _settings_path() -> Path:
    return config_dir() / "scar_settings.json"


def load_settings() -> AppSettings:
    """Load settings from disk (defaults when missing or unreadable)."""
    path = _settings_path()
    if not path.exists():
        return AppSettings()

    raw_text = path.read_text(encoding="utf-8").lstrip("\ufeff")
    try:
        data = json.loads(raw_text)
        return AppSettings(
            server=ServerSettings(**data.get("server", {})),
            voice=VoiceSettings(**data.get("voice", {})),
            sync=SyncSettings(**data.get("sync", {})),
            toggles=ToggleSettings(**data.get("toggles", {})),
        )
    except (ValueError, TypeError, AttributeError):
        logger.warning("Ignoring unreadable settings file %s", path, exc_info=True)
        return AppSettings()


def save_settings(settings: AppSettings) -> None:
    """Persist settings to disk."""
    path = _settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(settings), indent=2), encoding="utf-8")
