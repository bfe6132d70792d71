"""Filesystem helpers for the SCAR client."""

from __future__ import annotations

import os
from pathlib import Path


def client_root() -> Path:
    """Root folder holding local configuration and collections.

    ``SCAR_HOME`` overrides the default location inside the package.
    """
    override = os.environ.get("SCAR_HOME")
    if override:
        return Path(override)
    return Path(__file__).resolve().parents[1]


def config_dir() -> Path:
    """Directory storing local settings."""
    root = client_root() / "config"
    root.mkdir(parents=True, exist_ok=True)
    return root


def data_dir() -> Path:
    """Directory storing the persisted collections."""
    root = client_root() / "data"
    root.mkdir(parents=True, exist_ok=True)
    return root
