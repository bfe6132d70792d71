"""Display-capture collaborator for the live screen toggle."""

from __future__ import annotations

from typing import Protocol


class ScreenCaptureError(RuntimeError):
    """The capture could not be started (refused or unavailable)."""


class ScreenCapture(Protocol):
    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...
