from __future__ import annotations

from typing import Any, Dict


class ScarServerError(Exception):
    """Base class for failures raised by the sync service."""

    code = "SCAR_5000"
    status_code = 500


class UnauthorizedSync(ScarServerError):
    """The payload's identity tag is not the recognized owner."""

    code = "SCAR_4030"
    status_code = 403


class DataFileError(ScarServerError):
    """The remote copy could not be written to disk."""

    code = "SCAR_5001"
    status_code = 500


def error_response(code: str, message: str, *, details: Any | None = None, request_id: str | None = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
        }
    }
    if details is not None:
        payload["error"]["details"] = details
    if request_id is not None:
        payload["error"]["request_id"] = request_id
    return payload
