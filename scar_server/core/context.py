from __future__ import annotations

import uuid
from contextvars import ContextVar


_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def bind_request_id(incoming: str | None = None) -> str:
    """Bind the caller's request id (or a fresh one) to the current context."""
    rid = incoming or uuid.uuid4().hex
    _request_id.set(rid)
    return rid


def current_request_id() -> str | None:
    return _request_id.get()
