from __future__ import annotations

from functools import lru_cache
from typing import Any, Optional

from fastapi import APIRouter, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from scar_server.core.config import get_settings
from scar_server.core.errors import DataFileError, UnauthorizedSync, error_response
from scar_server.core.context import current_request_id
from scar_server.core.userdata import UserDataStore


router = APIRouter(prefix="/api", tags=["sync"])


class GoalItem(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    text: str
    completed: bool = False
    created_at: Optional[str] = Field(default=None, alias="createdAt")


class ReminderItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    text: str
    time: Optional[str] = None
    id: int


class SyncRequest(BaseModel):
    """Envelope only: items are checked once the identity is accepted."""

    memory: Optional[list[Any]] = None
    goals: Optional[list[Any]] = None
    reminders: Optional[list[Any]] = None
    user_id: Optional[str] = Field(default=None, alias="userId")


_MEMORY = TypeAdapter(list[str])
_GOALS = TypeAdapter(list[GoalItem])
_REMINDERS = TypeAdapter(list[ReminderItem])


@lru_cache()
def get_user_data_store() -> UserDataStore:
    settings = get_settings()
    return UserDataStore(settings.data_file, owner_id=settings.owner_id)


def _validate(adapter: TypeAdapter, field: str, items: Optional[list[Any]]) -> Optional[list[Any]]:
    if items is None:
        return None
    try:
        parsed = adapter.validate_python(items)
    except ValidationError as exc:
        errors = [{**error, "loc": ("body", field, *error["loc"])} for error in exc.errors(include_url=False)]
        raise RequestValidationError(errors) from exc
    return [item.model_dump(by_alias=True, exclude_none=True) if isinstance(item, BaseModel) else item for item in parsed]


@router.post("/sync")
async def sync_collections(
    payload: SyncRequest,
    store: UserDataStore = Depends(get_user_data_store),
):
    try:
        store.authorize(payload.user_id)
    except UnauthorizedSync:
        return JSONResponse(status_code=403, content={"error": "Unauthorized"})

    memory = _validate(_MEMORY, "memory", payload.memory)
    goals = _validate(_GOALS, "goals", payload.goals)
    reminders = _validate(_REMINDERS, "reminders", payload.reminders)
    try:
        merged = store.apply_sync(payload.user_id, memory=memory, goals=goals, reminders=reminders)
    except DataFileError as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(exc.code, str(exc), request_id=current_request_id()),
        )
    return {"status": "synced", "data": merged}
