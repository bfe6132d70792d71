from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel

from scar_server.core.logger import get_logger


router = APIRouter(prefix="/api", tags=["ai"])

logger = get_logger("server")


class AskRequest(BaseModel):
    text: str
    language: str = "en"


def answer(text: str) -> str:
    """Placeholder answer: echo the text, or give the server time."""
    if "time" in text:
        return f"Current server time is {datetime.now().strftime('%H:%M:%S')}"
    return f"You said: {text}"


@router.post("/ai")
async def ask(payload: AskRequest) -> dict[str, str]:
    logger.info("AI request (%s)", payload.language)
    return {"response": answer(payload.text)}
