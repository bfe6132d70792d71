from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from scar_server.api import ai_router, health_router, sync_router
from scar_server.core.config import get_settings
from scar_server.core.context import bind_request_id
from scar_server.core.logger import get_logger

config = get_settings()
logger = get_logger("server")


@asynccontextmanager
async def _lifespan(app: FastAPI):
    logger.info("SCAR backend running on http://%s:%s", config.host, config.port)
    yield
    logger.info("SCAR backend stopped")


app = FastAPI(title="SCAR sync service", lifespan=_lifespan)


@app.middleware("http")
async def _request_id_middleware(request, call_next):
    rid = bind_request_id(request.headers.get("X-Request-Id"))
    response = await call_next(request)
    response.headers["X-Request-Id"] = rid
    return response


_allow_credentials = config.cors_origins != ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(sync_router)
app.include_router(ai_router)

# Serve the browser front end last so API routes take precedence.
_static_dir = Path(config.static_dir)
if _static_dir.is_dir():
    app.mount("/", StaticFiles(directory=str(_static_dir), html=True), name="public")
