"""FastAPI app, CORS, error mapping and route registration."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from soundcave_admin.config import LOG_LEVEL, WEB_ORIGIN, ensure_data_dir

# Configure logging in the worker process (uvicorn --reload spawns a fresh one)
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(levelname)s: %(name)s: %(message)s",
)

from soundcave_admin.api.state import AppState, get_state
from soundcave_admin.core.errors import (
    ApiError,
    AuthenticationError,
    SoundCaveError,
    ValidationError,
)

# Import routes after state to avoid circular imports
from soundcave_admin.api.routes import entities, pickers, screens, session

__all__ = ["app", "AppState", "get_state"]

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_data_dir()
    logger.info("SoundCave admin API starting")
    yield
    await get_state().aclose()


app = FastAPI(
    title="SoundCave Admin API",
    description="Screen state for the SoundCave admin dashboard",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[WEB_ORIGIN] if WEB_ORIGIN else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _status_for(exc: SoundCaveError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, AuthenticationError):
        return 401
    if isinstance(exc, ApiError):
        return 502
    return 400


@app.exception_handler(SoundCaveError)
async def soundcave_error_handler(request: Request, exc: SoundCaveError) -> JSONResponse:
    logger.warning("%s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=_status_for(exc),
        content={
            "success": False,
            "error": type(exc).__name__,
            "title": exc.title,
            "message": exc.message,
        },
    )


app.include_router(session.router, prefix="/api/session", tags=["session"])
app.include_router(entities.router, prefix="/api/entities", tags=["entities"])
app.include_router(screens.router, prefix="/api/screens", tags=["screens"])
app.include_router(pickers.router, prefix="/api/pickers", tags=["pickers"])
