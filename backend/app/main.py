"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.models import router as models_router
from backend.app.api.routes.motivation import router as motivation_router
from backend.app.api.routes.plans import router as plans_router
from backend.app.core.errors import normalize_unknown_error
from backend.app.core.logging import EVENT_APP_START, EVENT_CONFIG_LOADED, log_event, setup_logging
from backend.app.core.settings import settings

setup_logging(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    log_event(logger, "info", EVENT_APP_START)
    log_event(logger, "info", EVENT_CONFIG_LOADED, **settings.safe_dump())
    if not settings.is_llm_configured:
        logger.warning("GEMINI_API_KEY is not set — plan generation will return 401")
    logger.info("Fitness Plan Generator API ready")
    yield
    logger.info("Fitness Plan Generator API shutting down")


app = FastAPI(
    title="Fitness Plan Generator API",
    version="0.1.0",
    description="Generates workout, diet and motivation plans from a user profile.",
    lifespan=lifespan,
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler: log details, return safe generic message."""
    error = normalize_unknown_error(exc, operation=f"{request.method} {request.url.path}")
    return JSONResponse(
        status_code=error.http_status,
        content={"detail": error.user_message},
    )


app.include_router(health_router, tags=["health"])
app.include_router(plans_router, tags=["plans"])
app.include_router(models_router, tags=["models"])
app.include_router(motivation_router, tags=["motivation"])
