"""FastAPI application exposing circular resolution to the client layer."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from circular_lockin.config import get_settings
from circular_lockin.pipeline.pipeline import LockInPipeline

from .routes.health import router as health_router
from .routes.parse import router as parse_router
from .routes.unlock import router as unlock_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the pipeline (and its HTTP client) at startup, close it at shutdown."""
    settings = get_settings()

    logger.info("lifespan.startup", curl_binary=settings.CURL_BINARY)

    # Shared across requests so the session cookie cache is reused
    pipeline = LockInPipeline.from_settings(settings)
    app.state.pipeline = pipeline

    logger.info("lifespan.ready")
    yield

    # Shutdown
    logger.info("lifespan.shutdown")
    await pipeline.aclose()


app = FastAPI(
    title="circular-lockin",
    description="Resolves exchange listing circulars into share unlock timelines",
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(unlock_router)
app.include_router(parse_router)
