"""Core routes: service index, health, metrics."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from iplstats.config import get_settings
from iplstats.database import get_async_session
from iplstats.security import HEALTH_RATE_LIMIT, limiter
from iplstats.telemetry import get_metrics_text

router = APIRouter(tags=["core"])

logger = logging.getLogger(__name__)
settings = get_settings()


class HealthResponse(BaseModel):
    status: str
    database: str


@router.get("/")
async def index():
    """Service index: name, version and entry points."""
    return {
        "message": settings.API_TITLE,
        "version": settings.API_VERSION,
        "documentation": "/api-docs",
        "dashboard": "/dashboard",
        "endpoints": {
            "teams": "/api/teams",
            "players": "/api/players",
            "matches": "/api/matches",
            "stats": "/api/stats",
        },
    }


@router.get("/api/health", response_model=HealthResponse)
@limiter.limit(HEALTH_RATE_LIMIT)
async def health_check(request: Request, session: AsyncSession = Depends(get_async_session)):
    """Health check endpoint. Always 200; `database` reports connectivity."""
    try:
        await session.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Health check database ping failed: {e}")
        database = "unavailable"
    return HealthResponse(status="ok", database=database)


@router.get("/metrics")
async def prometheus_metrics():
    """
    Prometheus metrics endpoint.

    Exposes ingestion outcome counters, fixture read failures and API error
    counts. Labels are low-cardinality only.
    """
    content, content_type = get_metrics_text()
    return PlainTextResponse(content=content, media_type=content_type)
