"""Tournament statistics endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from iplstats import serializers
from iplstats.config import get_settings
from iplstats.database import get_async_session
from iplstats.routes.pagination import lenient_int
from iplstats.stats.service import DEFAULT_LEADERBOARD_LIMIT, StatsService

router = APIRouter(prefix="/stats", tags=["stats"])

logger = logging.getLogger(__name__)


def leaderboard_limit(limit: Optional[str] = Query(None, description="Number of players")) -> int:
    return min(lenient_int(limit, DEFAULT_LEADERBOARD_LIMIT), get_settings().MAX_PAGE_LIMIT)


@router.get("/standings")
async def standings(
    round: Optional[str] = Query(None, description="Round name, e.g. 'Final'"),
    session: AsyncSession = Depends(get_async_session),
):
    """Points table ordered by points, then net run rate."""
    try:
        rows = await StatsService(session).standings(round=round)
        return [serializers.standing_with_team(s) for s in rows]
    except Exception:
        logger.exception("Error fetching standings")
        raise HTTPException(status_code=500, detail="Failed to fetch standings")


@router.get("/top-batsmen")
async def top_batsmen(
    limit: int = Depends(leaderboard_limit),
    session: AsyncSession = Depends(get_async_session),
):
    try:
        leaders = await StatsService(session).top_batsmen(limit)
        return [serializers.batting_leader(b) for b in leaders]
    except Exception:
        logger.exception("Error fetching top batsmen")
        raise HTTPException(status_code=500, detail="Failed to fetch top batsmen")


@router.get("/top-bowlers")
async def top_bowlers(
    limit: int = Depends(leaderboard_limit),
    session: AsyncSession = Depends(get_async_session),
):
    try:
        leaders = await StatsService(session).top_bowlers(limit)
        return [serializers.bowling_leader(b) for b in leaders]
    except Exception:
        logger.exception("Error fetching top bowlers")
        raise HTTPException(status_code=500, detail="Failed to fetch top bowlers")


@router.get("/summary")
async def summary(session: AsyncSession = Depends(get_async_session)):
    """Overview counts plus highest individual score and best bowling figures."""
    try:
        data = await StatsService(session).summary()
        return serializers.summary(data)
    except Exception:
        logger.exception("Error fetching summary")
        raise HTTPException(status_code=500, detail="Failed to fetch summary")


@router.get("/team-performance")
async def team_performance(session: AsyncSession = Depends(get_async_session)):
    try:
        rows = await StatsService(session).team_performance()
        return [serializers.team_performance(p) for p in rows]
    except Exception:
        logger.exception("Error fetching team performance")
        raise HTTPException(status_code=500, detail="Failed to fetch team performance")
