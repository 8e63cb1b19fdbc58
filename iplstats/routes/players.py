"""Player endpoints: filtered list, profile with career aggregates, innings logs."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from iplstats import serializers
from iplstats.database import get_async_session
from iplstats.routes.pagination import PageParams, paginated, pagination
from iplstats.stats.catalog import CatalogService
from iplstats.stats.service import StatsService

router = APIRouter(prefix="/players", tags=["players"])

logger = logging.getLogger(__name__)


@router.get("")
async def list_players(
    role: Optional[str] = Query(None, description="Playing role: bat, bowl, all, wk"),
    country: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Case-insensitive match on name or short name"),
    params: PageParams = Depends(pagination(20)),
    session: AsyncSession = Depends(get_async_session),
):
    try:
        page = await CatalogService(session).list_players(
            params.offset, params.limit, role=role, country=country, search=search,
        )
        return paginated([p.model_dump() for p in page.items], page.total, params)
    except Exception:
        logger.exception("Error fetching players")
        raise HTTPException(status_code=500, detail="Failed to fetch players")


@router.get("/{player_id}")
async def get_player(player_id: int, session: AsyncSession = Depends(get_async_session)):
    """
    Player profile.

    Includes team memberships, the 10 most recent batting and bowling
    innings, and career aggregates under `aggregated_stats`.
    """
    try:
        catalog = CatalogService(session)
        player = await catalog.get_player(player_id)
        if player is None:
            raise HTTPException(status_code=404, detail="Player not found")

        batting = await catalog.recent_batting(player_id)
        bowling = await catalog.recent_bowling(player_id)
        aggregates = await StatsService(session).player_aggregates(player_id)
        return serializers.player_detail(player, batting, bowling, aggregates)
    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Error fetching player {player_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch player")


@router.get("/{player_id}/batting")
async def player_batting(
    player_id: int,
    params: PageParams = Depends(pagination(20)),
    session: AsyncSession = Depends(get_async_session),
):
    try:
        page = await CatalogService(session).player_batting(player_id, params.offset, params.limit)
        return paginated([serializers.batting_with_context(b) for b in page.items], page.total, params)
    except Exception:
        logger.exception(f"Error fetching batting performances for player {player_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch batting performances")


@router.get("/{player_id}/bowling")
async def player_bowling(
    player_id: int,
    params: PageParams = Depends(pagination(20)),
    session: AsyncSession = Depends(get_async_session),
):
    try:
        page = await CatalogService(session).player_bowling(player_id, params.offset, params.limit)
        return paginated([serializers.bowling_with_context(b) for b in page.items], page.total, params)
    except Exception:
        logger.exception(f"Error fetching bowling performances for player {player_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch bowling performances")
