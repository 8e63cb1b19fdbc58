"""Match endpoints: list, venues, detail and scorecard."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from iplstats import serializers
from iplstats.database import get_async_session
from iplstats.routes.pagination import PageParams, lenient_int, paginated, pagination
from iplstats.stats.catalog import CatalogService

router = APIRouter(prefix="/matches", tags=["matches"])

logger = logging.getLogger(__name__)


def _optional_id(value: Optional[str]) -> Optional[int]:
    number = lenient_int(value, 0)
    return number or None


@router.get("")
async def list_matches(
    team_id: Optional[str] = Query(None, description="Internal team id (either side)"),
    venue_id: Optional[str] = Query(None, description="Internal venue id"),
    params: PageParams = Depends(pagination(10)),
    session: AsyncSession = Depends(get_async_session),
):
    """Matches newest first."""
    try:
        page = await CatalogService(session).list_matches(
            params.offset,
            params.limit,
            team_id=_optional_id(team_id),
            venue_id=_optional_id(venue_id),
        )
        return paginated([serializers.match_summary(m) for m in page.items], page.total, params)
    except Exception:
        logger.exception("Error fetching matches")
        raise HTTPException(status_code=500, detail="Failed to fetch matches")


# Declared before /{match_id} so "venues" is not parsed as an id
@router.get("/venues/list")
async def list_venues(session: AsyncSession = Depends(get_async_session)):
    try:
        venues = await CatalogService(session).list_venues()
        return [serializers.venue_with_count(v, count) for v, count in venues]
    except Exception:
        logger.exception("Error fetching venues")
        raise HTTPException(status_code=500, detail="Failed to fetch venues")


@router.get("/{match_id}")
async def get_match(match_id: int, session: AsyncSession = Depends(get_async_session)):
    """Full match: teams, venue, toss, result and every innings with its scorecard."""
    try:
        match = await CatalogService(session).get_match(match_id)
        if match is None:
            raise HTTPException(status_code=404, detail="Match not found")
        return serializers.match_detail(match)
    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Error fetching match {match_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch match")


@router.get("/{match_id}/scorecard")
async def match_scorecard(match_id: int, session: AsyncSession = Depends(get_async_session)):
    try:
        innings = await CatalogService(session).match_scorecard(match_id)
        if not innings:
            raise HTTPException(status_code=404, detail="Scorecard not found")
        return [serializers.innings_detail(i) for i in innings]
    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Error fetching scorecard for match {match_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch scorecard")
