"""Team endpoints: list, detail, matches and squad."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from iplstats import serializers
from iplstats.database import get_async_session
from iplstats.routes.pagination import PageParams, paginated, pagination
from iplstats.stats.catalog import CatalogService

router = APIRouter(prefix="/teams", tags=["teams"])

logger = logging.getLogger(__name__)


@router.get("")
async def list_teams(
    params: PageParams = Depends(pagination(10)),
    session: AsyncSession = Depends(get_async_session),
):
    """All teams ordered by title."""
    try:
        page = await CatalogService(session).list_teams(params.offset, params.limit)
        return paginated([t.model_dump() for t in page.items], page.total, params)
    except Exception:
        logger.exception("Error fetching teams")
        raise HTTPException(status_code=500, detail="Failed to fetch teams")


@router.get("/{team_id}")
async def get_team(team_id: int, session: AsyncSession = Depends(get_async_session)):
    """Team with its squad and most recent standing."""
    try:
        catalog = CatalogService(session)
        team = await catalog.get_team(team_id)
        if team is None:
            raise HTTPException(status_code=404, detail="Team not found")
        standing = await catalog.latest_standing(team_id)
        return serializers.team_detail(team, standing)
    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Error fetching team {team_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch team")


@router.get("/{team_id}/matches")
async def team_matches(
    team_id: int,
    params: PageParams = Depends(pagination(10)),
    session: AsyncSession = Depends(get_async_session),
):
    """Matches where the team played as either side, newest first."""
    try:
        page = await CatalogService(session).team_matches(team_id, params.offset, params.limit)
        return paginated([serializers.match_summary(m) for m in page.items], page.total, params)
    except Exception:
        logger.exception(f"Error fetching matches for team {team_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch team matches")


@router.get("/{team_id}/players")
async def team_players(team_id: int, session: AsyncSession = Depends(get_async_session)):
    try:
        members = await CatalogService(session).team_players(team_id)
        return [serializers.squad_member(tp) for tp in members]
    except Exception:
        logger.exception(f"Error fetching players for team {team_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch team players")
