"""
Dashboard pages (server-rendered HTML).

Pages read through the same catalog/stats services as the JSON API.
A failure renders the error state with HTTP 500; empty tables render the
empty state.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from iplstats.dashboard import render
from iplstats.database import get_async_session
from iplstats.routes.pagination import PageParams, pagination, total_pages
from iplstats.stats.catalog import CatalogService
from iplstats.stats.service import StatsService
from iplstats.telemetry import record_api_error

router = APIRouter(prefix="/dashboard", tags=["dashboard"], include_in_schema=False)

logger = logging.getLogger(__name__)


def _error_page(title: str, active: str, status_code: int = 500, message: Optional[str] = None) -> HTMLResponse:
    record_api_error("dashboard", status_code)
    content = render.render_error_page(title, message or render.DEFAULT_ERROR_MESSAGE, active)
    return HTMLResponse(content=content, status_code=status_code)


@router.get("", response_class=HTMLResponse)
async def overview(session: AsyncSession = Depends(get_async_session)):
    try:
        stats = StatsService(session)
        summary = await stats.summary()
        batsmen = await stats.top_batsmen(5)
        performance = await stats.team_performance()
        standings = await stats.standings()
        return HTMLResponse(render.render_overview(summary, batsmen, performance, standings))
    except Exception:
        logger.exception("Error rendering dashboard overview")
        return _error_page("Tournament Overview", "/dashboard")


@router.get("/teams", response_class=HTMLResponse)
async def teams_page(
    params: PageParams = Depends(pagination(10)),
    session: AsyncSession = Depends(get_async_session),
):
    try:
        page = await CatalogService(session).list_teams(params.offset, params.limit)
        standings = await StatsService(session).standings()
        return HTMLResponse(render.render_teams(
            page.items, standings, params.page, total_pages(page.total, params.limit),
        ))
    except Exception:
        logger.exception("Error rendering teams page")
        return _error_page("Teams", "/dashboard/teams")


@router.get("/players", response_class=HTMLResponse)
async def players_page(
    search: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    params: PageParams = Depends(pagination(20)),
    session: AsyncSession = Depends(get_async_session),
):
    try:
        page = await CatalogService(session).list_players(
            params.offset, params.limit, role=role or None, search=search or None,
        )
        stats = StatsService(session)
        batsmen = await stats.top_batsmen(5)
        bowlers = await stats.top_bowlers(5)
        return HTMLResponse(render.render_players(
            page.items,
            params.page,
            total_pages(page.total, params.limit),
            page.total,
            search,
            role,
            batsmen,
            bowlers,
        ))
    except Exception:
        logger.exception("Error rendering players page")
        return _error_page("Players", "/dashboard/players")


@router.get("/matches", response_class=HTMLResponse)
async def matches_page(
    params: PageParams = Depends(pagination(10)),
    session: AsyncSession = Depends(get_async_session),
):
    try:
        page = await CatalogService(session).list_matches(params.offset, params.limit)
        return HTMLResponse(render.render_matches(
            page.items, params.page, total_pages(page.total, params.limit),
        ))
    except Exception:
        logger.exception("Error rendering matches page")
        return _error_page("Matches", "/dashboard/matches")


@router.get("/matches/{match_id}", response_class=HTMLResponse)
async def match_page(match_id: int, session: AsyncSession = Depends(get_async_session)):
    try:
        match = await CatalogService(session).get_match(match_id)
    except Exception:
        logger.exception(f"Error rendering match {match_id}")
        return _error_page("Match", "/dashboard/matches")

    if match is None:
        return _error_page("Match", "/dashboard/matches", status_code=404, message="Match not found.")
    return HTMLResponse(render.render_match(match))
