"""
Catalog queries: filtered, paginated finds and detail lookups.

Relationships are always eager-loaded with selectinload; async sessions
cannot lazy-load on attribute access.
"""

import logging
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from iplstats.models import (
    BattingPerformance,
    BowlingPerformance,
    Innings,
    Match,
    Player,
    Standing,
    Team,
    TeamPlayer,
    Venue,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RECENT_PERFORMANCES = 10


@dataclass
class Page(Generic[T]):
    """One page of a filtered list plus the unpaginated total."""

    items: list[T]
    total: int


# Match list rows carry teams, venue, winner and man of the match
MATCH_SUMMARY_OPTIONS = (
    selectinload(Match.team_a),
    selectinload(Match.team_b),
    selectinload(Match.venue),
    selectinload(Match.winning_team),
    selectinload(Match.man_of_the_match),
)

INNINGS_DETAIL_OPTIONS = (
    selectinload(Innings.batting_team),
    selectinload(Innings.fielding_team),
    selectinload(Innings.batting_performances).selectinload(BattingPerformance.player),
    selectinload(Innings.batting_performances).selectinload(BattingPerformance.bowler),
    selectinload(Innings.bowling_performances).selectinload(BowlingPerformance.player),
)

NEWEST_MATCH_FIRST = (Match.date_start.is_(None), Match.date_start.desc(), Match.id.desc())


def _match_context(innings_attr, team_attr):
    """Innings -> match (with both teams) plus one innings-side team."""
    return (
        selectinload(innings_attr).selectinload(Innings.match).selectinload(Match.team_a),
        selectinload(innings_attr).selectinload(Innings.match).selectinload(Match.team_b),
        selectinload(innings_attr).selectinload(team_attr),
    )


class CatalogService:
    """Lookups behind the teams, players and matches endpoints."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _page(self, stmt, count_stmt, offset: int, limit: int) -> Page:
        # Count and page run sequentially on the same session
        total = (await self.session.execute(count_stmt)).scalar_one()
        result = await self.session.execute(stmt.offset(offset).limit(limit))
        return Page(items=list(result.scalars().all()), total=total)

    # ------------------------------------------------------------------
    # Teams
    # ------------------------------------------------------------------

    async def list_teams(self, offset: int, limit: int) -> Page[Team]:
        stmt = select(Team).order_by(Team.title, Team.id)
        return await self._page(stmt, select(func.count(Team.id)), offset, limit)

    async def get_team(self, team_id: int) -> Optional[Team]:
        result = await self.session.execute(
            select(Team)
            .where(Team.id == team_id)
            .options(selectinload(Team.players).selectinload(TeamPlayer.player))
        )
        return result.scalar_one_or_none()

    async def latest_standing(self, team_id: int) -> Optional[Standing]:
        result = await self.session.execute(
            select(Standing)
            .where(Standing.team_id == team_id)
            .order_by(Standing.round.desc(), Standing.id.desc())
            .limit(1)
        )
        return result.scalars().first()

    async def team_matches(self, team_id: int, offset: int, limit: int) -> Page[Match]:
        played = or_(Match.team_a_id == team_id, Match.team_b_id == team_id)
        stmt = (
            select(Match)
            .where(played)
            .options(*MATCH_SUMMARY_OPTIONS)
            .order_by(*NEWEST_MATCH_FIRST)
        )
        return await self._page(stmt, select(func.count(Match.id)).where(played), offset, limit)

    async def team_players(self, team_id: int) -> list[TeamPlayer]:
        result = await self.session.execute(
            select(TeamPlayer)
            .join(Player, TeamPlayer.player_id == Player.id)
            .where(TeamPlayer.team_id == team_id)
            .options(selectinload(TeamPlayer.player))
            .order_by(Player.title, Player.id)
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    async def list_players(
        self,
        offset: int,
        limit: int,
        role: Optional[str] = None,
        country: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Page[Player]:
        """Players ordered by title; `search` is a case-insensitive substring on title or short name."""
        filters = []
        if role:
            filters.append(Player.playing_role == role)
        if country:
            filters.append(Player.country == country)
        if search:
            pattern = f"%{search.lower()}%"
            filters.append(
                or_(
                    func.lower(Player.title).like(pattern),
                    func.lower(Player.short_name).like(pattern),
                )
            )

        stmt = select(Player).where(*filters).order_by(Player.title, Player.id)
        count_stmt = select(func.count(Player.id)).where(*filters)
        return await self._page(stmt, count_stmt, offset, limit)

    async def get_player(self, player_id: int) -> Optional[Player]:
        result = await self.session.execute(
            select(Player)
            .where(Player.id == player_id)
            .options(selectinload(Player.teams).selectinload(TeamPlayer.team))
        )
        return result.scalar_one_or_none()

    def _batting_query(self, player_id: int):
        return (
            select(BattingPerformance)
            .join(Innings, BattingPerformance.innings_id == Innings.id)
            .join(Match, Innings.match_id == Match.id)
            .where(BattingPerformance.player_id == player_id)
            .options(*_match_context(BattingPerformance.innings, Innings.batting_team))
            .order_by(*NEWEST_MATCH_FIRST, BattingPerformance.id.desc())
        )

    def _bowling_query(self, player_id: int):
        return (
            select(BowlingPerformance)
            .join(Innings, BowlingPerformance.innings_id == Innings.id)
            .join(Match, Innings.match_id == Match.id)
            .where(BowlingPerformance.player_id == player_id)
            .options(*_match_context(BowlingPerformance.innings, Innings.fielding_team))
            .order_by(*NEWEST_MATCH_FIRST, BowlingPerformance.id.desc())
        )

    async def player_batting(self, player_id: int, offset: int, limit: int) -> Page[BattingPerformance]:
        count_stmt = select(func.count(BattingPerformance.id)).where(
            BattingPerformance.player_id == player_id
        )
        return await self._page(self._batting_query(player_id), count_stmt, offset, limit)

    async def player_bowling(self, player_id: int, offset: int, limit: int) -> Page[BowlingPerformance]:
        count_stmt = select(func.count(BowlingPerformance.id)).where(
            BowlingPerformance.player_id == player_id
        )
        return await self._page(self._bowling_query(player_id), count_stmt, offset, limit)

    async def recent_batting(self, player_id: int, limit: int = RECENT_PERFORMANCES) -> list[BattingPerformance]:
        result = await self.session.execute(self._batting_query(player_id).limit(limit))
        return list(result.scalars().all())

    async def recent_bowling(self, player_id: int, limit: int = RECENT_PERFORMANCES) -> list[BowlingPerformance]:
        result = await self.session.execute(self._bowling_query(player_id).limit(limit))
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    async def list_matches(
        self,
        offset: int,
        limit: int,
        team_id: Optional[int] = None,
        venue_id: Optional[int] = None,
    ) -> Page[Match]:
        """Matches newest first, optionally for one team (A or B) and/or one venue."""
        filters = []
        if team_id is not None:
            filters.append(or_(Match.team_a_id == team_id, Match.team_b_id == team_id))
        if venue_id is not None:
            filters.append(Match.venue_id == venue_id)

        stmt = (
            select(Match)
            .where(*filters)
            .options(*MATCH_SUMMARY_OPTIONS)
            .order_by(*NEWEST_MATCH_FIRST)
        )
        count_stmt = select(func.count(Match.id)).where(*filters)
        return await self._page(stmt, count_stmt, offset, limit)

    async def get_match(self, match_id: int) -> Optional[Match]:
        """Match with every related entity; innings by number, batting rows by position."""
        result = await self.session.execute(
            select(Match)
            .where(Match.id == match_id)
            .options(
                *MATCH_SUMMARY_OPTIONS,
                selectinload(Match.toss_winner),
                selectinload(Match.innings).options(*INNINGS_DETAIL_OPTIONS),
            )
        )
        match = result.scalar_one_or_none()
        if match is not None:
            _order_innings(match.innings)
        return match

    async def match_scorecard(self, match_id: int) -> list[Innings]:
        result = await self.session.execute(
            select(Innings)
            .where(Innings.match_id == match_id)
            .options(*INNINGS_DETAIL_OPTIONS)
        )
        innings = list(result.scalars().all())
        _order_innings(innings, bowlers_by_wickets=True)
        return innings

    async def list_venues(self) -> list[tuple[Venue, int]]:
        """Venues by name with the number of matches played at each."""
        result = await self.session.execute(
            select(Venue, func.count(Match.id))
            .outerjoin(Match, Match.venue_id == Venue.id)
            .group_by(Venue.id)
            .order_by(Venue.name, Venue.id)
        )
        return [(venue, count) for venue, count in result.all()]


def _order_innings(innings: list[Innings], bowlers_by_wickets: bool = False) -> None:
    """Sort innings by number and their performance rows in scorecard order, in place."""
    innings.sort(key=lambda i: (i.innings_number, i.id))
    for item in innings:
        item.batting_performances.sort(key=lambda b: (b.position, b.id))
        if bowlers_by_wickets:
            item.bowling_performances.sort(key=lambda b: (-b.wickets, b.id))
        else:
            item.bowling_performances.sort(key=lambda b: b.id)
