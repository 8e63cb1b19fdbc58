"""
Stats service: leaderboards, standings and tournament summaries.

Aggregations run in SQL (GROUP BY / SUM / MAX); derived rates are computed
in Python from the summed counts via iplstats.stats.rates. Every query
tolerates an empty table: sums coalesce to 0 and record lookups return None.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

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
)
from iplstats.stats.rates import (
    balls_to_overs,
    batting_average,
    bowling_average,
    economy_rate,
    overs_to_balls,
    strike_rate,
    win_percentage,
)

logger = logging.getLogger(__name__)

DEFAULT_LEADERBOARD_LIMIT = 10


@dataclass
class BattingAggregate:
    innings: int = 0
    runs: int = 0
    balls_faced: int = 0
    fours: int = 0
    sixes: int = 0
    highest_score: int = 0

    @property
    def strike_rate(self) -> Optional[float]:
        return strike_rate(self.runs, self.balls_faced)

    @property
    def average(self) -> Optional[float]:
        return batting_average(self.runs, self.innings)


@dataclass
class BowlingAggregate:
    innings: int = 0
    wickets: int = 0
    runs_conceded: int = 0
    maidens: int = 0
    best_figures: int = 0
    balls_bowled: int = 0

    @property
    def average(self) -> Optional[float]:
        return bowling_average(self.runs_conceded, self.wickets)

    @property
    def economy(self) -> Optional[float]:
        return economy_rate(self.runs_conceded, balls_to_overs(self.balls_bowled))


@dataclass
class BattingLeader:
    player: Optional[Player]
    stats: BattingAggregate


@dataclass
class BowlingLeader:
    player: Optional[Player]
    stats: BowlingAggregate


@dataclass
class PlayerAggregates:
    batting: BattingAggregate = field(default_factory=BattingAggregate)
    bowling: BowlingAggregate = field(default_factory=BowlingAggregate)


@dataclass
class ScoreRecord:
    """A single best performance (highest score, best bowling)."""

    value: int
    player: Optional[str]
    match: Optional[str]


@dataclass
class TournamentSummary:
    total_matches: int = 0
    total_teams: int = 0
    total_players: int = 0
    total_runs: int = 0
    total_wickets: int = 0
    highest_individual_score: Optional[ScoreRecord] = None
    best_bowling_figures: Optional[ScoreRecord] = None


@dataclass
class TeamPerformance:
    team: Team
    matches_played: int = 0
    matches_won: int = 0
    standing: Optional[Standing] = None

    @property
    def win_percentage(self) -> float:
        return win_percentage(self.matches_won, self.matches_played)


def _batting_columns():
    return (
        func.count(BattingPerformance.id).label("innings"),
        func.coalesce(func.sum(BattingPerformance.runs), 0).label("runs"),
        func.coalesce(func.sum(BattingPerformance.balls_faced), 0).label("balls_faced"),
        func.coalesce(func.sum(BattingPerformance.fours), 0).label("fours"),
        func.coalesce(func.sum(BattingPerformance.sixes), 0).label("sixes"),
        func.coalesce(func.max(BattingPerformance.runs), 0).label("highest_score"),
    )


def _bowling_columns():
    return (
        func.count(BowlingPerformance.id).label("innings"),
        func.coalesce(func.sum(BowlingPerformance.wickets), 0).label("wickets"),
        func.coalesce(func.sum(BowlingPerformance.runs_conceded), 0).label("runs_conceded"),
        func.coalesce(func.sum(BowlingPerformance.maidens), 0).label("maidens"),
        func.coalesce(func.max(BowlingPerformance.wickets), 0).label("best_figures"),
    )


def _batting_from_row(row) -> BattingAggregate:
    return BattingAggregate(
        innings=row.innings,
        runs=row.runs,
        balls_faced=row.balls_faced,
        fours=row.fours,
        sixes=row.sixes,
        highest_score=row.highest_score,
    )


def _bowling_from_row(row, balls_bowled: int = 0) -> BowlingAggregate:
    return BowlingAggregate(
        innings=row.innings,
        wickets=row.wickets,
        runs_conceded=row.runs_conceded,
        maidens=row.maidens,
        best_figures=row.best_figures,
        balls_bowled=balls_bowled,
    )


class StatsService:
    """Read-only aggregations over the performance and standings tables."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _players_with_teams(self, player_ids: list[int]) -> dict[int, Player]:
        if not player_ids:
            return {}
        result = await self.session.execute(
            select(Player)
            .where(Player.id.in_(player_ids))
            .options(selectinload(Player.teams).selectinload(TeamPlayer.team))
        )
        return {p.id: p for p in result.scalars().all()}

    async def _balls_bowled(self, player_ids: list[int]) -> dict[int, int]:
        """Legal deliveries per bowler; overs are stored in cricket notation so sum in Python."""
        if not player_ids:
            return {}
        result = await self.session.execute(
            select(BowlingPerformance.player_id, BowlingPerformance.overs)
            .where(BowlingPerformance.player_id.in_(player_ids))
        )
        totals: dict[int, int] = {}
        for player_id, overs in result.all():
            totals[player_id] = totals.get(player_id, 0) + overs_to_balls(overs)
        return totals

    async def top_batsmen(self, limit: int = DEFAULT_LEADERBOARD_LIMIT) -> list[BattingLeader]:
        """Run scorers ordered by total runs desc, player id asc."""
        columns = _batting_columns()
        runs = columns[1]
        result = await self.session.execute(
            select(BattingPerformance.player_id, *columns)
            .group_by(BattingPerformance.player_id)
            .order_by(runs.desc(), BattingPerformance.player_id)
            .limit(limit)
        )
        rows = result.all()
        players = await self._players_with_teams([r.player_id for r in rows])
        return [BattingLeader(player=players.get(r.player_id), stats=_batting_from_row(r)) for r in rows]

    async def top_bowlers(self, limit: int = DEFAULT_LEADERBOARD_LIMIT) -> list[BowlingLeader]:
        """Wicket takers ordered by total wickets desc, player id asc."""
        columns = _bowling_columns()
        wickets = columns[1]
        result = await self.session.execute(
            select(BowlingPerformance.player_id, *columns)
            .group_by(BowlingPerformance.player_id)
            .order_by(wickets.desc(), BowlingPerformance.player_id)
            .limit(limit)
        )
        rows = result.all()
        ids = [r.player_id for r in rows]
        players = await self._players_with_teams(ids)
        balls = await self._balls_bowled(ids)
        return [
            BowlingLeader(
                player=players.get(r.player_id),
                stats=_bowling_from_row(r, balls.get(r.player_id, 0)),
            )
            for r in rows
        ]

    async def standings(self, round: Optional[str] = None) -> list[Standing]:
        """Points table: points desc, net run rate desc (nulls last), id asc."""
        stmt = select(Standing).options(selectinload(Standing.team))
        if round:
            stmt = stmt.where(Standing.round == round)
        stmt = stmt.order_by(
            Standing.points.desc(),
            Standing.net_run_rate.is_(None),
            Standing.net_run_rate.desc(),
            Standing.id,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _count(self, model) -> int:
        result = await self.session.execute(select(func.count()).select_from(model))
        return result.scalar_one()

    async def _best(self, model, column) -> Optional[ScoreRecord]:
        result = await self.session.execute(
            select(model)
            .options(
                selectinload(model.player),
                selectinload(model.innings).selectinload(Innings.match),
            )
            .order_by(column.desc(), model.id)
            .limit(1)
        )
        row = result.scalars().first()
        if row is None:
            return None
        match = row.innings.match if row.innings else None
        return ScoreRecord(
            value=getattr(row, column.key),
            player=row.player.title if row.player else None,
            match=match.short_title if match else None,
        )

    async def summary(self) -> TournamentSummary:
        """Tournament overview counts plus the two headline records."""
        total_runs = await self.session.execute(
            select(func.coalesce(func.sum(BattingPerformance.runs), 0))
        )
        total_wickets = await self.session.execute(
            select(func.coalesce(func.sum(BowlingPerformance.wickets), 0))
        )
        return TournamentSummary(
            total_matches=await self._count(Match),
            total_teams=await self._count(Team),
            total_players=await self._count(Player),
            total_runs=total_runs.scalar_one(),
            total_wickets=total_wickets.scalar_one(),
            highest_individual_score=await self._best(BattingPerformance, BattingPerformance.runs),
            best_bowling_figures=await self._best(BowlingPerformance, BowlingPerformance.wickets),
        )

    async def latest_standings(self) -> dict[int, Standing]:
        """Most recent standing per team (highest round label, then newest row)."""
        result = await self.session.execute(
            select(Standing).order_by(Standing.round.desc(), Standing.id.desc())
        )
        latest: dict[int, Standing] = {}
        for standing in result.scalars().all():
            latest.setdefault(standing.team_id, standing)
        return latest

    async def team_performance(self) -> list[TeamPerformance]:
        """Per-team match counts and win percentage, best win percentage first."""
        teams = (await self.session.execute(select(Team).order_by(Team.title, Team.id))).scalars().all()
        if not teams:
            return []

        played_rows = await self.session.execute(
            select(Team.id, func.count(Match.id))
            .join(Match, or_(Match.team_a_id == Team.id, Match.team_b_id == Team.id))
            .group_by(Team.id)
        )
        played = dict(played_rows.all())

        won_rows = await self.session.execute(
            select(Match.winning_team_id, func.count(Match.id))
            .where(Match.winning_team_id.isnot(None))
            .group_by(Match.winning_team_id)
        )
        won = dict(won_rows.all())

        standings = await self.latest_standings()

        performance = [
            TeamPerformance(
                team=team,
                matches_played=played.get(team.id, 0),
                matches_won=won.get(team.id, 0),
                standing=standings.get(team.id),
            )
            for team in teams
        ]
        # Stable sort keeps title order among equal percentages
        performance.sort(key=lambda p: p.win_percentage, reverse=True)
        return performance

    async def player_aggregates(self, player_id: int) -> PlayerAggregates:
        """Career batting and bowling aggregates for one player (zeros when none)."""
        batting = await self.session.execute(
            select(*_batting_columns()).where(BattingPerformance.player_id == player_id)
        )
        bowling = await self.session.execute(
            select(*_bowling_columns()).where(BowlingPerformance.player_id == player_id)
        )
        balls = await self._balls_bowled([player_id])
        return PlayerAggregates(
            batting=_batting_from_row(batting.one()),
            bowling=_bowling_from_row(bowling.one(), balls.get(player_id, 0)),
        )
