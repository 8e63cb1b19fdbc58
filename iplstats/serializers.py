"""
Response shaping: models and aggregates -> JSON-ready dicts.

Columns come from SQLModel.model_dump(); related entities are inlined as
nested objects (or None). Only relationships the catalog eager-loaded are
touched here.
"""

from typing import Any, Optional

from sqlmodel import SQLModel

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
from iplstats.stats.service import (
    BattingAggregate,
    BattingLeader,
    BowlingAggregate,
    BowlingLeader,
    PlayerAggregates,
    ScoreRecord,
    TeamPerformance,
    TournamentSummary,
)


def dump(obj: Optional[SQLModel]) -> Optional[dict[str, Any]]:
    return obj.model_dump() if obj is not None else None


# ---------------------------------------------------------------------------
# Teams / players
# ---------------------------------------------------------------------------

def player_with_teams(player: Player) -> dict:
    return {
        **player.model_dump(),
        "teams": [
            {"team": dump(tp.team), "role": tp.role, "role_str": tp.role_str}
            for tp in player.teams
        ],
    }


def squad_member(tp: TeamPlayer) -> dict:
    """Player row with the membership role merged in."""
    return {**dump(tp.player), "role": tp.role, "role_str": tp.role_str}


def team_detail(team: Team, standing: Optional[Standing]) -> dict:
    return {
        **team.model_dump(),
        "players": [
            {"role": tp.role, "role_str": tp.role_str, "player": dump(tp.player)}
            for tp in sorted(team.players, key=lambda tp: (tp.player.title, tp.player_id))
        ],
        "latest_standing": dump(standing),
    }


def standing_with_team(standing: Standing) -> dict:
    return {**standing.model_dump(), "team": dump(standing.team)}


# ---------------------------------------------------------------------------
# Matches / scorecards
# ---------------------------------------------------------------------------

def match_summary(match: Match) -> dict:
    return {
        **match.model_dump(),
        "team_a": dump(match.team_a),
        "team_b": dump(match.team_b),
        "venue": dump(match.venue),
        "winning_team": dump(match.winning_team),
        "man_of_the_match": dump(match.man_of_the_match),
    }


def batting_line(row: BattingPerformance) -> dict:
    return {**row.model_dump(), "player": dump(row.player), "bowler": dump(row.bowler)}


def bowling_line(row: BowlingPerformance) -> dict:
    return {**row.model_dump(), "player": dump(row.player)}


def innings_detail(innings: Innings) -> dict:
    return {
        **innings.model_dump(),
        "batting_team": dump(innings.batting_team),
        "fielding_team": dump(innings.fielding_team),
        "batting_performances": [batting_line(b) for b in innings.batting_performances],
        "bowling_performances": [bowling_line(b) for b in innings.bowling_performances],
    }


def match_detail(match: Match) -> dict:
    return {
        **match_summary(match),
        "toss_winner": dump(match.toss_winner),
        "innings": [innings_detail(i) for i in match.innings],
    }


def venue_with_count(venue: Venue, match_count: int) -> dict:
    return {**venue.model_dump(), "match_count": match_count}


def _innings_context(innings: Optional[Innings], side: str) -> Optional[dict]:
    if innings is None:
        return None
    match = innings.match
    return {
        **innings.model_dump(),
        side: dump(getattr(innings, side)),
        "match": {
            **match.model_dump(),
            "team_a": dump(match.team_a),
            "team_b": dump(match.team_b),
        } if match is not None else None,
    }


def batting_with_context(row: BattingPerformance) -> dict:
    return {**row.model_dump(), "innings": _innings_context(row.innings, "batting_team")}


def bowling_with_context(row: BowlingPerformance) -> dict:
    return {**row.model_dump(), "innings": _innings_context(row.innings, "fielding_team")}


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------

def batting_aggregate(stats: BattingAggregate) -> dict:
    return {
        "innings": stats.innings,
        "total_runs": stats.runs,
        "highest_score": stats.highest_score,
        "fours": stats.fours,
        "sixes": stats.sixes,
        "balls_faced": stats.balls_faced,
        "strike_rate": stats.strike_rate,
        "average": stats.average,
    }


def bowling_aggregate(stats: BowlingAggregate) -> dict:
    return {
        "innings": stats.innings,
        "total_wickets": stats.wickets,
        "best_figures": stats.best_figures,
        "runs_conceded": stats.runs_conceded,
        "maidens": stats.maidens,
        "economy": stats.economy,
        "average": stats.average,
    }


def player_detail(
    player: Player,
    batting: list[BattingPerformance],
    bowling: list[BowlingPerformance],
    aggregates: PlayerAggregates,
) -> dict:
    return {
        **player_with_teams(player),
        "batting_performances": [batting_with_context(b) for b in batting],
        "bowling_performances": [bowling_with_context(b) for b in bowling],
        "aggregated_stats": {
            "batting": batting_aggregate(aggregates.batting),
            "bowling": bowling_aggregate(aggregates.bowling),
        },
    }


def batting_leader(leader: BattingLeader) -> dict:
    stats = leader.stats
    return {
        "player": player_with_teams(leader.player) if leader.player else None,
        "stats": {
            "innings": stats.innings,
            "runs": stats.runs,
            "highest_score": stats.highest_score,
            "fours": stats.fours,
            "sixes": stats.sixes,
            "balls_faced": stats.balls_faced,
            "strike_rate": stats.strike_rate,
            "average": stats.average,
        },
    }


def bowling_leader(leader: BowlingLeader) -> dict:
    stats = leader.stats
    return {
        "player": player_with_teams(leader.player) if leader.player else None,
        "stats": {
            "innings": stats.innings,
            "wickets": stats.wickets,
            "best_figures": stats.best_figures,
            "runs_conceded": stats.runs_conceded,
            "maidens": stats.maidens,
            "economy": stats.economy,
            "average": stats.average,
        },
    }


def _record(record: Optional[ScoreRecord], value_key: str) -> Optional[dict]:
    if record is None:
        return None
    return {value_key: record.value, "player": record.player, "match": record.match}


def summary(data: TournamentSummary) -> dict:
    return {
        "overview": {
            "total_matches": data.total_matches,
            "total_teams": data.total_teams,
            "total_players": data.total_players,
            "total_runs": data.total_runs,
            "total_wickets": data.total_wickets,
        },
        "records": {
            "highest_individual_score": _record(data.highest_individual_score, "runs"),
            "best_bowling_figures": _record(data.best_bowling_figures, "wickets"),
        },
    }


def team_performance(perf: TeamPerformance) -> dict:
    return {
        "id": perf.team.id,
        "name": perf.team.title,
        "abbreviation": perf.team.abbreviation,
        "logo_url": perf.team.logo_url,
        "matches_played": perf.matches_played,
        "matches_won": perf.matches_won,
        "win_percentage": perf.win_percentage,
        "standing": dump(perf.standing),
    }
