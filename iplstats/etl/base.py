"""Data transfer objects produced from raw fixture records."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


class FixtureRecordError(ValueError):
    """A single fixture record cannot be ingested (missing key, bad shape)."""


class UnresolvedReference(FixtureRecordError):
    """A required natural-key reference does not exist in the store."""

    def __init__(self, entity: str, key):
        self.entity = entity
        self.key = key
        super().__init__(f"unresolved {entity} {key}")


@dataclass
class TeamData:
    """Data transfer object for team information."""

    tid: int
    title: str
    abbreviation: str
    logo_url: Optional[str] = None
    thumb_url: Optional[str] = None
    country: str = "in"
    sex: str = "male"


@dataclass
class PlayerData:
    """Data transfer object for player information."""

    pid: int
    title: str
    short_name: Optional[str] = None
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    birthdate: Optional[str] = None
    birthplace: Optional[str] = None
    country: Optional[str] = None
    playing_role: Optional[str] = None
    batting_style: Optional[str] = None
    bowling_style: Optional[str] = None
    fielding_position: Optional[str] = None
    nationality: Optional[str] = None
    thumb_url: Optional[str] = None
    logo_url: Optional[str] = None
    fantasy_rating: Optional[float] = None


@dataclass
class SquadEntry:
    """A player's appearance in one team's squad list."""

    player: PlayerData
    role: Optional[str] = None
    role_str: Optional[str] = None


@dataclass
class VenueData:
    """Data transfer object for venue information."""

    venue_id: str
    name: str
    location: Optional[str] = None
    country: Optional[str] = None
    timezone: Optional[str] = None


@dataclass
class MatchData:
    """Match record with its cross-file references still as natural keys."""

    match_id: int
    title: str
    short_title: Optional[str] = None
    subtitle: Optional[str] = None
    match_number: Optional[str] = None
    format: str = "T20"
    status: Optional[str] = None
    status_note: Optional[str] = None
    date_start: Optional[datetime] = None
    date_end: Optional[datetime] = None
    result: Optional[str] = None
    win_margin: Optional[str] = None
    toss_text: Optional[str] = None
    toss_decision: Optional[str] = None
    umpires: Optional[str] = None
    referee: Optional[str] = None
    # --- Natural-key references, resolved by the pipeline ---
    team_a_tid: Optional[int] = None
    team_b_tid: Optional[int] = None
    venue_key: Optional[str] = None
    winning_team_tid: Optional[int] = None
    toss_winner_tid: Optional[int] = None
    man_of_the_match_pid: Optional[int] = None


@dataclass
class BattingData:
    """One line of a batting scorecard."""

    pid: Optional[int]
    position: int
    runs: int = 0
    balls_faced: int = 0
    fours: int = 0
    sixes: int = 0
    strike_rate: Optional[float] = None
    how_out: Optional[str] = None
    dismissal: Optional[str] = None
    bowler_pid: Optional[int] = None


@dataclass
class BowlingData:
    """One line of a bowling scorecard."""

    pid: Optional[int]
    overs: Optional[str] = None
    maidens: int = 0
    runs_conceded: int = 0
    wickets: int = 0
    economy: Optional[float] = None
    no_balls: int = 0
    wides: int = 0
    dot_balls: int = 0


@dataclass
class InningsData:
    """Innings header; batsmen and bowlers are parsed record by record."""

    iid: int
    innings_number: int = 1
    name: Optional[str] = None
    short_name: Optional[str] = None
    status: Optional[int] = None
    total_runs: int = 0
    total_wickets: int = 0
    total_overs: Optional[str] = None
    run_rate: Optional[float] = None
    target: Optional[int] = None
    extras_byes: int = 0
    extras_leg_byes: int = 0
    extras_wides: int = 0
    extras_no_balls: int = 0
    extras_total: int = 0
    batting_team_tid: Optional[int] = None
    fielding_team_tid: Optional[int] = None


@dataclass
class StandingData:
    """Points table row keyed by (team, round)."""

    team_tid: Optional[int]
    round: str = "Final"
    played: int = 0
    wins: int = 0
    losses: int = 0
    ties: int = 0
    no_result: int = 0
    points: int = 0
    net_run_rate: Optional[float] = None
    position: Optional[int] = None
