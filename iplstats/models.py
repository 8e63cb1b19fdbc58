"""Database models using SQLModel."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel


class Team(SQLModel, table=True):
    """IPL franchise."""

    __tablename__ = "teams"

    id: Optional[int] = Field(default=None, primary_key=True)
    tid: int = Field(unique=True, index=True, description="External team ID")
    title: str = Field(max_length=255)
    abbreviation: str = Field(max_length=20)
    logo_url: Optional[str] = Field(default=None, max_length=500)
    thumb_url: Optional[str] = Field(default=None, max_length=500)
    country: str = Field(default="in", max_length=50)
    sex: str = Field(default="male", max_length=20)

    # Relationships
    players: list["TeamPlayer"] = Relationship(back_populates="team")
    standings: list["Standing"] = Relationship(back_populates="team")


class Player(SQLModel, table=True):
    """Canonical player row, one per external player ID."""

    __tablename__ = "players"

    id: Optional[int] = Field(default=None, primary_key=True)
    pid: int = Field(unique=True, index=True, description="External player ID")
    title: str = Field(max_length=255, index=True)
    short_name: Optional[str] = Field(default=None, max_length=255)
    first_name: Optional[str] = Field(default=None, max_length=100)
    middle_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    birthdate: Optional[str] = Field(default=None, max_length=20)
    birthplace: Optional[str] = Field(default=None, max_length=255)
    country: Optional[str] = Field(default=None, max_length=50, index=True)
    playing_role: Optional[str] = Field(default=None, max_length=20, description="bat, bowl, all, wk")
    batting_style: Optional[str] = Field(default=None, max_length=50)
    bowling_style: Optional[str] = Field(default=None, max_length=100)
    fielding_position: Optional[str] = Field(default=None, max_length=50)
    nationality: Optional[str] = Field(default=None, max_length=100)
    thumb_url: Optional[str] = Field(default=None, max_length=500)
    logo_url: Optional[str] = Field(default=None, max_length=500)
    fantasy_rating: Optional[float] = Field(default=None)

    # Relationships
    teams: list["TeamPlayer"] = Relationship(back_populates="player")


class TeamPlayer(SQLModel, table=True):
    """Squad membership. A player belongs to a team at most once."""

    __tablename__ = "team_players"
    __table_args__ = (
        UniqueConstraint("team_id", "player_id", name="uq_team_player"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    team_id: int = Field(foreign_key="teams.id", index=True)
    player_id: int = Field(foreign_key="players.id", index=True)
    role: Optional[str] = Field(default=None, max_length=20)
    role_str: Optional[str] = Field(default=None, max_length=50)

    team: Optional[Team] = Relationship(back_populates="players")
    player: Optional[Player] = Relationship(back_populates="teams")


class Venue(SQLModel, table=True):
    """Stadium where matches are played."""

    __tablename__ = "venues"

    id: Optional[int] = Field(default=None, primary_key=True)
    venue_id: str = Field(unique=True, index=True, max_length=50, description="External venue ID")
    name: str = Field(max_length=255)
    location: Optional[str] = Field(default=None, max_length=255)
    country: Optional[str] = Field(default=None, max_length=100)
    timezone: Optional[str] = Field(default=None, max_length=50)


class Match(SQLModel, table=True):
    """Fixture between two teams. Every reference is nullable (partial ingestion)."""

    __tablename__ = "matches"

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(unique=True, index=True, description="External match ID")
    title: str = Field(max_length=255)
    short_title: Optional[str] = Field(default=None, max_length=100)
    subtitle: Optional[str] = Field(default=None, max_length=100)
    match_number: Optional[str] = Field(default=None, max_length=20)
    format: str = Field(default="T20", max_length=20)
    status: Optional[str] = Field(default=None, max_length=50)
    status_note: Optional[str] = Field(default=None, max_length=255)
    date_start: Optional[datetime] = Field(default=None, index=True, sa_type=DateTime(timezone=True))
    date_end: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    result: Optional[str] = Field(default=None, max_length=100)
    win_margin: Optional[str] = Field(default=None, max_length=100)
    toss_text: Optional[str] = Field(default=None, max_length=255)
    toss_decision: Optional[str] = Field(default=None, max_length=10, description="'bat' or 'bowl'")
    umpires: Optional[str] = Field(default=None, max_length=255)
    referee: Optional[str] = Field(default=None, max_length=100)

    team_a_id: Optional[int] = Field(default=None, foreign_key="teams.id", index=True)
    team_b_id: Optional[int] = Field(default=None, foreign_key="teams.id", index=True)
    venue_id: Optional[int] = Field(default=None, foreign_key="venues.id", index=True)
    winning_team_id: Optional[int] = Field(default=None, foreign_key="teams.id", index=True)
    toss_winner_id: Optional[int] = Field(default=None, foreign_key="teams.id")
    man_of_the_match_id: Optional[int] = Field(default=None, foreign_key="players.id")

    # Relationships
    team_a: Optional[Team] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Match.team_a_id]"},
    )
    team_b: Optional[Team] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Match.team_b_id]"},
    )
    venue: Optional[Venue] = Relationship()
    winning_team: Optional[Team] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Match.winning_team_id]"},
    )
    toss_winner: Optional[Team] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Match.toss_winner_id]"},
    )
    man_of_the_match: Optional[Player] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Match.man_of_the_match_id]"},
    )
    innings: list["Innings"] = Relationship(back_populates="match")


class Innings(SQLModel, table=True):
    """One team's batting turn within a match."""

    __tablename__ = "innings"

    id: Optional[int] = Field(default=None, primary_key=True)
    iid: int = Field(unique=True, index=True, description="External innings ID")
    match_id: int = Field(foreign_key="matches.id", index=True)
    innings_number: int = Field(default=1)
    name: Optional[str] = Field(default=None, max_length=100)
    short_name: Optional[str] = Field(default=None, max_length=50)
    status: Optional[int] = Field(default=None)

    total_runs: int = Field(default=0)
    total_wickets: int = Field(default=0)
    total_overs: Optional[str] = Field(default=None, max_length=10, description="Cricket notation, e.g. '19.4'")
    run_rate: Optional[float] = Field(default=None)
    target: Optional[int] = Field(default=None)

    extras_byes: int = Field(default=0)
    extras_leg_byes: int = Field(default=0)
    extras_wides: int = Field(default=0)
    extras_no_balls: int = Field(default=0)
    extras_total: int = Field(default=0)

    batting_team_id: Optional[int] = Field(default=None, foreign_key="teams.id")
    fielding_team_id: Optional[int] = Field(default=None, foreign_key="teams.id")

    # Relationships
    match: Optional[Match] = Relationship(back_populates="innings")
    batting_team: Optional[Team] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Innings.batting_team_id]"},
    )
    fielding_team: Optional[Team] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[Innings.fielding_team_id]"},
    )
    batting_performances: list["BattingPerformance"] = Relationship(back_populates="innings")
    bowling_performances: list["BowlingPerformance"] = Relationship(back_populates="innings")


class BattingPerformance(SQLModel, table=True):
    """A batsman's line in one innings."""

    __tablename__ = "batting_performances"
    __table_args__ = (
        UniqueConstraint("innings_id", "player_id", name="uq_batting_innings_player"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    innings_id: int = Field(foreign_key="innings.id", index=True)
    player_id: int = Field(foreign_key="players.id", index=True)

    runs: int = Field(default=0)
    balls_faced: int = Field(default=0)
    fours: int = Field(default=0)
    sixes: int = Field(default=0)
    strike_rate: Optional[float] = Field(default=None, description="NULL when not computed")
    how_out: Optional[str] = Field(default=None, max_length=255)
    dismissal: Optional[str] = Field(default=None, max_length=50)
    position: int = Field(default=0, description="1-based batting order")
    bowler_id: Optional[int] = Field(default=None, foreign_key="players.id")

    innings: Optional[Innings] = Relationship(back_populates="batting_performances")
    player: Optional[Player] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[BattingPerformance.player_id]"},
    )
    bowler: Optional[Player] = Relationship(
        sa_relationship_kwargs={"foreign_keys": "[BattingPerformance.bowler_id]"},
    )


class BowlingPerformance(SQLModel, table=True):
    """A bowler's figures in one innings."""

    __tablename__ = "bowling_performances"
    __table_args__ = (
        UniqueConstraint("innings_id", "player_id", name="uq_bowling_innings_player"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    innings_id: int = Field(foreign_key="innings.id", index=True)
    player_id: int = Field(foreign_key="players.id", index=True)

    overs: Optional[str] = Field(default=None, max_length=10)
    maidens: int = Field(default=0)
    runs_conceded: int = Field(default=0)
    wickets: int = Field(default=0)
    economy: Optional[float] = Field(default=None, description="NULL when not computed")
    no_balls: int = Field(default=0)
    wides: int = Field(default=0)
    dot_balls: int = Field(default=0)

    innings: Optional[Innings] = Relationship(back_populates="bowling_performances")
    player: Optional[Player] = Relationship()


class Standing(SQLModel, table=True):
    """Points table row for a team in a round, updated in place on re-ingestion."""

    __tablename__ = "standings"
    __table_args__ = (
        UniqueConstraint("team_id", "round", name="uq_standing_team_round"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    team_id: int = Field(foreign_key="teams.id", index=True)
    round: str = Field(default="Final", max_length=100)
    played: int = Field(default=0)
    wins: int = Field(default=0)
    losses: int = Field(default=0)
    ties: int = Field(default=0)
    no_result: int = Field(default=0)
    points: int = Field(default=0)
    net_run_rate: Optional[float] = Field(default=None)
    position: Optional[int] = Field(default=None)

    team: Optional[Team] = Relationship(back_populates="standings")
