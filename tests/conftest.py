"""Shared fixtures: in-memory database, fixture-set builder, API client."""

import copy
import json
import os

# Must be set before iplstats modules read settings
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["KEEP_ALIVE_ENABLED"] = "false"
os.environ["SEED_ON_STARTUP"] = "false"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlmodel import SQLModel

import iplstats.models  # noqa: F401
from iplstats.database import create_engine, create_session_factory, get_async_session
from iplstats.etl import run_ingestion


# ---------------------------------------------------------------------------
# Fixture data: two teams, one match, one innings (2 batsmen, 2 bowlers)
# ---------------------------------------------------------------------------

TEAMS = [
    {"tid": 13, "title": "Chennai Super Kings", "abbr": "CSK", "thumb_url": "https://img/csk.png"},
    {"tid": 17, "title": "Kolkata Knight Riders", "abbr": "KKR"},
]

SQUADS = [
    {
        "team_id": 13,
        "players": [
            {"pid": 100, "title": "MS Dhoni", "short_name": "MS Dhoni", "playing_role": "wk",
             "country": "in", "batting_style": "RHB", "role_str": "WK-Batsman"},
            {"pid": 101, "title": "Ravindra Jadeja", "short_name": "R Jadeja", "playing_role": "all",
             "country": "in", "batting_style": "LHB", "bowling_style": "SLA"},
        ],
    },
    {
        "team_id": 17,
        "players": [
            {"pid": 200, "title": "Andre Russell", "short_name": "A Russell", "playing_role": "all",
             "country": "jm", "fantasy_player_rating": "9.5"},
            {"pid": 201, "title": "Umesh Yadav", "short_name": "U Yadav", "playing_role": "bowl",
             "country": "in"},
        ],
    },
]

MATCHES = [
    {
        "match_id": 5001,
        "title": "Chennai Super Kings vs Kolkata Knight Riders",
        "short_title": "CSK vs KKR",
        "subtitle": "1st Match",
        "match_number": "1",
        "format_str": "T20",
        "status_str": "Completed",
        "status_note": "Kolkata Knight Riders won by 6 wickets",
        "date_start": "2022-03-26 14:00:00",
        "date_end": "2022-03-26 18:00:00",
        "teama": {"team_id": 13},
        "teamb": {"team_id": 17},
        "venue": {"venue_id": "84", "name": "Wankhede Stadium", "location": "Mumbai",
                  "country": "India", "timezone": "+05:30"},
        "winning_team_id": 17,
        "result": "KKR won",
        "win_margin": "6 wickets",
        "toss": {"text": "Kolkata Knight Riders elected to bowl", "winner": 17, "decision": 2},
        "man_of_the_match": {"pid": 201, "name": "Umesh Yadav"},
        "umpires": "Nitin Menon, Anil Chaudhary",
        "referee": "Javagal Srinath",
    },
]

SCORECARD = {
    "match_id": 5001,
    "innings": [
        {
            "iid": 9001,
            "number": 1,
            "name": "Chennai Super Kings Inning",
            "short_name": "CSK inn.",
            "status": 3,
            "batting_team_id": 13,
            "fielding_team_id": 17,
            "scores": "131/5",
            "equations": {"overs": "20", "runrate": "6.55"},
            "extra_runs": {"byes": 0, "legbyes": 2, "wides": 3, "noballs": 0, "total": 5},
            "batsmen": [
                {"batsman_id": "100", "runs": "50", "balls_faced": "38", "fours": "7", "sixes": "1",
                 "strike_rate": "131.58", "how_out": "not out", "dismissal": "", "bowler_id": "0"},
                {"batsman_id": "101", "runs": "80", "balls_faced": "50", "fours": "8", "sixes": "3",
                 "strike_rate": "160.00", "how_out": "c Russell b Yadav", "dismissal": "caught",
                 "bowler_id": "201"},
            ],
            "bowlers": [
                {"bowler_id": "201", "overs": "4", "maidens": "0", "runs_conceded": "20",
                 "wickets": "2", "econ": "5.00", "noballs": "0", "wides": "1", "run0": "12"},
                {"bowler_id": "200", "overs": "3.4", "maidens": "0", "runs_conceded": "31",
                 "wickets": "1", "econ": "8.45", "noballs": "0", "wides": "2", "run0": "5"},
            ],
        }
    ],
}

STANDINGS = {
    "standings": [
        {
            "round": {"name": "Final"},
            "standings": [
                {"team_id": 17, "played": 1, "win": 1, "loss": 0, "tied": 0, "nr": 0,
                 "points": 2, "netrr": "0.450", "position": 1},
                {"team_id": 13, "played": 1, "win": 0, "loss": 1, "tied": 0, "nr": 0,
                 "points": 0, "netrr": "-0.450", "position": 2},
            ],
        }
    ]
}


class FixtureBuilder:
    """Writes a fixture dump under a temporary directory."""

    def __init__(self, root):
        self.root = root
        self.teams = copy.deepcopy(TEAMS)
        self.squads = copy.deepcopy(SQUADS)
        self.matches = copy.deepcopy(MATCHES)
        self.scorecards = {"5001.json": copy.deepcopy(SCORECARD)}
        self.standings = copy.deepcopy(STANDINGS)
        self.raw_files: dict[str, str] = {}

    def _write(self, relative: str, payload) -> None:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(payload, str):
            path.write_text(payload, encoding="utf-8")
        else:
            path.write_text(json.dumps(payload), encoding="utf-8")

    def build(self):
        if self.teams is not None:
            self._write("teams/teams.json", self.teams)
        if self.squads is not None:
            self._write("squads/squads.json", self.squads)
        if self.matches is not None:
            self._write("matches/matches.json", self.matches)
        if self.scorecards is not None:
            (self.root / "scorecards").mkdir(parents=True, exist_ok=True)
            for name, payload in self.scorecards.items():
                self._write(f"scorecards/{name}", payload)
        if self.standings is not None:
            self._write("standings/standings.json", self.standings)
        for relative, text in self.raw_files.items():
            self._write(relative, text)
        return self.root


@pytest.fixture
def fixtures(tmp_path):
    return FixtureBuilder(tmp_path / "ipl")


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def engine():
    engine = create_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seeded(session_factory, fixtures):
    """Database loaded from the default fixture set; returns the ingestion report."""
    async with session_factory() as session:
        report = await run_ingestion(session, fixtures.build())
    return report


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def client(session_factory):
    from iplstats.main import app

    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
