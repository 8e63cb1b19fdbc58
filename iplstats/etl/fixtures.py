"""
Fixture loader for the static IPL JSON dump.

Reads never raise: every failure comes back as a ReadFailure and is logged,
so the pipeline can treat it as "nothing to seed" for that category.

Layout under DATA_PATH:
    teams/teams.json            list of teams
    squads/squads.json          list of {team_id, players: [...]}
    matches/matches.json        list of matches
    scorecards/*.json           one file per match
    standings/standings.json    {standings: [{round, standings: [...]}]}
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from iplstats.telemetry.metrics import record_fixture_failure

logger = logging.getLogger(__name__)


class ReadFailureKind(str, Enum):
    MISSING = "missing"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class ReadFailure:
    """Why a fixture file produced no data."""

    path: Path
    kind: ReadFailureKind
    message: str


@dataclass(frozen=True)
class FixtureRead:
    """Outcome of reading one fixture file: parsed data or a failure."""

    path: Path
    data: Any = None
    failure: Optional[ReadFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def failed(cls, path: Path, kind: ReadFailureKind, message: str) -> "FixtureRead":
        logger.warning(f"Fixture read failed ({kind.value}): {path}: {message}")
        record_fixture_failure(kind.value)
        return cls(path=path, failure=ReadFailure(path=path, kind=kind, message=message))


def read_json(path: Path | str) -> FixtureRead:
    """Read and parse one JSON file."""
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError:
        return FixtureRead.failed(path, ReadFailureKind.MISSING, "file not found")
    except json.JSONDecodeError as e:
        return FixtureRead.failed(path, ReadFailureKind.MALFORMED, f"invalid JSON: {e}")
    except (OSError, UnicodeDecodeError) as e:
        return FixtureRead.failed(path, ReadFailureKind.MALFORMED, str(e))
    return FixtureRead(path=path, data=data)


def scan_json(directory: Path | str, suffix: str = ".json") -> list[FixtureRead]:
    """
    Read every file in `directory` whose name ends with `suffix`.

    Files are visited in name order. A malformed file yields a failed read
    and the scan continues. A missing directory yields an empty list.
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.warning(f"Fixture directory not found: {directory}")
        return []
    paths = sorted(p for p in directory.iterdir() if p.is_file() and p.name.endswith(suffix))
    return [read_json(p) for p in paths]


def _expect(read: FixtureRead, kind: type, what: str) -> FixtureRead:
    if read.ok and not isinstance(read.data, kind):
        return FixtureRead.failed(read.path, ReadFailureKind.MALFORMED, f"expected {what}")
    return read


class FixtureSet:
    """Typed access to the fixture files of one tournament dump."""

    TEAMS = Path("teams") / "teams.json"
    SQUADS = Path("squads") / "squads.json"
    MATCHES = Path("matches") / "matches.json"
    SCORECARDS = Path("scorecards")
    STANDINGS = Path("standings") / "standings.json"

    def __init__(self, root: Path | str):
        self.root = Path(root)

    def teams(self) -> FixtureRead:
        return _expect(read_json(self.root / self.TEAMS), list, "a list of teams")

    def squads(self) -> FixtureRead:
        return _expect(read_json(self.root / self.SQUADS), list, "a list of squads")

    def matches(self) -> FixtureRead:
        return _expect(read_json(self.root / self.MATCHES), list, "a list of matches")

    def scorecards_dir_exists(self) -> bool:
        return (self.root / self.SCORECARDS).is_dir()

    def scorecards(self) -> list[FixtureRead]:
        return [
            _expect(read, dict, "a scorecard object")
            for read in scan_json(self.root / self.SCORECARDS)
        ]

    def standings(self) -> FixtureRead:
        read = _expect(read_json(self.root / self.STANDINGS), dict, "a standings object")
        if read.ok and not isinstance(read.data.get("standings"), list):
            return FixtureRead.failed(read.path, ReadFailureKind.MALFORMED, "missing 'standings' list")
        return read
