"""
Field parsers for the IPL fixture files.

Fixture values arrive as ints, floats or strings ("54", "145.45", "180/5")
depending on which file wrote them. Counting fields fall back to 0 and
rate fields fall back to None; see iplstats.stats.rates for the sentinel
convention.
"""

import math
import re
from datetime import datetime, timezone
from typing import Any, Optional

from iplstats.etl.base import (
    BattingData,
    BowlingData,
    FixtureRecordError,
    InningsData,
    MatchData,
    PlayerData,
    SquadEntry,
    StandingData,
    TeamData,
    VenueData,
)
from iplstats.stats.rates import overs_to_balls

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")

DEFAULT_ROUND = "Final"
TOSS_DECISIONS = {1: "bat", 2: "bowl"}
# Natural keys are stored in signed 64-bit columns
MAX_KEY = 2**63 - 1


# ---------------------------------------------------------------------------
# Primitive parsers
# ---------------------------------------------------------------------------

def parse_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    """
    Parse the leading integer of a fixture value.

    Examples:
        54        -> 54
        "54"      -> 54
        "54*"     -> 54
        12.9      -> 12
        "n/a"     -> default
        None      -> default
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else default


def parse_optional_int(value: Any) -> Optional[int]:
    return parse_int(value, default=None)


def parse_optional_float(value: Any) -> Optional[float]:
    """Parse a rate field. Absent or unparseable values become None, not 0."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = _LEADING_FLOAT.match(str(value))
        if not match:
            return None
        number = float(match.group(1))
    return number if math.isfinite(number) else None


def parse_ref(value: Any) -> Optional[int]:
    """Natural-key reference; 0, negatives and out-of-range keys mean "no reference"."""
    key = parse_optional_int(value)
    if key is None or key <= 0 or key > MAX_KEY:
        return None
    return key


def optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_score(score: Any) -> tuple[int, int]:
    """
    Split combined "runs/wickets" notation.

    Examples:
        "180/5"  -> (180, 5)
        "210"    -> (210, 0)
        None     -> (0, 0)
    """
    if score is None:
        return 0, 0
    runs, _, wickets = str(score).partition("/")
    return parse_int(runs), parse_int(wickets)


def default_abbreviation(title: str) -> str:
    """First three letters of the team title, uppercased."""
    return title.strip()[:3].upper()


def parse_toss_decision(value: Any) -> Optional[str]:
    return TOSS_DECISIONS.get(parse_optional_int(value))


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse "2022-03-26 14:00:00" or ISO-8601 into an aware UTC datetime.

    Fixture timestamps without an offset are GMT.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip().replace("Z", "+00:00")
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _require_key(raw: Any, field: str, entity: str) -> int:
    if not isinstance(raw, dict):
        raise FixtureRecordError(f"{entity} record is not an object")
    key = parse_ref(raw.get(field))
    if key is None:
        raise FixtureRecordError(f"{entity} record without {field}")
    return key


def _nested(raw: dict, field: str) -> dict:
    value = raw.get(field)
    return value if isinstance(value, dict) else {}


# ---------------------------------------------------------------------------
# Record parsers (one fixture record -> one DTO)
# ---------------------------------------------------------------------------

def parse_team(raw: dict) -> TeamData:
    tid = _require_key(raw, "tid", "team")
    title = optional_str(raw.get("title"))
    if title is None:
        raise FixtureRecordError(f"team {tid} without title")
    return TeamData(
        tid=tid,
        title=title,
        abbreviation=optional_str(raw.get("abbr")) or default_abbreviation(title),
        logo_url=optional_str(raw.get("logo_url")),
        thumb_url=optional_str(raw.get("thumb_url")),
        country=optional_str(raw.get("country")) or "in",
        sex=optional_str(raw.get("sex")) or "male",
    )


def parse_player(raw: dict) -> PlayerData:
    pid = _require_key(raw, "pid", "player")
    return PlayerData(
        pid=pid,
        title=optional_str(raw.get("title")) or f"Player {pid}",
        short_name=optional_str(raw.get("short_name")),
        first_name=optional_str(raw.get("first_name")),
        middle_name=optional_str(raw.get("middle_name")),
        last_name=optional_str(raw.get("last_name")),
        birthdate=optional_str(raw.get("birthdate")),
        birthplace=optional_str(raw.get("birthplace")),
        country=optional_str(raw.get("country")),
        playing_role=optional_str(raw.get("playing_role")),
        batting_style=optional_str(raw.get("batting_style")),
        bowling_style=optional_str(raw.get("bowling_style")),
        fielding_position=optional_str(raw.get("fielding_position")),
        nationality=optional_str(raw.get("nationality")),
        thumb_url=optional_str(raw.get("thumb_url")),
        logo_url=optional_str(raw.get("logo_url")),
        fantasy_rating=parse_optional_float(raw.get("fantasy_player_rating")),
    )


def parse_squad_entry(raw: dict) -> SquadEntry:
    player = parse_player(raw)
    return SquadEntry(
        player=player,
        role=player.playing_role,
        role_str=optional_str(raw.get("role_str")),
    )


def parse_venue(raw: dict) -> VenueData:
    if not isinstance(raw, dict):
        raise FixtureRecordError("venue record is not an object")
    venue_id = optional_str(raw.get("venue_id"))
    if venue_id is None:
        raise FixtureRecordError("venue record without venue_id")
    return VenueData(
        venue_id=venue_id,
        name=optional_str(raw.get("name")) or f"Venue {venue_id}",
        location=optional_str(raw.get("location")),
        country=optional_str(raw.get("country")),
        timezone=optional_str(raw.get("timezone")),
    )


def parse_match(raw: dict) -> MatchData:
    match_id = _require_key(raw, "match_id", "match")
    toss = _nested(raw, "toss")
    venue = _nested(raw, "venue")
    umpires = raw.get("umpires")
    if isinstance(umpires, list):
        umpires = ", ".join(str(u) for u in umpires)

    return MatchData(
        match_id=match_id,
        title=optional_str(raw.get("title")) or f"Match {match_id}",
        short_title=optional_str(raw.get("short_title")),
        subtitle=optional_str(raw.get("subtitle")),
        match_number=optional_str(raw.get("match_number")),
        format=optional_str(raw.get("format_str")) or "T20",
        status=optional_str(raw.get("status_str")),
        status_note=optional_str(raw.get("status_note")),
        date_start=parse_datetime(raw.get("date_start")),
        date_end=parse_datetime(raw.get("date_end")),
        result=optional_str(raw.get("result")),
        win_margin=optional_str(raw.get("win_margin")),
        toss_text=optional_str(toss.get("text")),
        toss_decision=parse_toss_decision(toss.get("decision")),
        umpires=optional_str(umpires),
        referee=optional_str(raw.get("referee")),
        team_a_tid=parse_ref(_nested(raw, "teama").get("team_id")),
        team_b_tid=parse_ref(_nested(raw, "teamb").get("team_id")),
        venue_key=optional_str(venue.get("venue_id")),
        winning_team_tid=parse_ref(raw.get("winning_team_id")),
        toss_winner_tid=parse_ref(toss.get("winner")),
        man_of_the_match_pid=parse_ref(_nested(raw, "man_of_the_match").get("pid")),
    )


def parse_innings(raw: dict) -> InningsData:
    iid = _require_key(raw, "iid", "innings")
    total_runs, total_wickets = parse_score(raw.get("scores"))
    equations = _nested(raw, "equations")
    extras = _nested(raw, "extra_runs")

    total_overs = optional_str(equations.get("overs")) or optional_str(raw.get("overs"))
    run_rate = parse_optional_float(equations.get("runrate"))
    if overs_to_balls(total_overs) == 0:
        run_rate = None

    return InningsData(
        iid=iid,
        innings_number=parse_int(raw.get("number"), default=1),
        name=optional_str(raw.get("name")),
        short_name=optional_str(raw.get("short_name")),
        status=parse_optional_int(raw.get("status")),
        total_runs=total_runs,
        total_wickets=total_wickets,
        total_overs=total_overs,
        run_rate=run_rate,
        target=parse_optional_int(raw.get("target")),
        extras_byes=parse_int(extras.get("byes")),
        extras_leg_byes=parse_int(extras.get("legbyes")),
        extras_wides=parse_int(extras.get("wides")),
        extras_no_balls=parse_int(extras.get("noballs")),
        extras_total=parse_int(extras.get("total")),
        batting_team_tid=parse_ref(raw.get("batting_team_id")),
        fielding_team_tid=parse_ref(raw.get("fielding_team_id")),
    )


def parse_batting(raw: dict, position: int) -> BattingData:
    """Batting line; `position` is the 1-based order of appearance in the source list."""
    if not isinstance(raw, dict):
        raise FixtureRecordError("batsman record is not an object")
    balls_faced = parse_int(raw.get("balls_faced"))
    strike_rate = parse_optional_float(raw.get("strike_rate"))
    if balls_faced == 0:
        strike_rate = None

    return BattingData(
        pid=parse_ref(raw.get("batsman_id")),
        position=position,
        runs=parse_int(raw.get("runs")),
        balls_faced=balls_faced,
        fours=parse_int(raw.get("fours")),
        sixes=parse_int(raw.get("sixes")),
        strike_rate=strike_rate,
        how_out=optional_str(raw.get("how_out")),
        dismissal=optional_str(raw.get("dismissal")),
        bowler_pid=parse_ref(raw.get("bowler_id")),
    )


def parse_bowling(raw: dict) -> BowlingData:
    if not isinstance(raw, dict):
        raise FixtureRecordError("bowler record is not an object")
    overs = optional_str(raw.get("overs"))
    economy = parse_optional_float(raw.get("econ"))
    if overs_to_balls(overs) == 0:
        economy = None

    return BowlingData(
        pid=parse_ref(raw.get("bowler_id")),
        overs=overs,
        maidens=parse_int(raw.get("maidens")),
        runs_conceded=parse_int(raw.get("runs_conceded")),
        wickets=parse_int(raw.get("wickets")),
        economy=economy,
        no_balls=parse_int(raw.get("noballs")),
        wides=parse_int(raw.get("wides")),
        dot_balls=parse_int(raw.get("run0")),
    )


def round_name(round_raw: dict) -> str:
    """Round label of a standings block; "Final" when absent."""
    return optional_str(_nested(round_raw, "round").get("name")) or DEFAULT_ROUND


def parse_standing(raw: dict, round_label: str = DEFAULT_ROUND) -> StandingData:
    if not isinstance(raw, dict):
        raise FixtureRecordError("standing record is not an object")
    return StandingData(
        team_tid=parse_ref(raw.get("team_id")),
        round=round_label or DEFAULT_ROUND,
        played=parse_int(raw.get("played")),
        wins=parse_int(raw.get("win")),
        losses=parse_int(raw.get("loss")),
        ties=parse_int(raw.get("tied")),
        no_result=parse_int(raw.get("nr")),
        points=parse_int(raw.get("points")),
        net_run_rate=parse_optional_float(raw.get("netrr")),
        position=parse_optional_int(raw.get("position")),
    )
