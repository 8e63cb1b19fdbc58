"""Ingestion pipeline: fixture files -> relational store."""

import logging
import time
from dataclasses import asdict
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from iplstats.db_utils import find_by, get_or_create, upsert
from iplstats.etl.base import FixtureRecordError, UnresolvedReference
from iplstats.etl.fixtures import FixtureSet
from iplstats.etl.parsing import (
    parse_batting,
    parse_bowling,
    parse_innings,
    parse_match,
    parse_ref,
    parse_squad_entry,
    parse_standing,
    parse_team,
    parse_venue,
    round_name,
)
from iplstats.etl.report import IngestionReport, RecordResult
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
from iplstats.telemetry.metrics import record_ingest_duration, record_ingest_result

logger = logging.getLogger(__name__)


def _raw_key(raw: Any, field: str) -> Optional[str]:
    if isinstance(raw, dict) and raw.get(field) is not None:
        return str(raw.get(field))
    return None


class IngestionPipeline:
    """
    Seeds the store from a FixtureSet.

    Categories run in dependency order (teams -> players -> matches ->
    scorecards -> standings) because later files reference earlier ones by
    natural key. Every record runs in its own SAVEPOINT: a failing record is
    rolled back and reported as skipped, the rest of the batch continues.
    """

    def __init__(self, fixtures: FixtureSet, session: AsyncSession):
        self.fixtures = fixtures
        self.session = session
        self.report = IngestionReport()
        # natural key -> internal id
        self._team_ids: dict[int, int] = {}
        self._player_ids: dict[int, int] = {}
        self._venue_ids: dict[str, int] = {}
        self._match_ids: dict[int, int] = {}

    # ------------------------------------------------------------------
    # Reference resolution
    # ------------------------------------------------------------------

    async def _resolve(self, cache: dict, model, column: str, key) -> Optional[int]:
        if key is None:
            return None
        if key in cache:
            return cache[key]
        row = await find_by(self.session, model, **{column: key})
        if row is None:
            return None
        cache[key] = row.id
        return row.id

    async def resolve_team(self, tid: Optional[int]) -> Optional[int]:
        return await self._resolve(self._team_ids, Team, "tid", tid)

    async def resolve_player(self, pid: Optional[int]) -> Optional[int]:
        return await self._resolve(self._player_ids, Player, "pid", pid)

    async def resolve_venue(self, venue_id: Optional[str]) -> Optional[int]:
        return await self._resolve(self._venue_ids, Venue, "venue_id", venue_id)

    async def resolve_match(self, match_id: Optional[int]) -> Optional[int]:
        return await self._resolve(self._match_ids, Match, "match_id", match_id)

    # ------------------------------------------------------------------
    # Per-record execution
    # ------------------------------------------------------------------

    async def _apply(
        self,
        category: str,
        key: Optional[str],
        operation: Callable[[], Awaitable[RecordResult]],
    ) -> RecordResult:
        """Run one record's mutation inside a savepoint and account for it."""
        try:
            async with self.session.begin_nested():
                result = await operation()
        except FixtureRecordError as e:
            result = RecordResult.skip(key, str(e))
        except IntegrityError as e:
            logger.debug(f"Integrity error on {category} {key}: {e.orig}")
            result = RecordResult.skip(key, "duplicate")
        except SQLAlchemyError as e:
            logger.warning(f"Database error on {category} {key}: {e}")
            result = RecordResult.skip(key, f"database error: {e.__class__.__name__}")
        except (TypeError, ValueError, OverflowError) as e:
            # Values the parsers let through but the driver cannot bind
            logger.warning(f"Invalid {category} record {key}: {e}")
            result = RecordResult.skip(key, f"invalid record: {e.__class__.__name__}")

        if result.skipped:
            logger.warning(f"Skipped {category} record {result.key}: {result.reason}")
        self.report.category(category).add(result)
        record_ingest_result(category, result.status.value)
        return result

    def _skip(self, category: str, key, reason: str) -> RecordResult:
        result = RecordResult.skip(key, reason)
        logger.warning(f"Skipped {category} record {result.key}: {reason}")
        self.report.category(category).add(result)
        record_ingest_result(category, result.status.value)
        return result

    # ------------------------------------------------------------------
    # Record mutations
    # ------------------------------------------------------------------

    async def _upsert_team(self, raw: dict) -> RecordResult:
        data = parse_team(raw)
        team, created = await get_or_create(self.session, Team, asdict(data), ["tid"])
        self._team_ids[data.tid] = team.id
        return RecordResult.stored(data.tid, team.id, created)

    async def _upsert_player(self, raw: dict) -> RecordResult:
        entry = parse_squad_entry(raw)
        player, created = await get_or_create(
            self.session, Player, asdict(entry.player), ["pid"]
        )
        self._player_ids[entry.player.pid] = player.id
        return RecordResult.stored(entry.player.pid, player.id, created)

    async def _link_player(self, team_id: int, raw: dict) -> RecordResult:
        entry = parse_squad_entry(raw)
        player_id = await self.resolve_player(entry.player.pid)
        if player_id is None:
            raise UnresolvedReference("player", entry.player.pid)
        link, created = await get_or_create(
            self.session,
            TeamPlayer,
            {
                "team_id": team_id,
                "player_id": player_id,
                "role": entry.role,
                "role_str": entry.role_str,
            },
            ["team_id", "player_id"],
        )
        return RecordResult.stored(f"{team_id}:{entry.player.pid}", link.id, created)

    async def _upsert_venue(self, raw: dict) -> RecordResult:
        data = parse_venue(raw)
        venue, created = await get_or_create(self.session, Venue, asdict(data), ["venue_id"])
        self._venue_ids[data.venue_id] = venue.id
        return RecordResult.stored(data.venue_id, venue.id, created)

    async def _upsert_match(self, raw: dict) -> RecordResult:
        data = parse_match(raw)
        values = asdict(data)
        # Natural-key references become internal ids (None when unresolved)
        for ref in (
            "team_a_tid", "team_b_tid", "venue_key", "winning_team_tid",
            "toss_winner_tid", "man_of_the_match_pid",
        ):
            values.pop(ref)
        values.update(
            team_a_id=await self.resolve_team(data.team_a_tid),
            team_b_id=await self.resolve_team(data.team_b_tid),
            venue_id=await self.resolve_venue(data.venue_key),
            winning_team_id=await self.resolve_team(data.winning_team_tid),
            toss_winner_id=await self.resolve_team(data.toss_winner_tid),
            man_of_the_match_id=await self.resolve_player(data.man_of_the_match_pid),
        )
        match, created = await get_or_create(self.session, Match, values, ["match_id"])
        self._match_ids[data.match_id] = match.id
        return RecordResult.stored(data.match_id, match.id, created)

    async def _upsert_innings(self, match_id: int, raw: dict) -> RecordResult:
        data = parse_innings(raw)
        values = asdict(data)
        values.pop("batting_team_tid")
        values.pop("fielding_team_tid")
        values.update(
            match_id=match_id,
            batting_team_id=await self.resolve_team(data.batting_team_tid),
            fielding_team_id=await self.resolve_team(data.fielding_team_tid),
        )
        innings, created = await get_or_create(self.session, Innings, values, ["iid"])
        return RecordResult.stored(data.iid, innings.id, created)

    async def _upsert_batting(self, innings_id: int, position: int, raw: dict) -> RecordResult:
        data = parse_batting(raw, position)
        player_id = await self.resolve_player(data.pid)
        if player_id is None:
            raise UnresolvedReference("player", data.pid)
        values = asdict(data)
        values.pop("pid")
        values.pop("bowler_pid")
        values.update(
            innings_id=innings_id,
            player_id=player_id,
            bowler_id=await self.resolve_player(data.bowler_pid),
        )
        row, created = await get_or_create(
            self.session, BattingPerformance, values, ["innings_id", "player_id"]
        )
        return RecordResult.stored(f"{innings_id}:{data.pid}", row.id, created)

    async def _upsert_bowling(self, innings_id: int, raw: dict) -> RecordResult:
        data = parse_bowling(raw)
        player_id = await self.resolve_player(data.pid)
        if player_id is None:
            raise UnresolvedReference("player", data.pid)
        values = asdict(data)
        values.pop("pid")
        values.update(innings_id=innings_id, player_id=player_id)
        row, created = await get_or_create(
            self.session, BowlingPerformance, values, ["innings_id", "player_id"]
        )
        return RecordResult.stored(f"{innings_id}:{data.pid}", row.id, created)

    async def _upsert_standing(self, round_label: str, raw: dict) -> RecordResult:
        data = parse_standing(raw, round_label)
        team_id = await self.resolve_team(data.team_tid)
        if team_id is None:
            raise UnresolvedReference("team", data.team_tid)
        values = asdict(data)
        values.pop("team_tid")
        values["team_id"] = team_id
        standing, created = await upsert(
            self.session, Standing, values, conflict_columns=["team_id", "round"]
        )
        key = f"{data.team_tid}:{data.round}"
        if created:
            return RecordResult.stored(key, standing.id, True)
        return RecordResult.updated(key, standing.id)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def seed_teams(self) -> None:
        read = self.fixtures.teams()
        if not read.ok:
            self.report.category("teams").source_error = read.failure.message
            return
        for raw in read.data:
            await self._apply("teams", _raw_key(raw, "tid"), partial(self._upsert_team, raw))

    async def seed_players(self) -> None:
        read = self.fixtures.squads()
        if not read.ok:
            self.report.category("players").source_error = read.failure.message
            return
        for squad in read.data:
            if not isinstance(squad, dict):
                self._skip("players", None, "squad record is not an object")
                continue
            team_tid = parse_ref(squad.get("team_id"))
            players = squad.get("players") or []
            if not isinstance(players, list):
                self._skip("players", team_tid, "squad players is not a list")
                continue
            team_id = await self.resolve_team(team_tid)
            if team_id is None:
                logger.warning(f"Team not found for squad tid: {team_tid}")
                for raw in players:
                    self._skip("players", _raw_key(raw, "pid"), f"unresolved team {team_tid}")
                continue

            for raw in players:
                key = _raw_key(raw, "pid")
                result = await self._apply("players", key, partial(self._upsert_player, raw))
                if result.skipped:
                    continue
                await self._apply(
                    "team_players", f"{team_tid}:{key}", partial(self._link_player, team_id, raw)
                )

    async def seed_matches(self) -> None:
        read = self.fixtures.matches()
        if not read.ok:
            self.report.category("matches").source_error = read.failure.message
            return
        for raw in read.data:
            venue = raw.get("venue") if isinstance(raw, dict) else None
            if isinstance(venue, dict) and venue.get("venue_id") is not None:
                venue_key = str(venue["venue_id"])
                if venue_key not in self._venue_ids:
                    await self._apply("venues", venue_key, partial(self._upsert_venue, venue))
            await self._apply("matches", _raw_key(raw, "match_id"), partial(self._upsert_match, raw))

    async def seed_scorecards(self) -> None:
        if not self.fixtures.scorecards_dir_exists():
            self.report.category("innings").source_error = "scorecards directory not found"
            return

        for read in self.fixtures.scorecards():
            if not read.ok:
                self._skip("innings", read.path.name, read.failure.message)
                continue

            scorecard = read.data
            innings_list = scorecard.get("innings")
            if not innings_list:
                self._skip("innings", read.path.name, "scorecard without innings")
                continue
            if not isinstance(innings_list, list):
                self._skip("innings", read.path.name, "innings is not a list")
                continue

            match_key = parse_ref(scorecard.get("match_id"))
            match_id = await self.resolve_match(match_key)
            if match_id is None:
                self._skip("innings", read.path.name, f"unresolved match {match_key}")
                continue

            for raw in innings_list:
                result = await self._apply(
                    "innings", _raw_key(raw, "iid"), partial(self._upsert_innings, match_id, raw)
                )
                if result.skipped:
                    continue
                innings_id = result.entity_id

                batsmen = raw.get("batsmen") or []
                if isinstance(batsmen, list):
                    for position, batsman in enumerate(batsmen, start=1):
                        await self._apply(
                            "batting",
                            _raw_key(batsman, "batsman_id"),
                            partial(self._upsert_batting, innings_id, position, batsman),
                        )
                else:
                    self._skip("batting", result.key, "batsmen is not a list")

                bowlers = raw.get("bowlers") or []
                if isinstance(bowlers, list):
                    for bowler in bowlers:
                        await self._apply(
                            "bowling",
                            _raw_key(bowler, "bowler_id"),
                            partial(self._upsert_bowling, innings_id, bowler),
                        )
                else:
                    self._skip("bowling", result.key, "bowlers is not a list")

    async def seed_standings(self) -> None:
        read = self.fixtures.standings()
        if not read.ok:
            self.report.category("standings").source_error = read.failure.message
            return
        for round_raw in read.data["standings"]:
            if not isinstance(round_raw, dict):
                self._skip("standings", None, "round record is not an object")
                continue
            label = round_name(round_raw)
            rows = round_raw.get("standings") or []
            if not isinstance(rows, list):
                self._skip("standings", label, "round standings is not a list")
                continue
            for raw in rows:
                await self._apply(
                    "standings",
                    f"{_raw_key(raw, 'team_id')}:{label}",
                    partial(self._upsert_standing, label, raw),
                )

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    async def run(self, dry_run: bool = False) -> IngestionReport:
        """
        Run every category in order and return the report.

        Each category is committed on completion; with dry_run=True nothing
        is committed and the session is rolled back at the end.
        """
        self.report = IngestionReport(dry_run=dry_run)
        started = time.monotonic()
        logger.info(f"Starting ingestion from {self.fixtures.root} (dry_run={dry_run})")

        steps = [
            ("teams", self.seed_teams),
            ("players", self.seed_players),
            ("matches", self.seed_matches),
            ("innings", self.seed_scorecards),
            ("standings", self.seed_standings),
        ]
        for name, step in steps:
            try:
                await step()
                if not dry_run:
                    await self.session.commit()
            except SQLAlchemyError as e:
                logger.exception(f"Ingestion step '{name}' failed: {e}")
                await self.session.rollback()
                self.report.category(name).source_error = f"{e.__class__.__name__}"
            except (TypeError, ValueError, OverflowError) as e:
                logger.exception(f"Ingestion step '{name}' hit malformed data: {e}")
                await self.session.rollback()
                self.report.category(name).source_error = f"malformed data: {e.__class__.__name__}"

        if dry_run:
            await self.session.rollback()

        self.report.finished_at = datetime.now(timezone.utc)
        record_ingest_duration(time.monotonic() - started)
        for category in self.report.categories.values():
            logger.info(f"Seeded {category.summary()}")
        logger.info("Ingestion completed")
        return self.report


async def run_ingestion(
    session: AsyncSession,
    data_path: Path | str,
    dry_run: bool = False,
) -> IngestionReport:
    """Seed the store from the fixture set at `data_path`."""
    pipeline = IngestionPipeline(FixtureSet(data_path), session)
    return await pipeline.run(dry_run=dry_run)
