"""Tests for the ingestion pipeline: idempotence, dedupe, partial failure."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select

from iplstats.etl import IngestionPipeline, FixtureSet, RecordStatus, run_ingestion
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

ALL_MODELS = [
    Team, Player, TeamPlayer, Venue, Match, Innings,
    BattingPerformance, BowlingPerformance, Standing,
]


async def count(session, model) -> int:
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def row_counts(session) -> dict:
    return {model.__tablename__: await count(session, model) for model in ALL_MODELS}


def counts(report, category) -> tuple:
    c = report.categories[category]
    return c.created, c.existing, c.updated, c.skipped


class TestIngestion:
    @pytest.mark.asyncio
    async def test_default_dump(self, session, fixtures):
        report = await run_ingestion(session, fixtures.build())

        assert counts(report, "teams") == (2, 0, 0, 0)
        assert counts(report, "players") == (4, 0, 0, 0)
        assert counts(report, "team_players") == (4, 0, 0, 0)
        assert counts(report, "venues") == (1, 0, 0, 0)
        assert counts(report, "matches") == (1, 0, 0, 0)
        assert counts(report, "innings") == (1, 0, 0, 0)
        assert counts(report, "batting") == (2, 0, 0, 0)
        assert counts(report, "bowling") == (2, 0, 0, 0)
        assert counts(report, "standings") == (2, 0, 0, 0)

    @pytest.mark.asyncio
    async def test_match_times_stored_as_utc(self, session, fixtures):
        fixtures.matches[0]["date_end"] = "2022-03-26T23:30:00+05:30"
        report = await run_ingestion(session, fixtures.build())

        assert counts(report, "matches") == (1, 0, 0, 0)
        match = (await session.execute(select(Match))).scalar_one()
        assert match.date_start.replace(tzinfo=None) == datetime(2022, 3, 26, 14, 0)
        assert match.date_end.replace(tzinfo=None) == datetime(2022, 3, 26, 18, 0)

    @pytest.mark.asyncio
    async def test_report_timestamps_are_utc(self, session, fixtures):
        report = await run_ingestion(session, fixtures.build())

        assert report.started_at.utcoffset() == timedelta(0)
        assert report.finished_at.utcoffset() == timedelta(0)
        assert report.finished_at >= report.started_at

    @pytest.mark.asyncio
    async def test_match_references_resolved(self, session, fixtures):
        await run_ingestion(session, fixtures.build())

        match = (await session.execute(select(Match))).scalar_one()
        kkr = (await session.execute(select(Team).where(Team.tid == 17))).scalar_one()
        csk = (await session.execute(select(Team).where(Team.tid == 13))).scalar_one()
        yadav = (await session.execute(select(Player).where(Player.pid == 201))).scalar_one()
        venue = (await session.execute(select(Venue))).scalar_one()

        assert match.team_a_id == csk.id
        assert match.team_b_id == kkr.id
        assert match.winning_team_id == kkr.id
        assert match.toss_winner_id == kkr.id
        assert match.toss_decision == "bowl"
        assert match.man_of_the_match_id == yadav.id
        assert match.venue_id == venue.id

    @pytest.mark.asyncio
    async def test_batting_position_and_bowler(self, session, fixtures):
        await run_ingestion(session, fixtures.build())

        rows = (await session.execute(
            select(BattingPerformance).order_by(BattingPerformance.position)
        )).scalars().all()
        yadav = (await session.execute(select(Player).where(Player.pid == 201))).scalar_one()

        assert [r.position for r in rows] == [1, 2]
        # bowler_id "0" means not out: no reference
        assert rows[0].bowler_id is None
        assert rows[1].bowler_id == yadav.id
        assert rows[1].strike_rate == 160.0


class TestIdempotence:
    @pytest.mark.asyncio
    async def test_rerun_keeps_row_counts(self, session, fixtures):
        root = fixtures.build()
        await run_ingestion(session, root)
        first = await row_counts(session)

        report = await run_ingestion(session, root)
        second = await row_counts(session)

        assert first == second
        assert report.total(RecordStatus.CREATED) == 0
        assert report.total(RecordStatus.SKIPPED) == 0
        assert counts(report, "players") == (0, 4, 0, 0)
        assert counts(report, "standings") == (0, 0, 2, 0)

    @pytest.mark.asyncio
    async def test_standings_upsert_keeps_latest_values(self, session, fixtures):
        await run_ingestion(session, fixtures.build())

        fixtures.standings["standings"][0]["standings"][0]["points"] = 4
        fixtures.standings["standings"][0]["standings"][0]["netrr"] = "1.100"
        await run_ingestion(session, fixtures.build())

        kkr = (await session.execute(select(Team).where(Team.tid == 17))).scalar_one()
        rows = (await session.execute(
            select(Standing).where(Standing.team_id == kkr.id, Standing.round == "Final")
        )).scalars().all()

        assert len(rows) == 1
        assert rows[0].points == 4
        assert rows[0].net_run_rate == 1.1

    @pytest.mark.asyncio
    async def test_dry_run_persists_nothing(self, session, fixtures):
        report = await run_ingestion(session, fixtures.build(), dry_run=True)

        assert report.dry_run
        assert counts(report, "teams") == (2, 0, 0, 0)
        assert await count(session, Team) == 0
        assert await count(session, BattingPerformance) == 0


class TestSquadDedupe:
    @pytest.mark.asyncio
    async def test_player_in_two_squads(self, session, fixtures):
        # Jadeja listed for both franchises
        fixtures.squads[1]["players"].append(dict(fixtures.squads[0]["players"][1]))
        report = await run_ingestion(session, fixtures.build())

        assert counts(report, "players") == (4, 1, 0, 0)
        assert counts(report, "team_players") == (5, 0, 0, 0)

        jadeja = (await session.execute(select(Player).where(Player.pid == 101))).scalar_one()
        joins = await session.execute(
            select(func.count()).select_from(TeamPlayer).where(TeamPlayer.player_id == jadeja.id)
        )
        assert await count(session, Player) == 4
        assert joins.scalar_one() == 2


class TestPartialFailure:
    @pytest.mark.asyncio
    async def test_unresolved_batsman_is_skipped_rest_continue(self, session, fixtures):
        fixtures.scorecards["5001.json"]["innings"][0]["batsmen"].append(
            {"batsman_id": "555", "runs": "3", "balls_faced": "4"}
        )
        report = await run_ingestion(session, fixtures.build())

        assert counts(report, "batting") == (2, 0, 0, 1)
        skipped = report.categories["batting"].skipped_records[0]
        assert skipped.reason == "unresolved player 555"
        assert await count(session, BattingPerformance) == 2

    @pytest.mark.asyncio
    async def test_unresolved_team_reference_stored_as_null(self, session, fixtures):
        fixtures.matches[0]["teamb"] = {"team_id": 999}
        fixtures.matches[0]["winning_team_id"] = 999
        await run_ingestion(session, fixtures.build())

        match = (await session.execute(select(Match))).scalar_one()
        assert match.team_a_id is not None
        assert match.team_b_id is None
        assert match.winning_team_id is None

    @pytest.mark.asyncio
    async def test_zero_ball_strike_rate_is_null(self, session, fixtures):
        fixtures.squads[0]["players"].append({"pid": 102, "title": "Deepak Chahar"})
        fixtures.scorecards["5001.json"]["innings"][0]["batsmen"].append(
            {"batsman_id": "102", "runs": "0", "balls_faced": "0", "strike_rate": "0.00", "how_out": "not out"}
        )
        await run_ingestion(session, fixtures.build())

        chahar = (await session.execute(select(Player).where(Player.pid == 102))).scalar_one()
        row = (await session.execute(
            select(BattingPerformance).where(BattingPerformance.player_id == chahar.id)
        )).scalar_one()
        assert row.strike_rate is None
        assert row.position == 3

    @pytest.mark.asyncio
    async def test_malformed_scorecard_file_is_skipped(self, session, fixtures):
        fixtures.raw_files["scorecards/4999.json"] = "{truncated"
        report = await run_ingestion(session, fixtures.build())

        innings = report.categories["innings"]
        assert innings.created == 1
        assert innings.skipped == 1
        assert innings.skipped_records[0].key == "4999.json"
        assert await count(session, Innings) == 1

    @pytest.mark.asyncio
    async def test_scorecard_for_unknown_match(self, session, fixtures):
        orphan = dict(fixtures.scorecards["5001.json"], match_id=7777)
        fixtures.scorecards["7777.json"] = orphan
        report = await run_ingestion(session, fixtures.build())

        reasons = [r.reason for r in report.categories["innings"].skipped_records]
        assert reasons == ["unresolved match 7777"]

    @pytest.mark.asyncio
    async def test_missing_teams_file(self, session, fixtures):
        fixtures.teams = None
        report = await run_ingestion(session, fixtures.build())

        assert report.categories["teams"].source_error == "file not found"
        # Squads cannot attach to unknown teams
        assert counts(report, "players") == (0, 0, 0, 4)
        assert await count(session, Team) == 0
        # Matches are still created with null team references
        assert await count(session, Match) == 1

    @pytest.mark.asyncio
    async def test_duplicate_key_within_one_file(self, session, fixtures):
        fixtures.teams.append({"tid": 13, "title": "Chennai Again"})
        report = await run_ingestion(session, fixtures.build())

        assert counts(report, "teams") == (2, 1, 0, 0)
        csk = (await session.execute(select(Team).where(Team.tid == 13))).scalar_one()
        assert csk.title == "Chennai Super Kings"

    @pytest.mark.asyncio
    async def test_record_without_natural_key(self, session, fixtures):
        fixtures.teams.append({"title": "Nameless"})
        report = await run_ingestion(session, fixtures.build())

        assert counts(report, "teams") == (2, 0, 0, 1)
        assert report.categories["teams"].skipped_records[0].reason == "team record without tid"

    @pytest.mark.asyncio
    async def test_out_of_range_natural_key(self, session, fixtures):
        fixtures.teams.append({"tid": 10**20, "title": "Too Big"})
        report = await run_ingestion(session, fixtures.build())

        assert counts(report, "teams") == (2, 0, 0, 1)
        assert report.categories["teams"].skipped_records[0].reason == "team record without tid"
        assert await count(session, Match) == 1


class TestWrongShape:
    @pytest.mark.asyncio
    async def test_squad_players_not_a_list(self, session, fixtures):
        fixtures.squads[0]["players"] = 7
        report = await run_ingestion(session, fixtures.build())

        assert counts(report, "players") == (2, 0, 0, 1)
        skipped = report.categories["players"].skipped_records[0]
        assert skipped.key == "13"
        assert skipped.reason == "squad players is not a list"
        assert await count(session, Match) == 1
        assert await count(session, Standing) == 2

    @pytest.mark.asyncio
    async def test_innings_not_a_list(self, session, fixtures):
        fixtures.scorecards["5001.json"]["innings"] = 5
        report = await run_ingestion(session, fixtures.build())

        assert counts(report, "innings") == (0, 0, 0, 1)
        skipped = report.categories["innings"].skipped_records[0]
        assert skipped.key == "5001.json"
        assert skipped.reason == "innings is not a list"
        assert await count(session, Standing) == 2

    @pytest.mark.asyncio
    async def test_batsmen_not_a_list(self, session, fixtures):
        fixtures.scorecards["5001.json"]["innings"][0]["batsmen"] = "not out"
        report = await run_ingestion(session, fixtures.build())

        assert counts(report, "innings") == (1, 0, 0, 0)
        assert counts(report, "batting") == (0, 0, 0, 1)
        skipped = report.categories["batting"].skipped_records[0]
        assert skipped.key == "9001"
        assert skipped.reason == "batsmen is not a list"
        assert counts(report, "bowling") == (2, 0, 0, 0)

    @pytest.mark.asyncio
    async def test_bowlers_not_a_list(self, session, fixtures):
        fixtures.scorecards["5001.json"]["innings"][0]["bowlers"] = {"bowler_id": "201"}
        report = await run_ingestion(session, fixtures.build())

        assert counts(report, "batting") == (2, 0, 0, 0)
        assert counts(report, "bowling") == (0, 0, 0, 1)
        assert report.categories["bowling"].skipped_records[0].reason == "bowlers is not a list"

    @pytest.mark.asyncio
    async def test_round_standings_not_a_list(self, session, fixtures):
        fixtures.standings["standings"][0]["standings"] = 3
        report = await run_ingestion(session, fixtures.build())

        assert counts(report, "standings") == (0, 0, 0, 1)
        skipped = report.categories["standings"].skipped_records[0]
        assert skipped.key == "Final"
        assert skipped.reason == "round standings is not a list"
        assert report.categories["standings"].source_error is None

    @pytest.mark.asyncio
    async def test_counter_too_large_for_column(self, session, fixtures):
        fixtures.scorecards["5001.json"]["innings"][0]["batsmen"][0]["runs"] = 10**20
        report = await run_ingestion(session, fixtures.build())

        assert counts(report, "batting") == (1, 0, 0, 1)
        assert report.categories["batting"].source_error is None
        assert counts(report, "bowling") == (2, 0, 0, 0)
        assert await count(session, BattingPerformance) == 1
        assert await count(session, Standing) == 2

    @pytest.mark.asyncio
    async def test_unexpected_shape_fails_only_its_category(self, session, fixtures, monkeypatch):
        async def broken(self):
            raise TypeError("'int' object is not iterable")

        monkeypatch.setattr(IngestionPipeline, "seed_standings", broken)
        report = await run_ingestion(session, fixtures.build())

        assert report.categories["standings"].source_error == "malformed data: TypeError"
        assert report.categories["teams"].source_error is None
        assert await count(session, Team) == 2
        assert await count(session, Innings) == 1


class TestResolvers:
    @pytest.mark.asyncio
    async def test_resolve_returns_none_for_unknown(self, session, fixtures):
        pipeline = IngestionPipeline(FixtureSet(fixtures.build()), session)
        await pipeline.run()

        assert await pipeline.resolve_team(13) is not None
        assert await pipeline.resolve_team(999) is None
        assert await pipeline.resolve_player(None) is None
        assert await pipeline.resolve_venue("84") is not None
        assert await pipeline.resolve_match(5001) is not None
