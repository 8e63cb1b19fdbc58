"""HTTP-level tests: envelope, error shape, resource payloads."""

import pytest

LIST_ENDPOINTS = ["/api/teams", "/api/players", "/api/matches"]


async def first_id(client, path: str, **params) -> int:
    response = await client.get(path, params=params)
    return response.json()["data"][0]["id"]


async def player_id_by_name(client, name: str) -> int:
    response = await client.get("/api/players", params={"search": name})
    return response.json()["data"][0]["id"]


class TestPagination:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", LIST_ENDPOINTS)
    async def test_envelope_invariants(self, seeded, client, path):
        response = await client.get(path)
        assert response.status_code == 200

        body = response.json()
        meta = body["pagination"]
        assert meta["page"] == 1
        assert meta["total"] >= len(body["data"])
        assert len(body["data"]) <= meta["limit"]
        assert meta["totalPages"] == -(-meta["total"] // meta["limit"])

    @pytest.mark.asyncio
    async def test_limit_one_splits_pages(self, seeded, client):
        first = (await client.get("/api/teams", params={"limit": 1})).json()
        second = (await client.get("/api/teams", params={"limit": 1, "page": 2})).json()

        assert first["pagination"] == {"page": 1, "limit": 1, "total": 2, "totalPages": 2}
        assert len(first["data"]) == 1
        assert len(second["data"]) == 1
        assert first["data"][0]["id"] != second["data"][0]["id"]

    @pytest.mark.asyncio
    async def test_page_past_end_is_empty(self, seeded, client):
        body = (await client.get("/api/teams", params={"page": 9})).json()

        assert body["data"] == []
        assert body["pagination"]["total"] == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "page,limit",
        [("abc", "xyz"), ("0", "0"), ("-3", "-1"), ("", ""), ("99999999999999999999", "abc")],
    )
    async def test_junk_values_fall_back_to_defaults(self, seeded, client, page, limit):
        response = await client.get("/api/players", params={"page": page, "limit": limit})

        assert response.status_code == 200
        meta = response.json()["pagination"]
        assert meta["page"] == 1
        assert meta["limit"] == 20

    @pytest.mark.asyncio
    async def test_limit_capped(self, seeded, client):
        body = (await client.get("/api/matches", params={"limit": 5000})).json()

        assert body["pagination"]["limit"] == 100

    @pytest.mark.asyncio
    async def test_empty_store(self, client):
        body = (await client.get("/api/matches")).json()

        assert body == {
            "data": [],
            "pagination": {"page": 1, "limit": 10, "total": 0, "totalPages": 0},
        }


class TestErrors:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path,message",
        [
            ("/api/teams/999", "Team not found"),
            ("/api/players/999", "Player not found"),
            ("/api/matches/999", "Match not found"),
            ("/api/matches/999/scorecard", "Scorecard not found"),
        ],
    )
    async def test_not_found_shape(self, seeded, client, path, message):
        response = await client.get(path)

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found", "message": message}

    @pytest.mark.asyncio
    async def test_unknown_route(self, client):
        response = await client.get("/api/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found", "message": "Cannot GET /api/nope"}

    @pytest.mark.asyncio
    async def test_non_integer_id(self, client):
        response = await client.get("/api/matches/abc")

        assert response.status_code == 422
        body = response.json()
        assert set(body) == {"error", "message"}
        assert "match_id" in body["message"]

    @pytest.mark.asyncio
    async def test_sub_resources_of_unknown_ids_are_empty(self, seeded, client):
        for path in ("/api/teams/999/matches", "/api/players/999/batting", "/api/players/999/bowling"):
            response = await client.get(path)
            assert response.status_code == 200
            assert response.json()["data"] == []
        assert (await client.get("/api/teams/999/players")).json() == []


class TestTeams:
    @pytest.mark.asyncio
    async def test_list_ordered_by_title(self, seeded, client):
        body = (await client.get("/api/teams")).json()

        assert [t["abbreviation"] for t in body["data"]] == ["CSK", "KKR"]

    @pytest.mark.asyncio
    async def test_detail_has_squad_and_standing(self, seeded, client):
        team_id = await first_id(client, "/api/teams")
        body = (await client.get(f"/api/teams/{team_id}")).json()

        assert body["title"] == "Chennai Super Kings"
        assert [p["player"]["title"] for p in body["players"]] == ["MS Dhoni", "Ravindra Jadeja"]
        assert body["latest_standing"]["points"] == 0

    @pytest.mark.asyncio
    async def test_team_matches_and_players(self, seeded, client):
        team_id = await first_id(client, "/api/teams")

        matches = (await client.get(f"/api/teams/{team_id}/matches")).json()
        players = (await client.get(f"/api/teams/{team_id}/players")).json()

        assert matches["pagination"]["total"] == 1
        assert matches["data"][0]["team_a"]["abbreviation"] == "CSK"
        assert len(players) == 2
        assert players[0]["title"] == "MS Dhoni"
        assert players[0]["role_str"] == "WK-Batsman"


class TestPlayers:
    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, seeded, client):
        for term in ("jadeja", "JADEJA", "R Jad"):
            body = (await client.get("/api/players", params={"search": term})).json()
            assert [p["pid"] for p in body["data"]] == [101]

    @pytest.mark.asyncio
    async def test_role_filter(self, seeded, client):
        body = (await client.get("/api/players", params={"role": "all"})).json()

        assert sorted(p["pid"] for p in body["data"]) == [101, 200]

    @pytest.mark.asyncio
    async def test_profile_with_aggregates(self, seeded, client):
        player_id = await player_id_by_name(client, "Umesh")
        body = (await client.get(f"/api/players/{player_id}")).json()

        assert body["title"] == "Umesh Yadav"
        assert body["teams"][0]["team"]["abbreviation"] == "KKR"
        assert body["batting_performances"] == []
        assert len(body["bowling_performances"]) == 1
        bowling = body["aggregated_stats"]["bowling"]
        assert bowling["total_wickets"] == 2
        assert bowling["economy"] == 5.0
        assert body["aggregated_stats"]["batting"]["strike_rate"] is None

    @pytest.mark.asyncio
    async def test_batting_log_has_match_context(self, seeded, client):
        player_id = await player_id_by_name(client, "Dhoni")
        body = (await client.get(f"/api/players/{player_id}/batting")).json()

        assert body["pagination"]["total"] == 1
        row = body["data"][0]
        assert row["runs"] == 50
        assert row["innings"]["batting_team"]["abbreviation"] == "CSK"
        assert row["innings"]["match"]["short_title"] == "CSK vs KKR"


class TestMatches:
    @pytest.mark.asyncio
    async def test_detail(self, seeded, client):
        match_id = await first_id(client, "/api/matches")
        body = (await client.get(f"/api/matches/{match_id}")).json()

        assert body["winning_team"]["abbreviation"] == "KKR"
        assert body["toss_winner"]["abbreviation"] == "KKR"
        assert body["venue"]["name"] == "Wankhede Stadium"
        assert len(body["innings"]) == 1
        innings = body["innings"][0]
        assert [b["position"] for b in innings["batting_performances"]] == [1, 2]
        assert len(innings["bowling_performances"]) == 2

    @pytest.mark.asyncio
    async def test_scorecard(self, seeded, client):
        match_id = await first_id(client, "/api/matches")
        body = (await client.get(f"/api/matches/{match_id}/scorecard")).json()

        assert len(body) == 1
        assert [b["wickets"] for b in body[0]["bowling_performances"]] == [2, 1]

    @pytest.mark.asyncio
    async def test_filter_by_team(self, seeded, client):
        team_id = await first_id(client, "/api/teams")

        hit = (await client.get("/api/matches", params={"team_id": team_id})).json()
        miss = (await client.get("/api/matches", params={"team_id": 999})).json()

        assert hit["pagination"]["total"] == 1
        assert miss["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_venues_list(self, seeded, client):
        body = (await client.get("/api/matches/venues/list")).json()

        assert len(body) == 1
        assert body[0]["venue_id"] == "84"
        assert body[0]["match_count"] == 1


class TestStats:
    @pytest.mark.asyncio
    async def test_top_batsmen_limit(self, seeded, client):
        body = (await client.get("/api/stats/top-batsmen", params={"limit": 1})).json()

        assert len(body) == 1
        assert body[0]["player"]["pid"] == 101
        assert body[0]["stats"]["runs"] == 80

    @pytest.mark.asyncio
    async def test_top_bowlers(self, seeded, client):
        body = (await client.get("/api/stats/top-bowlers")).json()

        assert [b["player"]["pid"] for b in body] == [201, 200]
        assert body[1]["stats"]["economy"] == 8.45

    @pytest.mark.asyncio
    async def test_standings(self, seeded, client):
        body = (await client.get("/api/stats/standings")).json()

        assert [s["team"]["abbreviation"] for s in body] == ["KKR", "CSK"]
        assert (await client.get("/api/stats/standings", params={"round": "Eliminator"})).json() == []

    @pytest.mark.asyncio
    async def test_summary(self, seeded, client):
        body = (await client.get("/api/stats/summary")).json()

        assert body["overview"]["total_runs"] == 130
        assert body["records"]["highest_individual_score"] == {
            "runs": 80, "player": "Ravindra Jadeja", "match": "CSK vs KKR",
        }
        assert body["records"]["best_bowling_figures"]["wickets"] == 2

    @pytest.mark.asyncio
    async def test_summary_empty_store(self, client):
        body = (await client.get("/api/stats/summary")).json()

        assert body["overview"]["total_matches"] == 0
        assert body["records"] == {"highest_individual_score": None, "best_bowling_figures": None}

    @pytest.mark.asyncio
    async def test_team_performance(self, seeded, client):
        body = (await client.get("/api/stats/team-performance")).json()

        assert body[0]["abbreviation"] == "KKR"
        assert body[0]["win_percentage"] == 100.0
        assert body[1]["win_percentage"] == 0.0


class TestCore:
    @pytest.mark.asyncio
    async def test_index(self, client):
        body = (await client.get("/")).json()

        assert body["documentation"] == "/api-docs"
        assert body["endpoints"]["teams"] == "/api/teams"

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "database": "ok"}

    @pytest.mark.asyncio
    async def test_metrics(self, seeded, client):
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "ingest_records_total" in response.text
