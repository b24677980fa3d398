from conftest import POOL_ID, store_survivor

from nflpool.services.scoring_service import scoring_service


class TestReadEndpoints:
    def test_week_games(self, client, week1_games):
        response = client.get("/api/weeks/1/games")

        assert response.status_code == 200
        data = response.get_json()
        assert [g["game_id"] for g in data["games"]] == ["101", "102", "103"]
        first = data["games"][0]
        assert first["resolved_winner"] == "Philadelphia Eagles"
        assert first["home_abbreviation"] == "PHI"

    def test_week_out_of_range(self, client, app):
        response = client.get("/api/weeks/19/games")

        assert response.status_code == 400
        assert "between 1 and 18" in response.get_json()["error"]

    def test_weekly_leaderboard(self, client, week1_picks):
        scoring_service.score_week(POOL_ID, 1)

        response = client.get(f"/api/pools/{POOL_ID}/leaderboard/week/1")

        assert response.status_code == 200
        standings = response.get_json()["standings"]
        assert [(s["display_name"], s["rank"]) for s in standings] == [
            ("Alice", 1),
            ("Bob", 2),
            ("Carol", 3),
        ]

    def test_season_leaderboard_through_week(self, client, week1_picks):
        scoring_service.score_week(POOL_ID, 1)

        response = client.get(f"/api/pools/{POOL_ID}/leaderboard/season?through_week=1")

        data = response.get_json()
        assert data["through_week"] == 1
        assert data["standings"][0]["points"] == 5

    def test_user_week_score(self, client, week1_picks):
        response = client.get(f"/api/pools/{POOL_ID}/users/bob/weeks/1/score")

        data = response.get_json()
        assert data["user_id"] == "bob"
        assert data["total_points"] == 1
        assert len(data["pick_results"]) == 3

    def test_unknown_pool_is_404(self, client, app):
        response = client.get("/api/pools/missing/survivor")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Pool missing not found"}

    def test_unknown_route_is_json_404(self, client, app):
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Resource not found"}

    def test_security_headers(self, client, app):
        response = client.get("/api/status")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_status(self, client, app):
        data = client.get("/api/status").get_json()

        assert data["season"] == 2025
        assert 1 <= data["current_week"] <= 18
        assert data["scheduler"]["is_running"] is False


class TestWriteEndpoints:
    def test_score_week(self, client, week1_picks):
        response = client.post(f"/api/pools/{POOL_ID}/weeks/1/score")

        assert response.status_code == 200
        data = response.get_json()
        assert data["users_processed"] == 2
        assert data["completed_games"] == 2

    def test_score_week_wrong_method(self, client, app):
        response = client.get(f"/api/pools/{POOL_ID}/weeks/1/score")
        assert response.status_code == 405

    def test_evaluate_survivors(self, client, pool, week1_games):
        store_survivor("alice", {1: "Kansas City Chiefs"})
        store_survivor("bob", {1: "Los Angeles Chargers"})

        response = client.post(f"/api/pools/{POOL_ID}/survivor/evaluate?week=1")

        data = response.get_json()
        assert data["alive"] == 1
        assert data["eliminations"][0]["user_id"] == "bob"

        table = client.get(f"/api/pools/{POOL_ID}/survivor").get_json()
        assert table["entries"][0]["user_id"] == "alice"
        assert table["entries"][1]["elimination_reason"] == "LOST"
