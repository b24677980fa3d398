from unittest.mock import Mock, patch

import pytest
import requests

from conftest import SEASON
from nflpool import db
from nflpool.models import Game
from nflpool.utils.data_sync import DataSync, parse_scoreboard_event
from nflpool.utils.records import TIE, GameStatus


def competitor(team, home_away, score=None, winner=False):
    return {
        "homeAway": home_away,
        "team": {"displayName": team},
        "score": score,
        "winner": winner,
    }


def event(event_id, away, home, state="STATUS_SCHEDULED", completed=False, date=None):
    return {
        "id": event_id,
        "date": date or "2025-09-05T00:20Z",
        "competitions": [
            {
                "status": {"type": {"name": state, "completed": completed}},
                "competitors": [home, away],
            }
        ],
    }


def final_event(event_id, away, home, away_score, home_score):
    return event(
        event_id,
        competitor(away, "away", str(away_score), away_score > home_score),
        competitor(home, "home", str(home_score), home_score > away_score),
        state="STATUS_FINAL",
        completed=True,
    )


def scheduled_event(event_id, away, home):
    return event(
        event_id,
        competitor(away, "away", "0"),
        competitor(home, "home", "0"),
    )


def response(payload, status_code=200):
    resp = Mock()
    resp.status_code = status_code
    resp.json.return_value = payload
    if status_code >= 400:
        error = requests.exceptions.HTTPError(f"{status_code} Error")
        error.response = resp
        resp.raise_for_status.side_effect = error
    else:
        resp.raise_for_status.return_value = None
    return resp


@pytest.fixture
def no_sleep():
    with patch("nflpool.utils.data_sync.time.sleep") as sleep:
        yield sleep


class TestParseScoreboardEvent:
    def test_final_game(self):
        result = parse_scoreboard_event(
            final_event("401", "Dallas Cowboys", "Philadelphia Eagles", 20, 24)
        )

        assert result.status == GameStatus.FINAL
        assert result.away_team == "Dallas Cowboys"
        assert result.home_team == "Philadelphia Eagles"
        assert (result.away_score, result.home_score) == (20, 24)
        assert result.winner == "Philadelphia Eagles"
        assert result.kickoff.year == 2025

    def test_final_tie(self):
        result = parse_scoreboard_event(
            final_event("401", "Dallas Cowboys", "Philadelphia Eagles", 20, 20)
        )
        assert result.winner == TIE
        assert result.resolve().is_tie

    def test_scheduled_game_has_no_scores(self):
        result = parse_scoreboard_event(
            scheduled_event("401", "Dallas Cowboys", "Philadelphia Eagles")
        )

        assert result.status == GameStatus.SCHEDULED
        assert result.away_score is None
        assert result.winner is None

    def test_end_of_quarter_is_still_live(self):
        result = parse_scoreboard_event(
            event(
                "401",
                competitor("Buffalo Bills", "away", "0"),
                competitor("Miami Dolphins", "home", "7"),
                state="STATUS_END_PERIOD",
            )
        )

        assert result.status == GameStatus.IN_PROGRESS
        assert (result.away_score, result.home_score) == (0, 7)
        assert result.winner is None
        assert result.resolve().decided is False

    def test_incomplete_event(self):
        assert parse_scoreboard_event({"id": "1", "competitions": []}) is None


class TestSyncWeekGames:
    def test_creates_then_finalizes_games(self, app, no_sleep):
        sync = DataSync()
        sync.session.get = Mock(
            return_value=response(
                {
                    "events": [
                        scheduled_event("401", "Dallas Cowboys", "Philadelphia Eagles"),
                        scheduled_event("402", "Kansas City Chiefs", "Los Angeles Chargers"),
                    ]
                }
            )
        )

        success, message, newly_final = sync.sync_week_games(SEASON, 1)

        assert success is True
        assert "2 games created" in message
        assert newly_final == []
        games = Game.get_games_for_week(SEASON, 1)
        assert [(g.game_id, g.espn_id) for g in games] == [("101", "401"), ("102", "402")]

        params = sync.session.get.call_args.kwargs["params"]
        assert params == {"seasontype": 2, "week": 1}

        sync.session.get.return_value = response(
            {
                "events": [
                    final_event("401", "Dallas Cowboys", "Philadelphia Eagles", 20, 24),
                    scheduled_event("402", "Kansas City Chiefs", "Los Angeles Chargers"),
                ]
            }
        )

        success, message, newly_final = sync.sync_week_games(SEASON, 1)

        assert success is True
        assert newly_final == ["101"]
        game = Game.query.filter_by(game_id="101").one()
        assert game.is_final
        assert game.winner == "Philadelphia Eagles"

        # Nothing changed on a third pass
        success, message, newly_final = sync.sync_week_games(SEASON, 1)
        assert newly_final == []
        assert "0 updated" in message

    def test_end_of_quarter_is_not_newly_final(self, app, no_sleep):
        sync = DataSync()
        sync.session.get = Mock(
            return_value=response(
                {
                    "events": [
                        event(
                            "401",
                            competitor("Buffalo Bills", "away", "0"),
                            competitor("Miami Dolphins", "home", "7"),
                            state="STATUS_END_PERIOD",
                        )
                    ]
                }
            )
        )

        success, _, newly_final = sync.sync_week_games(SEASON, 1)

        assert success is True
        assert newly_final == []
        game = Game.query.one()
        assert not game.is_final
        assert game.winner is None

    def test_matches_imported_game_by_teams(self, app, no_sleep):
        db.session.add(
            Game(
                season=SEASON,
                week=1,
                game_id="105",
                away_team="Dallas Cowboys",
                home_team="Philadelphia Eagles",
            )
        )
        db.session.commit()

        sync = DataSync()
        sync.session.get = Mock(
            return_value=response(
                {"events": [final_event("401", "DAL", "PHI", 20, 24)]}
            )
        )
        success, _, newly_final = sync.sync_week_games(SEASON, 1)

        assert success is True
        assert newly_final == ["105"]
        assert Game.query.count() == 1
        assert Game.query.one().espn_id == "401"

    def test_request_failure(self, app, no_sleep):
        sync = DataSync()
        sync.session.get = Mock(side_effect=requests.exceptions.ConnectionError("down"))

        success, message, newly_final = sync.sync_week_games(SEASON, 1)

        assert success is False
        assert "down" in message
        assert newly_final == []
        assert sync.session.get.call_count == 3

    def test_retries_server_errors(self, app, no_sleep):
        sync = DataSync()
        sync.session.get = Mock(
            side_effect=[
                response({}, status_code=503),
                response({"events": [scheduled_event("401", "DAL", "PHI")]}),
            ]
        )

        success, _, _ = sync.sync_week_games(SEASON, 1)

        assert success is True
        assert sync.session.get.call_count == 2
        assert Game.query.count() == 1

    def test_rate_limit_status_counts_requests(self, app, no_sleep):
        sync = DataSync()
        sync.session.get = Mock(return_value=response({"events": []}))

        sync.sync_week_games(SEASON, 1)
        sync.sync_week_games(SEASON, 2)

        assert sync.get_rate_limit_status() == {
            "total_requests": 2,
            "requests_last_minute": 2,
            "max_requests_per_minute": 60,
        }
