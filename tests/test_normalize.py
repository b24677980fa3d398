from datetime import datetime, timezone

import pytest

from nflpool.utils.normalize import (
    games_from_document,
    normalize_confidence,
    normalize_game,
    normalize_pick,
    normalize_status,
    normalize_winner,
    picks_from_document,
    survivor_picks_from_document,
)
from nflpool.utils.records import TIE, GameStatus
from nflpool.utils.teams import abbreviation_for, normalize_team_name


class TestTeams:
    @pytest.mark.parametrize(
        "raw",
        ["KC", "kc", "Chiefs", "Kansas City", "KC Chiefs", " Kansas  City Chiefs "],
    )
    def test_aliases(self, raw):
        assert normalize_team_name(raw) == "Kansas City Chiefs"

    def test_shared_city_is_not_guessed(self):
        assert normalize_team_name("New York") == "New York"
        assert normalize_team_name("Jets") == "New York Jets"

    def test_unknown_and_blank(self):
        assert normalize_team_name("Team A") == "Team A"
        assert normalize_team_name("  ") is None
        assert normalize_team_name(None) is None

    def test_abbreviation(self):
        assert abbreviation_for("Philadelphia Eagles") == "PHI"
        assert abbreviation_for("Team A") is None


class TestNormalizeValues:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            (7, 7),
            ("12", 12),
            (" 3 ", 3),
            (0, 0),
            ("0", 0),
            (4.0, 4),
            (None, None),
            ("", None),
            ("abc", None),
            (-1, None),
            (2.5, None),
            (True, None),
        ],
    )
    def test_confidence(self, raw, expected):
        assert normalize_confidence(raw) == expected

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("STATUS_FINAL", GameStatus.FINAL),
            ("Final/OT", GameStatus.FINAL),
            ("post", GameStatus.FINAL),
            ("STATUS_IN_PROGRESS", GameStatus.IN_PROGRESS),
            ("halftime", GameStatus.IN_PROGRESS),
            ("STATUS_END_PERIOD", GameStatus.IN_PROGRESS),
            ("in", GameStatus.IN_PROGRESS),
            ("STATUS_SCHEDULED", GameStatus.SCHEDULED),
            ("postponed", GameStatus.SCHEDULED),
            (None, GameStatus.SCHEDULED),
        ],
    )
    def test_status(self, raw, expected):
        assert normalize_status(raw) == expected

    def test_winner(self):
        assert normalize_winner("TBD") is None
        assert normalize_winner("") is None
        assert normalize_winner("Tie") == TIE
        assert normalize_winner("PHI") == "Philadelphia Eagles"


class TestDocuments:
    def test_pick_legacy_winner_field(self):
        pick = normalize_pick(101, {"winner": "DAL", "confidence": "5"})

        assert pick.game_id == "101"
        assert pick.team == "Dallas Cowboys"
        assert pick.confidence == 5

    def test_pick_with_zero_and_missing_confidence(self):
        assert normalize_pick("1", {"team": "DAL", "confidence": 0}).confidence == 0
        assert normalize_pick("1", {"team": "DAL"}).confidence is None
        assert normalize_pick("1", {"team": "DAL"}).is_valid_attempt is False

    def test_picks_document_skips_metadata(self):
        picks = picks_from_document(
            {
                "101": {"team": "PHI", "confidence": 2},
                "_meta": {"team": "DAL", "confidence": 1},
                "userName": "Alice",
                "submittedAt": "2025-09-07T12:00:00Z",
            }
        )
        assert list(picks) == ["101"]

    def test_game_short_keys(self):
        game = normalize_game(
            "101",
            {
                "a": "DAL",
                "h": "PHI",
                "awayScore": "20",
                "homeScore": 24,
                "status": "STATUS_FINAL",
                "winner": "PHI",
                "dt": "2025-09-05T00:20:00Z",
            },
        )

        assert game.away_team == "Dallas Cowboys"
        assert game.home_team == "Philadelphia Eagles"
        assert game.away_score == 20
        assert game.is_final
        assert game.kickoff == datetime(2025, 9, 5, 0, 20, tzinfo=timezone.utc)

    def test_games_document_skips_incomplete_games(self):
        games = games_from_document(
            {
                "101": {"awayTeam": "DAL", "homeTeam": "PHI"},
                "102": {"awayTeam": "KC"},
                "_updated": "2025-09-08",
            }
        )
        assert list(games) == ["101"]

    def test_survivor_document(self):
        history = survivor_picks_from_document(
            {
                "picks": {
                    "2": {"team": "Bills"},
                    "1": {"team": "DEN"},
                    "x": {"team": "KC"},
                    "3": {"team": ""},
                }
            }
        )
        assert history == {1: "Denver Broncos", 2: "Buffalo Bills"}
