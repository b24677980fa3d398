from datetime import datetime, timedelta, timezone

from nflpool.utils.records import (
    TIE,
    EliminationReason,
    GameResult,
    GameStatus,
    IssueKind,
    SurvivorResult,
)
from nflpool.utils.survivor import evaluate_survivor


def final(game_id, away, home, away_score, home_score, winner=None):
    return GameResult(
        game_id=game_id,
        away_team=away,
        home_team=home,
        status=GameStatus.FINAL,
        away_score=away_score,
        home_score=home_score,
        winner=winner,
    )


def scheduled(game_id, away, home, kickoff=None):
    return GameResult(game_id=game_id, away_team=away, home_team=home, kickoff=kickoff)


def week(*games):
    return {g.game_id: g for g in games}


class TestEvaluateSurvivor:
    def test_alive_after_wins(self):
        games_by_week = {
            1: week(final("101", "C", "D", 24, 10)),
            2: week(final("201", "E", "F", 3, 17)),
        }
        record = evaluate_survivor({1: "C", 2: "F"}, games_by_week, current_week=2)

        assert record.alive is True
        assert record.eliminated_week is None
        assert record.weeks_survived == 2
        assert [w.result for w in record.pick_history] == [
            SurvivorResult.WON,
            SurvivorResult.WON,
        ]

    def test_team_reuse_eliminates_regardless_of_result(self):
        games_by_week = {
            1: week(final("101", "C", "D", 24, 10)),
            2: week(final("201", "C", "E", 31, 0)),
        }
        record = evaluate_survivor({1: "C", 2: "C"}, games_by_week, current_week=2)

        assert record.alive is False
        assert record.eliminated_week == 2
        assert record.elimination_reason == EliminationReason.TEAM_REUSE
        assert record.eliminated_by == "C"

    def test_team_reuse_across_gap(self):
        games_by_week = {
            1: week(final("101", "C", "D", 24, 10)),
            2: week(final("201", "E", "F", 24, 10)),
            3: week(final("301", "G", "C", 10, 24)),
        }
        record = evaluate_survivor({1: "C", 2: "E", 3: "C"}, games_by_week, 3)

        assert record.eliminated_week == 3
        assert record.elimination_reason == EliminationReason.TEAM_REUSE

    def test_no_pick_for_started_week(self):
        games_by_week = {
            1: week(final("101", "C", "D", 24, 10)),
            2: week(final("201", "E", "F", 24, 10)),
        }
        record = evaluate_survivor({1: "C"}, games_by_week, current_week=2)

        assert record.alive is False
        assert record.eliminated_week == 2
        assert record.elimination_reason == EliminationReason.NO_PICK
        assert record.eliminated_by is None

    def test_no_pick_for_past_week_without_game_data(self):
        games_by_week = {1: week(final("101", "C", "D", 24, 10))}
        record = evaluate_survivor({1: "C"}, games_by_week, current_week=3)

        assert record.eliminated_week == 2
        assert record.elimination_reason == EliminationReason.NO_PICK

    def test_no_pick_for_current_week_not_started(self):
        later = datetime.now(timezone.utc) + timedelta(days=3)
        games_by_week = {
            1: week(final("101", "C", "D", 24, 10)),
            2: week(scheduled("201", "E", "F", kickoff=later)),
        }
        record = evaluate_survivor({1: "C"}, games_by_week, current_week=2)

        assert record.alive is True
        assert record.weeks_survived == 1

    def test_no_pick_once_kickoff_passed(self):
        kickoff = datetime(2025, 9, 14, 17, 0, tzinfo=timezone.utc)
        games_by_week = {
            1: week(final("101", "C", "D", 24, 10)),
            2: week(scheduled("201", "E", "F", kickoff=kickoff)),
        }
        now = kickoff + timedelta(minutes=5)
        record = evaluate_survivor({1: "C"}, games_by_week, 2, now=now)

        assert record.elimination_reason == EliminationReason.NO_PICK

    def test_loss_eliminates(self):
        games_by_week = {1: week(final("101", "C", "D", 10, 24))}
        record = evaluate_survivor({1: "C"}, games_by_week, current_week=1)

        assert record.alive is False
        assert record.eliminated_week == 1
        assert record.elimination_reason == EliminationReason.LOST
        assert record.eliminated_by == "C"
        assert record.weeks_survived == 0

    def test_tie_survives(self):
        games_by_week = {1: week(final("101", "C", "D", 20, 20))}
        record = evaluate_survivor({1: "C"}, games_by_week, current_week=1)

        assert record.alive is True
        assert record.pick_history[0].result == SurvivorResult.TIED
        assert record.weeks_survived == 1

    def test_pending_game_keeps_user_alive(self):
        games_by_week = {1: week(scheduled("101", "C", "D"))}
        record = evaluate_survivor({1: "C"}, games_by_week, current_week=1)

        assert record.alive is True
        assert record.pick_history[0].result == SurvivorResult.PENDING
        assert record.weeks_survived == 0

    def test_missing_game_is_pending_and_flagged(self):
        games_by_week = {1: week(final("101", "X", "Y", 24, 10))}
        record = evaluate_survivor({1: "C"}, games_by_week, 1, user_id="u1")

        assert record.alive is True
        assert record.pick_history[0].result == SurvivorResult.PENDING
        assert record.issues[0].kind == IssueKind.MISSING_GAME_DATA
        assert record.issues[0].user_id == "u1"

    def test_stops_at_first_elimination(self):
        games_by_week = {
            1: week(final("101", "C", "D", 10, 24)),
            2: week(final("201", "E", "F", 24, 10)),
        }
        record = evaluate_survivor({1: "C", 2: "E"}, games_by_week, current_week=2)

        assert record.eliminated_week == 1
        assert [w.week for w in record.pick_history] == [1]

    def test_weeks_judged_only_by_their_own_results(self):
        # C wins week 1 and loses week 2; the week 2 loss of another team
        # must not change the settled week 1 result
        games_by_week = {
            1: week(final("101", "C", "D", 24, 10)),
            2: week(final("201", "C", "E", 0, 35), final("202", "F", "G", 28, 3)),
        }
        record = evaluate_survivor({1: "C", 2: "F"}, games_by_week, current_week=2)

        assert record.alive is True
        assert [w.result for w in record.pick_history] == [
            SurvivorResult.WON,
            SurvivorResult.WON,
        ]

    def test_elimination_is_monotonic(self):
        games_by_week = {
            1: week(final("101", "C", "D", 24, 10)),
            2: week(final("201", "E", "F", 10, 24)),
            3: week(final("301", "G", "H", 24, 10)),
        }
        history = {1: "C", 2: "E", 3: "G"}

        for current_week in (2, 3):
            record = evaluate_survivor(history, games_by_week, current_week)
            assert record.alive is False
            assert record.eliminated_week == 2

    def test_accepts_pairs_and_normalizes_team_names(self):
        games_by_week = {
            1: week(final("101", "Kansas City Chiefs", "Baltimore Ravens", 27, 20)),
        }
        record = evaluate_survivor([(1, "KC Chiefs")], games_by_week, current_week=1)

        assert record.alive is True
        assert record.pick_history[0].team == "Kansas City Chiefs"

    def test_result_discrepancy_is_reported(self):
        games_by_week = {1: week(final("101", "C", "D", 24, 10, winner=TIE))}
        record = evaluate_survivor({1: "C"}, games_by_week, current_week=1)

        assert record.alive is True
        assert record.issues[0].kind == IssueKind.AMBIGUOUS_TIE

    def test_to_dict(self):
        games_by_week = {1: week(final("101", "C", "D", 10, 24))}
        data = evaluate_survivor({1: "C"}, games_by_week, 1).to_dict()

        assert data["alive"] is False
        assert data["elimination_reason"] == "LOST"
        assert data["pick_history"] == [{"week": 1, "team": "C", "result": "lost"}]
