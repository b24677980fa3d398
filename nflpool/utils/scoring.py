"""
Scoring Engine for the confidence pool

This module scores one user's picks for one week against that week's game
results. It is a pure computation: the caller loads the inputs and persists
the returned WeeklyScore (see services/scoring_service.py).
For aggregated standings, see utils/leaderboard.py.
"""

from collections import Counter

from nflpool.utils.records import (
    DataIssue,
    IssueKind,
    PickOutcome,
    PickResult,
    WeeklyScore,
)


def is_pick_correct(game, team):
    """
    Check a picked team against a game result.

    Returns:
        True if the game is decided and the team won, or the game was a tie
            and the team played in it
        False if the game is decided and the team did not win
        None if the game is not decided yet

    Args:
        game: GameResult for the picked game
        team: canonical team name
    """
    outcome = game.resolve()
    if not outcome.decided:
        return None

    # Tie game: nobody lost, either side gets credit
    if outcome.is_tie:
        return game.involves(team)

    return team == outcome.winner


def _result_issue(game, week=None):
    outcome = game.resolve()
    if outcome.discrepancy is None:
        return None
    return DataIssue(
        kind=outcome.discrepancy,
        message=(
            f"Stored winner {game.winner!r} disagrees with score "
            f"{game.away_team} {game.away_score} - {game.home_team} {game.home_score}"
        ),
        week=week,
        game_id=game.game_id,
    )


def game_result_issues(games, week=None):
    """Collect winner/score discrepancies for a week's games"""
    issues = []
    for game in games.values():
        issue = _result_issue(game, week)
        if issue:
            issues.append(issue)
    return issues


def score_pick(pick, game):
    """Score a single valid pick attempt against its game (None if absent)"""
    if game is None:
        return PickResult(
            game_id=pick.game_id,
            team=pick.team,
            confidence=pick.confidence,
            outcome=PickOutcome.PENDING,
        )

    outcome = game.resolve()
    correct = is_pick_correct(game, pick.team)

    if correct is None:
        result_outcome = PickOutcome.PENDING
    elif correct:
        result_outcome = PickOutcome.CORRECT
    else:
        result_outcome = PickOutcome.INCORRECT

    return PickResult(
        game_id=pick.game_id,
        team=pick.team,
        confidence=pick.confidence,
        outcome=result_outcome,
        points=pick.confidence if correct else 0,
        is_tie=outcome.is_tie,
        game_winner=outcome.winner,
    )


def score_week(games, picks, user_id=None, week=None):
    """
    Calculate a user's confidence score for one week.

    A pick missing its team or confidence is malformed and left out of every
    count. Any other pick counts toward total_picks even if its game is not
    final yet. Correct picks earn their confidence value, ties count as
    correct for a picker of either team.

    Args:
        games: {game_id: GameResult} for the week
        picks: {game_id: PickEntry} for the user
        user_id: optional, only used to label issues
        week: optional, only used to label issues

    Returns:
        WeeklyScore
    """
    score = WeeklyScore()
    decided_games = 0

    for game in games.values():
        if game.resolve().decided:
            decided_games += 1

    for game_id in sorted(picks):
        pick = picks[game_id]

        if not pick.is_valid_attempt:
            score.pick_results.append(
                PickResult(
                    game_id=pick.game_id,
                    team=pick.team,
                    confidence=pick.confidence,
                    outcome=PickOutcome.MALFORMED,
                )
            )
            score.issues.append(
                DataIssue(
                    kind=IssueKind.MALFORMED_PICK,
                    message="Pick is missing a team or confidence value",
                    user_id=user_id,
                    week=week,
                    game_id=pick.game_id,
                )
            )
            continue

        score.total_picks += 1
        game = games.get(pick.game_id)

        if game is None:
            score.issues.append(
                DataIssue(
                    kind=IssueKind.MISSING_GAME_DATA,
                    message="Picked game is not in the week's results",
                    user_id=user_id,
                    week=week,
                    game_id=pick.game_id,
                )
            )

        result = score_pick(pick, game)
        score.pick_results.append(result)

        if result.outcome in (PickOutcome.CORRECT, PickOutcome.INCORRECT):
            score.possible_points += pick.confidence

        if result.outcome == PickOutcome.CORRECT:
            score.correct_picks += 1
            score.total_points += result.points

    score.max_possible_points = decided_games * (decided_games + 1) // 2
    score.accuracy = (
        round(score.correct_picks / score.total_picks * 100, 2)
        if score.total_picks > 0
        else 0
    )
    return score


def validate_confidence(picks, game_count, user_id=None, week=None):
    """
    Check that a user's confidence values form a permutation of 1..game_count.

    Violations are reported, never raised: scoring still runs on whatever
    values are stored.
    """
    issues = []
    values = [p.confidence for p in picks.values() if p.confidence is not None]

    for value, count in sorted(Counter(values).items()):
        if count > 1:
            issues.append(
                DataIssue(
                    kind=IssueKind.INVALID_CONFIDENCE,
                    message=f"Confidence {value} used {count} times",
                    user_id=user_id,
                    week=week,
                )
            )

    for pick in sorted(picks.values(), key=lambda p: p.game_id):
        if pick.confidence is None:
            continue
        if pick.confidence == 0 or pick.confidence > game_count:
            issues.append(
                DataIssue(
                    kind=IssueKind.INVALID_CONFIDENCE,
                    message=(
                        f"Confidence {pick.confidence} outside 1..{game_count}"
                    ),
                    user_id=user_id,
                    week=week,
                    game_id=pick.game_id,
                )
            )

    return issues
