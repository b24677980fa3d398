"""
Survivor pool elimination

Walks a user's survivor picks week by week and decides whether they are
still alive. Each week is judged only against that week's own game map, so
a later week's results can never re-flag an earlier, already settled week.
"""

from nflpool.utils.records import (
    DataIssue,
    EliminationReason,
    IssueKind,
    SurvivorRecord,
    SurvivorResult,
    SurvivorWeek,
)
from nflpool.utils.scoring import is_pick_correct
from nflpool.utils.teams import normalize_team_name


def _history_by_week(pick_history):
    """Accept {week: team} or an ordered sequence of (week, team) pairs"""
    if hasattr(pick_history, "items"):
        pairs = pick_history.items()
    else:
        pairs = pick_history or []

    history = {}
    for week, team in pairs:
        team = normalize_team_name(team)
        if team:
            history[int(week)] = team
    return history


def find_team_game(games, team):
    """Find the game in a week's map that the team plays in"""
    for game in games.values():
        if game.involves(team):
            return game
    return None


def week_has_started(games, now=None):
    return any(game.has_started(now) for game in games.values())


def evaluate_survivor(pick_history, games_by_week, current_week, user_id=None, now=None):
    """
    Evaluate a survivor entry up to and including current_week.

    Elimination triggers, checked in week order starting at week 1:
        NO_PICK     no pick for a past week, or for the current week once
                    any of its games has started
        TEAM_REUSE  the team was already used in an earlier week
        LOST        the team's game is final, not a tie, and the team lost

    The scan stops at the first elimination. A current week that has not
    started and has no pick also ends the scan, with the entry still alive.

    Args:
        pick_history: {week: team} or [(week, team), ...]
        games_by_week: {week: {game_id: GameResult}}
        current_week: last week to evaluate
        user_id: optional, only used to label issues
        now: optional clock override for kickoff checks

    Returns:
        SurvivorRecord
    """
    history = _history_by_week(pick_history)
    record = SurvivorRecord()
    used_teams = set()

    for week in range(1, current_week + 1):
        games = games_by_week.get(week) or {}
        team = history.get(week)

        if team is None:
            if week == current_week and not week_has_started(games, now):
                break
            record.pick_history.append(
                SurvivorWeek(week=week, team=None, result=SurvivorResult.NO_PICK)
            )
            _eliminate(record, week, EliminationReason.NO_PICK, None)
            break

        if team in used_teams:
            record.pick_history.append(
                SurvivorWeek(week=week, team=team, result=SurvivorResult.REUSED)
            )
            _eliminate(record, week, EliminationReason.TEAM_REUSE, team)
            break

        used_teams.add(team)
        game = find_team_game(games, team)

        if game is None:
            record.issues.append(
                DataIssue(
                    kind=IssueKind.MISSING_GAME_DATA,
                    message=f"No week {week} game found for {team}",
                    user_id=user_id,
                    week=week,
                )
            )
            record.pick_history.append(
                SurvivorWeek(week=week, team=team, result=SurvivorResult.PENDING)
            )
            continue

        outcome = game.resolve()
        if outcome.discrepancy is not None:
            record.issues.append(
                DataIssue(
                    kind=outcome.discrepancy,
                    message=(
                        f"Stored winner {game.winner!r} disagrees with score "
                        f"{game.away_score}-{game.home_score}"
                    ),
                    user_id=user_id,
                    week=week,
                    game_id=game.game_id,
                )
            )

        survived = is_pick_correct(game, team)

        if survived is None:
            result = SurvivorResult.PENDING
        elif outcome.is_tie:
            result = SurvivorResult.TIED
        elif survived:
            result = SurvivorResult.WON
        else:
            result = SurvivorResult.LOST

        record.pick_history.append(SurvivorWeek(week=week, team=team, result=result))

        if result == SurvivorResult.LOST:
            _eliminate(record, week, EliminationReason.LOST, team)
            break

        if result in (SurvivorResult.WON, SurvivorResult.TIED):
            record.weeks_survived += 1

    return record


def _eliminate(record, week, reason, team):
    record.alive = False
    record.eliminated_week = week
    record.elimination_reason = reason
    record.eliminated_by = team
