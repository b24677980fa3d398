"""
Leaderboard aggregation for the confidence pool

Ranks weekly scores and season totals. Ordering is points descending, then
user id ascending so equal totals always list in the same order. Equal
totals share a rank (120, 120, 95 -> 1, 1, 3).
"""

import math

from nflpool.utils.records import DataIssue, IssueKind, LeaderboardEntry


def _display_name(user_id, member):
    if member is None:
        return user_id
    if isinstance(member, dict):
        return member.get("display_name") or member.get("email") or user_id
    return getattr(member, "display_name", None) or getattr(member, "email", None) or user_id


def assign_ranks(entries):
    """Sort entries in place and assign competition ranks"""
    entries.sort(key=lambda e: (-e.points, e.user_id))

    previous_points = None
    for position, entry in enumerate(entries, start=1):
        if entry.points != previous_points:
            rank = position
            previous_points = entry.points
        entry.rank = rank

    return entries


def _unknown_member_issue(user_id, week=None):
    return DataIssue(
        kind=IssueKind.MISSING_POOL_MEMBER,
        message="Score belongs to a user who is not a pool member",
        user_id=user_id,
        week=week,
    )


def rank_week(scores, members, week=None):
    """
    Rank one week's scores.

    Args:
        scores: {user_id: WeeklyScore}
        members: {user_id: member} where member is a PoolMember or a dict
        week: optional, only used to label issues

    Returns:
        (entries, issues): ranked LeaderboardEntry list and skipped records
    """
    entries = []
    issues = []

    for user_id, member in members.items():
        score = scores.get(user_id)
        entry = LeaderboardEntry(
            user_id=user_id, display_name=_display_name(user_id, member)
        )
        if score is not None:
            entry.points = score.total_points
            entry.correct_picks = score.correct_picks
            entry.total_picks = score.total_picks
            entry.accuracy = score.accuracy
            entry.weeks_played = 1
            if week is not None:
                entry.weekly_points = {week: score.total_points}
        entries.append(entry)

    for user_id in sorted(set(scores) - set(members)):
        issues.append(_unknown_member_issue(user_id, week))

    return assign_ranks(entries), issues


def rank_season(weekly_scores, members):
    """
    Rank season totals.

    Every member appears: a member with no score for a week contributes 0 for
    it, and a member with no weeks at all totals 0.

    Args:
        weekly_scores: {week: {user_id: WeeklyScore}}
        members: {user_id: member}

    Returns:
        (entries, issues)
    """
    issues = []
    entries = {
        user_id: LeaderboardEntry(user_id=user_id, display_name=_display_name(user_id, member))
        for user_id, member in members.items()
    }

    for week in sorted(weekly_scores):
        for user_id, score in sorted(weekly_scores[week].items()):
            entry = entries.get(user_id)
            if entry is None:
                issues.append(_unknown_member_issue(user_id, week))
                continue

            entry.points += score.total_points
            entry.correct_picks += score.correct_picks
            entry.total_picks += score.total_picks
            entry.weekly_points[week] = score.total_points

    for entry in entries.values():
        _apply_season_stats(entry)

    return assign_ranks(list(entries.values())), issues


def _apply_season_stats(entry):
    weeks = entry.weekly_points
    entry.weeks_played = len(weeks)
    entry.accuracy = (
        round(entry.correct_picks / entry.total_picks * 100, 2)
        if entry.total_picks > 0
        else 0
    )

    if not weeks:
        return

    # Earliest week wins ties for best/worst
    best = max(sorted(weeks), key=lambda w: weeks[w])
    worst = min(sorted(weeks), key=lambda w: weeks[w])
    entry.best_week = {"week": best, "points": weeks[best]}
    entry.worst_week = {"week": worst, "points": weeks[worst]}

    if len(weeks) > 1:
        points = list(weeks.values())
        mean = sum(points) / len(points)
        variance = sum((p - mean) ** 2 for p in points) / len(points)
        entry.consistency = round(math.sqrt(variance), 2)


def season_total(weekly_scores, user_id):
    """Sum of a user's weekly points; weeks without a score count as 0"""
    return sum(
        scores[user_id].total_points
        for scores in weekly_scores.values()
        if user_id in scores
    )
