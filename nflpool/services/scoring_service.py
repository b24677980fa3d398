"""
Pool scoring service

Loads games, picks and members from the database, runs the pure scoring,
survivor and leaderboard computations, and writes the derived results back.
All writes are upserts, so re-running a week simply overwrites the previous
results with identical values.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

from nflpool import db
from nflpool.exceptions import PoolNotFoundError
from nflpool.models import (
    ConfidencePick,
    Game,
    Pool,
    SurvivorPick,
    SurvivorStatus,
    UserWeeklyScore,
)
from nflpool.utils.cache_utils import invalidate_pool_cache
from nflpool.utils.leaderboard import rank_season, rank_week
from nflpool.utils.logging_config import ContextualLogger
from nflpool.utils.records import DataIssue, IssueKind
from nflpool.utils.scoring import game_result_issues, score_week, validate_confidence
from nflpool.utils.survivor import evaluate_survivor

logger = logging.getLogger(__name__)


def _non_member_issues(picks_by_user, members, week):
    return [
        DataIssue(
            kind=IssueKind.MISSING_POOL_MEMBER,
            message="Picks belong to a user who is not a pool member",
            user_id=user_id,
            week=week,
        )
        for user_id in sorted(set(picks_by_user) - set(members))
    ]


def _log_issues(log, issues):
    for issue in issues:
        log.warning(
            f"{issue.kind.value}: {issue.message} "
            f"(user={issue.user_id} week={issue.week} game={issue.game_id})"
        )


class ScoringService:
    """Runs scoring and survivor evaluation for a pool"""

    def get_pool(self, pool_id):
        pool = db.session.get(Pool, pool_id)
        if pool is None:
            raise PoolNotFoundError(pool_id)
        return pool

    def score_week(self, pool_id, week, commit=True):
        """
        Score every confidence member's picks for a week and store the results.

        Members without picks for the week are skipped (no row written). A
        failure for one member is logged and reported; the rest still run.

        Returns:
            dict summary of the run
        """
        pool = self.get_pool(pool_id)
        log = ContextualLogger(__name__, {"pool": pool_id, "week": week})

        games = Game.get_week_results(pool.season, week)
        members = pool.get_members(game="confidence")
        picks_by_user = ConfidencePick.get_week_picks(pool_id, week)

        results = {
            "pool_id": pool_id,
            "week": week,
            "games": len(games),
            "completed_games": sum(1 for g in games.values() if g.is_final),
            "users_processed": 0,
            "users_skipped": 0,
            "issues": [],
            "errors": [],
        }

        result_issues = game_result_issues(games, week)
        _log_issues(log, result_issues)
        results["issues"].extend(i.to_dict() for i in result_issues)

        calculated_at = datetime.now(timezone.utc)

        for user_id in members:
            picks = picks_by_user.get(user_id)
            if not picks:
                # Picks may have been cleared since the last run
                if UserWeeklyScore.clear(pool_id, user_id, week):
                    log.info(f"Removed stale score for {user_id}, no picks stored")
                results["users_skipped"] += 1
                continue

            try:
                score = score_week(games, picks, user_id=user_id, week=week)
                UserWeeklyScore.upsert(pool_id, user_id, week, score, calculated_at)
                results["users_processed"] += 1

                _log_issues(log, score.issues)
                results["issues"].extend(i.to_dict() for i in score.issues)
                log.debug(
                    f"{user_id}: {score.total_points} points "
                    f"({score.correct_picks}/{score.total_picks} correct)"
                )
            except Exception as e:
                log.error(f"Error scoring user {user_id}: {e}", exc_info=True)
                results["errors"].append({"user_id": user_id, "error": str(e)})

        # Picks stored for users outside the pool are kept but never scored
        non_member_issues = _non_member_issues(picks_by_user, members, week)
        _log_issues(log, non_member_issues)
        results["issues"].extend(i.to_dict() for i in non_member_issues)

        if commit:
            self._commit(pool_id)

        log.info(
            f"Weekly scoring complete: {results['users_processed']} processed, "
            f"{results['users_skipped']} skipped, {len(results['errors'])} errors"
        )
        return results

    def score_season(self, pool_id, through_week, commit=True):
        """Re-score weeks 1..through_week"""
        summaries = [
            self.score_week(pool_id, week, commit=False)
            for week in range(1, through_week + 1)
        ]
        if commit:
            self._commit(pool_id)
        return summaries

    def evaluate_survivors(self, pool_id, current_week, commit=True, now=None):
        """
        Evaluate every survivor member through current_week and store the result.

        Returns:
            dict summary with alive/eliminated counts
        """
        pool = self.get_pool(pool_id)
        log = ContextualLogger(__name__, {"pool": pool_id, "week": current_week})

        games_by_week = Game.get_results_by_week(pool.season, current_week)
        members = pool.get_members(game="survivor")
        histories = SurvivorPick.get_pool_histories(pool_id)

        results = {
            "pool_id": pool_id,
            "week": current_week,
            "alive": 0,
            "eliminated": 0,
            "total": len(members),
            "eliminations": [],
            "issues": [],
            "errors": [],
        }

        calculated_at = datetime.now(timezone.utc)

        for user_id in members:
            try:
                record = evaluate_survivor(
                    histories.get(user_id, {}),
                    games_by_week,
                    current_week,
                    user_id=user_id,
                    now=now,
                )
                SurvivorStatus.upsert(pool_id, user_id, record, current_week, calculated_at)

                _log_issues(log, record.issues)
                results["issues"].extend(i.to_dict() for i in record.issues)

                if record.alive:
                    results["alive"] += 1
                else:
                    results["eliminated"] += 1
                    results["eliminations"].append(
                        {
                            "user_id": user_id,
                            "week": record.eliminated_week,
                            "reason": record.elimination_reason.value,
                            "team": record.eliminated_by,
                        }
                    )
            except Exception as e:
                log.error(f"Error evaluating survivor {user_id}: {e}", exc_info=True)
                results["errors"].append({"user_id": user_id, "error": str(e)})

        if commit:
            self._commit(pool_id)

        log.info(
            f"Survivor evaluation complete: {results['alive']} alive, "
            f"{results['eliminated']} eliminated"
        )
        return results

    def weekly_leaderboard(self, pool_id, week):
        """Ranked confidence standings for one week from stored scores"""
        pool = self.get_pool(pool_id)
        members = pool.get_members(game="confidence")
        scores = UserWeeklyScore.get_week_scores(pool_id, week)

        entries, issues = rank_week(scores, members, week=week)
        _log_issues(logger, issues)
        return {
            "pool_id": pool_id,
            "week": week,
            "standings": [e.to_dict() for e in entries],
            "skipped": [i.to_dict() for i in issues],
        }

    def season_leaderboard(self, pool_id, through_week=None):
        """Ranked season totals from stored weekly scores"""
        pool = self.get_pool(pool_id)
        members = pool.get_members(game="confidence")
        weekly_scores = UserWeeklyScore.get_scores_by_week(pool_id, through_week)

        entries, issues = rank_season(weekly_scores, members)
        _log_issues(logger, issues)
        return {
            "pool_id": pool_id,
            "through_week": through_week,
            "weeks": sorted(weekly_scores),
            "standings": [e.to_dict() for e in entries],
            "skipped": [i.to_dict() for i in issues],
        }

    def survivor_table(self, pool_id):
        """Stored survivor status for every survivor member, alive first"""
        pool = self.get_pool(pool_id)
        members = pool.get_members(game="survivor")
        statuses = {
            s.user_id: s
            for s in SurvivorStatus.query.filter_by(pool_id=pool_id).all()
        }

        rows = []
        for user_id, member in members.items():
            status = statuses.get(user_id)
            row = status.to_dict() if status else {
                "pool_id": pool_id,
                "user_id": user_id,
                "alive": True,
                "eliminated_week": None,
                "elimination_reason": None,
                "eliminated_by": None,
                "weeks_survived": 0,
                "pick_history": [],
                "evaluated_through_week": None,
                "calculated_at": None,
            }
            row["display_name"] = member.full_name
            rows.append(row)

        # Alive first, then latest elimination first, then user id
        rows.sort(
            key=lambda r: (not r["alive"], -(r["eliminated_week"] or 0), r["user_id"])
        )
        return {
            "pool_id": pool_id,
            "summary": {
                "alive": sum(1 for r in rows if r["alive"]),
                "eliminated": sum(1 for r in rows if not r["alive"]),
                "total": len(rows),
            },
            "entries": rows,
        }

    def user_week_score(self, pool_id, user_id, week):
        """Recompute one user's week with the per-pick breakdown (not stored)"""
        pool = self.get_pool(pool_id)
        games = Game.get_week_results(pool.season, week)
        picks = ConfidencePick.get_week_picks(pool_id, week).get(user_id, {})
        score = score_week(games, picks, user_id=user_id, week=week)
        data = score.to_dict(include_details=True)
        data.update({"pool_id": pool_id, "user_id": user_id, "week": week})
        return data

    def audit_week(self, pool_id, week):
        """
        Report data problems for a week without writing anything: confidence
        values that are not a permutation, malformed picks, picks on unknown
        games, and games whose winner disagrees with the score.
        """
        pool = self.get_pool(pool_id)
        games = Game.get_week_results(pool.season, week)
        members = pool.get_members(include_inactive=True)
        picks_by_user = ConfidencePick.get_week_picks(pool_id, week)

        issues = game_result_issues(games, week)
        for user_id, picks in sorted(picks_by_user.items()):
            issues.extend(validate_confidence(picks, len(games), user_id=user_id, week=week))
            issues.extend(score_week(games, picks, user_id=user_id, week=week).issues)

        issues.extend(_non_member_issues(picks_by_user, members, week))
        return [i.to_dict() for i in issues]

    def _commit(self, pool_id):
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to store results for pool {pool_id}: {e}")
            raise
        invalidate_pool_cache(pool_id)


scoring_service = ScoringService()
