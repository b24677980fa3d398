from flask import current_app, request

from nflpool.models import Game
from nflpool.routes.api import bp
from nflpool.services.scheduler_service import scheduler_service
from nflpool.services.scoring_service import scoring_service
from nflpool.utils.cache_utils import cached_route
from nflpool.utils.timezone_utils import get_current_time, get_current_week


def _week_error(week):
    """Error response for a week outside the regular season, or None"""
    max_week = current_app.config.get("REGULAR_SEASON_WEEKS", 18)
    if week < 1 or week > max_week:
        return {"error": f"Week must be between 1 and {max_week}"}, 400
    return None


@bp.route("/status")
def status():
    """Service status: season, current week and scheduler state"""
    return {
        "season": current_app.config["SEASON_YEAR"],
        "current_week": get_current_week(),
        "default_pool_id": current_app.config.get("DEFAULT_POOL_ID"),
        "server_time": get_current_time().isoformat(),
        "scheduler": scheduler_service.get_status(),
    }


@bp.route("/weeks/<int:week>/games")
@cached_route(timeout=300, key_prefix="week_games")  # Short, scores change live
def week_games(week):
    """Games and results for a week of the configured season"""
    error = _week_error(week)
    if error:
        return error

    games = Game.get_games_for_week(current_app.config["SEASON_YEAR"], week)
    return {"week": week, "games": [game.to_dict() for game in games]}


@bp.route("/pools/<pool_id>/leaderboard/week/<int:week>")
@cached_route(timeout=600, key_prefix="week_leaderboard")
def week_leaderboard(pool_id, week):
    """Ranked confidence standings for one week"""
    error = _week_error(week)
    if error:
        return error
    return scoring_service.weekly_leaderboard(pool_id, week)


@bp.route("/pools/<pool_id>/leaderboard/season")
@cached_route(timeout=600, key_prefix="season_leaderboard")
def season_leaderboard(pool_id):
    """Ranked season totals, optionally only through a given week"""
    through_week = request.args.get("through_week", type=int)
    if through_week is not None:
        error = _week_error(through_week)
        if error:
            return error
    return scoring_service.season_leaderboard(pool_id, through_week)


@bp.route("/pools/<pool_id>/survivor")
@cached_route(timeout=600, key_prefix="survivor_table")
def survivor_table(pool_id):
    """Survivor status for every survivor member, alive first"""
    return scoring_service.survivor_table(pool_id)


@bp.route("/pools/<pool_id>/users/<user_id>/weeks/<int:week>/score")
def user_week_score(pool_id, user_id, week):
    """One user's week with the per-pick breakdown"""
    error = _week_error(week)
    if error:
        return error
    return scoring_service.user_week_score(pool_id, user_id, week)


@bp.route("/pools/<pool_id>/weeks/<int:week>/score", methods=["POST"])
def score_week(pool_id, week):
    """Re-run confidence scoring for a week"""
    error = _week_error(week)
    if error:
        return error

    current_app.logger.info(f"Scoring requested for pool {pool_id} week {week}")
    return scoring_service.score_week(pool_id, week)


@bp.route("/pools/<pool_id>/survivor/evaluate", methods=["POST"])
def evaluate_survivors(pool_id):
    """Re-evaluate survivors through ?week= (defaults to the current week)"""
    week = request.args.get("week", type=int) or get_current_week()
    error = _week_error(week)
    if error:
        return error

    current_app.logger.info(f"Survivor evaluation requested for pool {pool_id} week {week}")
    return scoring_service.evaluate_survivors(pool_id, week)
