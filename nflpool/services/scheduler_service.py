"""
NFL pool automatic sync scheduler service

Background jobs (APScheduler) that pull game results for the current week and
re-run confidence scoring and survivor evaluation for every active pool once
games go final.
"""

import atexit
import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from flask import current_app

from nflpool import db
from nflpool.models import Pool
from nflpool.services.scoring_service import scoring_service
from nflpool.utils.data_sync import DataSync
from nflpool.utils.timezone_utils import get_current_time, get_current_week

logger = logging.getLogger(__name__)

# Thursday, Sunday, Monday
GAME_DAYS = (3, 6, 0)


class SchedulerService:
    """Manages automatic background syncing of game results and pool scoring"""

    def __init__(self, app=None):
        self.scheduler = None
        self.app = app
        self.data_sync = None
        self.is_running = False
        self.sync_stats = {
            "last_sync": None,
            "total_syncs": 0,
            "successful_syncs": 0,
            "failed_syncs": 0,
            "last_error": None,
            "games_finalized": 0,
        }

        if app:
            self.init_app(app)

    def init_app(self, app):
        """Initialize scheduler with Flask app"""
        self.app = app
        self.scheduler = BackgroundScheduler(daemon=True, timezone="UTC")
        self.data_sync = DataSync(app.config.get("ESPN_API_BASE_URL"))

        atexit.register(self.shutdown)

        if app.config.get("SCHEDULER_ENABLED", True):
            self.start()

    def start(self):
        """Start the background scheduler"""
        if self.is_running:
            return

        try:
            self.scheduler.remove_all_jobs()
            self._add_core_jobs()
            self.scheduler.start()
            self.is_running = True

            logger.info("Scheduler started successfully")

        except Exception as e:
            logger.error(f"Failed to start scheduler: {e}")
            raise

    def stop(self):
        """Stop the background scheduler"""
        if not self.is_running:
            return

        try:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Scheduler stopped")

        except Exception as e:
            logger.error(f"Error stopping scheduler: {e}")

    def shutdown(self):
        """Graceful shutdown"""
        self.stop()

    def _add_core_jobs(self):
        """Add core scheduled jobs"""

        # Live score updates on game days
        self.scheduler.add_job(
            func=self._sync_live_week,
            trigger=IntervalTrigger(minutes=5),
            id="sync_live_week",
            name="Sync Current Week Results",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=60,
        )

        # Hourly full refresh: sync and re-score regardless of changes
        self.scheduler.add_job(
            func=self._hourly_refresh,
            trigger=CronTrigger(minute=0),
            id="hourly_refresh",
            name="Hourly Pool Refresh",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=300,
        )

        logger.info("Core scheduled jobs added")

    def sync_week(self, week, rescore=False):
        """
        Sync a week's results and refresh every active pool.

        Pools are re-scored when a game went final during this sync, or always
        when rescore is True.

        Returns:
            (success, message)
        """
        season = current_app.config["SEASON_YEAR"]
        if self.data_sync is None:
            self.data_sync = DataSync(current_app.config.get("ESPN_API_BASE_URL"))

        success, message, newly_final = self.data_sync.sync_week_games(season, week)
        if not success:
            self._update_stats(False, error=message)
            return False, message

        if newly_final or rescore:
            self.refresh_pools(week)

        self._update_stats(True, len(newly_final))
        return True, message

    def refresh_pools(self, week):
        """Re-score the week and re-evaluate survivors for every active pool"""
        season = current_app.config["SEASON_YEAR"]
        pools = [p for p in Pool.get_active_pools() if p.season == season]

        for pool in pools:
            try:
                summary = scoring_service.score_week(pool.id, week)
                survivors = scoring_service.evaluate_survivors(pool.id, week)
                logger.info(
                    f"Pool {pool.id} week {week}: "
                    f"{summary['users_processed']} scored, "
                    f"{survivors['alive']}/{survivors['total']} survivors alive"
                )
            except Exception as e:
                db.session.rollback()
                logger.error(f"Error refreshing pool {pool.id}: {e}", exc_info=True)

        return len(pools)

    def _sync_live_week(self):
        """Frequent sync of the current week, only during game windows"""
        with self.app.app_context():
            try:
                if not self._is_game_time():
                    return
                self.sync_week(get_current_week())

            except Exception as e:
                db.session.rollback()
                self._update_stats(False, error=str(e))
                logger.error(f"Error in live week sync: {e}", exc_info=True)

    def _hourly_refresh(self):
        """Sync the current week and re-run scoring for all active pools"""
        with self.app.app_context():
            try:
                week = get_current_week()
                logger.info(f"Running hourly refresh for week {week}...")

                success, message = self.sync_week(week, rescore=True)
                if success:
                    logger.info(f"Hourly refresh completed: {message}")
                else:
                    logger.warning(f"Hourly refresh issues: {message}")

            except Exception as e:
                db.session.rollback()
                self._update_stats(False, error=str(e))
                logger.error(f"Error in hourly refresh: {e}", exc_info=True)

    def _is_game_time(self, now=None):
        """Check if it is a game day between noon and 1 AM in the app timezone"""
        now = now or get_current_time()

        if now.weekday() in GAME_DAYS and now.hour >= 12:
            return True
        # Late games run past midnight into Friday, Monday and Tuesday
        previous_day = (now.weekday() - 1) % 7
        return previous_day in GAME_DAYS and now.hour < 1

    def _update_stats(self, success, games_finalized=0, error=None):
        """Update sync statistics"""
        self.sync_stats["last_sync"] = datetime.now(timezone.utc)
        self.sync_stats["total_syncs"] += 1

        if success:
            self.sync_stats["successful_syncs"] += 1
            self.sync_stats["games_finalized"] += games_finalized
            self.sync_stats["last_error"] = None
        else:
            self.sync_stats["failed_syncs"] += 1
            self.sync_stats["last_error"] = error

    def get_status(self):
        """Get scheduler status information"""
        jobs = []
        if self.scheduler and self.is_running:
            for job in self.scheduler.get_jobs():
                next_run = job.next_run_time
                jobs.append(
                    {
                        "id": job.id,
                        "name": job.name,
                        "next_run": next_run.isoformat() if next_run else None,
                        "trigger": str(job.trigger),
                    }
                )

        stats = dict(self.sync_stats)
        if stats["last_sync"]:
            stats["last_sync"] = stats["last_sync"].isoformat()

        espn_api = self.data_sync.get_rate_limit_status() if self.data_sync else None

        return {
            "is_running": self.is_running,
            "jobs": jobs,
            "stats": stats,
            "espn_api": espn_api,
        }


# Global scheduler instance
scheduler_service = SchedulerService()
