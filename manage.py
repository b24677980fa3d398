#!/usr/bin/env python3
"""
NFL Pool Management CLI

Command-line management for pools: importing games and picks, running
confidence scoring and survivor evaluation, and printing standings.
"""

import json

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from nflpool import create_app, db
from nflpool.exceptions import PoolError
from nflpool.models import Game, Pool
from nflpool.services import import_service
from nflpool.services.scheduler_service import scheduler_service
from nflpool.services.scoring_service import scoring_service
from nflpool.utils.timezone_utils import get_current_week


def _fail(message):
    click.echo(f"❌ {message}")
    raise SystemExit(1)


def _load_json(path):
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        _fail(f"Could not read {path}: {e}")


def _print_issues(issues):
    if not issues:
        return
    click.echo(f"⚠️  {len(issues)} data issues:")
    for issue in issues:
        where = " ".join(
            f"{k}={issue[k]}" for k in ("user_id", "week", "game_id") if issue.get(k)
        )
        click.echo(f"  {issue['kind']}: {issue['message']} ({where})")


@click.group()
def cli():
    """NFL Pool Management CLI"""
    pass


# Pool Management Commands
@cli.group()
def pool():
    """Pool management commands"""
    pass


@pool.command("create")
@click.argument("pool_id")
@click.argument("name")
@click.option("--season", type=int, help="Season year (defaults to SEASON_YEAR)")
@with_appcontext
def create_pool(pool_id, name, season):
    """Create a new pool"""
    season = season or current_app.config["SEASON_YEAR"]

    if db.session.get(Pool, pool_id):
        click.echo(f"Pool {pool_id} already exists!")
        return

    try:
        Pool.create_pool(pool_id, name, season)
        db.session.commit()
        click.echo(f"✅ Created pool {pool_id} ({name}, {season} season)")
    except SQLAlchemyError as e:
        db.session.rollback()
        _fail(f"Error creating pool: {str(e)}")


@pool.command("add-member")
@click.argument("pool_id")
@click.argument("user_id")
@click.option("--name", "display_name", help="Display name")
@click.option("--email", help="Email address")
@click.option(
    "--confidence/--no-confidence", default=True, help="Play the confidence pool"
)
@click.option("--survivor/--no-survivor", default=False, help="Play the survivor pool")
@with_appcontext
def add_member(pool_id, user_id, display_name, email, confidence, survivor):
    """Add a member to a pool"""
    try:
        import_service.add_member(
            pool_id,
            user_id,
            display_name=display_name,
            email=email,
            confidence=confidence,
            survivor=survivor,
        )
        db.session.commit()
    except PoolError as e:
        db.session.rollback()
        _fail(str(e))
    except IntegrityError as e:
        db.session.rollback()
        _fail(f"Error adding member: {str(e)}")

    games = [g for g, on in (("confidence", confidence), ("survivor", survivor)) if on]
    click.echo(f"✅ Added {user_id} to {pool_id} ({', '.join(games) or 'no games'})")


@pool.command("list")
@with_appcontext
def list_pools():
    """List all pools"""
    pools = Pool.query.order_by(Pool.season.desc(), Pool.id).all()

    if not pools:
        click.echo("No pools found.")
        return

    click.echo("Pools:")
    for p in pools:
        status = "🟢 ACTIVE" if p.is_active else "⚪ Inactive"
        members = p.get_members()
        survivors = sum(1 for m in members.values() if m.survivor_enabled)
        click.echo(
            f"  {p.id}: {p.name} ({p.season}) {status} - "
            f"{len(members)} members, {survivors} in survivor"
        )


# Import Commands
@cli.group("import")
def import_cmd():
    """Import exported JSON documents"""
    pass


@import_cmd.command("games")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--week", type=int, required=True, help="Week number")
@click.option("--season", type=int, help="Season year (defaults to SEASON_YEAR)")
@with_appcontext
def import_games(path, week, season):
    """Import a week's games document"""
    season = season or current_app.config["SEASON_YEAR"]
    created, updated = import_service.import_games(season, week, _load_json(path))
    click.echo(f"✅ Week {week}: {created} games created, {updated} updated")


@import_cmd.command("members")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--pool", "pool_id", required=True, help="Pool id")
@with_appcontext
def import_members(path, pool_id):
    """Import a pool's members document"""
    try:
        count = import_service.import_members(pool_id, _load_json(path))
    except PoolError as e:
        _fail(str(e))
    click.echo(f"✅ Imported {count} members into {pool_id}")


@import_cmd.command("picks")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--pool", "pool_id", required=True, help="Pool id")
@click.option("--week", type=int, required=True, help="Week number")
@with_appcontext
def import_picks(path, pool_id, week):
    """Import a week's confidence picks document"""
    try:
        count = import_service.import_confidence_picks(pool_id, week, _load_json(path))
    except PoolError as e:
        _fail(str(e))
    click.echo(f"✅ Week {week}: picks imported for {count} users")


@import_cmd.command("survivor")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--pool", "pool_id", required=True, help="Pool id")
@with_appcontext
def import_survivor(path, pool_id):
    """Import a survivor picks document"""
    try:
        count = import_service.import_survivor_picks(pool_id, _load_json(path))
    except PoolError as e:
        _fail(str(e))
    click.echo(f"✅ Imported {count} survivor picks into {pool_id}")


# Scoring Commands
@cli.group()
def score():
    """Confidence pool scoring commands"""
    pass


@score.command("week")
@click.argument("pool_id")
@click.argument("week", type=int)
@with_appcontext
def score_week(pool_id, week):
    """Score every member's picks for a week"""
    try:
        results = scoring_service.score_week(pool_id, week)
    except PoolError as e:
        _fail(str(e))

    click.echo(
        f"✅ Week {week}: {results['users_processed']} scored, "
        f"{results['users_skipped']} without picks "
        f"({results['completed_games']}/{results['games']} games final)"
    )
    _print_issues(results["issues"])
    for error in results["errors"]:
        click.echo(f"❌ {error['user_id']}: {error['error']}")


@score.command("season")
@click.argument("pool_id")
@click.option("--through-week", type=int, help="Last week to score (defaults to current)")
@with_appcontext
def score_season(pool_id, through_week):
    """Re-score every week of the season"""
    through_week = through_week or get_current_week()
    try:
        summaries = scoring_service.score_season(pool_id, through_week)
    except PoolError as e:
        _fail(str(e))

    for results in summaries:
        click.echo(
            f"  Week {results['week']}: {results['users_processed']} scored, "
            f"{len(results['issues'])} issues, {len(results['errors'])} errors"
        )
    click.echo(f"✅ Scored weeks 1-{through_week} for {pool_id}")


# Survivor Commands
@cli.group()
def survivor():
    """Survivor pool commands"""
    pass


@survivor.command("evaluate")
@click.argument("pool_id")
@click.option("--week", type=int, help="Evaluate through this week (defaults to current)")
@with_appcontext
def evaluate_survivors(pool_id, week):
    """Evaluate every survivor member"""
    week = week or get_current_week()
    try:
        results = scoring_service.evaluate_survivors(pool_id, week)
    except PoolError as e:
        _fail(str(e))

    click.echo(
        f"✅ Through week {week}: {results['alive']} alive, "
        f"{results['eliminated']} eliminated of {results['total']}"
    )
    for elimination in results["eliminations"]:
        team = f" ({elimination['team']})" if elimination["team"] else ""
        click.echo(
            f"  {elimination['user_id']}: week {elimination['week']} "
            f"{elimination['reason']}{team}"
        )
    _print_issues(results["issues"])


@survivor.command("table")
@click.argument("pool_id")
@with_appcontext
def survivor_table(pool_id):
    """Show stored survivor status"""
    try:
        table = scoring_service.survivor_table(pool_id)
    except PoolError as e:
        _fail(str(e))

    summary = table["summary"]
    click.echo(f"Survivor: {summary['alive']} alive / {summary['total']}")
    for row in table["entries"]:
        if row["alive"]:
            status = f"🟢 alive ({row['weeks_survived']} weeks)"
        else:
            status = f"⚪ out week {row['eliminated_week']} ({row['elimination_reason']})"
        click.echo(f"  {row['display_name']}: {status}")


# Leaderboard Commands
@cli.group()
def leaderboard():
    """Leaderboard commands"""
    pass


def _print_standings(standings):
    if not standings:
        click.echo("No scores yet.")
        return
    for entry in standings:
        click.echo(
            f"  {entry['rank']:>3}. {entry['display_name']:<24} "
            f"{entry['points']:>4} pts  {entry['correct_picks']}/{entry['total_picks']}"
        )


@leaderboard.command("week")
@click.argument("pool_id")
@click.argument("week", type=int)
@with_appcontext
def week_leaderboard(pool_id, week):
    """Show the weekly leaderboard"""
    try:
        board = scoring_service.weekly_leaderboard(pool_id, week)
    except PoolError as e:
        _fail(str(e))

    click.echo(f"🏆 {pool_id} week {week}")
    _print_standings(board["standings"])


@leaderboard.command("season")
@click.argument("pool_id")
@click.option("--through-week", type=int, help="Only count weeks up to this one")
@with_appcontext
def season_leaderboard(pool_id, through_week):
    """Show the season leaderboard"""
    try:
        board = scoring_service.season_leaderboard(pool_id, through_week)
    except PoolError as e:
        _fail(str(e))

    click.echo(f"🏆 {pool_id} season ({len(board['weeks'])} weeks scored)")
    _print_standings(board["standings"])


# Audit Commands
@cli.group()
def audit():
    """Data audit commands"""
    pass


@audit.command("week")
@click.argument("pool_id")
@click.argument("week", type=int)
@with_appcontext
def audit_week(pool_id, week):
    """Report confidence and result problems for a week"""
    try:
        issues = scoring_service.audit_week(pool_id, week)
    except PoolError as e:
        _fail(str(e))

    if not issues:
        click.echo(f"✅ Week {week}: no issues found")
        return
    _print_issues(issues)


# Data Sync Commands
@cli.group()
def sync():
    """Data synchronization commands"""
    pass


@sync.command("week")
@click.argument("week", type=int)
@click.option("--rescore", is_flag=True, help="Re-score pools even if nothing went final")
@with_appcontext
def sync_week(week, rescore):
    """Sync a week's results from ESPN and refresh pools"""
    click.echo(f"Syncing week {week} results...")
    success, message = scheduler_service.sync_week(week, rescore=rescore)
    if not success:
        _fail(message)
    click.echo(f"✅ {message}")


# Database Commands
@cli.group("db-cmd")
def db_cmd():
    """Database commands"""
    pass


@db_cmd.command("init")
@with_appcontext
def init_db():
    """Initialize database tables"""
    try:
        db.create_all()
        click.echo("✅ Database tables created successfully!")
    except SQLAlchemyError as e:
        _fail(f"Error initializing database: {str(e)}")


@db_cmd.command("reset")
@with_appcontext
def reset():
    """⚠️  DANGER: Drop and recreate all tables"""
    if not click.confirm("This will DELETE ALL DATA. Are you sure?"):
        click.echo("Cancelled.")
        return

    try:
        db.drop_all()
        db.create_all()
        click.echo("✅ Database reset successfully!")
    except SQLAlchemyError as e:
        _fail(f"Error resetting database: {str(e)}")


@cli.command()
@with_appcontext
def status():
    """Show application status"""
    click.echo("🏈 NFL Pool Status")
    click.echo("=" * 40)

    try:
        db.session.execute(text("SELECT 1"))
        click.echo("✅ Database: Connected")
    except SQLAlchemyError as e:
        click.echo(f"❌ Database: Error - {str(e)}")
        return

    season = current_app.config["SEASON_YEAR"]
    click.echo(f"📅 Season: {season} (Week {get_current_week()})")

    pools = Pool.get_active_pools()
    click.echo(f"🏆 Active Pools: {len(pools)}")

    game_count = Game.query.filter_by(season=season).count()
    final_count = Game.query.filter_by(season=season, status="final").count()
    click.echo(f"🏈 Games: {final_count}/{game_count} completed")

    espn_api = scheduler_service.get_status()["espn_api"]
    if espn_api:
        click.echo(
            f"📡 ESPN API: {espn_api['requests_last_minute']}/"
            f"{espn_api['max_requests_per_minute']} requests in the last minute, "
            f"{espn_api['total_requests']} total"
        )
    else:
        click.echo("📡 ESPN API: no requests made yet")


if __name__ == "__main__":
    app = create_app()
    with app.app_context():
        cli()
