"""
Import of pool data exported as JSON documents

Game documents are shaped {game_id: {...}} per week, pick documents
{user_id: {game_id: {team, confidence}}} per week, and survivor documents
{user_id: {"picks": {week: {team}}}}. Everything goes through
utils/normalize.py before it is stored.
"""

import logging

from nflpool import db
from nflpool.exceptions import MemberExistsError
from nflpool.models import ConfidencePick, Game, PoolMember, SurvivorPick
from nflpool.services.scoring_service import scoring_service
from nflpool.utils.normalize import (
    games_from_document,
    picks_from_document,
    survivor_picks_from_document,
)

logger = logging.getLogger(__name__)


def add_member(
    pool_id,
    user_id,
    display_name=None,
    email=None,
    confidence=True,
    survivor=False,
):
    """Add a member to a pool, or reactivate one who left"""
    scoring_service.get_pool(pool_id)

    member = PoolMember.query.filter_by(pool_id=pool_id, user_id=user_id).first()
    if member is not None:
        if member.is_active:
            raise MemberExistsError(pool_id, user_id)
        member.reactivate()
    else:
        member = PoolMember(pool_id=pool_id, user_id=user_id)
        db.session.add(member)

    member.display_name = display_name
    member.email = email
    member.confidence_enabled = confidence
    member.survivor_enabled = survivor
    return member


def import_members(pool_id, document):
    """Import a members document {user_id: {displayName, email, participation}}"""
    scoring_service.get_pool(pool_id)
    imported = 0

    for user_id, raw in (document or {}).items():
        if not isinstance(raw, dict) or not user_id or user_id == "undefined":
            logger.warning(f"Skipping malformed member entry {user_id!r}")
            continue

        participation = raw.get("participation") or {}
        confidence = (participation.get("confidence") or {}).get("enabled", True)
        survivor = (participation.get("survivor") or {}).get("enabled", False)

        member = PoolMember.query.filter_by(pool_id=pool_id, user_id=user_id).first()
        if member is None:
            member = PoolMember(pool_id=pool_id, user_id=user_id)
            db.session.add(member)

        member.display_name = raw.get("displayName") or raw.get("display_name")
        member.email = raw.get("email")
        member.confidence_enabled = bool(confidence)
        member.survivor_enabled = bool(survivor)
        imported += 1

    db.session.commit()
    logger.info(f"Imported {imported} members into pool {pool_id}")
    return imported


def import_games(season, week, document):
    """Upsert a week's games document, returns (created, updated)"""
    created = 0
    updated = 0

    for game_id, result in games_from_document(document).items():
        game = Game.query.filter_by(season=season, week=week, game_id=game_id).first()
        if game is None:
            game = Game(
                season=season,
                week=week,
                game_id=game_id,
                away_team=result.away_team,
                home_team=result.home_team,
            )
            db.session.add(game)
            game.apply_result(result)
            created += 1
        elif game.apply_result(result):
            updated += 1

    db.session.commit()
    logger.info(f"Week {week} games imported: {created} created, {updated} updated")
    return created, updated


def import_confidence_picks(pool_id, week, document):
    """Replace stored confidence picks for every user in a week's picks document"""
    scoring_service.get_pool(pool_id)
    imported = 0

    for user_id, raw_picks in (document or {}).items():
        if not isinstance(raw_picks, dict):
            logger.warning(f"Skipping malformed picks for {user_id!r}")
            continue
        entries = picks_from_document(raw_picks)
        ConfidencePick.replace_user_week(pool_id, user_id, week, entries)
        imported += 1

    db.session.commit()
    logger.info(f"Week {week} picks imported for {imported} users in pool {pool_id}")
    return imported


def import_survivor_picks(pool_id, document):
    """Upsert survivor picks from {user_id: {"picks": {week: {team}}}}"""
    scoring_service.get_pool(pool_id)
    imported = 0

    for user_id, raw in (document or {}).items():
        if not isinstance(raw, dict):
            logger.warning(f"Skipping malformed survivor picks for {user_id!r}")
            continue
        for week, team in survivor_picks_from_document(raw).items():
            SurvivorPick.set_pick(pool_id, user_id, week, team)
            imported += 1

    db.session.commit()
    logger.info(f"Imported {imported} survivor picks into pool {pool_id}")
    return imported
