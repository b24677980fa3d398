import pytest

from nflpool import create_app, db
from nflpool.models import ConfidencePick, Game, Pool, PoolMember, SurvivorPick
from nflpool.utils.records import PickEntry

SEASON = 2025
POOL_ID = "test-pool"


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def pool(app):
    """A pool with three confidence players, two of whom also play survivor"""
    pool = Pool.create_pool(POOL_ID, "Test Pool", SEASON)
    db.session.add_all(
        [
            PoolMember(
                pool_id=POOL_ID,
                user_id="alice",
                display_name="Alice",
                survivor_enabled=True,
            ),
            PoolMember(
                pool_id=POOL_ID,
                user_id="bob",
                display_name="Bob",
                survivor_enabled=True,
            ),
            PoolMember(pool_id=POOL_ID, user_id="carol", display_name="Carol"),
        ]
    )
    db.session.commit()
    return pool


@pytest.fixture
def week1_games(app):
    """Week 1: two finals and one game still scheduled"""
    games = [
        Game(
            season=SEASON,
            week=1,
            game_id="101",
            away_team="Dallas Cowboys",
            home_team="Philadelphia Eagles",
            status="final",
            away_score=20,
            home_score=24,
        ),
        Game(
            season=SEASON,
            week=1,
            game_id="102",
            away_team="Kansas City Chiefs",
            home_team="Los Angeles Chargers",
            status="final",
            away_score=27,
            home_score=21,
        ),
        Game(
            season=SEASON,
            week=1,
            game_id="103",
            away_team="Buffalo Bills",
            home_team="Miami Dolphins",
            status="scheduled",
        ),
    ]
    db.session.add_all(games)
    db.session.commit()
    return games


def store_picks(user_id, week, picks, pool_id=POOL_ID):
    """Store {game_id: (team, confidence)} for a user"""
    entries = {
        game_id: PickEntry(game_id=game_id, team=team, confidence=confidence)
        for game_id, (team, confidence) in picks.items()
    }
    ConfidencePick.replace_user_week(pool_id, user_id, week, entries)
    db.session.commit()


def store_survivor(user_id, history, pool_id=POOL_ID):
    for week, team in history.items():
        SurvivorPick.set_pick(pool_id, user_id, week, team)
    db.session.commit()


@pytest.fixture
def week1_picks(pool, week1_games):
    # alice: both finals right (3 + 2), bob: one right (1), carol has no picks
    store_picks(
        "alice",
        1,
        {
            "101": ("Philadelphia Eagles", 3),
            "102": ("Kansas City Chiefs", 2),
            "103": ("Buffalo Bills", 1),
        },
    )
    store_picks(
        "bob",
        1,
        {
            "101": ("Dallas Cowboys", 2),
            "102": ("Kansas City Chiefs", 1),
            "103": ("Miami Dolphins", 3),
        },
    )
