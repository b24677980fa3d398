from nflpool import db  # noqa: F401 - imported for model imports

from .game import Game
from .pick import ConfidencePick, SurvivorPick
from .pool import Pool
from .pool_member import PoolMember
from .survivor_status import SurvivorStatus
from .weekly_score import UserWeeklyScore

__all__ = [
    "Pool",
    "PoolMember",
    "Game",
    "ConfidencePick",
    "SurvivorPick",
    "UserWeeklyScore",
    "SurvivorStatus",
]
