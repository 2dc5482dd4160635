from .event_repository import EventRepository
from .evaluator_repository import EvaluatorRepository
from .league_repository import LeagueRepository
from .pick_repository import PickRepository
from .prize_repository import PrizeRepository
from .user_repository import UserRepository

__all__ = [
    "EventRepository",
    "EvaluatorRepository",
    "LeagueRepository",
    "PickRepository",
    "PrizeRepository",
    "UserRepository",
]
