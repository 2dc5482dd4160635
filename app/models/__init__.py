from .user import User
from .league import League, LeagueUser, LeagueTeam, LeaguePlayer, MatchPhase, PrizeTier, PrizeType
from .event import EventCategory, Event, Match, Series, SpecialBet, Question
from .pick import Pick, MatchPick, SeriesPick, SpecialBetPick, QuestionPick
from .evaluator import EvaluatorRule, FlatPoints, RankedPoints
from .leaderboard import LeaderboardEntry, LeaderboardData

__all__ = [
    "User",
    "League",
    "LeagueUser",
    "LeagueTeam",
    "LeaguePlayer",
    "MatchPhase",
    "PrizeTier",
    "PrizeType",
    "EventCategory",
    "Event",
    "Match",
    "Series",
    "SpecialBet",
    "Question",
    "Pick",
    "MatchPick",
    "SeriesPick",
    "SpecialBetPick",
    "QuestionPick",
    "EvaluatorRule",
    "FlatPoints",
    "RankedPoints",
    "LeaderboardEntry",
    "LeaderboardData",
]
