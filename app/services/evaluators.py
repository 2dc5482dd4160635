"""
🧮 Evaluadores - Reglas de puntuación por liga

Cada liga configura, por categoría de apuesta, cuántos puntos vale cada
criterio. Un criterio sin regla vale 0 (no es un error).

Catálogo de criterios:
- match: exact_score, winner, goal_difference, one_team_score, total_goals, scorer, draw,
  playoff_advance
- series: series_exact, series_winner
- special_bet: exact_team, exact_player, exact_value, closest_value
- question: question
"""

import logging
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.clock import Clock, SystemClock
from app.core.errors import NotFoundError, ValidationError
from app.models.evaluator import EvaluatorRule, EvaluatorRuleInput, FlatPoints, RankedPoints
from app.models.event import EventCategory
from app.repositories.evaluator_repository import EvaluatorRepository
from app.repositories.league_repository import LeagueRepository

logger = logging.getLogger(__name__)


EXACT_SCORE = "exact_score"
WINNER = "winner"
GOAL_DIFFERENCE = "goal_difference"
ONE_TEAM_SCORE = "one_team_score"
TOTAL_GOALS = "total_goals"
SCORER = "scorer"
DRAW = "draw"
PLAYOFF_ADVANCE = "playoff_advance"

SERIES_EXACT = "series_exact"
SERIES_WINNER = "series_winner"

EXACT_TEAM = "exact_team"
EXACT_PLAYER = "exact_player"
EXACT_VALUE = "exact_value"
CLOSEST_VALUE = "closest_value"

QUESTION = "question"

CRITERIA: dict[EventCategory, tuple[str, ...]] = {
    EventCategory.MATCH: (
        EXACT_SCORE, WINNER, GOAL_DIFFERENCE, ONE_TEAM_SCORE, TOTAL_GOALS, SCORER, DRAW, PLAYOFF_ADVANCE,
    ),
    EventCategory.SERIES: (SERIES_EXACT, SERIES_WINNER),
    EventCategory.SPECIAL_BET: (EXACT_TEAM, EXACT_PLAYER, EXACT_VALUE, CLOSEST_VALUE),
    EventCategory.QUESTION: (QUESTION,),
}

# Solo el goleador admite configuración por orden de anotación
RANKED_CRITERIA = {SCORER}


class EvaluatorRuleSet:
    """Lookup criterio -> puntos para una liga y una categoría"""

    def __init__(self, rules: Optional[list[EvaluatorRule]] = None):
        self._points: dict[str, FlatPoints | RankedPoints] = {}
        for rule in rules or []:
            self._points[rule.type] = rule.points

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "EvaluatorRuleSet":
        """
        Atajo para armar reglas en memoria:
            {"exact_score": 10, "scorer": RankedPoints(ranked_points={1: 3}, unranked_points=1)}
        """
        rule_set = cls()
        for criterion, value in config.items():
            rule_set._points[criterion] = value if isinstance(value, (FlatPoints, RankedPoints)) else FlatPoints(value=value)
        return rule_set

    @classmethod
    async def load(
        cls,
        db: AsyncIOMotorDatabase,
        league_id: int,
        entity: EventCategory,
        session: Any = None
    ) -> "EvaluatorRuleSet":
        rules = await EvaluatorRepository(db).list_for_league(league_id, entity, session=session)
        return cls(rules)

    def points(self, criterion: str, rank: Optional[int] = None) -> int:
        config = self._points.get(criterion)
        if config is None:
            return 0
        if isinstance(config, RankedPoints):
            return config.points_for(rank)
        return config.value


class EvaluatorService:
    """Configuración de evaluadores desde el panel de admin"""

    def __init__(self, db: AsyncIOMotorDatabase, clock: Optional[Clock] = None):
        self.repo = EvaluatorRepository(db)
        self.league_repo = LeagueRepository(db)
        self.clock = clock or SystemClock()

    async def _require_league(self, league_id: int) -> None:
        if await self.league_repo.get_by_id(league_id) is None:
            raise NotFoundError(f"League {league_id} not found")

    async def list_rules(self, league_id: int) -> list[EvaluatorRule]:
        await self._require_league(league_id)
        return await self.repo.list_for_league(league_id)

    async def upsert_rule(self, league_id: int, rule: EvaluatorRuleInput) -> EvaluatorRule:
        entity = EventCategory(rule.entity)
        if rule.type not in CRITERIA[entity]:
            raise ValidationError(f"Unknown evaluator '{rule.type}' for {entity.value}")
        if isinstance(rule.points, RankedPoints) and rule.type not in RANKED_CRITERIA:
            raise ValidationError(f"Evaluator '{rule.type}' only accepts flat points")

        await self._require_league(league_id)
        saved = await self.repo.upsert(league_id, rule, self.clock.now())
        logger.info("Evaluator %s/%s saved for league %s", entity.value, rule.type, league_id)
        return saved

    async def delete_rule(self, league_id: int, entity: EventCategory, type: str) -> None:
        await self._require_league(league_id)
        deleted = await self.repo.soft_delete(league_id, entity, type, self.clock.now())
        if not deleted:
            raise NotFoundError(f"Evaluator '{type}' not configured for {EventCategory(entity).value}")
