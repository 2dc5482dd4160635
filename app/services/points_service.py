"""
Servicio de Puntos - Evalúa todos los picks de un evento

Flujo (una sola transacción):
1. Re-lee el evento: NotFound -> AlreadyEvaluated -> ResultMissing -> NotLinked
2. Calcula una vez los valores reales (ganador, diferencia, total, goleadores)
3. Calcula el total de cada pick en memoria
4. Sobrescribe total_points de todos los picks
5. Marca el evento como evaluado

Si algo falla en el medio no queda nada escrito.
"""

import logging
import time
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel

from app.core.clock import Clock, SystemClock
from app.core.errors import (
    AlreadyEvaluatedError,
    NotFoundError,
    NotLinkedError,
    ResultMissingError,
)
from app.database import TransactionRunner
from app.models.event import EventCategory, Match, Question, Series, SpecialBet
from app.models.pick import MatchPick, Pick, QuestionPick, SeriesPick, SpecialBetPick
from app.repositories.event_repository import EventRepository
from app.repositories.league_repository import LeagueRepository
from app.repositories.pick_repository import PickRepository
from app.services import evaluators as ev
from app.services.cache import invalidate_tag, leaderboard_tag, picks_tag

logger = logging.getLogger(__name__)


# ============================================
# 📌 VALORES REALES
# ============================================

def outcome(home: int, away: int) -> int:
    """1 = gana local, 2 = gana visitante, 0 = empate"""
    if home > away:
        return 1
    if away > home:
        return 2
    return 0


class MatchActual(BaseModel):
    """Valores derivados del resultado, calculados una vez por partido"""

    home: int
    away: int
    outcome: int
    goal_difference: int
    total_goals: int
    scorer_ranks: dict[int, int]  # player_id -> orden del primer gol (1 = primero)
    is_playoff_game: bool = False
    home_advanced: Optional[bool] = None

    @classmethod
    def from_match(cls, match: Match) -> "MatchActual":
        home, away = match.home_regular_score, match.away_regular_score
        ranks: dict[int, int] = {}
        for scorer in match.scorers:
            ranks.setdefault(scorer.player_id, len(ranks) + 1)
        return cls(
            home=home,
            away=away,
            outcome=outcome(home, away),
            goal_difference=home - away,
            total_goals=home + away,
            scorer_ranks=ranks,
            is_playoff_game=match.is_playoff_game,
            home_advanced=match.home_advanced,
        )


# ============================================
# 📌 CÁLCULO PURO (sin side effects)
# ============================================

def calculate_match_points(
    pick: MatchPick,
    actual: MatchActual,
    rules: ev.EvaluatorRuleSet,
    doubled: bool = False
) -> int:
    points = 0

    exact = pick.home_score == actual.home and pick.away_score == actual.away
    if exact:
        points += rules.points(ev.EXACT_SCORE)

    predicted_outcome = outcome(pick.home_score, pick.away_score)
    if predicted_outcome == actual.outcome:
        points += rules.points(ev.WINNER)

    # Se revisa siempre, también cuando ya acertó el marcador exacto
    same_difference = pick.home_score - pick.away_score == actual.goal_difference
    if same_difference:
        points += rules.points(ev.GOAL_DIFFERENCE)

    # Un solo equipo acertado: no paga si ya pagó exacto o diferencia
    if not exact and not same_difference and (pick.home_score == actual.home or pick.away_score == actual.away):
        points += rules.points(ev.ONE_TEAM_SCORE)

    if pick.home_score + pick.away_score == actual.total_goals:
        points += rules.points(ev.TOTAL_GOALS)

    if predicted_outcome == 0 and actual.outcome == 0 and not exact:
        points += rules.points(ev.DRAW)

    if pick.scorer_id is not None and pick.scorer_id in actual.scorer_ranks:
        points += rules.points(ev.SCORER, actual.scorer_ranks[pick.scorer_id])
    elif pick.no_scorer and not actual.scorer_ranks:
        points += rules.points(ev.SCORER)

    if (
        actual.is_playoff_game
        and actual.home_advanced is not None
        and pick.home_advanced is not None
        and pick.home_advanced == actual.home_advanced
    ):
        points += rules.points(ev.PLAYOFF_ADVANCE)

    return points * 2 if doubled else points


def calculate_series_points(pick: SeriesPick, series: Series, rules: ev.EvaluatorRuleSet) -> int:
    if pick.home_team_score == series.home_team_score and pick.away_team_score == series.away_team_score:
        return rules.points(ev.SERIES_EXACT)

    # El ganador solo paga si no acertó el resultado exacto
    predicted = outcome(pick.home_team_score, pick.away_team_score)
    if predicted != 0 and predicted == outcome(series.home_team_score, series.away_team_score):
        return rules.points(ev.SERIES_WINNER)

    return 0


def closest_distance(picks: list[SpecialBetPick], value: int) -> Optional[int]:
    """Menor distancia al valor real entre todos los picks (0 si alguien lo clavó)"""
    distances = [abs(p.value - value) for p in picks if p.value is not None]
    return min(distances) if distances else None


def calculate_special_bet_points(
    pick: SpecialBetPick,
    bet: SpecialBet,
    rules: ev.EvaluatorRuleSet,
    closest: Optional[int] = None
) -> int:
    criterion = bet.criterion

    if criterion == ev.EXACT_TEAM:
        hit = pick.team_result_id is not None and pick.team_result_id == bet.team_result_id
        return rules.points(ev.EXACT_TEAM) if hit else 0

    if criterion == ev.EXACT_PLAYER:
        hit = pick.player_result_id is not None and pick.player_result_id == bet.player_result_id
        return rules.points(ev.EXACT_PLAYER) if hit else 0

    if criterion == ev.EXACT_VALUE:
        hit = pick.value is not None and pick.value == bet.value
        return rules.points(ev.EXACT_VALUE) if hit else 0

    if criterion == ev.CLOSEST_VALUE:
        if pick.value is None or bet.value is None:
            return 0
        full = rules.points(ev.CLOSEST_VALUE)
        if pick.value == bet.value:
            return full
        if closest and abs(pick.value - bet.value) == closest:
            return round(full / 3)
        return 0

    logger.warning("Unknown special bet criterion '%s' on bet %s, skipped", criterion, bet.id)
    return 0


def calculate_question_points(pick: QuestionPick, question: Question, rules: ev.EvaluatorRuleSet) -> int:
    if pick.answer is None:
        return 0
    points = rules.points(ev.QUESTION)
    if pick.answer == question.result:
        return points
    return -(points // 2)


def score_picks(
    category: EventCategory,
    event: Any,
    picks: list[Pick],
    rules: ev.EvaluatorRuleSet
) -> dict[str, int]:
    """pick.id -> total. Determinista: mismo input, mismo output"""
    category = EventCategory(category)

    if category == EventCategory.MATCH:
        actual = MatchActual.from_match(event)
        return {p.id: calculate_match_points(p, actual, rules, event.is_doubled) for p in picks}

    if category == EventCategory.SERIES:
        return {p.id: calculate_series_points(p, event, rules) for p in picks}

    if category == EventCategory.SPECIAL_BET:
        closest = closest_distance(picks, event.value) if event.value is not None else None
        return {p.id: calculate_special_bet_points(p, event, rules, closest) for p in picks}

    return {p.id: calculate_question_points(p, event, rules) for p in picks}


# ============================================
# 📌 EVALUACIÓN
# ============================================

class PickScore(BaseModel):
    pick_id: str
    league_user_id: int
    total_points: int


class EvaluationSummary(BaseModel):
    event_id: int
    category: EventCategory
    picks_evaluated: int
    total_points: int
    results: list[PickScore] = []

    class Config:
        use_enum_values = True


class PointsService:
    """
    Motor de puntuación.

    Una evaluación por evento: el guard de is_evaluated se lee y se escribe
    dentro de la misma transacción, así dos "evaluate" simultáneos no pueden
    aplicar puntos dos veces.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        clock: Optional[Clock] = None,
        transactions: Optional[TransactionRunner] = None
    ):
        self.db = db
        self.event_repo = EventRepository(db)
        self.league_repo = LeagueRepository(db)
        self.pick_repo = PickRepository(db)
        self.clock = clock or SystemClock()
        self.transactions = transactions or TransactionRunner.for_database(db)

    async def evaluate_match(self, match_id: int) -> EvaluationSummary:
        return await self.evaluate_event(EventCategory.MATCH, match_id)

    async def evaluate_series(self, series_id: int) -> EvaluationSummary:
        return await self.evaluate_event(EventCategory.SERIES, series_id)

    async def evaluate_special_bet(self, bet_id: int) -> EvaluationSummary:
        return await self.evaluate_event(EventCategory.SPECIAL_BET, bet_id)

    async def evaluate_question(self, question_id: int) -> EvaluationSummary:
        return await self.evaluate_event(EventCategory.QUESTION, question_id)

    async def evaluate_event(self, category: EventCategory, event_id: int) -> EvaluationSummary:
        category = EventCategory(category)
        started = time.perf_counter()

        async def work(session: Any):
            event = await self.event_repo.get_by_id(category, event_id, session=session)
            if event is None:
                raise NotFoundError(f"{category.value.capitalize()} {event_id} not found")
            if event.is_evaluated:
                raise AlreadyEvaluatedError(f"{category.value.capitalize()} {event_id} is already evaluated")
            if not event.has_result():
                raise ResultMissingError(f"{category.value.capitalize()} {event_id} has no result yet")
            if event.league_id is None or await self.league_repo.get_by_id(event.league_id, session=session) is None:
                raise NotLinkedError(f"{category.value.capitalize()} {event_id} is not linked to a league")

            rules = await ev.EvaluatorRuleSet.load(self.db, event.league_id, category, session=session)
            picks = await self.pick_repo.list_for_event(category, event_id, session=session)

            # Todo en memoria primero; las escrituras van al final
            totals = score_picks(category, event, picks, rules)

            now = self.clock.now()
            await self.pick_repo.set_total_points(totals, now, session=session)
            if not await self.event_repo.mark_evaluated(category, event_id, now, session=session):
                raise AlreadyEvaluatedError(f"{category.value.capitalize()} {event_id} is already evaluated")

            return event.league_id, picks, totals

        league_id, picks, totals = await self.transactions.run(work)

        invalidate_tag(leaderboard_tag(league_id))
        invalidate_tag(picks_tag(category.value, event_id))

        summary = EvaluationSummary(
            event_id=event_id,
            category=category,
            picks_evaluated=len(picks),
            total_points=sum(totals.values()),
            results=[
                PickScore(pick_id=p.id, league_user_id=p.league_user_id, total_points=totals[p.id])
                for p in picks
            ],
        )
        logger.info(
            "Evaluated %s %s: %d picks, %d points in %.1fms",
            category.value, event_id, summary.picks_evaluated, summary.total_points,
            (time.perf_counter() - started) * 1000,
        )
        return summary
