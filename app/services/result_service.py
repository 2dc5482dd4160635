"""
ResultService - Carga de resultados reales por el admin.

Un evento ya evaluado no acepta cambios de resultado.
"""

import logging
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.clock import Clock, SystemClock
from app.core.errors import AlreadyEvaluatedError, NotFoundError, ValidationError
from app.database import TransactionRunner
from app.models.event import (
    Event,
    EventCategory,
    MatchResultUpdate,
    QuestionResultUpdate,
    SeriesResultUpdate,
    SpecialBetResultUpdate,
)
from app.repositories.event_repository import EventRepository
from app.repositories.league_repository import LeagueRepository
from app.services.cache import invalidate_tag, picks_tag

logger = logging.getLogger(__name__)


class ResultService:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        clock: Optional[Clock] = None,
        transactions: Optional[TransactionRunner] = None
    ):
        self.event_repo = EventRepository(db)
        self.league_repo = LeagueRepository(db)
        self.clock = clock or SystemClock()
        self.transactions = transactions or TransactionRunner.for_database(db)

    async def set_match_result(self, match_id: int, payload: MatchResultUpdate) -> Event:
        async def check(match: Any, session: Any) -> None:
            if payload.game_number is None or match.phase_id is None:
                return
            phase = await self.league_repo.get_phase(match.phase_id, session=session)
            if phase is not None and phase.best_of is not None and payload.game_number > phase.best_of:
                raise ValidationError(f"Game number cannot exceed best of {phase.best_of}")

        fields = payload.model_dump(exclude_none=True)
        return await self._set_result(EventCategory.MATCH, match_id, fields, check)

    async def set_series_result(self, series_id: int, payload: SeriesResultUpdate) -> Event:
        async def check(series: Any, session: Any) -> None:
            wins_needed = series.best_of // 2 + 1
            if max(payload.home_team_score, payload.away_team_score) > wins_needed:
                raise ValidationError(f"Series score cannot exceed {wins_needed} wins")

        return await self._set_result(EventCategory.SERIES, series_id, payload.model_dump(), check)

    async def set_special_bet_result(self, bet_id: int, payload: SpecialBetResultUpdate) -> Event:
        return await self._set_result(EventCategory.SPECIAL_BET, bet_id, payload.model_dump())

    async def set_question_result(self, question_id: int, payload: QuestionResultUpdate) -> Event:
        return await self._set_result(EventCategory.QUESTION, question_id, payload.model_dump())

    async def _set_result(self, category: EventCategory, event_id: int, fields: dict, check=None) -> Event:
        label = category.value.capitalize()

        async def work(session: Any) -> Event:
            event = await self.event_repo.get_by_id(category, event_id, session=session)
            if event is None:
                raise NotFoundError(f"{label} {event_id} not found")
            if event.is_evaluated:
                raise AlreadyEvaluatedError(f"{label} {event_id} is already evaluated")
            if check is not None:
                await check(event, session)

            await self.event_repo.update_result(category, event_id, fields, self.clock.now(), session=session)
            return await self.event_repo.get_by_id(category, event_id, session=session)

        event = await self.transactions.run(work)
        logger.info("Result saved for %s %s", category.value, event_id)
        invalidate_tag(picks_tag(category.value, event_id))
        return event
