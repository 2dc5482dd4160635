"""
PrizeService - Premios y multas de una liga.

Los premios se cuentan desde arriba del leaderboard y las multas desde abajo.
"""

import logging
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.clock import Clock, SystemClock
from app.core.errors import NotFoundError, ValidationError
from app.database import TransactionRunner
from app.models.league import PrizeTier, PrizeTierInput, PrizeType
from app.repositories.league_repository import LeagueRepository
from app.repositories.prize_repository import PrizeRepository
from app.services.cache import invalidate_tag, leaderboard_tag

logger = logging.getLogger(__name__)


def _check_ranks(tiers: list[PrizeTierInput], kind: str) -> None:
    ranks = [tier.rank for tier in tiers]
    if any(rank < 1 or rank > 10 for rank in ranks):
        raise ValidationError(f"{kind.capitalize()} rank must be between 1 and 10")
    if len(ranks) != len(set(ranks)):
        raise ValidationError(f"Duplicate {kind} rank")


class PrizeService:
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        clock: Optional[Clock] = None,
        transactions: Optional[TransactionRunner] = None
    ):
        self.repo = PrizeRepository(db)
        self.league_repo = LeagueRepository(db)
        self.clock = clock or SystemClock()
        self.transactions = transactions or TransactionRunner.for_database(db)

    async def get_prizes(self, league_id: int) -> tuple[list[PrizeTier], list[PrizeTier]]:
        """(prizes, fines) ordenados por rank"""
        if await self.league_repo.get_by_id(league_id) is None:
            raise NotFoundError(f"League {league_id} not found")
        prizes = await self.repo.list_for_league(league_id, PrizeType.PRIZE)
        fines = await self.repo.list_for_league(league_id, PrizeType.FINE)
        return prizes, fines

    async def replace_prizes(
        self,
        league_id: int,
        prizes: list[PrizeTierInput],
        fines: list[PrizeTierInput]
    ) -> tuple[list[PrizeTier], list[PrizeTier]]:
        """Reemplaza toda la configuración: retira los tiers activos e inserta los nuevos"""
        _check_ranks(prizes, "prize")
        _check_ranks(fines, "fine")

        async def work(session: Any):
            if await self.league_repo.get_by_id(league_id, session=session) is None:
                raise NotFoundError(f"League {league_id} not found")
            now = self.clock.now()
            await self.repo.soft_delete_all(league_id, now, session=session)
            saved_prizes = await self.repo.insert_many(league_id, PrizeType.PRIZE, prizes, now, session=session)
            saved_fines = await self.repo.insert_many(league_id, PrizeType.FINE, fines, now, session=session)
            return saved_prizes, saved_fines

        result = await self.transactions.run(work)
        logger.info("League %s prizes replaced: %d prizes, %d fines", league_id, len(prizes), len(fines))
        invalidate_tag(leaderboard_tag(league_id))
        return result
