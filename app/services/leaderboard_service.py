"""
LeaderboardService - Calculates and serves league leaderboards.

The leaderboard is computed on read from the picks' total_points and cached
per league until a pick, an evaluation or the prize configuration changes.
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.config import get_settings
from app.core.errors import NotFoundError
from app.models.event import EventCategory
from app.models.leaderboard import LeaderboardData, LeaderboardEntry, TierAward
from app.models.league import PrizeTierInput, PrizeType
from app.repositories.league_repository import LeagueRepository
from app.repositories.pick_repository import PickRepository
from app.repositories.prize_repository import PrizeRepository
from app.repositories.user_repository import UserRepository
from app.services.cache import leaderboard_cache, leaderboard_tag

logger = logging.getLogger(__name__)


CATEGORY_FIELDS = {
    EventCategory.MATCH.value: "match_points",
    EventCategory.SERIES.value: "series_points",
    EventCategory.SPECIAL_BET.value: "special_bet_points",
    EventCategory.QUESTION.value: "question_points",
}


def _award(tier: Optional[PrizeTierInput]) -> Optional[TierAward]:
    if tier is None:
        return None
    return TierAward(amount=tier.amount, currency=tier.currency, label=tier.label)


def rank_entries(
    rows: list[dict],
    prizes: list[PrizeTierInput],
    fines: list[PrizeTierInput]
) -> list[LeaderboardEntry]:
    """
    Rank participants by total points.

    Each row carries the participant identity plus the four category sums.
    Ties get sequential ranks (20, 20, 10 -> 1, 2, 3), broken by
    league_user_id. Prizes count from the top, fines from the bottom.
    """
    totals = []
    for row in rows:
        row = {field: 0 for field in CATEGORY_FIELDS.values()} | row
        row["total_points"] = sum(row[field] for field in CATEGORY_FIELDS.values())
        totals.append(row)

    totals.sort(key=lambda r: r["league_user_id"])
    totals.sort(key=lambda r: r["total_points"], reverse=True)

    prize_by_rank = {tier.rank: tier for tier in prizes}
    fine_by_rank = {tier.rank: tier for tier in fines}
    count = len(totals)

    entries = []
    for index, row in enumerate(totals):
        rank = index + 1
        from_bottom = count - rank + 1
        entries.append(LeaderboardEntry(
            **row,
            rank=rank,
            position_from_bottom=from_bottom,
            prize=_award(prize_by_rank.get(rank)),
            fine=_award(fine_by_rank.get(from_bottom)),
        ))
    return entries


def mark_current_user(data: LeaderboardData, league_user_id: Optional[int]) -> LeaderboardData:
    """Copy of the shared data with the requester's entry flagged"""
    return data.model_copy(update={
        "entries": [
            entry.model_copy(update={"is_current_user": entry.league_user_id == league_user_id})
            for entry in data.entries
        ]
    })


class LeaderboardService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.league_repo = LeagueRepository(db)
        self.pick_repo = PickRepository(db)
        self.prize_repo = PrizeRepository(db)
        self.user_repo = UserRepository(db)

    async def get_leaderboard(
        self,
        league_id: int,
        current_league_user_id: Optional[int] = None
    ) -> LeaderboardData:
        """
        Get the ranked leaderboard of a league.

        The shared part is cached under the league's tag; is_current_user
        is computed for every request.
        """
        key = (league_id,)
        data = leaderboard_cache.get(key)
        if data is None:
            data = await self._build(league_id)
            leaderboard_cache.set(
                key,
                data,
                tags=[leaderboard_tag(league_id)],
                ttl_seconds=get_settings().leaderboard_cache_ttl_seconds,
            )
        return mark_current_user(data, current_league_user_id)

    async def _build(self, league_id: int) -> LeaderboardData:
        if await self.league_repo.get_by_id(league_id) is None:
            raise NotFoundError(f"League {league_id} not found")

        participants = await self.league_repo.get_active_participants(league_id)
        tiers = await self.prize_repo.list_for_league(league_id)
        prizes = [PrizeTierInput(**t.model_dump()) for t in tiers if t.type == PrizeType.PRIZE.value]
        fines = [PrizeTierInput(**t.model_dump()) for t in tiers if t.type == PrizeType.FINE.value]

        if not participants:
            return LeaderboardData(entries=[], prizes=prizes, fines=fines)

        points = await self.pick_repo.points_by_participant(league_id, [p.id for p in participants])
        users = await self.user_repo.get_many([p.user_id for p in participants])

        rows = []
        for participant in participants:
            user = users.get(participant.user_id)
            row = {
                "league_user_id": participant.id,
                "user_id": participant.user_id,
                "username": user.username if user else "Unknown",
                "first_name": user.first_name if user else None,
                "last_name": user.last_name if user else None,
            }
            for category, value in points.get(participant.id, {}).items():
                row[CATEGORY_FIELDS[category]] = value
            rows.append(row)

        entries = rank_entries(rows, prizes, fines)
        logger.debug("Leaderboard built for league %s: %d entries", league_id, len(entries))
        return LeaderboardData(entries=entries, prizes=prizes, fines=fines)
