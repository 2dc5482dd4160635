"""
PrizeRepository - tiers de premios y multas de una liga.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.database import active
from app.models.league import PrizeTier, PrizeTierInput, PrizeType


class PrizeRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["league_prizes"]

    async def list_for_league(
        self,
        league_id: int,
        type: Optional[PrizeType] = None,
        session: Any = None
    ) -> list[PrizeTier]:
        query: dict = {"league_id": league_id}
        if type is not None:
            query["type"] = PrizeType(type).value
        cursor = self.collection.find(active(query), session=session).sort("rank", 1)
        docs = await cursor.to_list(length=None)
        return [PrizeTier(**doc) for doc in docs]

    async def soft_delete_all(
        self,
        league_id: int,
        now: datetime,
        session: Any = None
    ) -> int:
        result = await self.collection.update_many(
            active({"league_id": league_id}),
            {"$set": {"deleted_at": now}},
            session=session
        )
        return result.modified_count

    async def insert_many(
        self,
        league_id: int,
        type: PrizeType,
        tiers: list[PrizeTierInput],
        now: datetime,
        session: Any = None
    ) -> list[PrizeTier]:
        docs = [
            {
                **tier.model_dump(),
                "id": uuid4().hex,
                "league_id": league_id,
                "type": PrizeType(type).value,
                "created_at": now,
                "deleted_at": None,
            }
            for tier in tiers
        ]
        if docs:
            await self.collection.insert_many(docs, session=session)
        return [PrizeTier(**doc) for doc in docs]
