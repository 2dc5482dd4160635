"""
EvaluatorRepository - reglas de puntuación por liga y categoría.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.database import active
from app.models.evaluator import EvaluatorRule, EvaluatorRuleInput
from app.models.event import EventCategory


class EvaluatorRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["evaluators"]

    async def list_for_league(
        self,
        league_id: int,
        entity: Optional[EventCategory] = None,
        session: Any = None
    ) -> list[EvaluatorRule]:
        query: dict = {"league_id": league_id}
        if entity is not None:
            query["entity"] = EventCategory(entity).value
        cursor = self.collection.find(active(query), session=session).sort([("entity", 1), ("type", 1)])
        docs = await cursor.to_list(length=None)
        return [EvaluatorRule(**doc) for doc in docs]

    async def upsert(
        self,
        league_id: int,
        rule: EvaluatorRuleInput,
        now: datetime
    ) -> EvaluatorRule:
        """Una regla activa por (liga, entity, type): si existe se reemplazan los puntos"""
        entity = EventCategory(rule.entity).value
        doc = await self.collection.find_one_and_update(
            active({"league_id": league_id, "entity": entity, "type": rule.type}),
            {
                "$set": {"points": rule.points.model_dump(), "updated_at": now},
                "$setOnInsert": {"id": uuid4().hex, "created_at": now},
            },
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return EvaluatorRule(**doc)

    async def soft_delete(
        self,
        league_id: int,
        entity: EventCategory,
        type: str,
        now: datetime
    ) -> bool:
        result = await self.collection.update_one(
            active({"league_id": league_id, "entity": EventCategory(entity).value, "type": type}),
            {"$set": {"deleted_at": now, "updated_at": now}}
        )
        return result.modified_count > 0
