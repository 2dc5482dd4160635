"""
🎯 PickRepository - CRUD para picks de participantes

Una sola colección "picks" para las cuatro categorías (campo category).
Regla: como mucho un pick activo por (league_user_id, category, event_id);
el índice único incluye deleted_at, así que los retirados no cuentan.
"""

from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.database import active
from app.models.event import EventCategory
from app.models.pick import PICK_MODELS, Pick


def _to_model(doc: dict) -> Pick:
    return PICK_MODELS[EventCategory(doc["category"])](**doc)


class PickRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["picks"]

    # ============================================
    # 📌 CREATE
    # ============================================

    async def create(
        self,
        league_id: int,
        league_user_id: int,
        category: EventCategory,
        event_id: int,
        payload: dict,
        now: datetime,
        session: Any = None
    ) -> Pick:
        """
        Inserta un pick nuevo con total_points = 0

        Puede lanzar DuplicateKeyError si otra request ganó la carrera;
        el servicio decide qué hacer.
        """
        doc = {
            **payload,
            "id": uuid4().hex,
            "league_id": league_id,
            "league_user_id": league_user_id,
            "category": EventCategory(category).value,
            "event_id": event_id,
            "total_points": 0,
            "created_at": now,
            "updated_at": now,
            "deleted_at": None,
        }
        await self.collection.insert_one(doc, session=session)
        return _to_model(doc)

    # ============================================
    # 📌 READ
    # ============================================

    async def get_active_for(
        self,
        league_user_id: int,
        category: EventCategory,
        event_id: int,
        session: Any = None
    ) -> Optional[Pick]:
        """Pick activo de un participante para un evento"""
        doc = await self.collection.find_one(active({
            "league_user_id": league_user_id,
            "category": EventCategory(category).value,
            "event_id": event_id
        }), session=session)
        return _to_model(doc) if doc else None

    async def list_for_event(
        self,
        category: EventCategory,
        event_id: int,
        session: Any = None
    ) -> list[Pick]:
        """
        🔥 Todos los picks activos de un evento
        Lo usa el motor de puntuación
        """
        cursor = self.collection.find(active({
            "category": EventCategory(category).value,
            "event_id": event_id
        }), session=session).sort("league_user_id", 1)
        docs = await cursor.to_list(length=None)
        return [_to_model(doc) for doc in docs]

    async def list_friends(
        self,
        category: EventCategory,
        event_id: int,
        exclude_league_user_id: int
    ) -> list[Pick]:
        """Picks de los demás participantes, los de más puntos primero"""
        cursor = self.collection.find(active({
            "category": EventCategory(category).value,
            "event_id": event_id,
            "league_user_id": {"$ne": exclude_league_user_id}
        })).sort([("total_points", -1), ("league_user_id", 1)])
        docs = await cursor.to_list(length=None)
        return [_to_model(doc) for doc in docs]

    async def list_for_participant(
        self,
        league_user_id: int,
        category: EventCategory,
        event_ids: list[int]
    ) -> list[Pick]:
        """Picks activos de un participante restringidos a eventos activos"""
        cursor = self.collection.find(active({
            "league_user_id": league_user_id,
            "category": EventCategory(category).value,
            "event_id": {"$in": event_ids}
        })).sort("event_id", 1)
        docs = await cursor.to_list(length=None)
        return [_to_model(doc) for doc in docs]

    # ============================================
    # 📌 UPDATE
    # ============================================

    async def update_payload(
        self,
        pick_id: str,
        payload: dict,
        now: datetime,
        session: Any = None
    ) -> Optional[Pick]:
        """
        Actualiza la predicción en el mismo documento

        id y created_at no se tocan; solo el payload y updated_at.
        """
        result = await self.collection.find_one_and_update(
            active({"id": pick_id}),
            {"$set": {**payload, "updated_at": now}},
            return_document=ReturnDocument.AFTER,
            session=session
        )
        return _to_model(result) if result else None

    async def set_total_points(
        self,
        totals: dict[str, int],
        now: datetime,
        session: Any = None
    ) -> int:
        """Sobrescribe total_points de cada pick (no acumula)"""
        updated = 0
        for pick_id, points in totals.items():
            result = await self.collection.update_one(
                {"id": pick_id},
                {"$set": {"total_points": points, "updated_at": now}},
                session=session
            )
            updated += result.matched_count
        return updated

    # ============================================
    # 📌 DELETE
    # ============================================

    async def soft_delete(
        self,
        pick_id: str,
        now: datetime,
        session: Any = None
    ) -> bool:
        """Retira un pick (nunca se borra físicamente)"""
        result = await self.collection.update_one(
            active({"id": pick_id}),
            {"$set": {"deleted_at": now, "updated_at": now}},
            session=session
        )
        return result.modified_count > 0

    # ============================================
    # 📌 STATS & AGGREGATIONS
    # ============================================

    async def points_by_participant(
        self,
        league_id: int,
        league_user_ids: list[int]
    ) -> dict[int, dict[str, int]]:
        """
        🔥 Suma de total_points por participante y categoría

        Retorna: {
            7: {"match": 20, "series": 4},
            9: {"question": -1}
        }
        Las categorías sin picks no aparecen (cuentan 0).
        """
        pipeline = [
            {"$match": active({
                "league_id": league_id,
                "league_user_id": {"$in": league_user_ids}
            })},
            {
                "$group": {
                    "_id": {"league_user_id": "$league_user_id", "category": "$category"},
                    "points": {"$sum": "$total_points"}
                }
            }
        ]

        cursor = self.collection.aggregate(pipeline)
        rows = await cursor.to_list(length=None)

        totals: dict[int, dict[str, int]] = {}
        for row in rows:
            key = row["_id"]
            totals.setdefault(key["league_user_id"], {})[key["category"]] = row["points"]
        return totals
