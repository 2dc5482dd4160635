"""
📅 EventRepository - Acceso a los eventos apostables

Cuatro colecciones (una por categoría) con el mismo ciclo de vida:
deadline, resultado cargado por el admin, is_evaluated false -> true.
"""

from datetime import datetime
from typing import Any, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.database import active
from app.models.event import EVENT_MODELS, Event, EventCategory


COLLECTIONS: dict[EventCategory, str] = {
    EventCategory.MATCH: "matches",
    EventCategory.SERIES: "series",
    EventCategory.SPECIAL_BET: "special_bets",
    EventCategory.QUESTION: "questions",
}


class EventRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    def collection(self, category: EventCategory):
        return self.db[COLLECTIONS[EventCategory(category)]]

    # ============================================
    # 📌 READ
    # ============================================

    async def get_by_id(
        self,
        category: EventCategory,
        event_id: int,
        session: Any = None
    ) -> Optional[Event]:
        """Obtiene un evento activo (no borrado) por ID"""
        doc = await self.collection(category).find_one(active({"id": event_id}), session=session)
        return EVENT_MODELS[EventCategory(category)](**doc) if doc else None

    async def get_active_ids_for_league(
        self,
        category: EventCategory,
        league_id: int
    ) -> list[int]:
        """IDs de los eventos activos de una liga"""
        return await self.collection(category).distinct("id", active({"league_id": league_id}))

    # ============================================
    # 📌 UPDATE
    # ============================================

    async def update_result(
        self,
        category: EventCategory,
        event_id: int,
        fields: dict,
        now: datetime,
        session: Any = None
    ) -> bool:
        """Guarda el resultado real cargado por el admin"""
        result = await self.collection(category).update_one(
            active({"id": event_id}),
            {"$set": {**fields, "updated_at": now}},
            session=session
        )
        return result.matched_count > 0

    async def mark_evaluated(
        self,
        category: EventCategory,
        event_id: int,
        now: datetime,
        session: Any = None
    ) -> bool:
        """
        Marca el evento como evaluado

        El filtro incluye is_evaluated=False: nunca se pasa de true a false
        ni se marca dos veces.
        """
        result = await self.collection(category).update_one(
            active({"id": event_id, "is_evaluated": False}),
            {"$set": {"is_evaluated": True, "updated_at": now}},
            session=session
        )
        return result.modified_count > 0
