"""
🔌 Database Connection Setup - MongoDB

Configuración centralizada para conectar a MongoDB y correr transacciones
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
from pymongo.read_concern import ReadConcern
from pymongo.write_concern import WriteConcern

from app.core.config import get_settings
from app.core.errors import TransientStorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Filtro para documentos no borrados (soft delete). Todas las lecturas "activas" lo usan.
ACTIVE = {"deleted_at": None}


def active(query: Optional[dict] = None) -> dict:
    """Combina un query con el filtro de soft delete"""
    return {**(query or {}), **ACTIVE}


class Database:
    """Singleton para la conexión a MongoDB"""

    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    @classmethod
    async def connect(cls):
        """Conecta a MongoDB"""
        if cls.client is None:
            settings = get_settings()

            cls.client = AsyncIOMotorClient(
                settings.mongodb_uri,
                maxPoolSize=10,
                minPoolSize=2,
            )
            cls.db = cls.client[settings.mongodb_db_name]

            # Test de conexión
            await cls.client.admin.command("ping")
            logger.info("Connected to MongoDB: %s", settings.mongodb_db_name)

    @classmethod
    async def disconnect(cls):
        """Cierra la conexión"""
        if cls.client is not None:
            cls.client.close()
            cls.client = None
            cls.db = None
            logger.info("Disconnected from MongoDB")

    @classmethod
    def get_db(cls) -> AsyncIOMotorDatabase:
        """Retorna la instancia de la base de datos"""
        if cls.db is None:
            raise RuntimeError("Database not connected. Call Database.connect() first.")
        return cls.db


# ============================================
# 🎯 DEPENDENCY para FastAPI
# ============================================

async def get_database() -> AsyncIOMotorDatabase:
    """FastAPI dependency para inyectar la DB"""
    return Database.get_db()


# ============================================
# 🔒 TRANSACCIONES
# ============================================

class TransactionRunner:
    """
    Ejecuta una unidad de trabajo dentro de una transacción multi-documento.

    - Lecturas con read concern "snapshot" y commit con "majority": todas las
      guardas (existe, ya evaluado, deadline) se leen del mismo snapshot que
      luego se escribe.
    - Un write conflict (label TransientTransactionError) reintenta la unidad
      completa hasta max_retries veces.
    - La unidad entera está acotada por timeout_seconds; pasado ese tiempo se
      lanza TransientStorageError (único error reintentable por el caller).
    """

    def __init__(
        self,
        client: Any,
        max_wait_ms: int = 5000,
        timeout_seconds: float = 10.0,
        max_retries: int = 3,
    ):
        self.client = client
        self.max_wait_ms = max_wait_ms
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries

    @classmethod
    def for_database(cls, db: AsyncIOMotorDatabase) -> "TransactionRunner":
        settings = get_settings()
        return cls(
            db.client,
            max_wait_ms=settings.transaction_max_wait_ms,
            timeout_seconds=settings.transaction_timeout_seconds,
            max_retries=settings.transaction_max_retries,
        )

    async def run(self, callback: Callable[[Any], Awaitable[T]]) -> T:
        """Corre callback(session) en una transacción y retorna su resultado"""
        try:
            return await asyncio.wait_for(
                self._run_with_retries(callback),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.warning("Transaction exceeded %.1fs", self.timeout_seconds)
            raise TransientStorageError("Transaction timed out, please retry") from e

    async def _run_with_retries(self, callback: Callable[[Any], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._run_once(callback)
            except PyMongoError as e:
                transient = e.has_error_label("TransientTransactionError")
                if transient and attempt < self.max_retries:
                    logger.info("Transient transaction error, retry %d/%d: %s", attempt, self.max_retries, e)
                    continue
                if transient or e.has_error_label("UnknownTransactionCommitResult") or e.timeout:
                    logger.warning("Transaction failed after %d attempt(s): %s", attempt, e)
                    raise TransientStorageError("Storage is busy, please retry") from e
                raise

    async def _run_once(self, callback: Callable[[Any], Awaitable[T]]) -> T:
        async with await self.client.start_session() as session:
            async with session.start_transaction(
                read_concern=ReadConcern("snapshot"),
                write_concern=WriteConcern("majority"),
                max_commit_time_ms=self.max_wait_ms,
            ):
                return await callback(session)


# ============================================
# 🏗️ CREAR ÍNDICES (run once al deployment)
# ============================================

async def create_indexes(db: Optional[AsyncIOMotorDatabase] = None):
    """
    Crea los índices necesarios

    El índice único de picks incluye deleted_at: solo puede haber un pick con
    deleted_at=None por (participante, categoría, evento), pero sí varios
    retirados. Es la segunda línea de defensa contra picks duplicados.
    """
    db = db if db is not None else Database.get_db()

    for name in ("leagues", "league_users", "league_teams", "league_players", "match_phases"):
        await db[name].create_index("id", unique=True)
        await db[name].create_index("league_id")
    await db.league_users.create_index([("league_id", 1), ("user_id", 1)])

    # Eventos
    for name in ("matches", "series", "special_bets", "questions"):
        await db[name].create_index("id", unique=True)
        await db[name].create_index([("league_id", 1), ("date_time", 1)])

    # Picks
    await db.picks.create_index("id", unique=True)
    await db.picks.create_index(
        [("league_user_id", 1), ("category", 1), ("event_id", 1), ("deleted_at", 1)],
        unique=True,
    )
    await db.picks.create_index([("category", 1), ("event_id", 1)])
    await db.picks.create_index([("league_id", 1), ("league_user_id", 1)])

    # Evaluadores y premios
    await db.evaluators.create_index("id", unique=True)
    await db.evaluators.create_index([("league_id", 1), ("entity", 1)])
    await db.league_prizes.create_index("id", unique=True)
    await db.league_prizes.create_index(
        [("league_id", 1), ("type", 1), ("rank", 1), ("deleted_at", 1)],
        unique=True,
    )

    logger.info("Indexes created successfully")
