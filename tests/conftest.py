"""
Pytest fixtures and configuration for all tests.

The database is mongomock behind a thin async adapter shaped like Motor, so
repositories and services run unchanged. Sessions are accepted and ignored;
transactions pass straight through.
"""

import os

os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-tests-only")

import pytest
import mongomock
from datetime import datetime, timedelta, timezone

from app.core.clock import FixedClock
from app.database import TransactionRunner, create_indexes
from app.services import cache


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


# ============================================
# 🧪 ASYNC ADAPTER SOBRE MONGOMOCK
# ============================================

def _no_session(kwargs: dict) -> dict:
    kwargs.pop("session", None)
    return kwargs


class AsyncCursor:
    def __init__(self, cursor):
        self._cursor = cursor

    def sort(self, *args, **kwargs):
        self._cursor = self._cursor.sort(*args, **kwargs)
        return self

    def skip(self, count):
        self._cursor = self._cursor.skip(count)
        return self

    def limit(self, count):
        self._cursor = self._cursor.limit(count)
        return self

    async def to_list(self, length=None):
        docs = list(self._cursor)
        return docs if length is None else docs[:length]


class AsyncCollection:
    def __init__(self, collection):
        self._collection = collection

    def find(self, *args, **kwargs):
        return AsyncCursor(self._collection.find(*args, **_no_session(kwargs)))

    def aggregate(self, pipeline, **kwargs):
        return AsyncCursor(self._collection.aggregate(pipeline, **_no_session(kwargs)))

    def __getattr__(self, name):
        method = getattr(self._collection, name)

        async def call(*args, **kwargs):
            return method(*args, **_no_session(kwargs))

        return call


class FakeTransaction:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    def __init__(self):
        self.transaction_options = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def start_transaction(self, **kwargs):
        self.transaction_options = kwargs
        return FakeTransaction()


class FakeClient:
    def __init__(self):
        self.sessions_started = 0

    async def start_session(self):
        self.sessions_started += 1
        return FakeSession()


class AsyncDatabase:
    def __init__(self, db, client):
        self._db = db
        self.client = client

    def __getitem__(self, name):
        return AsyncCollection(self._db[name])

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    async def list_collection_names(self):
        return self._db.list_collection_names()


# ============================================
# 📌 FIXTURES
# ============================================

@pytest.fixture(autouse=True)
def clear_caches():
    for namespace_cache in cache._CACHES.values():
        namespace_cache.clear()
    yield


@pytest.fixture
async def test_db():
    """Provide a clean in-memory database (with the real indexes) for each test."""
    db = AsyncDatabase(mongomock.MongoClient()["tipovacka_test"], FakeClient())
    await create_indexes(db)
    yield db


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def transactions(test_db):
    return TransactionRunner(test_db.client, max_wait_ms=1000, timeout_seconds=5.0, max_retries=3)


@pytest.fixture
def sample_user_data():
    """Sample users: two league members and an outsider."""
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    return [
        {"_id": "user-a", "email": "anna@example.com", "username": "anna", "first_name": "Anna", "last_name": "Nová", "created_at": now, "is_admin": True},
        {"_id": "user-b", "email": "petr@example.com", "username": "petr", "first_name": "Petr", "last_name": "Dvořák", "created_at": now},
        {"_id": "user-c", "email": "jana@example.com", "username": "jana", "created_at": now},
        {"_id": "outsider", "email": "out@example.com", "username": "outsider", "created_at": now},
    ]


@pytest.fixture
def sample_league_data():
    """League 1 with three participants (one inactive), two playing teams and players."""
    return {
        "leagues": [{"id": 1, "name": "Extraliga 2026", "deleted_at": None}],
        "league_users": [
            {"id": 10, "league_id": 1, "user_id": "user-a", "active": True, "admin": True, "deleted_at": None},
            {"id": 11, "league_id": 1, "user_id": "user-b", "active": True, "admin": False, "deleted_at": None},
            {"id": 12, "league_id": 1, "user_id": "user-c", "active": False, "admin": False, "deleted_at": None},
        ],
        "league_teams": [
            {"id": 100, "league_id": 1, "name": "Sparta", "deleted_at": None},
            {"id": 101, "league_id": 1, "name": "Kometa", "deleted_at": None},
            {"id": 102, "league_id": 1, "name": "Třinec", "deleted_at": None},
            {"id": 200, "league_id": 2, "name": "Other league team", "deleted_at": None},
        ],
        "league_players": [
            {"id": 1000, "league_id": 1, "league_team_id": 100, "name": "Home Forward", "deleted_at": None},
            {"id": 1001, "league_id": 1, "league_team_id": 101, "name": "Away Forward", "deleted_at": None},
            {"id": 1002, "league_id": 1, "league_team_id": 102, "name": "Bystander", "deleted_at": None},
            {"id": 1003, "league_id": 1, "league_team_id": 100, "name": "Home Defender", "deleted_at": None},
        ],
        "match_phases": [
            {"id": 7, "league_id": 1, "name": "Quarterfinal", "best_of": 7, "deleted_at": None},
        ],
    }


@pytest.fixture
def sample_match_data():
    return {
        "id": 500,
        "league_id": 1,
        "date_time": NOW + timedelta(hours=2),
        "home_team_id": 100,
        "away_team_id": 101,
        "is_doubled": False,
        "is_playoff_game": False,
        "phase_id": None,
        "is_evaluated": False,
        "scorers": [],
        "deleted_at": None,
    }


@pytest.fixture
def sample_series_data():
    return {
        "id": 600,
        "league_id": 1,
        "name": "Quarterfinal A",
        "date_time": NOW + timedelta(days=1),
        "home_team_id": 100,
        "away_team_id": 101,
        "best_of": 7,
        "is_evaluated": False,
        "deleted_at": None,
    }


@pytest.fixture
def sample_special_bet_data():
    return {
        "id": 700,
        "league_id": 1,
        "name": "Champion",
        "criterion": "exact_team",
        "date_time": NOW + timedelta(days=3),
        "is_evaluated": False,
        "deleted_at": None,
    }


@pytest.fixture
def sample_question_data():
    return {
        "id": 800,
        "league_id": 1,
        "text": "Will the final go to overtime?",
        "date_time": NOW + timedelta(days=5),
        "is_evaluated": False,
        "deleted_at": None,
    }


@pytest.fixture
async def league_db(test_db, sample_user_data, sample_league_data):
    """Test database with users, league, participants, teams, players and phases."""
    await test_db["users"].insert_many(sample_user_data)
    for collection, docs in sample_league_data.items():
        await test_db[collection].insert_many(docs)
    return test_db


@pytest.fixture
def add_evaluators(test_db):
    """Insert evaluator rules: {"exact_score": 10, ...} or raw point configs."""
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    async def add(entity: str, points: dict, league_id: int = 1) -> None:
        for criterion, value in points.items():
            config = value if isinstance(value, dict) else {"kind": "flat", "value": value}
            await test_db["evaluators"].insert_one({
                "id": f"{league_id}-{entity}-{criterion}",
                "league_id": league_id,
                "entity": entity,
                "type": criterion,
                "points": config,
                "created_at": now,
                "updated_at": now,
                "deleted_at": None,
            })

    return add
