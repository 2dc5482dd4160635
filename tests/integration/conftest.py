"""
Fixtures for integration tests
"""

import pytest
from datetime import datetime, timedelta, timezone
from httpx import ASGITransport, AsyncClient

from app.core.security import create_access_token
from app.database import get_database
from app.main import app


@pytest.fixture
async def client(league_db):
    """
    HTTP client for testing API endpoints.

    Overrides the database dependency with the seeded test database.
    """
    async def override_get_db():
        return league_db

    app.dependency_overrides[get_database] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def _headers(user_id: str, email: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, email)}"}


@pytest.fixture
def auth_headers():
    """Regular league member (petr, participant 11)."""
    return _headers("user-b", "petr@example.com")


@pytest.fixture
def admin_headers():
    """Admin and league member (anna, participant 10)."""
    return _headers("user-a", "anna@example.com")


@pytest.fixture
def outsider_headers():
    return _headers("outsider", "out@example.com")


@pytest.fixture
def open_match(sample_match_data):
    """Match whose deadline is still ahead on the real clock."""
    return {**sample_match_data, "date_time": datetime.now(timezone.utc) + timedelta(days=1)}


@pytest.fixture
def locked_match(sample_match_data):
    return {**sample_match_data, "date_time": datetime.now(timezone.utc) - timedelta(hours=1)}
