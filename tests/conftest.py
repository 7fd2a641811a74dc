"""Pytest configuration and fixtures."""
from datetime import date, datetime

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import AsyncClient, ASGITransport
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from goalflow.main import app
from goalflow.config import settings


@pytest_asyncio.fixture
async def app_client():
    """
    Create a test client with a clean test database.

    This fixture:
    - Skips the test when MongoDB is unreachable
    - Yields an async HTTP client for testing
    - Cleans up the test database after each test
    """
    test_client = AsyncIOMotorClient(settings.mongodb_url, serverSelectionTimeoutMS=500)
    try:
        await test_client.admin.command("ping")
    except PyMongoError:
        test_client.close()
        pytest.skip("MongoDB is not reachable")

    test_db_name = f"{settings.mongodb_db_name}_test"
    test_db = test_client[test_db_name]

    # Override the database dependency
    from goalflow.database import database
    original_db = database.db
    database.db = test_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    # Cleanup: drop test database
    await test_client.drop_database(test_db_name)

    database.db = original_db
    test_client.close()


@pytest_asyncio.fixture
async def api_client():
    """HTTP client for endpoints that need no database."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def goal_doc():
    """Factory for stored goal documents."""

    def make(
        title="Hydration",
        times=({"hour": 9, "minute": 0},),
        frequency="daily",
        selected_weekdays=(),
        interval_day_count=None,
        questions=None,
        is_active=True,
        **overrides,
    ):
        now = datetime(2026, 10, 17, 12, 0)
        doc = {
            "_id": ObjectId(),
            "title": title,
            "description": "Stay hydrated",
            "category": "health",
            "custom_category_label": None,
            "is_active": is_active,
            "schedule": {
                "frequency": frequency,
                "selected_weekdays": list(selected_weekdays),
                "interval_day_count": interval_day_count,
                "times": list(times),
                "timezone": "UTC",
                "start_date": date(2026, 10, 17).isoformat(),
                "end_date": None,
            },
            "questions": questions if questions is not None else [
                {
                    "id": "6f1c4a4e-1b9c-4a53-9f0e-3d3c1d7b8a10",
                    "text": "How many glasses of water did you drink?",
                    "response_type": "numeric",
                    "is_active": True,
                    "options": None,
                    "validation_rules": {"minimum_value": 0, "maximum_value": 20, "allows_empty": False},
                },
            ],
            "created_at": now,
            "updated_at": now,
        }
        doc.update(overrides)
        return doc

    return make
