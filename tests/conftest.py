"""Pytest configuration and fixtures."""
import os

os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("JWT_SECRET", "test-secret-key")

from datetime import date, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import AsyncClient, ASGITransport


TENANT_ID = "11111111-1111-4111-8111-111111111111"
OTHER_TENANT_ID = "99999999-9999-4999-8999-999999999999"
BRAND_ID = "22222222-2222-4222-8222-222222222222"
METRIC_TYPE_ID = "33333333-3333-4333-8333-333333333333"
PLATFORM_ID = "44444444-4444-4444-8444-444444444444"
FUTURE_DATE_ID = 20991231
PAST_DATE_ID = 20200101


def make_collection(docs=None, find_one=None):
    """
    Build a mock Motor collection.

    find() returns a cursor whose to_list() yields docs; the write methods
    are AsyncMocks with realistic results.
    """
    collection = MagicMock()

    cursor = MagicMock()
    cursor.to_list = AsyncMock(return_value=list(docs or []))
    collection.find.return_value = cursor

    collection.find_one = AsyncMock(return_value=find_one)
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId()))
    collection.insert_many = AsyncMock(
        side_effect=lambda docs: MagicMock(inserted_ids=[ObjectId() for _ in docs])
    )
    collection.update_many = AsyncMock(return_value=MagicMock(matched_count=1, modified_count=1))
    collection.create_index = AsyncMock()
    return collection


def make_db(**collections):
    """Mock database; unknown collections are created empty on first access."""
    db = MagicMock()
    store = dict(collections)

    def getitem(name):
        if name not in store:
            store[name] = make_collection()
        return store[name]

    db.__getitem__.side_effect = getitem
    return db


def reference_collections():
    """Dimension collections with a future date, a past date and compatible refs."""
    return {
        "dim_date": make_collection(docs=[
            {"id": FUTURE_DATE_ID, "date": datetime.combine(date.today() + timedelta(days=90), datetime.min.time())},
            {"id": PAST_DATE_ID, "date": datetime.combine(date.today() - timedelta(days=1), datetime.min.time())},
        ]),
        "dim_platform": make_collection(docs=[
            {"id": PLATFORM_ID, "name": "Instagram", "category": "social_media"},
        ]),
        "dim_metric_type": make_collection(docs=[
            {"id": METRIC_TYPE_ID, "name": "Engagement Rate", "category": "social_engagement"},
        ]),
    }


def objective_doc(**overrides) -> dict:
    """A stored objective document."""
    now = datetime.utcnow()
    doc = {
        "_id": ObjectId(),
        "tenant_id": TENANT_ID,
        "brand_id": BRAND_ID,
        "title": "Increase Instagram Engagement",
        "description": None,
        "target_value": 5000,
        "current_value": 1200,
        "target_date_id": FUTURE_DATE_ID,
        "granularity": "weekly",
        "metric_type_id": METRIC_TYPE_ID,
        "platform_id": PLATFORM_ID,
        "priority": 2,
        "category": None,
        "master_template_id": None,
        "status": "active",
        "is_active": True,
        "created_at": now,
        "updated_at": now,
    }
    doc.update(overrides)
    return doc


def objective_payload(**overrides) -> dict:
    """A valid objective creation payload."""
    payload = {
        "brand_id": BRAND_ID,
        "title": "Grow Newsletter Signups",
        "target_value": 2500,
        "target_date_id": FUTURE_DATE_ID,
        "granularity": "monthly",
        "metric_type_id": METRIC_TYPE_ID,
        "platform_id": PLATFORM_ID,
        "priority": 1,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def scope():
    """Caller scope for the default tenant."""
    from okr_service.models.user import CallerScope

    return CallerScope(user_id="user123", tenant_id=TENANT_ID)


@pytest.fixture
def synchronizer():
    """A fresh synchronizer with an empty cache."""
    from okr_service.services.cache import ObjectiveCache
    from okr_service.services.sync import OptimisticSynchronizer

    return OptimisticSynchronizer(ObjectiveCache())


@pytest.fixture
def auth_headers():
    """Bearer headers for the default tenant."""
    from okr_service.utils.auth import create_access_token

    token = create_access_token(user_id="user123", tenant_id=TENANT_ID)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def app_client(synchronizer):
    """
    Create a test client backed by a mock database.

    Yields (client, db) so tests can arrange collection behaviour and
    inspect writes. Dependency overrides are cleared afterwards.
    """
    from okr_service.database import get_database
    from okr_service.main import app
    from okr_service.services.sync import get_synchronizer

    db = make_db(**reference_collections())

    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_synchronizer] = lambda: synchronizer

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client, db

    app.dependency_overrides.clear()
