"""
Shared fixtures.

Services talk to an in-memory Motor-compatible client, and API tests go
through the ASGI app without starting the lifespan.
"""

import asyncio
from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from app.core.database import Database
from app.core.documents import utcnow
from app.levels import service as level_service
from app.main import app


@pytest_asyncio.fixture
async def db(monkeypatch):
    """Fresh database per test, with the production indexes."""
    # asyncio locks bind to the loop that first waits on them
    monkeypatch.setattr(level_service, "_write_lock", asyncio.Lock())

    client = AsyncMongoMockClient()
    Database.client = client
    Database.db = client["qappio_test"]
    await Database._create_indexes()

    yield Database.db

    Database.client = None
    Database.db = None


class YieldingCollection:
    """
    Collection proxy that hands control back to the event loop after every
    find_one, so concurrent callers read before any of them writes.
    """

    def __init__(self, collection):
        self._collection = collection

    def __getattr__(self, name):
        return getattr(self._collection, name)

    async def find_one(self, *args, **kwargs):
        doc = await self._collection.find_one(*args, **kwargs)
        await asyncio.sleep(0)
        return doc


@pytest.fixture
def interleaved_reads(db, monkeypatch):
    get_collection = Database.get_collection
    monkeypatch.setattr(
        Database,
        "get_collection",
        staticmethod(lambda name: YieldingCollection(get_collection(name))),
    )


@pytest_asyncio.fixture
async def client(db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def level_payload():
    def _make(**overrides):
        payload = {
            "name": "Apprentice",
            "color": "#8B7355",
            "min_points": 0,
            "max_points": 999,
            "order": 1,
            "benefits": ["Access to basic tasks"],
            "icon": "🥉",
        }
        payload.update(overrides)
        return payload
    return _make


@pytest.fixture
def task_payload():
    def _make(**overrides):
        now = utcnow()
        payload = {
            "title": "Nike Sneaker Photo",
            "description": "Share a photo of your new sneakers",
            "brand": "Nike",
            "category": "Photo",
            "budget": 5000,
            "max_participants": 100,
            "reward": 50,
            "start_date": now - timedelta(days=1),
            "end_date": now + timedelta(days=7),
            "tags": ["Sneakers", "nike"],
        }
        payload.update(overrides)
        return payload
    return _make


@pytest.fixture
def item_payload():
    def _make(**overrides):
        payload = {
            "name": "Starbucks Gift Card",
            "description": "50 TL gift card for Starbucks stores",
            "brand": "Starbucks",
            "category": "Gift Card",
            "qp_price": 1000,
            "real_price": 50,
            "stock": 10,
            "level_access": "All Levels",
            "tags": ["gift", "coffee"],
        }
        payload.update(overrides)
        return payload
    return _make

