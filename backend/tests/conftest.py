# shared fixtures for backend api tests
# provides mock db, subscriber registry, auth tokens, and httpx test client

import pytest
import pytest_asyncio
from unittest.mock import MagicMock
from datetime import datetime, time, timedelta, timezone
from bson import ObjectId

from httpx import AsyncClient, ASGITransport

from shanti.config import settings
from shanti.main import app
from shanti.services.db import get_db
from shanti.services.auth_service import create_access_token
from shanti.services.broadcaster import SubscriberRegistry
from shanti.dependencies import get_current_owner, get_registry


# test ids
OWNER_ID = "user_2abcOwnerClinic"
OTHER_OWNER_ID = "user_2xyzOtherClinic"
THERAPIST_ID = "dr_anand"


def today_at(hour: int, minute: int = 0) -> datetime:
    """a utc datetime on today's date (tests pin the clinic timezone to utc)"""
    today = datetime.now(timezone.utc).date()
    return datetime.combine(today, time(hour=hour, minute=minute), tzinfo=timezone.utc)


def make_schedule(owner_id=OWNER_ID, start=None, status="scheduled", notes=None,
                  therapist_id=THERAPIST_ID, updated_at=None):
    """a schedule document as it'd appear from mongodb"""
    start = start or today_at(9)
    stamp = updated_at or datetime.now(timezone.utc)
    return {
        "_id": ObjectId(),
        "owner_id": owner_id,
        "therapist_id": therapist_id,
        "start_time": start,
        "end_time": start + timedelta(minutes=50),
        "notes": notes,
        "status": status,
        "created_at": stamp,
        "updated_at": stamp,
    }


# async cursor mock

class AsyncCursorMock:
    """mock for motor's async cursor — supports async for and chained methods"""

    def __init__(self, data=None):
        self._data = list(data or [])
        self._index = 0

    def sort(self, key_or_list, direction=None):
        keys = key_or_list if isinstance(key_or_list, list) else [(key_or_list, direction or 1)]
        for key, order in reversed(keys):
            self._data.sort(key=lambda d: d.get(key), reverse=order == -1)
        return self

    def skip(self, n):
        self._data = self._data[n:]
        return self

    def limit(self, n):
        self._data = self._data[:n]
        return self

    def __aiter__(self):
        self._index = 0
        return self

    async def __anext__(self):
        if self._index >= len(self._data):
            raise StopAsyncIteration
        item = self._data[self._index]
        self._index += 1
        return item

    async def to_list(self, length=None):
        if length is not None:
            return self._data[:length]
        return self._data


class MockCollection:
    """mock for a motor collection with async methods"""

    def __init__(self, data=None):
        self._data = data or []
        self.inserted = []
        self.find_calls = 0

    def find(self, query=None, projection=None):
        self.find_calls += 1
        results = self._data
        if query:
            results = [d for d in results if self._matches(d, query)]
        return AsyncCursorMock(results)

    async def find_one(self, query=None, projection=None):
        if not query:
            return self._data[0] if self._data else None
        for doc in self._data:
            if self._matches(doc, query):
                return doc
        return None

    async def insert_one(self, doc):
        oid = doc.get("_id", ObjectId())
        doc["_id"] = oid
        self._data.append(doc)
        self.inserted.append(doc)
        result = MagicMock()
        result.inserted_id = oid
        return result

    async def find_one_and_update(self, query, update, return_document=None):
        for doc in self._data:
            if self._matches(doc, query):
                doc.update(update.get("$set", {}))
                return dict(doc)
        return None

    async def count_documents(self, query=None):
        if not query:
            return len(self._data)
        return len([d for d in self._data if self._matches(d, query)])

    async def create_index(self, *args, **kwargs):
        return "mock_index"

    def _matches(self, doc, query):
        """basic mongodb query matching for tests"""
        for key, value in query.items():
            doc_val = doc.get(key)
            if isinstance(value, dict):
                if doc_val is None:
                    return False
                if "$in" in value and doc_val not in value["$in"]:
                    return False
                if "$gte" in value and doc_val < value["$gte"]:
                    return False
                if "$lt" in value and not doc_val < value["$lt"]:
                    return False
                if "$lte" in value and doc_val > value["$lte"]:
                    return False
            elif doc_val != value:
                return False
        return True


class FailingCollection(MockCollection):
    """collection whose reads and writes raise, as if mongodb were unreachable"""

    def find(self, query=None, projection=None):
        raise RuntimeError("mongodb unavailable")

    async def insert_one(self, doc):
        raise RuntimeError("mongodb unavailable")

    async def find_one_and_update(self, query, update, return_document=None):
        raise RuntimeError("mongodb unavailable")


class MockDatabase:
    """mock database that mimics the Database class"""

    def __init__(self, schedules=None):
        self.schedules = schedules if schedules is not None else MockCollection([])

    async def connect(self):
        pass

    async def close(self):
        pass


@pytest.fixture(autouse=True)
def utc_clinic(monkeypatch):
    """pin the clinic timezone so hour buckets don't depend on the test machine"""
    monkeypatch.setattr(settings, "CLINIC_TIMEZONE", "UTC")


@pytest.fixture
def mock_db():
    """create a fresh mock database for each test"""
    return MockDatabase()


@pytest.fixture
def failing_db():
    return MockDatabase(FailingCollection())


@pytest.fixture
def registry():
    return SubscriberRegistry()


@pytest.fixture
def owner_token():
    """jwt access token for the test owner"""
    return create_access_token({"sub": OWNER_ID})


def _override(mock_db, registry, owner_id=None):
    async def override_get_db():
        return mock_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_registry] = lambda: registry
    if owner_id is not None:
        async def override_get_current_owner():
            return owner_id

        app.dependency_overrides[get_current_owner] = override_get_current_owner


@pytest_asyncio.fixture
async def client(mock_db, registry):
    """httpx async test client with mocked db, real token auth"""
    _override(mock_db, registry)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def owner_client(mock_db, registry):
    """client authenticated as the test owner"""
    _override(mock_db, registry, OWNER_ID)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def failing_client(failing_db, registry):
    """authenticated client whose database raises on every call"""
    _override(failing_db, registry, OWNER_ID)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
