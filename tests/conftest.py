"""
Test Suite Configuration
"""
from datetime import datetime, timedelta
from typing import Any, AsyncGenerator, Dict, Iterable, List, Optional, Tuple
from collections import Counter

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from crm_analytics.database.models import Base, EntityType
from crm_analytics.database.repository import TimeWindow
from crm_analytics.serving.cache import set_redis

# Sunday, mid-afternoon
FIXED_NOW = datetime(2026, 10, 18, 14, 30, 0)


class InMemoryRepository:
    """Repository double over plain record dicts, keyed by entity"""

    def __init__(self, records: Optional[Dict[EntityType, List[Dict[str, Any]]]] = None):
        self.records = {entity: [] for entity in EntityType}
        for entity, rows in (records or {}).items():
            self.records[entity] = list(rows)
        self.calls: List[Tuple[str, EntityType]] = []

    def add(self, entity: EntityType, **fields: Any) -> Dict[str, Any]:
        record = {"_id": f"{entity.value}-{len(self.records[entity]) + 1}", "__v": 0}
        record.update(fields)
        self.records[entity].append(record)
        return record

    def _in(self, entity: EntityType, window: TimeWindow) -> List[Dict[str, Any]]:
        rows = [r for r in self.records[entity] if window.start <= r["createdAt"] <= window.end]
        return sorted(rows, key=lambda r: r["createdAt"])

    async def count(self, entity: EntityType, window: TimeWindow) -> int:
        self.calls.append(("count", entity))
        return len(self._in(entity, window))

    async def find_in_range(
        self, entity: EntityType, window: TimeWindow, exclude: Iterable[str] = ()
    ) -> List[Dict[str, Any]]:
        self.calls.append(("find_in_range", entity))
        exclude = set(exclude)
        return [{k: v for k, v in r.items() if k not in exclude} for r in self._in(entity, window)]

    async def find_all(self, entity: EntityType, exclude: Iterable[str] = ()) -> List[Dict[str, Any]]:
        exclude = set(exclude)
        return [{k: v for k, v in r.items() if k not in exclude} for r in self.records[entity]]

    async def group_by_field(self, entity: EntityType, field: str) -> List[Tuple[Optional[str], int]]:
        self.calls.append(("group_by_field", entity))
        counts = Counter(r.get(field) for r in self.records[entity])
        return sorted(counts.items(), key=lambda item: (-item[1], item[0] is None, str(item[0])))

    async def list_records(self, entity, page=1, page_size=50, filters=None):
        rows = [
            r for r in self.records[entity]
            if all(r.get(field) == value for field, value in (filters or {}).items())
        ]
        rows = sorted(rows, key=lambda r: r["createdAt"], reverse=True)
        start = (page - 1) * page_size
        return rows[start:start + page_size], len(rows)

    async def get_record(self, entity, record_id):
        for r in self.records[entity]:
            if r["_id"] == record_id:
                return r
        return None


class FailingRepository(InMemoryRepository):
    """Every read raises, as a lost database connection would"""

    async def count(self, entity, window):
        raise ConnectionError("connection refused")

    async def find_in_range(self, entity, window, exclude=()):
        raise ConnectionError("connection refused")

    async def group_by_field(self, entity, field):
        raise ConnectionError("connection refused")


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock():
    """Clock frozen at FIXED_NOW"""
    return lambda: FIXED_NOW


@pytest.fixture
def repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """File-backed SQLite schema, one per test, so concurrent sessions get their own connections"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'crm.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def failing_repository() -> FailingRepository:
    return FailingRepository()


@pytest.fixture
def days_ago(fixed_now):
    """Timestamp a given number of days before FIXED_NOW"""
    return lambda days: fixed_now - timedelta(days=days)


class FakeRedis:
    """Just enough of the redis.asyncio client for CacheManager"""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value):
        self.store[key] = value

    async def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl


@pytest.fixture
def fake_redis():
    """FakeRedis installed as the process-wide client for the test"""
    client = FakeRedis()
    set_redis(client)
    yield client
    set_redis(None)
