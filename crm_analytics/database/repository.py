"""
Analytics Repository

Read-only query capabilities the analytics engine needs from the CRM store:

- count(entity, window)
- find_in_range(entity, window, exclude)
- find_all(entity, exclude)
- group_by_field(entity, field)

plus paginated listing and lookup for the record endpoints. Records come
back as plain dicts (see ``RecordMixin.to_record``) so the analytics layer
never touches ORM objects.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple
import uuid

import structlog
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crm_analytics.database.models import ENTITY_MODELS, EntityType

logger = structlog.get_logger(__name__)

# Columns that may be grouped or filtered on, per entity
CATEGORICAL_FIELDS: Dict[EntityType, Tuple[str, ...]] = {
    EntityType.CUSTOMERS: ("status",),
    EntityType.LEADS: ("source", "status"),
    EntityType.ORDERS: ("status", "payment_status"),
    EntityType.CAMPAIGNS: ("type", "status"),
}


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive ``[start, end]`` window on ``created_at``"""
    start: datetime
    end: datetime


class AnalyticsRepository(Protocol):
    """Query surface the analytics service depends on"""

    async def count(self, entity: EntityType, window: TimeWindow) -> int:
        ...

    async def find_in_range(
        self, entity: EntityType, window: TimeWindow, exclude: Iterable[str] = ()
    ) -> List[Dict[str, Any]]:
        ...

    async def find_all(self, entity: EntityType, exclude: Iterable[str] = ()) -> List[Dict[str, Any]]:
        ...

    async def group_by_field(self, entity: EntityType, field: str) -> List[Tuple[Optional[str], int]]:
        ...


def _project(record: Dict[str, Any], exclude: Iterable[str]) -> Dict[str, Any]:
    for key in exclude:
        record.pop(key, None)
    return record


def _categorical_column(entity: EntityType, field: str):
    if field not in CATEGORICAL_FIELDS[entity]:
        raise ValueError(f"Field '{field}' is not groupable on {entity.value}")
    return getattr(ENTITY_MODELS[entity], field)


class SqlAnalyticsRepository:
    """
    SQLAlchemy implementation of ``AnalyticsRepository``.

    Each call opens its own session, so independent queries may be awaited
    concurrently (``asyncio.gather``) without sharing an ``AsyncSession``.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def count(self, entity: EntityType, window: TimeWindow) -> int:
        model = ENTITY_MODELS[entity]
        async with self._session_factory() as db:
            result = await db.execute(
                select(func.count(model.id)).where(
                    and_(model.created_at >= window.start, model.created_at <= window.end)
                )
            )
            total = result.scalar() or 0
        logger.debug("Counted records", entity=entity.value, start=str(window.start), end=str(window.end), total=total)
        return total

    async def find_in_range(
        self, entity: EntityType, window: TimeWindow, exclude: Iterable[str] = ()
    ) -> List[Dict[str, Any]]:
        model = ENTITY_MODELS[entity]
        exclude = tuple(exclude)
        async with self._session_factory() as db:
            result = await db.execute(
                select(model)
                .where(and_(model.created_at >= window.start, model.created_at <= window.end))
                .order_by(model.created_at.asc())
            )
            rows = result.scalars().all()
            records = [_project(row.to_record(), exclude) for row in rows]
        logger.debug("Fetched records in range", entity=entity.value, count=len(records))
        return records

    async def find_all(self, entity: EntityType, exclude: Iterable[str] = ()) -> List[Dict[str, Any]]:
        model = ENTITY_MODELS[entity]
        exclude = tuple(exclude)
        async with self._session_factory() as db:
            result = await db.execute(select(model).order_by(model.created_at.asc()))
            return [_project(row.to_record(), exclude) for row in result.scalars().all()]

    async def group_by_field(self, entity: EntityType, field: str) -> List[Tuple[Optional[str], int]]:
        """Distribution of ``field`` over all records, largest group first, NULL last among ties."""
        column = _categorical_column(entity, field)
        model = ENTITY_MODELS[entity]
        count = func.count(model.id).label("total")
        async with self._session_factory() as db:
            result = await db.execute(
                select(column, count).group_by(column).order_by(count.desc(), column.asc().nulls_last())
            )
            return [(value, total) for value, total in result.all()]

    async def list_records(
        self,
        entity: EntityType,
        page: int = 1,
        page_size: int = 50,
        filters: Optional[Dict[str, Any]] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Newest-first page of records matching the categorical filters."""
        model = ENTITY_MODELS[entity]
        conditions = [
            _categorical_column(entity, field) == value
            for field, value in (filters or {}).items()
            if value is not None
        ]

        query = select(model)
        count_query = select(func.count(model.id))
        if conditions:
            query = query.where(and_(*conditions))
            count_query = count_query.where(and_(*conditions))

        offset = (page - 1) * page_size
        query = query.order_by(model.created_at.desc()).offset(offset).limit(page_size)

        async with self._session_factory() as db:
            total = (await db.execute(count_query)).scalar() or 0
            result = await db.execute(query)
            records = [_project(row.to_record(), ("__v",)) for row in result.scalars().all()]
        return records, total

    async def get_record(self, entity: EntityType, record_id: str) -> Optional[Dict[str, Any]]:
        try:
            key = uuid.UUID(record_id)
        except ValueError:
            return None
        model = ENTITY_MODELS[entity]
        async with self._session_factory() as db:
            row = await db.get(model, key)
            return _project(row.to_record(), ("__v",)) if row else None
