"""Data access layer over the dairy tables.

Reporting code talks to the ``DataStore`` protocol only. The SQLAlchemy
adapter opens one session per query so callers may issue queries
concurrently without sharing a connection.
"""

from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import Base, get_session_maker
from app.core.logging import get_logger
from app.features.data_platform.models import (
    Customer,
    MilkPurchase,
    Product,
    Sale,
    Supplier,
)

logger = get_logger(__name__)


class Entity(str, Enum):
    """Entity collections exposed by the data store."""

    SUPPLIER = "supplier"
    CUSTOMER = "customer"
    PRODUCT = "product"
    PURCHASE = "purchase"
    SALE = "sale"


ENTITY_MODELS: dict[Entity, type[Base]] = {
    Entity.SUPPLIER: Supplier,
    Entity.CUSTOMER: Customer,
    Entity.PRODUCT: Product,
    Entity.PURCHASE: MilkPurchase,
    Entity.SALE: Sale,
}

# Collections carrying a calendar ``date`` column
DATED_ENTITIES = frozenset({Entity.PURCHASE, Entity.SALE})


@dataclass(frozen=True)
class GroupRow:
    """One group produced by ``DataStore.group_by``.

    Attributes:
        key: Value of the grouping column.
        sums: Summed value per requested field (0 when all values are null).
        count: Number of rows in the group.
    """

    key: Any
    sums: dict[str, Decimal] = field(default_factory=dict)
    count: int = 0


class DataStore(Protocol):
    """Read-only aggregate access to the five entity collections.

    ``since``/``until`` are inclusive calendar-day bounds and are only valid
    for dated collections (purchases and sales).
    """

    async def count(self, entity: Entity) -> int: ...

    async def sum_field(
        self,
        entity: Entity,
        field_name: str,
        *,
        since: date | None = None,
        until: date | None = None,
    ) -> Decimal: ...

    async def group_by(
        self,
        entity: Entity,
        by_field: str,
        sum_fields: Sequence[str],
        *,
        since: date | None = None,
        until: date | None = None,
    ) -> list[GroupRow]: ...

    async def find_many(
        self,
        entity: Entity,
        *,
        fields: Sequence[str] | None = None,
        ids: Collection[int] | None = None,
        since: date | None = None,
        until: date | None = None,
        newest_first: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]: ...

    async def find_by_id(self, entity: Entity, entity_id: int) -> dict[str, Any] | None: ...


class SqlAlchemyDataStore:
    """``DataStore`` backed by the async SQLAlchemy engine."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_maker: Factory for short-lived sessions, one per query.
        """
        self._session_maker = session_maker

    # ------------------------------------------------------------------
    # Column helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _column(entity: Entity, field_name: str) -> ColumnElement[Any]:
        model = ENTITY_MODELS[entity]
        if field_name not in model.__table__.columns:
            raise ValueError(f"Unknown field '{field_name}' for entity '{entity.value}'")
        column: ColumnElement[Any] = getattr(model, field_name)
        return column

    def _apply_window(
        self,
        stmt: Select[Any],
        entity: Entity,
        since: date | None,
        until: date | None,
    ) -> Select[Any]:
        if since is None and until is None:
            return stmt
        if entity not in DATED_ENTITIES:
            raise ValueError(f"Entity '{entity.value}' cannot be filtered by date")
        date_col = self._column(entity, "date")
        if since is not None:
            stmt = stmt.where(date_col >= since)
        if until is not None:
            stmt = stmt.where(date_col <= until)
        return stmt

    # ------------------------------------------------------------------
    # DataStore operations
    # ------------------------------------------------------------------

    async def count(self, entity: Entity) -> int:
        """Count all rows of an entity."""
        stmt = select(func.count()).select_from(ENTITY_MODELS[entity])
        async with self._session_maker() as session:
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def sum_field(
        self,
        entity: Entity,
        field_name: str,
        *,
        since: date | None = None,
        until: date | None = None,
    ) -> Decimal:
        """Sum one numeric column, 0 when no rows match."""
        column = self._column(entity, field_name)
        stmt = select(func.coalesce(func.sum(column), 0))
        stmt = self._apply_window(stmt, entity, since, until)
        async with self._session_maker() as session:
            result = await session.execute(stmt)
            return Decimal(str(result.scalar_one()))

    async def group_by(
        self,
        entity: Entity,
        by_field: str,
        sum_fields: Sequence[str],
        *,
        since: date | None = None,
        until: date | None = None,
    ) -> list[GroupRow]:
        """Group rows by one column, summing the requested columns.

        Args:
            entity: Collection to aggregate.
            by_field: Grouping column.
            sum_fields: Columns to sum per group.
            since: Inclusive lower date bound.
            until: Inclusive upper date bound.

        Returns:
            One row per distinct key, ordered by key.
        """
        key_col = self._column(entity, by_field)
        sum_cols = [
            func.coalesce(func.sum(self._column(entity, name)), 0).label(name)
            for name in sum_fields
        ]
        stmt = select(key_col.label("key"), *sum_cols, func.count().label("row_count"))
        stmt = self._apply_window(stmt, entity, since, until)
        stmt = stmt.group_by(key_col).order_by(key_col)

        async with self._session_maker() as session:
            result = await session.execute(stmt)
            rows = result.all()

        logger.debug(
            "data_store.grouped",
            entity=entity.value,
            by_field=by_field,
            groups=len(rows),
        )

        return [
            GroupRow(
                key=row.key,
                sums={name: Decimal(str(row._mapping[name])) for name in sum_fields},
                count=int(row.row_count),
            )
            for row in rows
        ]

    async def find_many(
        self,
        entity: Entity,
        *,
        fields: Sequence[str] | None = None,
        ids: Collection[int] | None = None,
        since: date | None = None,
        until: date | None = None,
        newest_first: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch rows as plain mappings.

        Args:
            entity: Collection to read.
            fields: Columns to project (all columns when omitted).
            ids: Restrict to these primary keys. An empty collection matches nothing.
            since: Inclusive lower date bound.
            until: Inclusive upper date bound.
            newest_first: Order by date then id, descending.
            limit: Maximum number of rows.

        Returns:
            List of column-name to value mappings.
        """
        if ids is not None and not ids:
            return []

        model = ENTITY_MODELS[entity]
        names = list(fields) if fields else [c.name for c in model.__table__.columns]
        stmt = select(*[self._column(entity, name) for name in names])
        stmt = self._apply_window(stmt, entity, since, until)

        id_col = self._column(entity, "id")
        if ids is not None:
            stmt = stmt.where(id_col.in_(set(ids)))
        if newest_first:
            if entity not in DATED_ENTITIES:
                raise ValueError(f"Entity '{entity.value}' has no date to order by")
            stmt = stmt.order_by(self._column(entity, "date").desc(), id_col.desc())
        else:
            stmt = stmt.order_by(id_col)
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self._session_maker() as session:
            result = await session.execute(stmt)
            return [dict(row._mapping) for row in result]

    async def find_by_id(self, entity: Entity, entity_id: int) -> dict[str, Any] | None:
        """Fetch a single row by primary key, or None."""
        rows = await self.find_many(entity, ids=[entity_id], limit=1)
        return rows[0] if rows else None


def get_data_store() -> DataStore:
    """FastAPI dependency providing the production data store."""
    return SqlAlchemyDataStore(get_session_maker())
