"""Test fixtures for analytics module."""

from collections.abc import Collection, Sequence
from datetime import date
from decimal import Decimal
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from app.core.config import Settings
from app.features.analytics.service import DashboardService
from app.features.data_platform.store import DATED_ENTITIES, Entity, GroupRow, get_data_store
from app.main import app


class InMemoryDataStore:
    """DataStore fake holding rows per entity in plain lists.

    Set ``unavailable`` to simulate an unreachable database and ``broken``
    to make every query fail with a non-connectivity error. Entities listed in
    ``lookup_unavailable`` refuse connections for ``find_many`` only.
    """

    def __init__(self) -> None:
        self.rows: dict[Entity, list[dict[str, Any]]] = {entity: [] for entity in Entity}
        self.unavailable = False
        self.broken = False
        self.lookup_unavailable: set[Entity] = set()
        self.calls: list[tuple[str, Entity]] = []

    def add(self, entity: Entity, **row: Any) -> dict[str, Any]:
        self.rows[entity].append(row)
        return row

    def _record(self, operation: str, entity: Entity) -> None:
        self.calls.append((operation, entity))
        if self.unavailable:
            raise ConnectionRefusedError("connection refused")
        if self.broken:
            raise RuntimeError("query failed")

    def _matching(
        self,
        entity: Entity,
        since: date | None,
        until: date | None,
    ) -> list[dict[str, Any]]:
        rows = self.rows[entity]
        if since is None and until is None:
            return list(rows)
        if entity not in DATED_ENTITIES:
            raise ValueError(f"Entity '{entity.value}' cannot be filtered by date")
        return [
            row
            for row in rows
            if (since is None or row["date"] >= since) and (until is None or row["date"] <= until)
        ]

    async def count(self, entity: Entity) -> int:
        self._record("count", entity)
        return len(self.rows[entity])

    async def sum_field(
        self,
        entity: Entity,
        field_name: str,
        *,
        since: date | None = None,
        until: date | None = None,
    ) -> Decimal:
        self._record("sum_field", entity)
        rows = self._matching(entity, since, until)
        return sum((Decimal(str(row.get(field_name) or 0)) for row in rows), Decimal("0"))

    async def group_by(
        self,
        entity: Entity,
        by_field: str,
        sum_fields: Sequence[str],
        *,
        since: date | None = None,
        until: date | None = None,
    ) -> list[GroupRow]:
        self._record("group_by", entity)
        groups: dict[Any, list[dict[str, Any]]] = {}
        for row in self._matching(entity, since, until):
            groups.setdefault(row.get(by_field), []).append(row)
        return [
            GroupRow(
                key=key,
                sums={
                    name: sum((Decimal(str(r.get(name) or 0)) for r in rows), Decimal("0"))
                    for name in sum_fields
                },
                count=len(rows),
            )
            for key, rows in sorted(groups.items(), key=lambda g: (g[0] is None, g[0] or 0))
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
        if ids is not None and not ids:
            return []
        self._record("find_many", entity)
        if entity in self.lookup_unavailable:
            raise ConnectionRefusedError("connection refused")
        rows = self._matching(entity, since, until)
        if ids is not None:
            rows = [row for row in rows if row["id"] in ids]
        if newest_first:
            rows.sort(key=lambda r: (r["date"], r["id"]), reverse=True)
        else:
            rows.sort(key=lambda r: r.get("id", 0))
        if limit is not None:
            rows = rows[:limit]
        if fields:
            return [{name: row.get(name) for name in fields} for row in rows]
        return [dict(row) for row in rows]

    async def find_by_id(self, entity: Entity, entity_id: int) -> dict[str, Any] | None:
        rows = await self.find_many(entity, ids=[entity_id], limit=1)
        return rows[0] if rows else None


def _purchase(id, supplier_id, day, liters, price, total):
    return {
        "id": id,
        "supplier_id": supplier_id,
        "date": day,
        "quantity_liters": Decimal(liters),
        "price_per_liter": Decimal(price),
        "total": Decimal(total),
    }


def _sale(id, customer_id, product_id, day, quantity, price, total):
    return {
        "id": id,
        "customer_id": customer_id,
        "product_id": product_id,
        "date": day,
        "quantity": Decimal(quantity),
        "price_per_unit": Decimal(price),
        "total": Decimal(total),
    }


@pytest.fixture
def empty_store() -> InMemoryDataStore:
    """Create a data store with no rows at all."""
    return InMemoryDataStore()


@pytest.fixture
def dairy_store() -> InMemoryDataStore:
    """Create a data store seeded with a small dairy ledger.

    January 2024 holds four purchases worth 114.00 for 100 liters and four
    sales worth 52.00; December 2023 holds one purchase and one sale.
    """
    store = InMemoryDataStore()

    store.add(Entity.SUPPLIER, id=1, name="Ali Farm", phone="555-0101")
    store.add(Entity.SUPPLIER, id=2, name="Green Valley", phone=None)
    store.add(Entity.CUSTOMER, id=1, name="Cafe Nord", type="Retail")
    store.add(Entity.CUSTOMER, id=2, name="Hotel Sun", type="Wholesale")
    store.add(Entity.PRODUCT, id=1, name="Fresh Milk", unit="Liter")
    store.add(Entity.PRODUCT, id=2, name="Cheese", unit="kg")
    store.add(Entity.PRODUCT, id=3, name="Yogurt Cup", unit="piece")

    for row in (
        _purchase(1, 1, date(2024, 1, 5), "50", "1.20", "60.00"),
        _purchase(2, 2, date(2024, 1, 5), "30", "1.00", "30.00"),
        _purchase(3, 1, date(2024, 1, 20), "20", "1.20", "24.00"),
        _purchase(4, 1, date(2023, 12, 15), "100", "1.10", "110.00"),
    ):
        store.add(Entity.PURCHASE, **row)

    for row in (
        _sale(1, 1, 1, date(2024, 1, 5), "10", "2.00", "20.00"),
        _sale(2, 2, 1, date(2024, 1, 5), "5", "2.00", "10.00"),
        _sale(3, 1, 2, date(2024, 1, 6), "2", "8.00", "16.00"),
        _sale(4, 2, 3, date(2024, 1, 6), "4", "1.50", "6.00"),
        _sale(5, 1, 1, date(2023, 12, 20), "8", "2.00", "16.00"),
    ):
        store.add(Entity.SALE, **row)

    return store


@pytest.fixture
def test_settings() -> Settings:
    """Create settings with the default dashboard windows."""
    return Settings(
        dashboard_recent_activity_limit=5,
        dashboard_trend_months=12,
        dashboard_price_precision=2,
    )


@pytest.fixture
def service(dairy_store: InMemoryDataStore, test_settings: Settings) -> DashboardService:
    """Create a dashboard service over the seeded store."""
    return DashboardService(dairy_store, test_settings)


@pytest.fixture
async def client(dairy_store: InMemoryDataStore):
    """Create async HTTP client with the seeded store injected."""
    app.dependency_overrides[get_data_store] = lambda: dairy_store
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
