"""Shared pytest fixtures for DairyLedger integration tests."""

from datetime import date
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings
from app.core.database import Base
from app.features.data_platform.models import Customer, MilkPurchase, Product, Sale, Supplier
from app.features.data_platform.store import SqlAlchemyDataStore, get_data_store
from app.main import app


@pytest.fixture
async def session_maker():
    """Create a session maker over freshly created dairy tables.

    Requires PostgreSQL to be running. Tables are dropped afterwards.
    """
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def seeded_store(session_maker) -> SqlAlchemyDataStore:
    """Seed one month of dairy activity and return a store over it."""
    async with session_maker() as session:
        farm = Supplier(name="Ali Farm")
        valley = Supplier(name="Green Valley")
        cafe = Customer(name="Cafe Nord", type="Retail")
        milk = Product(name="Fresh Milk", unit="Liter")
        cheese = Product(name="Cheese", unit="KG")
        session.add_all([farm, valley, cafe, milk, cheese])
        await session.flush()

        session.add_all(
            [
                MilkPurchase(
                    supplier_id=farm.id,
                    date=date(2024, 1, 5),
                    quantity_liters=Decimal("50"),
                    price_per_liter=Decimal("1.20"),
                    total=Decimal("60.00"),
                ),
                MilkPurchase(
                    supplier_id=valley.id,
                    date=date(2024, 1, 5),
                    quantity_liters=Decimal("30"),
                    price_per_liter=Decimal("1.00"),
                    total=Decimal("30.00"),
                ),
                Sale(
                    customer_id=cafe.id,
                    product_id=milk.id,
                    date=date(2024, 1, 31),
                    quantity=Decimal("10"),
                    price_per_unit=Decimal("2.00"),
                    total=Decimal("20.00"),
                ),
                Sale(
                    customer_id=cafe.id,
                    product_id=cheese.id,
                    date=date(2024, 2, 1),
                    quantity=Decimal("1"),
                    price_per_unit=Decimal("9.00"),
                    total=Decimal("9.00"),
                ),
            ]
        )
        await session.commit()

    return SqlAlchemyDataStore(session_maker)


@pytest.fixture
async def client(seeded_store: SqlAlchemyDataStore):
    """Create async HTTP client backed by the seeded database."""
    app.dependency_overrides[get_data_store] = lambda: seeded_store
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
