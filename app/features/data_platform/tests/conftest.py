"""Fixtures for data platform tests.

Note: The db_session fixture is duplicated here because pytest fixtures are discovered
based on conftest.py files in the directory path. Tests in app/features/*/tests/ cannot
see fixtures in tests/conftest.py since it's not in their parent path.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import get_settings
from app.core.database import Base
from app.features.data_platform.models import (
    Customer,
    MilkPurchase,
    Product,
    Sale,
    Supplier,
)


@pytest.fixture
def mock_session() -> AsyncMock:
    """Create a mock async session whose execute result is configurable."""
    session = AsyncMock()
    session.execute.return_value = MagicMock()
    return session


@pytest.fixture
def mock_session_maker(mock_session: AsyncMock) -> MagicMock:
    """Create a session maker yielding ``mock_session`` as a context manager."""
    maker = MagicMock()
    maker.return_value.__aenter__.return_value = mock_session
    maker.return_value.__aexit__.return_value = None
    return maker


@pytest.fixture
async def db_session():
    """Create async database session for integration tests.

    Creates the dairy tables if missing and deletes test rows afterwards.
    Requires PostgreSQL to be running.
    """
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()

    # Delete in FK order
    async with async_session_maker() as cleanup_session:
        await cleanup_session.execute(delete(Sale))
        await cleanup_session.execute(delete(MilkPurchase))
        await cleanup_session.execute(delete(Product).where(Product.name.like("TEST %")))
        await cleanup_session.execute(delete(Customer).where(Customer.name.like("TEST %")))
        await cleanup_session.execute(delete(Supplier).where(Supplier.name.like("TEST %")))
        await cleanup_session.commit()

    await engine.dispose()


@pytest.fixture
async def sample_supplier(db_session: AsyncSession) -> Supplier:
    """Create a sample supplier for testing."""
    supplier = Supplier(name="TEST Ali Farm", phone="555-0101")
    db_session.add(supplier)
    await db_session.commit()
    await db_session.refresh(supplier)
    return supplier


@pytest.fixture
async def sample_customer(db_session: AsyncSession) -> Customer:
    """Create a sample customer for testing."""
    customer = Customer(name="TEST Cafe Nord", type="Retail")
    db_session.add(customer)
    await db_session.commit()
    await db_session.refresh(customer)
    return customer


@pytest.fixture
async def sample_product(db_session: AsyncSession) -> Product:
    """Create a sample product for testing."""
    product = Product(name="TEST Fresh Milk", unit="Liter")
    db_session.add(product)
    await db_session.commit()
    await db_session.refresh(product)
    return product


@pytest.fixture
def purchase_values() -> dict:
    """Field values for a valid milk purchase (supplier_id filled in by tests)."""
    return {
        "date": date(2024, 1, 15),
        "quantity_liters": Decimal("50.00"),
        "price_per_liter": Decimal("1.20"),
        "total": Decimal("60.00"),
    }
