"""Unit tests for report assembly."""

from decimal import Decimal

import pytest

from app.features.analytics.assembler import (
    BREAKDOWNS,
    UNKNOWN_UNIT,
    EntityDirectory,
    ReportAssembler,
)
from app.features.analytics.engine import AggregateBucket
from app.features.analytics.units import UnitKind
from app.features.data_platform.store import Entity

SUPPLIERS, CUSTOMERS, PRODUCTS = BREAKDOWNS


def _bucket(key, quantity, total, count=1):
    return AggregateBucket(
        key=key,
        sum_quantity=Decimal(quantity),
        sum_total=Decimal(total),
        count=count,
    )


class TestEntityDirectory:
    """Tests for EntityDirectory lookups."""

    def test_known_and_unknown_names(self):
        """Test missing rows and null ids fall back to fixed labels."""
        directory = EntityDirectory(Entity.CUSTOMER, {1: {"id": 1, "name": "Cafe Nord"}})

        assert directory.name(1) == "Cafe Nord"
        assert directory.name(2) == "Unknown Customer"
        assert directory.name(None) == "Unknown Customer"

    def test_blank_name_is_unknown(self):
        """Test an empty stored name is treated as missing."""
        directory = EntityDirectory(Entity.SUPPLIER, {1: {"id": 1, "name": ""}})

        assert directory.name(1) == "Unknown Supplier"

    def test_units(self):
        """Test unit tags and their classification."""
        directory = EntityDirectory(
            Entity.PRODUCT,
            {
                1: {"id": 1, "name": "Milk", "unit": "Liter"},
                2: {"id": 2, "name": "Mystery", "unit": None},
            },
        )

        assert directory.unit(1) == "Liter"
        assert directory.unit(2) == UNKNOWN_UNIT
        assert directory.unit(3) == UNKNOWN_UNIT
        assert directory.unit_kinds() == {1: UnitKind.LITERS, 2: UnitKind.OTHER}


class TestLoadDirectories:
    """Tests for ReportAssembler.load_directories."""

    @pytest.mark.asyncio
    async def test_one_lookup_per_entity(self, dairy_store):
        """Test ids are resolved in one batched query per entity."""
        assembler = ReportAssembler(dairy_store)

        directories = await assembler.load_directories(
            {Entity.SUPPLIER: {1, 2, None}, Entity.PRODUCT: {1, 3}}
        )

        assert directories[Entity.SUPPLIER].name(2) == "Green Valley"
        assert directories[Entity.PRODUCT].unit(3) == "piece"
        assert dairy_store.calls == [
            ("find_many", Entity.SUPPLIER),
            ("find_many", Entity.PRODUCT),
        ]

    @pytest.mark.asyncio
    async def test_no_ids_issues_no_query(self, dairy_store):
        """Test an empty id set resolves to an empty directory without a lookup."""
        directories = await ReportAssembler(dairy_store).load_directories(
            {Entity.CUSTOMER: {None}}
        )

        assert directories[Entity.CUSTOMER].rows == {}
        assert dairy_store.calls == []


class TestBreakdown:
    """Tests for ReportAssembler.breakdown."""

    def test_ordered_by_total_descending(self):
        """Test the largest total comes first, ties by id, missing id last."""
        directory = EntityDirectory(Entity.SUPPLIER, {})
        buckets = [
            _bucket(3, "10", "20"),
            _bucket(None, "10", "50"),
            _bucket(2, "10", "50"),
            _bucket(1, "10", "90"),
        ]

        items = ReportAssembler(None).breakdown(SUPPLIERS, buckets, directory)

        assert [item.supplier_id for item in items] == [1, 2, None, 3]

    def test_unknown_labels(self):
        """Test unresolved ids are labeled, never dropped."""
        directory = EntityDirectory(Entity.CUSTOMER, {1: {"id": 1, "name": "Cafe Nord"}})
        buckets = [_bucket(1, "5", "10"), _bucket(99, "1", "2")]

        items = ReportAssembler(None).breakdown(CUSTOMERS, buckets, directory)

        assert [item.customer_name for item in items] == ["Cafe Nord", "Unknown Customer"]

    def test_lifetime_average_price(self):
        """Test average price is total over quantity, rounded."""
        directory = EntityDirectory(Entity.SUPPLIER, {1: {"id": 1, "name": "Ali Farm"}})

        (item,) = ReportAssembler(None).breakdown(
            SUPPLIERS,
            [_bucket(1, "170", "194.00", count=3)],
            directory,
            lifetime=True,
        )

        assert item.total_transactions == 3
        assert item.average_price_per_liter == Decimal("1.14")

    def test_zero_quantity_average_is_zero(self):
        """Test a zero quantity yields a zero average instead of failing."""
        directory = EntityDirectory(Entity.PRODUCT, {})

        (item,) = ReportAssembler(None).breakdown(
            PRODUCTS,
            [_bucket(None, "0", "12.00")],
            directory,
            lifetime=True,
        )

        assert item.average_price_per_unit == Decimal("0")
        assert item.product_name == "Unknown Product"
        assert item.unit == UNKNOWN_UNIT

    def test_precision_is_configurable(self):
        """Test average prices honor the configured precision."""
        directory = EntityDirectory(Entity.CUSTOMER, {})

        (item,) = ReportAssembler(None, price_precision=3).breakdown(
            CUSTOMERS,
            [_bucket(1, "9", "16")],
            directory,
            lifetime=True,
        )

        assert item.average_price_per_liter == Decimal("1.778")

    def test_ranged_items_have_no_lifetime_fields(self):
        """Test ranged breakdown items omit counts and averages."""
        directory = EntityDirectory(Entity.PRODUCT, {1: {"id": 1, "name": "Milk", "unit": "Liter"}})

        (item,) = ReportAssembler(None).breakdown(PRODUCTS, [_bucket(1, "3", "6")], directory)

        assert item.unit == "Liter"
        assert not hasattr(item, "total_transactions")
