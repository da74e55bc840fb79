"""Report assembly: name resolution and response shaping.

Aggregates come back keyed by foreign id. The assembler resolves those ids
to display rows in one batched lookup per entity, builds breakdown rows with
a single table-driven routine and shapes the final report models.
"""

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from pydantic import BaseModel

from app.core.logging import get_logger
from app.features.analytics.date_range import DateRange
from app.features.analytics.engine import (
    AggregateBucket,
    DailySales,
    DailyVolume,
    MonthlyTotals,
    SummaryTotals,
    gather_all,
)
from app.features.analytics.schemas import (
    ActivitySummary,
    AllTimeReport,
    CustomerBreakdownItem,
    CustomerLifetimeItem,
    DateRangeEcho,
    MonthlyTrend,
    ProductBreakdownItem,
    ProductLifetimeItem,
    PurchasePoint,
    RangeReport,
    RecentPurchase,
    RecentSale,
    ReportSummary,
    SalesPoint,
    SupplierBreakdownItem,
    SupplierLifetimeItem,
)
from app.features.analytics.units import UnitKind, unit_kinds_by_product
from app.features.data_platform.store import DataStore, Entity
from app.shared.utils import ZERO, safe_ratio

logger = get_logger(__name__)

UNKNOWN_LABELS: dict[Entity, str] = {
    Entity.SUPPLIER: "Unknown Supplier",
    Entity.CUSTOMER: "Unknown Customer",
    Entity.PRODUCT: "Unknown Product",
}
UNKNOWN_UNIT = "Unknown Unit"

# Columns fetched when resolving display rows
LOOKUP_FIELDS: dict[Entity, tuple[str, ...]] = {
    Entity.SUPPLIER: ("id", "name"),
    Entity.CUSTOMER: ("id", "name", "type"),
    Entity.PRODUCT: ("id", "name", "unit"),
}


# =============================================================================
# Name resolution
# =============================================================================


@dataclass(frozen=True)
class EntityDirectory:
    """Display rows for one entity, keyed by id."""

    entity: Entity
    rows: Mapping[int, Mapping[str, Any]]

    def name(self, entity_id: int | None) -> str:
        row = self.rows.get(entity_id) if entity_id is not None else None
        if row is None or not row.get("name"):
            return UNKNOWN_LABELS[self.entity]
        return str(row["name"])

    def unit(self, entity_id: int | None) -> str:
        row = self.rows.get(entity_id) if entity_id is not None else None
        if row is None or not row.get("unit"):
            return UNKNOWN_UNIT
        return str(row["unit"])

    def unit_kinds(self) -> dict[int, UnitKind]:
        return unit_kinds_by_product(self.rows.values())


# =============================================================================
# Breakdown table
# =============================================================================


@dataclass(frozen=True)
class BreakdownRow:
    """Dimension-agnostic breakdown line before it is shaped for the wire."""

    entity_id: int | None
    label: str
    unit: str | None
    quantity: Decimal
    total: Decimal
    transactions: int
    average_price: Decimal


def _supplier_item(row: BreakdownRow, lifetime: bool) -> BaseModel:
    fields: dict[str, Any] = {
        "supplier_id": row.entity_id,
        "supplier_name": row.label,
        "total_liters_supplied": row.quantity,
        "total_cost": row.total,
    }
    if lifetime:
        return SupplierLifetimeItem(
            **fields,
            total_transactions=row.transactions,
            average_price_per_liter=row.average_price,
        )
    return SupplierBreakdownItem(**fields)


def _customer_item(row: BreakdownRow, lifetime: bool) -> BaseModel:
    fields: dict[str, Any] = {
        "customer_id": row.entity_id,
        "customer_name": row.label,
        "total_liters_bought": row.quantity,
        "total_revenue": row.total,
    }
    if lifetime:
        return CustomerLifetimeItem(
            **fields,
            total_transactions=row.transactions,
            average_price_per_liter=row.average_price,
        )
    return CustomerBreakdownItem(**fields)


def _product_item(row: BreakdownRow, lifetime: bool) -> BaseModel:
    fields: dict[str, Any] = {
        "product_id": row.entity_id,
        "product_name": row.label,
        "unit": row.unit or UNKNOWN_UNIT,
        "units_sold": row.quantity,
        "total_revenue": row.total,
    }
    if lifetime:
        return ProductLifetimeItem(
            **fields,
            total_transactions=row.transactions,
            average_price_per_unit=row.average_price,
        )
    return ProductBreakdownItem(**fields)


@dataclass(frozen=True)
class BreakdownDefinition:
    """How one breakdown is grouped, labeled and shaped.

    Attributes:
        name: Report key prefix ("supplier", "customer", "product").
        source: Transaction collection that is grouped.
        key_field: Foreign-key column grouped on.
        target: Entity the key refers to.
        build_item: Shapes a ``BreakdownRow``; the flag selects the lifetime variant.
    """

    name: str
    source: Entity
    key_field: str
    target: Entity
    build_item: Callable[[BreakdownRow, bool], BaseModel]


BREAKDOWNS: tuple[BreakdownDefinition, ...] = (
    BreakdownDefinition(
        "supplier", Entity.PURCHASE, "supplier_id", Entity.SUPPLIER, _supplier_item
    ),
    BreakdownDefinition("customer", Entity.SALE, "customer_id", Entity.CUSTOMER, _customer_item),
    BreakdownDefinition("product", Entity.SALE, "product_id", Entity.PRODUCT, _product_item),
)


def _ordered(buckets: Iterable[AggregateBucket]) -> list[AggregateBucket]:
    """Largest money total first; ties by id with missing ids last."""
    return sorted(
        buckets,
        key=lambda b: (-b.sum_total, b.key is None, b.key if b.key is not None else 0),
    )


# =============================================================================
# Assembler
# =============================================================================


class ReportAssembler:
    """Resolves labels and shapes dashboard reports."""

    def __init__(self, store: DataStore, price_precision: int = 2) -> None:
        """Initialize the assembler.

        Args:
            store: Data access layer used for name lookups.
            price_precision: Decimal places for average prices.
        """
        self.store = store
        self.price_precision = price_precision

    async def load_directories(
        self,
        wanted: Mapping[Entity, Iterable[int | None]],
    ) -> dict[Entity, EntityDirectory]:
        """Fetch display rows for every requested id, one query per entity.

        Args:
            wanted: Ids to resolve per reference entity. ``None`` ids are skipped.

        Returns:
            Directory per requested entity (empty when no ids were given).
        """
        entities = list(wanted)
        id_sets = [{i for i in wanted[entity] if i is not None} for entity in entities]
        results = await gather_all(
            *(
                self.store.find_many(entity, fields=LOOKUP_FIELDS[entity], ids=ids)
                for entity, ids in zip(entities, id_sets, strict=True)
            )
        )
        directories: dict[Entity, EntityDirectory] = {}
        for entity, ids, rows in zip(entities, id_sets, results, strict=True):
            directories[entity] = EntityDirectory(
                entity=entity,
                rows={row["id"]: row for row in rows},
            )
            missing = len(ids) - len(directories[entity].rows)
            if missing:
                logger.warning(
                    "dashboard.labels_unresolved",
                    entity=entity.value,
                    missing=missing,
                )
        return directories

    @staticmethod
    def breakdown_ids(
        buckets: Mapping[str, Sequence[AggregateBucket]],
    ) -> dict[Entity, set[int | None]]:
        """Collect the foreign ids each breakdown needs resolved."""
        wanted: dict[Entity, set[int | None]] = {entity: set() for entity in UNKNOWN_LABELS}
        for definition in BREAKDOWNS:
            wanted[definition.target].update(b.key for b in buckets.get(definition.name, ()))
        return wanted

    def breakdown(
        self,
        definition: BreakdownDefinition,
        buckets: Iterable[AggregateBucket],
        directory: EntityDirectory,
        lifetime: bool = False,
    ) -> list[Any]:
        """Build one breakdown from grouped buckets.

        Args:
            definition: Which dimension is being broken down.
            buckets: Grouped aggregates keyed by foreign id.
            directory: Display rows for the dimension's entity.
            lifetime: Include transaction counts and average prices.

        Returns:
            Shaped breakdown items, largest total first.
        """
        items = []
        for bucket in _ordered(buckets):
            row = BreakdownRow(
                entity_id=bucket.key,
                label=directory.name(bucket.key),
                unit=directory.unit(bucket.key) if definition.target is Entity.PRODUCT else None,
                quantity=bucket.sum_quantity,
                total=bucket.sum_total,
                transactions=bucket.count,
                average_price=safe_ratio(
                    bucket.sum_total,
                    bucket.sum_quantity,
                    self.price_precision,
                ),
            )
            items.append(definition.build_item(row, lifetime))
        return items

    @staticmethod
    def summary(totals: SummaryTotals) -> ReportSummary:
        return ReportSummary(
            total_milk_purchased=totals.milk_purchased,
            total_milk_sold=totals.milk_sold,
            total_purchase_cost=totals.purchase_cost,
            total_sales_revenue=totals.sales_revenue,
            gross_profit=totals.gross_profit,
        )

    def range_report(
        self,
        date_range: DateRange,
        totals: SummaryTotals,
        purchases: Sequence[DailyVolume],
        sales: Sequence[DailySales],
        buckets: Mapping[str, Sequence[AggregateBucket]],
        directories: Mapping[Entity, EntityDirectory],
    ) -> RangeReport:
        """Shape the ranged report."""
        breakdowns = {
            definition.name: self.breakdown(
                definition,
                buckets.get(definition.name, ()),
                directories[definition.target],
            )
            for definition in BREAKDOWNS
        }
        return RangeReport(
            date_range=DateRangeEcho(from_=date_range.start_date, to=date_range.end_date),
            summary=self.summary(totals),
            purchases_over_time=[
                PurchasePoint(date=point.day, total_liters=point.liters) for point in purchases
            ],
            sales_over_time=[
                SalesPoint(
                    date=day.day,
                    total_liters=day.liters,
                    total_kg=day.kilograms,
                    total_units=day.other_units,
                    total_quantity=day.total_quantity,
                )
                for day in sales
            ],
            supplier_breakdown=breakdowns["supplier"],
            customer_breakdown=breakdowns["customer"],
            product_breakdown=breakdowns["product"],
        )

    def all_time_report(
        self,
        totals: SummaryTotals,
        buckets: Mapping[str, Sequence[AggregateBucket]],
        directories: Mapping[Entity, EntityDirectory],
        trends: Sequence[MonthlyTotals],
    ) -> AllTimeReport:
        """Shape the all-time report."""
        breakdowns = {
            definition.name: self.breakdown(
                definition,
                buckets.get(definition.name, ()),
                directories[definition.target],
                lifetime=True,
            )
            for definition in BREAKDOWNS
        }
        return AllTimeReport(
            summary=self.summary(totals),
            supplier_breakdown=breakdowns["supplier"],
            customer_breakdown=breakdowns["customer"],
            product_breakdown=breakdowns["product"],
            monthly_trends=[
                MonthlyTrend(
                    month=month.month,
                    purchases=month.purchased,
                    sales=month.sold,
                    purchase_cost=month.purchase_cost,
                    sales_revenue=month.sales_revenue,
                    profit=month.profit,
                )
                for month in trends
            ],
        )

    @staticmethod
    def activity_summary(
        counts: Mapping[Entity, int],
        total_revenue: Decimal,
        total_milk_purchased: Decimal,
        purchases: Sequence[Mapping[str, Any]],
        sales: Sequence[Mapping[str, Any]],
        directories: Mapping[Entity, EntityDirectory],
    ) -> ActivitySummary:
        """Shape the activity summary."""
        suppliers = directories[Entity.SUPPLIER]
        customers = directories[Entity.CUSTOMER]
        products = directories[Entity.PRODUCT]
        return ActivitySummary(
            suppliers=counts.get(Entity.SUPPLIER, 0),
            customers=counts.get(Entity.CUSTOMER, 0),
            products=counts.get(Entity.PRODUCT, 0),
            milk_purchases=counts.get(Entity.PURCHASE, 0),
            sales=counts.get(Entity.SALE, 0),
            total_revenue=total_revenue,
            total_milk_purchased=total_milk_purchased,
            recent_milk_purchases=[
                RecentPurchase(
                    id=row["id"],
                    supplier_id=row.get("supplier_id"),
                    supplier_name=suppliers.name(row.get("supplier_id")),
                    date=row["date"],
                    quantity_liters=row.get("quantity_liters") or ZERO,
                    price_per_liter=row.get("price_per_liter") or ZERO,
                    total=row.get("total") or ZERO,
                )
                for row in purchases
            ],
            recent_sales=[
                RecentSale(
                    id=row["id"],
                    customer_id=row.get("customer_id"),
                    customer_name=customers.name(row.get("customer_id")),
                    product_id=row.get("product_id"),
                    product_name=products.name(row.get("product_id")),
                    unit=products.unit(row.get("product_id")),
                    date=row["date"],
                    quantity=row.get("quantity") or ZERO,
                    price_per_unit=row.get("price_per_unit") or ZERO,
                    total=row.get("total") or ZERO,
                )
                for row in sales
            ],
        )
