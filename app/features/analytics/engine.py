"""Aggregation engine for dashboard reports.

Turns a date range (or ``None`` for all time) into the raw sums, per-day
series and grouped buckets that reports are assembled from. All queries go
through an injected ``DataStore``.
"""

import asyncio
from collections.abc import Awaitable, Collection, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from app.core.logging import get_logger
from app.features.analytics.date_range import DateRange, month_key, trailing_months
from app.features.analytics.units import UnitKind, unit_kinds_by_product
from app.features.data_platform.store import DataStore, Entity
from app.shared.utils import ZERO

logger = get_logger(__name__)

# Quantity and money columns per transaction collection
QUANTITY_FIELDS: dict[Entity, str] = {
    Entity.PURCHASE: "quantity_liters",
    Entity.SALE: "quantity",
}
TOTAL_FIELD = "total"


async def gather_all(*aws: Awaitable[Any]) -> list[Any]:
    """Await every awaitable concurrently, then raise the first failure.

    Unlike a bare ``asyncio.gather``, no failure is surfaced while sibling
    queries are still in flight.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


def _window(date_range: DateRange | None) -> dict[str, date]:
    if date_range is None:
        return {}
    return {"since": date_range.start_date, "until": date_range.end_date}


def _decimal(value: Any) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# =============================================================================
# Aggregate value types
# =============================================================================


@dataclass(frozen=True)
class SummaryTotals:
    """Headline sums for a period."""

    milk_purchased: Decimal = ZERO
    milk_sold: Decimal = ZERO
    purchase_cost: Decimal = ZERO
    sales_revenue: Decimal = ZERO

    @property
    def gross_profit(self) -> Decimal:
        return self.sales_revenue - self.purchase_cost


@dataclass(frozen=True)
class AggregateBucket:
    """Summed quantity, money total and row count for one grouping key."""

    key: Any
    sum_quantity: Decimal = ZERO
    sum_total: Decimal = ZERO
    count: int = 0


@dataclass(frozen=True)
class DailyVolume:
    """Liters purchased on one day."""

    day: date
    liters: Decimal


@dataclass
class DailySales:
    """Sale quantities for one day, split by unit kind.

    ``total_quantity`` adds liters, kilograms and plain units together. It
    exists for unit-agnostic charts only and is not a physical quantity.
    """

    day: date
    liters: Decimal = ZERO
    kilograms: Decimal = ZERO
    other_units: Decimal = ZERO

    def add(self, kind: UnitKind, quantity: Decimal) -> None:
        if kind is UnitKind.LITERS:
            self.liters += quantity
        elif kind is UnitKind.KILOGRAMS:
            self.kilograms += quantity
        else:
            self.other_units += quantity

    @property
    def total_quantity(self) -> Decimal:
        return self.liters + self.kilograms + self.other_units


@dataclass
class MonthlyTotals:
    """Purchase and sale activity for one calendar month."""

    month: str
    purchased: Decimal = ZERO
    sold: Decimal = ZERO
    purchase_cost: Decimal = ZERO
    sales_revenue: Decimal = ZERO

    @property
    def profit(self) -> Decimal:
        return self.sales_revenue - self.purchase_cost


@dataclass(frozen=True)
class SaleLine:
    """Minimal projection of a sale used for per-day unit bucketing."""

    day: date
    product_id: int | None
    quantity: Decimal


@dataclass
class TrendRows:
    """Raw purchase and sale rows backing the monthly trend."""

    month_keys: list[str]
    purchases: list[dict[str, Any]] = field(default_factory=list)
    sales: list[dict[str, Any]] = field(default_factory=list)


# =============================================================================
# Pure bucketing helpers
# =============================================================================


def bucket_sales_by_day(
    lines: Iterable[SaleLine],
    unit_kinds: Mapping[int, UnitKind],
) -> list[DailySales]:
    """Accumulate sale quantities per day and unit kind.

    Args:
        lines: Sale projections inside the report range.
        unit_kinds: Unit kind per product id; unknown products count as OTHER.

    Returns:
        One entry per day with sales, ascending by date.
    """
    days: dict[date, DailySales] = {}
    for line in lines:
        bucket = days.get(line.day)
        if bucket is None:
            bucket = days[line.day] = DailySales(day=line.day)
        kind = UnitKind.OTHER
        if line.product_id is not None:
            kind = unit_kinds.get(line.product_id, UnitKind.OTHER)
        bucket.add(kind, line.quantity)
    return [days[day] for day in sorted(days)]


def bucket_by_month(rows: TrendRows) -> list[MonthlyTotals]:
    """Roll purchase and sale rows up into the trend's month buckets.

    Every month of the window is present, zero-filled when idle. Rows
    outside the window are ignored.
    """
    months = {key: MonthlyTotals(month=key) for key in rows.month_keys}
    for row in rows.purchases:
        bucket = months.get(month_key(row["date"]))
        if bucket is not None:
            bucket.purchased += _decimal(row.get(QUANTITY_FIELDS[Entity.PURCHASE]))
            bucket.purchase_cost += _decimal(row.get(TOTAL_FIELD))
    for row in rows.sales:
        bucket = months.get(month_key(row["date"]))
        if bucket is not None:
            bucket.sold += _decimal(row.get(QUANTITY_FIELDS[Entity.SALE]))
            bucket.sales_revenue += _decimal(row.get(TOTAL_FIELD))
    return [months[key] for key in sorted(months)]


# =============================================================================
# Engine
# =============================================================================


class AggregationEngine:
    """Computes raw aggregates for dashboard reports.

    Holds no state beyond the injected store, so one instance may serve a
    single request and be discarded.
    """

    def __init__(self, store: DataStore) -> None:
        """Initialize the engine.

        Args:
            store: Data access layer to query.
        """
        self.store = store

    async def summary_metrics(self, date_range: DateRange | None = None) -> SummaryTotals:
        """Sum purchase and sale quantities and money for a period.

        Args:
            date_range: Period to sum over; None sums all time.

        Returns:
            Headline totals with gross profit derived.
        """
        window = _window(date_range)
        milk_purchased, purchase_cost, milk_sold, sales_revenue = await gather_all(
            self.store.sum_field(Entity.PURCHASE, QUANTITY_FIELDS[Entity.PURCHASE], **window),
            self.store.sum_field(Entity.PURCHASE, TOTAL_FIELD, **window),
            self.store.sum_field(Entity.SALE, QUANTITY_FIELDS[Entity.SALE], **window),
            self.store.sum_field(Entity.SALE, TOTAL_FIELD, **window),
        )
        totals = SummaryTotals(
            milk_purchased=_decimal(milk_purchased),
            milk_sold=_decimal(milk_sold),
            purchase_cost=_decimal(purchase_cost),
            sales_revenue=_decimal(sales_revenue),
        )
        logger.debug(
            "analytics.summary_computed",
            all_time=date_range is None,
            sales_revenue=float(totals.sales_revenue),
            purchase_cost=float(totals.purchase_cost),
        )
        return totals

    async def group_by(
        self,
        entity: Entity,
        key: str,
        date_range: DateRange | None = None,
    ) -> list[AggregateBucket]:
        """Group a transaction collection by one key column.

        Args:
            entity: PURCHASE or SALE.
            key: Grouping column (``date``, ``supplier_id``, ...).
            date_range: Period filter; None groups all time.

        Returns:
            One bucket per key with summed quantity, total and row count.
        """
        quantity_field = QUANTITY_FIELDS[entity]
        rows = await self.store.group_by(
            entity,
            key,
            (quantity_field, TOTAL_FIELD),
            **_window(date_range),
        )
        return [
            AggregateBucket(
                key=row.key,
                sum_quantity=_decimal(row.sums.get(quantity_field)),
                sum_total=_decimal(row.sums.get(TOTAL_FIELD)),
                count=row.count,
            )
            for row in rows
        ]

    async def purchase_series_by_day(self, date_range: DateRange) -> list[DailyVolume]:
        """Liters purchased per day inside the range, ascending by date."""
        buckets = await self.group_by(Entity.PURCHASE, "date", date_range)
        return [
            DailyVolume(day=bucket.key, liters=bucket.sum_quantity)
            for bucket in sorted(buckets, key=lambda b: b.key)
        ]

    async def sale_lines(self, date_range: DateRange | None) -> list[SaleLine]:
        """Fetch the sale projection needed for per-day unit bucketing."""
        rows = await self.store.find_many(
            Entity.SALE,
            fields=("date", "product_id", QUANTITY_FIELDS[Entity.SALE]),
            **_window(date_range),
        )
        return [
            SaleLine(
                day=row["date"],
                product_id=row.get("product_id"),
                quantity=_decimal(row.get(QUANTITY_FIELDS[Entity.SALE])),
            )
            for row in rows
        ]

    async def unit_kinds(self, product_ids: Collection[int]) -> dict[int, UnitKind]:
        """Resolve unit kinds for a set of products in one lookup."""
        products = await self.store.find_many(
            Entity.PRODUCT,
            fields=("id", "unit"),
            ids=set(product_ids),
        )
        return unit_kinds_by_product(products)

    async def sales_series_by_day(
        self,
        date_range: DateRange,
        lines: list[SaleLine] | None = None,
        unit_kinds: dict[int, UnitKind] | None = None,
    ) -> list[DailySales]:
        """Sale quantities per day split into liters, kilograms and units.

        Each product's unit is resolved once for the whole range, not per
        sale row. Callers that already hold the sale lines or the unit kinds
        pass them in and skip the matching query.

        Args:
            date_range: Period to bucket.
            lines: Sale lines for the range, fetched when omitted.
            unit_kinds: Unit kind per product id, resolved when omitted.

        Returns:
            One entry per day with sales, ascending by date.
        """
        if lines is None:
            lines = await self.sale_lines(date_range)
        if unit_kinds is None:
            unit_kinds = await self.unit_kinds(
                {line.product_id for line in lines if line.product_id is not None}
            )
        return bucket_sales_by_day(lines, unit_kinds)

    async def trend_rows(self, months: int, today: date | None = None) -> TrendRows:
        """Fetch purchase and sale rows for the trailing month window."""
        window, keys = trailing_months(months, today)
        purchases, sales = await gather_all(
            self.store.find_many(
                Entity.PURCHASE,
                fields=("date", QUANTITY_FIELDS[Entity.PURCHASE], TOTAL_FIELD),
                **_window(window),
            ),
            self.store.find_many(
                Entity.SALE,
                fields=("date", QUANTITY_FIELDS[Entity.SALE], TOTAL_FIELD),
                **_window(window),
            ),
        )
        return TrendRows(month_keys=keys, purchases=purchases, sales=sales)

    async def monthly_trends(
        self,
        months: int = 12,
        today: date | None = None,
    ) -> list[MonthlyTotals]:
        """Purchase and sale activity per month for the trailing window.

        Args:
            months: Number of calendar months, ending with the current one.
            today: Reference day (wall clock when omitted).

        Returns:
            One entry per month, ascending by ``YYYY-MM`` key.
        """
        return bucket_by_month(await self.trend_rows(months, today))

    async def entity_counts(self) -> dict[Entity, int]:
        """Row count of every collection."""
        entities = list(Entity)
        counts = await gather_all(*(self.store.count(entity) for entity in entities))
        return dict(zip(entities, (int(c) for c in counts), strict=True))

    async def recent_transactions(self, entity: Entity, limit: int) -> list[dict[str, Any]]:
        """Newest purchases or sales, most recent first."""
        return await self.store.find_many(entity, newest_first=True, limit=limit)
