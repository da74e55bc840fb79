"""Service layer for dashboard reports.

Each report runs in two phases against the data store:

1. Aggregates (summaries, per-day series, grouped buckets) issued
   concurrently; all of them finish before any failure is surfaced.
2. Batched name/unit lookups for the ids phase one produced.

Failures leave this module as exactly one of the application errors: date
validation errors before any query, ``DataStoreUnavailableError`` for
connectivity failures, ``AggregationFailedError`` for everything else.
"""

from collections.abc import Awaitable, Callable
from datetime import date
from typing import Any, TypeVar

from app.core.config import Settings, get_settings
from app.core.database import is_connectivity_failure
from app.core.exceptions import (
    AggregationFailedError,
    DairyLedgerError,
    DataStoreUnavailableError,
)
from app.core.logging import get_logger
from app.features.analytics.assembler import BREAKDOWNS, ReportAssembler
from app.features.analytics.date_range import resolve_range
from app.features.analytics.engine import (
    QUANTITY_FIELDS,
    TOTAL_FIELD,
    AggregationEngine,
    gather_all,
)
from app.features.analytics.schemas import ActivitySummary, AllTimeReport, RangeReport
from app.features.data_platform.store import DataStore, Entity

logger = get_logger(__name__)

T = TypeVar("T")


class DashboardService:
    """Builds dashboard reports from an injected data store."""

    def __init__(self, store: DataStore, settings: Settings | None = None) -> None:
        """Initialize dashboard service.

        Args:
            store: Data access layer to query.
            settings: Application settings (cached settings when omitted).
        """
        self.settings = settings or get_settings()
        self.engine = AggregationEngine(store)
        self.assembler = ReportAssembler(store, self.settings.dashboard_price_precision)

    async def _guarded(self, report: str, build: Callable[[], Awaitable[T]]) -> T:
        """Run a report build, mapping failures onto the error taxonomy."""
        try:
            return await build()
        except DairyLedgerError:
            raise
        except Exception as e:
            if is_connectivity_failure(e):
                logger.error(
                    "dashboard.data_store_unavailable",
                    report=report,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise DataStoreUnavailableError(
                    details={"report": report, "error_type": type(e).__name__}
                ) from e
            logger.error(
                "dashboard.aggregation_failed",
                report=report,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            raise AggregationFailedError(
                details={"report": report, "error_type": type(e).__name__}
            ) from e

    async def range_report(
        self,
        from_param: str | None = None,
        to_param: str | None = None,
        today: date | None = None,
    ) -> RangeReport:
        """Build the report for a date range.

        Args:
            from_param: Start date (YYYY-MM-DD), defaults to the month start.
            to_param: End date (YYYY-MM-DD), defaults to the month end.
            today: Reference day for defaults (wall clock when omitted).

        Returns:
            Ranged dashboard report.

        Raises:
            InvalidDateFormatError: If a date does not parse.
            InvalidDateRangeError: If the start is after the end.
            DataStoreUnavailableError: If the data store cannot be reached.
            AggregationFailedError: On any other failure.
        """
        date_range = resolve_range(from_param, to_param, today)

        async def build() -> RangeReport:
            totals, purchases, sale_lines, *grouped = await gather_all(
                self.engine.summary_metrics(date_range),
                self.engine.purchase_series_by_day(date_range),
                self.engine.sale_lines(date_range),
                *(
                    self.engine.group_by(d.source, d.key_field, date_range)
                    for d in BREAKDOWNS
                ),
            )
            buckets = {d.name: rows for d, rows in zip(BREAKDOWNS, grouped, strict=True)}

            wanted = self.assembler.breakdown_ids(buckets)
            wanted[Entity.PRODUCT].update(line.product_id for line in sale_lines)
            directories = await self.assembler.load_directories(wanted)

            sales = await self.engine.sales_series_by_day(
                date_range,
                lines=sale_lines,
                unit_kinds=directories[Entity.PRODUCT].unit_kinds(),
            )
            return self.assembler.range_report(
                date_range, totals, purchases, sales, buckets, directories
            )

        report = await self._guarded("range", build)
        logger.info(
            "dashboard.range_report_built",
            start_date=str(date_range.start_date),
            end_date=str(date_range.end_date),
            purchase_days=len(report.purchases_over_time),
            sale_days=len(report.sales_over_time),
            gross_profit=float(report.summary.gross_profit),
        )
        return report

    async def all_time_report(self, today: date | None = None) -> AllTimeReport:
        """Build the lifetime report with the trailing monthly trend.

        Args:
            today: Reference day for the trend window (wall clock when omitted).

        Returns:
            All-time dashboard report.

        Raises:
            DataStoreUnavailableError: If the data store cannot be reached.
            AggregationFailedError: On any other failure.
        """
        months = self.settings.dashboard_trend_months

        async def build() -> AllTimeReport:
            totals, trends, *grouped = await gather_all(
                self.engine.summary_metrics(None),
                self.engine.monthly_trends(months, today),
                *(self.engine.group_by(d.source, d.key_field) for d in BREAKDOWNS),
            )
            buckets = {d.name: rows for d, rows in zip(BREAKDOWNS, grouped, strict=True)}
            directories = await self.assembler.load_directories(
                self.assembler.breakdown_ids(buckets)
            )
            return self.assembler.all_time_report(totals, buckets, directories, trends)

        report = await self._guarded("all_time", build)
        logger.info(
            "dashboard.all_time_report_built",
            suppliers=len(report.supplier_breakdown),
            customers=len(report.customer_breakdown),
            products=len(report.product_breakdown),
            trend_months=len(report.monthly_trends),
        )
        return report

    async def activity_summary(self) -> ActivitySummary:
        """Build the record-count and recent-activity summary.

        Returns:
            Counts, lifetime revenue and liters purchased, latest transactions.

        Raises:
            DataStoreUnavailableError: If the data store cannot be reached.
            AggregationFailedError: On any other failure.
        """
        limit = self.settings.dashboard_recent_activity_limit
        store = self.engine.store

        async def build() -> ActivitySummary:
            counts, revenue, liters, purchases, sales = await gather_all(
                self.engine.entity_counts(),
                store.sum_field(Entity.SALE, TOTAL_FIELD),
                store.sum_field(Entity.PURCHASE, QUANTITY_FIELDS[Entity.PURCHASE]),
                self.engine.recent_transactions(Entity.PURCHASE, limit),
                self.engine.recent_transactions(Entity.SALE, limit),
            )
            wanted: dict[Entity, Any] = {
                Entity.SUPPLIER: {row.get("supplier_id") for row in purchases},
                Entity.CUSTOMER: {row.get("customer_id") for row in sales},
                Entity.PRODUCT: {row.get("product_id") for row in sales},
            }
            directories = await self.assembler.load_directories(wanted)
            return self.assembler.activity_summary(
                counts, revenue, liters, purchases, sales, directories
            )

        summary = await self._guarded("summary", build)
        logger.info(
            "dashboard.activity_summary_built",
            recent_purchases=len(summary.recent_milk_purchases),
            recent_sales=len(summary.recent_sales),
        )
        return summary
