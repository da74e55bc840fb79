"""API routes for dashboard analytics.

Callers reach these endpoints only after the gateway has authenticated
them; no authorization happens here.
"""

from fastapi import APIRouter, Depends, Query

from app.core.logging import get_logger
from app.features.analytics.schemas import ActivitySummary, AllTimeReport, RangeReport
from app.features.analytics.service import DashboardService
from app.features.data_platform.store import DataStore, get_data_store

logger = get_logger(__name__)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

_ERROR_RESPONSES: dict[int | str, dict[str, str]] = {
    500: {"description": "Report could not be generated (AGGREGATION_FAILED)."},
    503: {"description": "Database unreachable (DATA_STORE_UNAVAILABLE)."},
}


def get_dashboard_service(store: DataStore = Depends(get_data_store)) -> DashboardService:
    """Build a request-scoped dashboard service."""
    return DashboardService(store)


@router.get(
    "",
    response_model=RangeReport,
    summary="Dashboard analytics for a date range",
    responses={
        400: {"description": "INVALID_DATE_FORMAT or INVALID_DATE_RANGE."},
        **_ERROR_RESPONSES,
    },
    description="""
Summary metrics, daily series and supplier/customer/product breakdowns
for an inclusive date range.

**Date Range**:
- `from` and `to` are `YYYY-MM-DD` calendar dates, both inclusive
- Omitted bounds default to the first/last day of the current month
- Impossible dates (e.g. `2024-02-30`) are rejected, not rolled over

**Mixed units**: `salesOverTime` splits quantities into liters, kilograms
and other units. `totalQuantity` adds them together for charting only.

**Example**: `GET /dashboard?from=2024-01-01&to=2024-01-31`
""",
)
async def get_range_report(
    from_: str | None = Query(
        None,
        alias="from",
        description="Start date (inclusive). Format: YYYY-MM-DD.",
    ),
    to: str | None = Query(
        None,
        description="End date (inclusive). Format: YYYY-MM-DD.",
    ),
    service: DashboardService = Depends(get_dashboard_service),
) -> RangeReport:
    """Build the ranged dashboard report.

    Args:
        from_: Start date string.
        to: End date string.
        service: Dashboard service.

    Returns:
        Ranged report.
    """
    return await service.range_report(from_param=from_, to_param=to)


@router.get(
    "/all-time",
    response_model=AllTimeReport,
    summary="Lifetime analytics",
    responses=_ERROR_RESPONSES,
    description="""
Lifetime totals, breakdowns with transaction counts and average prices,
and purchase/sale trends for the trailing twelve calendar months.
""",
)
async def get_all_time_report(
    service: DashboardService = Depends(get_dashboard_service),
) -> AllTimeReport:
    """Build the all-time dashboard report."""
    return await service.all_time_report()


@router.get(
    "/summary",
    response_model=ActivitySummary,
    summary="Record counts and recent activity",
    responses=_ERROR_RESPONSES,
)
async def get_activity_summary(
    service: DashboardService = Depends(get_dashboard_service),
) -> ActivitySummary:
    """Counts per entity, lifetime revenue and the latest transactions."""
    return await service.activity_summary()
