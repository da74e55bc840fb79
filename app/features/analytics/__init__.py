"""Dashboard analytics: summaries, daily series, breakdowns and trends.

Reports are computed by the aggregation engine, labeled and shaped by the
report assembler and orchestrated by ``DashboardService``.
"""

from app.features.analytics.routes import router
from app.features.analytics.schemas import (
    ActivitySummary,
    AllTimeReport,
    RangeReport,
)
from app.features.analytics.service import DashboardService

__all__ = [
    "ActivitySummary",
    "AllTimeReport",
    "DashboardService",
    "RangeReport",
    "router",
]
