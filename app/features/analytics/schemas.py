"""Pydantic schemas for dashboard endpoints.

Attributes are snake_case in Python and camelCase on the wire. Money is in
the local currency; quantities are liters for purchases and the product's
own unit for sales.
"""

import datetime

from pydantic import Field

from app.shared.schemas import Amount, CamelModel

# =============================================================================
# Shared blocks
# =============================================================================


class DateRangeEcho(CamelModel):
    """Resolved reporting period, echoed back as calendar dates."""

    from_: datetime.date = Field(
        ...,
        alias="from",
        description="First day of the analysis period (inclusive).",
    )
    to: datetime.date = Field(
        ...,
        description="Last day of the analysis period (inclusive).",
    )


class ReportSummary(CamelModel):
    """Headline totals for a period."""

    total_milk_purchased: Amount = Field(..., description="Liters of milk purchased.")
    total_milk_sold: Amount = Field(
        ...,
        description="Sum of sale quantities across all product units.",
    )
    total_purchase_cost: Amount = Field(..., description="Money paid to suppliers.")
    total_sales_revenue: Amount = Field(..., description="Money received from customers.")
    gross_profit: Amount = Field(
        ...,
        description="Sales revenue minus purchase cost for the same period.",
    )


# =============================================================================
# Time series
# =============================================================================


class PurchasePoint(CamelModel):
    """Liters purchased on one day."""

    date: datetime.date
    total_liters: Amount


class SalesPoint(CamelModel):
    """Sale quantities on one day, split by unit kind."""

    date: datetime.date
    total_liters: Amount = Field(..., description="Quantity of liter-measured products sold.")
    total_kg: Amount = Field(..., description="Quantity of kilogram-measured products sold.")
    total_units: Amount = Field(..., description="Quantity of all other products sold.")
    total_quantity: Amount = Field(
        ...,
        description="Liters + kilograms + units, for chart display only. "
        "Mixes units and is not a physical quantity.",
    )


class MonthlyTrend(CamelModel):
    """Activity for one calendar month."""

    month: str = Field(..., description="Month key in YYYY-MM format.")
    purchases: Amount = Field(..., description="Liters purchased in the month.")
    sales: Amount = Field(..., description="Sale quantity in the month.")
    purchase_cost: Amount
    sales_revenue: Amount
    profit: Amount = Field(..., description="Sales revenue minus purchase cost.")


# =============================================================================
# Breakdowns
# =============================================================================


class SupplierBreakdownItem(CamelModel):
    """Purchases from one supplier."""

    supplier_id: int | None
    supplier_name: str
    total_liters_supplied: Amount
    total_cost: Amount


class SupplierLifetimeItem(SupplierBreakdownItem):
    """All-time purchases from one supplier."""

    total_transactions: int = Field(..., ge=0)
    average_price_per_liter: Amount = Field(
        ...,
        description="total_cost / total_liters_supplied, 0 when no liters.",
    )


class CustomerBreakdownItem(CamelModel):
    """Sales to one customer."""

    customer_id: int | None
    customer_name: str
    total_liters_bought: Amount
    total_revenue: Amount


class CustomerLifetimeItem(CustomerBreakdownItem):
    """All-time sales to one customer."""

    total_transactions: int = Field(..., ge=0)
    average_price_per_liter: Amount = Field(
        ...,
        description="total_revenue / total_liters_bought, 0 when no quantity.",
    )


class ProductBreakdownItem(CamelModel):
    """Sales of one product."""

    product_id: int | None
    product_name: str
    unit: str = Field(..., description="Product unit tag, or 'Unknown Unit'.")
    units_sold: Amount
    total_revenue: Amount


class ProductLifetimeItem(ProductBreakdownItem):
    """All-time sales of one product."""

    total_transactions: int = Field(..., ge=0)
    average_price_per_unit: Amount = Field(
        ...,
        description="total_revenue / units_sold, 0 when nothing sold.",
    )


# =============================================================================
# Reports
# =============================================================================


class RangeReport(CamelModel):
    """Dashboard analytics for a date range."""

    date_range: DateRangeEcho
    summary: ReportSummary
    purchases_over_time: list[PurchasePoint]
    sales_over_time: list[SalesPoint]
    supplier_breakdown: list[SupplierBreakdownItem]
    customer_breakdown: list[CustomerBreakdownItem]
    product_breakdown: list[ProductBreakdownItem]


class AllTimeReport(CamelModel):
    """Lifetime analytics plus the trailing monthly trend."""

    summary: ReportSummary
    supplier_breakdown: list[SupplierLifetimeItem]
    customer_breakdown: list[CustomerLifetimeItem]
    product_breakdown: list[ProductLifetimeItem]
    monthly_trends: list[MonthlyTrend]


# =============================================================================
# Activity summary
# =============================================================================


class RecentPurchase(CamelModel):
    """A recent milk purchase with its supplier's name."""

    id: int
    supplier_id: int | None
    supplier_name: str
    date: datetime.date
    quantity_liters: Amount
    price_per_liter: Amount
    total: Amount


class RecentSale(CamelModel):
    """A recent sale with customer and product names."""

    id: int
    customer_id: int | None
    customer_name: str
    product_id: int | None
    product_name: str
    unit: str
    date: datetime.date
    quantity: Amount
    price_per_unit: Amount
    total: Amount


class ActivitySummary(CamelModel):
    """Record counts, lifetime headline totals and latest transactions."""

    suppliers: int = Field(..., ge=0)
    customers: int = Field(..., ge=0)
    products: int = Field(..., ge=0)
    milk_purchases: int = Field(..., ge=0)
    sales: int = Field(..., ge=0)
    total_revenue: Amount
    total_milk_purchased: Amount
    recent_milk_purchases: list[RecentPurchase]
    recent_sales: list[RecentSale]
