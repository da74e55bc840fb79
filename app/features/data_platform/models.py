"""Data platform ORM models for the dairy ledger.

Reference entities: Supplier, Customer, Product.
Transactions: MilkPurchase (liters bought from a supplier), Sale (product sold
to a customer).

Grain: one row per recorded transaction. Dates are calendar days.
"""

import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.shared.models import TimestampMixin

# ============================================================================
# REFERENCE TABLES
# ============================================================================


class Supplier(TimestampMixin, Base):
    """Milk supplier.

    Attributes:
        id: Primary key.
        name: Supplier display name.
        phone: Contact phone number.
    """

    __tablename__ = "supplier"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    purchases: Mapped[list["MilkPurchase"]] = relationship(back_populates="supplier")


class Customer(TimestampMixin, Base):
    """Customer buying dairy products.

    Attributes:
        id: Primary key.
        name: Customer display name.
        type: Customer category tag (e.g., "Retail", "Wholesale").
    """

    __tablename__ = "customer"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    sales: Mapped[list["Sale"]] = relationship(back_populates="customer")


class Product(TimestampMixin, Base):
    """Product sold to customers.

    The unit tag is free-form; "Liter", "litr", "kg", "Kilogram" are the
    recognized spellings, anything else counts as plain units.

    Attributes:
        id: Primary key.
        name: Product display name.
        unit: Unit of measure tag.
    """

    __tablename__ = "product"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    unit: Mapped[str | None] = mapped_column(String(30), nullable=True)

    sales: Mapped[list["Sale"]] = relationship(back_populates="product")


# ============================================================================
# TRANSACTION TABLES
# ============================================================================


class MilkPurchase(TimestampMixin, Base):
    """Raw milk bought from a supplier.

    Attributes:
        id: Primary key.
        supplier_id: Supplier (FK).
        date: Purchase date.
        quantity_liters: Liters bought.
        price_per_liter: Agreed price per liter.
        total: Amount paid.
    """

    __tablename__ = "milk_purchase"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    supplier_id: Mapped[int] = mapped_column(Integer, ForeignKey("supplier.id"), index=True)
    date: Mapped[datetime.date] = mapped_column(Date, index=True)
    quantity_liters: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    price_per_liter: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    total: Mapped[Decimal] = mapped_column(Numeric(14, 2))

    supplier: Mapped["Supplier"] = relationship(back_populates="purchases")

    __table_args__ = (
        Index("ix_milk_purchase_date_supplier", "date", "supplier_id"),
        CheckConstraint("quantity_liters >= 0", name="ck_milk_purchase_quantity_positive"),
        CheckConstraint("total >= 0", name="ck_milk_purchase_total_positive"),
    )


class Sale(TimestampMixin, Base):
    """Product sold to a customer.

    Quantity is expressed in the product's own unit.

    Attributes:
        id: Primary key.
        customer_id: Customer (FK).
        product_id: Product (FK).
        date: Sale date.
        quantity: Amount sold in the product's unit.
        price_per_unit: Price per unit at time of sale.
        total: Amount charged.
    """

    __tablename__ = "sale"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(Integer, ForeignKey("customer.id"), index=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("product.id"), index=True)
    date: Mapped[datetime.date] = mapped_column(Date, index=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    total: Mapped[Decimal] = mapped_column(Numeric(14, 2))

    customer: Mapped["Customer"] = relationship(back_populates="sales")
    product: Mapped["Product"] = relationship(back_populates="sales")

    __table_args__ = (
        Index("ix_sale_date_customer", "date", "customer_id"),
        Index("ix_sale_date_product", "date", "product_id"),
        CheckConstraint("quantity >= 0", name="ck_sale_quantity_positive"),
        CheckConstraint("total >= 0", name="ck_sale_total_positive"),
    )
