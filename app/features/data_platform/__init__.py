"""Data platform feature for the dairy ledger.

Provides the ORM models for suppliers, customers, products, milk purchases
and sales, plus the ``DataStore`` access layer the reports are built on.
"""

from app.features.data_platform.models import (
    Customer,
    MilkPurchase,
    Product,
    Sale,
    Supplier,
)
from app.features.data_platform.store import (
    DataStore,
    Entity,
    GroupRow,
    SqlAlchemyDataStore,
    get_data_store,
)

__all__ = [
    "Customer",
    "DataStore",
    "Entity",
    "GroupRow",
    "MilkPurchase",
    "Product",
    "Sale",
    "SqlAlchemyDataStore",
    "Supplier",
    "get_data_store",
]
