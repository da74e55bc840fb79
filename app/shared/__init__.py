"""Shared utilities used across features."""

from app.shared.models import TimestampMixin
from app.shared.schemas import Amount, CamelModel
from app.shared.utils import ZERO, safe_ratio

__all__ = [
    "ZERO",
    "Amount",
    "CamelModel",
    "TimestampMixin",
    "safe_ratio",
]
