"""Unit-of-measure classification for sold products."""

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any


class UnitKind(str, Enum):
    """Closed set of quantity kinds a sale can be measured in."""

    LITERS = "liters"
    KILOGRAMS = "kilograms"
    OTHER = "other"


_UNIT_ALIASES: dict[str, UnitKind] = {
    "liter": UnitKind.LITERS,
    "litr": UnitKind.LITERS,
    "kg": UnitKind.KILOGRAMS,
    "kilogram": UnitKind.KILOGRAMS,
}


def classify_unit(tag: str | None) -> UnitKind:
    """Map a free-form unit tag to its kind, case-insensitively."""
    if not tag:
        return UnitKind.OTHER
    return _UNIT_ALIASES.get(tag.strip().lower(), UnitKind.OTHER)


def unit_kinds_by_product(products: Iterable[Mapping[str, Any]]) -> dict[int, UnitKind]:
    """Classify each product's unit once, keyed by product id.

    Products missing from the result are treated as ``UnitKind.OTHER``
    by callers.
    """
    return {row["id"]: classify_unit(row.get("unit")) for row in products}
