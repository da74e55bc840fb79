"""Shared utility functions."""

from decimal import Decimal

ZERO = Decimal("0")


def safe_ratio(numerator: Decimal, denominator: Decimal, places: int = 2) -> Decimal:
    """Divide two sums, yielding 0 instead of NaN or Infinity.

    Args:
        numerator: Dividend (e.g. a money total).
        denominator: Divisor (e.g. a quantity total).
        places: Decimal places to round the result to.

    Returns:
        Rounded quotient, or 0 when the divisor is 0.
    """
    if denominator == 0:
        return ZERO
    return round(numerator / denominator, places)
