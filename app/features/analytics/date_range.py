"""Date range resolution for dashboard reports.

Query parameters arrive as ``YYYY-MM-DD`` strings. A resolved range covers
whole calendar days: ``start`` is midnight of the first day and ``end`` is
the last millisecond of the final day.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, time

from app.core.exceptions import InvalidDateFormatError, InvalidDateRangeError

END_OF_DAY = time(23, 59, 59, 999000)

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class DateRange:
    """Inclusive span of local instants with ``start <= end``."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidDateRangeError()

    @classmethod
    def for_days(cls, first: date, last: date) -> "DateRange":
        """Build a range covering ``first`` through the whole of ``last``."""
        return cls(
            start=datetime.combine(first, time.min),
            end=datetime.combine(last, END_OF_DAY),
        )

    @property
    def start_date(self) -> date:
        return self.start.date()

    @property
    def end_date(self) -> date:
        return self.end.date()


def parse_calendar_date(value: str, parameter: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` calendar date.

    Impossible dates such as ``2024-02-30`` are rejected rather than rolled
    over into the next month.

    Args:
        value: Raw query parameter value.
        parameter: Name of the query parameter, reported on failure.

    Returns:
        Parsed date.

    Raises:
        InvalidDateFormatError: If the value is not a real calendar date.
    """
    candidate = value.strip()
    if not _DATE_PATTERN.match(candidate):
        raise InvalidDateFormatError(parameter=parameter, value=value)
    try:
        return datetime.strptime(candidate, "%Y-%m-%d").date()
    except ValueError as e:
        raise InvalidDateFormatError(parameter=parameter, value=value) from e


def month_bounds(day: date) -> tuple[date, date]:
    """Return the first and last calendar day of ``day``'s month."""
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last_day)


def shift_month(day: date, months: int) -> date:
    """Return the first day of the month ``months`` away from ``day``'s month."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_key(day: date) -> str:
    """Format a day's month as ``YYYY-MM``."""
    return f"{day.year:04d}-{day.month:02d}"


def resolve_range(
    from_param: str | None,
    to_param: str | None,
    today: date | None = None,
) -> DateRange:
    """Resolve optional ``from``/``to`` parameters into a date range.

    With neither parameter the range is the current calendar month. A single
    missing bound falls back to the matching bound of the current month.

    Args:
        from_param: Start date string (inclusive), or None/blank.
        to_param: End date string (inclusive), or None/blank.
        today: Reference day for defaults (wall clock when omitted).

    Returns:
        Resolved inclusive range.

    Raises:
        InvalidDateFormatError: If a supplied value is not a calendar date.
        InvalidDateRangeError: If the start falls after the end.
    """
    reference = today or datetime.now().date()
    month_start, month_end = month_bounds(reference)

    first = parse_calendar_date(from_param, "from") if from_param and from_param.strip() else None
    last = parse_calendar_date(to_param, "to") if to_param and to_param.strip() else None

    first = first or month_start
    last = last or month_end
    if first > last:
        raise InvalidDateRangeError(
            f"Start date {first.isoformat()} is after end date {last.isoformat()}"
        )
    return DateRange.for_days(first, last)


def trailing_months(months: int, today: date | None = None) -> tuple[DateRange, list[str]]:
    """Window covering the current month and the ``months - 1`` before it.

    Args:
        months: Number of calendar months in the window.
        today: Reference day (wall clock when omitted).

    Returns:
        The covering date range and its month keys in ascending order.
    """
    reference = today or datetime.now().date()
    first = shift_month(reference, -(months - 1))
    _, last = month_bounds(reference)
    keys = [month_key(shift_month(first, offset)) for offset in range(months)]
    return DateRange.for_days(first, last), keys
