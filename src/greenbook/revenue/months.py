"""Calendar-month arithmetic on first-of-month dates."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date


def month_start(day: date) -> date:
    return day.replace(day=1)


def add_months(month: date, count: int) -> date:
    """Shift a first-of-month date by ``count`` calendar months."""
    index = month.year * 12 + (month.month - 1) + count
    return date(index // 12, index % 12 + 1, 1)


def next_month(month: date) -> date:
    return add_months(month_start(month), 1)


def months_between(first: date, last: date) -> int:
    """Number of calendar months from ``first`` through ``last`` inclusive (0 if last < first)."""
    span = (last.year - first.year) * 12 + (last.month - first.month) + 1
    return max(span, 0)


def iter_months(first: date, last: date) -> Iterator[date]:
    """Yield first-of-month dates from ``first``'s month through ``last``'s month."""
    current = month_start(first)
    stop = month_start(last)
    while current <= stop:
        yield current
        current = add_months(current, 1)
