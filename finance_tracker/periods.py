"""Calendar-month helpers shared by the services and the aggregation views."""

from datetime import date, datetime
from typing import Union


DateLike = Union[date, datetime]


def in_month(value: DateLike, month: int, year: int) -> bool:
    """True if the date falls in the given calendar month."""
    return value.month == month and value.year == year


def in_range(value: DateLike, start: date, end: date) -> bool:
    """Inclusive on both ends. Datetimes are compared by their date."""
    if isinstance(value, datetime):
        value = value.date()
    return start <= value <= end


def shift_month(month: int, year: int, offset: int) -> tuple[int, int]:
    """Move (month, year) by offset months, negative to go back."""
    index = year * 12 + (month - 1) + offset
    return index % 12 + 1, index // 12


def trailing_months(month: int, year: int, count: int) -> list[tuple[int, int]]:
    """The `count` months ending with (month, year), oldest first."""
    return [shift_month(month, year, -offset) for offset in range(count - 1, -1, -1)]


def month_label(month: int, year: int) -> str:
    """Short label like 'Jan 2024'."""
    return date(year, month, 1).strftime("%b %Y")


def first_of_month(value: date) -> date:
    return value.replace(day=1)
