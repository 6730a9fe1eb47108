"""Display formatting for amounts, dates and months."""

import math
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Union

from finance_tracker.models.records import MONTH_NAMES, BudgetCategory


CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "INR": "₹",
    "JPY": "¥",
}

Amount = Union[Decimal, float, int]


def format_currency(value: Optional[Amount], currency: str = "USD") -> str:
    """
    Format an amount like '$1,234.56' or '-$12.00'.

    None and NaN render as '$0.00', whatever the currency.
    Unknown currency codes are used as the prefix ('CAD 10.00').
    """
    if value is None:
        return "$0.00"
    if isinstance(value, float) and math.isnan(value):
        return "$0.00"
    if isinstance(value, Decimal) and value.is_nan():
        return "$0.00"

    amount = Decimal(str(value))
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), f"{currency.upper()} ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_date(value: Optional[Union[date, datetime]]) -> str:
    """Medium date like 'Jan 15, 2024'. None renders empty."""
    if value is None:
        return ""
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"


def month_name(month: int) -> str:
    """Full month name for 1-12, else empty string."""
    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return ""


def total_budgeted(categories: Iterable[BudgetCategory]) -> Decimal:
    return sum((cat.limit for cat in categories), Decimal("0"))
