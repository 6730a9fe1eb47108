"""Form validation."""

from finance_tracker.validation.forms import FormValidator, parse_amount, parse_date

__all__ = ["FormValidator", "parse_amount", "parse_date"]
