"""
Core Data Models for Finance Tracker

These models define the five record shapes stored by the mock backend:
User, Expense, Income, Budget and Goal.

DESIGN DECISION: Python attributes are snake_case, but the wire shape is
camelCase (userId, isRecurring, targetAmount...). Records cross a textual
transport, so every model must be able to rebuild itself, dates included,
from the JSON the router hands back.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pydantic_core import to_jsonable_python


# =============================================================================
# CONSTANTS - Predefined choices offered by the forms
# =============================================================================

EXPENSE_CATEGORIES = [
    "Housing",
    "Food",
    "Transportation",
    "Entertainment",
    "Utilities",
    "Healthcare",
    "Shopping",
    "Education",
    "Other",
]

BUDGET_CATEGORIES = [
    "Housing",
    "Food",
    "Transportation",
    "Entertainment",
    "Utilities",
    "Healthcare",
    "Shopping",
    "Education",
    "Savings",
    "Other",
]

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


class RecurringFrequency(str, Enum):
    """How often a recurring expense repeats."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# =============================================================================
# BASE
# =============================================================================

class Record(BaseModel):
    """
    Base for every stored record.

    The id is None until the store assigns one on create.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: Optional[int] = Field(
        default=None,
        description="Process-local identifier, unique per collection"
    )

    def to_wire(self, include_id: bool = True) -> dict[str, Any]:
        """Convert to the camelCase, JSON-safe shape stored by the router."""
        exclude = None if include_id else {"id"}
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude=exclude,
        )

    @classmethod
    def wire_changes(cls, changes: dict[str, Any]) -> dict[str, Any]:
        """
        Convert a partial update keyed by Python field names to wire form.

        Keys that are already aliases pass through untouched.
        """
        wire = {}
        for name, value in changes.items():
            field = cls.model_fields.get(name)
            key = field.alias if field is not None and field.alias else name
            wire[key] = to_jsonable_python(value)
        return wire


class OwnedRecord(Record):
    """A record that belongs to a user."""

    user_id: int = Field(
        ...,
        ge=1,
        description="Owning user"
    )


# =============================================================================
# ENTITIES
# =============================================================================

class User(Record):
    """
    A user account.

    NOTE: The password is stored and compared in plain text.
    """

    email: str = Field(
        ...,
        min_length=1,
        max_length=254,
    )
    password: str
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def matches_email(self, email: str) -> bool:
        """Case-insensitive, whitespace-trimmed email comparison."""
        return self.email.strip().lower() == email.strip().lower()


class Expense(OwnedRecord):
    """A single expense. Frequency only means something when recurring."""

    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
    )
    category: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., max_length=200)
    date: date
    is_recurring: bool = False
    recurring_frequency: Optional[RecurringFrequency] = None


class Income(OwnedRecord):
    """A single income entry."""

    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
    )
    source: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=200)
    date: date


class BudgetCategory(BaseModel):
    """One category line inside a monthly budget."""
    model_config = ConfigDict(str_strip_whitespace=True)

    category: str = Field(..., min_length=1, max_length=50)
    limit: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Maximum amount allocated for this category"
    )


class Budget(OwnedRecord):
    """
    A monthly budget with per-category limits.

    At most one budget per (user, month, year) is expected.
    The store does not enforce it.
    """

    month: int = Field(..., ge=1, le=12)
    year: int
    total_income: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Expected income for this month"
    )
    categories: list[BudgetCategory] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def total_budgeted(self) -> Decimal:
        """Sum of all category limits."""
        return sum((cat.limit for cat in self.categories), Decimal("0"))

    def limit_for(self, category: str) -> Optional[Decimal]:
        for cat in self.categories:
            if cat.category == category:
                return cat.limit
        return None


class Goal(OwnedRecord):
    """A savings goal."""

    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    target_amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
    )
    current_amount: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        decimal_places=2,
    )
    target_date: date
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def progress_percent(self) -> float:
        """Progress towards the target, capped at 100. Zero target gives 0."""
        if self.target_amount == 0:
            return 0.0
        return min(100.0, float(self.current_amount / self.target_amount * 100))

    @property
    def is_completed(self) -> bool:
        return self.current_amount >= self.target_amount

    @property
    def remaining_amount(self) -> Decimal:
        return max(Decimal("0"), self.target_amount - self.current_amount)
