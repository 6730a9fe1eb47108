"""
Aggregation View Models

Chart-ready series and summary figures for the dashboard and the
budget variance report. Nothing here is persisted; every view entry
recomputes them from scratch.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from finance_tracker.models.records import Budget


NO_DATA_LABEL = "No Data"


def variance_status(variance) -> str:
    """'positive' when under budget, 'negative' when over, else 'neutral'."""
    if variance > 0:
        return "positive"
    if variance < 0:
        return "negative"
    return "neutral"


class ChartSeries(BaseModel):
    """One dataset of a chart."""

    label: Optional[str] = None
    data: list[float] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)


class ChartData(BaseModel):
    """Labels plus one or more datasets, ready for a charting library."""

    title: str
    labels: list[str] = Field(default_factory=list)
    datasets: list[ChartSeries] = Field(default_factory=list)

    @property
    def is_placeholder(self) -> bool:
        return self.labels == [NO_DATA_LABEL]

    def as_mapping(self, dataset: int = 0) -> dict[str, float]:
        """Pair labels with one dataset's values."""
        if not self.datasets:
            return {}
        return dict(zip(self.labels, self.datasets[dataset].data))


class DashboardSummary(BaseModel):
    """Summary figures and charts for the current month."""

    user_id: int
    month: int = Field(..., ge=1, le=12)
    year: int

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    savings: Decimal = Field(
        default=Decimal("0"),
        description="Income minus expenses; may be negative"
    )
    total_goals: int = 0
    goals_progress: float = Field(
        default=0.0,
        description="Average goal progress, in percent"
    )
    budget: Optional[Budget] = None

    category_totals: dict[str, Decimal] = Field(default_factory=dict)
    expenses_by_category: ChartData
    income_vs_expenses: ChartData
    savings_over_time: ChartData


class CategoryReport(BaseModel):
    """One row of the budget variance table."""

    category: str
    budgeted: Decimal = Decimal("0")
    spent: Decimal = Decimal("0")
    variance: Decimal = Field(
        default=Decimal("0"),
        description="budgeted - spent; negative means overspent"
    )
    percentage: float = Field(
        default=0.0,
        description="spent / budgeted * 100, or 0 when nothing was budgeted"
    )

    @property
    def status(self) -> str:
        return variance_status(self.variance)


class FinancialReport(BaseModel):
    """Totals and category variance for a date range."""

    user_id: int
    start_date: date
    end_date: date

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net_savings: Decimal = Decimal("0")
    budget: Optional[Budget] = None
    categories: list[CategoryReport] = Field(default_factory=list)

    @property
    def over_budget(self) -> list[CategoryReport]:
        return [row for row in self.categories if row.variance < 0]
