"""
Dashboard Aggregation

Combines expenses, incomes, budgets and goals into the figures and
charts shown on the dashboard.

DESIGN DECISION: The four lists are fetched through one named join.
If any fetch fails the whole dashboard fails; figures are never
computed from a partial set of lists.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

import structlog

from finance_tracker.models.records import Budget, Expense, Goal, Income
from finance_tracker.models.reports import DashboardSummary
from finance_tracker.periods import in_month, month_label, trailing_months
from finance_tracker.queries.charts import (
    EXPENSE_COLOR,
    INCOME_COLOR,
    bar_chart,
    line_chart,
    pie_chart,
)
from finance_tracker.queries.join import gather_named
from finance_tracker.services.budgets import BudgetService
from finance_tracker.services.expenses import ExpenseService
from finance_tracker.services.goals import GoalService
from finance_tracker.services.incomes import IncomeService


logger = structlog.get_logger(__name__)


def total_amount(records: Iterable) -> Decimal:
    return sum((r.amount for r in records), Decimal("0"))


def category_totals(expenses: Iterable[Expense]) -> dict[str, Decimal]:
    """Sum per category, keyed in first-seen order."""
    totals: dict[str, Decimal] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, Decimal("0")) + expense.amount
    return totals


def average_goal_progress(goals: list[Goal]) -> float:
    """
    Mean of current/target over all goals, in percent.

    Not capped: a goal past its target pulls the average above its share.
    Goals with a zero target count as 0.
    """
    if not goals:
        return 0.0
    ratios = [
        float(g.current_amount / g.target_amount) if g.target_amount else 0.0
        for g in goals
    ]
    return sum(ratios) / len(goals) * 100


class DashboardAggregator:
    """Builds a DashboardSummary for one user."""

    def __init__(
        self,
        expenses: ExpenseService,
        incomes: IncomeService,
        budgets: BudgetService,
        goals: GoalService,
        trailing_window: int = 6,
    ):
        self._expenses = expenses
        self._incomes = incomes
        self._budgets = budgets
        self._goals = goals
        self._window = trailing_window

    async def build(self, user_id: int, today: Optional[date] = None) -> DashboardSummary:
        """
        Raises:
            AggregationError: if any of the four fetches failed
        """
        today = today or date.today()
        month, year = today.month, today.year

        results = await gather_named(
            expenses=self._expenses.get_expenses(user_id),
            incomes=self._incomes.get_incomes(user_id),
            budgets=self._budgets.get_budgets(user_id),
            goals=self._goals.get_goals(user_id),
        )
        expenses: list[Expense] = results["expenses"]
        incomes: list[Income] = results["incomes"]
        budgets: list[Budget] = results["budgets"]
        goals: list[Goal] = results["goals"]

        month_expenses = [e for e in expenses if in_month(e.date, month, year)]
        month_incomes = [i for i in incomes if in_month(i.date, month, year)]

        total_expenses = total_amount(month_expenses)
        total_income = total_amount(month_incomes)
        by_category = category_totals(month_expenses)

        budget = next(
            (b for b in budgets if b.month == month and b.year == year),
            None,
        )

        summary = DashboardSummary(
            user_id=user_id,
            month=month,
            year=year,
            total_income=total_income,
            total_expenses=total_expenses,
            savings=total_income - total_expenses,
            total_goals=len(goals),
            goals_progress=average_goal_progress(goals),
            budget=budget,
            category_totals=by_category,
            expenses_by_category=pie_chart("Expenses by Category", by_category),
            income_vs_expenses=bar_chart(
                "Income vs Expenses (This Month)",
                "This Month",
                {"Income": total_income, "Expenses": total_expenses},
                colors={"Income": INCOME_COLOR, "Expenses": EXPENSE_COLOR},
            ),
            savings_over_time=line_chart(
                "Savings Progress Over Time",
                "Savings",
                self._savings_points(incomes, expenses, month, year),
            ),
        )

        logger.info(
            "dashboard_built",
            user_id=user_id,
            month=month,
            year=year,
            expense_count=len(month_expenses),
            income_count=len(month_incomes),
        )
        return summary

    def _savings_points(
        self,
        incomes: list[Income],
        expenses: list[Expense],
        month: int,
        year: int,
    ) -> list[tuple[str, Decimal]]:
        points = []
        for m, y in trailing_months(month, year, self._window):
            income = total_amount(i for i in incomes if in_month(i.date, m, y))
            spent = total_amount(e for e in expenses if in_month(e.date, m, y))
            points.append((month_label(m, y), income - spent))
        return points
