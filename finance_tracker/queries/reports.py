"""
Report Aggregation

Income, expenses and budget variance over a date range.

DESIGN DECISION: The budget compared against is the one for the month
containing the start date, even when the range spans several months.
Categories that were spent in but not budgeted still appear, with a
budget of zero.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

import structlog

from finance_tracker.models.records import Budget, Expense, Income
from finance_tracker.models.reports import CategoryReport, FinancialReport, variance_status
from finance_tracker.periods import first_of_month, in_range
from finance_tracker.queries.dashboard import total_amount
from finance_tracker.queries.join import gather_named
from finance_tracker.services.budgets import BudgetService
from finance_tracker.services.expenses import ExpenseService
from finance_tracker.services.incomes import IncomeService


logger = structlog.get_logger(__name__)


def category_variance(
    expenses: list[Expense],
    budget: Optional[Budget],
) -> list[CategoryReport]:
    """One row per budgeted or spent category, highest spend first."""
    budgeted: dict[str, Decimal] = {}
    spent: dict[str, Decimal] = {}

    if budget is not None:
        for cat in budget.categories:
            budgeted[cat.category] = cat.limit
            spent[cat.category] = Decimal("0")

    for expense in expenses:
        budgeted.setdefault(expense.category, Decimal("0"))
        spent[expense.category] = spent.get(expense.category, Decimal("0")) + expense.amount

    rows = []
    for category, limit in budgeted.items():
        amount = spent[category]
        rows.append(
            CategoryReport(
                category=category,
                budgeted=limit,
                spent=amount,
                variance=limit - amount,
                percentage=float(amount / limit * 100) if limit > 0 else 0.0,
            )
        )

    # stable: ties keep budget order
    rows.sort(key=lambda row: row.spent, reverse=True)
    return rows


class ReportAggregator:
    """Builds a FinancialReport for one user and date range."""

    def __init__(
        self,
        expenses: ExpenseService,
        incomes: IncomeService,
        budgets: BudgetService,
    ):
        self._expenses = expenses
        self._incomes = incomes
        self._budgets = budgets

    async def generate(
        self,
        user_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> FinancialReport:
        """
        Build the report for start_date..end_date, both inclusive.

        Defaults to the first of the current month through today.

        Raises:
            AggregationError: if any of the three fetches failed
        """
        today = date.today()
        start_date = start_date or first_of_month(today)
        end_date = end_date or today

        results = await gather_named(
            expenses=self._expenses.get_expenses(user_id),
            incomes=self._incomes.get_incomes(user_id),
            budgets=self._budgets.get_budgets(user_id),
        )
        expenses = [e for e in results["expenses"] if in_range(e.date, start_date, end_date)]
        incomes: list[Income] = [
            i for i in results["incomes"] if in_range(i.date, start_date, end_date)
        ]
        budget = next(
            (
                b for b in results["budgets"]
                if b.month == start_date.month and b.year == start_date.year
            ),
            None,
        )

        total_income = total_amount(incomes)
        total_expenses = total_amount(expenses)

        report = FinancialReport(
            user_id=user_id,
            start_date=start_date,
            end_date=end_date,
            total_income=total_income,
            total_expenses=total_expenses,
            net_savings=total_income - total_expenses,
            budget=budget,
            categories=category_variance(expenses, budget),
        )

        logger.info(
            "report_generated",
            user_id=user_id,
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
            category_count=len(report.categories),
        )
        return report
