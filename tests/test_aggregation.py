"""Tests for the named join, the chart builders and the aggregation views."""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.models.records import Expense, Goal, Income
from finance_tracker.queries import (
    AggregationError,
    DashboardAggregator,
    ReportAggregator,
    bar_chart,
    gather_named,
    line_chart,
    pie_chart,
)
from finance_tracker.queries.charts import EXPENSE_COLOR, INCOME_COLOR, PLACEHOLDER_COLOR
from finance_tracker.queries.dashboard import average_goal_progress, category_totals
from finance_tracker.queries.reports import category_variance
from finance_tracker.services import (
    BudgetService,
    ExpenseService,
    GoalService,
    IncomeService,
)


def dashboard_for(client, window=6):
    return DashboardAggregator(
        ExpenseService(client),
        IncomeService(client),
        BudgetService(client),
        GoalService(client),
        trailing_window=window,
    )


def report_for(client):
    return ReportAggregator(
        ExpenseService(client),
        IncomeService(client),
        BudgetService(client),
    )


def goal(target, current):
    return Goal(user_id=1, title="Goal", target_amount=Decimal(target),
                current_amount=Decimal(current), target_date=date(2025, 1, 1))


class TestGatherNamed:
    """Tests for the all-or-nothing join."""

    def test_returns_every_result(self):
        async def value(v):
            await asyncio.sleep(0)
            return v

        results = asyncio.run(gather_named(a=value(1), b=value("two")))
        assert results == {"a": 1, "b": "two"}

    def test_empty_join(self):
        assert asyncio.run(gather_named()) == {}

    def test_failure_names_branch_and_cancels_others(self):
        cancelled = []

        async def slow():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.append("slow")
                raise

        async def failing():
            await asyncio.sleep(0)
            raise ValueError("bad row")

        with pytest.raises(AggregationError) as exc_info:
            asyncio.run(gather_named(slow=slow(), broken=failing()))

        assert exc_info.value.branch == "broken"
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert "bad row" in str(exc_info.value)
        assert cancelled == ["slow"]


class TestChartBuilders:
    """Tests for chart data shapes."""

    def test_pie_placeholder(self):
        chart = pie_chart("Expenses by Category", {})
        assert chart.is_placeholder
        assert chart.datasets[0].data == [1.0]
        assert chart.datasets[0].colors == [PLACEHOLDER_COLOR]

    def test_pie_keeps_order(self):
        chart = pie_chart("Expenses by Category", {"Housing": Decimal("1200"), "Food": 350})
        assert chart.labels == ["Housing", "Food"]
        assert chart.datasets[0].data == [1200.0, 350.0]

    def test_bar_one_dataset_per_series(self):
        chart = bar_chart(
            "Income vs Expenses (This Month)",
            "This Month",
            {"Income": 5000, "Expenses": 350},
            colors={"Income": INCOME_COLOR, "Expenses": EXPENSE_COLOR},
        )
        assert chart.labels == ["This Month"]
        assert [d.label for d in chart.datasets] == ["Income", "Expenses"]
        assert chart.datasets[1].colors == [EXPENSE_COLOR]

    def test_line_placeholder(self):
        chart = line_chart("Savings Progress Over Time", "Savings", [])
        assert chart.labels == ["No Data"]
        assert chart.datasets[0].data == [0.0]


class TestDashboardHelpers:
    """Tests for the dashboard figure helpers."""

    def test_category_totals_first_seen_order(self):
        expenses = [
            Expense(user_id=1, amount=Decimal(a), category=c, description="", date=date(2024, 1, 1))
            for a, c in [("10", "Food"), ("5", "Housing"), ("2.50", "Food")]
        ]
        assert category_totals(expenses) == {"Food": Decimal("12.50"), "Housing": Decimal("5")}

    def test_goal_progress_is_not_capped(self):
        assert average_goal_progress([goal("100", "150"), goal("100", "50")]) == pytest.approx(100.0)

    def test_goal_progress_zero_target(self):
        assert average_goal_progress([goal("0", "10"), goal("100", "50")]) == pytest.approx(25.0)
        assert average_goal_progress([]) == 0.0


class TestDashboardAggregator:
    """Tests for the dashboard view."""

    def test_current_month_example(self, empty_client):
        """Two food expenses and a salary in March 2024."""
        expenses = ExpenseService(empty_client)
        incomes = IncomeService(empty_client)

        async def seed():
            for amount, day in (("150", 3), ("200", 12)):
                await expenses.create_expense(Expense(
                    user_id=1, amount=Decimal(amount), category="Food",
                    description="Groceries", date=date(2024, 3, day),
                ))
            await incomes.create_income(Income(
                user_id=1, amount=Decimal("5000"), source="Salary", date=date(2024, 3, 1),
            ))

        asyncio.run(seed())
        summary = asyncio.run(dashboard_for(empty_client).build(1, today=date(2024, 3, 15)))

        assert summary.total_expenses == Decimal("350")
        assert summary.total_income == Decimal("5000")
        assert summary.savings == Decimal("4650")
        assert summary.category_totals == {"Food": Decimal("350")}
        assert summary.expenses_by_category.as_mapping() == {"Food": 350.0}
        assert summary.budget is None
        assert summary.total_goals == 0
        assert summary.goals_progress == 0.0

        line = summary.savings_over_time
        assert line.labels == [
            "Oct 2023", "Nov 2023", "Dec 2023", "Jan 2024", "Feb 2024", "Mar 2024",
        ]
        assert line.datasets[0].data == [0.0, 0.0, 0.0, 0.0, 0.0, 4650.0]

        bar = summary.income_vs_expenses
        assert [d.data for d in bar.datasets] == [[5000.0], [350.0]]

    def test_seeded_january(self, client):
        summary = asyncio.run(dashboard_for(client).build(1, today=date(2024, 1, 31)))
        assert summary.total_expenses == Decimal("1730")
        assert summary.total_income == Decimal("5500")
        assert summary.savings == Decimal("3770")
        assert summary.budget.id == 1
        assert summary.total_goals == 2
        assert summary.goals_progress == pytest.approx(24.5)
        assert list(summary.category_totals) == ["Housing", "Food", "Transportation", "Entertainment"]

    def test_empty_month_uses_placeholders(self, client):
        summary = asyncio.run(dashboard_for(client, window=3).build(1, today=date(2024, 5, 1)))
        assert summary.total_expenses == Decimal("0")
        assert summary.expenses_by_category.is_placeholder
        assert summary.savings_over_time.labels == ["Mar 2024", "Apr 2024", "May 2024"]

    def test_transport_failure_is_empty_dashboard(self, broken_client):
        summary = asyncio.run(dashboard_for(broken_client).build(1, today=date(2024, 1, 31)))
        assert summary.total_income == Decimal("0")
        assert summary.total_goals == 0

    def test_corrupt_branch_fails_whole_dashboard(self, client, seeded_db):
        seeded_db.goals.insert({"userId": 1, "title": "Broken"})
        with pytest.raises(AggregationError) as exc_info:
            asyncio.run(dashboard_for(client).build(1, today=date(2024, 1, 31)))
        assert exc_info.value.branch == "goals"


class TestReportAggregator:
    """Tests for the variance report."""

    def test_seeded_january_report(self, client):
        report = asyncio.run(report_for(client).generate(1, date(2024, 1, 1), date(2024, 1, 31)))
        assert report.total_income == Decimal("5500")
        assert report.total_expenses == Decimal("1730")
        assert report.net_savings == Decimal("3770")
        assert [row.category for row in report.categories] == [
            "Housing", "Food", "Entertainment", "Transportation", "Utilities", "Savings",
        ]

        food = report.categories[1]
        assert food.budgeted == Decimal("400")
        assert food.spent == Decimal("350")
        assert food.variance == Decimal("50")
        assert food.percentage == pytest.approx(87.5)
        assert food.status == "positive"

        housing = report.categories[0]
        assert housing.variance == Decimal("0")
        assert housing.status == "neutral"
        assert report.over_budget == []

    def test_range_is_inclusive(self, client):
        report = asyncio.run(report_for(client).generate(1, date(2024, 1, 10), date(2024, 1, 20)))
        assert report.total_expenses == Decimal("430")
        assert report.total_income == Decimal("500")

    def test_budget_taken_from_start_month(self, client):
        report = asyncio.run(report_for(client).generate(1, date(2023, 12, 1), date(2024, 1, 31)))
        assert report.budget is None
        assert report.total_expenses == Decimal("1730")
        assert all(row.budgeted == Decimal("0") for row in report.categories)
        assert all(row.percentage == 0.0 for row in report.categories)

    def test_corrupt_branch_fails_report(self, client, seeded_db):
        seeded_db.incomes.insert({"userId": 1, "amount": "oops"})
        with pytest.raises(AggregationError) as exc_info:
            asyncio.run(report_for(client).generate(1, date(2024, 1, 1), date(2024, 1, 31)))
        assert exc_info.value.branch == "incomes"

    def test_unbudgeted_spend_is_over_budget(self):
        expenses = [
            Expense(user_id=1, amount=Decimal("40"), category="Gifts",
                    description="", date=date(2024, 1, 2)),
        ]
        rows = category_variance(expenses, None)
        assert len(rows) == 1
        assert rows[0].variance == Decimal("-40")
        assert rows[0].status == "negative"
