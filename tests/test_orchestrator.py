"""
Tests for the UI-facing flows.

These run against a seeded in-memory database and an in-memory session,
the same wiring the app uses.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.audit import AuditLogger
from finance_tracker.models.audit import AuditEventType
from finance_tracker.models.records import RecurringFrequency
from finance_tracker.models.validation import ValidationResult
from finance_tracker.orchestrator import ExpenseFlow, GoalFlow, NotificationLevel, RecordFlow
from finance_tracker.services import ExpenseService, GoalService
from finance_tracker.validation import FormValidator


def audit_types(app):
    events = asyncio.run(app.audit_logger.storage.get_recent_events())
    return [event.event_type for event in events]


def sign_in(app):
    outcome = asyncio.run(app.auth_flow.login({"email": "demo@example.com", "password": "demo123"}))
    assert outcome.success
    return outcome.record


EXPENSE_FORM = {
    "amount": "45.90",
    "category": "Food",
    "description": "Farmers market",
    "date": "2024-02-03",
}


class TestAuthFlow:
    """Tests for sign-in, registration, logout and navigation."""

    def test_login_redirects_to_dashboard(self, app):
        outcome = asyncio.run(app.auth_flow.login({"email": "demo@example.com", "password": "demo123"}))
        assert outcome.success
        assert outcome.redirect_to == "/dashboard"
        assert outcome.notification.message == "Login successful!"
        assert outcome.notification.level == NotificationLevel.SUCCESS
        assert app.auth_flow.current_user.id == 1

    def test_login_returns_to_requested_page(self, app):
        outcome = asyncio.run(app.auth_flow.login(
            {"email": "demo@example.com", "password": "demo123"},
            return_url="/goals",
        ))
        assert outcome.redirect_to == "/goals"

    def test_bad_credentials(self, app):
        outcome = asyncio.run(app.auth_flow.login({"email": "demo@example.com", "password": "wrong1"}))
        assert not outcome.success
        assert outcome.notification.message == "Invalid email or password"
        assert outcome.notification.level == NotificationLevel.ERROR
        assert app.auth_flow.current_user is None

    def test_invalid_form_never_reaches_the_store(self, app):
        outcome = asyncio.run(app.auth_flow.login({"email": "demo", "password": ""}))
        assert not outcome.success
        assert outcome.notification is None
        assert not outcome.validation.is_valid
        assert audit_types(app) == []

    def test_register_redirects_to_login_with_email(self, app):
        outcome = asyncio.run(app.auth_flow.register({
            "first_name": "Grace",
            "last_name": "Hopper",
            "email": "grace@example.com",
            "password": "cobol60",
            "confirm_password": "cobol60",
        }))
        assert outcome.success
        assert outcome.redirect_to == "/login?email=grace%40example.com"
        assert outcome.notification.message == "Registration successful! Please log in to continue."
        assert app.session.get() is None

    def test_register_duplicate(self, app):
        outcome = asyncio.run(app.auth_flow.register({
            "first_name": "Demo",
            "last_name": "Again",
            "email": "demo@example.com",
            "password": "demo123",
            "confirm_password": "demo123",
        }))
        assert not outcome.success
        assert outcome.notification.message == "A user with this email already exists"

    def test_logout(self, app):
        sign_in(app)
        outcome = asyncio.run(app.auth_flow.logout())
        assert outcome.redirect_to == "/login"
        assert app.auth_flow.current_user is None

    def test_navigate_gates_and_audits(self, app):
        decision = asyncio.run(app.auth_flow.navigate("/expenses"))
        assert not decision.allowed
        assert decision.redirect_to == "/login?returnUrl=%2Fexpenses"
        assert audit_types(app) == [AuditEventType.ACCESS_DENIED]

        sign_in(app)
        assert asyncio.run(app.auth_flow.navigate("/expenses")).allowed

    def test_close_releases_subscription(self, app):
        before = app.session.subscriber_count
        app.auth_flow.close()
        app.auth_flow.close()
        assert app.session.subscriber_count == before - 1


class TestExpenseFlow:
    """Tests for the record flow, through expenses."""

    def test_load_sorted_newest_first(self, app):
        expenses, notification = asyncio.run(app.expense_flow.load(1))
        assert notification is None
        assert [e.id for e in expenses] == [5, 4, 3, 2, 1]

    def test_create(self, app):
        outcome = asyncio.run(app.expense_flow.save(1, EXPENSE_FORM))
        assert outcome.success
        assert outcome.notification.message == "Expense added successfully"
        assert outcome.record.id == 6
        assert outcome.record.amount == Decimal("45.90")
        assert outcome.record.recurring_frequency is None
        assert AuditEventType.RECORD_CREATED in audit_types(app)

    def test_recurring_defaults_to_monthly(self, app):
        outcome = asyncio.run(app.expense_flow.save(1, {**EXPENSE_FORM, "is_recurring": True}))
        assert outcome.record.recurring_frequency == RecurringFrequency.MONTHLY
        assert outcome.validation.warnings == ["Recurring expense has no frequency"]

    def test_warnings_become_notifications(self, app):
        """Test that warnings are queued after the success message."""
        outcome = asyncio.run(app.expense_flow.save(1, {**EXPENSE_FORM, "is_recurring": True}))
        notes = outcome.notifications()
        assert [note.level for note in notes] == [NotificationLevel.SUCCESS, NotificationLevel.WARNING]
        assert notes[1].message == "Recurring expense has no frequency"
        assert notes[1].duration_ms == app.settings.app.notification_duration_ms

    def test_update_clears_frequency(self, app):
        """Test that turning off recurrence removes the stored frequency."""
        outcome = asyncio.run(app.expense_flow.save(
            1,
            {"amount": "1250", "category": "Housing", "description": "Rent", "date": "2024-01-05"},
            editing_id=1,
        ))
        assert outcome.success
        assert outcome.notification.message == "Expense updated successfully"
        assert outcome.record.amount == Decimal("1250")
        assert outcome.record.is_recurring is False
        assert outcome.record.recurring_frequency is None

    def test_update_missing(self, app):
        outcome = asyncio.run(app.expense_flow.save(1, EXPENSE_FORM, editing_id=99))
        assert not outcome.success
        assert outcome.notification.message == "Error updating expense"
        assert AuditEventType.RECORD_NOT_FOUND in audit_types(app)

    def test_validation_failure_shows_first_error(self, app):
        outcome = asyncio.run(app.expense_flow.save(1, {**EXPENSE_FORM, "amount": ""}))
        assert not outcome.success
        assert outcome.notification.message == "Amount is required"
        assert len(app.database.expenses) == 5

    def test_too_many_decimals_is_rejected(self, app):
        outcome = asyncio.run(app.expense_flow.save(1, {**EXPENSE_FORM, "amount": "10.005"}))
        assert not outcome.success
        assert outcome.notification.message == "Amount can have at most 2 decimal places"
        assert len(app.database.expenses) == 5

    def test_record_that_cannot_be_built(self, app, audit_storage):
        """Test that a form the record model refuses fails like a save error."""

        class Unchecked(ExpenseFlow):
            async def validate(self, user_id, form, editing_id):
                return ValidationResult(
                    form="expense", schema_valid=True, semantic_valid=True, is_valid=True,
                )

        flow = Unchecked(app.expenses, app.validator, AuditLogger(audit_storage))
        outcome = asyncio.run(flow.save(1, {**EXPENSE_FORM, "description": "x" * 201}))
        assert not outcome.success
        assert outcome.notification.message == "Error adding expense"
        assert len(app.database.expenses) == 5

    def test_record_flow_needs_subclass_hooks(self, app):
        with pytest.raises(TypeError):
            RecordFlow(app.expenses, app.validator, app.audit_logger)

    def test_delete(self, app):
        outcome = asyncio.run(app.expense_flow.delete(2, user_id=1))
        assert outcome.notification.message == "Expense deleted successfully"
        again = asyncio.run(app.expense_flow.delete(2, user_id=1))
        assert not again.success
        assert again.notification.message == "Error deleting expense"

    def test_transport_failure_on_save(self, broken_client, audit_storage):
        flow = ExpenseFlow(ExpenseService(broken_client), FormValidator(), AuditLogger(audit_storage))
        outcome = asyncio.run(flow.save(1, EXPENSE_FORM))
        assert not outcome.success
        assert outcome.notification.message == "Error adding expense"
        events = asyncio.run(audit_storage.get_recent_events())
        assert events[0].event_type == AuditEventType.TRANSPORT_ERROR

    def test_load_failure_is_notified(self, app):
        app.database.expenses.insert({"userId": 1, "amount": "bad"})
        expenses, notification = asyncio.run(app.expense_flow.load(1))
        assert expenses == []
        assert notification.message == "Error loading expenses"


class TestOtherRecordFlows:
    """Tests for income, budget and goal specifics."""

    def test_income_create_and_sort(self, app):
        outcome = asyncio.run(app.income_flow.save(1, {
            "amount": "300",
            "source": "Freelance",
            "description": "  ",
            "date": "2024-02-10",
        }))
        assert outcome.notification.message == "Income added successfully"
        assert outcome.record.description is None

        incomes, _ = asyncio.run(app.income_flow.load(1))
        assert [i.date for i in incomes][0] == date(2024, 2, 10)

    def test_budget_create(self, app):
        outcome = asyncio.run(app.budget_flow.save(1, {
            "month": 2,
            "year": 2024,
            "total_income": "5500",
            "categories": [{"category": "Food", "limit": "450"}],
        }))
        assert outcome.success
        assert outcome.notification.message == "Budget created successfully"
        assert outcome.record.total_budgeted == Decimal("450")

        budgets, _ = asyncio.run(app.budget_flow.load(1))
        assert [(b.month, b.year) for b in budgets] == [(2, 2024), (1, 2024)]

    def test_budget_same_month_warns_but_saves(self, app):
        outcome = asyncio.run(app.budget_flow.save(1, {
            "month": 1,
            "year": 2024,
            "total_income": "100",
            "categories": [{"category": "Food", "limit": "50"}],
        }))
        assert outcome.success
        assert outcome.validation.warnings == ["A budget for 1/2024 already exists"]

    def test_budget_without_categories(self, app):
        outcome = asyncio.run(app.budget_flow.save(1, {
            "month": 3, "year": 2024, "total_income": "100", "categories": [],
        }))
        assert not outcome.success
        assert outcome.notification.message == "Please add at least one category"

    def test_goals_sorted_by_target_date(self, app):
        goals, _ = asyncio.run(app.goal_flow.load(1))
        assert [g.title for g in goals] == ["Vacation to Europe", "Emergency Fund"]

    def test_goal_create_defaults_current_amount(self, app):
        outcome = asyncio.run(app.goal_flow.save(1, {
            "title": "New Laptop",
            "target_amount": "2000",
            "current_amount": "",
            "target_date": "2030-06-01",
        }))
        assert outcome.notification.message == "Goal created successfully"
        assert outcome.record.current_amount == Decimal("0")

    def test_contribute(self, app):
        outcome = asyncio.run(app.goal_flow.contribute(2, Decimal("300"), user_id=1))
        assert outcome.notification.message == "Goal updated successfully"
        assert outcome.record.current_amount == Decimal("1500")

    def test_contribute_to_missing_goal(self, app):
        outcome = asyncio.run(app.goal_flow.contribute(99, Decimal("1")))
        assert not outcome.success
        assert outcome.notification.message == "Error updating goal"


    def test_contribute_transport_failure(self, broken_client, audit_storage):
        flow = GoalFlow(GoalService(broken_client), FormValidator(), AuditLogger(audit_storage))
        outcome = asyncio.run(flow.contribute(1, Decimal("5")))
        assert not outcome.success
        assert outcome.notification.message == "Error updating goal"
        events = asyncio.run(audit_storage.get_recent_events())
        assert events[0].event_type == AuditEventType.TRANSPORT_ERROR

class TestAggregationFlows:
    """Tests for the dashboard and report flows."""

    def test_dashboard(self, app):
        summary, notification = asyncio.run(app.dashboard_flow.load(1, today=date(2024, 1, 20)))
        assert notification is None
        assert summary.total_expenses == Decimal("1730")

    def test_dashboard_failure(self, app):
        app.database.budgets.insert({"userId": 1, "month": "x"})
        summary, notification = asyncio.run(app.dashboard_flow.load(1, today=date(2024, 1, 20)))
        assert summary is None
        assert notification.message == "Error loading dashboard data"
        assert AuditEventType.AGGREGATION_FAILED in audit_types(app)

    def test_report(self, app):
        report, notification = asyncio.run(
            app.report_flow.generate(1, date(2024, 1, 1), date(2024, 1, 31))
        )
        assert notification is None
        assert report.net_savings == Decimal("3770")

    @pytest.mark.parametrize("collection", ["expenses", "incomes", "budgets"])
    def test_report_failure(self, app, collection):
        app.database.collection(collection).insert({"userId": 1})
        report, notification = asyncio.run(
            app.report_flow.generate(1, date(2024, 1, 1), date(2024, 1, 31))
        )
        assert report is None
        assert notification.message == "Error generating report"
