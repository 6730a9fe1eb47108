"""Typed services over the simulated REST surface."""

from finance_tracker.services.auth import AuthService
from finance_tracker.services.base import RecordService
from finance_tracker.services.budgets import BudgetService
from finance_tracker.services.expenses import ExpenseService
from finance_tracker.services.goals import GoalService
from finance_tracker.services.incomes import IncomeService
from finance_tracker.services.session import (
    FileLocalStorage,
    InMemoryLocalStorage,
    LocalStorage,
    SessionState,
)

__all__ = [
    "AuthService",
    "RecordService",
    "BudgetService",
    "ExpenseService",
    "GoalService",
    "IncomeService",
    "FileLocalStorage",
    "InMemoryLocalStorage",
    "LocalStorage",
    "SessionState",
]
