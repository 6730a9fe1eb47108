"""Expense queries."""

from typing import Any, Union

from finance_tracker.models.records import Expense
from finance_tracker.periods import in_month
from finance_tracker.services.base import RecordService


class ExpenseService(RecordService[Expense]):
    """
    Expenses for one user.

    DESIGN DECISION: Category filtering is done by the router through the
    `category` query parameter; month filtering is done here, after the
    dates have been restored.
    """

    collection = "expenses"
    model = Expense

    async def get_expenses(self, user_id: int) -> list[Expense]:
        return await self.list_for_user(user_id)

    async def get_expense_by_id(self, expense_id: int) -> Expense:
        return await self.get_by_id(expense_id)

    async def get_expenses_by_category(self, user_id: int, category: str) -> list[Expense]:
        return await self.list_for_user(user_id, category=category)

    async def get_expenses_by_month(self, user_id: int, month: int, year: int) -> list[Expense]:
        expenses = await self.get_expenses(user_id)
        return [e for e in expenses if in_month(e.date, month, year)]

    async def create_expense(self, expense: Union[Expense, dict[str, Any]]) -> Expense:
        return await self.create(expense)

    async def update_expense(
        self,
        expense_id: int,
        changes: Union[Expense, dict[str, Any]],
    ) -> Expense:
        return await self.update(expense_id, changes)

    async def delete_expense(self, expense_id: int) -> None:
        await self.delete(expense_id)
