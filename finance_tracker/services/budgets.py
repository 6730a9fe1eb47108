"""Budget queries."""

from typing import Any, Optional, Union

from finance_tracker.models.records import Budget
from finance_tracker.services.base import RecordService


class BudgetService(RecordService[Budget]):
    """
    Monthly budgets.

    NOTE: Nothing stops two budgets for the same month. Lookups by month
    return the first one in storage order.
    """

    collection = "budgets"
    model = Budget

    async def get_budgets(self, user_id: int) -> list[Budget]:
        return await self.list_for_user(user_id)

    async def get_budget_by_id(self, budget_id: int) -> Budget:
        return await self.get_by_id(budget_id)

    async def get_budget_by_month(
        self,
        user_id: int,
        month: int,
        year: int,
    ) -> Optional[Budget]:
        """The budget for (month, year), or None when there isn't one."""
        budgets = await self.get_budgets(user_id)
        return self._first([b for b in budgets if b.month == month and b.year == year])

    async def create_budget(self, budget: Union[Budget, dict[str, Any]]) -> Budget:
        return await self.create(budget)

    async def update_budget(
        self,
        budget_id: int,
        changes: Union[Budget, dict[str, Any]],
    ) -> Budget:
        return await self.update(budget_id, changes)

    async def delete_budget(self, budget_id: int) -> None:
        await self.delete(budget_id)
