"""Income queries."""

from typing import Any, Union

from finance_tracker.models.records import Income
from finance_tracker.periods import in_month
from finance_tracker.services.base import RecordService


class IncomeService(RecordService[Income]):
    collection = "incomes"
    model = Income

    async def get_incomes(self, user_id: int) -> list[Income]:
        return await self.list_for_user(user_id)

    async def get_income_by_id(self, income_id: int) -> Income:
        return await self.get_by_id(income_id)

    async def get_incomes_by_month(self, user_id: int, month: int, year: int) -> list[Income]:
        incomes = await self.get_incomes(user_id)
        return [i for i in incomes if in_month(i.date, month, year)]

    async def create_income(self, income: Union[Income, dict[str, Any]]) -> Income:
        return await self.create(income)

    async def update_income(
        self,
        income_id: int,
        changes: Union[Income, dict[str, Any]],
    ) -> Income:
        return await self.update(income_id, changes)

    async def delete_income(self, income_id: int) -> None:
        await self.delete(income_id)
