"""Savings goal queries."""

from decimal import Decimal
from typing import Any, Union

import structlog

from finance_tracker.models.records import Goal
from finance_tracker.services.base import RecordService


logger = structlog.get_logger(__name__)


class GoalService(RecordService[Goal]):
    collection = "goals"
    model = Goal

    async def get_goals(self, user_id: int) -> list[Goal]:
        return await self.list_for_user(user_id)

    async def get_goal_by_id(self, goal_id: int) -> Goal:
        return await self.get_by_id(goal_id)

    async def create_goal(self, goal: Union[Goal, dict[str, Any]]) -> Goal:
        return await self.create(goal)

    async def update_goal(
        self,
        goal_id: int,
        changes: Union[Goal, dict[str, Any]],
    ) -> Goal:
        return await self.update(goal_id, changes)

    async def update_goal_progress(self, goal_id: int, amount: Decimal) -> Goal:
        """
        Add `amount` (negative to withdraw) to the goal's current amount.

        The result never drops below zero. Reads the goal, then issues a
        single update. Raises NotFoundError for an unknown id.
        """
        goal = await self.get_by_id(goal_id)
        new_amount = max(Decimal("0"), goal.current_amount + Decimal(str(amount)))
        logger.info(
            "goal_progress_updated",
            goal_id=goal_id,
            previous=str(goal.current_amount),
            current=str(new_amount),
        )
        return await self.update(goal_id, {"current_amount": new_amount})

    async def delete_goal(self, goal_id: int) -> None:
        await self.delete(goal_id)
