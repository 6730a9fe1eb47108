"""
Named Join

Waits for several named awaitables and returns all of their results, or
fails as a whole.

DESIGN DECISION: Aggregation views are all-or-nothing. If any branch
fails, the others are cancelled and AggregationError names the branch
that failed. The caller never sees a partial result.
"""

import asyncio
from typing import Any, Awaitable, Optional

import structlog


logger = structlog.get_logger(__name__)


class AggregationError(Exception):
    """One branch of a join failed. The original error is __cause__."""

    def __init__(self, branch: str, message: Optional[str] = None):
        self.branch = branch
        super().__init__(message or f"Aggregation branch '{branch}' failed")


async def gather_named(**awaitables: Awaitable[Any]) -> dict[str, Any]:
    """
    Run awaitables concurrently and return {name: result}.

    Usage:
        results = await gather_named(
            expenses=expense_service.get_expenses(user_id),
            incomes=income_service.get_incomes(user_id),
        )

    Raises:
        AggregationError: if any branch raised; the remaining branches
            are cancelled first
    """
    if not awaitables:
        return {}

    tasks = {name: asyncio.ensure_future(aw) for name, aw in awaitables.items()}

    try:
        await asyncio.wait(tasks.values(), return_when=asyncio.FIRST_EXCEPTION)
    except asyncio.CancelledError:
        await _cancel_all(tasks.values())
        raise

    for name, task in tasks.items():
        if task.done() and not task.cancelled() and task.exception() is not None:
            error = task.exception()
            await _cancel_all(tasks.values())
            logger.warning("join_branch_failed", branch=name, error=str(error))
            raise AggregationError(name, f"{name}: {error}") from error

    return {name: task.result() for name, task in tasks.items()}


async def _cancel_all(tasks) -> None:
    pending = [t for t in tasks if not t.done()]
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
