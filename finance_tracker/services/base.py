"""
Record Service Base

Every transactional entity (expenses, incomes, budgets, goals) exposes
the same operations over the API client: list for a user, get by id,
create, update and delete.

DESIGN DECISION: Every record that comes back from the client is passed
through the model again. The transport is textual, so dates arrive as
ISO strings; re-validating restores date and datetime (and Decimal)
types at this boundary instead of trusting the store to keep them.
"""

from typing import Any, Generic, Optional, TypeVar, Union

import structlog

from finance_tracker.models.records import Record
from finance_tracker.store.interface import TransportError
from finance_tracker.transport.client import ApiClient


logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Record)


class RecordService(Generic[ModelT]):
    """
    Typed wrapper around one collection of the simulated REST surface.

    Subclasses set `collection` and `model`.
    """

    collection: str = ""
    model: type[ModelT]

    def __init__(self, client: ApiClient):
        self._client = client

    def _parse(self, data: Any) -> ModelT:
        """Rebuild a model from decoded JSON, restoring date typing."""
        return self.model.model_validate(data)

    def _parse_many(self, rows: list[Any]) -> list[ModelT]:
        return [self._parse(row) for row in rows]

    async def list_for_user(
        self,
        user_id: int,
        **filters: Any,
    ) -> list[ModelT]:
        """
        All records owned by a user, in storage order.

        Extra keyword filters are sent as query parameters, keyed by
        their wire names (e.g. category="Food").

        A transport failure is logged and treated as no data.
        """
        params = {"userId": user_id, **filters}
        try:
            rows = await self._client.get(self.collection, params=params)
        except TransportError as e:
            logger.warning(
                "list_failed_treated_as_empty",
                collection=self.collection,
                user_id=user_id,
                error=str(e),
            )
            return []
        return self._parse_many(rows)

    async def get_by_id(self, record_id: int) -> ModelT:
        """Raises NotFoundError when no record has that id."""
        row = await self._client.get(self.collection, record_id)
        return self._parse(row)

    async def create(self, record: Union[ModelT, dict[str, Any]]) -> ModelT:
        """Create a record. Any id on the input is ignored by the store."""
        body = self._to_body(record)
        row = await self._client.post(self.collection, body)
        logger.info("record_created", collection=self.collection, record_id=row.get("id"))
        return self._parse(row)

    async def update(
        self,
        record_id: int,
        changes: Union[ModelT, dict[str, Any]],
    ) -> ModelT:
        """
        Shallow-merge changes over the stored record.

        Accepts a full model or a partial dict keyed by field names.
        Fields not present are preserved. Raises NotFoundError.
        """
        body = self._to_body(changes)
        row = await self._client.put(self.collection, record_id, body)
        return self._parse(row)

    async def delete(self, record_id: int) -> None:
        """Raises NotFoundError when no record has that id."""
        await self._client.delete(self.collection, record_id)

    def _to_body(self, data: Union[ModelT, dict[str, Any]]) -> dict[str, Any]:
        if isinstance(data, Record):
            return data.to_wire(include_id=False)
        body = self.model.wire_changes(data)
        body.pop("id", None)
        return body

    @staticmethod
    def _first(records: list[ModelT]) -> Optional[ModelT]:
        return records[0] if records else None
