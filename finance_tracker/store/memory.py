"""
In-Memory Storage Implementation

DESIGN DECISION: The backend is a set of in-memory collections, one
repository object per entity, owned by an InMemoryDatabase that is
injected wherever it is needed. Nothing is module-level state, so every
test can build its own isolated database.

TRADEOFFS:
- Nothing survives a restart (by design; the session file is the only
  thing that does)
- No validation, conflict detection or locking at this layer
- Filtering is a linear scan (fine for personal use)
"""

import copy
from typing import Optional
from uuid import UUID

import structlog

from finance_tracker.models.audit import AuditEvent
from finance_tracker.store.interface import (
    AuditStorageInterface,
    RecordRepository,
    Row,
)


logger = structlog.get_logger(__name__)

COLLECTIONS = ("users", "expenses", "incomes", "budgets", "goals")


class InMemoryRepository(RecordRepository):
    """
    One collection of rows held in insertion order.

    Ids come from a high-water counter: a new id is one more than the
    largest id ever held, so an id is never handed out twice even when
    the current maximum is deleted.
    """

    def __init__(self, name: str, rows: Optional[list[Row]] = None):
        self.name = name
        self._rows: list[Row] = []
        self._high_water = 0
        if rows:
            self.load(rows)

    def load(self, rows: list[Row]) -> None:
        """Add rows that already carry ids (fixtures)."""
        for row in rows:
            if not isinstance(row.get("id"), int):
                raise ValueError(f"Fixture row in {self.name} has no integer id")
            self._rows.append(copy.deepcopy(row))
            self._high_water = max(self._high_water, row["id"])

    def next_id(self) -> int:
        current_max = max((row["id"] for row in self._rows), default=0)
        return max(current_max, self._high_water) + 1

    def select(self, filters: Optional[dict[str, str]] = None) -> list[Row]:
        rows = self._rows
        if filters:
            rows = [
                row for row in rows
                if all(
                    key in row and self._as_text(row[key]) == str(value)
                    for key, value in filters.items()
                )
            ]
        return [copy.deepcopy(row) for row in rows]

    def get(self, record_id: int) -> Optional[Row]:
        index = self._index_of(record_id)
        if index is None:
            return None
        return copy.deepcopy(self._rows[index])

    def insert(self, row: Row) -> Row:
        new_row = copy.deepcopy(row)
        new_row["id"] = self.next_id()
        self._rows.append(new_row)
        self._high_water = new_row["id"]
        return copy.deepcopy(new_row)

    def update(self, record_id: int, changes: Row) -> Optional[Row]:
        index = self._index_of(record_id)
        if index is None:
            return None
        merged = {**self._rows[index], **copy.deepcopy(changes)}
        merged["id"] = record_id
        self._rows[index] = merged
        return copy.deepcopy(merged)

    def delete(self, record_id: int) -> bool:
        index = self._index_of(record_id)
        if index is None:
            return False
        del self._rows[index]
        return True

    def __len__(self) -> int:
        return len(self._rows)

    def _index_of(self, record_id: int) -> Optional[int]:
        for index, row in enumerate(self._rows):
            if row.get("id") == record_id:
                return index
        return None

    @staticmethod
    def _as_text(value) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)


class InMemoryDatabase:
    """
    The mock backend: one repository per known collection.

    Usage:
        db = InMemoryDatabase(seed=True)
        db.collection("expenses").select({"userId": "1"})
    """

    def __init__(self, seed: bool = False):
        self._collections: dict[str, InMemoryRepository] = {
            name: InMemoryRepository(name) for name in COLLECTIONS
        }
        if seed:
            from finance_tracker.store.fixtures import FIXTURES

            for name, rows in FIXTURES.items():
                self._collections[name].load(rows)
            logger.info(
                "database_seeded",
                counts={name: len(repo) for name, repo in self._collections.items()},
            )

    def has_collection(self, name: str) -> bool:
        return name in self._collections

    def collection(self, name: str) -> InMemoryRepository:
        """Raises KeyError for a name that is not one of the five collections."""
        return self._collections[name]

    @property
    def collection_names(self) -> tuple[str, ...]:
        return tuple(self._collections)

    @property
    def users(self) -> InMemoryRepository:
        return self._collections["users"]

    @property
    def expenses(self) -> InMemoryRepository:
        return self._collections["expenses"]

    @property
    def incomes(self) -> InMemoryRepository:
        return self._collections["incomes"]

    @property
    def budgets(self) -> InMemoryRepository:
        return self._collections["budgets"]

    @property
    def goals(self) -> InMemoryRepository:
        return self._collections["goals"]


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit trail kept in memory."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return sorted(
            (e for e in self._events if e.correlation_id == correlation_id),
            key=lambda e: e.timestamp,
        )

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: int,
    ) -> list[AuditEvent]:
        return sorted(
            (
                e for e in self._events
                if e.entity_type == entity_type and e.entity_id == entity_id
            ),
            key=lambda e: e.timestamp,
        )

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(reversed(self._events), key=lambda e: e.timestamp, reverse=True)
        return events[:limit]

    def __len__(self) -> int:
        return len(self._events)
