"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Give every test its own isolated in-memory store
2. Keep the router ignorant of how rows are held
3. Swap in a persistent backend later without touching services

The interface is intentionally simple - we're not building a full ORM.
Rows are plain JSON-shaped dicts in their wire (camelCase) form.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

from finance_tracker.models.audit import AuditEvent


Row = dict[str, Any]


class RecordRepository(ABC):
    """
    Abstract interface for one collection of records.

    Every row carries an integer "id" assigned by the repository.
    """

    @abstractmethod
    def select(self, filters: Optional[dict[str, str]] = None) -> list[Row]:
        """
        List rows in insertion order.

        Args:
            filters: Equality filters on row fields. Values are compared
                     as text, since they usually arrive as query parameters.

        Returns:
            Copies of the matching rows
        """
        pass

    @abstractmethod
    def get(self, record_id: int) -> Optional[Row]:
        """
        Retrieve a row by id.

        Returns:
            A copy of the row if found, None otherwise
        """
        pass

    @abstractmethod
    def insert(self, row: Row) -> Row:
        """
        Append a row, assigning the next id. Any id in the input is ignored.

        Returns:
            A copy of the stored row
        """
        pass

    @abstractmethod
    def update(self, record_id: int, changes: Row) -> Optional[Row]:
        """
        Shallow-merge changes over the stored row.

        Fields absent from changes are preserved. The id never changes.

        Returns:
            The merged row, or None if no row has that id
        """
        pass

    @abstractmethod
    def delete(self, record_id: int) -> bool:
        """
        Remove the row with that id.

        Returns:
            True if a row was removed, False if none matched
        """
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for a correlation ID, in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: int,
    ) -> list[AuditEvent]:
        """Get all events for one record, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Record not found in storage."""

    def __init__(
        self,
        collection: str,
        record_id: Optional[int] = None,
        message: Optional[str] = None,
    ):
        self.collection = collection
        self.record_id = record_id
        super().__init__(message or f"Not found: {collection}/{record_id}")


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class DuplicateEmailError(DuplicateError):
    """A user with this email is already registered."""

    def __init__(self, email: str):
        self.email = email
        super().__init__("A user with this email already exists")


class TransportError(StorageError):
    """The in-process transport could not deliver a request."""
    pass
