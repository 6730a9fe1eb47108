"""
Storage Package

Provides the abstract repository interface, the storage exception
hierarchy, and the in-memory backend that stands in for a real database.
"""

from finance_tracker.store.interface import (
    AuditStorageInterface,
    DuplicateEmailError,
    DuplicateError,
    NotFoundError,
    RecordRepository,
    Row,
    StorageError,
    TransportError,
)
from finance_tracker.store.memory import (
    COLLECTIONS,
    InMemoryAuditStorage,
    InMemoryDatabase,
    InMemoryRepository,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "RecordRepository",
    "Row",
    # Exceptions
    "DuplicateEmailError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    "TransportError",
    # In-memory implementation
    "COLLECTIONS",
    "InMemoryAuditStorage",
    "InMemoryDatabase",
    "InMemoryRepository",
]
