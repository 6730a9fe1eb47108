"""
Audit Models for Finance Tracker

Every user-facing action (sign in, create, update, delete...) produces an
audit event. Events are logged locally and can be appended to an
audit store.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Accounts and session
    USER_REGISTERED = "user_registered"
    REGISTRATION_REJECTED = "registration_rejected"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    LOGGED_OUT = "logged_out"
    ACCESS_DENIED = "access_denied"

    # Records
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    RECORD_NOT_FOUND = "record_not_found"

    # System events
    AGGREGATION_FAILED = "aggregation_failed"
    TRANSPORT_ERROR = "transport_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the event occurred"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - which record is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Collection name (e.g., 'expenses', 'users')"
    )
    entity_id: Optional[int] = None
    user_id: Optional[int] = Field(
        default=None,
        description="Signed-in user the action was made for"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None
    is_user_action: bool = False

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "user_id": self.user_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_row(self) -> list[str]:
        """
        Flatten to a list of strings, e.g. for CSV export.

        Columns: [event_id, timestamp, event_type, severity, entity_type,
        entity_id, user_id, correlation_id, description, details_json,
        error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id is not None else "",
            str(self.user_id) if self.user_id is not None else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.login_succeeded(user_id, correlation_id)
        event = AuditEventBuilder.record_created("expenses", 6, user_id=1)
    """

    @staticmethod
    def user_registered(
        user_id: int,
        email: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            entity_type="users",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"User registered: {email}",
            details={"email": email},
            is_user_action=True,
        )

    @staticmethod
    def registration_rejected(
        email: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REGISTRATION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="users",
            correlation_id=correlation_id,
            description=f"Registration rejected for {email}",
            details={"email": email, "reason": reason},
            is_user_action=True,
        )

    @staticmethod
    def login_succeeded(
        user_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            entity_type="users",
            entity_id=user_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="User signed in",
            is_user_action=True,
        )

    @staticmethod
    def login_failed(
        email: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        # The password never goes into the trail
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="users",
            correlation_id=correlation_id,
            description="Invalid email or password",
            details={"email": email},
            is_user_action=True,
        )

    @staticmethod
    def logged_out(
        user_id: Optional[int],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOGGED_OUT,
            entity_type="users",
            entity_id=user_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="User signed out",
            is_user_action=True,
        )

    @staticmethod
    def access_denied(
        requested_path: str,
        redirect_to: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCESS_DENIED,
            severity=AuditSeverity.INFO,
            description=f"Redirected from protected view {requested_path}",
            details={"requested_path": requested_path, "redirect_to": redirect_to},
        )

    @staticmethod
    def record_created(
        collection: str,
        record_id: int,
        user_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            entity_type=collection,
            entity_id=record_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Created {collection}/{record_id}",
            is_user_action=True,
        )

    @staticmethod
    def record_updated(
        collection: str,
        record_id: int,
        fields: list[str],
        user_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            entity_type=collection,
            entity_id=record_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Updated {collection}/{record_id}",
            details={"fields": sorted(fields)},
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(
        collection: str,
        record_id: int,
        user_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            entity_type=collection,
            entity_id=record_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Deleted {collection}/{record_id}",
            is_user_action=True,
        )

    @staticmethod
    def record_not_found(
        collection: str,
        record_id: Optional[int],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_NOT_FOUND,
            severity=AuditSeverity.WARNING,
            entity_type=collection,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"{collection}/{record_id} not found",
        )

    @staticmethod
    def aggregation_failed(
        view: str,
        branch: Optional[str],
        error_message: str,
        user_id: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AGGREGATION_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Could not build {view}",
            details={"view": view, "branch": branch},
            error_message=error_message,
        )

    @staticmethod
    def transport_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSPORT_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Transport error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )
