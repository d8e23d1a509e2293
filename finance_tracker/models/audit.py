"""
Audit Models for Finance Tracker

Every action outcome is logged for audit purposes, whether it succeeded or
was rejected. This gives:
1. Traceability of every change to a user's accounts and transactions
2. Debugging information when something goes wrong
3. A way to reconstruct history after a hard delete

Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from finance_tracker.models.finance import UtcDatetime, utc_now


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    One event type per action outcome.
    """
    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_ARCHIVED = "account_archived"

    # Categories
    CATEGORY_CREATED = "category_created"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_ARCHIVED = "category_archived"

    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Reads
    LIST_QUERIED = "list_queried"

    # Rejections
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    ENTITY_NOT_FOUND = "entity_not_found"
    VALIDATION_FAILED = "validation_failed"

    # System events
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


_CREATED = {
    "account": AuditEventType.ACCOUNT_CREATED,
    "category": AuditEventType.CATEGORY_CREATED,
    "transaction": AuditEventType.TRANSACTION_CREATED,
}

_UPDATED = {
    "account": AuditEventType.ACCOUNT_UPDATED,
    "category": AuditEventType.CATEGORY_UPDATED,
    "transaction": AuditEventType.TRANSACTION_UPDATED,
}

_ARCHIVED = {
    "account": AuditEventType.ACCOUNT_ARCHIVED,
    "category": AuditEventType.CATEGORY_ARCHIVED,
}

_REJECTED = {
    "UNAUTHORIZED": AuditEventType.UNAUTHORIZED_ACCESS,
    "NOT_FOUND": AuditEventType.ENTITY_NOT_FOUND,
    "BAD_REQUEST": AuditEventType.VALIDATION_FAILED,
}


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every action handled creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: UtcDatetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (account, category, transaction)"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Who and which request
    user_id: Optional[str] = Field(
        default=None,
        description="Acting user, when known"
    )
    action: Optional[str] = Field(
        default=None,
        description="Action name, e.g. 'update_account'"
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID shared by all events of one request"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

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
            "action": self.action,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         user_id, action, correlation_id, description, details_json,
         error_code, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.user_id or "",
            self.action or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_code or "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.entity_created("account", account.id, user.id, cid)
        event = AuditEventBuilder.action_rejected("update_account", "NOT_FOUND", ...)
    """

    @staticmethod
    def entity_created(
        entity_type: str,
        entity_id: str,
        user_id: str,
        correlation_id: Optional[UUID] = None,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=_CREATED[entity_type],
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            action=f"create_{entity_type}",
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} created",
            details=details or {},
        )

    @staticmethod
    def entity_updated(
        entity_type: str,
        entity_id: str,
        user_id: str,
        fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=_UPDATED[entity_type],
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            action=f"update_{entity_type}",
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} updated: {len(fields)} field(s)",
            details={
                "fields": sorted(fields),
            },
        )

    @staticmethod
    def entity_archived(
        entity_type: str,
        entity_id: str,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=_ARCHIVED[entity_type],
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            action=f"archive_{entity_type}",
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} archived",
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        user_id: str,
        snapshot: dict,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            action="delete_transaction",
            correlation_id=correlation_id,
            description="Transaction deleted",
            details={
                "snapshot": snapshot,
            },
        )

    @staticmethod
    def list_queried(
        entity_type: str,
        user_id: str,
        result_count: int,
        filters: dict,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LIST_QUERIED,
            severity=AuditSeverity.DEBUG,
            entity_type=entity_type,
            user_id=user_id,
            action=f"list_{entity_type}",
            correlation_id=correlation_id,
            description=f"Listed {entity_type}: {result_count} result(s)",
            details={
                "filters": filters,
                "result_count": result_count,
            },
        )

    @staticmethod
    def action_rejected(
        action: str,
        error_code: str,
        error_message: str,
        user_id: Optional[str] = None,
        entity_id: Optional[str] = None,
        issues: Optional[list[dict]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=_REJECTED.get(error_code, AuditEventType.VALIDATION_FAILED),
            severity=AuditSeverity.WARNING,
            entity_id=entity_id,
            user_id=user_id,
            action=action,
            correlation_id=correlation_id,
            description=f"Action rejected: {action} ({error_code})",
            details={"issues": issues} if issues else {},
            error_code=error_code,
            error_message=error_message,
        )

    @staticmethod
    def storage_error(
        action: str,
        error_message: str,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            action=action,
            correlation_id=correlation_id,
            description=f"Storage error during {action}",
            error_message=error_message,
        )
