"""
Audit Logger

DESIGN DECISION: Every action outcome in the system is logged.
This provides:
1. Complete traceability of changes to a user's money records
2. Debugging capability
3. A record of deleted transactions (hard delete leaves no row behind)

The audit logger:
- Is async to match the storage interface
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace the events of one request
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from finance_tracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from finance_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route structlog output through the stdlib root logger at `level`.

    structlog renders each entry to a JSON string; the stdlib handler
    only prints it.
    """
    logging.basicConfig(format="%(message)s", level=level.upper())
    logging.getLogger().setLevel(level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when configured (for persistence)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("finance_tracker.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        # Always log locally
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        # Persist to storage if available
        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_entity_created(
        self,
        entity_type: str,
        entity_id: str,
        user_id: str,
        correlation_id: UUID,
        details: Optional[dict] = None,
    ) -> None:
        """Log creation of an account, category or transaction."""
        await self.log(AuditEventBuilder.entity_created(
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            correlation_id=correlation_id,
            details=details,
        ))

    async def log_entity_updated(
        self,
        entity_type: str,
        entity_id: str,
        user_id: str,
        fields: list[str],
        correlation_id: UUID,
    ) -> None:
        """Log a patch, with the names of the fields it carried."""
        await self.log(AuditEventBuilder.entity_updated(
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            fields=fields,
            correlation_id=correlation_id,
        ))

    async def log_entity_archived(
        self,
        entity_type: str,
        entity_id: str,
        user_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.entity_archived(
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    async def log_transaction_deleted(
        self,
        transaction_id: str,
        user_id: str,
        snapshot: dict,
        correlation_id: UUID,
    ) -> None:
        """Log a hard delete together with the row as it was."""
        await self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            user_id=user_id,
            snapshot=snapshot,
            correlation_id=correlation_id,
        ))

    async def log_list_queried(
        self,
        entity_type: str,
        user_id: str,
        result_count: int,
        filters: dict,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.list_queried(
            entity_type=entity_type,
            user_id=user_id,
            result_count=result_count,
            filters=filters,
            correlation_id=correlation_id,
        ))

    async def log_action_rejected(
        self,
        action: str,
        error_code: str,
        error_message: str,
        correlation_id: UUID,
        user_id: Optional[str] = None,
        entity_id: Optional[str] = None,
        issues: Optional[list[dict]] = None,
    ) -> None:
        """Log an action that ended in UNAUTHORIZED, NOT_FOUND or BAD_REQUEST."""
        await self.log(AuditEventBuilder.action_rejected(
            action=action,
            error_code=error_code,
            error_message=error_message,
            user_id=user_id,
            entity_id=entity_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_storage_error(
        self,
        action: str,
        error_message: str,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> None:
        """Log a storage failure."""
        await self.log(AuditEventBuilder.storage_error(
            action=action,
            error_message=error_message,
            user_id=user_id,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new request.
    Pass it through all subsequent operations.
    """
    return uuid4()
