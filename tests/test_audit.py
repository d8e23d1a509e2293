"""Tests for the audit logger."""

import pytest

from finance_tracker.audit import AuditLogger, create_correlation_id
from finance_tracker.models import AuditEventBuilder, AuditEventType, AuditSeverity
from finance_tracker.services.storage import InMemoryAuditStorage, StorageError


class ExplodingAuditStorage(InMemoryAuditStorage):
    """Audit storage whose writes raise."""

    async def append_event(self, event):
        raise StorageError("audit sheet unavailable")


class TestAuditLogger:
    """Tests for AuditLogger."""

    async def test_local_only_logging(self):
        """Test logging without storage succeeds."""
        logger = AuditLogger()
        event = AuditEventBuilder.entity_created("account", "a1", "u1")
        assert await logger.log(event) is True

    async def test_persists_to_storage(self):
        """Test events reach the configured storage."""
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)

        await logger.log_entity_archived("category", "c1", "u1", create_correlation_id())

        assert [e.event_type for e in storage.events] == [AuditEventType.CATEGORY_ARCHIVED]

    async def test_storage_failure_is_contained(self):
        """Test a failing audit store never breaks the caller."""
        logger = AuditLogger(ExplodingAuditStorage())
        event = AuditEventBuilder.storage_error("create_account", "disk full")
        assert await logger.log(event) is False

    async def test_rejection_helper(self):
        """Test log_action_rejected records code, message and issues."""
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)
        correlation_id = create_correlation_id()

        await logger.log_action_rejected(
            action="create_transaction",
            error_code="BAD_REQUEST",
            error_message="Invalid input: amount: must be greater than 0",
            correlation_id=correlation_id,
            user_id="u1",
            issues=[{"field": "amount", "message": "must be greater than 0"}],
        )

        event = storage.events[0]
        assert event.event_type == AuditEventType.VALIDATION_FAILED
        assert event.severity == AuditSeverity.WARNING
        assert event.correlation_id == correlation_id
        assert event.details["issues"][0]["field"] == "amount"

    async def test_transaction_deleted_helper(self):
        """Test the delete event keeps the snapshot."""
        storage = InMemoryAuditStorage()
        logger = AuditLogger(storage)

        await logger.log_transaction_deleted(
            "t1", "u1", {"id": "t1", "amount": 5.0}, create_correlation_id()
        )

        event = storage.events[0]
        assert event.event_type == AuditEventType.TRANSACTION_DELETED
        assert event.details["snapshot"]["amount"] == 5.0

    def test_correlation_ids_unique(self):
        """Test correlation ids are fresh each time."""
        assert create_correlation_id() != create_correlation_id()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
