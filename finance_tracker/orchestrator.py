"""
Component Wiring for Finance Tracker

This module builds the storage backend named in the settings, the audit
logger and the FinanceActions facade, and hands them to the front end.

DESIGN DECISION: A misconfigured backend fails loudly. We never fall
back to in-memory storage behind the user's back; that would silently
drop their data at the next restart.
"""

from dataclasses import dataclass
from typing import Optional

from finance_tracker.actions import FinanceActions
from finance_tracker.audit import AuditLogger, configure_logging
from finance_tracker.config import get_settings
from finance_tracker.services.storage import (
    AuditStorageInterface,
    FinanceStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsFinanceStorage,
    InMemoryAuditStorage,
    InMemoryFinanceStorage,
    SqlAuditStorage,
    SqlFinanceStorage,
)


STORAGE_BACKENDS = ("memory", "sql", "google_sheets")


@dataclass
class AppComponents:
    """Everything the front end needs, built once per process."""

    actions: FinanceActions
    storage: FinanceStorageInterface
    audit_storage: Optional[AuditStorageInterface]
    backend: str


def create_storage(
    backend: str,
    with_audit: bool = True,
) -> tuple[FinanceStorageInterface, Optional[AuditStorageInterface]]:
    """
    Build the finance storage and, optionally, a matching audit storage.

    The audit storage shares the finance storage's connection: the same
    engine for SQL, the same spreadsheet for Google Sheets.

    Raises:
        ValueError: If the backend name is unknown
        StorageConnectionError: If the backend cannot be reached
    """
    settings = get_settings()

    if backend == "memory":
        storage = InMemoryFinanceStorage()
        return storage, InMemoryAuditStorage() if with_audit else None

    if backend == "sql":
        db = settings.database
        sql_storage = SqlFinanceStorage.from_url(db.url, echo=db.echo)
        audit = SqlAuditStorage(sql_storage.engine) if with_audit else None
        return sql_storage, audit

    if backend == "google_sheets":
        client = GoogleSheetsClient(settings.google_sheets)
        audit = GoogleSheetsAuditStorage(client) if with_audit else None
        return GoogleSheetsFinanceStorage(client), audit

    raise ValueError(
        f"Unknown storage backend: {backend!r}. Expected one of {STORAGE_BACKENDS}"
    )


def create_app_components(
    backend: Optional[str] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        backend: Storage backend to use. Defaults to the
                 STORAGE_BACKEND setting.

    Returns:
        AppComponents with the actions facade and its storage
    """
    app_settings = get_settings().app
    configure_logging(app_settings.log_level)

    backend = backend or app_settings.storage_backend
    storage, audit_storage = create_storage(
        backend, with_audit=app_settings.audit_enabled
    )

    # Local-only logging when audit persistence is disabled
    audit_logger = AuditLogger(audit_storage)

    return AppComponents(
        actions=FinanceActions(storage, audit_logger),
        storage=storage,
        audit_storage=audit_storage,
        backend=backend,
    )
