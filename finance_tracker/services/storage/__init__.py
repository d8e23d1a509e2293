"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Three backends share one interface: in-memory, SQL (SQLAlchemy) and
Google Sheets. Business logic only ever sees FinanceStorageInterface.
"""

from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    FinanceStorageInterface,
    StorageConnectionError,
    StorageError,
)
from finance_tracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryFinanceStorage,
)
from finance_tracker.services.storage.sql import (
    SqlAuditStorage,
    SqlFinanceStorage,
    create_sql_engine,
)
from finance_tracker.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsFinanceStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "FinanceStorageInterface",
    # Exceptions
    "DuplicateError",
    "StorageConnectionError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryFinanceStorage",
    # SQL implementation
    "SqlAuditStorage",
    "SqlFinanceStorage",
    "create_sql_engine",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsFinanceStorage",
]
