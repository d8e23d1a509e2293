"""
Data Models Package

This package contains all Pydantic models used in the Finance Tracker.
All data flowing through the action layer must conform to these schemas.
"""

from finance_tracker.models.finance import (
    Account,
    AccountList,
    AccountPayload,
    Category,
    CategoryList,
    CategoryPayload,
    CreateAccountInput,
    CreateCategoryInput,
    CreateTransactionInput,
    EntityIdInput,
    ListEntitiesInput,
    ListTransactionsInput,
    Transaction,
    TransactionPage,
    TransactionPayload,
    TransactionType,
    UpdateAccountInput,
    UpdateCategoryInput,
    UpdateTransactionInput,
    new_id,
    utc_now,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Entities
    "Account",
    "Category",
    "Transaction",
    "TransactionType",
    # Action inputs
    "CreateAccountInput",
    "CreateCategoryInput",
    "CreateTransactionInput",
    "EntityIdInput",
    "ListEntitiesInput",
    "ListTransactionsInput",
    "UpdateAccountInput",
    "UpdateCategoryInput",
    "UpdateTransactionInput",
    # Payloads
    "AccountList",
    "AccountPayload",
    "CategoryList",
    "CategoryPayload",
    "TransactionPage",
    "TransactionPayload",
    # Helpers
    "new_id",
    "utc_now",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
