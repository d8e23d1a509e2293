"""
Abstract Storage Interface

We define an abstract interface for storage operations.
This allows us to:
1. Use a relational database (SQLAlchemy) in production
2. Use in-memory storage for testing
3. Keep Google Sheets as a storage option users can read directly
4. Keep business logic decoupled from storage implementation

The interface is intentionally small: scoped select / insert / update /
delete over three tables, plus limit/offset for transactions. Every read
and write takes the owner id; a row owned by someone else is treated as
absent.

Listing order is pinned so pagination is deterministic:
- accounts: created_at, then id
- categories: sort_order (unset last), then created_at, then id
- transactions: transaction_date newest first, then created_at newest
  first, then id descending
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from finance_tracker.models.audit import AuditEvent
from finance_tracker.models.finance import (
    Account,
    Category,
    Transaction,
    TransactionType,
)


def account_sort_key(account: Account) -> tuple:
    return (account.created_at, account.id)


def category_sort_key(category: Category) -> tuple:
    return (
        category.sort_order is None,
        category.sort_order if category.sort_order is not None else 0,
        category.created_at,
        category.id,
    )


def transaction_sort_key(transaction: Transaction) -> tuple:
    """Sort with reverse=True for newest first."""
    return (transaction.transaction_date, transaction.created_at, transaction.id)


class FinanceStorageInterface(ABC):
    """
    Abstract interface for accounts, categories and transactions.

    Any storage implementation (SQL database, Google Sheets, memory)
    must implement these methods.
    """

    # -- Accounts -------------------------------------------------------------

    @abstractmethod
    async def insert_account(self, account: Account) -> None:
        """
        Insert a new account row.

        Raises:
            DuplicateError: If the id already exists
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def get_account(self, account_id: str, owner_id: str) -> Optional[Account]:
        """
        Retrieve an account by id, scoped to its owner.

        Returns:
            The account if found under this owner, None otherwise
        """
        pass

    @abstractmethod
    async def update_account(self, account: Account) -> bool:
        """
        Write every mutable field of an account.

        The write is filtered by id AND owner_id; created_at is never
        written.

        Returns:
            True if a row matched, False otherwise
        """
        pass

    @abstractmethod
    async def list_accounts(
        self,
        owner_id: str,
        include_archived: bool = False,
    ) -> list[Account]:
        """List an owner's accounts, skipping archived ones unless asked."""
        pass

    # -- Categories -----------------------------------------------------------

    @abstractmethod
    async def insert_category(self, category: Category) -> None:
        """Insert a new category row."""
        pass

    @abstractmethod
    async def get_category(self, category_id: str, owner_id: str) -> Optional[Category]:
        """Retrieve a category by id, scoped to its owner."""
        pass

    @abstractmethod
    async def update_category(self, category: Category) -> bool:
        """Write every mutable field of a category, scoped to its owner."""
        pass

    @abstractmethod
    async def list_categories(
        self,
        owner_id: str,
        include_archived: bool = False,
    ) -> list[Category]:
        """List an owner's categories, skipping archived ones unless asked."""
        pass

    # -- Transactions ---------------------------------------------------------

    @abstractmethod
    async def insert_transaction(self, transaction: Transaction) -> None:
        """Insert a new transaction row."""
        pass

    @abstractmethod
    async def get_transaction(
        self,
        transaction_id: str,
        owner_id: str,
    ) -> Optional[Transaction]:
        """Retrieve a transaction by id, scoped to its owner."""
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> bool:
        """Write every mutable field of a transaction, scoped to its owner."""
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str, owner_id: str) -> bool:
        """
        Hard-delete a transaction, scoped to its owner.

        Returns:
            True if a row was deleted
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        owner_id: str,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
        transaction_type: Optional[TransactionType] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Transaction]:
        """
        List an owner's transactions with optional filters.

        Args:
            owner_id: Only this owner's rows are considered
            account_id: Filter by account
            category_id: Filter by category
            transaction_type: Filter by expense / income / transfer
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            Matching transactions, newest first
        """
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
        """Get all events of one request, in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get all events for a specific entity, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
