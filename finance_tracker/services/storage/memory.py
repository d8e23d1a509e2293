"""
In-Memory Storage Implementation

Dict-backed storage used by the test suite and the "memory" backend.
Rows are copied on the way in and on the way out, so callers can never
mutate stored state behind the storage's back.
"""

from typing import Optional
from uuid import UUID

from finance_tracker.models.audit import AuditEvent
from finance_tracker.models.finance import (
    Account,
    Category,
    Transaction,
    TransactionType,
)
from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    FinanceStorageInterface,
    account_sort_key,
    category_sort_key,
    transaction_sort_key,
)


class InMemoryFinanceStorage(FinanceStorageInterface):
    """Finance storage kept in three dicts keyed by id."""

    def __init__(self):
        self._accounts: dict[str, Account] = {}
        self._categories: dict[str, Category] = {}
        self._transactions: dict[str, Transaction] = {}

    @staticmethod
    def _insert(table: dict, row) -> None:
        if row.id in table:
            raise DuplicateError(f"Duplicate id: {row.id}")
        table[row.id] = row.model_copy(deep=True)

    @staticmethod
    def _get(table: dict, row_id: str, owner_id: str):
        row = table.get(row_id)
        if row is None or row.owner_id != owner_id:
            return None
        return row.model_copy(deep=True)

    @staticmethod
    def _update(table: dict, row) -> bool:
        stored = table.get(row.id)
        if stored is None or stored.owner_id != row.owner_id:
            return False
        table[row.id] = row.model_copy(
            update={"created_at": stored.created_at},
            deep=True,
        )
        return True

    # -- Accounts -------------------------------------------------------------

    async def insert_account(self, account: Account) -> None:
        self._insert(self._accounts, account)

    async def get_account(self, account_id: str, owner_id: str) -> Optional[Account]:
        return self._get(self._accounts, account_id, owner_id)

    async def update_account(self, account: Account) -> bool:
        return self._update(self._accounts, account)

    async def list_accounts(
        self,
        owner_id: str,
        include_archived: bool = False,
    ) -> list[Account]:
        accounts = [
            a.model_copy(deep=True)
            for a in self._accounts.values()
            if a.owner_id == owner_id and (include_archived or not a.is_archived)
        ]
        accounts.sort(key=account_sort_key)
        return accounts

    # -- Categories -----------------------------------------------------------

    async def insert_category(self, category: Category) -> None:
        self._insert(self._categories, category)

    async def get_category(self, category_id: str, owner_id: str) -> Optional[Category]:
        return self._get(self._categories, category_id, owner_id)

    async def update_category(self, category: Category) -> bool:
        return self._update(self._categories, category)

    async def list_categories(
        self,
        owner_id: str,
        include_archived: bool = False,
    ) -> list[Category]:
        categories = [
            c.model_copy(deep=True)
            for c in self._categories.values()
            if c.owner_id == owner_id and (include_archived or not c.is_archived)
        ]
        categories.sort(key=category_sort_key)
        return categories

    # -- Transactions ---------------------------------------------------------

    async def insert_transaction(self, transaction: Transaction) -> None:
        self._insert(self._transactions, transaction)

    async def get_transaction(
        self,
        transaction_id: str,
        owner_id: str,
    ) -> Optional[Transaction]:
        return self._get(self._transactions, transaction_id, owner_id)

    async def update_transaction(self, transaction: Transaction) -> bool:
        return self._update(self._transactions, transaction)

    async def delete_transaction(self, transaction_id: str, owner_id: str) -> bool:
        stored = self._transactions.get(transaction_id)
        if stored is None or stored.owner_id != owner_id:
            return False
        del self._transactions[transaction_id]
        return True

    async def list_transactions(
        self,
        owner_id: str,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
        transaction_type: Optional[TransactionType] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Transaction]:
        matches = []
        for tx in self._transactions.values():
            if tx.owner_id != owner_id:
                continue
            if account_id and tx.account_id != account_id:
                continue
            if category_id and tx.category_id != category_id:
                continue
            if transaction_type and tx.type != transaction_type:
                continue
            matches.append(tx)

        matches.sort(key=transaction_sort_key, reverse=True)
        return [tx.model_copy(deep=True) for tx in matches[offset:offset + limit]]


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event.model_copy(deep=True))
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
