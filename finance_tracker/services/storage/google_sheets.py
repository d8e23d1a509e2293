"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets stays available as a storage backend because:
1. Users can view and export their finances directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (every write is a single row operation)
- Limited query capabilities (we filter, sort and paginate in Python)

Each table is one worksheet with a header row. Rows are located by
scanning the id column; ownership is checked in Python exactly like the
SQL backend's scoped WHERE clause.
"""

import json
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from finance_tracker.config import GoogleSheetsSettings, get_settings
from finance_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
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
    StorageConnectionError,
    StorageError,
    account_sort_key,
    category_sort_key,
    transaction_sort_key,
)


logger = structlog.get_logger(__name__)

ACCOUNT_COLUMNS = [
    "id",
    "owner_id",
    "name",
    "type",
    "currency",
    "starting_balance",
    "is_archived",
    "created_at",
    "updated_at",
]

CATEGORY_COLUMNS = [
    "id",
    "owner_id",
    "name",
    "type",
    "icon",
    "parent_category_id",
    "sort_order",
    "is_archived",
    "created_at",
    "updated_at",
]

TRANSACTION_COLUMNS = [
    "id",
    "owner_id",
    "account_id",
    "category_id",
    "type",
    "amount",
    "currency",
    "transaction_date",
    "description",
    "transfer_account_id",
    "created_at",
    "updated_at",
]

# Same order as AuditEvent.to_sheets_row()
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "user_id",
    "action",
    "correlation_id",
    "description",
    "details_json",
    "error_code",
    "error_message",
]

TABLE_COLUMNS = {
    "accounts": ACCOUNT_COLUMNS,
    "categories": CATEGORY_COLUMNS,
    "transactions": TRANSACTION_COLUMNS,
    "audit": AUDIT_COLUMNS,
}

api_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    Rows are addressed by their 1-based sheet row number; row 1 is the
    header.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[str, gspread.Worksheet] = {}
        self._settings = settings or get_settings().google_sheets

    @api_retry
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _sheet_name(self, table: str) -> str:
        return {
            "accounts": self._settings.accounts_sheet_name,
            "categories": self._settings.categories_sheet_name,
            "transactions": self._settings.transactions_sheet_name,
            "audit": self._settings.audit_sheet_name,
        }[table]

    def get_worksheet(self, table: str) -> gspread.Worksheet:
        """Get or create the worksheet backing a table."""
        if table in self._worksheets:
            return self._worksheets[table]

        spreadsheet = self.get_spreadsheet()
        columns = TABLE_COLUMNS[table]
        try:
            sheet = spreadsheet.worksheet(self._sheet_name(table))
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._sheet_name(table),
                rows=5000 if table in ("transactions", "audit") else 1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        self._worksheets[table] = sheet
        return sheet

    @api_retry
    def read_rows(self, table: str) -> list[list[str]]:
        """All data rows of a table, header excluded."""
        return self.get_worksheet(table).get_all_values()[1:]

    @api_retry
    def append_row(self, table: str, row: list) -> None:
        self.get_worksheet(table).append_row(row, value_input_option="RAW")

    @api_retry
    def update_row(self, table: str, row_number: int, row: list) -> None:
        self.get_worksheet(table).update(
            range_name=f"A{row_number}",
            values=[row],
            raw=True,
        )

    @api_retry
    def delete_row(self, table: str, row_number: int) -> None:
        self.get_worksheet(table).delete_rows(row_number)


# -- Cell conversion helpers -------------------------------------------------

def _text(value) -> str:
    if value is None:
        return ""
    return getattr(value, "value", str(value))


def _parse_bool(value: str) -> bool:
    return value.strip().lower() == "true"


def _parse_decimal(value: str) -> Optional[Decimal]:
    return Decimal(value) if value else None


def _parse_datetime(value: str) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _safe_getter(row: list) -> Callable[[int], str]:
    # Handle missing trailing columns gracefully
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default
    return safe_get


class GoogleSheetsFinanceStorage(FinanceStorageInterface):
    """
    Google Sheets implementation of finance storage.

    Accounts, categories and transactions live in one worksheet each,
    one entity per row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    # -- Row conversion -------------------------------------------------------

    @staticmethod
    def _account_to_row(account: Account) -> list:
        return [
            account.id,
            account.owner_id,
            account.name,
            _text(account.type),
            _text(account.currency),
            _text(account.starting_balance),
            str(account.is_archived),
            account.created_at.isoformat(),
            account.updated_at.isoformat(),
        ]

    @staticmethod
    def _row_to_account(row: list) -> Account:
        safe_get = _safe_getter(row)
        return Account(
            id=safe_get(0),
            owner_id=safe_get(1),
            name=safe_get(2),
            type=safe_get(3) or None,
            currency=safe_get(4) or None,
            starting_balance=_parse_decimal(safe_get(5)),
            is_archived=_parse_bool(safe_get(6)),
            created_at=_parse_datetime(safe_get(7)),
            updated_at=_parse_datetime(safe_get(8)),
        )

    @staticmethod
    def _category_to_row(category: Category) -> list:
        return [
            category.id,
            category.owner_id,
            category.name,
            _text(category.type),
            _text(category.icon),
            _text(category.parent_category_id),
            _text(category.sort_order),
            str(category.is_archived),
            category.created_at.isoformat(),
            category.updated_at.isoformat(),
        ]

    @staticmethod
    def _row_to_category(row: list) -> Category:
        safe_get = _safe_getter(row)
        return Category(
            id=safe_get(0),
            owner_id=safe_get(1),
            name=safe_get(2),
            type=TransactionType(safe_get(3)) if safe_get(3) else None,
            icon=safe_get(4) or None,
            parent_category_id=safe_get(5) or None,
            sort_order=float(safe_get(6)) if safe_get(6) else None,
            is_archived=_parse_bool(safe_get(7)),
            created_at=_parse_datetime(safe_get(8)),
            updated_at=_parse_datetime(safe_get(9)),
        )

    @staticmethod
    def _transaction_to_row(transaction: Transaction) -> list:
        return [
            transaction.id,
            transaction.owner_id,
            _text(transaction.account_id),
            _text(transaction.category_id),
            transaction.type.value,
            str(transaction.amount),
            _text(transaction.currency),
            transaction.transaction_date.isoformat(),
            _text(transaction.description),
            _text(transaction.transfer_account_id),
            transaction.created_at.isoformat(),
            transaction.updated_at.isoformat(),
        ]

    @staticmethod
    def _row_to_transaction(row: list) -> Transaction:
        safe_get = _safe_getter(row)
        return Transaction(
            id=safe_get(0),
            owner_id=safe_get(1),
            account_id=safe_get(2) or None,
            category_id=safe_get(3) or None,
            type=TransactionType(safe_get(4)),
            amount=Decimal(safe_get(5)),
            currency=safe_get(6) or None,
            transaction_date=_parse_datetime(safe_get(7)),
            description=safe_get(8) or None,
            transfer_account_id=safe_get(9) or None,
            created_at=_parse_datetime(safe_get(10)),
            updated_at=_parse_datetime(safe_get(11)),
        )

    # -- Generic row operations -----------------------------------------------

    def _load(self, table: str, parse: Callable) -> list[tuple[int, object]]:
        """Parse every row of a table, paired with its sheet row number."""
        loaded = []
        # Row 1 is the header
        for row_number, row in enumerate(self._client.read_rows(table), start=2):
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                loaded.append((row_number, parse(row)))
            except (ValueError, InvalidOperation, ValidationError) as e:
                logger.warning(
                    "sheet_row_skipped",
                    table=table,
                    row_number=row_number,
                    error=str(e),
                )
        return loaded

    def _insert(self, table: str, entity, to_row: Callable) -> None:
        try:
            for row in self._client.read_rows(table):
                if row and row[0] == entity.id:
                    raise DuplicateError(f"Duplicate id: {entity.id}")
            self._client.append_row(table, to_row(entity))
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {table} row: {e}")

    def _get(self, table: str, parse: Callable, entity_id: str, owner_id: str):
        try:
            for _, entity in self._load(table, parse):
                if entity.id == entity_id and entity.owner_id == owner_id:
                    return entity
            return None
        except Exception as e:
            raise StorageError(f"Failed to get {table} row: {e}")

    def _update(self, table: str, parse: Callable, to_row: Callable, entity) -> bool:
        try:
            for row_number, stored in self._load(table, parse):
                if stored.id == entity.id and stored.owner_id == entity.owner_id:
                    # created_at is never rewritten
                    updated = entity.model_copy(update={"created_at": stored.created_at})
                    self._client.update_row(table, row_number, to_row(updated))
                    return True
            return False
        except Exception as e:
            raise StorageError(f"Failed to update {table} row: {e}")

    def _list(self, table: str, parse: Callable, owner_id: str, include_archived: bool) -> list:
        try:
            return [
                entity for _, entity in self._load(table, parse)
                if entity.owner_id == owner_id
                and (include_archived or not entity.is_archived)
            ]
        except Exception as e:
            raise StorageError(f"Failed to list {table}: {e}")

    # -- Accounts -------------------------------------------------------------

    async def insert_account(self, account: Account) -> None:
        self._insert("accounts", account, self._account_to_row)

    async def get_account(self, account_id: str, owner_id: str) -> Optional[Account]:
        return self._get("accounts", self._row_to_account, account_id, owner_id)

    async def update_account(self, account: Account) -> bool:
        return self._update("accounts", self._row_to_account, self._account_to_row, account)

    async def list_accounts(
        self,
        owner_id: str,
        include_archived: bool = False,
    ) -> list[Account]:
        accounts = self._list("accounts", self._row_to_account, owner_id, include_archived)
        accounts.sort(key=account_sort_key)
        return accounts

    # -- Categories -----------------------------------------------------------

    async def insert_category(self, category: Category) -> None:
        self._insert("categories", category, self._category_to_row)

    async def get_category(self, category_id: str, owner_id: str) -> Optional[Category]:
        return self._get("categories", self._row_to_category, category_id, owner_id)

    async def update_category(self, category: Category) -> bool:
        return self._update("categories", self._row_to_category, self._category_to_row, category)

    async def list_categories(
        self,
        owner_id: str,
        include_archived: bool = False,
    ) -> list[Category]:
        categories = self._list("categories", self._row_to_category, owner_id, include_archived)
        categories.sort(key=category_sort_key)
        return categories

    # -- Transactions ---------------------------------------------------------

    async def insert_transaction(self, transaction: Transaction) -> None:
        self._insert("transactions", transaction, self._transaction_to_row)

    async def get_transaction(
        self,
        transaction_id: str,
        owner_id: str,
    ) -> Optional[Transaction]:
        return self._get("transactions", self._row_to_transaction, transaction_id, owner_id)

    async def update_transaction(self, transaction: Transaction) -> bool:
        return self._update(
            "transactions",
            self._row_to_transaction,
            self._transaction_to_row,
            transaction,
        )

    async def delete_transaction(self, transaction_id: str, owner_id: str) -> bool:
        try:
            for row_number, stored in self._load("transactions", self._row_to_transaction):
                if stored.id == transaction_id and stored.owner_id == owner_id:
                    self._client.delete_row("transactions", row_number)
                    return True
            return False
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")

    async def list_transactions(
        self,
        owner_id: str,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
        transaction_type: Optional[TransactionType] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Transaction]:
        try:
            transactions = []
            for _, tx in self._load("transactions", self._row_to_transaction):
                # Apply filters
                if tx.owner_id != owner_id:
                    continue
                if account_id and tx.account_id != account_id:
                    continue
                if category_id and tx.category_id != category_id:
                    continue
                if transaction_type and tx.type != transaction_type:
                    continue
                transactions.append(tx)
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}")

        # Newest first, then apply pagination
        transactions.sort(key=transaction_sort_key, reverse=True)
        return transactions[offset:offset + limit]


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _row_to_event(row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        safe_get = _safe_getter(row)
        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            user_id=safe_get(6) or None,
            action=safe_get(7) or None,
            correlation_id=UUID(safe_get(8)) if safe_get(8) else None,
            description=safe_get(9),
            details=json.loads(safe_get(10)) if safe_get(10) else {},
            error_code=safe_get(11) or None,
            error_message=safe_get(12) or None,
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._client.append_row("audit", event.to_sheets_row())
            return True
        except Exception as e:
            # Don't raise - audit logging should not break the main flow
            logger.warning("audit_write_failed", error=str(e), event_id=str(event.event_id))
            return False

    def _events(self, predicate: Callable[[AuditEvent], bool]) -> list[AuditEvent]:
        try:
            rows = self._client.read_rows("audit")
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in rows:
            if not row or not row[0]:
                continue
            try:
                event = self._row_to_event(row)
            except (ValueError, ValidationError) as e:
                logger.warning("audit_row_skipped", error=str(e))
                continue
            if predicate(event):
                events.append(event)
        return events

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        events = self._events(lambda e: e.correlation_id == correlation_id)
        # Sort chronologically
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        events = self._events(
            lambda e: e.entity_type == entity_type and e.entity_id == entity_id
        )
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        events = self._events(lambda e: True)
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
