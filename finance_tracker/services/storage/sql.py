"""
SQL Storage Implementation (SQLAlchemy)

The relational backend. Each storage call is one statement in its own
short session: a scoped select, insert, update or delete filtered by id
AND owner_id. There are no multi-statement transactions, so an action's
lookup-then-write is last-write-wins.

Works with any SQLAlchemy URL; SQLite is the default. In-memory SQLite
("sqlite://") shares one connection so every session sees the same data.
"""

from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy import and_, create_engine, delete, insert, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

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
)
from finance_tracker.services.storage.schema import (
    AccountRow,
    AuditEventRow,
    Base,
    CategoryRow,
    TransactionRow,
)


logger = structlog.get_logger(__name__)

# Columns an update may write. id, owner_id and created_at never change.
ACCOUNT_MUTABLE = ("name", "type", "currency", "starting_balance", "is_archived", "updated_at")
CATEGORY_MUTABLE = (
    "name", "type", "icon", "parent_category_id", "sort_order", "is_archived", "updated_at",
)
TRANSACTION_MUTABLE = (
    "account_id", "category_id", "type", "amount", "currency",
    "transaction_date", "description", "transfer_account_id", "updated_at",
)


def create_sql_engine(url: str, echo: bool = False) -> Engine:
    """
    Build an engine for the given URL.

    In-memory SQLite gets a single shared connection; file-based SQLite
    allows use from Streamlit's worker threads.
    """
    kwargs: dict = {"echo": echo}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    try:
        return create_engine(url, **kwargs)
    except SQLAlchemyError as e:
        raise StorageConnectionError(f"Failed to create database engine: {e}")


def _row_values(model, columns: tuple[str, ...]) -> dict:
    values = {}
    for column in columns:
        value = getattr(model, column)
        # Enums are stored by value
        values[column] = getattr(value, "value", value)
    return values


def _account_from_row(row: AccountRow) -> Account:
    return Account(
        id=row.id,
        owner_id=row.owner_id,
        name=row.name,
        type=row.type,
        currency=row.currency,
        starting_balance=row.starting_balance,
        is_archived=row.is_archived,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _category_from_row(row: CategoryRow) -> Category:
    return Category(
        id=row.id,
        owner_id=row.owner_id,
        name=row.name,
        type=TransactionType(row.type) if row.type else None,
        icon=row.icon,
        parent_category_id=row.parent_category_id,
        sort_order=row.sort_order,
        is_archived=row.is_archived,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _transaction_from_row(row: TransactionRow) -> Transaction:
    return Transaction(
        id=row.id,
        owner_id=row.owner_id,
        account_id=row.account_id,
        category_id=row.category_id,
        type=TransactionType(row.type),
        amount=row.amount,
        currency=row.currency,
        transaction_date=row.transaction_date,
        description=row.description,
        transfer_account_id=row.transfer_account_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_model(convert, row, what: str):
    """Build a model from a row; a row the model rejects is a storage fault."""
    try:
        return convert(row)
    except ValueError as e:
        # pydantic ValidationError is a ValueError too
        raise StorageError(f"Invalid {what} row {row.id}: {e}") from e


class SqlFinanceStorage(FinanceStorageInterface):
    """
    SQLAlchemy implementation of finance storage.

    Each method opens a short-lived session and runs one statement.
    """

    def __init__(self, engine: Engine, create_schema: bool = True):
        self._engine = engine
        self._session_factory = sessionmaker(engine, expire_on_commit=False)
        if create_schema:
            self.create_schema()

    @classmethod
    def from_url(cls, url: str, echo: bool = False) -> "SqlFinanceStorage":
        return cls(create_sql_engine(url, echo=echo))

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        """Create any missing tables."""
        try:
            Base.metadata.create_all(self._engine)
        except OperationalError as e:
            raise StorageConnectionError(f"Failed to create schema: {e}")

    def _session(self) -> Session:
        return self._session_factory()

    def _insert(self, table, values: dict, what: str) -> None:
        try:
            with self._session() as session, session.begin():
                session.execute(insert(table).values(**values))
        except IntegrityError as e:
            # Only an id clash is a duplicate
            if self._exists(table, values.get("id")):
                raise DuplicateError(f"Duplicate {what}: {values.get('id')}") from e
            raise StorageError(f"Failed to save {what}: {e}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to save {what}: {e}") from e

    def _exists(self, table, row_id) -> bool:
        try:
            with self._session() as session:
                return session.scalar(select(table.id).where(table.id == row_id)) is not None
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to check id: {e}") from e

    def _select_one(self, table, row_id: str, owner_id: str, what: str):
        try:
            with self._session() as session:
                return session.scalars(
                    select(table).where(and_(table.id == row_id, table.owner_id == owner_id))
                ).one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get {what}: {e}") from e

    def _update(self, table, model, columns: tuple[str, ...], what: str) -> bool:
        try:
            with self._session() as session, session.begin():
                result = session.execute(
                    update(table)
                    .where(and_(table.id == model.id, table.owner_id == model.owner_id))
                    .values(**_row_values(model, columns))
                )
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to update {what}: {e}") from e

    # -- Accounts -------------------------------------------------------------

    async def insert_account(self, account: Account) -> None:
        columns = ("id", "owner_id", "created_at") + ACCOUNT_MUTABLE
        self._insert(AccountRow, _row_values(account, columns), "account")

    async def get_account(self, account_id: str, owner_id: str) -> Optional[Account]:
        row = self._select_one(AccountRow, account_id, owner_id, "account")
        return _to_model(_account_from_row, row, "account") if row is not None else None

    async def update_account(self, account: Account) -> bool:
        return self._update(AccountRow, account, ACCOUNT_MUTABLE, "account")

    async def list_accounts(
        self,
        owner_id: str,
        include_archived: bool = False,
    ) -> list[Account]:
        stmt = select(AccountRow).where(AccountRow.owner_id == owner_id)
        if not include_archived:
            stmt = stmt.where(AccountRow.is_archived.is_(False))
        stmt = stmt.order_by(AccountRow.created_at, AccountRow.id)
        try:
            with self._session() as session:
                rows = session.scalars(stmt)
                return [_to_model(_account_from_row, row, "account") for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list accounts: {e}") from e

    # -- Categories -----------------------------------------------------------

    async def insert_category(self, category: Category) -> None:
        columns = ("id", "owner_id", "created_at") + CATEGORY_MUTABLE
        self._insert(CategoryRow, _row_values(category, columns), "category")

    async def get_category(self, category_id: str, owner_id: str) -> Optional[Category]:
        row = self._select_one(CategoryRow, category_id, owner_id, "category")
        return _to_model(_category_from_row, row, "category") if row is not None else None

    async def update_category(self, category: Category) -> bool:
        return self._update(CategoryRow, category, CATEGORY_MUTABLE, "category")

    async def list_categories(
        self,
        owner_id: str,
        include_archived: bool = False,
    ) -> list[Category]:
        stmt = select(CategoryRow).where(CategoryRow.owner_id == owner_id)
        if not include_archived:
            stmt = stmt.where(CategoryRow.is_archived.is_(False))
        stmt = stmt.order_by(
            CategoryRow.sort_order.is_(None),
            CategoryRow.sort_order,
            CategoryRow.created_at,
            CategoryRow.id,
        )
        try:
            with self._session() as session:
                rows = session.scalars(stmt)
                return [_to_model(_category_from_row, row, "category") for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list categories: {e}") from e

    # -- Transactions ---------------------------------------------------------

    async def insert_transaction(self, transaction: Transaction) -> None:
        columns = ("id", "owner_id", "created_at") + TRANSACTION_MUTABLE
        self._insert(TransactionRow, _row_values(transaction, columns), "transaction")

    async def get_transaction(
        self,
        transaction_id: str,
        owner_id: str,
    ) -> Optional[Transaction]:
        row = self._select_one(TransactionRow, transaction_id, owner_id, "transaction")
        return _to_model(_transaction_from_row, row, "transaction") if row is not None else None

    async def update_transaction(self, transaction: Transaction) -> bool:
        return self._update(TransactionRow, transaction, TRANSACTION_MUTABLE, "transaction")

    async def delete_transaction(self, transaction_id: str, owner_id: str) -> bool:
        try:
            with self._session() as session, session.begin():
                result = session.execute(
                    delete(TransactionRow).where(
                        and_(
                            TransactionRow.id == transaction_id,
                            TransactionRow.owner_id == owner_id,
                        )
                    )
                )
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to delete transaction: {e}") from e

    async def list_transactions(
        self,
        owner_id: str,
        account_id: Optional[str] = None,
        category_id: Optional[str] = None,
        transaction_type: Optional[TransactionType] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> list[Transaction]:
        filters = [TransactionRow.owner_id == owner_id]
        if account_id:
            filters.append(TransactionRow.account_id == account_id)
        if category_id:
            filters.append(TransactionRow.category_id == category_id)
        if transaction_type:
            filters.append(TransactionRow.type == TransactionType(transaction_type).value)

        stmt = (
            select(TransactionRow)
            .where(and_(*filters))
            .order_by(
                TransactionRow.transaction_date.desc(),
                TransactionRow.created_at.desc(),
                TransactionRow.id.desc(),
            )
            .limit(limit)
            .offset(offset)
        )
        try:
            with self._session() as session:
                rows = session.scalars(stmt)
                return [_to_model(_transaction_from_row, row, "transaction") for row in rows]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to list transactions: {e}") from e


class SqlAuditStorage(AuditStorageInterface):
    """
    SQLAlchemy implementation of audit log storage.

    Shares the engine of the finance storage.
    """

    def __init__(self, engine: Engine, create_schema: bool = True):
        self._session_factory = sessionmaker(engine, expire_on_commit=False)
        if create_schema:
            Base.metadata.create_all(engine, tables=[AuditEventRow.__table__])

    @staticmethod
    def _event_to_values(event: AuditEvent) -> dict:
        return {
            "event_id": str(event.event_id),
            "timestamp": event.timestamp,
            "event_type": event.event_type.value,
            "severity": event.severity.value,
            "entity_type": event.entity_type,
            "entity_id": event.entity_id,
            "user_id": event.user_id,
            "action": event.action,
            "correlation_id": str(event.correlation_id) if event.correlation_id else None,
            "description": event.description,
            "details": event.details,
            "error_code": event.error_code,
            "error_message": event.error_message,
        }

    @staticmethod
    def _row_to_event(row: AuditEventRow) -> AuditEvent:
        return AuditEvent(
            event_id=UUID(row.event_id),
            timestamp=row.timestamp,
            event_type=AuditEventType(row.event_type),
            severity=AuditSeverity(row.severity),
            entity_type=row.entity_type,
            entity_id=row.entity_id,
            user_id=row.user_id,
            action=row.action,
            correlation_id=UUID(row.correlation_id) if row.correlation_id else None,
            description=row.description,
            details=row.details or {},
            error_code=row.error_code,
            error_message=row.error_message,
        )

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            with self._session_factory() as session, session.begin():
                session.execute(insert(AuditEventRow).values(**self._event_to_values(event)))
            return True
        except SQLAlchemyError as e:
            # Audit logging should not break the main flow
            logger.warning("audit_write_failed", error=str(e), event_id=str(event.event_id))
            return False

    def _query(self, stmt) -> list[AuditEvent]:
        try:
            with self._session_factory() as session:
                return [self._row_to_event(row) for row in session.scalars(stmt)]
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to get audit events: {e}") from e

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return self._query(
            select(AuditEventRow)
            .where(AuditEventRow.correlation_id == str(correlation_id))
            .order_by(AuditEventRow.timestamp)
        )

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        return self._query(
            select(AuditEventRow)
            .where(
                and_(
                    AuditEventRow.entity_type == entity_type,
                    AuditEventRow.entity_id == entity_id,
                )
            )
            .order_by(AuditEventRow.timestamp)
        )

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return self._query(
            select(AuditEventRow)
            .order_by(AuditEventRow.timestamp.desc())
            .limit(limit)
        )
