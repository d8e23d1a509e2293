"""
Relational Schema

Table definitions for the SQL backend: accounts, categories, transactions
and the audit log. No migration tooling; tables are created on startup
with metadata.create_all().

Ids are UUID strings generated by the application. Transactions reference
accounts and categories through plain columns with no foreign keys: a
reference may dangle, and archiving never deletes.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    Index,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from finance_tracker.models.finance import (
    MONEY_DECIMAL_PLACES,
    MONEY_MAX_DIGITS,
    utc_now,
)


Money = Numeric(MONEY_MAX_DIGITS, MONEY_DECIMAL_PLACES)


class UTCDateTime(TypeDecorator):
    """
    DateTime stored as naive UTC, returned as aware UTC.

    SQLite drops tzinfo; this keeps the round trip lossless everywhere.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    pass


class AccountRow(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        Index("idx_accounts_owner", "owner_id", "is_archived"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False)

    name: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[Optional[str]] = mapped_column(String(50))
    currency: Mapped[Optional[str]] = mapped_column(String(10))
    starting_balance: Mapped[Optional[Decimal]] = mapped_column(Money)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now)


class CategoryRow(Base):
    __tablename__ = "categories"

    __table_args__ = (
        Index("idx_categories_owner", "owner_id", "is_archived"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False)

    name: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[Optional[str]] = mapped_column(String(20))
    icon: Mapped[Optional[str]] = mapped_column(String(100))
    # Self reference kept as a plain column; nesting is not enforced
    parent_category_id: Mapped[Optional[str]] = mapped_column(String(36))

    sort_order: Mapped[Optional[float]] = mapped_column(Float)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now)


class TransactionRow(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        Index("idx_transactions_owner_date", "owner_id", "transaction_date"),
        Index("idx_transactions_account", "account_id"),
        Index("idx_transactions_category", "category_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False)

    account_id: Mapped[Optional[str]] = mapped_column(String(36))
    category_id: Mapped[Optional[str]] = mapped_column(String(36))

    type: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    currency: Mapped[Optional[str]] = mapped_column(String(10))

    transaction_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now)
    description: Mapped[Optional[str]] = mapped_column(Text)

    # Other side of a transfer
    transfer_account_id: Mapped[Optional[str]] = mapped_column(String(36))

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utc_now)


class AuditEventRow(Base):
    __tablename__ = "audit_events"

    __table_args__ = (
        Index("idx_audit_correlation", "correlation_id"),
        Index("idx_audit_entity", "entity_type", "entity_id"),
    )

    event_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_type: Mapped[Optional[str]] = mapped_column(String(50))
    entity_id: Mapped[Optional[str]] = mapped_column(String(36))
    user_id: Mapped[Optional[str]] = mapped_column(String(255))
    action: Mapped[Optional[str]] = mapped_column(String(50))
    correlation_id: Mapped[Optional[str]] = mapped_column(String(36))
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    error_code: Mapped[Optional[str]] = mapped_column(String(50))
    error_message: Mapped[Optional[str]] = mapped_column(Text)
