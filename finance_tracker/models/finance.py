"""
Core Data Models for Finance Tracker

These models define the strict schemas for everything flowing through the
action layer:
1. Stored entities (Account, Category, Transaction)
2. Action inputs (create / update / list shapes)
3. Response payloads wrapped by the result envelope

Field names are snake_case in Python and camelCase on the wire; every model
accepts either on input.

Update inputs are patches: a field left out of the input keeps its stored
value, a field sent as null clears it. pydantic's ``model_fields_set`` is
what tells the two apart.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional
from uuid import uuid4

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Opaque unique identifier for a new row."""
    return str(uuid4())


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]

# Money precision; every storage backend keeps at least this much.
MONEY_MAX_DIGITS = 18
MONEY_DECIMAL_PLACES = 4


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money movement. Also used to type categories."""
    EXPENSE = "expense"
    INCOME = "income"
    TRANSFER = "transfer"


class FinanceModel(BaseModel):
    """Shared config: camelCase aliases, whitespace stripping."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# STORED ENTITIES
# =============================================================================

class Account(FinanceModel):
    """
    A place money lives: cash, a bank account, a card, a wallet.

    Owned exclusively by its creator. Never hard-deleted; archived instead.
    """

    id: str = Field(
        default_factory=new_id,
        description="Unique account ID"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="ID of the user who owns this account"
    )
    name: str = Field(
        ...,
        min_length=1,
        description="Display name, e.g. 'Cash' or 'HDFC Savings'"
    )
    type: Optional[str] = Field(
        default=None,
        description="Free-text kind: cash, bank, card, wallet"
    )
    currency: Optional[str] = Field(
        default=None,
        description="Currency code, e.g. AED or INR"
    )
    starting_balance: Optional[Decimal] = Field(
        default=None,
        allow_inf_nan=False,
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        description="Opening balance when the account was added"
    )
    is_archived: bool = Field(
        default=False,
        description="Archived accounts are hidden from default listings"
    )
    created_at: UtcDatetime = Field(default_factory=utc_now)
    updated_at: UtcDatetime = Field(default_factory=utc_now)

    @field_serializer("starting_balance", when_used="json")
    def serialize_balance(self, value: Optional[Decimal]) -> Optional[float]:
        return float(value) if value is not None else None


class Category(FinanceModel):
    """
    A label for transactions: 'Groceries', 'Rent', 'Salary'.

    parent_category_id is stored as given. No cycle or depth checks.
    """

    id: str = Field(
        default_factory=new_id,
        description="Unique category ID"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="ID of the user who owns this category"
    )
    name: str = Field(
        ...,
        min_length=1,
        description="Display name"
    )
    type: Optional[TransactionType] = Field(
        default=None,
        description="Kind of transactions this category is meant for"
    )
    icon: Optional[str] = None
    parent_category_id: Optional[str] = Field(
        default=None,
        description="Optional parent for nested categories"
    )
    sort_order: Optional[float] = Field(
        default=None,
        description="Position in listings; unset sorts last"
    )
    is_archived: bool = False
    created_at: UtcDatetime = Field(default_factory=utc_now)
    updated_at: UtcDatetime = Field(default_factory=utc_now)


class Transaction(FinanceModel):
    """
    A single movement of money.

    account_id / category_id / transfer_account_id are plain references.
    They may dangle once the referenced row is archived.
    """

    id: str = Field(
        default_factory=new_id,
        description="Unique transaction ID"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="ID of the user who owns this transaction"
    )
    account_id: Optional[str] = None
    category_id: Optional[str] = None
    type: TransactionType = Field(
        ...,
        description="expense, income or transfer"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
        description="Always positive; direction comes from type"
    )
    currency: Optional[str] = Field(
        default=None,
        description="Overrides the account currency when set"
    )
    transaction_date: UtcDatetime = Field(
        default_factory=utc_now,
        description="When the money moved"
    )
    description: Optional[str] = None
    transfer_account_id: Optional[str] = Field(
        default=None,
        description="Other side of a transfer"
    )
    created_at: UtcDatetime = Field(default_factory=utc_now)
    updated_at: UtcDatetime = Field(default_factory=utc_now)

    @field_serializer("amount", when_used="json")
    def serialize_amount(self, value: Decimal) -> float:
        return float(value)


# =============================================================================
# ACTION INPUTS
# =============================================================================

class ActionInput(FinanceModel):
    """Base for action inputs. Unknown keys are dropped."""

    model_config = ConfigDict(extra="ignore")


class PatchInput(ActionInput):
    """Base for update inputs."""

    id: str

    def changes(self) -> dict[str, Any]:
        """Fields the caller sent, keyed by field name, without the id."""
        return self.model_dump(exclude_unset=True, exclude={"id"})


class EntityIdInput(ActionInput):
    """Input for archive / delete actions."""

    id: str


class CreateAccountInput(ActionInput):
    name: str = Field(..., min_length=1)
    type: Optional[str] = None
    currency: Optional[str] = None
    starting_balance: Optional[Decimal] = Field(
        default=None,
        allow_inf_nan=False,
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
    )


class UpdateAccountInput(PatchInput):
    name: Optional[str] = Field(default=None, min_length=1)
    type: Optional[str] = None
    currency: Optional[str] = None
    starting_balance: Optional[Decimal] = Field(
        default=None,
        allow_inf_nan=False,
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
    )
    is_archived: Optional[bool] = None

    @field_validator("name", "is_archived")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        # Only runs for values the caller actually sent; defaults skip validation.
        if v is None:
            raise ValueError("cannot be cleared; omit the field to keep its value")
        return v


class CreateCategoryInput(ActionInput):
    name: str = Field(..., min_length=1)
    type: Optional[TransactionType] = None
    icon: Optional[str] = None
    parent_category_id: Optional[str] = None
    sort_order: Optional[float] = None


class UpdateCategoryInput(PatchInput):
    name: Optional[str] = Field(default=None, min_length=1)
    type: Optional[TransactionType] = None
    icon: Optional[str] = None
    parent_category_id: Optional[str] = None
    sort_order: Optional[float] = None
    is_archived: Optional[bool] = None

    @field_validator("name", "is_archived")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("cannot be cleared; omit the field to keep its value")
        return v


class CreateTransactionInput(ActionInput):
    account_id: Optional[str] = None
    category_id: Optional[str] = None
    type: TransactionType
    amount: Decimal = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
    )
    currency: Optional[str] = None
    transaction_date: Optional[UtcDatetime] = None
    description: Optional[str] = None
    transfer_account_id: Optional[str] = None


class UpdateTransactionInput(PatchInput):
    account_id: Optional[str] = None
    category_id: Optional[str] = None
    type: Optional[TransactionType] = None
    amount: Optional[Decimal] = Field(
        default=None,
        gt=0,
        allow_inf_nan=False,
        max_digits=MONEY_MAX_DIGITS,
        decimal_places=MONEY_DECIMAL_PLACES,
    )
    currency: Optional[str] = None
    transaction_date: Optional[UtcDatetime] = None
    description: Optional[str] = None
    transfer_account_id: Optional[str] = None

    @field_validator("type", "amount", "transaction_date")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("cannot be cleared; omit the field to keep its value")
        return v


class ListEntitiesInput(ActionInput):
    """Input for listing accounts or categories."""

    include_archived: bool = False


class ListTransactionsInput(ActionInput):
    account_id: Optional[str] = None
    category_id: Optional[str] = None
    type: Optional[TransactionType] = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1)

    @field_validator("account_id", "category_id", "type", mode="before")
    @classmethod
    def blank_is_absent(cls, v: Any) -> Any:
        # Filter widgets send "" for "no filter"
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


# =============================================================================
# RESPONSE PAYLOADS
# =============================================================================

class AccountPayload(FinanceModel):
    account: Account


class CategoryPayload(FinanceModel):
    category: Category


class TransactionPayload(FinanceModel):
    transaction: Transaction


class AccountList(FinanceModel):
    """
    Listed accounts.

    total is the number of items returned, not a separate count query.
    """

    items: list[Account] = Field(default_factory=list)
    total: int = Field(ge=0)


class CategoryList(FinanceModel):
    items: list[Category] = Field(default_factory=list)
    total: int = Field(ge=0)


class TransactionPage(FinanceModel):
    """
    One page of transactions.

    total counts the items on this page only.
    """

    items: list[Transaction] = Field(default_factory=list)
    total: int = Field(ge=0)
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
