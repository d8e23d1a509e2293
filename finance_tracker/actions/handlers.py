"""
Action Handlers

DESIGN DECISION: Every action follows the same fixed pipeline:

    validate input -> require a signed-in user -> (scoped lookup)
    -> one storage statement -> ActionResult

The pipeline lives in one place (FinanceActions._run) so that no action
can skip the ownership guard or leak an exception to the caller.

Error handling:
- ActionError (unauthorized, not found, bad input) becomes a failed
  ActionResult. It is audited, never raised.
- StorageError is audited and re-raised. A broken database is not a
  user error and must not be reported as one.

Storage is injected. There is no module-level client.
"""

from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel, ValidationError

from finance_tracker.actions.lookups import (
    get_account_for_user,
    get_category_for_user,
    get_transaction_for_user,
)
from finance_tracker.actions.results import ActionResult
from finance_tracker.audit import AuditLogger, create_correlation_id
from finance_tracker.auth import RequestContext, User, require_user
from finance_tracker.errors import ActionError, InputValidationError, NotFoundError
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
    UpdateAccountInput,
    UpdateCategoryInput,
    UpdateTransactionInput,
    utc_now,
)
from finance_tracker.services.storage import FinanceStorageInterface, StorageError


InputT = TypeVar("InputT", bound=BaseModel)
EntityT = TypeVar("EntityT", bound=BaseModel)
RawInput = Optional[Union[Mapping[str, Any], BaseModel]]
Handler = Callable[[User, Any, Any], Awaitable[Any]]


def apply_patch(entity: EntityT, changes: dict[str, Any]) -> EntityT:
    """
    Merge a patch into a stored entity and refresh updated_at.

    Keys missing from `changes` keep their stored value; a key mapped
    to None clears the field.
    """
    return entity.model_copy(update={**changes, "updated_at": utc_now()})


class FinanceActions:
    """
    Authenticated CRUD actions over accounts, categories and transactions.

    Every public method takes the request context and a raw input mapping
    (camelCase or snake_case keys) and returns an ActionResult.
    """

    def __init__(
        self,
        storage: FinanceStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit = audit_logger or AuditLogger()

    @property
    def storage(self) -> FinanceStorageInterface:
        return self._storage

    # =========================================================================
    # PIPELINE
    # =========================================================================

    @staticmethod
    def _parse(input_model: type[InputT], raw_input: RawInput) -> InputT:
        if isinstance(raw_input, input_model):
            return raw_input
        if isinstance(raw_input, BaseModel):
            raw_input = raw_input.model_dump(exclude_unset=True)
        try:
            return input_model.model_validate(raw_input if raw_input is not None else {})
        except ValidationError as e:
            raise InputValidationError.from_pydantic(e)

    async def _run(
        self,
        action: str,
        context: Optional[RequestContext],
        raw_input: RawInput,
        input_model: type[BaseModel],
        handler: Handler,
    ) -> ActionResult:
        correlation_id = (
            context.correlation_id if context is not None else create_correlation_id()
        )
        user_id: Optional[str] = None

        try:
            params = self._parse(input_model, raw_input)
            user = require_user(context)
            user_id = user.id
            data = await handler(user, params, correlation_id)
            return ActionResult.ok(data)

        except ActionError as e:
            await self._audit.log_action_rejected(
                action=action,
                error_code=e.code.value,
                error_message=e.message,
                correlation_id=correlation_id,
                user_id=user_id,
                entity_id=getattr(e, "entity_id", None),
                issues=[issue.model_dump() for issue in getattr(e, "issues", [])],
            )
            return ActionResult.failure(e)

        except StorageError as e:
            await self._audit.log_storage_error(
                action=action,
                error_message=str(e),
                correlation_id=correlation_id,
                user_id=user_id,
            )
            raise

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    async def create_account(
        self,
        context: Optional[RequestContext],
        raw_input: RawInput = None,
    ) -> ActionResult[AccountPayload]:
        """Create an account owned by the caller."""

        async def handler(user: User, params: CreateAccountInput, correlation_id):
            now = utc_now()
            account = Account(
                owner_id=user.id,
                created_at=now,
                updated_at=now,
                **params.model_dump(),
            )
            await self._storage.insert_account(account)
            await self._audit.log_entity_created(
                "account", account.id, user.id, correlation_id,
                details={"name": account.name},
            )
            return AccountPayload(account=account)

        return await self._run(
            "create_account", context, raw_input, CreateAccountInput, handler
        )

    async def update_account(
        self,
        context: Optional[RequestContext],
        raw_input: RawInput = None,
    ) -> ActionResult[AccountPayload]:
        """Patch an owned account. Returns the merged row."""

        async def handler(user: User, params: UpdateAccountInput, correlation_id):
            account = await get_account_for_user(self._storage, params.id, user.id)
            if account is None:
                raise NotFoundError("Account", params.id)

            changes = params.changes()
            updated = apply_patch(account, changes)
            if not await self._storage.update_account(updated):
                raise NotFoundError("Account", params.id)

            await self._audit.log_entity_updated(
                "account", updated.id, user.id, list(changes), correlation_id
            )
            return AccountPayload(account=updated)

        return await self._run(
            "update_account", context, raw_input, UpdateAccountInput, handler
        )

    async def archive_account(
        self,
        context: Optional[RequestContext],
        raw_input: RawInput = None,
    ) -> ActionResult[AccountPayload]:
        """Hide an owned account from default listings. Idempotent."""

        async def handler(user: User, params: EntityIdInput, correlation_id):
            account = await get_account_for_user(self._storage, params.id, user.id)
            if account is None:
                raise NotFoundError("Account", params.id)

            archived = apply_patch(account, {"is_archived": True})
            if not await self._storage.update_account(archived):
                raise NotFoundError("Account", params.id)

            await self._audit.log_entity_archived(
                "account", archived.id, user.id, correlation_id
            )
            return AccountPayload(account=archived)

        return await self._run(
            "archive_account", context, raw_input, EntityIdInput, handler
        )

    async def list_accounts(
        self,
        context: Optional[RequestContext],
        raw_input: RawInput = None,
    ) -> ActionResult[AccountList]:
        async def handler(user: User, params: ListEntitiesInput, correlation_id):
            items = await self._storage.list_accounts(
                user.id, include_archived=params.include_archived
            )
            await self._audit.log_list_queried(
                "accounts", user.id, len(items),
                params.model_dump(mode="json"), correlation_id,
            )
            return AccountList(items=items, total=len(items))

        return await self._run(
            "list_accounts", context, raw_input, ListEntitiesInput, handler
        )

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    async def create_category(
        self,
        context: Optional[RequestContext],
        raw_input: RawInput = None,
    ) -> ActionResult[CategoryPayload]:
        """Create a category owned by the caller."""

        async def handler(user: User, params: CreateCategoryInput, correlation_id):
            now = utc_now()
            category = Category(
                owner_id=user.id,
                created_at=now,
                updated_at=now,
                **params.model_dump(),
            )
            await self._storage.insert_category(category)
            await self._audit.log_entity_created(
                "category", category.id, user.id, correlation_id,
                details={"name": category.name},
            )
            return CategoryPayload(category=category)

        return await self._run(
            "create_category", context, raw_input, CreateCategoryInput, handler
        )

    async def update_category(
        self,
        context: Optional[RequestContext],
        raw_input: RawInput = None,
    ) -> ActionResult[CategoryPayload]:
        """Patch an owned category. Returns the merged row."""

        async def handler(user: User, params: UpdateCategoryInput, correlation_id):
            category = await get_category_for_user(self._storage, params.id, user.id)
            if category is None:
                raise NotFoundError("Category", params.id)

            changes = params.changes()
            updated = apply_patch(category, changes)
            if not await self._storage.update_category(updated):
                raise NotFoundError("Category", params.id)

            await self._audit.log_entity_updated(
                "category", updated.id, user.id, list(changes), correlation_id
            )
            return CategoryPayload(category=updated)

        return await self._run(
            "update_category", context, raw_input, UpdateCategoryInput, handler
        )

    async def archive_category(
        self,
        context: Optional[RequestContext],
        raw_input: RawInput = None,
    ) -> ActionResult[CategoryPayload]:
        """Hide an owned category from default listings. Idempotent."""

        async def handler(user: User, params: EntityIdInput, correlation_id):
            category = await get_category_for_user(self._storage, params.id, user.id)
            if category is None:
                raise NotFoundError("Category", params.id)

            archived = apply_patch(category, {"is_archived": True})
            if not await self._storage.update_category(archived):
                raise NotFoundError("Category", params.id)

            await self._audit.log_entity_archived(
                "category", archived.id, user.id, correlation_id
            )
            return CategoryPayload(category=archived)

        return await self._run(
            "archive_category", context, raw_input, EntityIdInput, handler
        )

    async def list_categories(
        self,
        context: Optional[RequestContext],
        raw_input: RawInput = None,
    ) -> ActionResult[CategoryList]:
        async def handler(user: User, params: ListEntitiesInput, correlation_id):
            items = await self._storage.list_categories(
                user.id, include_archived=params.include_archived
            )
            await self._audit.log_list_queried(
                "categories", user.id, len(items),
                params.model_dump(mode="json"), correlation_id,
            )
            return CategoryList(items=items, total=len(items))

        return await self._run(
            "list_categories", context, raw_input, ListEntitiesInput, handler
        )

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    async def create_transaction(
        self,
        context: Optional[RequestContext],
        raw_input: RawInput = None,
    ) -> ActionResult[TransactionPayload]:
        """
        Record a transaction owned by the caller.

        transaction_date defaults to now. account_id and category_id are
        stored as given; they are not checked against existing rows.
        """

        async def handler(user: User, params: CreateTransactionInput, correlation_id):
            now = utc_now()
            values = params.model_dump()
            if values.get("transaction_date") is None:
                values["transaction_date"] = now

            transaction = Transaction(
                owner_id=user.id,
                created_at=now,
                updated_at=now,
                **values,
            )
            await self._storage.insert_transaction(transaction)
            await self._audit.log_entity_created(
                "transaction", transaction.id, user.id, correlation_id,
                details={
                    "type": transaction.type.value,
                    "amount": str(transaction.amount),
                },
            )
            return TransactionPayload(transaction=transaction)

        return await self._run(
            "create_transaction", context, raw_input, CreateTransactionInput, handler
        )

    async def update_transaction(
        self,
        context: Optional[RequestContext],
        raw_input: RawInput = None,
    ) -> ActionResult[TransactionPayload]:
        """Patch an owned transaction. Returns the merged row."""

        async def handler(user: User, params: UpdateTransactionInput, correlation_id):
            transaction = await get_transaction_for_user(
                self._storage, params.id, user.id
            )
            if transaction is None:
                raise NotFoundError("Transaction", params.id)

            changes = params.changes()
            updated = apply_patch(transaction, changes)
            if not await self._storage.update_transaction(updated):
                raise NotFoundError("Transaction", params.id)

            await self._audit.log_entity_updated(
                "transaction", updated.id, user.id, list(changes), correlation_id
            )
            return TransactionPayload(transaction=updated)

        return await self._run(
            "update_transaction", context, raw_input, UpdateTransactionInput, handler
        )

    async def delete_transaction(
        self,
        context: Optional[RequestContext],
        raw_input: RawInput = None,
    ) -> ActionResult[None]:
        """
        Hard-delete an owned transaction.

        Succeeds with no data. The deleted row survives only as a
        snapshot in the audit log.
        """

        async def handler(user: User, params: EntityIdInput, correlation_id):
            transaction = await get_transaction_for_user(
                self._storage, params.id, user.id
            )
            if transaction is None:
                raise NotFoundError("Transaction", params.id)

            if not await self._storage.delete_transaction(params.id, user.id):
                raise NotFoundError("Transaction", params.id)

            await self._audit.log_transaction_deleted(
                transaction.id, user.id,
                transaction.model_dump(mode="json"), correlation_id,
            )
            return None

        return await self._run(
            "delete_transaction", context, raw_input, EntityIdInput, handler
        )

    async def list_transactions(
        self,
        context: Optional[RequestContext],
        raw_input: RawInput = None,
    ) -> ActionResult[TransactionPage]:
        """
        One page of the caller's transactions, newest first.

        total is the size of this page, not the number of matches.
        """

        async def handler(user: User, params: ListTransactionsInput, correlation_id):
            items = await self._storage.list_transactions(
                user.id,
                account_id=params.account_id,
                category_id=params.category_id,
                transaction_type=params.type,
                limit=params.page_size,
                offset=params.offset,
            )
            await self._audit.log_list_queried(
                "transactions", user.id, len(items),
                params.model_dump(mode="json"), correlation_id,
            )
            return TransactionPage(
                items=items,
                total=len(items),
                page=params.page,
                page_size=params.page_size,
            )

        return await self._run(
            "list_transactions", context, raw_input, ListTransactionsInput, handler
        )
