"""
Tests for the action layer

Test strategy:
1. Every action runs against in-memory storage and in-memory SQLite
2. Failures are checked through the result envelope, never via exceptions
3. Cross-owner access must look exactly like a missing row
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from finance_tracker.actions import FinanceActions
from finance_tracker.audit import AuditLogger
from finance_tracker.auth import UNAUTHORIZED_MESSAGE
from finance_tracker.errors import ErrorCode, NotFoundError
from finance_tracker.models import Account, AuditEventType, Transaction, TransactionType
from finance_tracker.services.storage import InMemoryFinanceStorage, StorageError


async def make_account(actions, context, **fields):
    result = await actions.create_account(context, {"name": "Cash", **fields})
    assert result.success, result.error
    return result.data.account


async def make_category(actions, context, **fields):
    result = await actions.create_category(context, {"name": "Groceries", **fields})
    assert result.success, result.error
    return result.data.category


async def make_transaction(actions, context, **fields):
    payload = {"type": "expense", "amount": 10, **fields}
    result = await actions.create_transaction(context, payload)
    assert result.success, result.error
    return result.data.transaction


class TestEndToEnd:
    """The canonical account -> transaction -> list flow."""

    async def test_cash_account_flow(self, actions, alice):
        """Test create account, record an expense, list it back."""
        before = datetime.now(timezone.utc)

        account_result = await actions.create_account(alice, {"name": "Cash"})
        envelope = account_result.to_dict()
        assert envelope["success"] is True
        account = envelope["data"]["account"]
        assert account["name"] == "Cash"
        assert account["isArchived"] is False
        assert account["id"]

        tx_result = await actions.create_transaction(alice, {
            "type": "expense",
            "amount": 50,
            "accountId": account["id"],
        })
        transaction = tx_result.unwrap().transaction
        assert transaction.transaction_date >= before
        assert transaction.amount == Decimal("50")

        page = (await actions.list_transactions(alice, {"accountId": account["id"]})).unwrap()
        assert [tx.id for tx in page.items] == [transaction.id]
        assert page.total == 1
        assert page.page == 1
        assert page.page_size == 20


class TestAuthorization:
    """Every action fails closed without a user."""

    @pytest.mark.parametrize("action, payload", [
        ("create_account", {"name": "Cash"}),
        ("update_account", {"id": "a1"}),
        ("archive_account", {"id": "a1"}),
        ("list_accounts", {}),
        ("create_category", {"name": "Food"}),
        ("update_category", {"id": "c1"}),
        ("archive_category", {"id": "c1"}),
        ("list_categories", {}),
        ("create_transaction", {"type": "income", "amount": 1}),
        ("update_transaction", {"id": "t1"}),
        ("delete_transaction", {"id": "t1"}),
        ("list_transactions", {}),
    ])
    async def test_anonymous_caller_rejected(self, actions, storage, anonymous, action, payload):
        """Test each action returns UNAUTHORIZED and writes nothing."""
        result = await getattr(actions, action)(anonymous, payload)

        assert result.success is False
        assert result.error.code == ErrorCode.UNAUTHORIZED
        assert result.error.message == UNAUTHORIZED_MESSAGE
        assert await storage.list_accounts("", include_archived=True) == []

    async def test_missing_context_rejected(self, actions):
        """Test a None context is treated as signed out."""
        result = await actions.list_accounts(None)
        assert result.error.code == ErrorCode.UNAUTHORIZED

    async def test_invalid_input_reported_before_auth(self, actions, anonymous):
        """Test shape checks run before the guard."""
        result = await actions.create_account(anonymous, {})
        assert result.error.code == ErrorCode.BAD_REQUEST


class TestCreateActions:
    """Tests for create_account / create_category / create_transaction."""

    async def test_create_then_lookup_matches(self, actions, storage, alice):
        """Test the stored row equals the returned row."""
        account = await make_account(
            actions, alice, type="bank", currency="AED", startingBalance="1500.25"
        )
        stored = await storage.get_account(account.id, "user-alice")
        assert stored == account
        assert stored.owner_id == "user-alice"
        assert stored.created_at == stored.updated_at

    async def test_owner_comes_from_context(self, actions, alice):
        """Test a forged ownerId in the input is ignored."""
        account = await make_account(actions, alice, ownerId="user-mallory")
        assert account.owner_id == "user-alice"

    async def test_duplicate_names_allowed(self, actions, alice):
        """Test names are not unique."""
        first = await make_account(actions, alice, name="Wallet")
        second = await make_account(actions, alice, name="Wallet")
        assert first.id != second.id

    async def test_blank_name_rejected(self, actions, alice):
        """Test a whitespace-only name is a validation error."""
        result = await actions.create_category(alice, {"name": "   "})
        assert result.error.code == ErrorCode.BAD_REQUEST
        assert result.error.issues[0].field == "name"

    async def test_category_fields(self, actions, alice):
        """Test optional category fields are stored."""
        parent = await make_category(actions, alice, name="Home")
        child = await make_category(
            actions, alice,
            name="Rent", type="expense", icon="🏠",
            parentCategoryId=parent.id, sortOrder=2,
        )
        assert child.type == TransactionType.EXPENSE
        assert child.parent_category_id == parent.id
        assert child.sort_order == 2
        assert child.is_archived is False

    @pytest.mark.parametrize("amount", [0, -1, "-0.01"])
    async def test_non_positive_amount_rejected(self, actions, storage, alice, amount):
        """Test amount <= 0 is rejected on create."""
        result = await actions.create_transaction(alice, {"type": "expense", "amount": amount})
        assert result.error.code == ErrorCode.BAD_REQUEST
        assert await storage.list_transactions("user-alice") == []

    async def test_explicit_transaction_date_kept(self, actions, alice):
        """Test a supplied transactionDate is not overwritten."""
        when = datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)
        tx = await make_transaction(actions, alice, transactionDate=when.isoformat())
        assert tx.transaction_date == when

    async def test_references_not_checked(self, actions, alice):
        """Test dangling account / category ids are stored as given."""
        tx = await make_transaction(
            actions, alice, accountId="missing", categoryId="also-missing",
            type="transfer", transferAccountId="elsewhere",
        )
        assert tx.account_id == "missing"
        assert tx.transfer_account_id == "elsewhere"

    async def test_create_is_audited(self, actions, audit_storage, alice):
        """Test a create leaves an audit event with the request correlation id."""
        account = await make_account(actions, alice)
        events = await audit_storage.get_events_by_correlation_id(alice.correlation_id)
        assert [e.event_type for e in events] == [AuditEventType.ACCOUNT_CREATED]
        assert events[0].entity_id == account.id
        assert events[0].user_id == "user-alice"


class TestUpdateActions:
    """Tests for patch semantics."""

    async def test_id_only_update_touches_only_updated_at(self, actions, alice):
        """Test an empty patch changes nothing but updatedAt."""
        account = await make_account(actions, alice, type="bank", currency="INR")

        updated = (await actions.update_account(alice, {"id": account.id})).unwrap().account

        assert updated.updated_at >= account.updated_at
        assert updated.model_dump(exclude={"updated_at"}) == account.model_dump(exclude={"updated_at"})

    async def test_single_field_update(self, actions, storage, alice):
        """Test patching one field leaves the others untouched."""
        tx = await make_transaction(actions, alice, description="Lunch", currency="AED")

        result = await actions.update_transaction(alice, {"id": tx.id, "amount": "42.5"})
        updated = result.unwrap().transaction

        assert updated.amount == Decimal("42.5")
        assert updated.model_dump(exclude={"amount", "updated_at"}) == tx.model_dump(
            exclude={"amount", "updated_at"}
        )
        assert await storage.get_transaction(tx.id, "user-alice") == updated

    async def test_explicit_null_clears_optional_field(self, actions, alice):
        """Test null clears a field while absence keeps it."""
        account = await make_account(actions, alice, currency="AED", type="cash")

        updated = (await actions.update_account(
            alice, {"id": account.id, "currency": None}
        )).unwrap().account

        assert updated.currency is None
        assert updated.type == "cash"

    async def test_null_on_required_field_rejected(self, actions, alice):
        """Test null on name / amount is a validation error."""
        account = await make_account(actions, alice)
        tx = await make_transaction(actions, alice)

        result = await actions.update_account(alice, {"id": account.id, "name": None})
        assert result.error.code == ErrorCode.BAD_REQUEST

        result = await actions.update_transaction(alice, {"id": tx.id, "amount": None})
        assert result.error.code == ErrorCode.BAD_REQUEST

    @pytest.mark.parametrize("amount", [0, -20])
    async def test_non_positive_amount_rejected_on_update(self, actions, storage, alice, amount):
        """Test amount <= 0 is rejected on update and nothing changes."""
        tx = await make_transaction(actions, alice)
        result = await actions.update_transaction(alice, {"id": tx.id, "amount": amount})
        assert result.error.code == ErrorCode.BAD_REQUEST
        assert (await storage.get_transaction(tx.id, "user-alice")).amount == tx.amount

    async def test_created_at_and_owner_immutable(self, actions, alice):
        """Test a patch cannot move createdAt or ownerId."""
        category = await make_category(actions, alice)
        updated = (await actions.update_category(alice, {
            "id": category.id,
            "createdAt": "2000-01-01T00:00:00Z",
            "ownerId": "user-bob",
            "name": "Food",
        })).unwrap().category
        assert updated.created_at == category.created_at
        assert updated.owner_id == "user-alice"
        assert updated.name == "Food"

    async def test_update_can_unarchive(self, actions, alice):
        """Test isArchived can be set back to false through update."""
        account = await make_account(actions, alice)
        await actions.archive_account(alice, {"id": account.id})
        result = await actions.update_account(alice, {"id": account.id, "isArchived": False})
        assert result.unwrap().account.is_archived is False

    async def test_update_unknown_id(self, actions, alice):
        """Test a missing row is NOT_FOUND."""
        result = await actions.update_category(alice, {"id": "nope", "name": "x"})
        assert result.error.code == ErrorCode.NOT_FOUND
        assert result.error.message == "Category not found."

    async def test_update_missing_id_is_bad_request(self, actions, alice):
        """Test the id is required."""
        result = await actions.update_transaction(alice, {"amount": 5})
        assert result.error.code == ErrorCode.BAD_REQUEST

    async def test_update_audits_fields(self, actions, audit_storage, alice):
        """Test the update event names the patched fields."""
        account = await make_account(actions, alice)
        await actions.update_account(alice, {"id": account.id, "name": "Bank", "currency": "INR"})
        events = await audit_storage.get_events_by_entity("account", account.id)
        assert events[-1].event_type == AuditEventType.ACCOUNT_UPDATED
        assert events[-1].details["fields"] == ["currency", "name"]


class TestArchiveActions:
    """Tests for archive_account / archive_category."""

    async def test_archive_is_idempotent(self, actions, alice):
        """Test archiving twice succeeds and stays archived."""
        account = await make_account(actions, alice)

        first = (await actions.archive_account(alice, {"id": account.id})).unwrap().account
        second = (await actions.archive_account(alice, {"id": account.id})).unwrap().account

        assert first.is_archived is True
        assert second.is_archived is True
        assert second.updated_at >= first.updated_at

    async def test_archive_category(self, actions, alice):
        """Test categories archive the same way."""
        category = await make_category(actions, alice)
        result = await actions.archive_category(alice, {"id": category.id})
        assert result.unwrap().category.is_archived is True

    async def test_archive_does_not_cascade(self, actions, alice):
        """Test transactions keep pointing at an archived account."""
        account = await make_account(actions, alice)
        tx = await make_transaction(actions, alice, accountId=account.id)
        await actions.archive_account(alice, {"id": account.id})

        page = (await actions.list_transactions(alice, {"accountId": account.id})).unwrap()
        assert [t.id for t in page.items] == [tx.id]

    async def test_archive_unknown_id(self, actions, alice):
        """Test a missing row is NOT_FOUND."""
        result = await actions.archive_account(alice, {"id": "nope"})
        assert result.error.code == ErrorCode.NOT_FOUND
        assert result.error.message == "Account not found."


class TestDeleteAction:
    """Tests for delete_transaction."""

    async def test_delete_returns_bare_success(self, actions, alice):
        """Test delete has no data payload."""
        tx = await make_transaction(actions, alice)
        result = await actions.delete_transaction(alice, {"id": tx.id})
        assert result.to_dict() == {"success": True}
        assert result.data is None

    async def test_delete_removes_only_that_row(self, actions, storage, alice):
        """Test the deleted row is gone and others remain."""
        keep = await make_transaction(actions, alice, description="keep")
        drop = await make_transaction(actions, alice, description="drop")

        await actions.delete_transaction(alice, {"id": drop.id})

        assert await storage.get_transaction(drop.id, "user-alice") is None
        assert await storage.get_transaction(keep.id, "user-alice") == keep

    async def test_delete_twice(self, actions, alice):
        """Test the second delete reports NOT_FOUND."""
        tx = await make_transaction(actions, alice)
        await actions.delete_transaction(alice, {"id": tx.id})
        result = await actions.delete_transaction(alice, {"id": tx.id})
        assert result.error.code == ErrorCode.NOT_FOUND
        assert result.error.message == "Transaction not found."

    async def test_delete_keeps_snapshot_in_audit(self, actions, audit_storage, alice):
        """Test the deleted row is recoverable from the audit log."""
        tx = await make_transaction(actions, alice, description="Taxi")
        await actions.delete_transaction(alice, {"id": tx.id})

        events = await audit_storage.get_events_by_entity("transaction", tx.id)
        deleted = events[-1]
        assert deleted.event_type == AuditEventType.TRANSACTION_DELETED
        assert deleted.details["snapshot"]["description"] == "Taxi"


class TestCrossOwnerAccess:
    """Another owner's ids behave exactly like unknown ids."""

    async def test_account_invisible_to_other_owner(self, actions, storage, alice, bob):
        """Test update / archive by another owner is NOT_FOUND and harmless."""
        account = await make_account(actions, alice)

        update = await actions.update_account(bob, {"id": account.id, "name": "Stolen"})
        archive = await actions.archive_account(bob, {"id": account.id})

        for result in (update, archive):
            assert result.error.code == ErrorCode.NOT_FOUND
            assert result.data is None
            assert "Cash" not in str(result.to_dict())
        assert await storage.get_account(account.id, "user-alice") == account

    async def test_category_invisible_to_other_owner(self, actions, alice, bob):
        """Test categories are scoped the same way."""
        category = await make_category(actions, alice)
        result = await actions.archive_category(bob, {"id": category.id})
        assert result.error.code == ErrorCode.NOT_FOUND

    async def test_transaction_invisible_to_other_owner(self, actions, storage, alice, bob):
        """Test update / delete by another owner is NOT_FOUND and harmless."""
        tx = await make_transaction(actions, alice)

        update = await actions.update_transaction(bob, {"id": tx.id, "amount": 999})
        delete = await actions.delete_transaction(bob, {"id": tx.id})

        assert update.error.code == ErrorCode.NOT_FOUND
        assert delete.error.code == ErrorCode.NOT_FOUND
        assert await storage.get_transaction(tx.id, "user-alice") == tx

    async def test_lists_are_owner_scoped(self, actions, alice, bob):
        """Test lists never include another owner's rows."""
        await make_account(actions, alice)
        await make_category(actions, alice)
        await make_transaction(actions, alice)

        assert (await actions.list_accounts(bob)).unwrap().items == []
        assert (await actions.list_categories(bob)).unwrap().items == []
        assert (await actions.list_transactions(bob)).unwrap().items == []

    async def test_unwrap_raises_not_found(self, actions, alice, bob):
        """Test unwrap surfaces the typed error."""
        account = await make_account(actions, alice)
        with pytest.raises(NotFoundError):
            (await actions.archive_account(bob, {"id": account.id})).unwrap()


class TestListActions:
    """Tests for list_accounts / list_categories / list_transactions."""

    async def test_archived_filtering(self, actions, alice):
        """Test includeArchived switches archived rows in and out."""
        active = await make_account(actions, alice, name="Active")
        archived = await make_account(actions, alice, name="Old")
        await actions.archive_account(alice, {"id": archived.id})

        default = (await actions.list_accounts(alice)).unwrap()
        everything = (await actions.list_accounts(alice, {"includeArchived": True})).unwrap()

        assert [a.id for a in default.items] == [active.id]
        assert all(not a.is_archived for a in default.items)
        assert {a.id for a in everything.items} == {active.id, archived.id}
        assert everything.total == 2

    async def test_categories_sorted_by_sort_order(self, actions, alice):
        """Test sortOrder wins, unset values sort last."""
        unsorted = await make_category(actions, alice, name="Unsorted")
        second = await make_category(actions, alice, name="Second", sortOrder=2)
        first = await make_category(actions, alice, name="First", sortOrder=1)

        items = (await actions.list_categories(alice)).unwrap().items
        assert [c.id for c in items] == [first.id, second.id, unsorted.id]

    async def test_accounts_sorted_by_creation(self, actions, storage, alice):
        """Test accounts come back oldest first."""
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for day, name in [(3, "Newest"), (1, "Oldest"), (2, "Middle")]:
            created = base + timedelta(days=day)
            await storage.insert_account(
                Account(owner_id="user-alice", name=name, created_at=created, updated_at=created)
            )

        items = (await actions.list_accounts(alice)).unwrap().items
        assert [a.name for a in items] == ["Oldest", "Middle", "Newest"]

    async def test_second_page_of_one(self, actions, alice):
        """Test page=2, pageSize=1 returns the middle of three transactions."""
        base = datetime(2024, 5, 1, tzinfo=timezone.utc)
        oldest = await make_transaction(actions, alice, transactionDate=base.isoformat())
        middle = await make_transaction(
            actions, alice, transactionDate=(base + timedelta(days=1)).isoformat()
        )
        await make_transaction(actions, alice, transactionDate=(base + timedelta(days=2)).isoformat())

        page = (await actions.list_transactions(alice, {"page": 2, "pageSize": 1})).unwrap()

        assert [tx.id for tx in page.items] == [middle.id]
        assert page.total == 1
        assert page.page == 2
        assert page.page_size == 1

        last = (await actions.list_transactions(alice, {"page": 3, "pageSize": 1})).unwrap()
        assert [tx.id for tx in last.items] == [oldest.id]

    async def test_total_is_page_size(self, actions, alice):
        """Test total counts the returned page, not all matches."""
        for _ in range(5):
            await make_transaction(actions, alice)
        page = (await actions.list_transactions(alice, {"pageSize": 2})).unwrap()
        assert page.total == 2

    async def test_page_past_the_end(self, actions, alice):
        """Test an empty page is a success."""
        await make_transaction(actions, alice)
        page = (await actions.list_transactions(alice, {"page": 5})).unwrap()
        assert page.items == []
        assert page.total == 0

    async def test_filters_are_conjunctive(self, actions, alice):
        """Test account, category and type filters combine with AND."""
        account = await make_account(actions, alice)
        category = await make_category(actions, alice)
        match = await make_transaction(
            actions, alice, accountId=account.id, categoryId=category.id, type="income"
        )
        await make_transaction(actions, alice, accountId=account.id, categoryId=category.id)
        await make_transaction(actions, alice, accountId=account.id, type="income")

        page = (await actions.list_transactions(alice, {
            "accountId": account.id,
            "categoryId": category.id,
            "type": "income",
        })).unwrap()
        assert [tx.id for tx in page.items] == [match.id]

    async def test_blank_filters_ignored(self, actions, alice):
        """Test empty-string filters do not filter."""
        await make_transaction(actions, alice)
        page = (await actions.list_transactions(
            alice, {"accountId": "", "categoryId": "", "type": ""}
        )).unwrap()
        assert page.total == 1

    @pytest.mark.parametrize("payload", [{"page": 0}, {"pageSize": 0}, {"page": "two"}])
    async def test_bad_paging_rejected(self, actions, alice, payload):
        """Test page and pageSize must be positive integers."""
        result = await actions.list_transactions(alice, payload)
        assert result.error.code == ErrorCode.BAD_REQUEST

    async def test_list_envelope_shape(self, actions, alice):
        """Test the wire envelope uses pageSize."""
        await make_transaction(actions, alice)
        envelope = (await actions.list_transactions(alice)).to_dict()
        assert set(envelope["data"]) == {"items", "total", "page", "pageSize"}
        assert envelope["data"]["items"][0]["amount"] == 10.0


class TestStoredValuesMatchInput:
    """What a write returns is what every later read returns."""

    @pytest.mark.parametrize("amount", [0.00001, "0.00001", "10.12345"])
    async def test_amount_beyond_four_places_rejected(self, actions, storage, alice, amount):
        """Test an amount finer than 0.0001 is refused and the list keeps working."""
        result = await actions.create_transaction(alice, {"type": "expense", "amount": amount})

        assert result.error.code == ErrorCode.BAD_REQUEST
        assert result.error.issues[0].field == "amount"
        assert await storage.list_transactions("user-alice") == []
        assert (await actions.list_transactions(alice)).unwrap().items == []

    async def test_smallest_amount_round_trips(self, actions, storage, alice):
        """Test 0.0001 is stored and listed unchanged."""
        tx = await make_transaction(actions, alice, amount="0.0001")

        page = (await actions.list_transactions(alice)).unwrap()
        assert [t.amount for t in page.items] == [Decimal("0.0001")]
        assert await storage.get_transaction(tx.id, "user-alice") == tx

    async def test_update_amount_beyond_four_places_rejected(self, actions, storage, alice):
        """Test a patch cannot write an amount the store would round."""
        tx = await make_transaction(actions, alice, amount="5")
        result = await actions.update_transaction(alice, {"id": tx.id, "amount": "1.23456"})
        assert result.error.code == ErrorCode.BAD_REQUEST
        assert (await storage.get_transaction(tx.id, "user-alice")).amount == Decimal("5")

    async def test_starting_balance_precision(self, actions, storage, alice):
        """Test four places round trip and six places are refused."""
        account = await make_account(actions, alice, startingBalance="10.1234")
        assert await storage.get_account(account.id, "user-alice") == account

        result = await actions.create_account(alice, {"name": "A", "startingBalance": 10.123456})
        assert result.error.code == ErrorCode.BAD_REQUEST
        assert result.error.issues[0].field == "startingBalance"

    async def test_fractional_sort_order(self, actions, storage, alice):
        """Test sortOrder accepts any number and orders by value."""
        two = await make_category(actions, alice, name="Two", sortOrder=2)
        half = await make_category(actions, alice, name="Half", sortOrder=1.5)
        one = await make_category(actions, alice, name="One", sortOrder=1)

        assert half.sort_order == 1.5
        assert await storage.get_category(half.id, "user-alice") == half
        items = (await actions.list_categories(alice)).unwrap().items
        assert [c.id for c in items] == [one.id, half.id, two.id]


class FailingStorage(InMemoryFinanceStorage):
    """Storage whose writes always fail."""

    async def insert_account(self, account):
        raise StorageError("disk full")


class TestStorageFailures:
    """Storage errors are not user errors."""

    async def test_storage_error_is_raised_and_audited(self, audit_storage, alice):
        """Test a StorageError propagates after being audited."""
        actions = FinanceActions(FailingStorage(), AuditLogger(audit_storage))

        with pytest.raises(StorageError, match="disk full"):
            await actions.create_account(alice, {"name": "Cash"})

        events = audit_storage.events
        assert events[-1].event_type == AuditEventType.STORAGE_ERROR
        assert events[-1].user_id == "user-alice"

    async def test_rejections_are_audited(self, actions, audit_storage, bob):
        """Test a NOT_FOUND outcome leaves a warning event."""
        await actions.archive_account(bob, {"id": "ghost"})
        events = await audit_storage.get_events_by_correlation_id(bob.correlation_id)
        assert events[-1].event_type == AuditEventType.ENTITY_NOT_FOUND
        assert events[-1].entity_id == "ghost"


class TestInputForms:
    """Inputs may be mappings, models or nothing at all."""

    async def test_model_input_accepted(self, actions, alice):
        """Test a pre-built input model is used as is."""
        from finance_tracker.models import CreateAccountInput

        result = await actions.create_account(alice, CreateAccountInput(name="Card"))
        assert result.unwrap().account.name == "Card"

    async def test_snake_case_keys_accepted(self, actions, alice):
        """Test field names work as well as wire names."""
        account = await make_account(actions, alice, starting_balance="5")
        assert account.starting_balance == Decimal("5")

    async def test_non_mapping_input_rejected(self, actions, alice):
        """Test garbage input is a validation error."""
        result = await actions.create_account(alice, "Cash")
        assert result.error.code == ErrorCode.BAD_REQUEST

    async def test_transaction_model_is_stored_type(self, actions, storage, alice):
        """Test storage returns Transaction models."""
        tx = await make_transaction(actions, alice)
        assert isinstance(await storage.get_transaction(tx.id, "user-alice"), Transaction)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
