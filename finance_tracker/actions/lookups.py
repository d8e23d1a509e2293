"""
Entity Lookup Helpers

Fetch exactly one row by (id, owner). Absence comes back as None, never
as an exception; the caller decides whether that means NotFoundError.

These are the only reads used by the update / archive / delete paths, so
they are where per-row ownership is enforced. List paths filter on the
owner directly in storage.
"""

from typing import Optional

from finance_tracker.models.finance import Account, Category, Transaction
from finance_tracker.services.storage import FinanceStorageInterface


async def get_account_for_user(
    storage: FinanceStorageInterface,
    account_id: str,
    user_id: str,
) -> Optional[Account]:
    if not account_id:
        return None
    return await storage.get_account(account_id, user_id)


async def get_category_for_user(
    storage: FinanceStorageInterface,
    category_id: str,
    user_id: str,
) -> Optional[Category]:
    if not category_id:
        return None
    return await storage.get_category(category_id, user_id)


async def get_transaction_for_user(
    storage: FinanceStorageInterface,
    transaction_id: str,
    user_id: str,
) -> Optional[Transaction]:
    if not transaction_id:
        return None
    return await storage.get_transaction(transaction_id, user_id)
