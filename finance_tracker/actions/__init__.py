"""
Actions Package

The authenticated CRUD surface: FinanceActions plus the result envelope
and the scoped lookup helpers it is built on.
"""

from finance_tracker.actions.handlers import FinanceActions, apply_patch
from finance_tracker.actions.lookups import (
    get_account_for_user,
    get_category_for_user,
    get_transaction_for_user,
)
from finance_tracker.actions.results import ActionErrorInfo, ActionResult

__all__ = [
    # Handlers
    "FinanceActions",
    "apply_patch",
    # Lookups
    "get_account_for_user",
    "get_category_for_user",
    "get_transaction_for_user",
    # Results
    "ActionErrorInfo",
    "ActionResult",
]
