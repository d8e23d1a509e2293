"""Shared fixtures: finance storage per backend, audit capture and request contexts."""

import pytest

from finance_tracker.actions import FinanceActions
from finance_tracker.audit import AuditLogger
from finance_tracker.auth import RequestContext
from finance_tracker.services.storage import (
    InMemoryAuditStorage,
    InMemoryFinanceStorage,
    SqlFinanceStorage,
)


@pytest.fixture(params=["memory", "sql"])
def storage(request):
    # Action tests run against both backends; they must agree.
    if request.param == "memory":
        return InMemoryFinanceStorage()
    return SqlFinanceStorage.from_url("sqlite://")


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def actions(storage, audit_storage):
    return FinanceActions(storage, AuditLogger(audit_storage))


@pytest.fixture
def alice():
    return RequestContext.for_user("user-alice")


@pytest.fixture
def bob():
    return RequestContext.for_user("user-bob")


@pytest.fixture
def anonymous():
    return RequestContext()
