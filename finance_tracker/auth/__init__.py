"""Caller identity and ownership guard."""

from finance_tracker.auth.guard import (
    UNAUTHORIZED_MESSAGE,
    RequestContext,
    User,
    require_user,
)

__all__ = ["UNAUTHORIZED_MESSAGE", "RequestContext", "User", "require_user"]
