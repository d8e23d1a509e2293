"""
Ownership Guard

Resolves the acting user from the request context and fails closed.

The identity provider (session, token, whatever the host app uses) lives
outside this package. It only has to fill ``RequestContext.user``. Every
action calls ``require_user`` before touching storage, so no unauthenticated
read or write is possible.
"""

from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from finance_tracker.errors import UnauthorizedError


UNAUTHORIZED_MESSAGE = "You must be signed in to perform this action."


class User(BaseModel):
    """The caller, as supplied by the identity provider."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Stable user identifier; becomes owner_id on every row"
    )
    email: Optional[str] = None
    name: Optional[str] = None


class RequestContext(BaseModel):
    """Per-request data handed to every action."""

    user: Optional[User] = None
    correlation_id: UUID = Field(
        default_factory=uuid4,
        description="Ties together the audit events of one request"
    )

    @classmethod
    def for_user(cls, user_id: str, **kwargs) -> "RequestContext":
        return cls(user=User(id=user_id), **kwargs)


def require_user(context: Optional[RequestContext]) -> User:
    """
    Return the signed-in user or raise UnauthorizedError.

    A missing context is treated the same as a missing user.
    """
    user = context.user if context is not None else None
    if user is None:
        raise UnauthorizedError(UNAUTHORIZED_MESSAGE)
    return user
