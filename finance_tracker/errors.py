"""
Action Errors

The user-facing error taxonomy. Each error carries a machine-readable code
and a message that can be shown to the user as is:

- UnauthorizedError: no caller identity
- NotFoundError: the id does not resolve under the caller's ownership
- InputValidationError: the input failed shape, type or range checks

All three are terminal for the request. Action handlers turn them into a
failed ActionResult; ActionResult.unwrap() raises them again.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ValidationError


class ErrorCode(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    BAD_REQUEST = "BAD_REQUEST"


class ValidationIssue(BaseModel):
    """A single problem with an action input."""

    field: str = Field(
        ...,
        description="Dotted path of the offending field, or 'input'"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


class ActionError(Exception):
    """Base exception for errors reported back to the caller."""

    code: ErrorCode = ErrorCode.BAD_REQUEST

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UnauthorizedError(ActionError):
    """No signed-in user."""

    code = ErrorCode.UNAUTHORIZED


class NotFoundError(ActionError):
    """Entity missing, or owned by someone else."""

    code = ErrorCode.NOT_FOUND

    def __init__(
        self,
        entity_name: str = "Entity",
        entity_id: Optional[str] = None,
        message: Optional[str] = None,
    ):
        self.entity_name = entity_name
        self.entity_id = entity_id
        super().__init__(message or f"{entity_name} not found.")


class InputValidationError(ActionError):
    """Action input failed validation."""

    code = ErrorCode.BAD_REQUEST

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        self.issues = issues or []
        super().__init__(message)

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "InputValidationError":
        issues = []
        for error in exc.errors():
            loc = ".".join(str(part) for part in error.get("loc", ())) or "input"
            issues.append(ValidationIssue(field=loc, message=error.get("msg", "invalid value")))

        if len(issues) == 1:
            message = f"Invalid input: {issues[0].field}: {issues[0].message}"
        else:
            message = f"Invalid input: {len(issues)} problems found"
        return cls(message, issues)
