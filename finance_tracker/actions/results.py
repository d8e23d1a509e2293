"""
Action Result Envelope

Every action returns an ActionResult instead of unwinding with an
exception. On the wire it renders as:

    {"success": true, "data": {...}}
    {"success": true}                       # delete_transaction
    {"success": false, "error": {"code": "NOT_FOUND", "message": "..."}}
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field, PrivateAttr

from finance_tracker.errors import (
    ActionError,
    ErrorCode,
    InputValidationError,
    NotFoundError,
    UnauthorizedError,
    ValidationIssue,
)


T = TypeVar("T")

_ERROR_TYPES = {
    ErrorCode.UNAUTHORIZED: UnauthorizedError,
}


class ActionErrorInfo(BaseModel):
    """Error half of the envelope."""

    code: ErrorCode
    message: str
    issues: list[ValidationIssue] = Field(default_factory=list)


class ActionResult(BaseModel, Generic[T]):
    """Outcome of one action: a payload or an error, never both."""

    success: bool
    data: Optional[T] = None
    error: Optional[ActionErrorInfo] = None

    _exception: Optional[ActionError] = PrivateAttr(default=None)

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "ActionResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, exc: ActionError) -> "ActionResult[T]":
        result = cls(
            success=False,
            error=ActionErrorInfo(
                code=exc.code,
                message=exc.message,
                issues=getattr(exc, "issues", []),
            ),
        )
        result._exception = exc
        return result

    def unwrap(self) -> Optional[T]:
        """Return the payload, or raise the error this result carries."""
        if self.success:
            return self.data
        if self._exception is not None:
            raise self._exception
        raise self._rebuild_error()

    def _rebuild_error(self) -> ActionError:
        # Results that went through a serialization round trip lose the
        # original exception object.
        info = self.error
        if info is None:
            return ActionError("Action failed without error details.")
        if info.code == ErrorCode.NOT_FOUND:
            return NotFoundError(message=info.message)
        if info.code == ErrorCode.BAD_REQUEST:
            return InputValidationError(info.message, info.issues)
        return _ERROR_TYPES.get(info.code, ActionError)(info.message)

    def to_dict(self) -> dict[str, Any]:
        """Render the wire envelope with camelCase keys."""
        envelope: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            if isinstance(self.data, BaseModel):
                envelope["data"] = self.data.model_dump(mode="json", by_alias=True)
            else:
                envelope["data"] = self.data
        if self.error is not None:
            error = {"code": self.error.code.value, "message": self.error.message}
            if self.error.issues:
                error["issues"] = [issue.model_dump() for issue in self.error.issues]
            envelope["error"] = error
        return envelope
