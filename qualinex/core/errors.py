"""
Error taxonomy shared by the service layer and the HTTP boundary.

Every error carries a safe, caller-facing message and the HTTP status it
maps to. Store driver messages never end up in ``message``.
"""

from typing import Any, Optional

from fastapi import status


class AppError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_content(self) -> dict[str, Any]:
        """Render the error envelope body."""
        return {"success": False, "message": self.message}


class ValidationError(AppError):
    """Malformed or missing input, with field-level detail."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[list[dict[str, Any]]] = None,
        **extra: Any,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []
        self.extra = extra

    def to_content(self) -> dict[str, Any]:
        content = super().to_content()
        if self.errors:
            content["errors"] = self.errors
        content.update(self.extra)
        return content


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class ForbiddenError(AppError):
    """Authenticated but not authorized; ``reason`` is the policy's deny code."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"

    def __init__(self, reason: str, message: Optional[str] = None) -> None:
        super().__init__(message)
        self.reason = reason

    def to_content(self) -> dict[str, Any]:
        content = super().to_content()
        content["reason"] = self.reason
        return content


class InvalidAssigneeError(ForbiddenError):
    """Assignee is not an active admin; reported as a bad request."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid assigned user - must be an active admin"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__("invalid_assignee", message)


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflicting update"


class UnexpectedError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"
