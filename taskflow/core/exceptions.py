"""Custom exceptions."""
from typing import Optional
from fastapi import HTTPException, status
from taskflow.localization.helpers import get_translation


class NotFoundError(HTTPException):
    """Task or referenced user not found."""

    def __init__(self, detail: Optional[str] = None, locale: str = "en"):
        if detail is None:
            detail = get_translation("errors.resource_not_found", locale)
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class UnauthorizedError(HTTPException):
    """No usable actor identity on the request."""

    def __init__(self, detail: Optional[str] = None, locale: str = "en"):
        if detail is None:
            detail = get_translation("errors.not_authenticated", locale)
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class AuthorizationError(HTTPException):
    """Actor lacks the required role or ownership."""

    def __init__(self, detail: Optional[str] = None, locale: str = "en"):
        if detail is None:
            detail = get_translation("errors.permission_denied", locale)
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class ValidationError(HTTPException):
    """Malformed or missing input fields."""

    def __init__(self, detail: Optional[str] = None, locale: str = "en"):
        if detail is None:
            detail = get_translation("errors.validation_error", locale)
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class IllegalTransitionError(HTTPException):
    """Requested status change is not permitted from the current status."""

    def __init__(self, current, requested, locale: str = "en"):
        self.current = current
        self.requested = requested
        detail = get_translation(
            "errors.illegal_transition",
            locale,
            current=getattr(current, "value", current),
            requested=getattr(requested, "value", requested),
        )
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class DatabaseError(HTTPException):
    """Persistence failure. The transaction has already been rolled back."""

    def __init__(
        self,
        message: str = "Database operation failed",
        original_error: Optional[BaseException] = None,
        locale: str = "en",
    ):
        self.message = message
        self.original_error = original_error
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=get_translation("errors.database_error", locale),
        )

    def __str__(self) -> str:
        if self.original_error is not None:
            return f"{self.message}: {self.original_error}"
        return self.message
