"""
Centralized exceptions for consistent error handling.

Every exception is an HTTPException so a controller layer can surface it
as-is, and logs itself with structured context when raised.

Usage:
    from shared.utils.exceptions import NotFoundError, InvalidIdentifierError

    raise NotFoundError("Donation", donation_id)
    raise InvalidIdentifierError("user", "not-a-uuid")
"""

from fastapi import HTTPException, status
from typing import Any

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions should inherit from this class
    to ensure consistent logging and response format.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)

    def __str__(self) -> str:
        return str(self.detail)


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Donation", donation_id)
        raise NotFoundError("User", user_id, donation_id=donation_id)
    """

    def __init__(self, entity: str, entity_id: Any = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} with ID {entity_id} not found"
        else:
            detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            entity=entity,
            entity_id=str(entity_id) if entity_id is not None else None,
            **log_context,
        )
        self.entity = entity
        self.entity_id = entity_id


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("quantity must be numeric", field="quantity")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class InvalidIdentifierError(ValidationError):
    """A value passed as an identifier is not a well-formed UUID."""

    def __init__(self, field: str, value: Any, **log_context: Any):
        detail = f"Invalid identifier for '{field}': {value!r}"
        super().__init__(detail, field=field, value=repr(value), **log_context)
        self.field = field
        self.value = value


class DuplicateEntityError(ValidationError):
    """Entity violates a uniqueness constraint."""

    def __init__(self, entity: str, identifier: str | None = None, **log_context: Any):
        if identifier:
            detail = f"{entity} with identifier '{identifier}' already exists"
        else:
            detail = f"{entity} violates a uniqueness constraint"

        super().__init__(detail, entity=entity, identifier=identifier, **log_context)


# =============================================================================
# 500 Internal Server Errors
# =============================================================================


class InternalError(AppException):
    """
    Internal server error (500).

    Usage:
        raise InternalError("Failed to load donations", page=3)
    """

    def __init__(self, detail: str = "Internal server error", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            log_level="error",
            **log_context,
        )


class DatabaseError(InternalError):
    """Database operation failed."""

    def __init__(self, operation: str, **log_context: Any):
        detail = f"Database error during {operation}. Please try again."
        super().__init__(detail, operation=operation, **log_context)
        self.operation = operation


class TransactionError(DatabaseError):
    """
    A transaction was aborted by the backend.

    rolled_back is False when the caller owns the transaction and must
    roll it back itself.
    """

    def __init__(self, operation: str, rolled_back: bool = True, **log_context: Any):
        super().__init__(operation, rolled_back=rolled_back, **log_context)
        self.rolled_back = rolled_back
