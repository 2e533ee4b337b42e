"""
Utilities module: Exceptions, identifier helpers.
"""

from shared.utils.exceptions import (
    AppException,
    NotFoundError,
    ValidationError,
    InvalidIdentifierError,
    DuplicateEntityError,
    DatabaseError,
    TransactionError,
)
from shared.utils.identifiers import (
    normalize_identifier,
    normalize_identifier_list,
    is_identifier,
    contains_ignore_case,
)

__all__ = [
    # exceptions
    "AppException",
    "NotFoundError",
    "ValidationError",
    "InvalidIdentifierError",
    "DuplicateEntityError",
    "DatabaseError",
    "TransactionError",
    # identifiers
    "normalize_identifier",
    "normalize_identifier_list",
    "is_identifier",
    "contains_ignore_case",
]
