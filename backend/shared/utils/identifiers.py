"""
Identifier and text-match helpers shared by repositories.

Identifiers are UUIDs. Callers hand them over as UUID objects or strings
(query parameters, JSON bodies); everything downstream works with uuid.UUID.
"""

import uuid
from typing import Any

from sqlalchemy import ColumnElement

from shared.utils.exceptions import InvalidIdentifierError

LIKE_ESCAPE_CHAR = "\\"


def normalize_identifier(value: Any, field: str = "id") -> uuid.UUID:
    """
    Validate and normalize an identifier.

    Args:
        value: UUID instance or its string form (any case, with or without braces/hyphens).
        field: Field name reported in the error.

    Returns:
        The identifier as uuid.UUID.

    Raises:
        InvalidIdentifierError: If the value is not a well-formed UUID.
    """
    if isinstance(value, uuid.UUID):
        return value
    if not isinstance(value, str):
        raise InvalidIdentifierError(field, value)
    try:
        return uuid.UUID(value.strip())
    except ValueError as e:
        raise InvalidIdentifierError(field, value) from e


def is_identifier(value: Any) -> bool:
    """Return True if value is a UUID or a string holding one."""
    if isinstance(value, uuid.UUID):
        return True
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value.strip())
    except ValueError:
        return False
    return True


def normalize_identifier_list(
    raw: Any,
    delimiter: str = "|",
    field: str = "id",
) -> list[uuid.UUID]:
    """
    Split a delimited identifier list and normalize every entry.

    Accepts either a delimited string ("a|b") or a list, tuple or set of
    identifiers.
    Blank entries are skipped; order is preserved and duplicates removed.

    Raises:
        InvalidIdentifierError: If any entry is malformed.
    """
    if isinstance(raw, (str, uuid.UUID)):
        parts = str(raw).split(delimiter)
    elif isinstance(raw, (list, tuple, set, frozenset)):
        parts = list(raw)
    else:
        raise InvalidIdentifierError(field, raw)

    result: list[uuid.UUID] = []
    for part in parts:
        if isinstance(part, str) and not part.strip():
            continue
        identifier = normalize_identifier(part, field)
        if identifier not in result:
            result.append(identifier)
    return result


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return (
        term.replace(LIKE_ESCAPE_CHAR, LIKE_ESCAPE_CHAR * 2)
        .replace("%", LIKE_ESCAPE_CHAR + "%")
        .replace("_", LIKE_ESCAPE_CHAR + "_")
    )


def contains_ignore_case(column: Any, term: str) -> ColumnElement[bool]:
    """
    Build a case-insensitive "column contains term" predicate.

    Usage:
        query.where(contains_ignore_case(Donation.item, "rice"))
    """
    return column.ilike(f"%{escape_like(term)}%", escape=LIKE_ESCAPE_CHAR)
