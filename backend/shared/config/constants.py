"""
Application constants.
Centralized limits and lookup tables shared by repositories and tests.
"""

from typing import Final


class Limits:
    """Validation limits."""

    # String lengths
    MAX_ITEM_LENGTH: Final[int] = 255
    MAX_LOCATION_LENGTH: Final[int] = 255
    MAX_IMPORT_HASH_LENGTH: Final[int] = 255

    # Pagination defaults (page_size 0 means unbounded)
    DEFAULT_PAGE: Final[int] = 0
    DEFAULT_PAGE_SIZE: Final[int] = 0

    # Autocomplete
    MAX_AUTOCOMPLETE_LIMIT: Final[int] = 100


class SortDirection:
    """Accepted sort directions (case-insensitive on input)."""

    ASC: Final[str] = "asc"
    DESC: Final[str] = "desc"

    ALL: Final[frozenset[str]] = frozenset({ASC, DESC})


# Columns callers may sort donation pages by.
# Keys are the names accepted on input, values the model attribute names.
DONATION_SORTABLE_FIELDS: Final[dict[str, str]] = {
    "id": "id",
    "item": "item",
    "quantity": "quantity",
    "location": "location",
    "active": "active",
    "createdAt": "created_at",
    "created_at": "created_at",
    "updatedAt": "updated_at",
    "updated_at": "updated_at",
}

DEFAULT_SORT_FIELD: Final[str] = "created_at"
DEFAULT_SORT_DIRECTION: Final[str] = SortDirection.DESC
