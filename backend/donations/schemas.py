"""
Pydantic schemas for donation input and output.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Input
# =============================================================================


class DonationInput(BaseModel):
    """
    Payload accepted by create, update and bulk import.

    Empty strings are treated as missing, so a blank form field stores null.
    Identifiers stay loosely typed here; the repository normalizes them.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[uuid.UUID | str] = None
    item: Optional[str] = None
    quantity: Optional[float] = None
    location: Optional[str] = None
    import_hash: Optional[str] = Field(default=None, alias="importHash")
    active: Optional[bool] = None
    user: Optional[uuid.UUID | str] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("user", mode="before")
    @classmethod
    def user_reference(cls, value: Any) -> Any:
        """Accept {"id": ...} objects as well as bare identifiers."""
        if isinstance(value, dict):
            return value.get("id")
        return value


# =============================================================================
# Output
# =============================================================================


class UserOutput(BaseModel):
    """Donor as returned alongside a donation."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None


class DonationOutput(BaseModel):
    """Donation row with its resolved donor."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    item: Optional[str] = None
    quantity: Optional[float] = None
    location: Optional[str] = None
    import_hash: Optional[str] = None
    active: bool = True
    user_id: Optional[uuid.UUID] = None
    user: Optional[UserOutput] = None
    created_by_id: Optional[uuid.UUID] = None
    updated_by_id: Optional[uuid.UUID] = None
    deleted_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime


class DonationPage(BaseModel):
    """
    One page of a filtered search.

    count is the size of the whole filtered set, not of this page.
    rows is empty for count-only queries.
    """

    rows: list[DonationOutput] = Field(default_factory=list)
    count: int


class AutocompleteOption(BaseModel):
    """Minimal (id, label) pair for incremental search."""

    id: uuid.UUID
    label: Optional[str] = None
