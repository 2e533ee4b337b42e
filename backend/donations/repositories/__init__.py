"""
Repository layer for donations.

Usage:
    from donations.repositories import get_donation_repository

    repo = get_donation_repository(db)
    page = repo.find_all({"item": "rice", "quantityRange": [5, 10]}, page=0, page_size=20)
    donation = repo.find_by(id=donation_id)
"""

from .base import BaseRepository
from .specification import (
    Specification,
    MatchAll,
    AndSpecification,
    OrSpecification,
    NotSpecification,
    EqualsSpec,
    ContainsSpec,
    RangeSpec,
    InSpec,
    all_of,
    any_of,
)
from .donation_filters import (
    FilterRule,
    DONATION_FILTER_RULES,
    compile_donation_filter,
)
from .donation import DonationRepository, get_donation_repository

__all__ = [
    # Base
    "BaseRepository",
    # Specifications
    "Specification",
    "MatchAll",
    "AndSpecification",
    "OrSpecification",
    "NotSpecification",
    "EqualsSpec",
    "ContainsSpec",
    "RangeSpec",
    "InSpec",
    "all_of",
    "any_of",
    # Filters
    "FilterRule",
    "DONATION_FILTER_RULES",
    "compile_donation_filter",
    # Donation
    "DonationRepository",
    "get_donation_repository",
]
