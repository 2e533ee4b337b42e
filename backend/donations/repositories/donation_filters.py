"""
Donation filter compiler.

Turns a loosely-typed filter mapping (query parameters, JSON body) into a
Specification tree. Each accepted key maps to a FilterRule: a validator that
normalizes the raw value (returning None to skip the key) and a builder that
turns the normalized value into a specification node. Every produced node is
ANDed; keys that are unknown or empty are skipped and never narrow the result.

Usage:
    spec = compile_donation_filter({"item": "rice", "quantityRange": [5, 10]})
    query = select(Donation).where(spec.to_expression())
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from donations.models import Donation
from shared.config.settings import get_settings
from shared.utils.exceptions import ValidationError
from shared.utils.identifiers import normalize_identifier, normalize_identifier_list

from .specification import (
    ContainsSpec,
    EqualsSpec,
    InSpec,
    RangeSpec,
    Specification,
    all_of,
)

_datetime_adapter = TypeAdapter(datetime)


@dataclass(frozen=True)
class FilterRule:
    """How one filter key is validated and turned into a predicate."""

    keys: tuple[str, ...]
    validate: Callable[[Any], Any]
    build: Callable[[Any], Specification]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# =============================================================================
# Validators: raw value -> normalized value, or None to skip the key
# =============================================================================


def _validate_id(value: Any) -> Any:
    if _is_blank(value):
        return None
    return normalize_identifier(value, "id")


def _validate_text(value: Any) -> str | None:
    if _is_blank(value):
        return None
    return str(value).strip()


def _validate_active(value: Any) -> bool | None:
    """Only the canonical forms filter; anything else means "any"."""
    if value is True or value == "true":
        return True
    if value is False or value == "false":
        return False
    return None


def _validate_user_list(value: Any) -> list | None:
    if _is_blank(value):
        return None
    if isinstance(value, (list, tuple, set)) and not value:
        return None
    identifiers = normalize_identifier_list(
        value,
        delimiter=get_settings().filter_list_delimiter,
        field="user",
    )
    return identifiers or None


def _to_number(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{field} bound must be numeric", field=field, value=value)
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field} bound must be numeric", field=field, value=value) from e


def _to_datetime(value: Any, field: str) -> datetime:
    try:
        parsed = _datetime_adapter.validate_python(value)
    except PydanticValidationError as e:
        raise ValidationError(f"{field} bound must be a date/time", field=field, value=value) from e
    # Stored timestamps are UTC; naive bounds are taken as UTC too
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _range_validator(field: str, coerce: Callable[[Any, str], Any]) -> Callable[[Any], Any]:
    """
    Build a validator for [start, end] pairs.

    Either bound may be missing, None or "" independently.
    """

    def validate(value: Any) -> tuple[Any, Any] | None:
        if _is_blank(value):
            return None
        if not isinstance(value, (list, tuple)):
            raise ValidationError(f"{field} must be a [start, end] pair", field=field, value=value)
        if len(value) > 2:
            raise ValidationError(f"{field} takes at most two bounds", field=field, value=value)

        start = value[0] if len(value) > 0 else None
        end = value[1] if len(value) > 1 else None
        lower = None if _is_blank(start) else coerce(start, field)
        upper = None if _is_blank(end) else coerce(end, field)

        if lower is None and upper is None:
            return None
        return lower, upper

    return validate


# =============================================================================
# Rule table
# =============================================================================


DONATION_FILTER_RULES: dict[str, FilterRule] = {
    "id": FilterRule(
        keys=("id",),
        validate=_validate_id,
        build=lambda value: EqualsSpec(Donation.id, value),
    ),
    "item": FilterRule(
        keys=("item",),
        validate=_validate_text,
        build=lambda value: ContainsSpec(Donation.item, value),
    ),
    "location": FilterRule(
        keys=("location",),
        validate=_validate_text,
        build=lambda value: ContainsSpec(Donation.location, value),
    ),
    "quantityRange": FilterRule(
        keys=("quantityRange", "quantity_range"),
        validate=_range_validator("quantityRange", _to_number),
        build=lambda bounds: RangeSpec(Donation.quantity, *bounds),
    ),
    "active": FilterRule(
        keys=("active",),
        validate=_validate_active,
        build=lambda value: EqualsSpec(Donation.active, value),
    ),
    "user": FilterRule(
        keys=("user", "user_id"),
        validate=_validate_user_list,
        build=lambda ids: InSpec(Donation.user_id, ids),
    ),
    "createdAtRange": FilterRule(
        keys=("createdAtRange", "created_at_range"),
        validate=_range_validator("createdAtRange", _to_datetime),
        build=lambda bounds: RangeSpec(Donation.created_at, *bounds),
    ),
}


def _raw_value(filters: Mapping[str, Any], rule: FilterRule) -> Any:
    """First present alias wins."""
    for key in rule.keys:
        if key in filters:
            return filters[key]
    return None


def compile_donation_filter(
    filters: Mapping[str, Any] | None,
    rules: Mapping[str, FilterRule] = DONATION_FILTER_RULES,
) -> Specification:
    """
    Compile a filter mapping into a Specification.

    Args:
        filters: Raw filter values keyed by field name. Keys without a rule
            (pagination, sorting, typos) are ignored.
        rules: Rule table to apply, in order.

    Returns:
        The AND of every applicable rule's node, or MatchAll.

    Raises:
        InvalidIdentifierError: If id or user holds a malformed identifier.
        ValidationError: If a range bound cannot be coerced.
    """
    if not filters:
        return all_of([])

    nodes: list[Specification] = []
    for rule in rules.values():
        value = rule.validate(_raw_value(filters, rule))
        if value is None:
            continue
        nodes.append(rule.build(value))

    return all_of(nodes)
