"""
Specification pattern: composable predicate trees.

Specifications encapsulate query conditions that can be combined using
logical operators (&, |, ~) and are turned into SQLAlchemy expressions
only when a query is built.

Usage:
    spec = ContainsSpec(Donation.item, "rice") & RangeSpec(Donation.quantity, 5, 10)
    query = select(Donation).where(spec.to_expression())
"""

from __future__ import annotations

from functools import reduce
from typing import Any, Iterable, Sequence

from sqlalchemy import and_, false, not_, or_, true

from shared.utils.identifiers import contains_ignore_case


class Specification:
    """
    Base class for query specifications.

    Subclass this and implement to_expression() to create
    reusable query building blocks.
    """

    def to_expression(self) -> Any:
        """
        Convert specification to SQLAlchemy expression.

        Must be implemented by subclasses.
        """
        raise NotImplementedError

    def __and__(self, other: Specification) -> Specification:
        """Combine with AND. MatchAll is the identity and is dropped."""
        if isinstance(self, MatchAll):
            return other
        if isinstance(other, MatchAll):
            return self
        return AndSpecification(self, other)

    def __or__(self, other: Specification) -> OrSpecification:
        """Combine with OR."""
        return OrSpecification(self, other)

    def __invert__(self) -> NotSpecification:
        """Negate specification."""
        return NotSpecification(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class MatchAll(Specification):
    """Matches every row. Result of compiling an empty filter."""

    def to_expression(self) -> Any:
        return true()


class AndSpecification(Specification):
    """AND combination of two specifications."""

    def __init__(self, left: Specification, right: Specification):
        self.left = left
        self.right = right

    def to_expression(self) -> Any:
        return and_(self.left.to_expression(), self.right.to_expression())

    def __repr__(self) -> str:
        return f"({self.left!r} & {self.right!r})"


class OrSpecification(Specification):
    """OR combination of two specifications."""

    def __init__(self, left: Specification, right: Specification):
        self.left = left
        self.right = right

    def to_expression(self) -> Any:
        return or_(self.left.to_expression(), self.right.to_expression())

    def __repr__(self) -> str:
        return f"({self.left!r} | {self.right!r})"


class NotSpecification(Specification):
    """Negation of a specification."""

    def __init__(self, spec: Specification):
        self.spec = spec

    def to_expression(self) -> Any:
        return not_(self.spec.to_expression())

    def __repr__(self) -> str:
        return f"~{self.spec!r}"


# =============================================================================
# Leaf specifications
# =============================================================================


class EqualsSpec(Specification):
    """column == value"""

    def __init__(self, column: Any, value: Any):
        self.column = column
        self.value = value

    def to_expression(self) -> Any:
        return self.column == self.value

    def __repr__(self) -> str:
        return f"EqualsSpec({self.column.key}={self.value!r})"


class ContainsSpec(Specification):
    """Case-insensitive substring match."""

    def __init__(self, column: Any, term: str):
        self.column = column
        self.term = term

    def to_expression(self) -> Any:
        return contains_ignore_case(self.column, self.term)

    def __repr__(self) -> str:
        return f"ContainsSpec({self.column.key}~{self.term!r})"


class RangeSpec(Specification):
    """
    Inclusive range; either bound may be None (open on that side).
    Both None matches every row.
    """

    def __init__(self, column: Any, lower: Any = None, upper: Any = None):
        self.column = column
        self.lower = lower
        self.upper = upper

    def to_expression(self) -> Any:
        clauses = []
        if self.lower is not None:
            clauses.append(self.column >= self.lower)
        if self.upper is not None:
            clauses.append(self.column <= self.upper)
        if not clauses:
            return true()
        return and_(*clauses)

    def __repr__(self) -> str:
        return f"RangeSpec({self.column.key} in [{self.lower!r}, {self.upper!r}])"


class InSpec(Specification):
    """
    Membership in a set of values (logical OR across them).
    An empty set matches nothing.
    """

    def __init__(self, column: Any, values: Sequence[Any]):
        self.column = column
        self.values = list(values)

    def to_expression(self) -> Any:
        if not self.values:
            return false()
        return self.column.in_(self.values)

    def __repr__(self) -> str:
        return f"InSpec({self.column.key} in {self.values!r})"


def all_of(specs: Iterable[Specification]) -> Specification:
    """AND together any number of specifications; none yields MatchAll."""
    return reduce(lambda acc, spec: acc & spec, specs, MatchAll())


def any_of(specs: Iterable[Specification]) -> Specification:
    """OR together specifications; none yields MatchAll."""
    specs = list(specs)
    if not specs:
        return MatchAll()
    return reduce(lambda acc, spec: acc | spec, specs)
