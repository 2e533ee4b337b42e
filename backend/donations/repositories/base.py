"""
Base Repository implementation.
Provides common data access patterns over a caller-supplied session.

The session is the transaction handle: repositories flush and, unless the
caller asks otherwise with commit=False, commit their own writes.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from shared.utils.exceptions import NotFoundError

from .specification import MatchAll, Specification


ModelT = TypeVar("ModelT")


class BaseRepository(ABC, Generic[ModelT]):
    """
    Abstract base repository with common operations.

    Subclasses must implement:
    - model: Return the SQLAlchemy model class
    - entity_name: Human-readable name for errors and logs
    - _base_query(): Return base query with eager loading
    """

    def __init__(self, db: Session):
        self._db = db

    @property
    def db(self) -> Session:
        """The database session."""
        return self._db

    @property
    @abstractmethod
    def model(self) -> type[ModelT]:
        """Return the SQLAlchemy model class."""
        ...

    @property
    @abstractmethod
    def entity_name(self) -> str:
        ...

    @abstractmethod
    def _base_query(self) -> Select:
        """
        Return base query with proper eager loading.
        Subclasses must implement this with selectinload/joinedload.
        """
        ...

    def find_by_id(self, entity_id: Any) -> ModelT | None:
        """
        Find entity by ID.

        Returns:
            Entity or None
        """
        query = self._base_query().where(self.model.id == entity_id)
        return self._db.scalar(query)

    def get_or_raise(self, entity_id: Any) -> ModelT:
        """
        Find entity by ID or fail.

        Raises:
            NotFoundError: If no row has this ID.
        """
        entity = self.find_by_id(entity_id)
        if entity is None:
            raise NotFoundError(self.entity_name, entity_id)
        return entity

    def find_by_ids(self, entity_ids: Sequence[Any]) -> Sequence[ModelT]:
        """
        Find entities by IDs.

        Returns:
            List of entities (order not guaranteed, missing IDs skipped)
        """
        if not entity_ids:
            return []

        query = self._base_query().where(self.model.id.in_(entity_ids))
        return self._db.execute(query).scalars().unique().all()

    def find_by_spec(
        self,
        spec: Specification,
        *,
        limit: int | None = None,
        offset: int | None = None,
        order_by: Sequence[Any] = (),
    ) -> Sequence[ModelT]:
        """
        Find entities matching a specification.

        Args:
            spec: The specification to apply.
            limit: Maximum results (None for all).
            offset: Skip count.
            order_by: Order expressions, applied in sequence.

        Returns:
            Sequence of matching entities.
        """
        query = self._base_query().where(spec.to_expression())

        if order_by:
            query = query.order_by(*order_by)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        return self._db.execute(query).scalars().unique().all()

    def count(self, spec: Specification | None = None) -> int:
        """Count entities matching a specification (all entities when None)."""
        spec = spec or MatchAll()
        query = (
            select(func.count())
            .select_from(self.model)
            .where(spec.to_expression())
        )
        return self._db.scalar(query) or 0

    def exists(self, entity_id: Any) -> bool:
        """Check if entity exists."""
        query = select(func.count()).select_from(self.model).where(self.model.id == entity_id)
        return (self._db.scalar(query) or 0) > 0
