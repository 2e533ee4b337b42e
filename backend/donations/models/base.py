"""
Base class and mixins for all SQLAlchemy ORM models.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TimestampMixin:
    """
    Mixin providing creation/modification timestamps.

    created_at is set client-side so callers (bulk import) can assign
    synthetic values; the server default only covers raw inserts.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


class AuditMixin(TimestampMixin):
    """
    Mixin providing the acting principal for each lifecycle stage.

    Fields added:
    - created_by_id, updated_by_id: principal that created / last updated the row
    - deleted_by: principal that removed the row, written just before removal

    Note: no FK to users here so removing a principal never cascades into audit data.
    """

    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    updated_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    deleted_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    def set_created_by(self, actor_id: uuid.UUID | None) -> None:
        """Stamp creation (and initial update) with the acting principal."""
        self.created_by_id = actor_id
        self.updated_by_id = actor_id

    def set_updated_by(self, actor_id: uuid.UUID | None) -> None:
        self.updated_by_id = actor_id

    def mark_deleted(self, actor_id: uuid.UUID | None) -> None:
        """
        Record who is removing the row.
        Must be flushed before the row is deleted.
        """
        self.deleted_by = actor_id
