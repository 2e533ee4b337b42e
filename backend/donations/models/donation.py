"""
Donation model.
"""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import Limits

from .base import AuditMixin, Base
from .user import User


class Donation(Base, AuditMixin):
    """
    A donated item.

    The donor (user) association is replaced as a whole on every write;
    see DonationRepository._assign_user.
    """

    __tablename__ = "donations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    item: Mapped[Optional[str]] = mapped_column(String(Limits.MAX_ITEM_LENGTH), nullable=True, index=True)
    quantity: Mapped[Optional[float]] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(Limits.MAX_LOCATION_LENGTH), nullable=True)
    import_hash: Mapped[Optional[str]] = mapped_column(
        String(Limits.MAX_IMPORT_HASH_LENGTH), unique=True, nullable=True
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    user: Mapped[Optional[User]] = relationship(User)

    def __repr__(self) -> str:
        return f"<Donation id={self.id} item={self.item!r}>"
