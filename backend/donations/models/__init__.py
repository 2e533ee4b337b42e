"""
SQLAlchemy models for the donations data-access layer.
"""

from .base import Base, TimestampMixin, AuditMixin, utcnow
from .user import User
from .donation import Donation

__all__ = [
    "Base",
    "TimestampMixin",
    "AuditMixin",
    "utcnow",
    "User",
    "Donation",
]
