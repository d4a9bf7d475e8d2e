"""ORM models shared across ReportHub apps."""

from core.models.base import Base, IdMixin, TimestampMixin
from core.models.profile import Profile, ROLE_ADMIN, ROLE_USER, ROLES

__all__ = [
    "Base",
    "IdMixin",
    "TimestampMixin",
    "Profile",
    "ROLE_ADMIN",
    "ROLE_USER",
    "ROLES",
]
