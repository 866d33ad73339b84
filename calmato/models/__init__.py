"""SQLAlchemy ORM models."""

from calmato.models.base import Base
from calmato.models.user import User, UserRole

__all__ = ["Base", "User", "UserRole"]
