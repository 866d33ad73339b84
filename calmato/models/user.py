"""ORM model for application users (auth and RBAC)."""

import enum

from sqlalchemy import CheckConstraint, Column, Integer, String

from calmato.models.base import Base, TimestampMixin


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(TimestampMixin, Base):
    """
    User account for JWT authentication and role-based access control.

    email is stored lowercased; password_hash is never part of a response schema.
    """

    __tablename__ = "users"
    __table_args__ = (CheckConstraint("role IN ('USER', 'ADMIN')", name="ck_users_role"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False, default=UserRole.USER.value)
