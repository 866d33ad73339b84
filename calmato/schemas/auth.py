"""Request/response schemas for auth endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from calmato.core.security import (
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    check_password_strength,
)
from calmato.models.user import UserRole

_REQUIREMENT_LABELS = {
    "length": "at least 8 characters",
    "lowercase": "a lowercase letter",
    "uppercase": "an uppercase letter",
    "number": "a digit",
    "special": "a special character",
}


def _normalize_email(v: object) -> object:
    if isinstance(v, str):
        return v.strip().lower()
    return v


class _CamelModel(BaseModel):
    """Response models serialize as camelCase (accessToken, createdAt, ...)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RegisterRequest(BaseModel):
    """New account: email, display name, password and optional role."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr = Field(..., description="Email address")
    name: str = Field(..., min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN, description="Display name")
    password: str = Field(..., max_length=PASSWORD_MAX_LEN, description="Password")
    role: UserRole | None = Field(default=None, description="USER (default) or ADMIN")

    normalize_email = field_validator("email", mode="before")(_normalize_email)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v

    @field_validator("password")
    @classmethod
    def validate_password_complexity(cls, v: str) -> str:
        strength = check_password_strength(v)
        if not strength.is_strong:
            needed = ", ".join(_REQUIREMENT_LABELS[m] for m in strength.missing)
            raise ValueError(f"Password must contain {needed}")
        return v


class LoginRequest(BaseModel):
    """Credentials for login."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")

    normalize_email = field_validator("email", mode="before")(_normalize_email)


class UserResponse(_CamelModel):
    """Public user record (no password hash)."""

    id: int
    email: str
    name: str
    role: UserRole
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthResponse(_CamelModel):
    """Token envelope returned by register and login."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse


class Identity(BaseModel):
    """Caller identity resolved from a verified token, attached to request.state."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
