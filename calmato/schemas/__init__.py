"""Pydantic request/response schemas."""

from calmato.schemas.auth import (
    AuthResponse,
    Identity,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)
from calmato.schemas.health import HealthResponse

__all__ = [
    "AuthResponse",
    "HealthResponse",
    "Identity",
    "LoginRequest",
    "RegisterRequest",
    "UserResponse",
]
