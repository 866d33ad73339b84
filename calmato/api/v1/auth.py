"""Auth routes: register, login, profile and the admin user listing."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from calmato.api.guard import get_current_identity, require_admin
from calmato.core.database import get_db
from calmato.core.tokens import TokenService, get_token_service
from calmato.schemas.auth import (
    AuthResponse,
    Identity,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)
from calmato.services.auth import AuthResult, AuthService
from calmato.services.users import UserRepository

router = APIRouter()


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> AuthService:
    return AuthService(UserRepository(db), tokens)


def _envelope(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        access_token=result.access_token,
        token_type=result.token_type,
        expires_in=result.expires_in,
        user=UserResponse.model_validate(result.user),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """
    Create an account and return an access token for it.
    Returns 409 if the email is already registered.
    """
    return _envelope(service.register(body))


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> AuthResponse:
    """
    Authenticate with email and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <accessToken>
    """
    return _envelope(service.login(body))


@router.get("/profile", response_model=UserResponse)
def get_profile(
    identity: Annotated[Identity, Depends(get_current_identity)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> UserResponse:
    """Current caller's user record. 404 if the account was deleted after the token was issued."""
    return UserResponse.model_validate(service.get_profile(identity.id))


@router.get("/users", response_model=list[UserResponse])
def list_users(
    _admin: Annotated[Identity, Depends(require_admin)],
    service: Annotated[AuthService, Depends(get_auth_service)],
) -> list[UserResponse]:
    """List all users as a bare array (admin only)."""
    return [UserResponse.model_validate(u) for u in service.list_users()]
