"""Registration, login and profile lookups on top of the user repository and token service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from sqlalchemy.exc import IntegrityError

from calmato.core.security import hash_password, verify_password
from calmato.core.tokens import TokenClaims, TokenService
from calmato.models.user import User, UserRole
from calmato.schemas.auth import LoginRequest, RegisterRequest
from calmato.services.users import UserRepository

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password."


class AuthServiceError(Exception):
    """Base class for auth errors; status_code is the HTTP status to answer with."""

    status_code = 400
    headers: dict[str, str] | None = None

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class EmailAlreadyRegisteredError(AuthServiceError):
    status_code = 409

    def __init__(self, message: str = "Email is already registered.") -> None:
        super().__init__(message)


class InvalidCredentialsError(AuthServiceError):
    """Raised for both unknown email and wrong password; callers cannot tell which."""

    status_code = 401

    def __init__(self, message: str = INVALID_CREDENTIALS_MESSAGE) -> None:
        super().__init__(message)


class UnauthenticatedError(AuthServiceError):
    status_code = 401
    headers = {"WWW-Authenticate": "Bearer"}

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class PermissionDeniedError(AuthServiceError):
    status_code = 403

    def __init__(self, message: str = "Admin access required") -> None:
        super().__init__(message)


class UserNotFoundError(AuthServiceError):
    status_code = 404

    def __init__(self, message: str = "User not found.") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class AuthResult:
    """Successful register/login: signed token plus the user it was issued for."""

    access_token: str
    expires_in: int
    user: User
    token_type: str = "Bearer"


@lru_cache
def _dummy_hash() -> str:
    # Compared against when the email is unknown so login timing matches the found-user path.
    return hash_password("calmato-timing-equalizer")


class AuthService:
    def __init__(self, users: UserRepository, tokens: TokenService) -> None:
        self.users = users
        self.tokens = tokens

    def register(self, body: RegisterRequest) -> AuthResult:
        """
        Create an account and return a token for it.

        The uniqueness check runs under a per-email lock; if two requests
        still race past it, the unique index rejects the second insert and
        that is reported as the same conflict.
        """
        email = body.email.lower()
        self.users.lock_email(email)
        if self.users.email_exists(email):
            self.users.rollback()
            logger.warning("Registration rejected: email already registered")
            raise EmailAlreadyRegisteredError()

        password_hash = hash_password(body.password)
        try:
            user = self.users.add(
                email=email,
                name=body.name,
                password_hash=password_hash,
                role=body.role or UserRole.USER,
            )
        except IntegrityError as e:
            self.users.rollback()
            logger.warning("Registration lost a race on a duplicate email")
            raise EmailAlreadyRegisteredError() from e

        logger.info("Registered user id=%s role=%s", user.id, user.role)
        return self._issue(user)

    def login(self, body: LoginRequest) -> AuthResult:
        """Verify email and password; any mismatch raises InvalidCredentialsError."""
        user = self.users.get_by_email(body.email.lower())
        if user is None:
            verify_password(body.password, _dummy_hash())
            logger.warning("Login failed: invalid credentials")
            raise InvalidCredentialsError()
        if not verify_password(body.password, user.password_hash):
            logger.warning("Login failed: invalid credentials")
            raise InvalidCredentialsError()

        logger.info("Login succeeded for user id=%s", user.id)
        return self._issue(user)

    def get_profile(self, user_id: int) -> User:
        user = self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    def list_users(self) -> list[User]:
        return self.users.list_all()

    def _issue(self, user: User) -> AuthResult:
        claims = TokenClaims(user_id=user.id, email=user.email, role=UserRole(user.role))
        token = self.tokens.issue(claims)
        return AuthResult(
            access_token=token,
            expires_in=self.tokens.expires_in,
            user=user,
        )
