"""Signed, time-limited access tokens (JWT) carrying user id, email and role."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

import jwt

from calmato.core.config import get_settings
from calmato.models.user import UserRole

REQUIRED_CLAIMS = ["sub", "email", "role", "iat", "exp"]


class TokenError(Exception):
    """Base class for token verification failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidTokenError(TokenError):
    """Signature mismatch, malformed token, or missing/ill-typed claims."""


class ExpiredTokenError(TokenError):
    """Token was valid but its exp has passed."""


@dataclass(frozen=True)
class TokenConfig:
    """Signing parameters; built once at startup and shared read-only."""

    secret: str
    algorithm: str = "HS256"
    lifetime: timedelta = timedelta(days=7)


@dataclass(frozen=True)
class TokenClaims:
    """Identity claims carried by an access token."""

    user_id: int
    email: str
    role: UserRole
    issued_at: datetime | None = None
    expires_at: datetime | None = None


class TokenService:
    """Issues and verifies access tokens with a fixed TokenConfig."""

    def __init__(self, config: TokenConfig) -> None:
        self._config = config

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds."""
        return int(self._config.lifetime.total_seconds())

    def issue(self, claims: TokenClaims, now: datetime | None = None) -> str:
        """Sign claims, stamping iat (now) and exp (now + lifetime)."""
        issued_at = now or datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": str(claims.user_id),
            "email": claims.email,
            "role": UserRole(claims.role).value,
            "iat": issued_at,
            "exp": issued_at + self._config.lifetime,
        }
        return jwt.encode(payload, self._config.secret, algorithm=self._config.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate a token.

        Raises ExpiredTokenError once the current time reaches exp and
        InvalidTokenError for anything else that fails validation.
        """
        try:
            payload = jwt.decode(
                token,
                self._config.secret,
                algorithms=[self._config.algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredTokenError("Token has expired") from e
        except jwt.PyJWTError as e:
            raise InvalidTokenError("Invalid token") from e

        try:
            user_id = int(payload["sub"])
            role = UserRole(payload["role"])
        except (TypeError, ValueError) as e:
            raise InvalidTokenError("Invalid token payload") from e
        email = payload["email"]
        if not isinstance(email, str) or not email:
            raise InvalidTokenError("Invalid token payload")

        return TokenClaims(
            user_id=user_id,
            email=email,
            role=role,
            issued_at=datetime.fromtimestamp(payload["iat"], UTC),
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )


def token_config_from_settings() -> TokenConfig:
    settings = get_settings()
    return TokenConfig(
        secret=settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
        lifetime=timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
    )


@lru_cache
def get_token_service() -> TokenService:
    """Process-wide TokenService (safe to use as a FastAPI dependency)."""
    return TokenService(token_config_from_settings())
