"""
Request authorization guard.

An AuthorizationGuard instance is installed as an application-wide
dependency, so it runs after routing and before every API handler. Handlers
in its public-endpoint table pass through untouched; every other route needs
a valid Bearer token, and the verified identity is attached to
request.state.identity for the handler.
"""

from collections.abc import Callable, Iterable
from typing import Annotated, Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from calmato.core.tokens import TokenError, TokenService, get_token_service
from calmato.schemas.auth import Identity
from calmato.services.auth import PermissionDeniedError, UnauthenticatedError

security = HTTPBearer(auto_error=False)


class AuthorizationGuard:
    """
    Dependency that verifies the Bearer token unless the matched endpoint is public.

    The table holds endpoint callables, so it does not depend on router
    prefixes or on how routes are included.
    """

    def __init__(self, public_endpoints: Iterable[Callable[..., Any]]) -> None:
        self.public_endpoints = frozenset(public_endpoints)

    def is_public(self, request: Request) -> bool:
        return request.scope.get("endpoint") in self.public_endpoints

    def __call__(
        self,
        request: Request,
        credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
        tokens: Annotated[TokenService, Depends(get_token_service)],
    ) -> None:
        if self.is_public(request):
            return
        if credentials is None:
            raise UnauthenticatedError()
        try:
            claims = tokens.verify(credentials.credentials)
        except TokenError as e:
            # Expired and forged tokens look the same to the caller.
            raise UnauthenticatedError("Invalid or expired token") from e
        request.state.identity = Identity(id=claims.user_id, email=claims.email, role=claims.role)


def get_current_identity(request: Request) -> Identity:
    """Dependency: the identity the guard attached. Raises 401 on public routes."""
    identity = getattr(request.state, "identity", None)
    if identity is None:
        raise UnauthenticatedError()
    return identity


def require_admin(
    identity: Annotated[Identity, Depends(get_current_identity)],
) -> Identity:
    """Dependency: require role ADMIN. Raises 403 for other roles."""
    if not identity.is_admin:
        raise PermissionDeniedError()
    return identity
