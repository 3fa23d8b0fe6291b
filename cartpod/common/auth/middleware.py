"""
Authentication Middleware

This module resolves the caller of a request from its bearer token and
provides the FastAPI dependencies that gate routes by authentication and role.
"""

from typing import Callable, Optional, Union

from fastapi import Depends, Header, Request

from cartpod.common.auth.dependencies import get_credential_store, get_token_service
from cartpod.common.auth.exceptions import (
    ExpiredTokenError,
    ForbiddenError,
    InvalidTokenError,
    UnauthenticatedError
)
from cartpod.common.auth.jwt import TokenService, TokenType
from cartpod.common.auth.store import CredentialStore
from cartpod.common.auth.user import AuthenticatedUser, UserRole
from cartpod.common.logger import app_logger

logger = app_logger.getChild("auth.middleware")


def extract_token_from_header(auth_header: Optional[str]) -> Optional[str]:
    """
    Extract a bearer token from an Authorization header.

    Args:
        auth_header: The Authorization header value

    Returns:
        The token or None if the header is absent or not a bearer header
    """
    if not auth_header:
        return None

    parts = auth_header.split()

    if len(parts) != 2 or parts[0].lower() != 'bearer':
        return None

    return parts[1]


async def authenticate(
    auth_header: Optional[str],
    store: CredentialStore,
    tokens: TokenService
) -> AuthenticatedUser:
    """
    Authenticate a request using the Authorization header.

    Only session tokens are accepted, and the user they name must still exist.

    Raises:
        UnauthenticatedError: For a missing, malformed, invalid or expired
            token, or a deleted user
    """
    token = extract_token_from_header(auth_header)

    if not token:
        raise UnauthenticatedError()

    try:
        claims = tokens.verify(token, expected_type=TokenType.SESSION)
    except (InvalidTokenError, ExpiredTokenError) as e:
        logger.debug(f"Bearer token rejected: {e.code}")
        raise UnauthenticatedError()

    user = await store.find_by_id(claims.user_id)
    if user is None:
        raise UnauthenticatedError()

    return AuthenticatedUser(user=user, access_token=token)


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None)
) -> AuthenticatedUser:
    """
    FastAPI dependency resolving the authenticated caller.

    The user and the raw token are also attached to ``request.state``.
    """
    auth_user = await authenticate(
        authorization,
        get_credential_store(request),
        get_token_service(request)
    )
    request.state.user = auth_user.user
    request.state.token = auth_user.access_token
    return auth_user


def require_role(*roles: Union[UserRole, str]) -> Callable:
    """
    Build a dependency that admits only callers holding one of ``roles``.

    Example:
        @router.get("/", dependencies=[Depends(require_role(UserRole.ADMIN))])
    """
    allowed = {UserRole.parse(role) for role in roles}

    async def dependency(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if user.role not in allowed:
            logger.warning(
                f"User {user.id} with role {user.role.value} denied access "
                f"(requires {sorted(r.value for r in allowed)})"
            )
            raise ForbiddenError()
        return user

    return dependency
