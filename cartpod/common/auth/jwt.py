"""
JWT Token Module

This module issues and verifies the signed bearer tokens used by the API.
Two token types share the signing key: session tokens (handed out at login
and registration) and password-reset tokens. The ``type`` claim tags each
token, and verification can insist on a specific type so that neither kind
is accepted where the other is expected.
"""

import datetime
import enum
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

# Using PyJWT for JWT operations
import jwt

from cartpod.common.auth.exceptions import (
    InvalidTokenError,
    ExpiredTokenError
)
from cartpod.common.logger import app_logger

logger = app_logger.getChild("auth.jwt")


class TokenType(enum.Enum):
    """Types of JWT tokens supported by the system."""

    SESSION = "session"
    RESET = "reset"


@dataclass
class JWTConfig:
    """
    Configuration for JWT tokens.

    Attributes:
        secret_key: Secret key used for signing tokens
        algorithm: Algorithm used for signing tokens
        session_token_expires: Session token lifetime in days
        reset_token_expires: Password reset token lifetime in minutes
        token_issuer: Issuer claim set on, and required of, every token
    """
    secret_key: str
    algorithm: str = "HS256"
    session_token_expires: int = 7  # days
    reset_token_expires: int = 60  # minutes
    token_issuer: str = "cartpod-api"

    @property
    def session_ttl(self) -> datetime.timedelta:
        return datetime.timedelta(days=self.session_token_expires)

    @property
    def reset_ttl(self) -> datetime.timedelta:
        return datetime.timedelta(minutes=self.reset_token_expires)


@dataclass(frozen=True)
class TokenClaims:
    """The verified contents of a token."""
    user_id: str
    token_type: TokenType
    issued_at: datetime.datetime
    expires_at: datetime.datetime


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class TokenService:
    """
    Issues and verifies signed tokens.

    The clock is injectable so that tests can mint tokens that are already
    past their expiry. Verification always uses the real current time.
    """

    def __init__(self, config: JWTConfig, clock: Callable[[], datetime.datetime] = _utc_now):
        if not config.secret_key:
            raise ValueError("TokenService requires a non-empty secret key")
        self.config = config
        self._clock = clock

    def issue(
        self,
        user_id: str,
        ttl: datetime.timedelta,
        token_type: TokenType = TokenType.SESSION
    ) -> Tuple[str, datetime.datetime]:
        """
        Create a signed token for ``user_id``.

        Args:
            user_id: The subject of the token
            ttl: How long the token stays valid
            token_type: Session or reset

        Returns:
            The encoded token and its (aware, UTC) expiry
        """
        now = self._clock()
        expires_at = now + ttl
        payload: Dict[str, Any] = {
            "sub": str(user_id),
            "iat": now,
            "exp": expires_at,
            "iss": self.config.token_issuer,
            "type": token_type.value,
            "jti": uuid.uuid4().hex,
        }
        token = jwt.encode(payload, self.config.secret_key, algorithm=self.config.algorithm)
        return token, expires_at

    def issue_session_token(self, user_id: str) -> str:
        """Create a session token with the configured session lifetime."""
        token, _ = self.issue(user_id, self.config.session_ttl, TokenType.SESSION)
        return token

    def issue_reset_token(self, user_id: str) -> Tuple[str, datetime.datetime]:
        """Create a password reset token and return it with its expiry."""
        return self.issue(user_id, self.config.reset_ttl, TokenType.RESET)

    def verify(self, token: str, expected_type: Optional[TokenType] = None) -> TokenClaims:
        """
        Validate a token and return its claims.

        The signature is checked before any claim is read.

        Args:
            token: The encoded token
            expected_type: Reject tokens of any other type when given

        Returns:
            The verified claims

        Raises:
            InvalidTokenError: Malformed, bad signature, wrong issuer,
                missing claims or wrong type
            ExpiredTokenError: Valid but past its expiry
        """
        if not token:
            raise InvalidTokenError("Token is missing")

        try:
            payload = jwt.decode(
                token,
                self.config.secret_key,
                algorithms=[self.config.algorithm],
                issuer=self.config.token_issuer,
                options={"require": ["exp", "iat", "sub", "type"]}
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError()
        except jwt.PyJWTError as e:
            logger.debug(f"Token rejected: {type(e).__name__}")
            raise InvalidTokenError(f"Invalid token: {e}")

        try:
            token_type = TokenType(payload["type"])
        except ValueError:
            raise InvalidTokenError("Unknown token type")

        if expected_type is not None and token_type != expected_type:
            raise InvalidTokenError(
                f"Invalid token type: expected {expected_type.value}, got {token_type.value}"
            )

        return TokenClaims(
            user_id=payload["sub"],
            token_type=token_type,
            issued_at=datetime.datetime.fromtimestamp(payload["iat"], datetime.timezone.utc),
            expires_at=datetime.datetime.fromtimestamp(payload["exp"], datetime.timezone.utc),
        )
