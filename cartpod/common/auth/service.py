"""
Authentication Service

Registration, login and the admin user-management operations.
"""

from dataclasses import dataclass
from typing import Any, Dict, List

from cartpod.common.auth.exceptions import ForbiddenError, InvalidCredentialsError
from cartpod.common.auth.jwt import TokenService
from cartpod.common.auth.password import MIN_PASSWORD_LENGTH
from cartpod.common.auth.store import CredentialStore
from cartpod.common.auth.user import AuthenticatedUser, User, UserRole
from cartpod.common.exceptions import ValidationError
from cartpod.common.logger import app_logger

logger = app_logger.getChild("auth.service")


@dataclass
class AuthResult:
    """A session token together with the user it was issued for."""
    token: str
    user: User

    def to_dict(self) -> Dict[str, Any]:
        return {"token": self.token, "user": self.user.to_dict()}


class AuthService:
    """Wraps the credential store and token service for the HTTP handlers."""

    def __init__(self, store: CredentialStore, tokens: TokenService):
        self.store = store
        self.tokens = tokens

    async def register(self, name: str, email: str, password: str, role: Any) -> AuthResult:
        """
        Create an account and log it in.

        Raises:
            ValidationError: For an empty name, short password or unknown role
            DuplicateEmailError: If the email is taken
        """
        errors = {}
        if not name or not name.strip():
            errors["name"] = "Name is required"
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        if errors:
            raise ValidationError("Validation failed", errors)

        user = await self.store.create(name, email, password, UserRole.parse(role))
        logger.info(f"Registered user {user.id} as {user.role.value}")
        return AuthResult(token=self.tokens.issue_session_token(user.id), user=user)

    async def login(self, email: str, password: str) -> AuthResult:
        """
        Exchange credentials for a session token.

        Raises:
            InvalidCredentialsError: For an unknown email or a wrong password
        """
        user = await self.store.find_by_email(email)
        if not await self.store.verify_password(user, password):
            logger.info("Failed login attempt")
            raise InvalidCredentialsError()

        logger.info(f"User {user.id} logged in")
        return AuthResult(token=self.tokens.issue_session_token(user.id), user=user)

    async def list_users(self, actor: AuthenticatedUser) -> List[User]:
        """Every registered user. Admin only."""
        self._require_admin(actor)
        return await self.store.list()

    async def update_user(self, actor: AuthenticatedUser, user_id: str, fields: Dict[str, Any]) -> User:
        """Change another user's name, email or role. Admin only."""
        self._require_admin(actor)
        user = await self.store.update(user_id, fields)
        logger.info(f"Admin {actor.id} updated user {user_id}")
        return user

    async def delete_user(self, actor: AuthenticatedUser, user_id: str) -> None:
        """Remove a user. Admin only, and never the last admin."""
        self._require_admin(actor)
        await self.store.delete(user_id)
        logger.info(f"Admin {actor.id} deleted user {user_id}")

    @staticmethod
    def _require_admin(actor: AuthenticatedUser) -> None:
        if not actor.is_admin:
            logger.warning(f"User {actor.id} attempted an admin-only operation")
            raise ForbiddenError()
