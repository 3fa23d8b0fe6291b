"""
Password Reset Flow

A reset goes through two requests. ``request_reset`` mints a short-lived reset
token, records it on the user and emails it; ``consume_reset`` checks the
token against what was recorded and replaces the password. A recorded token
is cleared on use, so each one works once.
"""

import datetime
from typing import Callable

from cartpod.common.auth.exceptions import (
    EmailDeliveryError,
    ExpiredTokenError,
    InvalidOrExpiredTokenError,
    InvalidTokenError
)
from cartpod.common.auth.jwt import TokenService, TokenType
from cartpod.common.auth.password import check_password_strength
from cartpod.common.auth.store import CredentialStore
from cartpod.common.logger import app_logger
from cartpod.common.notifications import Notifier
from cartpod.common.utils import utcnow

logger = app_logger.getChild("auth.reset")

GENERIC_MESSAGE = "If an account exists with this email, a password reset link will be sent."
RESET_SUCCESS_MESSAGE = "Password has been reset successfully"


class PasswordResetService:
    """
    Issues and redeems password reset tokens.

    Args:
        store: Where users and their pending reset tokens live
        tokens: Signs and verifies the reset tokens
        notifier: Delivers the reset link
        clock: Returns the current time as naive UTC
    """

    def __init__(
        self,
        store: CredentialStore,
        tokens: TokenService,
        notifier: Notifier,
        clock: Callable[[], datetime.datetime] = utcnow
    ):
        self.store = store
        self.tokens = tokens
        self.notifier = notifier
        self._clock = clock

    async def request_reset(self, email: str) -> str:
        """
        Start a password reset for ``email``.

        Unknown emails get the same answer as known ones and cause no writes.

        Returns:
            The message to show to the caller

        Raises:
            EmailDeliveryError: If the email could not be sent; the pending
                token is withdrawn first
        """
        user = await self.store.find_by_email(email)
        if user is None:
            logger.info("Password reset requested for an unknown email")
            return GENERIC_MESSAGE

        token, expires_at = self.tokens.issue_reset_token(user.id)
        expiry = expires_at.astimezone(datetime.timezone.utc).replace(tzinfo=None)
        await self.store.set_reset_token(user.id, token, expiry)

        try:
            sent = await self.notifier.send_password_reset_email(user.email, token)
        except Exception as e:
            logger.error(f"Notifier raised while sending reset email for user {user.id}: {e}")
            sent = False

        if not sent:
            await self.store.clear_reset_token(user.id, token)
            logger.warning(f"Password reset email failed for user {user.id}; reset token withdrawn")
            raise EmailDeliveryError()

        logger.info(f"Password reset requested for user {user.id}")
        return GENERIC_MESSAGE

    async def consume_reset(self, token: str, new_password: str) -> str:
        """
        Set a new password using a reset token.

        The password policy is checked before the token, and nothing is
        written unless every check passes.

        Raises:
            WeakPasswordError: If the new password breaks the policy
            InvalidOrExpiredTokenError: For a bad, expired, session, reused or
                superseded token
        """
        check_password_strength(new_password)

        try:
            claims = self.tokens.verify(token, expected_type=TokenType.RESET)
        except (InvalidTokenError, ExpiredTokenError):
            raise InvalidOrExpiredTokenError()

        if not await self.store.consume_reset(claims.user_id, token, new_password, self._clock()):
            logger.info(f"Rejected stale reset token for user {claims.user_id}")
            raise InvalidOrExpiredTokenError()

        logger.info(f"Password reset completed for user {claims.user_id}")
        return RESET_SUCCESS_MESSAGE
