"""
Tests for the password reset flow with a mocked notifier.
"""

import datetime

import pytest

from cartpod.common.auth.exceptions import (
    EmailDeliveryError,
    InvalidOrExpiredTokenError,
    WeakPasswordError
)
from cartpod.common.auth.jwt import JWTConfig, TokenService
from cartpod.common.auth.reset import GENERIC_MESSAGE, PasswordResetService
from cartpod.common.utils import utcnow
from cartpod.tests.conftest import TEST_SECRET


@pytest.fixture
def resets(store, tokens, notifier):
    return PasswordResetService(store, tokens, notifier)


def sent_token(notifier):
    """The reset token passed to the most recent notifier call."""
    email, token = notifier.send_password_reset_email.await_args.args
    return token


class TestRequestReset:

    @pytest.mark.asyncio
    async def test_unknown_email_has_no_side_effects(self, resets, notifier):
        message = await resets.request_reset("nouser@x.com")

        assert message == GENERIC_MESSAGE
        notifier.send_password_reset_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_known_email_sends_a_reset_token(self, resets, store, notifier):
        await store.create("Alice", "alice@x.com", "secret1", "owner")

        message = await resets.request_reset("ALICE@x.com")

        assert message == GENERIC_MESSAGE
        notifier.send_password_reset_email.assert_awaited_once()
        email, token = notifier.send_password_reset_email.await_args.args
        assert email == "alice@x.com"
        assert token

    @pytest.mark.asyncio
    async def test_failed_delivery_withdraws_the_token(self, resets, store, notifier):
        user = await store.create("Alice", "alice@x.com", "secret1", "owner")
        notifier.send_password_reset_email.return_value = False

        with pytest.raises(EmailDeliveryError) as exc_info:
            await resets.request_reset("alice@x.com")

        assert exc_info.value.status_code == 500
        token = sent_token(notifier)
        assert not await store.consume_reset(user.id, token, "Abcde1", utcnow())

    @pytest.mark.asyncio
    async def test_notifier_exception_is_a_delivery_failure(self, resets, store, notifier):
        user = await store.create("Alice", "alice@x.com", "secret1", "owner")
        notifier.send_password_reset_email.side_effect = ConnectionError("smtp down")

        with pytest.raises(EmailDeliveryError):
            await resets.request_reset("alice@x.com")

        token = sent_token(notifier)
        assert not await store.consume_reset(user.id, token, "Abcde1", utcnow())


class TestConsumeReset:

    @pytest.mark.asyncio
    async def test_reset_changes_password_once(self, resets, store, notifier):
        user = await store.create("Alice", "alice@x.com", "secret1", "owner")
        await resets.request_reset("alice@x.com")
        token = sent_token(notifier)

        await resets.consume_reset(token, "Abcde1")

        assert await store.verify_password(user, "Abcde1")
        with pytest.raises(InvalidOrExpiredTokenError):
            await resets.consume_reset(token, "Abcde2")
        assert await store.verify_password(user, "Abcde1")

    @pytest.mark.asyncio
    async def test_weak_password_checked_before_token(self, resets, store, notifier):
        user = await store.create("Alice", "alice@x.com", "secret1", "owner")
        await resets.request_reset("alice@x.com")
        token = sent_token(notifier)

        with pytest.raises(WeakPasswordError):
            await resets.consume_reset(token, "abcdef")
        with pytest.raises(WeakPasswordError):
            await resets.consume_reset("garbage", "abc")

        await resets.consume_reset(token, "Abcde1")
        assert await store.verify_password(user, "Abcde1")

    @pytest.mark.asyncio
    async def test_session_token_cannot_reset_password(self, resets, store, tokens):
        user = await store.create("Alice", "alice@x.com", "secret1", "owner")
        session_token = tokens.issue_session_token(user.id)
        await store.set_reset_token(user.id, session_token, utcnow() + datetime.timedelta(hours=1))

        with pytest.raises(InvalidOrExpiredTokenError):
            await resets.consume_reset(session_token, "Abcde1")

        assert await store.verify_password(user, "secret1")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", ["expired-token", "", "a.b.c"])
    async def test_garbage_token(self, resets, token):
        with pytest.raises(InvalidOrExpiredTokenError):
            await resets.consume_reset(token, "Abcde1")

    @pytest.mark.asyncio
    async def test_expired_reset_token(self, store, notifier):
        user = await store.create("Alice", "alice@x.com", "secret1", "owner")
        two_hours_ago = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(hours=2)
        stale_tokens = TokenService(JWTConfig(secret_key=TEST_SECRET), clock=lambda: two_hours_ago)
        resets = PasswordResetService(store, stale_tokens, notifier)
        await resets.request_reset("alice@x.com")

        with pytest.raises(InvalidOrExpiredTokenError):
            await resets.consume_reset(sent_token(notifier), "Abcde1")

        assert await store.verify_password(user, "secret1")

    @pytest.mark.asyncio
    async def test_newer_request_supersedes_older_token(self, resets, store, notifier):
        user = await store.create("Alice", "alice@x.com", "secret1", "owner")
        await resets.request_reset("alice@x.com")
        first = sent_token(notifier)
        await resets.request_reset("alice@x.com")
        second = sent_token(notifier)

        with pytest.raises(InvalidOrExpiredTokenError):
            await resets.consume_reset(first, "Abcde1")

        await resets.consume_reset(second, "Abcde1")
        assert await store.verify_password(user, "Abcde1")

    @pytest.mark.asyncio
    async def test_token_for_deleted_user(self, resets, store, notifier):
        await store.create("Root", "root@x.com", "secret1", "admin")
        user = await store.create("Alice", "alice@x.com", "secret1", "owner")
        await resets.request_reset("alice@x.com")
        token = sent_token(notifier)
        await store.delete(user.id)

        with pytest.raises(InvalidOrExpiredTokenError):
            await resets.consume_reset(token, "Abcde1")
