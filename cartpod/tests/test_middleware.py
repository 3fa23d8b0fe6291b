"""
Tests for bearer authentication and role gates.
"""

import pytest

from cartpod.common.auth.exceptions import ForbiddenError, UnauthenticatedError
from cartpod.common.auth.middleware import authenticate, extract_token_from_header, require_role
from cartpod.common.auth.user import AuthenticatedUser, UserRole
from cartpod.common.exceptions import ValidationError


@pytest.mark.parametrize("header,expected", [
    ("Bearer abc", "abc"),
    ("bearer abc", "abc"),
    (None, None),
    ("", None),
    ("Bearer", None),
    ("Basic abc", None),
    ("Bearer abc def", None),
])
def test_extract_token_from_header(header, expected):
    assert extract_token_from_header(header) == expected


class TestAuthenticate:

    @pytest.mark.asyncio
    async def test_valid_session_token(self, store, tokens):
        user = await store.create("Alice", "alice@x.com", "secret1", "owner")
        token = tokens.issue_session_token(user.id)

        auth_user = await authenticate(f"Bearer {token}", store, tokens)

        assert auth_user.id == user.id
        assert auth_user.access_token == token
        assert auth_user.role == UserRole.OWNER

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer garbage"])
    async def test_unusable_header(self, store, tokens, header):
        with pytest.raises(UnauthenticatedError) as exc_info:
            await authenticate(header, store, tokens)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_reset_token_is_not_a_session(self, store, tokens):
        user = await store.create("Alice", "alice@x.com", "secret1", "owner")
        token, _ = tokens.issue_reset_token(user.id)

        with pytest.raises(UnauthenticatedError):
            await authenticate(f"Bearer {token}", store, tokens)

    @pytest.mark.asyncio
    async def test_deleted_user_is_not_honored(self, store, tokens):
        await store.create("Root", "root@x.com", "secret1", "admin")
        user = await store.create("Alice", "alice@x.com", "secret1", "owner")
        token = tokens.issue_session_token(user.id)
        await store.delete(user.id)

        with pytest.raises(UnauthenticatedError):
            await authenticate(f"Bearer {token}", store, tokens)


class TestRequireRole:

    @pytest.mark.asyncio
    async def test_matching_role_passes(self, store):
        admin = await store.create("Root", "root@x.com", "secret1", "admin")
        auth_user = AuthenticatedUser(user=admin, access_token="t")

        gate = require_role(UserRole.ADMIN)

        assert await gate(user=auth_user) is auth_user

    @pytest.mark.asyncio
    async def test_other_role_is_forbidden(self, store):
        owner = await store.create("Alice", "alice@x.com", "secret1", "owner")
        auth_user = AuthenticatedUser(user=owner, access_token="t")

        with pytest.raises(ForbiddenError) as exc_info:
            await require_role("admin")(user=auth_user)

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_any_of_several_roles(self, store):
        owner = await store.create("Alice", "alice@x.com", "secret1", "owner")
        auth_user = AuthenticatedUser(user=owner, access_token="t")

        assert await require_role(UserRole.OWNER, UserRole.ADMIN)(user=auth_user) is auth_user

    def test_unknown_role_cannot_be_required(self):
        with pytest.raises(ValidationError):
            require_role("superuser")
