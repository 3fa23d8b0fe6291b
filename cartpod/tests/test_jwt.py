"""
Tests for issuing and verifying session and reset tokens.
"""

import datetime

import jwt as pyjwt
import pytest

from cartpod.common.auth.exceptions import ExpiredTokenError, InvalidTokenError
from cartpod.common.auth.jwt import JWTConfig, TokenService, TokenType
from cartpod.tests.conftest import TEST_SECRET


def _past_clock(days=2):
    moment = datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(days=days)
    return lambda: moment


class TestTokenService:

    def test_session_token_round_trip(self, tokens):
        token = tokens.issue_session_token("user-1")
        claims = tokens.verify(token)

        assert claims.user_id == "user-1"
        assert claims.token_type == TokenType.SESSION
        assert claims.expires_at - claims.issued_at == datetime.timedelta(days=7)

    def test_reset_token_lifetime(self, tokens):
        token, expires_at = tokens.issue_reset_token("user-1")
        claims = tokens.verify(token, expected_type=TokenType.RESET)

        assert claims.user_id == "user-1"
        assert claims.expires_at - claims.issued_at == datetime.timedelta(hours=1)
        assert int(expires_at.timestamp()) == int(claims.expires_at.timestamp())

    def test_issue_with_custom_ttl(self, tokens):
        token, _ = tokens.issue("user-1", datetime.timedelta(minutes=5))
        claims = tokens.verify(token)

        assert claims.expires_at - claims.issued_at == datetime.timedelta(minutes=5)

    def test_tokens_issued_together_differ(self, tokens):
        assert tokens.issue_session_token("user-1") != tokens.issue_session_token("user-1")

    def test_session_token_rejected_as_reset_token(self, tokens):
        token = tokens.issue_session_token("user-1")

        with pytest.raises(InvalidTokenError):
            tokens.verify(token, expected_type=TokenType.RESET)

    def test_reset_token_rejected_as_session_token(self, tokens):
        token, _ = tokens.issue_reset_token("user-1")

        with pytest.raises(InvalidTokenError):
            tokens.verify(token, expected_type=TokenType.SESSION)

    def test_expired_token(self):
        issuer = TokenService(JWTConfig(secret_key=TEST_SECRET), clock=_past_clock())
        verifier = TokenService(JWTConfig(secret_key=TEST_SECRET))
        token, _ = issuer.issue_reset_token("user-1")

        with pytest.raises(ExpiredTokenError):
            verifier.verify(token)

    def test_expired_session_token(self):
        issuer = TokenService(JWTConfig(secret_key=TEST_SECRET), clock=_past_clock(days=8))
        token = issuer.issue_session_token("user-1")

        with pytest.raises(ExpiredTokenError):
            issuer.verify(token, expected_type=TokenType.SESSION)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "expired-token"])
    def test_malformed_tokens(self, tokens, token):
        with pytest.raises(InvalidTokenError):
            tokens.verify(token)

    def test_tampered_token(self, tokens):
        token = tokens.issue_session_token("user-1")
        header, payload, _ = token.split(".")
        foreign_signature = tokens.issue_session_token("user-2").split(".")[2]
        tampered = ".".join([header, payload, foreign_signature])

        with pytest.raises(InvalidTokenError):
            tokens.verify(tampered)

    def test_wrong_secret(self, tokens):
        other = TokenService(JWTConfig(secret_key="another-secret-key-with-32-bytes-or-more"))
        token = other.issue_session_token("user-1")

        with pytest.raises(InvalidTokenError):
            tokens.verify(token)

    def test_wrong_issuer(self, tokens):
        other = TokenService(JWTConfig(secret_key=TEST_SECRET, token_issuer="someone-else"))
        token = other.issue_session_token("user-1")

        with pytest.raises(InvalidTokenError):
            tokens.verify(token)

    def test_missing_type_claim(self, tokens):
        now = datetime.datetime.now(datetime.timezone.utc)
        token = pyjwt.encode(
            {"sub": "user-1", "iat": now, "exp": now + datetime.timedelta(hours=1), "iss": "cartpod-api"},
            TEST_SECRET,
            algorithm="HS256"
        )

        with pytest.raises(InvalidTokenError):
            tokens.verify(token)

    def test_unknown_type_claim(self, tokens):
        now = datetime.datetime.now(datetime.timezone.utc)
        token = pyjwt.encode(
            {
                "sub": "user-1",
                "iat": now,
                "exp": now + datetime.timedelta(hours=1),
                "iss": "cartpod-api",
                "type": "refresh",
            },
            TEST_SECRET,
            algorithm="HS256"
        )

        with pytest.raises(InvalidTokenError):
            tokens.verify(token)

    def test_empty_secret_is_refused(self):
        with pytest.raises(ValueError):
            TokenService(JWTConfig(secret_key=""))
