"""
Tests for password hashing and the password policy.
"""

import pytest

from cartpod.common.auth.exceptions import WeakPasswordError
from cartpod.common.auth.password import (
    check_password_strength,
    hash_password,
    password_policy_violations,
    verify_password
)


def test_hash_embeds_algorithm_and_iterations():
    encoded = hash_password("secret1", iterations=1000)
    algorithm, iterations, salt, digest = encoded.split("$")

    assert algorithm == "pbkdf2_sha256"
    assert iterations == "1000"
    assert salt and len(digest) == 64
    assert "secret1" not in encoded


def test_verify_password():
    encoded = hash_password("secret1", iterations=1000)

    assert verify_password("secret1", encoded)
    assert not verify_password("secret2", encoded)
    assert not verify_password("", encoded)


def test_same_password_gets_a_fresh_salt():
    assert hash_password("secret1", iterations=1000) != hash_password("secret1", iterations=1000)


@pytest.mark.parametrize("encoded", ["", "not-a-hash", "md5$1$salt$abc", "pbkdf2_sha256$x$salt$abc", None])
def test_malformed_hash_never_verifies(encoded):
    assert verify_password("secret1", encoded) is False


def test_policy_accepts_strong_password():
    assert password_policy_violations("Abcde1") == []
    check_password_strength("Abcde1")


@pytest.mark.parametrize("password,expected", [
    ("Ab1", "Password must be at least 6 characters long"),
    ("Abcdef", "Password must contain at least one number"),
    ("ABCDE1", "Password must contain at least one lowercase letter"),
    ("abcde1", "Password must contain at least one uppercase letter"),
])
def test_policy_reports_each_rule(password, expected):
    assert password_policy_violations(password) == [expected]


def test_check_password_strength_lists_all_problems():
    with pytest.raises(WeakPasswordError) as exc_info:
        check_password_strength("abc")

    assert exc_info.value.status_code == 400
    assert exc_info.value.code == "weak_password"
    assert len(exc_info.value.details["problems"]) == 3
