"""
Password Utilities

This module provides password hashing, verification and the password policy
applied to new passwords set through the reset flow.
"""

import hashlib
import re
import secrets
from typing import List

from cartpod.common.auth.exceptions import WeakPasswordError

ALGORITHM = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 100000
MIN_PASSWORD_LENGTH = 6

_POLICY = [
    (re.compile(r"\d"), "Password must contain at least one number"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
]


def _derive(password: str, salt: str, iterations: int) -> str:
    key = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode(),
        salt.encode(),
        iterations,
        dklen=32
    )
    return key.hex()


def hash_password(password: str, iterations: int = DEFAULT_ITERATIONS) -> str:
    """
    Hash a password with PBKDF2-SHA256 and a fresh random salt.

    The returned string embeds the algorithm, iteration count and salt
    (``pbkdf2_sha256$<iterations>$<salt>$<hex digest>``), so the cost can be
    raised later without invalidating stored hashes.

    Args:
        password: The password to hash
        iterations: PBKDF2 iteration count

    Returns:
        The encoded hash
    """
    salt = secrets.token_hex(16)
    return f"{ALGORITHM}${iterations}${salt}${_derive(password, salt, iterations)}"


def verify_password(password: str, encoded: str) -> bool:
    """
    Verify that a password matches a stored hash.

    Args:
        password: The password to verify
        encoded: The stored hash produced by ``hash_password``

    Returns:
        True if the password matches, False otherwise (including for a
        malformed stored hash)
    """
    try:
        algorithm, iterations, salt, expected = encoded.split("$")
        iterations = int(iterations)
    except (AttributeError, ValueError):
        return False

    if algorithm != ALGORITHM:
        return False

    return secrets.compare_digest(_derive(password, salt, iterations), expected)


def password_policy_violations(password: str) -> List[str]:
    """Return every policy rule ``password`` breaks (empty when it is acceptable)."""
    problems = []
    if len(password) < MIN_PASSWORD_LENGTH:
        problems.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    problems.extend(message for pattern, message in _POLICY if not pattern.search(password))
    return problems


def check_password_strength(password: str) -> None:
    """
    Enforce the password policy.

    Raises:
        WeakPasswordError: Listing every rule the password breaks
    """
    problems = password_policy_violations(password)
    if problems:
        raise WeakPasswordError(problems)
