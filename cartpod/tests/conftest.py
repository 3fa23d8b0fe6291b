"""
Shared fixtures for the CartPod tests.

Every test gets its own SQLite file under ``tmp_path`` and a low PBKDF2
iteration count so that hashing stays fast.
"""

from typing import Any, Dict
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio

from cartpod import create_app
from cartpod.common.auth.jwt import JWTConfig, TokenService
from cartpod.common.auth.store import CredentialStore
from cartpod.common.notifications import Notifier
from cartpod.config import Settings
from cartpod.database.init_db import Database

TEST_SECRET = "test-secret-key-with-at-least-32-bytes!"
TEST_ITERATIONS = 1000


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path}/test.db",
        JWT_SECRET=TEST_SECRET,
        PASSWORD_HASH_ITERATIONS=TEST_ITERATIONS,
        EMAIL_USER="noreply@example.com",
        CLIENT_URL="http://client.test",
        DEFAULT_IMAGE_URL="http://images.test/default.jpg",
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def tokens():
    return TokenService(JWTConfig(secret_key=TEST_SECRET))


@pytest.fixture
def notifier():
    mock = AsyncMock(spec=Notifier)
    mock.send_password_reset_email.return_value = True
    return mock


@pytest_asyncio.fixture
async def database(settings):
    db = Database(settings.DATABASE_URL)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def store(database):
    return CredentialStore(database, iterations=TEST_ITERATIONS)


@pytest.fixture
def app(settings, notifier):
    return create_app(settings, notifier=notifier)


@pytest_asyncio.fixture
async def client(app):
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac


async def register_user(
    client: httpx.AsyncClient,
    name: str = "A",
    email: str = "a@x.com",
    password: str = "secret1",
    role: str = "owner"
) -> Dict[str, Any]:
    """Register through the API and return the ``{token, user}`` body."""
    response = await client.post("/auth/register", json={
        "name": name,
        "email": email,
        "password": password,
        "role": role,
    })
    assert response.status_code == 201, response.text
    return response.json()


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
