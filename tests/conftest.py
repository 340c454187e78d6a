"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own in-memory SQLite engine (aiosqlite + StaticPool,
   so every session sees the same single connection) with tables created.
2. The app is built around that engine (create_app's engine argument),
   so the real get_db hands out one session per request from it, just
   like production.
3. bcrypt runs with the minimum 4 rounds so hashing doesn't dominate
   test time.

Nothing is shared between tests; the database disappears with the engine.
"""

import os
from typing import Optional

os.environ.setdefault("PROJECTHUB_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("PROJECTHUB_BCRYPT_ROUNDS", "4")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from projecthub.auth.jwt import TokenIssuer
from projecthub.auth.password import PasswordHasher
from projecthub.config import Settings
from projecthub.db.engine import init_models
from projecthub.main import create_app
from projecthub.store.sqlalchemy_store import SqlAlchemyStore

TEST_JWT_SECRET = "test-secret-for-projecthub-suite"


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        jwt_secret=TEST_JWT_SECRET,
        bcrypt_rounds=4,
    )


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(secret=TEST_JWT_SECRET)


@pytest_asyncio.fixture()
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(db_session) -> SqlAlchemyStore:
    return SqlAlchemyStore(db_session)


@pytest.fixture
def app(test_settings, db_engine):
    """App wired to the per-test database."""
    return create_app(test_settings, engine=db_engine)


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def login_as(client):
    """Register + log in a user; returns auth headers, the user payload and the token."""

    async def _login_as(
        username: str,
        password: str = "password1",
        email: Optional[str] = None,
    ) -> dict:
        return await _register_and_login(client, username, password, email)

    return _login_as


async def _register_and_login(
    client: AsyncClient,
    username: str,
    password: str,
    email: Optional[str],
) -> dict:
    r = await client.post(
        "/api/auth/register",
        json={
            "username": username,
            "email": email or f"{username}@example.com",
            "password": password,
        },
    )
    assert r.status_code == 201, r.text
    r = await client.post(
        "/api/auth/login",
        json={"username": username, "password": password},
    )
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    return {
        "headers": {"Authorization": f"Bearer {data['accessToken']}"},
        "user": data["user"],
        "token": data["accessToken"],
    }


@pytest_asyncio.fixture()
async def alice(client):
    return await _register_and_login(client, "alice", "password1", None)


@pytest_asyncio.fixture()
async def auth_client(client, alice):
    """Client that sends alice's token on every request."""
    client.headers.update(alice["headers"])
    return client
