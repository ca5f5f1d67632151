"""
Inkwell Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the test suite.
How:   Service tests use a mocked AsyncSession; route tests run the real app
       over httpx's ASGITransport against a fresh file-backed SQLite database
       per test. Each app opens that database through its own engine, built
       by create_app() from the test Settings.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── hasher / token_service: Fast bcrypt cost and a test secret
    ├── test_settings: Settings for an isolated app (temp upload dir)
    ├── db_engine → session_factory → db_session: Schema + direct row access
    ├── app_factory / app: create_app(settings), engines disposed on teardown
    └── client: HTTPX AsyncClient for API endpoint testing
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

# inkwell.main builds a default app at import time; point it at test values first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only-0123456789"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="inkwell_test_")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import inkwell.models  # noqa: F401  registers tables on Base.metadata
from inkwell.config import Settings
from inkwell.database import Base, build_engine, build_session_factory
from inkwell.main import create_app
from inkwell.services.passwords import PasswordHasher
from inkwell.services.tokens import TokenService

TEST_SECRET = "test-secret-key-for-testing-only-0123456789"

# Smallest valid PNG header; enough for extension/size validation
PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + b"\x00" * 32


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = user
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def token_service():
    return TokenService(TEST_SECRET)


@pytest.fixture
def sample_image_bytes():
    return PNG_BYTES


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'inkwell.db'}",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        storage_root=str(tmp_path / "uploads"),
        cover_storage="local",
        rate_limit_enabled=False,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def db_engine(test_settings):
    """Create the schema in the test database; the apps open it independently."""
    engine = build_engine(test_settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """A session for arranging and inspecting rows directly in route tests."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def app_factory(db_engine):
    """Build apps from custom Settings; their engines are disposed on teardown."""
    apps = []

    def _create(config: Settings):
        app = create_app(config)
        apps.append(app)
        return app

    yield _create
    for app in apps:
        await app.state.engine.dispose()


@pytest.fixture
def app(test_settings, app_factory):
    return app_factory(test_settings)


@pytest_asyncio.fixture
async def client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    The client keeps a cookie jar, so a successful /login authenticates the
    following requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def register_and_login():
    """
    Register a user and log in through the given client.

    The login sets the session cookie on the client; returns the login body.
    """

    async def _register_and_login(client: AsyncClient, username: str, password: str = "secret1") -> dict:
        response = await client.post("/register", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        response = await client.post("/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return response.json()

    return _register_and_login
