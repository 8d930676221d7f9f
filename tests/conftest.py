"""Test fixtures: a fresh SQLite database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own database file under pytest's tmp_path, so
   there is no cross-test pollution and no cleanup step.
2. The store, issuer and service are built exactly as the app lifespan
   builds them, just with bcrypt cost 4 so hashing is fast.
3. httpx.ASGITransport does not run the lifespan, so the client fixture
   puts the engine and service on app.state directly.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from authcore.config import Settings
from authcore.db.engine import create_all, create_engine, create_session_factory
from authcore.main import create_app
from authcore.services.auth_service import build_auth_service

TEST_SECRET = "test-secret-4f0c2d1e9b8a7c6d5e4f3a2b1c0d9e8f"


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        environment="development",
    )


@pytest_asyncio.fixture()
async def engine(settings):
    engine = create_engine(settings)
    await create_all(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture()
def auth_service(settings, session_factory):
    return build_auth_service(settings, session_factory)


@pytest.fixture()
def store(auth_service):
    return auth_service.store


@pytest.fixture()
def issuer(auth_service):
    return auth_service.issuer


@pytest_asyncio.fixture()
async def client(settings, engine, auth_service):
    """HTTP client against an app wired to the per-test database."""
    app = create_app(settings)
    app.state.engine = engine
    app.state.auth_service = auth_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
