"""
Test infrastructure for the Blog API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app under test is built by ``create_app`` with test settings and the
  test engine injected, so no production engine or secret is touched.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state without needing transactions or truncation.
- Thumbnails are written to a throwaway temp directory with a 1 KiB upload
  limit so size checks can be exercised with tiny payloads.
"""
import tempfile

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from blogapi.config import Settings
from blogapi.database import Base
from blogapi.main import create_app

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)

test_settings = Settings(
    DATABASE_URL=TEST_DATABASE_URL,
    SECRET_KEY="test-secret-key-that-is-long-enough-for-hs256",
    UPLOAD_DIR=tempfile.mkdtemp(prefix="blogapi-uploads-"),
    MAX_UPLOAD_BYTES=1024,
    LOG_LEVEL="WARNING",
)

app = create_app(test_settings, engine=engine_test)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that need to interact with the
    database directly (e.g. seeding data, asserting ORM state).
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the test app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def token_service():
    return app.state.token_service


@pytest.fixture
def register(async_client: AsyncClient):
    """
    Factory fixture: sign a user up, log them in and return
    ``(user_id, headers)`` where *headers* carries the bearer token.
    """
    async def _register(name: str = "Ann", email: str = "ann@example.com", password: str = "secret1"):
        resp = await async_client.post("/api/signup", json={
            "name": name,
            "email": email,
            "password": password,
        })
        assert resp.status_code == 200, resp.text
        user_id = resp.json()["data"]["id"]

        resp = await async_client.post("/api/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        # Keep requests explicit: authenticate by header, not the login cookie.
        async_client.cookies.clear()
        token = resp.json()["data"]["token"]
        return user_id, {"Authorization": f"Bearer {token}"}

    return _register


@pytest.fixture
def create_blog(async_client: AsyncClient):
    """Factory fixture: create a blog through the API and return its id."""
    async def _create_blog(headers: dict, judul: str = "A blog", content: str = "Some content"):
        resp = await async_client.post(
            "/api/blogs",
            data={"judul": judul, "content": content},
            files={"thumbnail": ("thumb.png", PNG_BYTES, "image/png")},
            headers=headers,
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]["id"]

    return _create_blog
