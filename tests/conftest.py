"""
Pytest fixtures for Lectern tests.

Environment is pinned before anything from lectern is imported: a temp-file
SQLite database (in-memory SQLite is per-connection), a known admin
allow-list and no OpenAI key so lecture breakdowns are deterministic.
"""

import os
import tempfile
import uuid
from typing import AsyncGenerator

_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
TEST_DB_PATH = _tmp.name
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{TEST_DB_PATH}"

os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-0123456789"
os.environ["ADMIN_EMAILS"] = " Admin@Example.com , ,boss@example.com"
os.environ["OPENAI_API_KEY"] = ""
os.environ["ENVIRONMENT"] = "test"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from lectern.config import get_settings

get_settings.cache_clear()

from lectern.database import build_engine, build_session_maker, get_db
from lectern.kernel.identity.jwt import JWTManager
from lectern.kernel.models import Base
from lectern.main import app


TEST_ENGINE = build_engine(TEST_DATABASE_URL)
TEST_SESSION_MAKER = build_session_maker(TEST_ENGINE)

PASSWORD = "SecurePass123"


async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TEST_SESSION_MAKER() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def pytest_sessionfinish(session, exitstatus):
    """Clean up temp DB file after test run."""
    if os.path.exists(TEST_DB_PATH):
        os.unlink(TEST_DB_PATH)


@pytest_asyncio.fixture
async def db_tables():
    """Fresh schema per test."""
    async with TEST_ENGINE.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with TEST_ENGINE.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session(db_tables) -> AsyncGenerator[AsyncSession, None]:
    """A session on the test database, committed by the test itself."""
    async with TEST_SESSION_MAKER() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(db_tables) -> AsyncGenerator[AsyncClient, None]:
    """In-process API client backed by the test database."""
    app.dependency_overrides[get_db] = override_get_db
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_db, None)


async def _register(client: AsyncClient, email: str = None, username: str = None, name: str = None) -> dict:
    email = email or f"user-{uuid.uuid4().hex[:8]}@example.com"
    body = {"email": email, "password": PASSWORD}
    if username:
        body["username"] = username
    if name:
        body["name"] = name
    r = await client.post("/api/v1/auth/register", json=body)
    assert r.status_code == 201, r.text
    data = r.json()
    data["headers"] = {"Authorization": f"Bearer {data['access_token']}"}
    return data


@pytest.fixture
def register():
    """Register a user; returns the token response plus ready-made auth headers."""
    return _register


@pytest.fixture
def jwt_manager() -> JWTManager:
    """JWT manager with fixed test settings."""
    return JWTManager(
        secret_key="test-secret-key-for-testing-only",
        algorithm="HS256",
        access_token_expire_minutes=30,
        refresh_token_expire_days=7,
    )


@pytest.fixture
def lecture_text() -> str:
    """Three paragraphs -> three subtopics with the built-in breakdown generator."""
    return (
        "Graphs model pairwise relations between objects. A graph is made of vertices "
        "connected by edges, and edges may be directed or undirected.\n\n"
        "Trees are connected acyclic graphs. A tree with n vertices always has exactly "
        "n minus one edges and a unique path between any two vertices.\n\n"
        "Breadth first search explores a graph level by level. It uses a queue and "
        "finds shortest paths in unweighted graphs from a single source vertex."
    )


def _build_pdf(lines=()) -> bytes:
    """Single-page PDF drawing `lines` in Helvetica; no lines gives a page with no text."""
    ops = []
    for i, line in enumerate(lines):
        ops.append(f"({line}) Tj" if i == 0 else f"0 -18 Td ({line}) Tj")
    content = f"BT /F1 12 Tf 72 720 Td {' '.join(ops)} ET".encode() if lines else b""
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R "
        b"/Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length %d >>\nstream\n" % len(content) + content + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
        b"<< /Title (Lectern sample) /Author (Lectern tests) >>",
    ]
    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    for offset in offsets:
        out += b"%010d 00000 n \n" % offset
    out += b"trailer\n<< /Size %d /Root 1 0 R /Info 6 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)
    return bytes(out)


@pytest.fixture
def make_pdf():
    """Builder for small hand-written PDFs: make_pdf(["line one", "line two"])."""
    return _build_pdf
