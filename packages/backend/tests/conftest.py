"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own in-memory SQLite engine (StaticPool keeps the one
   connection alive, so every session sees the same database).
2. get_db is overridden to hand out a NEW session per request, exactly
   like production — so per-request state (the identity map, memoized
   authority lists) never leaks between requests.
3. Callers authenticate with real JWTs: one admin (member of the admin
   group), one plain reader, and anonymous (no header).
"""

import os

os.environ.setdefault("AUTHORITY_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("AUTHORITY_FORBIDDEN_AUTHORITIES", "orcid, scopus")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from authority_registry.auth.jwt import create_access_token
from authority_registry.config import settings
from authority_registry.context import RequestContext
from authority_registry.db.engine import get_db
from authority_registry.db.models import Base, EPerson, EPersonGroup, GroupMember
from authority_registry.main import app
from authority_registry.visibility import get_deny_list

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_EMAIL = "admin@example.org"
READER_EMAIL = "reader@example.org"
DENY_LIST = frozenset({"orcid", "scopus"})


@pytest_asyncio.fixture()
async def session_factory():
    """Session factory bound to a fresh, seeded in-memory database."""
    engine = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        admins = EPersonGroup(name=settings.admin_group)
        admin = EPerson(email=ADMIN_EMAIL)
        session.add_all([admins, admin, EPerson(email=READER_EMAIL)])
        await session.flush()
        session.add(GroupMember(group_id=admins.id, eperson_id=admin.id))
        await session.commit()

    try:
        yield factory
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """A session for seeding and inspecting the database directly."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def admin_ctx(db_session):
    return RequestContext(db=db_session, is_admin=True)


@pytest_asyncio.fixture()
async def anon_ctx(db_session):
    return RequestContext(db=db_session, is_admin=False)


def _auth_headers(email: str | None) -> dict:
    if email is None:
        return {}
    return {"Authorization": f"Bearer {create_access_token(email)}"}


@pytest_asyncio.fixture()
async def make_client(session_factory):
    """Build HTTP clients for a given caller; all share the test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_deny_list] = lambda: DENY_LIST

    clients = []

    def _make(email: str | None) -> AsyncClient:
        client = AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            headers=_auth_headers(email),
        )
        clients.append(client)
        return client

    try:
        yield _make
    finally:
        for client in clients:
            await client.aclose()
        app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def admin_client(make_client):
    """Client authenticated as a member of the admin group."""
    return make_client(ADMIN_EMAIL)


@pytest_asyncio.fixture()
async def reader_client(make_client):
    """Client authenticated as a user who is NOT an administrator."""
    return make_client(READER_EMAIL)


@pytest_asyncio.fixture()
async def anon_client(make_client):
    """Client with no token at all."""
    return make_client(None)
