"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.
The session is the request's unit of work: its identity map guarantees one
in-memory object per (entity class, id) for the whole request.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from authority_registry.config import settings


def _engine_options(url: str) -> dict:
    # SQLite pools are single-connection; sizing options don't apply.
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 5, "max_overflow": 15}


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_options(settings.database_url),
)

# Session factory — each request gets its own session.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_models() -> None:
    """Create all tables that don't exist yet (local setup and tests)."""
    from authority_registry.db.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
