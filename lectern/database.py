"""
Async engine and per-request sessions (SQLAlchemy 2.0).
"""

from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from lectern.config import get_settings


def _sqlite_on_connect(dbapi_conn, connection_record) -> None:
    # Lecture deletes rely on ON DELETE CASCADE, which SQLite only honours with
    # foreign_keys enabled on each connection.
    cursor = dbapi_conn.cursor()
    for pragma in ("foreign_keys=ON", "journal_mode=WAL", "busy_timeout=5000"):
        cursor.execute(f"PRAGMA {pragma}")
    cursor.close()


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """
    Engine for `url`.

    SQLite gets a connection per session (NullPool) and the pragmas above;
    other backends get a small pre-pinged pool.
    """
    if url.startswith("sqlite"):
        engine = create_async_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=NullPool,
        )
        event.listen(engine.sync_engine, "connect", _sqlite_on_connect)
        return engine
    return create_async_engine(url, echo=echo, pool_pre_ping=True, pool_size=5, max_overflow=10)


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False, autoflush=False)


_settings = get_settings()
engine = build_engine(_settings.database_url, echo=_settings.debug)
async_session_maker = build_session_maker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    One session per request.

    Route handlers only flush. Injected through `api.deps.DbSession` with
    function scope, so the commit happens once the handler returns and before
    the response goes out; a failed commit surfaces as a 500. Rolls back if
    the handler raised.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create missing tables (development convenience; deployments use alembic)."""
    from lectern.kernel.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    await engine.dispose()
