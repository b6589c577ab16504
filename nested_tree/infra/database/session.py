"""Process-wide async engine and session factory.

Built lazily from ``DB_*`` settings on first use and dropped by
:func:`close_database`, so tests and CLI commands can point a fresh engine
at another URL.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from nested_tree.core.settings import get_app_settings, get_db_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from nested_tree.core.settings import DatabaseSettings

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def create_engine_from_settings(settings: DatabaseSettings | None = None) -> AsyncEngine:
    """New engine for ``settings`` (``DB_*`` from the environment by default).

    The caller owns the engine and must dispose it.
    """
    settings = settings or get_db_settings()
    engine = create_async_engine(
        settings.url,
        echo=settings.echo or get_app_settings().debug,
        pool_pre_ping=settings.pool_pre_ping,
    )
    if settings.is_sqlite:
        enable_sqlite_savepoints(engine)
    return engine


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLite run SAVEPOINTs inside the ORM transaction.

    The sqlite3 driver opens transactions lazily on its own, which breaks
    ``begin_nested()``. Hand transaction control to SQLAlchemy instead.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _receive_connect(dbapi_conn: Any, connection_record: Any) -> None:
        _ = connection_record
        dbapi_conn.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _receive_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def get_engine() -> AsyncEngine:
    """Return the process-wide engine, creating it on first use."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is None:
        _engine = create_engine_from_settings()
        _session_factory = create_session_factory(_engine)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the process-wide session factory."""
    get_engine()
    assert _session_factory is not None
    return _session_factory


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Session from the process-wide factory; the caller decides when to commit.

    Example:
        async with get_async_session() as session:
            node = await session.get(TreeNode, 1)
    """
    async with get_session_factory()() as session:
        yield session


async def init_database() -> None:
    """Create missing tables; existing ones are left untouched."""
    from nested_tree.core.database import Base
    from nested_tree.features.nodes import models  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
        await conn.run_sync(Base.metadata.create_all)

    logger.info(
        "Database initialized",
        extra={"url": engine.url.render_as_string(hide_password=True)},
    )


async def close_database() -> None:
    """Dispose the engine; the next ``get_engine()`` reads the settings again."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is None:
        return

    logger.info("Disposing database engine")
    await _engine.dispose()
    _engine = None
    _session_factory = None


__all__ = [
    "close_database",
    "create_engine_from_settings",
    "create_session_factory",
    "enable_sqlite_savepoints",
    "get_async_session",
    "get_engine",
    "get_session_factory",
    "init_database",
]
