"""Database infrastructure: async engine, session factory and lifecycle."""

from .session import (
    close_database,
    create_engine_from_settings,
    create_session_factory,
    enable_sqlite_savepoints,
    get_async_session,
    get_engine,
    get_session_factory,
    init_database,
)

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
