"""Cached settings accessors.

Each class is validated once per process. Tests that change the environment
call :func:`clear_all_caches` to have it read again.
"""

from __future__ import annotations

from functools import lru_cache

from .app import AppSettings
from .database import DatabaseSettings
from .logs import LoggingSettings
from .tree import TreeSettings


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    return AppSettings()


@lru_cache(maxsize=1)
def get_db_settings() -> DatabaseSettings:
    return DatabaseSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    return LoggingSettings()


@lru_cache(maxsize=1)
def get_tree_settings() -> TreeSettings:
    """Column mapping handed to every ``SQLAlchemyBoundsStore`` the service builds."""
    return TreeSettings()


_LOADERS = (get_app_settings, get_db_settings, get_logging_settings, get_tree_settings)


def clear_all_caches() -> None:
    for loader in _LOADERS:
        loader.cache_clear()
