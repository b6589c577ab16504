"""Application settings.

Each concern has its own frozen pydantic-settings class with an env prefix:

    - AppSettings (APP_)
    - DatabaseSettings (DB_)
    - LoggingSettings (LOG_)
    - TreeSettings (TREE_)
"""

from .app import AppSettings
from .base import env_settings
from .database import DatabaseSettings
from .loader import (
    clear_all_caches,
    get_app_settings,
    get_db_settings,
    get_logging_settings,
    get_tree_settings,
)
from .logs import LoggingSettings
from .tree import TreeSettings

__all__ = [
    "AppSettings",
    "DatabaseSettings",
    "LoggingSettings",
    "TreeSettings",
    "env_settings",
    "clear_all_caches",
    "get_app_settings",
    "get_db_settings",
    "get_logging_settings",
    "get_tree_settings",
]
