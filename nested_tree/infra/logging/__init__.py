"""Logging infrastructure.

Exports:
    - setup_logging / configure_logging: dictConfig based setup
    - JSONFormatter / ExtraTextFormatter: console formatters
    - get_lazy_logger: adapter that defers expensive DEBUG messages
"""

from .config import configure_logging, reset_logging_state, setup_logging
from .formatters import ExtraTextFormatter, JSONFormatter
from .lazy import LazyLoggerAdapter, get_lazy_logger

__all__ = [
    "ExtraTextFormatter",
    "JSONFormatter",
    "LazyLoggerAdapter",
    "configure_logging",
    "get_lazy_logger",
    "reset_logging_state",
    "setup_logging",
]
