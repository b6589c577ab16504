"""Logging configuration built on ``logging.config.dictConfig``."""

from __future__ import annotations

import logging
import logging.config
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from nested_tree.core.settings.logs import LoggingSettings

# Track whether logging has been initialized to avoid duplicate setup
_LOGGING_INITIALIZED = False

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(log_settings: LoggingSettings | None = None, *, force: bool = False) -> None:
    """Setup logging using LoggingSettings.

    Safe to call more than once: only the first call configures handlers
    unless ``force`` is set.

    Args:
        log_settings: Logging settings instance. Loaded from the environment if None.
        force: Reconfigure even if logging was already initialized.
    """
    global _LOGGING_INITIALIZED  # noqa: PLW0603

    if _LOGGING_INITIALIZED and not force:
        return

    from nested_tree.core.settings import get_app_settings, get_logging_settings

    log_settings = log_settings or get_logging_settings()
    configure_logging(
        log_level=log_settings.level,
        json_logs=log_settings.json_logs,
        logger_levels=log_settings.logger_levels,
        service=get_app_settings().service_name,
    )
    _LOGGING_INITIALIZED = True

    logging.getLogger(__name__).debug(
        "Logging configured",
        extra={"level": log_settings.level, "json_logs": log_settings.json_logs},
    )


def configure_logging(
    log_level: str = "INFO",
    *,
    json_logs: bool = False,
    logger_levels: dict[str, str] | None = None,
    service: str | None = None,
) -> None:
    """Configure root logging with a single console handler.

    Args:
        log_level: Root logger level.
        json_logs: Emit JSON Lines instead of plain text.
        logger_levels: Per-logger level overrides, e.g. ``{"sqlalchemy.engine": "WARNING"}``.
        service: Added as ``service`` to every JSON record.
    """
    formatter: dict[str, Any]
    if json_logs:
        formatter = {
            "()": "nested_tree.infra.logging.formatters.JSONFormatter",
            "static": {"service": service} if service else None,
        }
    else:
        formatter = {
            "()": "nested_tree.infra.logging.formatters.ExtraTextFormatter",
            "format": TEXT_FORMAT,
        }

    config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
            },
        },
        "root": {"level": log_level.upper(), "handlers": ["console"]},
        "loggers": {
            name: {"level": level.upper(), "propagate": True}
            for name, level in (logger_levels or {}).items()
        },
    }
    logging.config.dictConfig(config)


def reset_logging_state() -> None:
    """Allow ``setup_logging`` to run again (used by tests)."""
    global _LOGGING_INITIALIZED  # noqa: PLW0603
    _LOGGING_INITIALIZED = False
