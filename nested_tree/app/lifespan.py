"""Startup and shutdown of the API process."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from nested_tree.core.settings import get_app_settings, get_logging_settings
from nested_tree.infra.database import close_database, init_database
from nested_tree.infra.logging import setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging and create missing tables; dispose the engine on exit."""
    setup_logging(get_logging_settings())
    settings = get_app_settings()
    service = {"service": settings.service_name, "environment": settings.environment}

    await init_database()
    logger.info("API started", extra={**service, "version": settings.version})
    try:
        yield
    finally:
        await close_database()
        logger.info("API stopped", extra=service)
