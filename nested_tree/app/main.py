"""FastAPI application factory.

Run with ``nested-tree serve`` or directly:

    uvicorn nested_tree.app.main:create_app --factory
"""

from __future__ import annotations

from fastapi import FastAPI

from nested_tree.app.exception_handlers import configure_exception_handlers
from nested_tree.app.lifespan import lifespan
from nested_tree.app.router import setup_routers
from nested_tree.core.settings import get_app_settings


def create_app() -> FastAPI:
    """Build the API from the cached ``APP_*`` settings."""
    settings = get_app_settings()

    app = FastAPI(
        title=settings.title,
        description=settings.description,
        version=settings.version,
        docs_url=settings.docs_url,
        debug=settings.debug,
        lifespan=lifespan,
    )
    configure_exception_handlers(app)
    setup_routers(app, settings.api_prefix)
    return app
