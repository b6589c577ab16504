"""Feature router registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nested_tree.features.nodes.router import router as nodes_router

if TYPE_CHECKING:
    from fastapi import FastAPI


def setup_routers(app: FastAPI, prefix: str) -> None:
    """Mount every feature router below ``prefix`` (``APP_API_PREFIX``)."""
    app.include_router(nodes_router, prefix=prefix)
