"""API settings (``APP_*``)."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from .base import env_settings

Environment = Literal["development", "staging", "production", "test"]


class AppSettings(BaseSettings):
    """FastAPI metadata, route prefix and the ``serve`` bind address.

    Example: APP_TITLE="Category Tree", APP_PORT=9000
    """

    model_config = env_settings("APP_")

    service_name: str = Field(
        default="nested-tree",
        pattern=r"^[a-z0-9]+(-[a-z0-9]+)*$",
        description="Name attached to startup and shutdown log records",
    )
    environment: Environment = "development"
    title: str = Field(default="Nested Tree API", min_length=1)
    description: str = "Nested-set tree maintenance over an async SQL store"
    version: str = Field(default="0.1.0", pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9]+)?$")
    api_prefix: str = Field(default="/api/v1", pattern=r"^/.*$")
    docs_url: str | None = "/docs"
    debug: bool = Field(default=False, description="FastAPI debug mode; also echoes SQL")
    host: str = Field(default="127.0.0.1", min_length=1)
    port: int = Field(default=8000, ge=1, le=65535)
