"""Logging settings (``LOG_*``)."""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import AliasChoices, Field, computed_field, field_validator
from pydantic_settings import BaseSettings

from .base import env_settings

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """Console logging.

    Example: LOG_LEVEL=debug, LOG_JSON=true,
    LOG_LOGGER_LEVELS='{"tree.store.TreeNode": "DEBUG"}'
    """

    model_config = env_settings("LOG_", populate_by_name=True)

    level: LogLevel = "INFO"
    json_logs: bool = Field(
        default=False,
        validation_alias=AliasChoices("json_logs", "log_json"),
        description="One JSON object per line instead of text",
    )
    logger_levels: dict[str, str] = Field(
        default_factory=lambda: {"sqlalchemy.engine": "WARNING", "aiosqlite": "WARNING"},
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value

    @computed_field
    @property
    def level_int(self) -> int:
        return logging.getLevelName(self.level)
