"""Shared ``model_config`` for the settings classes."""

from __future__ import annotations

from typing import Any

from pydantic_settings import SettingsConfigDict


def env_settings(prefix: str, **overrides: Any) -> SettingsConfigDict:
    """Frozen settings read from ``<prefix>*`` variables and ``.env``.

    Empty variables count as unset, unknown ones are ignored.
    """
    return SettingsConfigDict(
        env_prefix=prefix,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
        **overrides,
    )
