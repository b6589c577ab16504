"""Nested-set tree settings."""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

from nested_tree.core.database.nested_set import NestedSetConfig

from .base import env_settings

_IDENTIFIER = r"^[A-Za-z_][A-Za-z0-9_]*$"


class TreeSettings(BaseSettings):
    """Column mapping and defaults for the nested-set engine.

    Environment variables use TREE_ prefix.
    Example: TREE_LEFT_COLUMN=lft, TREE_RECURSIVE=true

    The engine never reads these directly; ``to_config()`` produces the
    explicit ``NestedSetConfig`` it is handed.
    """

    model_config = env_settings("TREE_")

    key_column: str = Field(default="id", pattern=_IDENTIFIER, description="Primary key attribute")
    parent_column: str = Field(
        default="parent_id", pattern=_IDENTIFIER, description="Parent reference attribute",
    )
    left_column: str = Field(default="lft", pattern=_IDENTIFIER, description="Left bound attribute")
    right_column: str = Field(default="rght", pattern=_IDENTIFIER, description="Right bound attribute")
    recursive: bool = Field(
        default=False,
        description="Default for children listings: all descendants instead of direct children",
    )

    @model_validator(mode="after")
    def validate_distinct_columns(self) -> TreeSettings:
        columns = [self.key_column, self.parent_column, self.left_column, self.right_column]
        if len(set(columns)) != len(columns):
            msg = f"Tree column names must be distinct, got {columns}"
            raise ValueError(msg)
        return self

    def to_config(self) -> NestedSetConfig:
        """Build the engine configuration value."""
        return NestedSetConfig(
            key=self.key_column,
            parent=self.parent_column,
            left=self.left_column,
            right=self.right_column,
            recursive=self.recursive,
        )
