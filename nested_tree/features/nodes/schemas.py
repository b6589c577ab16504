"""Pydantic schemas for the nodes feature."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TreeNodeCreate(BaseModel):
    """Payload used when creating a node."""

    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    parent_id: int | None = Field(
        default=None,
        description="Parent node; omit or null to add a new last root",
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        """Remove leading/trailing whitespace."""
        return v.strip()


class TreeNodeResponse(BaseModel):
    """Representation returned from the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    parent_id: int | None
    lft: int = Field(description="Left bound")
    rght: int = Field(description="Right bound")
    created_at: datetime
    updated_at: datetime


class TreeNodeWithDepth(TreeNodeResponse):
    """Node with its depth inside the listing it belongs to."""

    depth: int = Field(default=0, ge=0, description="0 for the shallowest nodes of the listing")


class TreeNodeListResponse(BaseModel):
    """Response containing a list of nodes in preorder."""

    nodes: list[TreeNodeWithDepth]
    total: int


class MoveRequest(BaseModel):
    """Payload for moving a node.

    Leaving ``parent_id`` out keeps the current parent; an explicit ``null``
    moves the node to the root level.
    """

    parent_id: int | None = Field(default=None, description="New parent, null for root level")
    position: int = Field(default=0, ge=0, description="Target 0-based position among siblings")
    count_removal: bool = Field(
        default=False,
        description="Position counts the node's old slot (jsTree-style addressing)",
    )

    @property
    def parent_given(self) -> bool:
        """Whether the client sent ``parent_id`` at all."""
        return "parent_id" in self.model_fields_set


class PositionResponse(BaseModel):
    """A node's position among its siblings."""

    id: int
    position: int | None = Field(description="0-based position, null if missing from its siblings")


class CountResponse(BaseModel):
    """Number of children (or descendants) of a node."""

    id: int
    count: int
    recursive: bool


class SwapResponse(BaseModel):
    """Result of a single sibling swap."""

    id: int
    moved: bool = Field(description="False when the node already was first/last")
    position: int | None


__all__ = [
    "CountResponse",
    "MoveRequest",
    "PositionResponse",
    "SwapResponse",
    "TreeNodeCreate",
    "TreeNodeListResponse",
    "TreeNodeResponse",
    "TreeNodeWithDepth",
]
