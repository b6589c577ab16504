"""Nodes feature: a named nested-set forest exposed over HTTP and the CLI."""

from __future__ import annotations

from .models import TreeNode
from .repository import TreeNodeRepository, get_tree_node_repository
from .schemas import MoveRequest, TreeNodeCreate, TreeNodeResponse
from .service import TreeNodeService

__all__ = [
    "MoveRequest",
    "TreeNode",
    "TreeNodeCreate",
    "TreeNodeRepository",
    "TreeNodeResponse",
    "TreeNodeService",
    "get_tree_node_repository",
]
