"""Record access for tree nodes."""

from __future__ import annotations

from functools import cache

from nested_tree.core.database.repository import BaseRepository
from nested_tree.features.nodes.models import TreeNode


class TreeNodeRepository(BaseRepository[TreeNode]):
    """Loads, adds and removes ``TreeNode`` rows.

    Bounds are never written here; ``NestedSetEngine`` owns them.
    """

    __slots__ = ()

    def __init__(self) -> None:
        super().__init__(TreeNode)


@cache
def get_tree_node_repository() -> TreeNodeRepository:
    """Shared stateless repository instance."""
    return TreeNodeRepository()
