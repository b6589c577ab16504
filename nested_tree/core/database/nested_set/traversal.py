"""Read-only queries over a nested-set forest.

Everything here is derived from bounds and parent references without
shifting anything. Public methods take the forest lock so they never see a
tree halfway through a mutation; the ``_``-prefixed variants assume the
caller already holds it (the engine uses them mid-operation).
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from nested_tree.core.database.exceptions import InconsistentBoundsError
from nested_tree.core.database.nested_set.invariants import check_bounds
from nested_tree.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from nested_tree.core.database.nested_set.locking import ForestLock
    from nested_tree.core.database.nested_set.store import BoundsStore
    from nested_tree.core.database.nested_set.types import Node

logger = logging.getLogger(__name__)
lazy_logger = get_lazy_logger(__name__)


def with_depth(nodes: Iterable[Node]) -> list[tuple[Node, int]]:
    """Annotate nodes given in preorder with their depth.

    Depth is relative to the shallowest node in the input: roots (or the
    direct children of a subtree's root) get depth 0.

    Example:
        >>> [(n.id, d) for n, d in with_depth(forest)]
        [(1, 0), (2, 1), (3, 1), (4, 2)]
    """
    annotated: list[tuple[Node, int]] = []
    open_rights: list[int] = []
    for node in nodes:
        while open_rights and open_rights[-1] < node.left:
            open_rights.pop()
        annotated.append((node, len(open_rights)))
        open_rights.append(node.right)
    return annotated


class TreeTraversal:
    """Position, ordering and path queries for one forest.

    Args:
        store: Bounds store holding the forest
        recursive: Default for the ``recursive`` flag of child queries;
            taken from the store config when omitted
        lock: Lock shared with the engine mutating this forest
    """

    def __init__(
        self,
        store: BoundsStore,
        *,
        recursive: bool | None = None,
        lock: asyncio.Lock | ForestLock | None = None,
    ) -> None:
        self.store = store
        self.recursive = store.config.recursive if recursive is None else recursive
        self.lock = lock or asyncio.Lock()

    # ------------------------------------------------------------------
    # Public, locked API
    # ------------------------------------------------------------------

    async def get_node(self, node_id: Any) -> Node:
        async with self.lock:
            return await self._get(node_id)

    async def get_roots(self) -> list[Node]:
        async with self.lock:
            return await self._children_of(None)

    async def get_forest(self) -> list[Node]:
        """Every node of the forest in preorder (ascending left)."""
        async with self.lock:
            top = await self.store.max_right()
            return [check_bounds(n) for n in await self.store.find_by_interval(0, top + 1)]

    async def count_children(self, node_id: Any, recursive: bool | None = None) -> int:
        """Count descendants of a node.

        Args:
            node_id: Node to count below
            recursive: Count the whole subtree (closed form from bounds)
                instead of direct children only

        Raises:
            NotFoundError: If the node does not exist
        """
        async with self.lock:
            return await self._count_children(node_id, recursive)

    async def get_children(self, node_id: Any, recursive: bool | None = None) -> list[Node]:
        """Return descendants of a node ordered by left bound.

        Args:
            node_id: Node to list below
            recursive: Return the whole subtree in preorder instead of
                direct children only

        Raises:
            NotFoundError: If the node does not exist
        """
        async with self.lock:
            return await self._get_children(node_id, recursive)

    async def get_path(self, node_id: Any) -> list[Node]:
        """Return the chain of nodes from a root down to ``node_id`` (inclusive).

        Raises:
            NotFoundError: If the node or one of its ancestors is missing
            InconsistentBoundsError: If parent references form a cycle
        """
        async with self.lock:
            return await self._get_path(node_id)

    async def get_position(self, node_id: Any, sibling_count: int | None = None) -> int | None:
        """Return the 0-based position of a node among its siblings.

        Args:
            node_id: Node to locate
            sibling_count: Number of children of the node's parent, if the
                caller already knows it (saves a count query)

        Returns:
            Position, or None if the node is missing from its parent's
            children (only possible in a corrupt tree)
        """
        async with self.lock:
            return await self._get_position(node_id, sibling_count)

    # ------------------------------------------------------------------
    # Unlocked implementations
    # ------------------------------------------------------------------

    async def _get(self, node_id: Any) -> Node:
        return check_bounds(await self.store.get(node_id))

    async def _children_of(self, parent_id: Any) -> list[Node]:
        return [check_bounds(n) for n in await self.store.find_children(parent_id)]

    def _recursive(self, recursive: bool | None) -> bool:
        return self.recursive if recursive is None else recursive

    async def _count_children(self, node_id: Any, recursive: bool | None) -> int:
        node = await self._get(node_id)
        if self._recursive(recursive):
            return node.descendant_count
        return await self.store.count_by_interval(node.left, node.right, node.id)

    async def _get_children(self, node_id: Any, recursive: bool | None) -> list[Node]:
        node = await self._get(node_id)
        if self._recursive(recursive):
            children = await self.store.find_by_interval(node.left, node.right)
            return [check_bounds(n) for n in children]
        return await self._children_of(node.id)

    async def _get_path(self, node_id: Any) -> list[Node]:
        path = [await self._get(node_id)]
        seen = {path[0].id}
        while path[-1].parent_id is not None:
            parent = await self._get(path[-1].parent_id)
            if parent.id in seen:
                raise InconsistentBoundsError(
                    "Parent references form a cycle",
                    node_id=node_id,
                    repeated_id=parent.id,
                )
            seen.add(parent.id)
            path.append(parent)
        path.reverse()
        return path

    async def _get_position(self, node_id: Any, sibling_count: int | None = None) -> int | None:
        node = await self._get(node_id)

        if node.parent_id is None:
            siblings = await self._children_of(None)
        else:
            parent = await self._get(node.parent_id)
            if node.left == parent.left + 1:
                return 0
            if node.right + 1 == parent.right:
                if sibling_count is None:
                    sibling_count = await self.store.count_by_interval(
                        parent.left, parent.right, parent.id
                    )
                return sibling_count - 1
            siblings = await self._children_of(parent.id)

        for position, sibling in enumerate(siblings):
            if sibling.id == node.id:
                return position

        logger.warning(
            "Node missing from its parent's children",
            extra={"node_id": str(node_id), "operation": "tree.get_position"},
        )
        return None


__all__ = ["TreeTraversal", "with_depth"]
