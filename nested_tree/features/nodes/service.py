"""Service layer for the nodes feature.

Binds ``NestedSetEngine`` to the ``tree_nodes`` table: every structural
change goes through the engine, while names and timestamps go through the
repository. Both share the caller's session. Each mutation commits that
session before the forest lock is released; a second coroutine of the same
process never shifts bounds another one has not committed yet.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from nested_tree.core.database import (
    UNCHANGED,
    NestedSetEngine,
    SQLAlchemyBoundsStore,
)
from nested_tree.core.database.nested_set import ForestLock, verify_forest, with_depth
from nested_tree.core.settings import get_tree_settings
from nested_tree.features.nodes.models import TreeNode
from nested_tree.features.nodes.repository import TreeNodeRepository, get_tree_node_repository
from nested_tree.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from nested_tree.core.database import NestedSetConfig, Node
    from nested_tree.core.database.nested_set import Bounds
    from nested_tree.features.nodes.schemas import MoveRequest, TreeNodeCreate


# Standard logger for INFO/WARNING/ERROR
logger = logging.getLogger(__name__)
# Lazy logger for DEBUG (zero overhead when DEBUG disabled)
lazy_logger = get_lazy_logger(__name__)


class TreeNodeService:
    """Service for tree node operations.

    Handles:
    - Creating and deleting nodes (with their subtrees)
    - Moving nodes between parents and among siblings
    - Children, path and position queries
    - Whole-forest consistency checks
    """

    def __init__(
        self,
        session: AsyncSession,
        repo: TreeNodeRepository | None = None,
        config: NestedSetConfig | None = None,
    ) -> None:
        """Initialize the node service.

        Args:
            session: Database session for operations
            repo: Node repository (optional, uses default if not provided)
            config: Column mapping (optional, taken from TreeSettings if not provided)
        """
        self._session = session
        self._repo = repo or get_tree_node_repository()

        store = SQLAlchemyBoundsStore(session, TreeNode, config or get_tree_settings().to_config())
        self.engine = NestedSetEngine(
            store,
            lock=ForestLock(TreeNode.__tablename__),
            commit=session.commit,
        )
        self.tree = self.engine.traversal

    async def _records(self, nodes: Iterable[Node]) -> Sequence[TreeNode]:
        return await self._repo.get_many(self._session, [n.id for n in nodes])

    async def _with_depth(self, nodes: Sequence[Node]) -> list[tuple[TreeNode, int]]:
        records = {r.id: r for r in await self._records(nodes)}
        return [(records[n.id], depth) for n, depth in with_depth(nodes) if n.id in records]

    # ──────────────────────────────────────────────────────────────
    # Create / delete
    # ──────────────────────────────────────────────────────────────

    async def create_node(self, payload: TreeNodeCreate) -> TreeNode:
        """Create a node as the last root or as the last child of a parent.

        Raises:
            NotFoundError: If the parent does not exist
        """

        async def persist(bounds: Bounds) -> TreeNode:
            node = TreeNode(
                name=payload.name,
                parent_id=payload.parent_id,
                lft=bounds.left,
                rght=bounds.right,
            )
            return await self._repo.create(self._session, node)

        node = await self.engine.insert(persist, parent_id=payload.parent_id)
        lazy_logger.debug(lambda: f"service.create_node({payload.name!r}) -> {node.id}")
        return node

    async def delete_node(self, node_id: int) -> Node:
        """Delete a node together with all of its descendants.

        Returns:
            Snapshot of the deleted node's bounds

        Raises:
            NotFoundError: If the node does not exist
        """

        async def remove(node: Node) -> None:
            record = await self._repo.get_or_raise(self._session, node.id)
            await self._repo.delete(self._session, record)

        return await self.engine.delete(node_id, remove)

    # ──────────────────────────────────────────────────────────────
    # Queries
    # ──────────────────────────────────────────────────────────────

    async def get_node(self, node_id: int) -> TreeNode:
        """Get a node by ID.

        Raises:
            NotFoundError: If node not found
        """
        return await self._repo.get_or_raise(self._session, node_id)

    async def list_forest(self) -> list[tuple[TreeNode, int]]:
        """Every node in preorder, paired with its depth."""
        forest = await self.tree.get_forest()
        lazy_logger.debug(lambda: f"service.list_forest -> {len(forest)} nodes")
        return await self._with_depth(forest)

    async def get_children(
        self, node_id: int, recursive: bool | None = None
    ) -> list[tuple[TreeNode, int]]:
        """Children (or the whole subtree) of a node, paired with depth below it."""
        children = await self.tree.get_children(node_id, recursive)
        return await self._with_depth(children)

    async def count_children(self, node_id: int, recursive: bool | None = None) -> int:
        return await self.tree.count_children(node_id, recursive)

    def resolve_recursive(self, recursive: bool | None) -> bool:
        """Apply the configured default to an optional ``recursive`` flag."""
        return self.tree.recursive if recursive is None else recursive

    async def get_path(self, node_id: int) -> Sequence[TreeNode]:
        """Nodes from the root down to ``node_id``, inclusive."""
        return await self._records(await self.tree.get_path(node_id))

    async def get_position(self, node_id: int) -> int | None:
        return await self.tree.get_position(node_id)

    async def verify(self) -> int:
        """Check the whole forest for bound and parent consistency.

        Returns:
            Number of nodes checked

        Raises:
            InconsistentBoundsError: On the first violation found
        """
        forest = await self.tree.get_forest()
        verify_forest(forest)
        logger.info(
            "Forest verified",
            extra={"nodes": len(forest), "operation": "tree.verify"},
        )
        return len(forest)

    # ──────────────────────────────────────────────────────────────
    # Moves
    # ──────────────────────────────────────────────────────────────

    async def move_node(self, node_id: int, payload: MoveRequest) -> tuple[TreeNode, int]:
        """Move a node to a position, optionally under a new parent.

        Returns:
            The moved node and the position it ended up at

        Raises:
            NotFoundError: If the node or the new parent does not exist
            InvalidParentError: If the new parent is the node or one of its descendants
        """
        parent: Any = payload.parent_id if payload.parent_given else UNCHANGED
        position = await self.engine.move(
            node_id,
            payload.position,
            parent,
            count_removal=payload.count_removal,
        )
        return await self.get_node(node_id), position

    async def reparent(self, node_id: int, parent_id: int | None) -> TreeNode:
        """Make a node the last child of ``parent_id`` (last root for None)."""
        await self.engine.reparent(node_id, parent_id)
        return await self.get_node(node_id)

    async def move_up(self, node_id: int) -> bool:
        return await self.engine.move_up(node_id)

    async def move_down(self, node_id: int) -> bool:
        return await self.engine.move_down(node_id)


__all__ = ["TreeNodeService"]
