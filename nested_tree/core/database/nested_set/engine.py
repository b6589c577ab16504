"""Nested-set maintenance engine.

All the "keep the bounds consistent" work happens here. Every mutation is a
short sequence of range-shifts; the order of those shifts matters:

* To relocate a subtree the engine first parks it in negative bound space
  (``shift([l, r], -r)`` puts it at ``[l - r, 0]``), which is always empty.
  The gap left behind (or the gap opened at the destination) can then be
  closed with a plain interval shift that cannot touch the parked subtree.
  Finally the subtree is shifted back out of negative space into its slot.
* Shifting the destination gap first and the subtree afterwards would move
  the subtree's own descendants twice.

Each public operation holds the forest lock and runs inside
``store.transaction()`` so that a failing step leaves no partial shift behind.
When the engine is given a ``commit`` callable, it is awaited after the
transaction succeeds and before the lock is released, so the next mutation
of the forest always starts from committed bounds.

Example:
    >>> store = SQLAlchemyBoundsStore(session, TreeNode)
    >>> engine = NestedSetEngine(store)
    >>> bounds = await engine.before_create(parent_id=root.id)
    >>> session.add(TreeNode(name="child", parent_id=root.id, lft=bounds.left, rght=bounds.right))
    >>> await engine.move(child_id, 0)
"""

from __future__ import annotations

import asyncio
import enum
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Final

from nested_tree.core.database.exceptions import (
    InconsistentBoundsError,
    InvalidParentError,
    RepositoryError,
)
from nested_tree.core.database.nested_set.invariants import check_bounds
from nested_tree.core.database.nested_set.shift import shift_between, shift_from
from nested_tree.core.database.nested_set.traversal import TreeTraversal
from nested_tree.core.database.nested_set.types import BoundKind, Bounds
from nested_tree.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from nested_tree.core.database.nested_set.locking import ForestLock
    from nested_tree.core.database.nested_set.store import BoundsStore
    from nested_tree.core.database.nested_set.types import Node

logger = logging.getLogger(__name__)
lazy_logger = get_lazy_logger(__name__)


class _Unchanged(enum.Enum):
    UNCHANGED = "unchanged"


UNCHANGED: Final = _Unchanged.UNCHANGED
"""Sentinel for :meth:`NestedSetEngine.move`: keep the current parent."""


class NestedSetEngine:
    """Insert, delete, reparent and reorder nodes of one forest.

    Args:
        store: Bounds store holding the forest
        lock: Lock serializing mutations of this forest; a private lock is
            created when omitted (see ``ForestLock`` for sharing one across
            engines)
        commit: Awaited after every successful mutation while the lock is
            still held, e.g. ``session.commit``

    Attributes:
        traversal: Read-only helpers sharing this engine's store and lock
    """

    def __init__(
        self,
        store: BoundsStore,
        *,
        lock: asyncio.Lock | ForestLock | None = None,
        commit: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self.store = store
        self.lock = lock or asyncio.Lock()
        self.commit = commit
        self.traversal = TreeTraversal(store, lock=self.lock)

    @asynccontextmanager
    async def _mutation(self, operation: str, **context: Any) -> AsyncIterator[None]:
        """Hold the forest lock and the store transaction for one operation."""
        async with self.lock:
            try:
                async with self.store.transaction():
                    yield
                if self.commit is not None:
                    await self.commit()
            except RepositoryError as exc:
                logger.warning(
                    "Tree mutation aborted",
                    extra={
                        "operation": operation,
                        "error": type(exc).__name__,
                        **{k: str(v) for k, v in context.items()},
                    },
                )
                raise

    async def max_right(self) -> int:
        """Largest right bound in the forest (0 when empty)."""
        async with self.lock:
            return await self.store.max_right()

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    async def insert_root(self) -> Bounds:
        """Reserve bounds for a new last root. Nothing else moves."""
        async with self._mutation("tree.insert_root"):
            return await self._insert_root()

    async def insert_child(self, parent_id: Any) -> Bounds:
        """Reserve bounds for a new last child of ``parent_id``.

        Every bound at or beyond the parent's right edge moves up by two,
        which grows the parent (and its ancestors) and frees ``(r, r + 1)``.

        Raises:
            NotFoundError: If the parent does not exist
        """
        async with self._mutation("tree.insert_child", parent_id=parent_id):
            return await self._insert_child(parent_id)

    async def before_create(self, parent_id: Any = None, node_id: Any = None) -> Bounds:
        """Pre-persist call for a record about to be inserted.

        Args:
            parent_id: Parent of the new record, None for a new root
            node_id: Key of the new record, if the host assigns keys up front

        Returns:
            Bounds to store on the new record

        Raises:
            InvalidParentError: If the record names itself as parent
            NotFoundError: If the parent does not exist
        """
        async with self._mutation("tree.create", parent_id=parent_id):
            return await self._reserve(parent_id, node_id)

    async def insert[T](
        self,
        persist: Callable[[Bounds], Awaitable[T]],
        parent_id: Any = None,
        node_id: Any = None,
    ) -> T:
        """Reserve bounds and persist the new record in one locked step.

        ``persist`` receives the bounds and must write the record through the
        same session the store uses. Unlike :meth:`before_create`, no other
        mutation can run between the reservation and the write.

        Returns:
            Whatever ``persist`` returns
        """
        async with self._mutation("tree.create", parent_id=parent_id):
            bounds = await self._reserve(parent_id, node_id)
            record = await persist(bounds)

        logger.info(
            "Node added to tree",
            extra={
                "parent_id": str(parent_id),
                "left": bounds.left,
                "right": bounds.right,
                "operation": "tree.create",
            },
        )
        return record

    async def _reserve(self, parent_id: Any, node_id: Any) -> Bounds:
        if node_id is not None and node_id == parent_id:
            raise InvalidParentError(node_id, parent_id, "a node cannot be its own parent")
        if parent_id is None:
            return await self._insert_root()
        return await self._insert_child(parent_id)

    async def _insert_root(self) -> Bounds:
        top = await self.store.max_right()
        bounds = Bounds(top + 1, top + 2)
        lazy_logger.debug(lambda: f"tree.insert_root -> {bounds}")
        return bounds

    async def _insert_child(self, parent_id: Any) -> Bounds:
        parent = await self.traversal._get(parent_id)
        edge = parent.right
        await shift_from(self.store, edge, 2)
        bounds = Bounds(edge, edge + 1)
        lazy_logger.debug(lambda: f"tree.insert_child(parent={parent_id}) -> {bounds}")
        return bounds

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def before_delete(self, node_id: Any) -> Node:
        """Pre-delete call: drop the node's subtree and close the gap.

        The node's own row is left for the host to delete in the same
        transaction. Until then it still carries its old bounds.

        Returns:
            Snapshot of the node taken before anything changed

        Raises:
            NotFoundError: If the node does not exist
            InconsistentBoundsError: If the number of removed descendants
                disagrees with the node's bounds
        """
        async with self._mutation("tree.delete", node_id=node_id):
            node = await self._remove_subtree(node_id)

        self._log_removed(node)
        return node

    async def delete(self, node_id: Any, remove: Callable[[Node], Awaitable[None]]) -> Node:
        """Remove a node with its subtree, deleting the node's own row via ``remove``.

        ``remove`` runs under the same lock and savepoint as the bound
        shifts, so a failing host delete leaves the forest untouched.

        Returns:
            Snapshot of the node taken before anything changed
        """
        async with self._mutation("tree.delete", node_id=node_id):
            node = await self._remove_subtree(node_id)
            await remove(node)

        self._log_removed(node)
        return node

    async def _remove_subtree(self, node_id: Any) -> Node:
        node = await self.traversal._get(node_id)

        if not node.is_leaf:
            removed = await self.store.delete_descendants(node.id)
            if removed != node.descendant_count:
                raise InconsistentBoundsError(
                    "Removed descendant count does not match bounds",
                    node_id=node.id,
                    expected=node.descendant_count,
                    removed=removed,
                )

        await shift_from(self.store, node.right + 1, -node.width)
        return node

    @staticmethod
    def _log_removed(node: Node) -> None:
        logger.info(
            "Node removed from tree",
            extra={
                "node_id": str(node.id),
                "descendants": node.descendant_count,
                "operation": "tree.delete",
            },
        )

    # ------------------------------------------------------------------
    # Reparenting
    # ------------------------------------------------------------------

    async def reparent(self, node_id: Any, new_parent_id: Any) -> Node:
        """Move a node with its whole subtree to become the last child of a parent.

        Args:
            node_id: Node to move
            new_parent_id: New parent, or None to make the node the last root

        Returns:
            The node as stored after the move

        Raises:
            InvalidParentError: If the new parent is the node itself or one
                of its descendants
            NotFoundError: If the node or the new parent does not exist
        """
        if node_id == new_parent_id:
            raise InvalidParentError(node_id, new_parent_id, "a node cannot be its own parent")

        async with self._mutation("tree.reparent", node_id=node_id, parent_id=new_parent_id):
            node = await self.traversal._get(node_id)
            if node.parent_id == new_parent_id:
                return node
            await self._reparent(node, new_parent_id)
            moved = await self.traversal._get(node_id)

        logger.info(
            "Node reparented",
            extra={
                "node_id": str(node_id),
                "from_parent_id": str(node.parent_id),
                "to_parent_id": str(new_parent_id),
                "operation": "tree.reparent",
            },
        )
        return moved

    async def _reparent(self, node: Node, new_parent_id: Any) -> None:
        if new_parent_id is None:
            # A virtual parent enclosing the whole forest.
            edge = await self.store.max_right() + 1
        else:
            parent = await self.traversal._get(new_parent_id)
            if node.contains(parent):
                raise InvalidParentError(
                    node.id, new_parent_id, "new parent is a descendant of the node"
                )
            edge = parent.right

        left, right = node.left, node.right

        # Park the subtree at [-span, 0].
        await shift_between(self.store, left, right, -right)

        if right < edge:
            # Destination lies after the subtree: pull the nodes in between back.
            await shift_between(self.store, right + 1, edge - 1, -node.width)
            offset = edge - right - 1
        else:
            # Destination lies before the subtree: push the nodes in between forward.
            await shift_between(self.store, edge, left - 1, node.width)
            offset = edge - left

        await shift_between(self.store, -node.span, 0, right + offset)
        await self.store.set_parent(node.id, new_parent_id)

        lazy_logger.debug(
            lambda: f"tree.reparent: {node.id} ({left}, {right}) -> "
            f"({left + offset}, {right + offset}) under {new_parent_id}"
        )

    # ------------------------------------------------------------------
    # Sibling reordering
    # ------------------------------------------------------------------

    async def move_down(self, node_id: Any) -> bool:
        """Swap a node with its next sibling.

        Returns:
            False if the node already is the last sibling
        """
        async with self._mutation("tree.move_down", node_id=node_id):
            return await self._move_down(await self.traversal._get(node_id))

    async def move_up(self, node_id: Any) -> bool:
        """Swap a node with its previous sibling.

        Returns:
            False if the node already is the first sibling
        """
        async with self._mutation("tree.move_up", node_id=node_id):
            return await self._move_up(await self.traversal._get(node_id))

    async def _move_down(self, node: Node) -> bool:
        following = await self.store.get_by_bound(BoundKind.LEFT, node.right + 1)
        if following is None or following.parent_id != node.parent_id:
            return False
        check_bounds(following)

        await shift_between(self.store, node.left, node.right, -node.right)
        await shift_between(self.store, following.left, following.right, -node.width)
        await shift_between(self.store, -node.span, 0, node.right + following.width)

        lazy_logger.debug(lambda: f"tree.move_down: {node.id} past {following.id}")
        return True

    async def _move_up(self, node: Node) -> bool:
        preceding = await self.store.get_by_bound(BoundKind.RIGHT, node.left - 1)
        if preceding is None or preceding.parent_id != node.parent_id:
            return False
        check_bounds(preceding)

        await shift_between(self.store, node.left, node.right, -node.right)
        await shift_between(self.store, preceding.left, preceding.right, node.width)
        await shift_between(self.store, -node.span, 0, node.right - preceding.width)

        lazy_logger.debug(lambda: f"tree.move_up: {node.id} before {preceding.id}")
        return True

    async def move(
        self,
        node_id: Any,
        position: int,
        parent_id: Any = UNCHANGED,
        *,
        count_removal: bool = False,
    ) -> int:
        """Place a node at a sibling position, optionally under a new parent.

        Args:
            node_id: Node to move
            position: Target 0-based position among the siblings
            parent_id: New parent (None for root level); the current parent
                is kept when omitted
            count_removal: Interpret ``position`` as counted with the node
                still in its old slot (jsTree convention): moving forward
                lowers the target by one

        Returns:
            The position the node ended up at. Lower than requested when the
            sibling list is shorter than ``position``.

        Raises:
            ValueError: If position is negative
            InvalidParentError: If the new parent is the node or a descendant
            NotFoundError: If the node or the new parent does not exist
        """
        if position < 0:
            msg = f"position must be >= 0, got {position}"
            raise ValueError(msg)

        async with self._mutation("tree.move", node_id=node_id, position=position):
            node = await self.traversal._get(node_id)

            if parent_id is not UNCHANGED and parent_id != node.parent_id:
                if parent_id == node.id:
                    raise InvalidParentError(node_id, parent_id, "a node cannot be its own parent")
                await self._reparent(node, parent_id)

            current = await self.traversal._get_position(node_id)
            if current is None:
                raise InconsistentBoundsError("Node missing from its siblings", node_id=node_id)

            target = position
            if count_removal and current < target:
                target -= 1

            while current != target:
                node = await self.traversal._get(node_id)
                if current < target:
                    if not await self._move_down(node):
                        break
                    current += 1
                else:
                    if not await self._move_up(node):
                        break
                    current -= 1

        logger.info(
            "Node moved",
            extra={
                "node_id": str(node_id),
                "position": current,
                "operation": "tree.move",
            },
        )
        return current


__all__ = ["UNCHANGED", "NestedSetEngine"]
