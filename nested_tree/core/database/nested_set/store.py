"""Bounds store protocol consumed by the nested-set engine.

The engine never talks to a database directly. Everything it needs from
storage is listed here; :mod:`.sqlalchemy_store` provides the implementation
used by the application.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

from nested_tree.core.database.nested_set.types import BOTH_BOUNDS

if TYPE_CHECKING:
    from contextlib import AbstractAsyncContextManager

    from nested_tree.core.database.nested_set.types import (
        BoundKind,
        NestedSetConfig,
        Node,
        Region,
    )


class BoundsStore(Protocol):
    """Storage operations required by the nested-set engine.

    Implementations must apply :meth:`shift_range` atomically across the
    whole matching set, and :meth:`transaction` must make a sequence of calls
    all-or-nothing. Failures are reported as ``StoreFailureError``.
    """

    config: NestedSetConfig

    async def get(self, node_id: Any) -> Node:
        """Fetch a node by key. Raises NotFoundError if absent."""
        ...

    async def get_by_bound(self, kind: BoundKind, value: int) -> Node | None:
        """Fetch the node owning ``value`` as its left or right bound."""
        ...

    async def find_children(self, parent_id: Any) -> list[Node]:
        """Direct children of ``parent_id`` (roots for None), left ascending."""
        ...

    async def find_by_interval(self, left_gt: int, right_lt: int) -> list[Node]:
        """Nodes with ``left > left_gt`` and ``right < right_lt``, left ascending."""
        ...

    async def count_by_interval(self, left_gt: int, right_lt: int, parent_id: Any) -> int:
        """Count nodes strictly inside the interval whose parent is ``parent_id``."""
        ...

    async def max_right(self) -> int:
        """Largest right bound in the forest, 0 when empty."""
        ...

    async def shift_range(
        self,
        region: Region,
        delta: int,
        kinds: frozenset[BoundKind] = BOTH_BOUNDS,
    ) -> int:
        """Add ``delta`` to every bound of ``kinds`` lying in ``region``."""
        ...

    async def delete_descendants(self, node_id: Any) -> int:
        """Remove every strict descendant of ``node_id``; returns rows removed."""
        ...

    async def set_parent(self, node_id: Any, parent_id: Any) -> None:
        """Point ``node_id`` at a new parent (None for root)."""
        ...

    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Scope in which a multi-step mutation is applied all-or-nothing."""
        ...


__all__ = ["BoundsStore"]
