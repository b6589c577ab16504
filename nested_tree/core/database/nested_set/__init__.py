"""Nested-set (modified preorder traversal) trees over relational rows.

Each row carries ``lft``/``rght`` bounds; a node's interval strictly
contains those of all its descendants, and siblings are ordered by ``lft``.
Reads of whole subtrees become a single range query, at the price of
shifting many unrelated bounds on every structural change.

Components:
    - Node, Region, Bounds, NestedSetConfig: value types
    - BoundsStore: storage protocol consumed by the engine
    - SQLAlchemyBoundsStore: async SQLAlchemy implementation
    - shift: range-shift primitive used by every mutation
    - NestedSetEngine: insert, delete, reparent and reorder
    - TreeTraversal: children, counts, paths and positions
    - check_bounds, verify_forest: invariant checks
    - NestedSetMixin: default columns for mapped models
    - get_forest_lock, ForestLock: per-forest mutation locks

Example:
    >>> from nested_tree.core.database.nested_set import (
    ...     NestedSetEngine,
    ...     SQLAlchemyBoundsStore,
    ... )
    >>>
    >>> engine = NestedSetEngine(SQLAlchemyBoundsStore(session, Category))
    >>> bounds = await engine.before_create(parent_id=None)
    >>> children = await engine.traversal.get_children(root_id, recursive=True)
"""

from nested_tree.core.database.nested_set.engine import UNCHANGED, NestedSetEngine
from nested_tree.core.database.nested_set.invariants import check_bounds, verify_forest
from nested_tree.core.database.nested_set.locking import ForestLock, get_forest_lock
from nested_tree.core.database.nested_set.mixins import NestedSetMixin
from nested_tree.core.database.nested_set.shift import shift, shift_between, shift_from
from nested_tree.core.database.nested_set.sqlalchemy_store import SQLAlchemyBoundsStore
from nested_tree.core.database.nested_set.store import BoundsStore
from nested_tree.core.database.nested_set.traversal import TreeTraversal, with_depth
from nested_tree.core.database.nested_set.types import (
    BOTH_BOUNDS,
    BoundKind,
    Bounds,
    NestedSetConfig,
    Node,
    Region,
)

__all__ = [
    "BOTH_BOUNDS",
    "UNCHANGED",
    "BoundKind",
    "Bounds",
    "BoundsStore",
    "ForestLock",
    "NestedSetConfig",
    "NestedSetEngine",
    "NestedSetMixin",
    "Node",
    "Region",
    "SQLAlchemyBoundsStore",
    "TreeTraversal",
    "check_bounds",
    "get_forest_lock",
    "shift",
    "shift_between",
    "shift_from",
    "verify_forest",
    "with_depth",
]
