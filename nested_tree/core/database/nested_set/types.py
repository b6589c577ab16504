"""Value types for nested-set trees.

A nested set stores a forest as pairs of integer bounds. Every node owns an
interval ``[left, right]`` that strictly contains the intervals of all of its
descendants; siblings own disjoint intervals ordered by ``left``::

    A (1, 8)
    ├── B (2, 3)
    └── C (4, 7)
        └── D (5, 6)

The types here are plain, immutable values. Storage column names are a store
concern and are resolved once from :class:`NestedSetConfig`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, NamedTuple

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement


class BoundKind(enum.StrEnum):
    """Which side of a node interval a value refers to."""

    LEFT = "left"
    RIGHT = "right"


BOTH_BOUNDS: frozenset[BoundKind] = frozenset({BoundKind.LEFT, BoundKind.RIGHT})


class Bounds(NamedTuple):
    """Bound pair assigned to a node that is about to be persisted."""

    left: int
    right: int


@dataclass(slots=True, frozen=True)
class Node:
    """Snapshot of a single tree record.

    Attributes:
        id: Unique key of the record
        parent_id: Key of the direct parent, None for roots
        left: Left bound
        right: Right bound

    Snapshots are never updated in place. Any structural operation may shift
    the bounds of unrelated records, so re-fetch after mutating.
    """

    id: Any
    parent_id: Any
    left: int
    right: int

    @property
    def span(self) -> int:
        """Distance between the two bounds (always odd in a valid tree)."""
        return self.right - self.left

    @property
    def width(self) -> int:
        """Number of bound values occupied by this node and its subtree."""
        return self.span + 1

    @property
    def descendant_count(self) -> int:
        """Number of strict descendants, derived from the bounds alone."""
        return (self.span - 1) // 2

    @property
    def is_leaf(self) -> bool:
        return self.span == 1

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def contains(self, other: Node) -> bool:
        """Return True if ``other`` lies strictly inside this node's interval."""
        return self.left < other.left and other.right < self.right

    @property
    def bounds(self) -> Bounds:
        return Bounds(self.left, self.right)


@dataclass(slots=True, frozen=True)
class Region:
    """Set of bound values selected by a range-shift.

    Two shapes exist: an unbounded threshold (``ceiling is None``, every value
    ``>= floor``) and a closed interval ``[floor, ceiling]``.

    Example:
        >>> Region.at_or_beyond(5).contains(100)
        True
        >>> Region.between(2, 4).contains(5)
        False
    """

    floor: int
    ceiling: int | None = None

    @classmethod
    def at_or_beyond(cls, threshold: int) -> Region:
        """Region of every value greater than or equal to ``threshold``."""
        return cls(floor=threshold)

    @classmethod
    def between(cls, floor: int, ceiling: int) -> Region:
        """Closed interval ``[floor, ceiling]``."""
        return cls(floor=floor, ceiling=ceiling)

    @property
    def is_empty(self) -> bool:
        return self.ceiling is not None and self.ceiling < self.floor

    def contains(self, value: int) -> bool:
        if value < self.floor:
            return False
        return self.ceiling is None or value <= self.ceiling

    def predicate(self, column: Any) -> ColumnElement[bool]:
        """Build the SQL condition selecting ``column`` values in this region."""
        if self.ceiling is None:
            return column >= self.floor
        return column.between(self.floor, self.ceiling)

    def __str__(self) -> str:
        if self.ceiling is None:
            return f"[{self.floor}, +inf)"
        return f"[{self.floor}, {self.ceiling}]"


@dataclass(slots=True, frozen=True)
class NestedSetConfig:
    """Attribute names a store maps onto the fixed :class:`Node` shape.

    Each store owns its own config value; there is no shared registry.

    Attributes:
        key: Primary key attribute
        parent: Parent reference attribute
        left: Left bound attribute
        right: Right bound attribute
        recursive: Default for ``recursive`` in traversal helpers
    """

    key: str = "id"
    parent: str = "parent_id"
    left: str = "lft"
    right: str = "rght"
    recursive: bool = False


__all__ = [
    "BOTH_BOUNDS",
    "BoundKind",
    "Bounds",
    "NestedSetConfig",
    "Node",
    "Region",
]
