"""Nested-set invariant checks.

``check_bounds`` guards every node the engine reads: a record with
``left >= right`` or an even span means the table is corrupt, and acting on it
would spread the damage. ``verify_forest`` checks a whole forest at once and
is used by the ``verify`` CLI command and the test-suite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from nested_tree.core.database.exceptions import InconsistentBoundsError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from nested_tree.core.database.nested_set.types import Node


def check_bounds(node: Node) -> Node:
    """Validate a single node's bounds and return it unchanged.

    Raises:
        InconsistentBoundsError: If left >= right or the span is even
    """
    if node.left >= node.right:
        raise InconsistentBoundsError(
            "Left bound must be lower than right bound",
            node_id=node.id,
            left=node.left,
            right=node.right,
        )
    if node.span % 2 == 0:
        raise InconsistentBoundsError(
            "Bound span must be odd",
            node_id=node.id,
            left=node.left,
            right=node.right,
        )
    return node


def verify_forest(nodes: Iterable[Node]) -> None:
    """Verify that ``nodes`` form a valid nested-set forest.

    Checks every node's bounds, that no bound value is shared, that intervals
    never partially overlap, and that each parent reference names the
    innermost enclosing node (None for roots).

    Args:
        nodes: Every node of the forest, in any order

    Raises:
        InconsistentBoundsError: Describing the first violation found
    """
    ordered = sorted(nodes, key=lambda n: n.left)

    owners: dict[int, object] = {}
    for node in ordered:
        check_bounds(node)
        for value in (node.left, node.right):
            if value in owners:
                raise InconsistentBoundsError(
                    "Bound value used more than once",
                    node_id=node.id,
                    value=value,
                    other_id=owners[value],
                )
            owners[value] = node.id

    stack: list[Node] = []
    for node in ordered:
        while stack and stack[-1].right < node.left:
            stack.pop()

        enclosing = stack[-1] if stack else None
        if enclosing is not None and node.right > enclosing.right:
            raise InconsistentBoundsError(
                "Intervals partially overlap",
                node_id=node.id,
                other_id=enclosing.id,
            )

        expected_parent = enclosing.id if enclosing is not None else None
        if node.parent_id != expected_parent:
            raise InconsistentBoundsError(
                "Parent reference does not match enclosing interval",
                node_id=node.id,
                parent_id=node.parent_id,
                expected_parent_id=expected_parent,
            )
        stack.append(node)


__all__ = ["check_bounds", "verify_forest"]
