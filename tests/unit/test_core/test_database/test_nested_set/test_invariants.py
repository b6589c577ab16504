"""Tests for bound and forest invariant checks."""

from __future__ import annotations

import pytest

from nested_tree.core.database import InconsistentBoundsError
from nested_tree.core.database.nested_set import Node, check_bounds, verify_forest


def _node(node_id, parent_id, left, right) -> Node:
    return Node(id=node_id, parent_id=parent_id, left=left, right=right)


VALID_FOREST = [
    _node(1, None, 1, 8),
    _node(2, 1, 2, 3),
    _node(3, 1, 4, 7),
    _node(4, 3, 5, 6),
    _node(5, None, 9, 10),
]


class TestCheckBounds:
    def test_valid_node_is_returned(self):
        node = _node(1, None, 1, 4)
        assert check_bounds(node) is node

    @pytest.mark.parametrize(("left", "right"), [(3, 3), (5, 2)])
    def test_left_must_be_lower(self, left, right):
        with pytest.raises(InconsistentBoundsError, match="lower") as exc_info:
            check_bounds(_node(9, None, left, right))

        assert exc_info.value.node_id == 9

    def test_span_must_be_odd(self):
        with pytest.raises(InconsistentBoundsError, match="odd"):
            check_bounds(_node(1, None, 1, 3))


class TestVerifyForest:
    def test_valid_forest(self):
        verify_forest(VALID_FOREST)

    def test_order_does_not_matter(self):
        verify_forest(reversed(VALID_FOREST))

    def test_empty_forest(self):
        verify_forest([])

    def test_shared_bound_value(self):
        nodes = [_node(1, None, 1, 4), _node(2, None, 4, 5)]

        with pytest.raises(InconsistentBoundsError, match="more than once"):
            verify_forest(nodes)

    def test_partial_overlap(self):
        nodes = [_node(1, None, 1, 6), _node(2, 1, 3, 8)]

        with pytest.raises(InconsistentBoundsError, match="overlap"):
            verify_forest(nodes)

    def test_wrong_parent_reference(self):
        nodes = [*VALID_FOREST[:3], _node(4, 1, 5, 6), VALID_FOREST[4]]

        with pytest.raises(InconsistentBoundsError, match="Parent reference") as exc_info:
            verify_forest(nodes)

        assert exc_info.value.details["expected_parent_id"] == 3

    def test_root_with_parent_reference(self):
        nodes = [_node(1, None, 1, 2), _node(2, 1, 3, 4)]

        with pytest.raises(InconsistentBoundsError, match="Parent reference"):
            verify_forest(nodes)
