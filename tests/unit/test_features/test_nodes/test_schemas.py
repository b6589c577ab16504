"""Tests for node request/response schemas."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from nested_tree.features.nodes.schemas import (
    MoveRequest,
    TreeNodeCreate,
    TreeNodeResponse,
    TreeNodeWithDepth,
)


class TestTreeNodeCreate:
    def test_name_is_stripped(self):
        assert TreeNodeCreate(name="  Phones ").name == "Phones"

    def test_parent_defaults_to_root(self):
        assert TreeNodeCreate(name="Electronics").parent_id is None

    @pytest.mark.parametrize("name", ["", "x" * 256])
    def test_name_length(self, name):
        with pytest.raises(ValidationError):
            TreeNodeCreate(name=name)


class TestMoveRequest:
    def test_parent_omitted(self):
        request = MoveRequest.model_validate({"position": 2})

        assert not request.parent_given
        assert request.parent_id is None

    def test_explicit_null_parent(self):
        request = MoveRequest.model_validate({"parent_id": None, "position": 0})

        assert request.parent_given
        assert request.parent_id is None

    def test_parent_given(self):
        request = MoveRequest.model_validate({"parent_id": 4})

        assert request.parent_given
        assert request.position == 0
        assert request.count_removal is False

    def test_negative_position(self):
        with pytest.raises(ValidationError):
            MoveRequest(position=-1)


async def test_response_from_orm(make_node):
    node = await make_node("Electronics")

    response = TreeNodeResponse.model_validate(node)

    assert response.id == node.id
    assert (response.lft, response.rght) == (1, 2)
    assert response.parent_id is None


def test_depth_must_be_non_negative():
    with pytest.raises(ValidationError):
        TreeNodeWithDepth(
            id=1,
            name="x",
            parent_id=None,
            lft=1,
            rght=2,
            created_at="2025-01-01T00:00:00Z",
            updated_at="2025-01-01T00:00:00Z",
            depth=-1,
        )
