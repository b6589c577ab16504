"""Tests for NestedSetEngine against a real (in-memory SQLite) store.

Bounds are asserted against the ``sample_forest`` fixture::

    A (1, 10)           F (11, 14)
    ├── B (2, 3)        └── G (12, 13)
    ├── C (4, 7)
    │   └── D (5, 6)
    └── E (8, 9)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import select, update

from nested_tree.core.database import (
    UNCHANGED,
    InconsistentBoundsError,
    InvalidParentError,
    NotFoundError,
)
from nested_tree.core.database.nested_set import Bounds, verify_forest
from nested_tree.features.nodes.models import TreeNode

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from nested_tree.core.database import NestedSetEngine, Node


async def _delete_row(session: AsyncSession, node: Node) -> None:
    record = await session.get(TreeNode, node.id)
    await session.delete(record)
    await session.flush()


async def _verify(engine: NestedSetEngine) -> None:
    verify_forest(await engine.traversal.get_forest())


async def _parent_of(session: AsyncSession, node_id: int) -> int | None:
    return (
        await session.execute(select(TreeNode.parent_id).where(TreeNode.id == node_id))
    ).scalar_one()


# ============================================================================
# Insertion
# ============================================================================


class TestInsertion:
    """Reserving bounds for new nodes."""

    async def test_first_root_gets_one_two(self, engine):
        assert await engine.insert_root() == Bounds(1, 2)

    async def test_root_after_existing_forest(self, engine, sample_forest):
        assert await engine.before_create() == Bounds(15, 16)

    async def test_child_opens_gap_at_parent_right(self, engine, sample_forest, snapshot):
        bounds = await engine.before_create(parent_id=sample_forest["C"].id)

        assert bounds == Bounds(7, 8)
        bounds_after = await snapshot()
        assert bounds_after["A"] == (1, 12)
        assert bounds_after["C"] == (4, 9)
        assert bounds_after["D"] == (5, 6)
        assert bounds_after["E"] == (10, 11)
        assert bounds_after["F"] == (13, 16)

    async def test_missing_parent(self, engine, sample_forest, snapshot):
        before = await snapshot()

        with pytest.raises(NotFoundError):
            await engine.before_create(parent_id=999)

        assert await snapshot() == before

    async def test_self_parent_rejected(self, engine):
        with pytest.raises(InvalidParentError):
            await engine.before_create(parent_id=5, node_id=5)

    async def test_insert_persists_in_same_step(self, engine, make_node, snapshot):
        root = await make_node("A")
        await make_node("B", root)
        await make_node("C", root)

        assert await snapshot() == {"A": (1, 6), "B": (2, 3), "C": (4, 5)}
        await _verify(engine)

    async def test_insert_rolls_back_when_persist_fails(self, engine, sample_forest, snapshot):
        before = await snapshot()

        async def persist(bounds: Bounds) -> None:
            raise RuntimeError("insert failed")

        with pytest.raises(RuntimeError):
            await engine.insert(persist, parent_id=sample_forest["A"].id)

        assert await snapshot() == before


# ============================================================================
# Deletion
# ============================================================================


class TestDeletion:
    """Removing nodes with their whole subtree."""

    async def test_delete_inner_node_removes_subtree(
        self, db_session, engine, sample_forest, snapshot
    ):
        removed = await engine.delete(sample_forest["C"].id, lambda n: _delete_row(db_session, n))

        assert removed.bounds == Bounds(4, 7)
        assert removed.descendant_count == 1
        assert await snapshot() == {
            "A": (1, 6),
            "B": (2, 3),
            "E": (4, 5),
            "F": (7, 10),
            "G": (8, 9),
        }
        await _verify(engine)

    async def test_delete_root_with_grandchildren(self, db_session, engine, sample_forest, snapshot):
        await engine.delete(sample_forest["A"].id, lambda n: _delete_row(db_session, n))

        assert await snapshot() == {"F": (1, 4), "G": (2, 3)}
        await _verify(engine)

    async def test_before_delete_leaves_own_row(self, db_session, engine, sample_forest, snapshot):
        node = await engine.before_delete(sample_forest["B"].id)

        bounds_after = await snapshot()
        # Host has not deleted B yet: it keeps its stale bounds
        assert bounds_after["B"] == (2, 3)
        assert bounds_after["A"] == (1, 8)
        assert bounds_after["C"] == (2, 5)

        await _delete_row(db_session, node)
        await _verify(engine)

    async def test_delete_missing_node(self, db_session, engine):
        with pytest.raises(NotFoundError):
            await engine.delete(42, lambda n: _delete_row(db_session, n))

    async def test_failed_host_delete_restores_subtree(self, engine, sample_forest, snapshot):
        before = await snapshot()

        async def remove(node: Node) -> None:
            raise RuntimeError("row is locked")

        with pytest.raises(RuntimeError):
            await engine.delete(sample_forest["C"].id, remove)

        assert await snapshot() == before

    async def test_descendant_count_mismatch(self, db_session, engine, make_node):
        lonely = await make_node("X")
        # Bounds claim one descendant that does not exist
        await db_session.execute(
            update(TreeNode).where(TreeNode.id == lonely.id).values(rght=4)
        )

        with pytest.raises(InconsistentBoundsError):
            await engine.before_delete(lonely.id)

    async def test_corrupt_bounds_rejected_on_read(self, db_session, engine, make_node):
        broken = await make_node("X")
        await db_session.execute(update(TreeNode).where(TreeNode.id == broken.id).values(rght=1))

        with pytest.raises(InconsistentBoundsError):
            await engine.before_delete(broken.id)


# ============================================================================
# Reparenting
# ============================================================================


class TestReparent:
    """Moving subtrees between parents."""

    async def test_move_to_later_parent(self, db_session, engine, sample_forest, snapshot):
        d, e = sample_forest["D"], sample_forest["E"]

        moved = await engine.reparent(d.id, e.id)

        assert moved.bounds == Bounds(7, 8)
        assert moved.parent_id == e.id
        bounds_after = await snapshot()
        assert bounds_after["C"] == (4, 5)
        assert bounds_after["E"] == (6, 9)
        assert bounds_after["A"] == (1, 10)
        await _verify(engine)

    async def test_move_to_earlier_parent(self, engine, sample_forest, snapshot):
        b, e = sample_forest["B"], sample_forest["E"]

        await engine.reparent(e.id, b.id)

        assert await snapshot() == {
            "A": (1, 10),
            "B": (2, 5),
            "E": (3, 4),
            "C": (6, 9),
            "D": (7, 8),
            "F": (11, 14),
            "G": (12, 13),
        }
        await _verify(engine)

    async def test_move_subtree_to_root_level(self, db_session, engine, sample_forest, snapshot):
        c = sample_forest["C"]

        moved = await engine.reparent(c.id, None)

        assert moved.parent_id is None
        assert await snapshot() == {
            "A": (1, 6),
            "B": (2, 3),
            "E": (4, 5),
            "F": (7, 10),
            "G": (8, 9),
            "C": (11, 14),
            "D": (12, 13),
        }
        assert await _parent_of(db_session, sample_forest["D"].id) == c.id
        await _verify(engine)

    async def test_move_root_into_earlier_tree(self, engine, sample_forest, snapshot):
        await engine.reparent(sample_forest["F"].id, sample_forest["A"].id)

        bounds_after = await snapshot()
        assert bounds_after["A"] == (1, 14)
        assert bounds_after["F"] == (10, 13)
        assert bounds_after["G"] == (11, 12)
        await _verify(engine)

    async def test_same_parent_is_a_no_op(self, engine, sample_forest, snapshot):
        before = await snapshot()

        node = await engine.reparent(sample_forest["B"].id, sample_forest["A"].id)

        assert node.bounds == Bounds(2, 3)
        assert await snapshot() == before

    async def test_self_parent_rejected(self, engine, sample_forest):
        c = sample_forest["C"]
        with pytest.raises(InvalidParentError):
            await engine.reparent(c.id, c.id)

    async def test_descendant_parent_rejected(self, engine, sample_forest, snapshot):
        before = await snapshot()

        with pytest.raises(InvalidParentError) as exc_info:
            await engine.reparent(sample_forest["A"].id, sample_forest["D"].id)

        assert exc_info.value.parent_id == sample_forest["D"].id
        assert await snapshot() == before

    async def test_missing_parent(self, engine, sample_forest, snapshot):
        before = await snapshot()

        with pytest.raises(NotFoundError):
            await engine.reparent(sample_forest["B"].id, 999)

        assert await snapshot() == before


# ============================================================================
# Sibling reordering
# ============================================================================


class TestSiblingSwaps:
    """move_up / move_down transpositions."""

    async def test_move_down_swaps_with_subtree(self, engine, sample_forest, snapshot):
        assert await engine.move_down(sample_forest["B"].id) is True

        bounds_after = await snapshot()
        assert bounds_after["C"] == (2, 5)
        assert bounds_after["D"] == (3, 4)
        assert bounds_after["B"] == (6, 7)
        assert bounds_after["E"] == (8, 9)
        await _verify(engine)

    async def test_move_up_swaps_with_subtree(self, engine, sample_forest, snapshot):
        assert await engine.move_up(sample_forest["E"].id) is True

        bounds_after = await snapshot()
        assert bounds_after["B"] == (2, 3)
        assert bounds_after["E"] == (4, 5)
        assert bounds_after["C"] == (6, 9)
        assert bounds_after["D"] == (7, 8)
        await _verify(engine)

    async def test_roots_swap_like_siblings(self, engine, sample_forest, snapshot):
        assert await engine.move_down(sample_forest["A"].id) is True

        bounds_after = await snapshot()
        assert bounds_after["F"] == (1, 4)
        assert bounds_after["A"] == (5, 14)
        assert bounds_after["E"] == (12, 13)
        await _verify(engine)

    @pytest.mark.parametrize(
        ("name", "direction"),
        [("B", "up"), ("E", "down"), ("D", "down"), ("D", "up"), ("F", "down"), ("A", "up")],
    )
    async def test_no_sibling_in_direction(
        self, engine, sample_forest, snapshot, name, direction
    ):
        before = await snapshot()
        move = engine.move_up if direction == "up" else engine.move_down

        assert await move(sample_forest[name].id) is False
        assert await snapshot() == before


class TestMove:
    """Positioning with optional reparent."""

    async def test_move_to_front(self, engine, sample_forest):
        e = sample_forest["E"]

        assert await engine.move(e.id, 0) == 0

        children = await engine.traversal.get_children(sample_forest["A"].id)
        assert [n.id for n in children] == [e.id, sample_forest["B"].id, sample_forest["C"].id]

    async def test_position_past_end_stops_at_last(self, engine, sample_forest):
        assert await engine.move(sample_forest["B"].id, 10) == 2
        await _verify(engine)

    async def test_count_removal_shifts_forward_target(self, engine, sample_forest):
        b = sample_forest["B"]

        assert await engine.move(b.id, 2, count_removal=True) == 1

        children = await engine.traversal.get_children(sample_forest["A"].id)
        assert [n.id for n in children] == [sample_forest["C"].id, b.id, sample_forest["E"].id]

    async def test_count_removal_ignored_moving_backwards(self, engine, sample_forest):
        assert await engine.move(sample_forest["E"].id, 1, count_removal=True) == 1

    async def test_reparent_then_position(self, engine, sample_forest):
        a, g = sample_forest["A"], sample_forest["G"]

        assert await engine.move(g.id, 1, a.id) == 1

        children = await engine.traversal.get_children(a.id)
        assert [n.id for n in children] == [
            sample_forest["B"].id,
            g.id,
            sample_forest["C"].id,
            sample_forest["E"].id,
        ]
        assert await engine.traversal.count_children(sample_forest["F"].id) == 0
        await _verify(engine)

    async def test_explicit_none_moves_to_root_level(self, engine, sample_forest):
        c = sample_forest["C"]

        assert await engine.move(c.id, 0, None) == 0

        roots = await engine.traversal.get_roots()
        assert [n.id for n in roots] == [c.id, sample_forest["A"].id, sample_forest["F"].id]
        await _verify(engine)

    async def test_unchanged_keeps_parent(self, db_session, engine, sample_forest):
        d = sample_forest["D"]

        assert await engine.move(d.id, 0, UNCHANGED) == 0
        assert await _parent_of(db_session, d.id) == sample_forest["C"].id

    async def test_negative_position(self, engine, sample_forest):
        with pytest.raises(ValueError, match="position"):
            await engine.move(sample_forest["B"].id, -1)

    async def test_self_parent_rejected(self, engine, sample_forest, snapshot):
        before = await snapshot()
        a = sample_forest["A"]

        with pytest.raises(InvalidParentError):
            await engine.move(a.id, 0, a.id)

        assert await snapshot() == before


# ============================================================================
# Commit hook
# ============================================================================


class TestCommitHook:
    """``commit`` runs once per successful mutation, inside the forest lock."""

    async def test_commit_runs_under_lock(self, engine, sample_forest):
        held: list[bool] = []

        async def commit() -> None:
            held.append(engine.lock.locked())

        engine.commit = commit
        await engine.move_down(sample_forest["B"].id)
        await engine.reparent(sample_forest["G"].id, None)

        assert held == [True, True]

    async def test_reads_do_not_commit(self, engine, sample_forest):
        calls: list[str] = []

        async def commit() -> None:
            calls.append("commit")

        engine.commit = commit
        await engine.traversal.get_children(sample_forest["A"].id)
        await engine.max_right()

        assert calls == []

    async def test_failed_mutation_skips_commit(self, engine, sample_forest, snapshot):
        calls: list[str] = []

        async def commit() -> None:
            calls.append("commit")

        engine.commit = commit
        before = await snapshot()
        with pytest.raises(InvalidParentError):
            await engine.reparent(sample_forest["A"].id, sample_forest["D"].id)

        assert calls == []
        assert await snapshot() == before


# ============================================================================
# End-to-end scenario
# ============================================================================


async def test_build_reorder_and_clear(db_session, engine, make_node, snapshot):
    """Grow a tree, reorder it, then delete it entirely."""
    a = await make_node("A")
    assert await snapshot() == {"A": (1, 2)}

    b = await make_node("B", a)
    assert await snapshot() == {"A": (1, 4), "B": (2, 3)}

    c = await make_node("C", a)
    assert await snapshot() == {"A": (1, 6), "B": (2, 3), "C": (4, 5)}
    assert await engine.traversal.get_position(c.id) == 1

    assert await engine.move_up(c.id) is True
    assert await snapshot() == {"A": (1, 6), "C": (2, 3), "B": (4, 5)}
    assert await engine.traversal.get_position(c.id) == 0
    assert await engine.traversal.get_position(b.id) == 1

    await engine.delete(a.id, lambda n: _delete_row(db_session, n))
    assert await snapshot() == {}
    assert await engine.max_right() == 0
