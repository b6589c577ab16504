"""Tree maintenance commands.

Example:bash
    nested-tree init
    nested-tree add Electronics
    nested-tree add Phones --parent 1
    nested-tree mv 2 --parent 3 --position 0
    nested-tree up 4
    nested-tree rm 1
    nested-tree show --format json
"""

from __future__ import annotations

import json
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, NoReturn

import click
from sqlalchemy.exc import SQLAlchemyError

from nested_tree.cli.utils import coro, error, header, info, success, tree_line, warning
from nested_tree.core.database import RepositoryError
from nested_tree.core.settings import get_db_settings
from nested_tree.features.nodes.schemas import MoveRequest, TreeNodeCreate
from nested_tree.features.nodes.service import TreeNodeService
from nested_tree.infra.database import close_database, get_async_session, init_database

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from nested_tree.features.nodes.models import TreeNode

TREE_ERRORS = (RepositoryError, SQLAlchemyError)


@asynccontextmanager
async def _tree() -> AsyncIterator[TreeNodeService]:
    """Service for one command; each mutation commits, the engine is disposed afterwards."""
    try:
        async with get_async_session() as session:
            yield TreeNodeService(session)
    finally:
        await close_database()


def _fail(exc: Exception) -> NoReturn:
    error(str(exc))
    sys.exit(1)


def _node_dict(node: TreeNode, depth: int | None = None) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": node.id,
        "name": node.name,
        "parent_id": node.parent_id,
        "lft": node.lft,
        "rght": node.rght,
    }
    if depth is not None:
        data["depth"] = depth
    return data


@click.command()
@coro
async def init() -> None:
    """Create the node table if it does not exist."""
    info(f"Database: {get_db_settings().url}")
    try:
        await init_database()
    except SQLAlchemyError as e:
        _fail(e)
    finally:
        await close_database()
    success("Database ready")


@click.command()
@click.argument("name")
@click.option("--parent", "parent_id", type=int, default=None, help="Parent node ID (omit for a new root)")
@coro
async def add(name: str, parent_id: int | None) -> None:
    """Add a node as the last root or as the last child of --parent."""
    try:
        async with _tree() as service:
            node = await service.create_node(TreeNodeCreate(name=name, parent_id=parent_id))
    except TREE_ERRORS as e:
        _fail(e)

    success(f"Added {node.name} [{node.id}] ({node.lft}, {node.rght})")


@click.command()
@click.argument("node_id", type=int)
@coro
async def rm(node_id: int) -> None:
    """Remove a node together with its whole subtree."""
    try:
        async with _tree() as service:
            removed = await service.delete_node(node_id)
    except TREE_ERRORS as e:
        _fail(e)

    success(f"Removed node {node_id} and {removed.descendant_count} descendant(s)")


@click.command()
@click.argument("node_id", type=int)
@click.option("--parent", "parent_id", type=int, default=None, help="New parent node ID")
@click.option("--root", "to_root", is_flag=True, help="Move to the root level")
@click.option("--position", type=click.IntRange(min=0), default=None, help="Target sibling position")
@click.option(
    "--js-tree",
    "count_removal",
    is_flag=True,
    help="Position counts the node's old slot (jsTree-style)",
)
@coro
async def mv(
    node_id: int,
    parent_id: int | None,
    to_root: bool,
    position: int | None,
    count_removal: bool,
) -> None:
    """Move a node under a new parent and/or to a sibling position."""
    if parent_id is not None and to_root:
        raise click.UsageError("--parent and --root are mutually exclusive")
    reparenting = parent_id is not None or to_root
    if not reparenting and position is None:
        raise click.UsageError("Nothing to do: give --parent, --root or --position")

    try:
        async with _tree() as service:
            if position is None:
                node = await service.reparent(node_id, parent_id)
                final = await service.get_position(node_id)
            else:
                fields: dict[str, Any] = {"position": position, "count_removal": count_removal}
                if reparenting:
                    fields["parent_id"] = parent_id
                node, final = await service.move_node(node_id, MoveRequest(**fields))
    except TREE_ERRORS as e:
        _fail(e)

    # With --js-tree a forward move lands one slot before the requested index
    expected = position - 1 if position is not None and count_removal else position
    if expected is not None and final < expected:
        warning(f"Sibling list ended early: node is at position {final}")
    success(f"Moved {node.name} [{node.id}] to position {final} under {node.parent_id or 'root'}")


async def _swap(node_id: int, *, up: bool) -> None:
    try:
        async with _tree() as service:
            moved = await (service.move_up(node_id) if up else service.move_down(node_id))
            position = await service.get_position(node_id)
    except TREE_ERRORS as e:
        _fail(e)

    if moved:
        success(f"Node {node_id} is now at position {position}")
    else:
        warning(f"Node {node_id} already is the {'first' if up else 'last'} sibling")


@click.command()
@click.argument("node_id", type=int)
@coro
async def up(node_id: int) -> None:
    """Swap a node with its previous sibling."""
    await _swap(node_id, up=True)


@click.command()
@click.argument("node_id", type=int)
@coro
async def down(node_id: int) -> None:
    """Swap a node with its next sibling."""
    await _swap(node_id, up=False)


@click.command()
@click.argument("node_id", type=int, required=False)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["tree", "json"]),
    default="tree",
    help="Output format",
)
@coro
async def show(node_id: int | None, output_format: str) -> None:
    """Print the whole forest, or one node with its subtree."""
    try:
        async with _tree() as service:
            if node_id is None:
                rows = await service.list_forest()
            else:
                root = await service.get_node(node_id)
                below = await service.get_children(node_id, recursive=True)
                rows = [(root, 0)] + [(node, depth + 1) for node, depth in below]
    except TREE_ERRORS as e:
        _fail(e)

    if output_format == "json":
        click.echo(json.dumps([_node_dict(node, depth) for node, depth in rows], indent=2))
        return

    if not rows:
        info("The tree is empty")
        return
    for node, depth in rows:
        click.echo(tree_line(node.name, node.id, node.lft, node.rght, depth))


@click.command()
@click.argument("node_id", type=int)
@coro
async def path(node_id: int) -> None:
    """Print the chain of nodes from the root down to NODE_ID."""
    try:
        async with _tree() as service:
            nodes = await service.get_path(node_id)
    except TREE_ERRORS as e:
        _fail(e)

    click.echo(" > ".join(f"{n.name} [{n.id}]" for n in nodes))


@click.command()
@coro
async def verify() -> None:
    """Check every node's bounds and parent reference."""
    header("Verifying forest")
    try:
        async with _tree() as service:
            count = await service.verify()
    except TREE_ERRORS as e:
        _fail(e)

    success(f"{count} node(s) consistent")
