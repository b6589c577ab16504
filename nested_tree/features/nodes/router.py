"""API router for the nodes feature.

Endpoints:
    GET    /nodes/                        - Whole forest in preorder with depth
    POST   /nodes/                        - Create a node (new root or last child)
    GET    /nodes/{node_id}               - Get a single node
    GET    /nodes/{node_id}/children      - Direct children or whole subtree
    GET    /nodes/{node_id}/children/count - Number of children or descendants
    GET    /nodes/{node_id}/path          - Nodes from the root down to the node
    GET    /nodes/{node_id}/position      - Position among siblings
    POST   /nodes/{node_id}/move          - Reparent and/or reorder
    POST   /nodes/{node_id}/move-up       - Swap with the previous sibling
    POST   /nodes/{node_id}/move-down     - Swap with the next sibling
    DELETE /nodes/{node_id}               - Delete a node with its subtree

Example Usage:
    POST /nodes/
    {"name": "Electronics"}

    POST /nodes/
    {"name": "Phones", "parent_id": 1}

    POST /nodes/2/move
    {"parent_id": null, "position": 0}
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from nested_tree.core.dependencies.database import get_db_session
from nested_tree.features.nodes.schemas import (
    CountResponse,
    MoveRequest,
    PositionResponse,
    SwapResponse,
    TreeNodeCreate,
    TreeNodeListResponse,
    TreeNodeResponse,
    TreeNodeWithDepth,
)
from nested_tree.features.nodes.service import TreeNodeService

if TYPE_CHECKING:
    from nested_tree.features.nodes.models import TreeNode

router = APIRouter(prefix="/nodes", tags=["nodes"])
logger = logging.getLogger(__name__)

SessionDep = Annotated[AsyncSession, Depends(get_db_session)]

_NOT_FOUND = {404: {"description": "Node not found"}}


def _listing(pairs: list[tuple[TreeNode, int]]) -> TreeNodeListResponse:
    nodes = [
        TreeNodeWithDepth(**TreeNodeResponse.model_validate(node).model_dump(), depth=depth)
        for node, depth in pairs
    ]
    return TreeNodeListResponse(nodes=nodes, total=len(nodes))


# ──────────────────────────────────────────────────────────────
# Queries
# ──────────────────────────────────────────────────────────────


@router.get(
    "/",
    response_model=TreeNodeListResponse,
    summary="List the forest",
    description="Return every node in preorder (ascending left bound) with its depth.",
)
async def list_nodes(session: SessionDep) -> TreeNodeListResponse:
    """List all nodes of the forest."""
    service = TreeNodeService(session)
    return _listing(await service.list_forest())


@router.get(
    "/{node_id}",
    response_model=TreeNodeResponse,
    summary="Get a node",
    responses=_NOT_FOUND,
)
async def get_node(node_id: int, session: SessionDep) -> TreeNodeResponse:
    """Get a single node by ID."""
    service = TreeNodeService(session)
    return TreeNodeResponse.model_validate(await service.get_node(node_id))


@router.get(
    "/{node_id}/children",
    response_model=TreeNodeListResponse,
    summary="List children",
    description="Direct children, or the whole subtree in preorder when recursive.",
    responses=_NOT_FOUND,
)
async def get_children(
    node_id: int,
    session: SessionDep,
    recursive: Annotated[bool | None, Query(description="Include all descendants")] = None,
) -> TreeNodeListResponse:
    """List the children of a node."""
    service = TreeNodeService(session)
    return _listing(await service.get_children(node_id, recursive))


@router.get(
    "/{node_id}/children/count",
    response_model=CountResponse,
    summary="Count children",
    responses=_NOT_FOUND,
)
async def count_children(
    node_id: int,
    session: SessionDep,
    recursive: Annotated[bool | None, Query(description="Count all descendants")] = None,
) -> CountResponse:
    """Count the children (or descendants) of a node."""
    service = TreeNodeService(session)
    count = await service.count_children(node_id, recursive)
    return CountResponse(id=node_id, count=count, recursive=service.resolve_recursive(recursive))


@router.get(
    "/{node_id}/path",
    response_model=list[TreeNodeResponse],
    summary="Get the path to a node",
    description="Nodes from the root down to the node, inclusive.",
    responses=_NOT_FOUND,
)
async def get_path(node_id: int, session: SessionDep) -> list[TreeNodeResponse]:
    """Get the root-first path of a node."""
    service = TreeNodeService(session)
    return [TreeNodeResponse.model_validate(n) for n in await service.get_path(node_id)]


@router.get(
    "/{node_id}/position",
    response_model=PositionResponse,
    summary="Get a node's position among its siblings",
    responses=_NOT_FOUND,
)
async def get_position(node_id: int, session: SessionDep) -> PositionResponse:
    """Get the 0-based sibling position of a node."""
    service = TreeNodeService(session)
    return PositionResponse(id=node_id, position=await service.get_position(node_id))


# ──────────────────────────────────────────────────────────────
# Mutations
# ──────────────────────────────────────────────────────────────


@router.post(
    "/",
    response_model=TreeNodeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a node",
    description="Add a node as the last root, or as the last child of `parent_id`.",
    responses=_NOT_FOUND,
)
async def create_node(payload: TreeNodeCreate, session: SessionDep) -> TreeNodeResponse:
    """Create a new node."""
    service = TreeNodeService(session)
    node = await service.create_node(payload)

    return TreeNodeResponse.model_validate(node)


@router.post(
    "/{node_id}/move",
    response_model=PositionResponse,
    summary="Move a node",
    description=(
        "Place a node at a sibling position. Sending `parent_id` reparents the node "
        "(null moves it to the root level); omitting it keeps the current parent."
    ),
    responses={**_NOT_FOUND, 422: {"description": "Invalid parent"}},
)
async def move_node(node_id: int, payload: MoveRequest, session: SessionDep) -> PositionResponse:
    """Move a node."""
    service = TreeNodeService(session)
    _, position = await service.move_node(node_id, payload)

    return PositionResponse(id=node_id, position=position)


@router.post(
    "/{node_id}/move-up",
    response_model=SwapResponse,
    summary="Swap a node with its previous sibling",
    responses=_NOT_FOUND,
)
async def move_up(node_id: int, session: SessionDep) -> SwapResponse:
    """Move a node one slot towards the first sibling."""
    service = TreeNodeService(session)
    moved = await service.move_up(node_id)

    return SwapResponse(id=node_id, moved=moved, position=await service.get_position(node_id))


@router.post(
    "/{node_id}/move-down",
    response_model=SwapResponse,
    summary="Swap a node with its next sibling",
    responses=_NOT_FOUND,
)
async def move_down(node_id: int, session: SessionDep) -> SwapResponse:
    """Move a node one slot towards the last sibling."""
    service = TreeNodeService(session)
    moved = await service.move_down(node_id)

    return SwapResponse(id=node_id, moved=moved, position=await service.get_position(node_id))


@router.delete(
    "/{node_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a node",
    description="Delete a node together with its whole subtree.",
    responses=_NOT_FOUND,
)
async def delete_node(node_id: int, session: SessionDep) -> None:
    """Delete a node and its descendants."""
    service = TreeNodeService(session)
    await service.delete_node(node_id)
