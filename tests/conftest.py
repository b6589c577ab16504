"""Pytest configuration and shared fixtures.

Organization:
    - Database Fixtures: in-memory SQLite engine and session
    - Tree Fixtures: bounds store, engine, node factory and a sample forest
    - Application Fixtures: FastAPI app and HTTP client bound to the test session

The sample forest used throughout the suite::

    A (1, 10)           F (11, 14)
    ├── B (2, 3)        └── G (12, 13)
    ├── C (4, 7)
    │   └── D (5, 6)
    └── E (8, 9)
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

if TYPE_CHECKING:
    from fastapi import FastAPI
    from sqlalchemy.ext.asyncio import AsyncEngine

    from nested_tree.core.database import NestedSetEngine, SQLAlchemyBoundsStore
    from nested_tree.features.nodes.models import TreeNode

# Ensure tests never touch a database file by accident
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_ENVIRONMENT", "test")


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Create async SQLAlchemy engine with in-memory SQLite.

    SAVEPOINT support is switched on the same way the application does it,
    so ``store.transaction()`` behaves as in production.

    Yields:
        Async SQLAlchemy engine connected to in-memory SQLite.
    """
    from nested_tree.infra.database import enable_sqlite_savepoints

    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    enable_sqlite_savepoints(engine)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create async database session with automatic table creation and cleanup.

    Args:
        db_engine: Async SQLAlchemy engine fixture.

    Yields:
        Async database session for testing.
    """
    from nested_tree.core.database import Base

    # Register models on Base.metadata
    import nested_tree.features.nodes.models  # noqa: F401

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


# ============================================================================
# Tree Fixtures
# ============================================================================


@pytest.fixture
def store(db_session: AsyncSession) -> SQLAlchemyBoundsStore:
    """Bounds store over the ``tree_nodes`` table."""
    from nested_tree.core.database import SQLAlchemyBoundsStore
    from nested_tree.features.nodes.models import TreeNode

    return SQLAlchemyBoundsStore(db_session, TreeNode)


@pytest.fixture
def engine(store: SQLAlchemyBoundsStore) -> NestedSetEngine:
    """Nested-set engine over the test store."""
    from nested_tree.core.database import NestedSetEngine

    return NestedSetEngine(store)


@pytest.fixture
def make_node(
    db_session: AsyncSession, engine: NestedSetEngine
) -> Callable[..., Awaitable[TreeNode]]:
    """Factory adding a named node as last root or last child of ``parent``.

    Example:
        async def test_tree(make_node):
            root = await make_node("root")
            child = await make_node("child", root)
    """
    from nested_tree.features.nodes.models import TreeNode

    async def _make(name: str, parent: TreeNode | None = None) -> TreeNode:
        parent_id = parent.id if parent is not None else None

        async def persist(bounds):
            node = TreeNode(name=name, parent_id=parent_id, lft=bounds.left, rght=bounds.right)
            db_session.add(node)
            await db_session.flush()
            return node

        return await engine.insert(persist, parent_id=parent_id)

    return _make


@pytest.fixture
def snapshot(db_session: AsyncSession) -> Callable[[], Awaitable[dict[str, tuple[int, int]]]]:
    """Read the current bounds of every node straight from the table.

    ORM instances go stale after bulk shifts, so this selects columns only.

    Returns:
        Coroutine function returning ``{name: (lft, rght)}``.
    """
    from nested_tree.features.nodes.models import TreeNode

    async def _snapshot() -> dict[str, tuple[int, int]]:
        rows = await db_session.execute(
            select(TreeNode.name, TreeNode.lft, TreeNode.rght).order_by(TreeNode.lft)
        )
        return {name: (lft, rght) for name, lft, rght in rows.all()}

    return _snapshot


@pytest.fixture
async def sample_forest(make_node) -> dict[str, TreeNode]:
    """Two trees: A with children B, C (holding D) and E; F with child G."""
    a = await make_node("A")
    b = await make_node("B", a)
    c = await make_node("C", a)
    d = await make_node("D", c)
    e = await make_node("E", a)
    f = await make_node("F")
    g = await make_node("G", f)
    return {"A": a, "B": b, "C": c, "D": d, "E": e, "F": f, "G": g}


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
async def app(db_session: AsyncSession) -> FastAPI:
    """Create FastAPI application whose requests share the test session.

    Returns:
        FastAPI application instance.
    """
    from nested_tree.app.main import create_app
    from nested_tree.core.dependencies.database import get_db_session

    application = create_app()

    async def _override_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    application.dependency_overrides[get_db_session] = _override_session
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for testing.

    Yields:
        Async HTTP client for making test requests.

    Example:
        async def test_list(client):
            response = await client.get("/api/v1/nodes/")
            assert response.status_code == 200
    """
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
