"""Core database package with base classes, mixins, repository and nested sets.

Base Classes and Mixins:
    - Base: Declarative base with constraint naming
    - IntegerPKMixin: Integer primary key
    - TimestampMixin: created_at, updated_at tracking
    - NestedSetMixin: parent_id, lft, rght columns for tree models

Repository:
    - BaseRepository[T]: Generic CRUD with explicit session passing

Nested sets:
    - NestedSetEngine: insert, delete, reparent, reorder
    - TreeTraversal: children, counts, paths, positions
    - SQLAlchemyBoundsStore: storage adapter used by the engine

Exceptions:
    - RepositoryError: Base exception for database operations
    - NotFoundError: Entity not found (404-like)
    - TreeStructureError: Base for tree errors
    - InvalidParentError, InconsistentBoundsError, StoreFailureError

Example:
    from nested_tree.core.database import (
        NestedSetEngine,
        SQLAlchemyBoundsStore,
    )

    engine = NestedSetEngine(SQLAlchemyBoundsStore(session, Category))
    path = await engine.traversal.get_path(category_id)
"""

from nested_tree.core.database.base import Base, IntegerPKMixin, TimestampMixin
from nested_tree.core.database.exceptions import (
    InconsistentBoundsError,
    InvalidParentError,
    NotFoundError,
    RepositoryError,
    StoreFailureError,
    TreeStructureError,
)
from nested_tree.core.database.nested_set import (
    UNCHANGED,
    NestedSetConfig,
    NestedSetEngine,
    NestedSetMixin,
    Node,
    SQLAlchemyBoundsStore,
    TreeTraversal,
)
from nested_tree.core.database.repository import BaseRepository

__all__ = [
    "UNCHANGED",
    "Base",
    "BaseRepository",
    "InconsistentBoundsError",
    "IntegerPKMixin",
    "InvalidParentError",
    "NestedSetConfig",
    "NestedSetEngine",
    "NestedSetMixin",
    "Node",
    "NotFoundError",
    "RepositoryError",
    "SQLAlchemyBoundsStore",
    "StoreFailureError",
    "TimestampMixin",
    "TreeStructureError",
    "TreeTraversal",
]
