"""SQLAlchemy implementation of the bounds store.

Works with any mapped class carrying a key, a parent reference and two
integer bound columns (see :class:`NestedSetMixin` for the defaults). Column
names come from :class:`NestedSetConfig` and are resolved once, when the
store is built.

Reads select the four mapped columns only and return :class:`Node` values,
so they never depend on stale ORM instances. Range-shifts are issued as a
single ``UPDATE`` with one ``CASE`` per bound, which keeps each shift atomic.

Example:
    >>> store = SQLAlchemyBoundsStore(session, Category, NestedSetConfig(left="lft", right="rgt"))
    >>> await store.max_right()
    12
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError

from nested_tree.core.database.exceptions import (
    NotFoundError,
    RepositoryError,
    StoreFailureError,
)
from nested_tree.core.database.nested_set.types import (
    BOTH_BOUNDS,
    BoundKind,
    NestedSetConfig,
    Node,
)
from nested_tree.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator, Sequence

    from sqlalchemy import Row, Select
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm import InstrumentedAttribute

    from nested_tree.core.database.nested_set.types import Region


class SQLAlchemyBoundsStore:
    """Bounds store backed by an async SQLAlchemy session.

    Args:
        session: Session whose transaction the store joins
        model: Mapped class holding the tree
        config: Attribute names; defaults to ``id``/``parent_id``/``lft``/``rght``

    Raises:
        RepositoryError: If a configured attribute does not exist on ``model``
    """

    def __init__(
        self,
        session: AsyncSession,
        model: type[Any],
        config: NestedSetConfig | None = None,
    ) -> None:
        self._session = session
        self.model = model
        self.config = config or NestedSetConfig()

        self._key = self._column(self.config.key)
        self._parent = self._column(self.config.parent)
        self._left = self._column(self.config.left)
        self._right = self._column(self.config.right)

        self._logger = logging.getLogger(f"tree.store.{model.__name__}")
        self._lazy = get_lazy_logger(f"tree.store.{model.__name__}")

    def _column(self, name: str) -> InstrumentedAttribute[Any]:
        attr = getattr(self.model, name, None)
        if attr is None:
            raise RepositoryError(
                "Nested-set attribute not found on model",
                details={"model": self.model.__name__, "attribute": name},
            )
        return attr

    @contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        """Re-raise driver errors as StoreFailureError."""
        try:
            yield
        except SQLAlchemyError as exc:
            self._logger.error(
                "Bounds store call failed",
                extra={
                    "entity": self.model.__name__,
                    "operation": f"tree.store.{operation}",
                    "error": type(exc).__name__,
                },
            )
            raise StoreFailureError(operation, str(exc)) from exc

    def _select_nodes(self) -> Select[tuple[Any, Any, int, int]]:
        return select(self._key, self._parent, self._left, self._right)

    @staticmethod
    def _to_node(row: Row[Any]) -> Node:
        return Node(id=row[0], parent_id=row[1], left=row[2], right=row[3])

    def _to_nodes(self, rows: Sequence[Row[Any]]) -> list[Node]:
        return [self._to_node(row) for row in rows]

    def _bound_column(self, kind: BoundKind) -> InstrumentedAttribute[Any]:
        return self._left if kind is BoundKind.LEFT else self._right

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, node_id: Any) -> Node:
        stmt = self._select_nodes().where(self._key == node_id)
        with self._translate_errors("get"):
            row = (await self._session.execute(stmt)).one_or_none()

        if row is None:
            raise NotFoundError(self.model.__name__, {self.config.key: node_id})
        return self._to_node(row)

    async def get_by_bound(self, kind: BoundKind, value: int) -> Node | None:
        column = self._bound_column(kind)
        stmt = self._select_nodes().where(column == value)
        with self._translate_errors("get_by_bound"):
            row = (await self._session.execute(stmt)).first()
        return self._to_node(row) if row is not None else None

    async def find_children(self, parent_id: Any) -> list[Node]:
        condition = self._parent.is_(None) if parent_id is None else self._parent == parent_id
        stmt = self._select_nodes().where(condition).order_by(self._left.asc())
        with self._translate_errors("find_children"):
            rows = (await self._session.execute(stmt)).all()

        self._lazy.debug(lambda: f"tree.store.find_children({parent_id}) -> {len(rows)} nodes")
        return self._to_nodes(rows)

    async def find_by_interval(self, left_gt: int, right_lt: int) -> list[Node]:
        stmt = (
            self._select_nodes()
            .where(self._left > left_gt, self._right < right_lt)
            .order_by(self._left.asc())
        )
        with self._translate_errors("find_by_interval"):
            rows = (await self._session.execute(stmt)).all()

        self._lazy.debug(
            lambda: f"tree.store.find_by_interval({left_gt}, {right_lt}) -> {len(rows)} nodes"
        )
        return self._to_nodes(rows)

    async def count_by_interval(self, left_gt: int, right_lt: int, parent_id: Any) -> int:
        stmt = (
            select(func.count())
            .select_from(self.model)
            .where(self._left > left_gt, self._right < right_lt, self._parent == parent_id)
        )
        with self._translate_errors("count_by_interval"):
            return (await self._session.execute(stmt)).scalar_one()

    async def max_right(self) -> int:
        stmt = select(func.max(self._right))
        with self._translate_errors("max_right"):
            value = (await self._session.execute(stmt)).scalar_one_or_none()
        return value or 0

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def shift_range(
        self,
        region: Region,
        delta: int,
        kinds: frozenset[BoundKind] = BOTH_BOUNDS,
    ) -> int:
        """Shift bounds of ``kinds`` inside ``region`` with one UPDATE statement."""
        values: dict[Any, Any] = {}
        conditions = []
        for kind in sorted(kinds):
            column = self._bound_column(kind)
            matches = region.predicate(column)
            values[column] = case((matches, column + delta), else_=column)
            conditions.append(matches)

        if not conditions:
            return 0

        stmt = (
            update(self.model)
            .where(or_(*conditions))
            .values(values)
            .execution_options(synchronize_session=False)
        )
        with self._translate_errors("shift_range"):
            result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def delete_descendants(self, node_id: Any) -> int:
        """Delete the full strict-descendant set of ``node_id``."""
        node = await self.get(node_id)
        stmt = (
            delete(self.model)
            .where(self._left > node.left, self._right < node.right)
            # Evict deleted rows from the identity map; SQLite reuses their keys.
            .execution_options(synchronize_session="fetch")
        )
        with self._translate_errors("delete_descendants"):
            result = await self._session.execute(stmt)
        deleted: int = result.rowcount or 0

        if deleted > 10:
            self._logger.warning(
                "Subtree delete executed",
                extra={
                    "entity": self.model.__name__,
                    "node_id": str(node_id),
                    "deleted": deleted,
                    "operation": "tree.store.delete_descendants",
                },
            )
        else:
            self._lazy.debug(
                lambda: f"tree.store.delete_descendants({node_id}) -> {deleted} deleted"
            )
        return deleted

    async def set_parent(self, node_id: Any, parent_id: Any) -> None:
        stmt = (
            update(self.model)
            .where(self._key == node_id)
            .values({self._parent: parent_id})
            .execution_options(synchronize_session=False)
        )
        with self._translate_errors("set_parent"):
            result = await self._session.execute(stmt)
        if not result.rowcount:
            raise NotFoundError(self.model.__name__, {self.config.key: node_id})

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Run the enclosed calls inside a SAVEPOINT of the session transaction.

        The savepoint is rolled back if the block raises, leaving the outer
        (host) transaction as it was before the operation started.
        """
        with self._translate_errors("transaction"):
            await self._session.connection()
            savepoint = await self._session.begin_nested()

        try:
            yield
        except BaseException:
            if savepoint.is_active:
                with self._translate_errors("rollback"):
                    await savepoint.rollback()
            raise
        else:
            with self._translate_errors("commit"):
                await savepoint.commit()


__all__ = ["SQLAlchemyBoundsStore"]
