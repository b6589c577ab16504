"""Generic repository for mapped records.

The repository covers whole-record work only (load, add, remove). Tree
bounds are never written here: the nested-set engine moves them with bulk
statements, which is why every lookup below reloads column values instead
of trusting the identity map.

Example:
    class TreeNodeRepository(BaseRepository[TreeNode]):
        def __init__(self) -> None:
            super().__init__(TreeNode)

    node = await TreeNodeRepository().get_or_raise(session, 7)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect, select

from nested_tree.core.database.exceptions import NotFoundError
from nested_tree.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession


class BaseRepository[T]:
    """Record access for one mapped class, with the session passed per call.

    Operations:
        - get / get_or_raise: single record by primary key
        - get_many: several records, in the order the keys were given
        - create / delete: flush a new record or remove one
    """

    __slots__ = ("_lazy", "_logger", "_pk", "model")

    def __init__(self, model: type[T]) -> None:
        self.model = model
        self._pk = inspect(model).primary_key[0]
        self._logger = logging.getLogger(f"repository.{model.__name__}")
        self._lazy = get_lazy_logger(f"repository.{model.__name__}")

    async def get(self, session: AsyncSession, key: Any) -> T | None:
        """Load a record by primary key, or None when it does not exist."""
        record = await session.get(self.model, key, populate_existing=True)
        self._lazy.debug(lambda: f"repo.get {self.model.__name__}[{key}] hit={record is not None}")
        return record

    async def get_or_raise(self, session: AsyncSession, key: Any) -> T:
        """Load a record by primary key.

        Raises:
            NotFoundError: If no record has this key
        """
        record = await self.get(session, key)
        if record is not None:
            return record

        self._logger.info(
            "Record lookup missed",
            extra={
                "entity": self.model.__name__,
                "id": str(key),
                "operation": "repo.get_or_raise",
            },
        )
        raise NotFoundError(self.model.__name__, {"id": key})

    async def get_many(self, session: AsyncSession, keys: Iterable[Any]) -> Sequence[T]:
        """Load records for ``keys``, keeping their order and skipping missing ones."""
        wanted = list(keys)
        if not wanted:
            return []

        stmt = (
            select(self.model)
            .where(self._pk.in_(wanted))
            .execution_options(populate_existing=True)
        )
        found = {
            inspect(record).identity[0]: record
            for record in (await session.execute(stmt)).scalars()
        }
        records = [found[key] for key in wanted if key in found]

        self._lazy.debug(
            lambda: f"repo.get_many {self.model.__name__}: {len(records)}/{len(wanted)} found"
        )
        return records

    async def create(self, session: AsyncSession, record: T) -> T:
        """Add ``record`` and flush it so that generated columns are loaded."""
        session.add(record)
        await session.flush()
        await session.refresh(record)

        self._lazy.debug(lambda: f"repo.create {self.model.__name__}[{inspect(record).identity[0]}]")
        return record

    async def delete(self, session: AsyncSession, record: T) -> None:
        """Delete ``record`` and flush."""
        key = inspect(record).identity[0]
        await session.delete(record)
        await session.flush()

        self._logger.info(
            "Record deleted",
            extra={"entity": self.model.__name__, "id": str(key), "operation": "repo.delete"},
        )


__all__ = ["BaseRepository"]
