"""Per-forest locks serializing structural mutations within a process.

Database transactions make each mutation all-or-nothing; these locks keep two
coroutines of the same process from interleaving the shift sequences of two
mutations on one forest, and keep readers from observing a half-shifted tree.
"""

from __future__ import annotations

import asyncio
import weakref
from typing import Any

_locks: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, dict[str, asyncio.Lock]] = (
    weakref.WeakKeyDictionary()
)


def get_forest_lock(name: str) -> asyncio.Lock:
    """Return the lock guarding forest ``name`` on the running event loop.

    Args:
        name: Forest identifier, usually the table name

    Returns:
        The same lock for every call with the same name on this loop

    Raises:
        RuntimeError: If no event loop is running
    """
    loop = asyncio.get_running_loop()
    per_loop = _locks.setdefault(loop, {})
    lock = per_loop.get(name)
    if lock is None:
        lock = per_loop[name] = asyncio.Lock()
    return lock


class ForestLock:
    """Named handle on the shared forest lock.

    Safe to create outside a running event loop; the underlying lock is
    looked up with :func:`get_forest_lock` each time it is acquired, on the
    loop doing the acquiring.

    Example:
        >>> engine = NestedSetEngine(store, lock=ForestLock("tree_nodes"))
    """

    def __init__(self, name: str) -> None:
        self.name = name

    def locked(self) -> bool:
        try:
            return get_forest_lock(self.name).locked()
        except RuntimeError:
            return False

    async def __aenter__(self) -> None:
        await get_forest_lock(self.name).acquire()

    async def __aexit__(self, *exc_info: Any) -> None:
        get_forest_lock(self.name).release()

    def __repr__(self) -> str:
        return f"ForestLock({self.name!r})"


__all__ = ["ForestLock", "get_forest_lock"]
