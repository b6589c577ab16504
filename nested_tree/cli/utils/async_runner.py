"""Bridge between click's synchronous callbacks and async tree code."""

import asyncio
from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any


def coro[T](command: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., T]:
    """Run an async click callback to completion in a new event loop.

    A fresh loop per command also gives each command fresh forest locks.

    Example:
        @click.command()
        @coro
        async def show() -> None:
            ...
    """

    @wraps(command)
    def run(*args: Any, **kwargs: Any) -> T:
        return asyncio.run(command(*args, **kwargs))

    return run
