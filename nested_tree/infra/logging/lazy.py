"""Logger adapter that builds DEBUG messages only when they will be emitted.

Bound-shift and traversal messages format node lists and regions; on a large
forest that work is wasted whenever DEBUG is off. Passing a callable instead
of a string defers it.
"""

from __future__ import annotations

import logging
from typing import Any


class LazyLoggerAdapter(logging.LoggerAdapter):
    """Accepts callables as the message or as format arguments.

    ``debug``/``info``/``exception`` and friends all route through
    :meth:`log` in ``LoggerAdapter``, so overriding ``log`` covers them. A call
    passing ``extra`` keeps it, merged over the bound context.

    Example:
        logger = LazyLoggerAdapter(logging.getLogger(__name__))
        logger.debug(lambda: f"shifted {region} by {delta}")
        logger.info("moved %s", lambda: node.id)
    """

    def log(self, level: int, msg: Any, *args: Any, **kwargs: Any) -> None:
        if not self.isEnabledFor(level):
            return
        if callable(msg):
            msg = msg()
        args = tuple(arg() if callable(arg) else arg for arg in args)
        super().log(level, msg, *args, **kwargs)

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs


def get_lazy_logger(name: str, **context: Any) -> LazyLoggerAdapter:
    """Wrap ``logging.getLogger(name)``; ``context`` becomes the adapter's extra."""
    return LazyLoggerAdapter(logging.getLogger(name), context)
