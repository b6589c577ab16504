"""Console formatters that keep ``extra`` fields visible."""
from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

# Attributes every LogRecord has; anything else came from ``extra``
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
        "asctime",
    }
)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, keyed for log shippers.

    Fixed keys are ``timestamp`` (UTC, milliseconds), ``level``, ``logger``
    and ``message``. Every ``extra`` field of the call is added at the top
    level, so ``operation`` or ``node_id`` can be filtered on directly.
    Multi-line tracebacks are escaped to keep the record on one line.

    Example output:
        {"timestamp": "2025-01-01T00:00:00.123Z", "level": "INFO", "logger": "tree.engine",
         "message": "Node moved", "node_id": "7", "position": 2, "operation": "tree.move"}
    """

    def __init__(self, static: dict[str, Any] | None = None) -> None:
        super().__init__()
        self.static = dict(static or {})

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=UTC)
        data: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **self.static,
        }
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info).replace("\n", "\\n")
        if record.stack_info:
            data["stack_trace"] = record.stack_info.replace("\n", "\\n")

        data.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and key not in data
        )
        return json.dumps(data, ensure_ascii=False, default=str)


class ExtraTextFormatter(logging.Formatter):
    """Plain text formatter that appends ``extra`` fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not extras:
            return base
        pairs = " ".join(f"{key}={value}" for key, value in extras.items())
        return f"{base} [{pairs}]"
