"""Errors raised by repositories and the nested-set engine.

Everything derives from :class:`RepositoryError`, so HTTP and CLI layers can
catch one type and inspect ``details`` for context. Driver exceptions never
escape the store unwrapped.
"""

from __future__ import annotations

from typing import Any


class RepositoryError(Exception):
    """A repository or store operation could not be carried out.

    Attributes:
        message: What failed, without context values
        details: Context values (keys, bounds, operation names)
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value!r}" for key, value in self.details.items())
        return f"{self.message} ({context})"


class NotFoundError(RepositoryError):
    """No record for the given key, e.g. a node id or a parent id.

    Attributes:
        model_name: Mapped class that was searched
        identifier: Column/value pairs of the lookup, e.g. ``{"id": 7}``
    """

    def __init__(self, model_name: str, identifier: dict[str, Any]) -> None:
        self.model_name = model_name
        self.identifier = identifier
        lookup = ", ".join(f"{key}={value!r}" for key, value in identifier.items())
        super().__init__(f"{model_name} not found with {lookup}", {"model": model_name, **identifier})

    def __repr__(self) -> str:
        return f"NotFoundError({self.model_name!r}, {self.identifier!r})"


class TreeStructureError(RepositoryError):
    """Base for nested-set failures."""


class InvalidParentError(TreeStructureError):
    """The node would become its own parent or its own descendant."""

    def __init__(self, node_id: Any, parent_id: Any, reason: str) -> None:
        self.node_id = node_id
        self.parent_id = parent_id
        super().__init__(
            f"Invalid parent for node: {reason}",
            {"node_id": node_id, "parent_id": parent_id},
        )


class InconsistentBoundsError(TreeStructureError):
    """Stored bounds or parent references contradict each other.

    The forest is corrupt at this point. Nothing repairs it automatically,
    so no further mutation should run against it until it is rebuilt.
    """

    def __init__(self, message: str, node_id: Any = None, **details: Any) -> None:
        self.node_id = node_id
        if node_id is not None:
            details = {"node_id": node_id, **details}
        super().__init__(message, details)


class StoreFailureError(TreeStructureError):
    """A store call failed and aborted the surrounding tree operation.

    ``reason`` holds the driver message; the driver exception itself is the
    ``__cause__``.
    """

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"Bounds store operation failed: {operation}",
            {"operation": operation, "reason": reason},
        )


__all__ = [
    "InconsistentBoundsError",
    "InvalidParentError",
    "NotFoundError",
    "RepositoryError",
    "StoreFailureError",
    "TreeStructureError",
]
