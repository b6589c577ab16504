"""HTTP-facing exceptions.

Each class fixes an HTTP status and a default problem ``type``; the handlers
in :mod:`nested_tree.app.exception_handlers` render them as RFC 7807 Problem
Details. Tree and repository errors never reach clients directly, they are
mapped onto one of these first.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, ClassVar


class AppException(Exception):
    """Base for errors that carry their own HTTP response.

    Attributes:
        status_code: HTTP status of the response
        detail: Human-readable explanation of this occurrence
        type: Problem type identifier
        title: Short summary of the problem type
        instance: URI of this occurrence, the request URL when left empty
        extra: Members merged into the problem document

    Example:
        raise AppException("Node 7 is locked", status_code=409, type="node-locked")
    """

    default_status: ClassVar[int] = 500
    default_type: ClassVar[str] = "about:blank"

    def __init__(
        self,
        detail: str,
        *,
        status_code: int | None = None,
        type: str | None = None,  # noqa: A002
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code or self.default_status
        self.detail = detail
        self.type = type or self.default_type
        self.title = title or status_title(self.status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)


def status_title(status_code: int) -> str:
    """Standard reason phrase for ``status_code``, or ``"Error"`` if unknown."""
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Error"


class NotFoundException(AppException):
    default_status = 404
    default_type = "not-found"


class ValidationException(AppException):
    """Request is well-formed but refers to an impossible tree change."""

    default_status = 422
    default_type = "validation-error"


class InternalServerException(AppException):
    default_type = "internal-error"


class ServiceUnavailableException(AppException):
    """Database errors the client may retry."""

    default_status = 503
    default_type = "service-unavailable"


__all__ = [
    "AppException",
    "InternalServerException",
    "NotFoundException",
    "ServiceUnavailableException",
    "ValidationException",
    "status_title",
]
