"""Exception handlers rendering every failure as RFC 7807 Problem Details.

Repository and tree errors are translated into ``AppException`` subclasses by
:func:`to_app_exception` before rendering, so clients only ever see the
HTTP-level view of an error.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from nested_tree.core.database.exceptions import (
    InconsistentBoundsError,
    InvalidParentError,
    NotFoundError,
    RepositoryError,
    StoreFailureError,
)
from nested_tree.core.exceptions import (
    AppException,
    InternalServerException,
    NotFoundException,
    ServiceUnavailableException,
    ValidationException,
    status_title,
)
from nested_tree.core.schemas.problem_details import (
    ProblemDetails,
    ValidationErrorItem,
    ValidationProblemDetails,
)

logger = logging.getLogger(__name__)


def _plain_values(details: dict[str, Any]) -> dict[str, Any]:
    return {
        key: value if value is None or isinstance(value, int | float | str) else str(value)
        for key, value in details.items()
    }


def to_app_exception(exc: RepositoryError) -> AppException:
    """Pick the HTTP error for a repository or tree error.

    NotFoundError is a 404, InvalidParentError a 422 and StoreFailureError a
    503. Corrupted bounds and any other repository error are a 500.
    """
    match exc:
        case NotFoundError():
            return NotFoundException(
                exc.message,
                type=f"{exc.model_name.lower()}-not-found",
                extra=_plain_values(exc.identifier),
            )
        case InvalidParentError():
            return ValidationException(
                exc.message, type="invalid-parent", extra=_plain_values(exc.details)
            )
        case StoreFailureError():
            # Driver text stays in the logs
            return ServiceUnavailableException(
                exc.message, type="store-failure", extra={"operation": exc.operation}
            )
        case InconsistentBoundsError():
            return InternalServerException(
                exc.message, type="inconsistent-bounds", extra=_plain_values(exc.details)
            )
        case _:
            return InternalServerException(exc.message, type="repository-error")


def _problem_response(
    request: Request,
    problem: ProblemDetails,
    extra: dict[str, Any] | None = None,
) -> JSONResponse:
    if problem.instance is None:
        problem.instance = str(request.url)
    content = problem.model_dump(exclude_none=True)
    content.update(extra or {})
    return JSONResponse(status_code=problem.status, content=content)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    logger.warning(
        "Request failed",
        extra={
            "path": request.url.path,
            "method": request.method,
            "problem_type": exc.type,
            "status_code": exc.status_code,
            "detail": exc.detail,
        },
    )
    problem = ProblemDetails(
        type=exc.type,
        title=exc.title,
        status=exc.status_code,
        detail=exc.detail,
        instance=exc.instance,
    )
    return _problem_response(request, problem, exc.extra)


async def repository_exception_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    """Render repository and tree errors raised below the service layer."""
    if isinstance(exc, InconsistentBoundsError | StoreFailureError):
        logger.error(
            "Tree operation failed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": type(exc).__name__,
                "error_message": str(exc),
            },
        )
    return await app_exception_handler(request, to_app_exception(exc))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation errors with one item per rejected field."""
    items = [
        ValidationErrorItem(
            field=".".join(str(part) for part in error["loc"]),
            message=error["msg"],
            type=error["type"],
        )
        for error in exc.errors()
    ]
    logger.warning(
        "Request validation failed",
        extra={"path": request.url.path, "method": request.method, "error_count": len(items)},
    )

    problem = ValidationProblemDetails(
        type="validation-error",
        title=status_title(status.HTTP_422_UNPROCESSABLE_ENTITY),
        status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=f"Request validation failed for {len(items)} field(s)",
        errors=items,
    )
    return _problem_response(request, problem)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback and answer with a 500 that reveals nothing."""
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": type(exc).__name__,
            "error_message": str(exc),
        },
        exc_info=True,
    )
    problem = ProblemDetails(
        type="internal-error",
        title=status_title(status.HTTP_500_INTERNAL_SERVER_ERROR),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred while processing your request",
    )
    return _problem_response(request, problem)


def configure_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RepositoryError, repository_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.debug("Exception handlers configured")
