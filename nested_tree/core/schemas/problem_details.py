"""Error response bodies (RFC 7807, https://datatracker.ietf.org/doc/html/rfc7807)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ProblemDetails(BaseModel):
    """Problem document returned for every failed request.

    Extension members (``node_id``, ``parent_id``, ``operation``...) are
    merged in by the handlers after dumping.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "type": "invalid-parent",
                "title": "Unprocessable Entity",
                "status": 422,
                "detail": "Invalid parent for node: new parent is a descendant of the node",
                "instance": "http://localhost/api/v1/nodes/3/move",
                "node_id": 3,
                "parent_id": 5,
            }
        },
    )

    type: str = Field(default="about:blank", min_length=1, description="Problem type identifier")
    title: str = Field(min_length=1, description="Summary of the problem type")
    status: int = Field(ge=400, le=599)
    detail: str | None = Field(default=None, description="What went wrong in this request")
    instance: str | None = Field(default=None, description="URL of the failed request")


class ValidationErrorItem(BaseModel):
    """A rejected request field."""

    field: str = Field(description="Location such as ``body.name`` or ``path.node_id``")
    message: str
    type: str


class ValidationProblemDetails(ProblemDetails):
    errors: list[ValidationErrorItem] = Field(default_factory=list)
