"""Unified API response wrapper.

Success:
{
    "success": true,
    "data": { ... },
    "pagination": {"skip": 0, "take": 20, "total": 57}   // list endpoints only
}

Error:
{
    "error": "Prompt not found: ...",
    "code": 2001,
    "details": { ... }    // optional
}
"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

MAX_TAKE = 100


class Pagination(BaseModel):
    skip: int
    take: int
    total: int


class ApiResponse(BaseModel):
    success: bool = True
    data: Any = None
    pagination: Pagination | None = None


class ErrorResponse(BaseModel):
    error: str
    code: int
    details: Any = None


def success_response(data: Any = None, pagination: Pagination | None = None) -> ApiResponse:
    return ApiResponse(success=True, data=data, pagination=pagination)


def error_response(code: int, message: str, details: Any = None) -> ErrorResponse:
    return ErrorResponse(error=message, code=code, details=details)


def clamp_take(take: int) -> int:
    """Page size is silently capped at MAX_TAKE."""
    return min(take, MAX_TAKE)


class CamelModel(BaseModel):
    """Wire format is camelCase (promptId, qualityScore); attributes stay snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict; Decimal money fields become strings ("7.00")."""
        return self.model_dump(mode="json", by_alias=True)
