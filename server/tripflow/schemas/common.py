"""Common Pydantic schemas."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class Violation(BaseModel):
    """A single request field that failed validation."""

    path: str = Field(..., description="Dotted location of the invalid field")
    message: str = Field(..., description="Validation error message")


class Problem(BaseModel):
    """RFC 9457 Problem Details body returned for every failed command."""

    type: Optional[str] = Field(None, description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference for this occurrence")
    code: Optional[str] = Field(None, description="Application error code, e.g. INSUFFICIENT_CAPACITY")
    retryable: Optional[bool] = Field(None, description="Whether repeating the command may succeed")
    conflicting_resource: Optional[Dict[str, Any]] = Field(None, description="State that caused a 409")
    violations: Optional[List[Violation]] = Field(None, description="Validation errors")


# OpenAPI error responses shared by the lifecycle commands
PROBLEM_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    404: {"model": Problem, "description": "Booking, departure or payment not found"},
    409: {"model": Problem, "description": "Capacity, transition or concurrency conflict"},
    422: {"model": Problem, "description": "Request failed validation"},
    500: {"model": Problem, "description": "Orchestration failed; nothing was written"},
}


class PaginatedResponse(BaseModel):
    """Base class for paginated responses."""

    next_cursor: Optional[str] = Field(None, description="Cursor for next page")
