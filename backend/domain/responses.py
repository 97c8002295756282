"""
Standard error envelope shared by every endpoint.

- Error: { "success": false, "error": { "code": "...", "message": "...", "details": {...} } }

Success payloads are endpoint-specific (see models.py).
"""
from typing import Any

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Standard error detail structure."""
    code: str = Field(..., description="Error code (e.g., 'validation_error', 'already_initialized')")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Additional error context (logs, program error code)")


class StandardErrorResponse(BaseModel):
    """Standard error response envelope."""
    success: bool = Field(False, description="Always false for errors")
    error: ErrorDetail = Field(..., description="Error details")


def error_response(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Create a standardized error body.

    Returns:
        dict: { "success": false, "error": { "code", "message", "details" } }
    """
    return StandardErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details),
    ).model_dump()


# OpenAPI documentation for the error statuses a relay endpoint can return
RELAY_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": StandardErrorResponse, "description": "Missing or invalid parameters"},
    429: {"model": StandardErrorResponse, "description": "Rate limit exceeded"},
    500: {"model": StandardErrorResponse, "description": "Transaction failed (message, logs, code)"},
}
