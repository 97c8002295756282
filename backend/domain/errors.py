"""
Custom domain exceptions for consistent error handling.

These exceptions are mapped to HTTP status codes and the standard error
envelope by the exception handlers in main.py.
"""
from fastapi import HTTPException, status

from domain.results import ChainFailure


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    code = "domain_error"

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict | None = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.details = details or {}


class ValidationError(DomainError):
    """Validation error (400)."""
    code = "validation_error"

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        if field:
            message = f"Validation error on {field}: {message}"
            details = {"field": field, **(details or {})}
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class ConflictError(DomainError):
    """Resource conflict (409)."""
    code = "conflict"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)


class RateLimitError(DomainError):
    """Rate limit exceeded (429)."""
    code = "rate_limited"

    def __init__(self, message: str = "Rate limit exceeded", details: dict | None = None, headers: dict | None = None):
        super().__init__(message, status_code=status.HTTP_429_TOO_MANY_REQUESTS, details=details)
        self.headers = headers


class ChainExecutionError(DomainError):
    """
    Relayed transaction failed (500).

    Carries the underlying client diagnostic: message, program log lines and
    the program error code when one was reported.
    """

    def __init__(self, failure: ChainFailure):
        super().__init__(
            failure.message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"logs": list(failure.logs), "code": failure.code},
        )
        self.code = failure.kind.value
        self.failure = failure
