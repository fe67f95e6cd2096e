"""
Shared error handling for the Edge Auth service.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str
    detail: str
    code: str
    request_id: Optional[str] = None


class EdgeAuthException(Exception):
    """Base exception for Edge Auth components."""

    default_error = "Request failed"

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, error: Optional[str] = None, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            error=error or self.default_error,
            detail=self.message,
            code=self.code,
            request_id=request_id,
        )
