"""
HTTP exceptions carrying machine-readable error codes.

Every error the services raise is an HTTPException whose detail is
{"message", "code", "details?"}, so FastAPI renders it without any
custom handler.

Example:
    from common.utils import ConflictException

    if circle["status"] == "COMPLETED":
        raise ConflictException("A completed circle cannot be reopened", code="CANNOT_REOPEN_COMPLETED")
"""

from typing import Optional, Any, Dict
from fastapi import HTTPException


class APIException(HTTPException):
    """
    Base API exception with error code support.

    Subclasses pin the HTTP status and supply defaults for message and code.
    """

    status: int = 500
    default_message: str = "Internal server error"
    default_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Create an API exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
            headers: Optional response headers
        """
        self.message = message or self.default_message
        self.code = code or self.default_code

        detail: Dict[str, Any] = {"message": self.message, "code": self.code}
        if details is not None:
            detail["details"] = details

        super().__init__(status_code=self.status, detail=detail, headers=headers)


class UnauthorizedException(APIException):
    """401 - No caller identity, or the bearer token is not valid."""

    status = 401
    default_message = "Unauthorized"
    default_code = "UNAUTHENTICATED"


class ForbiddenException(APIException):
    """403 - Caller is known but lacks the role for this circle."""

    status = 403
    default_message = "Forbidden"
    default_code = "FORBIDDEN"


class NotFoundException(APIException):
    """404 - Resource doesn't exist (malformed ids included)."""

    status = 404
    default_message = "Not found"
    default_code = "NOT_FOUND"


class ConflictException(APIException):
    """409 - Request conflicts with the resource's current state."""

    status = 409
    default_message = "Conflict"
    default_code = "CONFLICT"


class ValidationException(APIException):
    """422 - Input is well-formed but not acceptable."""

    status = 422
    default_message = "Validation error"
    default_code = "VALIDATION_ERROR"


class InternalServerException(APIException):
    """500 - Unexpected server error."""


class StoreException(InternalServerException):
    """500 - The document store rejected or failed a statement."""

    default_message = "Database operation failed"
    default_code = "STORE_ERROR"
