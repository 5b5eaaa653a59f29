"""
Utilities module - Common helpers for API responses and exceptions.
"""

from common.utils.responses import success_response, list_response
from common.utils.exceptions import (
    APIException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    ValidationException,
    InternalServerException,
    StoreException,
)

__all__ = [
    "success_response",
    "list_response",
    "APIException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "ValidationException",
    "InternalServerException",
    "StoreException",
]
