"""
Reusable infrastructure shared by the MentorHub API.

- database: Motor connection manager
- auth: bearer token providers and FastAPI dependencies
- utils: response envelopes and coded HTTP exceptions
- config: environment-backed base settings
"""

from common.database import MongoDB
from common.auth import (
    AuthProvider,
    JWTAuth,
    create_auth_dependency,
    create_optional_auth_dependency,
)
from common.utils import (
    success_response,
    list_response,
    APIException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    ValidationException,
    StoreException,
)
from common.config import BaseAppSettings

__all__ = [
    "MongoDB",
    "AuthProvider",
    "JWTAuth",
    "create_auth_dependency",
    "create_optional_auth_dependency",
    "success_response",
    "list_response",
    "APIException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "ValidationException",
    "StoreException",
    "BaseAppSettings",
]
