"""
Authentication module - Pluggable bearer token auth providers.
"""

from common.auth.base import AuthProvider
from common.auth.jwt_auth import JWTAuth
from common.auth.dependencies import create_auth_dependency, create_optional_auth_dependency

__all__ = [
    "AuthProvider",
    "JWTAuth",
    "create_auth_dependency",
    "create_optional_auth_dependency",
]
