"""
FastAPI dependencies for MentorHub.

Provides dependency injection for all services.
"""

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth import (
    AuthProvider,
    JWTAuth,
    create_auth_dependency,
    create_optional_auth_dependency,
)
from mentorhub.services.circles.access_guard import AccessGuard
from mentorhub.services.circles.admission_service import AdmissionService
from mentorhub.services.circles.change_service import ChangeService
from mentorhub.services.circles.directory_service import DirectoryService
from mentorhub.services.circles.lifecycle_service import LifecycleService
from mentorhub.services.revalidation import PathRevalidator
from mentorhub.services.room.room_service import RoomService


# ─────────────────────────────────────────────────────────────────
# Global service instances
# ─────────────────────────────────────────────────────────────────

_auth_provider: Optional[AuthProvider] = None
_revalidator: Optional[PathRevalidator] = None

_access_guard: Optional[AccessGuard] = None
_admission_service: Optional[AdmissionService] = None
_change_service: Optional[ChangeService] = None
_lifecycle_service: Optional[LifecycleService] = None
_directory_service: Optional[DirectoryService] = None
_room_service: Optional[RoomService] = None


# ─────────────────────────────────────────────────────────────────
# Initialization
# ─────────────────────────────────────────────────────────────────

def init_auth_services(
    jwt_secret: str,
    jwt_algorithm: str = "HS256",
    access_token_expire_minutes: int = 30,
) -> None:
    """Initialize the bearer token provider."""
    global _auth_provider

    _auth_provider = JWTAuth(
        secret=jwt_secret,
        algorithm=jwt_algorithm,
        access_token_expire_minutes=access_token_expire_minutes,
    )


def init_circles_services(
    db: AsyncIOMotorDatabase,
    revalidator: Optional[PathRevalidator] = None,
    default_capacity: int = 10,
    default_duration_weeks: int = 8,
) -> None:
    """
    Initialize circles services with database connection.

    Called once at application startup. All services share one access
    guard and one revalidation signal.

    Args:
        db: MongoDB database connection
        revalidator: UI cache invalidation signal
        default_capacity: Capacity for circles that don't give one
        default_duration_weeks: Duration for circles that don't give one
    """
    global _revalidator, _access_guard, _admission_service, _change_service
    global _lifecycle_service, _directory_service, _room_service

    _revalidator = revalidator or PathRevalidator()
    _access_guard = AccessGuard(db)

    _admission_service = AdmissionService(db, _access_guard, _revalidator)
    _change_service = ChangeService(db, _access_guard, _revalidator)
    _lifecycle_service = LifecycleService(
        db,
        _access_guard,
        _revalidator,
        default_capacity=default_capacity,
        default_duration_weeks=default_duration_weeks,
    )
    _directory_service = DirectoryService(db, _revalidator)
    _room_service = RoomService(db, _access_guard, _revalidator)


def init_all_services(
    db: AsyncIOMotorDatabase,
    jwt_secret: str,
    revalidator: Optional[PathRevalidator] = None,
    jwt_algorithm: str = "HS256",
    access_token_expire_minutes: int = 30,
    default_capacity: int = 10,
    default_duration_weeks: int = 8,
) -> None:
    """Initialize every service. Called from the application lifespan."""
    init_auth_services(jwt_secret, jwt_algorithm, access_token_expire_minutes)
    init_circles_services(
        db,
        revalidator=revalidator,
        default_capacity=default_capacity,
        default_duration_weeks=default_duration_weeks,
    )


# ─────────────────────────────────────────────────────────────────
# Getters
# ─────────────────────────────────────────────────────────────────

def get_auth_provider() -> AuthProvider:
    """Get auth provider instance."""
    if _auth_provider is None:
        raise RuntimeError("Auth services not initialized.")
    return _auth_provider


def get_admission_service() -> AdmissionService:
    """Get admission service instance."""
    if _admission_service is None:
        raise RuntimeError("Circles services not initialized.")
    return _admission_service


def get_change_service() -> ChangeService:
    """Get change service instance."""
    if _change_service is None:
        raise RuntimeError("Circles services not initialized.")
    return _change_service


def get_lifecycle_service() -> LifecycleService:
    """Get lifecycle service instance."""
    if _lifecycle_service is None:
        raise RuntimeError("Circles services not initialized.")
    return _lifecycle_service


def get_directory_service() -> DirectoryService:
    """Get directory service instance."""
    if _directory_service is None:
        raise RuntimeError("Circles services not initialized.")
    return _directory_service


def get_room_service() -> RoomService:
    """Get room service instance."""
    if _room_service is None:
        raise RuntimeError("Circles services not initialized.")
    return _room_service


# ─────────────────────────────────────────────────────────────────
# Auth dependencies
# ─────────────────────────────────────────────────────────────────

# Raises 401 without a valid bearer token
require_user_id = create_auth_dependency(get_auth_provider)

# Yields None without a valid bearer token; the access guard decides
optional_user_id = create_optional_auth_dependency(get_auth_provider)
