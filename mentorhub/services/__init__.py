"""
MentorHub services.

Business logic lives here; routers only translate HTTP to service calls.
"""

from mentorhub.services.circles import (
    AccessGuard,
    AdmissionService,
    ChangeService,
    LifecycleService,
    DirectoryService,
)
from mentorhub.services.room import RoomService
from mentorhub.services.revalidation import PathRevalidator

__all__ = [
    "AccessGuard",
    "AdmissionService",
    "ChangeService",
    "LifecycleService",
    "DirectoryService",
    "RoomService",
    "PathRevalidator",
]
