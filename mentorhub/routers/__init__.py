"""
MentorHub API Routers.

All routers are imported here for easy access.
"""

from mentorhub.routers.circles import router as circles_router
from mentorhub.routers.applications import router as applications_router
from mentorhub.routers.pitches import router as pitches_router
from mentorhub.routers.mentors import router as mentors_router
from mentorhub.routers.room import router as room_router
from mentorhub.routers.users import router as users_router

__all__ = [
    "circles_router",
    "applications_router",
    "pitches_router",
    "mentors_router",
    "room_router",
    "users_router",
]
