"""
Circle access guard.

Resolves how the caller relates to a circle (mentor, creator, accepted
member) once per request. Every mutating circle operation starts here
and passes the resulting CircleAccess downstream instead of re-deriving
roles.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import (
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
)
from mentorhub.database import CIRCLES, APPLICATIONS
from mentorhub.services.circles.constants import ACCEPTED, to_object_id

logger = logging.getLogger(__name__)


class CallerRole(Enum):
    """Strongest relationship the caller holds with a circle."""

    MENTOR = "mentor"
    CREATOR = "creator"
    ACCEPTED_MEMBER = "member"
    NONE = "none"


@dataclass
class CircleAccess:
    """The loaded circle plus the caller's resolved roles."""

    circle: Dict[str, Any]
    user_id: str
    is_mentor: bool
    is_creator: bool
    is_member: bool

    @property
    def circle_id(self) -> ObjectId:
        return self.circle["_id"]

    @property
    def role(self) -> CallerRole:
        if self.is_mentor:
            return CallerRole.MENTOR
        if self.is_creator:
            return CallerRole.CREATOR
        if self.is_member:
            return CallerRole.ACCEPTED_MEMBER
        return CallerRole.NONE

    @property
    def is_governor(self) -> bool:
        """Creator or mentor: the parties that govern capacity and duration."""
        return self.is_mentor or self.is_creator

    @property
    def requires_dual_approval(self) -> bool:
        return requires_dual_approval(self.circle)


def requires_dual_approval(circle: Dict[str, Any]) -> bool:
    """A circle with an assigned mentor other than its creator needs both to agree."""
    mentor_id = circle.get("mentorId")
    return mentor_id is not None and circle.get("creatorId") != mentor_id


class AccessGuard:
    """
    Resolves and enforces caller roles on circles.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        """
        Initialize AccessGuard.

        Args:
            db: MongoDB database connection
        """
        self._circles_collection = db[CIRCLES]
        self._applications_collection = db[APPLICATIONS]

    async def load_circle(self, circle_id: Any) -> Dict[str, Any]:
        """Get circle by ID."""
        oid = to_object_id(circle_id, "Circle", "CIRCLE_NOT_FOUND")
        circle = await self._circles_collection.find_one({"_id": oid})
        if not circle:
            raise NotFoundException(message="Circle not found", code="CIRCLE_NOT_FOUND")
        return circle

    async def resolve(self, circle_id: Any, user_id: Optional[str]) -> CircleAccess:
        """
        Resolve the caller's roles without enforcing any of them.

        Raises:
            UnauthorizedException: If there is no caller identity
            NotFoundException: If the circle does not exist
        """
        if not user_id:
            raise UnauthorizedException(
                message="You must be signed in",
                code="UNAUTHENTICATED",
            )

        circle = await self.load_circle(circle_id)

        membership = await self._applications_collection.find_one({
            "circleId": circle["_id"],
            "menteeId": user_id,
            "status": ACCEPTED,
        })

        return CircleAccess(
            circle=circle,
            user_id=user_id,
            is_mentor=circle.get("mentorId") == user_id,
            is_creator=circle.get("creatorId") == user_id,
            is_member=membership is not None,
        )

    async def require_access(
        self,
        circle_id: Any,
        user_id: Optional[str],
        mentor_only: bool = False,
    ) -> CircleAccess:
        """
        Require the caller to be the mentor, the creator or an accepted member.

        Args:
            circle_id: Circle being accessed
            user_id: Caller, None if not signed in
            mentor_only: Additionally require the caller to be the mentor

        Raises:
            UnauthorizedException: If there is no caller identity
            NotFoundException: If the circle does not exist
            ForbiddenException: If the caller lacks the required role
        """
        access = await self.resolve(circle_id, user_id)

        if access.role is CallerRole.NONE:
            raise ForbiddenException(
                message="You do not have access to this circle",
                code="FORBIDDEN",
            )

        if mentor_only and not access.is_mentor:
            raise ForbiddenException(
                message="Only the circle's mentor can do this",
                code="NOT_MENTOR",
            )

        return access

    async def require_governor(self, circle_id: Any, user_id: Optional[str]) -> CircleAccess:
        """Require the caller to be the circle's creator or mentor."""
        access = await self.require_access(circle_id, user_id)

        if not access.is_governor:
            raise ForbiddenException(
                message="Only the circle's creator or mentor can do this",
                code="NOT_CIRCLE_GOVERNOR",
            )

        return access
