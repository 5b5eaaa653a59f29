"""
Circle lifecycle service.

Handles circle creation, pitches and status transitions:

    PROPOSED --accept pitch--> OPEN
    DRAFT --publish--> OPEN <--reopen-- ACTIVE --complete--> COMPLETED
                        |                  ^
                        +--close / full----+
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    UnauthorizedException,
    ValidationException,
)
from mentorhub.database import APPLICATIONS, CIRCLES, FOLLOWS, USERS
from mentorhub.services.circles.access_guard import AccessGuard
from mentorhub.services.circles.constants import (
    ACTIVE,
    COMPLETED,
    DRAFT,
    MENTOR_ROLES,
    OPEN,
    PROPOSED,
)
from mentorhub.services.circles.enrollment import count_filled
from mentorhub.services.revalidation import PathRevalidator, circle_path

logger = logging.getLogger(__name__)


class LifecycleService:
    """
    Handles circle creation, pitches and lifecycle transitions.
    """

    MAX_TITLE_LENGTH = 120
    MAX_DESCRIPTION_LENGTH = 4000
    MAX_CAPACITY = 100
    MAX_DURATION_WEEKS = 104

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        access_guard: Optional[AccessGuard] = None,
        revalidator: Optional[PathRevalidator] = None,
        default_capacity: int = 10,
        default_duration_weeks: int = 8,
    ):
        """
        Initialize LifecycleService.

        Args:
            db: MongoDB database connection
            access_guard: Shared guard, created from db if omitted
            revalidator: UI cache invalidation signal
            default_capacity: Capacity for circles that don't give one
            default_duration_weeks: Duration for circles that don't give one
        """
        self._circles_collection = db[CIRCLES]
        self._applications_collection = db[APPLICATIONS]
        self._follows_collection = db[FOLLOWS]
        self._users_collection = db[USERS]
        self._access_guard = access_guard or AccessGuard(db)
        self._revalidator = revalidator
        self._default_capacity = default_capacity
        self._default_duration_weeks = default_duration_weeks

    # ─────────────────────────────────────────────────────────────
    # Application window
    # ─────────────────────────────────────────────────────────────

    async def close_circle_applications(self, circle_id: str, caller_id: Optional[str]) -> None:
        """Close the application window before capacity is reached. Mentor only."""
        access = await self._access_guard.require_access(circle_id, caller_id, mentor_only=True)

        if access.circle["status"] != OPEN:
            return

        await self._set_status(access.circle, ACTIVE)
        await self._revalidate(circle_path(access.circle_id), "/dashboard/mentor", "/explore")

    async def reopen_circle_applications(self, circle_id: str, caller_id: Optional[str]) -> None:
        """
        Reopen the application window. Mentor only.

        Raises:
            ConflictException: If the circle is completed or already full
        """
        access = await self._access_guard.require_access(circle_id, caller_id, mentor_only=True)
        circle = access.circle

        if circle["status"] == OPEN:
            return

        if circle["status"] == COMPLETED:
            raise ConflictException(
                message="A completed circle cannot be reopened",
                code="CANNOT_REOPEN_COMPLETED",
            )

        filled = await count_filled(self._applications_collection, circle["_id"])
        if filled >= circle["maxCapacity"]:
            raise ConflictException(
                message="Circle is at capacity. Increase capacity before reopening.",
                code="AT_CAPACITY",
                details={"filled": filled, "maxCapacity": circle["maxCapacity"]},
            )

        await self._set_status(circle, OPEN)
        await self._revalidate(circle_path(access.circle_id), "/dashboard/mentor", "/explore")

    async def publish_circle(self, circle_id: str, caller_id: Optional[str]) -> None:
        """Move a DRAFT circle to OPEN. Mentor only."""
        access = await self._access_guard.require_access(circle_id, caller_id, mentor_only=True)

        if access.circle["status"] != DRAFT:
            raise ConflictException(
                message=f"Only draft circles can be published (status: {access.circle['status']})",
                code="INVALID_STATUS_TRANSITION",
            )

        await self._set_status(access.circle, OPEN)
        await self._revalidate("/dashboard/mentor", "/explore")

    async def complete_circle(self, circle_id: str, caller_id: Optional[str]) -> None:
        """Mark an OPEN or ACTIVE circle as COMPLETED. Mentor only."""
        access = await self._access_guard.require_access(circle_id, caller_id, mentor_only=True)
        status = access.circle["status"]

        if status == COMPLETED:
            return

        if status not in [OPEN, ACTIVE]:
            raise ConflictException(
                message=f"Cannot complete a circle that is {status}",
                code="INVALID_STATUS_TRANSITION",
            )

        await self._set_status(access.circle, COMPLETED)
        await self._revalidate(circle_path(access.circle_id), "/dashboard/mentor", "/explore")

    # ─────────────────────────────────────────────────────────────
    # Creation
    # ─────────────────────────────────────────────────────────────

    async def create_circle(
        self,
        mentor_id: Optional[str],
        title: str,
        description: str = "",
        max_capacity: Optional[int] = None,
        duration_weeks: Optional[int] = None,
        tags: Optional[List[str]] = None,
        publish: bool = True,
    ) -> Dict[str, Any]:
        """
        Create a self-mentored circle (creator and mentor are the caller).

        Raises:
            UnauthorizedException: If not signed in
            ForbiddenException: If the caller doesn't hold a mentor role
            ValidationException: If invalid parameters
        """
        if not mentor_id:
            raise UnauthorizedException(message="You must be signed in", code="UNAUTHENTICATED")

        if not await self._has_mentor_role(mentor_id):
            raise ForbiddenException(
                message="Only mentors can create circles",
                code="NOT_A_MENTOR",
            )

        circle_doc = self._new_circle_doc(
            creator_id=mentor_id,
            mentor_id=mentor_id,
            title=title,
            description=description,
            max_capacity=max_capacity,
            duration_weeks=duration_weeks,
            tags=tags,
            status=OPEN if publish else DRAFT,
        )

        result = await self._circles_collection.insert_one(circle_doc)
        circle_doc["_id"] = result.inserted_id

        logger.info(f"Circle created: {result.inserted_id} by mentor {mentor_id}")
        await self._revalidate("/dashboard/mentor", "/explore")
        return circle_doc

    # ─────────────────────────────────────────────────────────────
    # Pitches
    # ─────────────────────────────────────────────────────────────

    async def submit_pitch(
        self,
        creator_id: Optional[str],
        title: str,
        description: str = "",
        mentor_id: Optional[str] = None,
        tags: Optional[List[str]] = None,
        draft: bool = False,
    ) -> Dict[str, Any]:
        """
        Pitch a circle idea, optionally addressed to one mentor.

        A draft is stored as DRAFT and is not sent to anyone, so the
        follow requirement only applies once the pitch is sent.

        Raises:
            ForbiddenException: If addressed to a mentor the creator doesn't follow
        """
        if not creator_id:
            raise UnauthorizedException(message="You must be signed in", code="UNAUTHENTICATED")

        if mentor_id and not draft:
            if mentor_id == creator_id:
                raise ValidationException(
                    message="You cannot pitch a circle to yourself",
                    code="INVALID_PITCH_TARGET",
                )
            follow = await self._follows_collection.find_one({
                "followerId": creator_id,
                "mentorId": mentor_id,
            })
            if not follow:
                raise ForbiddenException(
                    message="You must follow this mentor before pitching to them.",
                    code="FOLLOW_REQUIRED",
                )

        circle_doc = self._new_circle_doc(
            creator_id=creator_id,
            mentor_id=None,
            title=title,
            description=description,
            max_capacity=None,
            duration_weeks=None,
            tags=tags,
            status=DRAFT if draft else PROPOSED,
        )
        circle_doc["pitchedTo"] = mentor_id

        result = await self._circles_collection.insert_one(circle_doc)
        circle_doc["_id"] = result.inserted_id

        if draft:
            logger.info(f"Pitch draft saved: {result.inserted_id} by {creator_id}")
            await self._revalidate("/dashboard/mentee")
            return circle_doc

        logger.info(f"Pitch submitted: {result.inserted_id} by {creator_id} to {mentor_id or 'any mentor'}")
        await self._revalidate("/dashboard/mentee", "/explore")
        return circle_doc

    async def accept_pitch(self, circle_id: str, mentor_id: Optional[str]) -> Dict[str, Any]:
        """
        Take on a pitched circle as its mentor; the circle opens.

        Raises:
            ConflictException: If the circle is no longer a pitch
            ForbiddenException: If the pitch is addressed to someone else,
                or the caller doesn't hold a mentor role
        """
        circle = await self._load_pitch(circle_id, mentor_id)

        if not await self._has_mentor_role(mentor_id):
            raise ForbiddenException(
                message="Only mentors can accept pitches",
                code="NOT_A_MENTOR",
            )

        now = datetime.now(timezone.utc)
        result = await self._circles_collection.update_one(
            {"_id": circle["_id"], "status": PROPOSED},
            {"$set": {"mentorId": mentor_id, "status": OPEN, "updatedAt": now}}
        )
        if result.matched_count == 0:
            raise ConflictException(
                message="This pitch has already been handled",
                code="INVALID_STATUS_TRANSITION",
            )

        logger.info(f"Pitch {circle['_id']} accepted by mentor {mentor_id}")
        await self._revalidate("/dashboard/mentor", "/dashboard/mentee", "/explore")

        circle.update({"mentorId": mentor_id, "status": OPEN, "updatedAt": now})
        return circle

    async def decline_pitch(self, circle_id: str, mentor_id: Optional[str]) -> None:
        """Decline a pitch addressed to the caller; the pitch is deleted."""
        circle = await self._load_pitch(circle_id, mentor_id)

        if circle.get("pitchedTo") != mentor_id:
            raise ForbiddenException(
                message="Only the mentor this pitch was sent to can decline it",
                code="NOT_PITCH_TARGET",
            )

        await self._circles_collection.delete_one({"_id": circle["_id"], "status": PROPOSED})

        logger.info(f"Pitch {circle['_id']} declined by mentor {mentor_id}")
        await self._revalidate("/dashboard/mentor", "/explore")

    # ─────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────

    async def _load_pitch(self, circle_id: str, mentor_id: Optional[str]) -> Dict[str, Any]:
        if not mentor_id:
            raise UnauthorizedException(message="You must be signed in", code="UNAUTHENTICATED")

        circle = await self._access_guard.load_circle(circle_id)

        if circle["status"] != PROPOSED:
            raise ConflictException(
                message="This pitch has already been handled",
                code="INVALID_STATUS_TRANSITION",
            )

        pitched_to = circle.get("pitchedTo")
        if pitched_to and pitched_to != mentor_id:
            raise ForbiddenException(
                message="This pitch was sent to another mentor",
                code="NOT_PITCH_TARGET",
            )

        return circle

    def _new_circle_doc(
        self,
        creator_id: str,
        mentor_id: Optional[str],
        title: str,
        description: str,
        max_capacity: Optional[int],
        duration_weeks: Optional[int],
        tags: Optional[List[str]],
        status: str,
    ) -> Dict[str, Any]:
        title = title.strip() if title else ""
        description = description.strip() if description else ""

        if not title:
            raise ValidationException(message="Title is required", code="EMPTY_TITLE")
        if len(title) > self.MAX_TITLE_LENGTH:
            raise ValidationException(
                message=f"Title cannot exceed {self.MAX_TITLE_LENGTH} characters",
                code="TITLE_TOO_LONG",
            )
        if len(description) > self.MAX_DESCRIPTION_LENGTH:
            raise ValidationException(
                message=f"Description cannot exceed {self.MAX_DESCRIPTION_LENGTH} characters",
                code="DESCRIPTION_TOO_LONG",
            )

        max_capacity = max_capacity if max_capacity is not None else self._default_capacity
        if max_capacity < 1 or max_capacity > self.MAX_CAPACITY:
            raise ValidationException(
                message=f"Capacity must be between 1 and {self.MAX_CAPACITY}",
                code="INVALID_CAPACITY",
            )

        duration_weeks = duration_weeks if duration_weeks is not None else self._default_duration_weeks
        if duration_weeks < 1 or duration_weeks > self.MAX_DURATION_WEEKS:
            raise ValidationException(
                message=f"Duration must be between 1 and {self.MAX_DURATION_WEEKS} weeks",
                code="INVALID_DURATION",
            )

        now = datetime.now(timezone.utc)
        return {
            "creatorId": creator_id,
            "mentorId": mentor_id,
            "title": title,
            "description": description,
            "tags": [t.strip() for t in (tags or []) if t and t.strip()],
            "status": status,
            "maxCapacity": max_capacity,
            "durationWeeks": duration_weeks,
            "createdAt": now,
            "updatedAt": now,
        }

    async def _set_status(self, circle: Dict[str, Any], status: str) -> None:
        await self._circles_collection.update_one(
            {"_id": circle["_id"]},
            {"$set": {"status": status, "updatedAt": datetime.now(timezone.utc)}}
        )
        logger.info(f"Circle {circle['_id']} {circle['status']} -> {status}")

    async def _has_mentor_role(self, user_id: str) -> bool:
        """Check if user holds a mentor role."""
        user = await self._users_collection.find_one(
            {"_id": user_id, "role": {"$in": MENTOR_ROLES}},
            {"_id": 1},
        )
        return user is not None

    async def _revalidate(self, *paths: str) -> None:
        if self._revalidator:
            await self._revalidator.revalidate(*paths)
