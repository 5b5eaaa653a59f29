"""
Circle room service.

Sessions, shared resources and discussion threads inside a circle.
Every call goes through the access guard; session management is
mentor-only, resources and posts are open to any member.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from mentorhub.database import DISCUSSION_POSTS, RESOURCES, SESSIONS
from mentorhub.services.circles.access_guard import AccessGuard
from mentorhub.services.circles.constants import to_object_id
from mentorhub.services.revalidation import PathRevalidator, circle_path

logger = logging.getLogger(__name__)

MAX_POST_LENGTH = 5000


class RoomService:
    """
    Handles sessions, resources and discussion posts for a circle.
    """

    SESSION_UPCOMING = "UPCOMING"
    SESSION_COMPLETED = "COMPLETED"
    RESOURCE_TYPES = ["LINK", "VIDEO", "DOCUMENT", "ARTICLE", "OTHER"]

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        access_guard: Optional[AccessGuard] = None,
        revalidator: Optional[PathRevalidator] = None,
    ):
        """
        Initialize RoomService.

        Args:
            db: MongoDB database connection
            access_guard: Shared guard, created from db if omitted
            revalidator: UI cache invalidation signal
        """
        self._sessions_collection = db[SESSIONS]
        self._resources_collection = db[RESOURCES]
        self._posts_collection = db[DISCUSSION_POSTS]
        self._access_guard = access_guard or AccessGuard(db)
        self._revalidator = revalidator

    async def get_circle_room(self, circle_id: str, user_id: Optional[str]) -> Dict[str, Any]:
        """Everything the circle room page shows."""
        access = await self._access_guard.require_access(circle_id, user_id)
        oid = access.circle_id

        sessions = await self._sessions_collection.find(
            {"circleId": oid}
        ).sort("scheduledAt", 1).to_list(length=200)

        resources = await self._resources_collection.find(
            {"circleId": oid}
        ).sort("createdAt", -1).to_list(length=200)

        posts = await self._posts_collection.find(
            {"circleId": oid, "parentId": None}
        ).sort("createdAt", -1).to_list(length=100)

        return {
            "circle": access.circle,
            "role": access.role.value,
            "sessions": sessions,
            "resources": resources,
            "posts": posts,
        }

    # ─────────────────────────────────────────────────────────────
    # Sessions
    # ─────────────────────────────────────────────────────────────

    async def add_session(
        self,
        circle_id: str,
        user_id: Optional[str],
        title: str,
        scheduled_at: datetime,
        video_call_url: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Schedule a session. Mentor only."""
        access = await self._access_guard.require_access(circle_id, user_id, mentor_only=True)

        title = title.strip() if title else ""
        if not title:
            raise ValidationException(message="Session title is required", code="EMPTY_TITLE")

        if scheduled_at.tzinfo is None:
            scheduled_at = scheduled_at.replace(tzinfo=timezone.utc)

        session_doc = {
            "circleId": access.circle_id,
            "title": title,
            "scheduledAt": scheduled_at,
            "videoCallUrl": video_call_url or None,
            "status": self.SESSION_UPCOMING,
            "notes": None,
            "createdAt": datetime.now(timezone.utc),
        }

        result = await self._sessions_collection.insert_one(session_doc)
        session_doc["_id"] = result.inserted_id

        logger.info(f"Session {result.inserted_id} scheduled in circle {access.circle_id}")
        await self._revalidate(access.circle_id)
        return session_doc

    async def complete_session(
        self,
        circle_id: str,
        user_id: Optional[str],
        session_id: str,
        notes: Optional[str] = None,
    ) -> None:
        """Mark a session completed with optional notes. Mentor only."""
        access = await self._access_guard.require_access(circle_id, user_id, mentor_only=True)

        session = await self._sessions_collection.find_one({
            "_id": to_object_id(session_id, "Session", "SESSION_NOT_FOUND"),
            "circleId": access.circle_id,
        })
        if not session:
            raise NotFoundException(message="Session not found", code="SESSION_NOT_FOUND")

        if session["status"] == self.SESSION_COMPLETED:
            raise ConflictException(
                message="Session is already completed",
                code="SESSION_ALREADY_COMPLETED",
            )

        await self._sessions_collection.update_one(
            {"_id": session["_id"]},
            {"$set": {"status": self.SESSION_COMPLETED, "notes": notes}}
        )

        logger.info(f"Session {session['_id']} completed")
        await self._revalidate(access.circle_id)

    # ─────────────────────────────────────────────────────────────
    # Resources
    # ─────────────────────────────────────────────────────────────

    async def add_resource(
        self,
        circle_id: str,
        user_id: Optional[str],
        title: str,
        url: str,
        resource_type: str = "LINK",
    ) -> Dict[str, Any]:
        """Share a resource with the circle."""
        access = await self._access_guard.require_access(circle_id, user_id)

        title = title.strip() if title else ""
        url = url.strip() if url else ""
        if not title or not url:
            raise ValidationException(
                message="Resource title and URL are required",
                code="INVALID_RESOURCE",
            )

        resource_type = (resource_type or "LINK").upper()
        if resource_type not in self.RESOURCE_TYPES:
            raise ValidationException(
                message=f"Type must be one of: {', '.join(self.RESOURCE_TYPES)}",
                code="INVALID_RESOURCE_TYPE",
            )

        resource_doc = {
            "circleId": access.circle_id,
            "addedById": user_id,
            "title": title,
            "url": url,
            "type": resource_type,
            "createdAt": datetime.now(timezone.utc),
        }

        result = await self._resources_collection.insert_one(resource_doc)
        resource_doc["_id"] = result.inserted_id

        await self._revalidate(access.circle_id)
        return resource_doc

    async def delete_resource(self, circle_id: str, user_id: Optional[str], resource_id: str) -> None:
        """Remove a resource. Only whoever added it, or the mentor."""
        access = await self._access_guard.require_access(circle_id, user_id)

        resource = await self._resources_collection.find_one({
            "_id": to_object_id(resource_id, "Resource", "RESOURCE_NOT_FOUND"),
            "circleId": access.circle_id,
        })
        if not resource:
            raise NotFoundException(message="Resource not found", code="RESOURCE_NOT_FOUND")

        if resource.get("addedById") != user_id and not access.is_mentor:
            raise ForbiddenException(
                message="Only the person who added this resource or the mentor can remove it",
                code="NOT_RESOURCE_OWNER",
            )

        await self._resources_collection.delete_one({"_id": resource["_id"]})

        logger.info(f"Resource {resource['_id']} deleted by {user_id}")
        await self._revalidate(access.circle_id)

    # ─────────────────────────────────────────────────────────────
    # Discussion
    # ─────────────────────────────────────────────────────────────

    async def post_discussion(
        self,
        circle_id: str,
        user_id: Optional[str],
        content: str,
        parent_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Start a thread, or reply to one when parent_id is given."""
        access = await self._access_guard.require_access(circle_id, user_id)

        content = content.strip() if content else ""
        if not content:
            raise ValidationException(message="Post cannot be empty", code="EMPTY_POST")
        if len(content) > MAX_POST_LENGTH:
            raise ValidationException(
                message=f"Post cannot exceed {MAX_POST_LENGTH} characters",
                code="POST_TOO_LONG",
            )

        parent_oid = None
        if parent_id:
            parent_oid = to_object_id(parent_id, "Parent post", "POST_NOT_FOUND")
            parent = await self._posts_collection.find_one({
                "_id": parent_oid,
                "circleId": access.circle_id,
            })
            if not parent:
                raise NotFoundException(message="Parent post not found", code="POST_NOT_FOUND")

        post_doc = {
            "circleId": access.circle_id,
            "authorId": user_id,
            "content": content,
            "parentId": parent_oid,
            "createdAt": datetime.now(timezone.utc),
        }

        result = await self._posts_collection.insert_one(post_doc)
        post_doc["_id"] = result.inserted_id

        await self._revalidate(access.circle_id)
        return post_doc

    async def get_replies(self, circle_id: str, user_id: Optional[str], post_id: str) -> List[Dict[str, Any]]:
        """Replies to a post, oldest first."""
        access = await self._access_guard.require_access(circle_id, user_id)

        cursor = self._posts_collection.find({
            "circleId": access.circle_id,
            "parentId": to_object_id(post_id, "Post", "POST_NOT_FOUND"),
        }).sort("createdAt", 1)
        return await cursor.to_list(length=200)

    async def _revalidate(self, circle_id) -> None:
        if self._revalidator:
            await self._revalidator.revalidate(circle_path(circle_id))
