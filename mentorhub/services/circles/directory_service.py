"""
Circle directory service.

Read-side listings for the explore page and dashboards, plus follows
between mentees and mentors.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from common.utils.exceptions import NotFoundException, UnauthorizedException, ValidationException
from mentorhub.database import APPLICATIONS, CIRCLES, FOLLOWS, USERS
from mentorhub.services.circles.constants import (
    MENTOR_ROLES,
    PROPOSED,
    PUBLIC_STATUSES,
    filled_query,
)
from mentorhub.services.revalidation import PathRevalidator

logger = logging.getLogger(__name__)


class DirectoryService:
    """
    Lists circles and manages mentor follows.
    """

    SEARCH_LIMIT = 10

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        revalidator: Optional[PathRevalidator] = None,
    ):
        """
        Initialize DirectoryService.

        Args:
            db: MongoDB database connection
            revalidator: UI cache invalidation signal
        """
        self._circles_collection = db[CIRCLES]
        self._applications_collection = db[APPLICATIONS]
        self._follows_collection = db[FOLLOWS]
        self._users_collection = db[USERS]
        self._revalidator = revalidator

    async def list_public_circles(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """Circles visible on the explore page, newest first."""
        if status:
            status = status.upper()
            if status not in PUBLIC_STATUSES:
                raise ValidationException(
                    message=f"Status must be one of: {', '.join(PUBLIC_STATUSES)}",
                    code="INVALID_STATUS",
                )
            query: Dict[str, Any] = {"status": status}
        else:
            query = {"status": {"$in": PUBLIC_STATUSES}}

        cursor = self._circles_collection.find(query).sort("createdAt", -1)
        return await cursor.to_list(length=100)

    async def list_circles_for_mentor(self, mentor_id: str) -> List[Dict[str, Any]]:
        """Circles a mentor runs, with application and seat counts."""
        cursor = self._circles_collection.find({"mentorId": mentor_id}).sort("createdAt", -1)
        circles = await cursor.to_list(length=100)

        for circle in circles:
            circle["applicationCount"] = await self._applications_collection.count_documents(
                {"circleId": circle["_id"]}
            )
            circle["filled"] = await self._applications_collection.count_documents(
                filled_query(circle["_id"])
            )

        return circles

    async def list_pitch_requests(self, mentor_id: str) -> List[Dict[str, Any]]:
        """Unclaimed pitches plus pitches addressed to this mentor."""
        cursor = self._circles_collection.find({
            "status": PROPOSED,
            "mentorId": None,
            "pitchedTo": {"$in": [None, mentor_id]},
        }).sort("createdAt", -1)
        pitches = await cursor.to_list(length=100)

        creator_ids = list({p["creatorId"] for p in pitches})
        creators = {}
        if creator_ids:
            user_cursor = self._users_collection.find(
                {"_id": {"$in": creator_ids}},
                {"name": 1, "email": 1},
            )
            creators = {u["_id"]: u for u in await user_cursor.to_list(length=len(creator_ids))}

        for pitch in pitches:
            creator = creators.get(pitch["creatorId"], {})
            pitch["creatorName"] = creator.get("name")
            pitch["creatorEmail"] = creator.get("email")

        return pitches

    async def list_mentors(self, viewer_id: Optional[str]) -> List[Dict[str, Any]]:
        """All mentors, flagged with whether the viewer follows them."""
        cursor = self._users_collection.find(
            {"role": {"$in": MENTOR_ROLES}},
            {"name": 1, "email": 1, "linkedinUrl": 1},
        )
        mentors = await cursor.to_list(length=500)

        followed = set()
        if viewer_id:
            follow_cursor = self._follows_collection.find({"followerId": viewer_id}, {"mentorId": 1})
            followed = {f["mentorId"] for f in await follow_cursor.to_list(length=None)}

        for mentor in mentors:
            mentor["isFollowing"] = mentor["_id"] in followed

        return mentors

    async def search_users(self, query: str) -> List[Dict[str, Any]]:
        """Users whose name or email contains the query, case-insensitively."""
        query = (query or "").strip()
        if not query:
            return []

        pattern = {"$regex": re.escape(query), "$options": "i"}
        cursor = self._users_collection.find(
            {"$or": [{"name": pattern}, {"email": pattern}]},
            {"name": 1, "email": 1},
        )
        return await cursor.to_list(length=self.SEARCH_LIMIT)

    async def follow_mentor(self, follower_id: Optional[str], mentor_id: str) -> None:
        """Follow a mentor. Following twice is a no-op."""
        if not follower_id:
            raise UnauthorizedException(message="You must be signed in", code="UNAUTHENTICATED")

        if follower_id == mentor_id:
            raise ValidationException(message="You cannot follow yourself", code="INVALID_FOLLOW")

        mentor = await self._users_collection.find_one(
            {"_id": mentor_id, "role": {"$in": MENTOR_ROLES}},
            {"_id": 1},
        )
        if not mentor:
            raise NotFoundException(message="Mentor not found", code="MENTOR_NOT_FOUND")

        try:
            await self._follows_collection.insert_one({
                "followerId": follower_id,
                "mentorId": mentor_id,
                "createdAt": datetime.now(timezone.utc),
            })
        except DuplicateKeyError:
            logger.debug(f"{follower_id} already follows {mentor_id}")
            return

        logger.info(f"{follower_id} now follows mentor {mentor_id}")
        await self._revalidate("/pitch")

    async def unfollow_mentor(self, follower_id: Optional[str], mentor_id: str) -> None:
        """Stop following a mentor."""
        if not follower_id:
            raise UnauthorizedException(message="You must be signed in", code="UNAUTHENTICATED")

        await self._follows_collection.delete_one({
            "followerId": follower_id,
            "mentorId": mentor_id,
        })

        logger.info(f"{follower_id} unfollowed mentor {mentor_id}")
        await self._revalidate("/pitch")

    async def _revalidate(self, *paths: str) -> None:
        if self._revalidator:
            await self._revalidator.revalidate(*paths)
