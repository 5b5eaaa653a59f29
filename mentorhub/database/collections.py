"""
MentorHub collection names and index setup.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase

logger = logging.getLogger(__name__)


CIRCLES = "circles"
APPLICATIONS = "applications"
CHANGE_REQUESTS = "circleChangeRequests"
FOLLOWS = "follows"
USERS = "users"
SESSIONS = "circleSessions"
RESOURCES = "resources"
DISCUSSION_POSTS = "discussionPosts"


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """
    Create the indexes the services rely on for their lookups.

    None of these enforce the one-live-application rule; that check
    is done by the admission service at submission time.
    """
    await db[CIRCLES].create_index([("status", 1), ("createdAt", -1)])
    await db[CIRCLES].create_index([("mentorId", 1), ("createdAt", -1)])
    await db[APPLICATIONS].create_index([("circleId", 1), ("menteeId", 1)])
    await db[APPLICATIONS].create_index([("circleId", 1), ("createdAt", 1)])
    await db[CHANGE_REQUESTS].create_index([("circleId", 1), ("status", 1)])
    await db[FOLLOWS].create_index([("followerId", 1), ("mentorId", 1)], unique=True)
    await db[SESSIONS].create_index([("circleId", 1), ("scheduledAt", 1)])
    await db[RESOURCES].create_index([("circleId", 1), ("createdAt", -1)])
    await db[DISCUSSION_POSTS].create_index([("circleId", 1), ("parentId", 1), ("createdAt", -1)])
    logger.info("MentorHub indexes ensured")
