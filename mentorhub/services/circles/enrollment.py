"""
Enrollment counting and waitlist promotion.

"Filled" is the number of PENDING or ACCEPTED applications; it is the
quantity compared against a circle's maxCapacity everywhere. Counts are
read fresh on every call and nothing here locks, so two concurrent
writers can both see the same count.
"""

import logging
from datetime import datetime, timezone
from typing import List

from bson import ObjectId

from mentorhub.services.circles.constants import (
    FILLED_STATUSES,
    PENDING,
    WAITLIST,
    filled_query,
)

logger = logging.getLogger(__name__)


async def count_filled(applications_collection, circle_id: ObjectId) -> int:
    """Count applications currently holding a seat in the circle."""
    return await applications_collection.count_documents(filled_query(circle_id))


async def promote_waitlist(
    applications_collection,
    circle_id: ObjectId,
    new_capacity: int,
) -> List[ObjectId]:
    """
    Move the oldest WAITLIST applications to PENDING while seats are free.

    Args:
        applications_collection: Motor applications collection
        circle_id: Circle whose capacity just increased
        new_capacity: The circle's maxCapacity after the increase

    Returns:
        IDs of the promoted applications, oldest first
    """
    applications = await applications_collection.find(
        {"circleId": circle_id}
    ).sort("createdAt", 1).to_list(length=None)

    filled = sum(1 for a in applications if a.get("status") in FILLED_STATUSES)
    available = new_capacity - filled

    if available <= 0:
        return []

    promoted = [a["_id"] for a in applications if a.get("status") == WAITLIST][:available]

    if not promoted:
        return []

    await applications_collection.update_many(
        {"_id": {"$in": promoted}, "status": WAITLIST},
        {"$set": {"status": PENDING, "updatedAt": datetime.now(timezone.utc)}},
    )

    logger.info(f"Promoted {len(promoted)} waitlisted applications in circle {circle_id}")
    return promoted
