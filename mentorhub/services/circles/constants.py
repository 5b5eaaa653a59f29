"""Status values and shared lookups for circles and applications."""

from typing import Any, Dict

from bson import ObjectId
from bson.errors import InvalidId

from common.utils.exceptions import NotFoundException


# Circle statuses
DRAFT = "DRAFT"
PROPOSED = "PROPOSED"
OPEN = "OPEN"
ACTIVE = "ACTIVE"
COMPLETED = "COMPLETED"

CIRCLE_STATUSES = [DRAFT, PROPOSED, OPEN, ACTIVE, COMPLETED]
ACCEPTING_STATUSES = [OPEN, ACTIVE]
PUBLIC_STATUSES = [OPEN, ACTIVE, PROPOSED]

# Application statuses
PENDING = "PENDING"
WAITLIST = "WAITLIST"
ACCEPTED = "ACCEPTED"
REJECTED = "REJECTED"

# Applications that hold a seat
FILLED_STATUSES = [PENDING, ACCEPTED]

# Change request statuses
REQUEST_PENDING = "PENDING"
REQUEST_APPLIED = "APPLIED"

# User roles allowed to run circles
MENTOR_ROLES = ["MENTOR", "BOTH"]


def to_object_id(value: Any, what: str = "Resource", code: str = "NOT_FOUND") -> ObjectId:
    """Parse an id from a path or body, treating malformed ids as missing."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise NotFoundException(message=f"{what} not found", code=code)


def filled_query(circle_id: ObjectId) -> Dict[str, Any]:
    """Query matching the applications that count against capacity."""
    return {"circleId": circle_id, "status": {"$in": FILLED_STATUSES}}
