"""
FastAPI router for circle endpoints.

Provides listing, creation, lifecycle transitions and capacity/duration
change requests.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from common.utils import success_response, list_response
from mentorhub.dependencies import (
    optional_user_id,
    require_user_id,
    get_change_service,
    get_directory_service,
    get_lifecycle_service,
)
from mentorhub.routers.formatting import format_circle, format_change_request
from mentorhub.schemas.circles import CreateCircleRequest, ProposeCircleUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/circles", tags=["Circles"])


@router.get("")
async def list_circles(
    status: Optional[str] = Query(default=None, description="OPEN | ACTIVE | PROPOSED"),
):
    """Circles on the explore page."""
    directory_service = get_directory_service()

    circles = await directory_service.list_public_circles(status=status)

    return list_response([format_circle(c) for c in circles])


@router.post("")
async def create_circle(
    body: CreateCircleRequest,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Create a circle mentored by the caller."""
    lifecycle_service = get_lifecycle_service()

    circle = await lifecycle_service.create_circle(
        mentor_id=user_id,
        title=body.title,
        description=body.description,
        max_capacity=body.maxCapacity,
        duration_weeks=body.durationWeeks,
        tags=body.tags,
        publish=body.publish,
    )

    return success_response(format_circle(circle), message="Circle created")


@router.get("/mine")
async def list_my_circles(
    user_id: Annotated[str, Depends(require_user_id)],
):
    """Circles the caller mentors, with enrollment counts."""
    directory_service = get_directory_service()

    circles = await directory_service.list_circles_for_mentor(user_id)

    return list_response([format_circle(c) for c in circles])


# ─────────────────────────────────────────────────────────────────
# Lifecycle
# ─────────────────────────────────────────────────────────────────


@router.post("/{circle_id}/close")
async def close_applications(
    circle_id: str,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Close the application window."""
    await get_lifecycle_service().close_circle_applications(circle_id, user_id)
    return success_response(message="Applications closed")


@router.post("/{circle_id}/reopen")
async def reopen_applications(
    circle_id: str,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Reopen the application window."""
    await get_lifecycle_service().reopen_circle_applications(circle_id, user_id)
    return success_response(message="Applications reopened")


@router.post("/{circle_id}/publish")
async def publish_circle(
    circle_id: str,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Publish a draft circle."""
    await get_lifecycle_service().publish_circle(circle_id, user_id)
    return success_response(message="Circle published")


@router.post("/{circle_id}/complete")
async def complete_circle(
    circle_id: str,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Mark a circle completed."""
    await get_lifecycle_service().complete_circle(circle_id, user_id)
    return success_response(message="Circle completed")


# ─────────────────────────────────────────────────────────────────
# Capacity / duration changes
# ─────────────────────────────────────────────────────────────────


@router.post("/{circle_id}/changes")
async def propose_change(
    circle_id: str,
    body: ProposeCircleUpdateRequest,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Propose a capacity increase and/or duration extension."""
    change_service = get_change_service()

    result = await change_service.propose_circle_update(
        circle_id,
        user_id,
        new_max_capacity=body.newMaxCapacity,
        extend_by_weeks=body.extendByWeeks,
        notes=body.notes,
    )

    return success_response(result, message=result.get("message"))


@router.get("/{circle_id}/changes")
async def list_changes(
    circle_id: str,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
    status: Optional[str] = Query(default=None, description="PENDING | APPLIED"),
):
    """Change requests for a circle."""
    change_service = get_change_service()

    requests = await change_service.list_change_requests(circle_id, user_id, status=status)

    return list_response([format_change_request(r) for r in requests])


@router.post("/{circle_id}/changes/{request_id}/approve")
async def approve_change(
    circle_id: str,
    request_id: str,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Approve a pending change request."""
    change_service = get_change_service()

    result = await change_service.approve_circle_update_request(circle_id, user_id, request_id)

    return success_response(result)
