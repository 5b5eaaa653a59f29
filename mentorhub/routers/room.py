"""
FastAPI router for circle room endpoints.

Provides sessions, resources and discussion inside a circle.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends

from common.utils import success_response, list_response
from mentorhub.dependencies import optional_user_id, get_room_service
from mentorhub.routers.formatting import (
    format_circle,
    format_post,
    format_resource,
    format_session,
)
from mentorhub.schemas.room import (
    AddResourceRequest,
    AddSessionRequest,
    CompleteSessionRequest,
    PostDiscussionRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/circles/{circle_id}", tags=["Circle Room"])


@router.get("/room")
async def get_circle_room(
    circle_id: str,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Circle, sessions, resources and top-level posts."""
    room = await get_room_service().get_circle_room(circle_id, user_id)

    return success_response({
        "circle": format_circle(room["circle"]),
        "role": room["role"],
        "sessions": [format_session(s) for s in room["sessions"]],
        "resources": [format_resource(r) for r in room["resources"]],
        "posts": [format_post(p) for p in room["posts"]],
    })


@router.post("/sessions")
async def add_session(
    circle_id: str,
    body: AddSessionRequest,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Schedule a session."""
    session = await get_room_service().add_session(
        circle_id,
        user_id,
        title=body.title,
        scheduled_at=body.scheduledAt,
        video_call_url=body.videoCallUrl,
    )
    return success_response(format_session(session))


@router.post("/sessions/{session_id}/complete")
async def complete_session(
    circle_id: str,
    session_id: str,
    body: CompleteSessionRequest,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Mark a session completed."""
    await get_room_service().complete_session(circle_id, user_id, session_id, notes=body.notes)
    return success_response(message="Session completed")


@router.post("/resources")
async def add_resource(
    circle_id: str,
    body: AddResourceRequest,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Share a resource."""
    resource = await get_room_service().add_resource(
        circle_id,
        user_id,
        title=body.title,
        url=body.url,
        resource_type=body.type,
    )
    return success_response(format_resource(resource))


@router.delete("/resources/{resource_id}")
async def delete_resource(
    circle_id: str,
    resource_id: str,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Remove a resource."""
    await get_room_service().delete_resource(circle_id, user_id, resource_id)
    return success_response(message="Resource removed")


@router.post("/posts")
async def post_discussion(
    circle_id: str,
    body: PostDiscussionRequest,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Start a discussion thread or reply to one."""
    post = await get_room_service().post_discussion(
        circle_id,
        user_id,
        content=body.content,
        parent_id=body.parentId,
    )
    return success_response(format_post(post))


@router.get("/posts/{post_id}/replies")
async def get_replies(
    circle_id: str,
    post_id: str,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Replies to a post, oldest first."""
    replies = await get_room_service().get_replies(circle_id, user_id, post_id)
    return list_response([format_post(p) for p in replies])
