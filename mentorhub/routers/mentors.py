"""
FastAPI router for mentor discovery and follows.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends

from common.utils import success_response, list_response
from mentorhub.dependencies import optional_user_id, get_directory_service
from mentorhub.routers.formatting import format_mentor

router = APIRouter(prefix="/mentors", tags=["Mentors"])


@router.get("")
async def list_mentors(
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """All mentors with the caller's follow state."""
    mentors = await get_directory_service().list_mentors(user_id)
    return list_response([format_mentor(m) for m in mentors])


@router.post("/{mentor_id}/follow")
async def follow_mentor(
    mentor_id: str,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Follow a mentor."""
    await get_directory_service().follow_mentor(user_id, mentor_id)
    return success_response({"mentorId": mentor_id, "isFollowing": True})


@router.delete("/{mentor_id}/follow")
async def unfollow_mentor(
    mentor_id: str,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Unfollow a mentor."""
    await get_directory_service().unfollow_mentor(user_id, mentor_id)
    return success_response({"mentorId": mentor_id, "isFollowing": False})
