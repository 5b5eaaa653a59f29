"""
FastAPI router for pitch endpoints.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends

from common.utils import success_response, list_response
from mentorhub.dependencies import (
    optional_user_id,
    require_user_id,
    get_directory_service,
    get_lifecycle_service,
)
from mentorhub.routers.formatting import format_circle
from mentorhub.schemas.circles import SubmitPitchRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pitches", tags=["Pitches"])


@router.post("")
async def submit_pitch(
    body: SubmitPitchRequest,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Pitch a circle idea."""
    lifecycle_service = get_lifecycle_service()

    circle = await lifecycle_service.submit_pitch(
        creator_id=user_id,
        title=body.title,
        description=body.description,
        mentor_id=body.mentorId,
        tags=body.tags,
        draft=body.draft,
    )

    message = "Draft saved" if body.draft else "Pitch submitted"
    return success_response(format_circle(circle), message=message)


@router.get("/requests")
async def list_pitch_requests(
    user_id: Annotated[str, Depends(require_user_id)],
):
    """Pitches the caller can take on."""
    directory_service = get_directory_service()

    pitches = await directory_service.list_pitch_requests(user_id)

    return list_response([format_circle(p) for p in pitches])


@router.post("/{circle_id}/accept")
async def accept_pitch(
    circle_id: str,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Take on a pitch as its mentor."""
    circle = await get_lifecycle_service().accept_pitch(circle_id, user_id)
    return success_response(format_circle(circle), message="Pitch accepted")


@router.post("/{circle_id}/decline")
async def decline_pitch(
    circle_id: str,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Decline a pitch sent to the caller."""
    await get_lifecycle_service().decline_pitch(circle_id, user_id)
    return success_response(message="Pitch declined")
