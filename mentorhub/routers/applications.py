"""
FastAPI router for application endpoints.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from common.utils import success_response, list_response
from mentorhub.dependencies import optional_user_id, require_user_id, get_admission_service
from mentorhub.routers.formatting import format_application
from mentorhub.schemas.circles import ReviewApplicationRequest, SubmitApplicationRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Applications"])

_STATUS_MESSAGES = {
    "PENDING": "Application submitted. The mentor will review it soon.",
    "WAITLIST": "This circle is full. You have been added to the waitlist.",
}


@router.post("/circles/{circle_id}/applications")
async def submit_application(
    circle_id: str,
    body: SubmitApplicationRequest,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Apply to a circle."""
    admission_service = get_admission_service()

    result = await admission_service.submit_application(circle_id, user_id, body.intentStatement)

    return success_response(result, message=_STATUS_MESSAGES.get(result["status"]))


@router.get("/circles/{circle_id}/applications")
async def list_circle_applications(
    circle_id: str,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
    status: Optional[str] = Query(default=None, description="PENDING | WAITLIST | ACCEPTED | REJECTED"),
):
    """Applications to a circle, oldest first."""
    admission_service = get_admission_service()

    applications = await admission_service.list_applications_for_circle(circle_id, user_id, status=status)

    return list_response([format_application(a) for a in applications])


@router.post("/circles/{circle_id}/applications/{application_id}/review")
async def review_application(
    circle_id: str,
    application_id: str,
    body: ReviewApplicationRequest,
    user_id: Annotated[Optional[str], Depends(optional_user_id)],
):
    """Accept or reject an application."""
    admission_service = get_admission_service()

    application = await admission_service.review_application(
        circle_id, user_id, application_id, body.decision
    )

    return success_response(format_application(application))


@router.get("/applications/mine")
async def list_my_applications(
    user_id: Annotated[str, Depends(require_user_id)],
):
    """The caller's applications, newest first."""
    admission_service = get_admission_service()

    applications = await admission_service.list_applications_for_mentee(user_id)

    return list_response([format_application(a) for a in applications])
