"""
Request schemas for the MentorHub API.
"""

from mentorhub.schemas.circles import (
    CreateCircleRequest,
    SubmitApplicationRequest,
    ReviewApplicationRequest,
    ProposeCircleUpdateRequest,
    SubmitPitchRequest,
)
from mentorhub.schemas.room import (
    AddSessionRequest,
    CompleteSessionRequest,
    AddResourceRequest,
    PostDiscussionRequest,
)

__all__ = [
    "CreateCircleRequest",
    "SubmitApplicationRequest",
    "ReviewApplicationRequest",
    "ProposeCircleUpdateRequest",
    "SubmitPitchRequest",
    "AddSessionRequest",
    "CompleteSessionRequest",
    "AddResourceRequest",
    "PostDiscussionRequest",
]
