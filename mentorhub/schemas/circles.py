"""
Pydantic models for circle request validation.

Defines request bodies for circles, applications, change requests and pitches.
"""

from typing import Optional, List
from pydantic import BaseModel, Field


class CreateCircleRequest(BaseModel):
    """Request body for creating a circle."""
    title: str = Field(..., min_length=1, max_length=120)
    description: str = Field(default="", max_length=4000)
    maxCapacity: Optional[int] = Field(None, ge=1, le=100)
    durationWeeks: Optional[int] = Field(None, ge=1, le=104)
    tags: List[str] = Field(default_factory=list, max_length=10)
    publish: bool = True


class SubmitApplicationRequest(BaseModel):
    """Request body for applying to a circle."""
    intentStatement: str = Field(..., min_length=1, max_length=2000)


class ReviewApplicationRequest(BaseModel):
    """Request body for a mentor's decision on an application."""
    decision: str = Field(..., description="ACCEPT | REJECT")


class ProposeCircleUpdateRequest(BaseModel):
    """Request body for proposing a capacity and/or duration increase."""
    newMaxCapacity: Optional[int] = Field(None, ge=1)
    extendByWeeks: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=1000)


class SubmitPitchRequest(BaseModel):
    """Request body for pitching a circle idea."""
    title: str = Field(..., min_length=1, max_length=120)
    description: str = Field(default="", max_length=4000)
    mentorId: Optional[str] = None
    tags: List[str] = Field(default_factory=list, max_length=10)
    draft: bool = False
