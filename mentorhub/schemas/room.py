"""
Pydantic models for circle room request validation.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class AddSessionRequest(BaseModel):
    """Request body for scheduling a session."""
    title: str = Field(..., min_length=1, max_length=200)
    scheduledAt: datetime
    videoCallUrl: Optional[str] = Field(None, max_length=500)


class CompleteSessionRequest(BaseModel):
    """Request body for completing a session."""
    notes: Optional[str] = Field(None, max_length=5000)


class AddResourceRequest(BaseModel):
    """Request body for sharing a resource."""
    title: str = Field(..., min_length=1, max_length=200)
    url: str = Field(..., min_length=1, max_length=1000)
    type: str = Field(default="LINK", description="LINK | VIDEO | DOCUMENT | ARTICLE | OTHER")


class PostDiscussionRequest(BaseModel):
    """Request body for a discussion post or reply."""
    content: str = Field(..., min_length=1, max_length=5000)
    parentId: Optional[str] = None
