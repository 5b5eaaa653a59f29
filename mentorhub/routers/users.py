"""
FastAPI router for user lookup.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from common.utils import list_response
from mentorhub.dependencies import require_user_id, get_directory_service
from mentorhub.routers.formatting import format_user

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/search")
async def search_users(
    user_id: Annotated[str, Depends(require_user_id)],
    q: str = Query(default="", max_length=100, description="Name or email fragment"),
):
    """Find users by name or email, at most ten."""
    users = await get_directory_service().search_users(q)
    return list_response([format_user(u) for u in users])
