"""
Success envelopes for API responses.

Errors never go through here: they are raised as APIException and
FastAPI renders their detail.

Example:
    from common.utils import success_response

    @router.post("/circles/{circle_id}/close")
    async def close(circle_id: str):
        await lifecycle_service.close_circle_applications(circle_id, user_id)
        return success_response(message="Applications closed")
"""

from typing import Any, Optional, Dict


def success_response(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    """
    Wrap a payload as {"success": true, "data": ..., "message": ...}.

    data and message are omitted when not given.
    """
    response: Dict[str, Any] = {"success": True}
    if data is not None:
        response["data"] = data
    if message:
        response["message"] = message
    return response


def list_response(items: list, message: Optional[str] = None) -> Dict[str, Any]:
    """Like success_response for a list, adding its count."""
    response = success_response(items, message)
    response["data"] = items
    response["count"] = len(items)
    return response
