"""
Document formatters shared by the routers.

Turn Mongo documents into JSON-ready dicts: ObjectIds become strings
and _id becomes id.
"""

from typing import Any, Dict


def _id(value: Any):
    return str(value) if value is not None else None


def format_circle(circle: dict) -> dict:
    """Format circle document for response."""
    formatted: Dict[str, Any] = {
        "id": str(circle["_id"]),
        "creatorId": circle.get("creatorId"),
        "mentorId": circle.get("mentorId"),
        "title": circle.get("title", ""),
        "description": circle.get("description", ""),
        "tags": circle.get("tags", []),
        "status": circle["status"],
        "maxCapacity": circle["maxCapacity"],
        "durationWeeks": circle.get("durationWeeks"),
        "createdAt": circle.get("createdAt"),
        "updatedAt": circle.get("updatedAt"),
    }
    for key in ["pitchedTo", "applicationCount", "filled", "creatorName", "creatorEmail"]:
        if key in circle:
            formatted[key] = circle[key]
    return formatted


def format_application(application: dict) -> dict:
    """Format application document for response."""
    formatted = {
        "id": str(application["_id"]),
        "circleId": _id(application.get("circleId")),
        "menteeId": application.get("menteeId"),
        "intentStatement": application.get("intentStatement", ""),
        "status": application["status"],
        "createdAt": application.get("createdAt"),
        "updatedAt": application.get("updatedAt"),
    }
    if "circleTitle" in application:
        formatted["circle"] = {
            "title": application.get("circleTitle"),
            "mentorId": application.get("circleMentorId"),
        }
    return formatted


def format_change_request(request: dict) -> dict:
    """Format change request document for response."""
    return {
        "id": str(request["_id"]),
        "circleId": _id(request.get("circleId")),
        "newMaxCapacity": request.get("newMaxCapacity"),
        "newDurationWeeks": request.get("newDurationWeeks"),
        "notes": request.get("notes"),
        "status": request["status"],
        "approvalState": request.get("approvalState"),
        "creatorApproved": bool(request.get("creatorApproved")),
        "mentorApproved": bool(request.get("mentorApproved")),
        "proposedBy": request.get("proposedBy"),
        "createdAt": request.get("createdAt"),
        "appliedAt": request.get("appliedAt"),
    }


def format_session(session: dict) -> dict:
    """Format circle session document for response."""
    return {
        "id": str(session["_id"]),
        "circleId": _id(session.get("circleId")),
        "title": session.get("title", ""),
        "scheduledAt": session.get("scheduledAt"),
        "videoCallUrl": session.get("videoCallUrl"),
        "status": session.get("status"),
        "notes": session.get("notes"),
        "createdAt": session.get("createdAt"),
    }


def format_resource(resource: dict) -> dict:
    """Format resource document for response."""
    return {
        "id": str(resource["_id"]),
        "circleId": _id(resource.get("circleId")),
        "addedById": resource.get("addedById"),
        "title": resource.get("title", ""),
        "url": resource.get("url", ""),
        "type": resource.get("type", "LINK"),
        "createdAt": resource.get("createdAt"),
    }


def format_post(post: dict) -> dict:
    """Format discussion post document for response."""
    return {
        "id": str(post["_id"]),
        "circleId": _id(post.get("circleId")),
        "authorId": post.get("authorId"),
        "content": post.get("content", ""),
        "parentId": _id(post.get("parentId")),
        "createdAt": post.get("createdAt"),
    }


def format_user(user: dict) -> dict:
    """Format user search hit for response."""
    return {
        "id": str(user["_id"]),
        "name": user.get("name"),
        "email": user.get("email"),
    }


def format_mentor(mentor: dict) -> dict:
    """Format mentor user document for response."""
    return {
        "id": str(mentor["_id"]),
        "name": mentor.get("name"),
        "email": mentor.get("email"),
        "linkedinUrl": mentor.get("linkedinUrl"),
        "isFollowing": bool(mentor.get("isFollowing")),
    }
