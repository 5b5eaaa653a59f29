"""Tests for router handlers: response shape and id formatting."""

import json
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from bson import ObjectId

from mentorhub.routers import applications, circles, mentors, pitches, room, users
from mentorhub.schemas.circles import (
    ProposeCircleUpdateRequest,
    SubmitApplicationRequest,
    SubmitPitchRequest,
)


class TestCircleRoutes:
    @pytest.mark.asyncio
    async def test_list_circles_formats_ids(self, self_mentored_circle):
        directory = MagicMock()
        directory.list_public_circles = AsyncMock(return_value=[self_mentored_circle])

        with patch.object(circles, "get_directory_service", return_value=directory):
            response = await circles.list_circles(status=None)

        assert response["success"] is True
        assert response["count"] == 1
        assert response["data"][0]["id"] == str(self_mentored_circle["_id"])
        assert "_id" not in response["data"][0]

    @pytest.mark.asyncio
    async def test_propose_change_passes_fields(self, mentor_id):
        change_service = MagicMock()
        change_service.propose_circle_update = AsyncMock(return_value={
            "status": "PENDING",
            "message": "Change proposed. Waiting for creator approval.",
            "requestId": str(ObjectId()),
            "approvalState": "AWAITING_CREATOR",
            "pendingFor": "creator",
        })
        body = ProposeCircleUpdateRequest(newMaxCapacity=12, extendByWeeks=2, notes="demand")

        with patch.object(circles, "get_change_service", return_value=change_service):
            response = await circles.propose_change("circle123", body, mentor_id)

        change_service.propose_circle_update.assert_awaited_once_with(
            "circle123",
            mentor_id,
            new_max_capacity=12,
            extend_by_weeks=2,
            notes="demand",
        )
        assert response["message"] == "Change proposed. Waiting for creator approval."
        assert response["data"]["pendingFor"] == "creator"


class TestApplicationRoutes:
    @pytest.mark.asyncio
    async def test_waitlisted_submission_message(self, mentee_id):
        admission = MagicMock()
        admission.submit_application = AsyncMock(
            return_value={"status": "WAITLIST", "applicationId": str(ObjectId())}
        )

        with patch.object(applications, "get_admission_service", return_value=admission):
            response = await applications.submit_application(
                "circle123", SubmitApplicationRequest(intentStatement="Hi"), mentee_id
            )

        assert response["data"]["status"] == "WAITLIST"
        assert "waitlist" in response["message"]

    @pytest.mark.asyncio
    async def test_my_applications_nest_circle(self, make_application, mentee_id):
        application = make_application(ObjectId())
        application["circleTitle"] = "SQL basics"
        application["circleMentorId"] = "user_mentor"
        admission = MagicMock()
        admission.list_applications_for_mentee = AsyncMock(return_value=[application])

        with patch.object(applications, "get_admission_service", return_value=admission):
            response = await applications.list_my_applications(mentee_id)

        item = response["data"][0]
        assert item["circleId"] == str(application["circleId"])
        assert item["circle"] == {"title": "SQL basics", "mentorId": "user_mentor"}


class TestMentorRoutes:
    @pytest.mark.asyncio
    async def test_follow(self, mentee_id):
        directory = MagicMock()
        directory.follow_mentor = AsyncMock()

        with patch.object(mentors, "get_directory_service", return_value=directory):
            response = await mentors.follow_mentor("user_mentor", mentee_id)

        directory.follow_mentor.assert_awaited_once_with(mentee_id, "user_mentor")
        assert response["data"] == {"mentorId": "user_mentor", "isFollowing": True}

    @pytest.mark.asyncio
    async def test_user_search_returns_id_name_email(self, mentee_id):
        directory = MagicMock()
        directory.search_users = AsyncMock(return_value=[
            {"_id": "user_a", "name": "Ada", "email": "ada@example.com"},
        ])

        with patch.object(users, "get_directory_service", return_value=directory):
            response = await users.search_users(mentee_id, q="ad")

        directory.search_users.assert_awaited_once_with("ad")
        assert response["data"] == [{"id": "user_a", "name": "Ada", "email": "ada@example.com"}]
        assert response["count"] == 1


class TestPitchRoutes:
    @pytest.mark.asyncio
    async def test_draft_is_saved_not_sent(self, make_circle, creator_id, mentor_id):
        draft = make_circle(creatorId=creator_id, mentorId=None, status="DRAFT", pitchedTo=mentor_id)
        lifecycle = MagicMock()
        lifecycle.submit_pitch = AsyncMock(return_value=draft)
        body = SubmitPitchRequest(title="Data storytelling", mentorId=mentor_id, draft=True)

        with patch.object(pitches, "get_lifecycle_service", return_value=lifecycle):
            response = await pitches.submit_pitch(body, creator_id)

        assert lifecycle.submit_pitch.call_args.kwargs["draft"] is True
        assert response["message"] == "Draft saved"


class TestRoomRoutes:
    @pytest.mark.asyncio
    async def test_room_formats_children(self, self_mentored_circle, mentee_id):
        post = {
            "_id": ObjectId(),
            "circleId": self_mentored_circle["_id"],
            "authorId": mentee_id,
            "content": "Hello",
            "parentId": None,
            "createdAt": datetime.now(timezone.utc),
        }
        room_service = MagicMock()
        room_service.get_circle_room = AsyncMock(return_value={
            "circle": self_mentored_circle,
            "role": "member",
            "sessions": [],
            "resources": [],
            "posts": [post],
        })

        with patch.object(room, "get_room_service", return_value=room_service):
            response = await room.get_circle_room(str(self_mentored_circle["_id"]), mentee_id)

        assert response["data"]["role"] == "member"
        assert response["data"]["posts"][0]["id"] == str(post["_id"])
        assert response["data"]["posts"][0]["circleId"] == str(self_mentored_circle["_id"])


class TestStoreErrorHandler:
    @pytest.mark.asyncio
    async def test_store_failure_renders_store_error(self):
        from pymongo.errors import PyMongoError
        from api import store_error_handler

        request = MagicMock()
        request.method = "POST"
        request.url.path = "/api/v1/circles/abc/applications"

        response = await store_error_handler(request, PyMongoError("connection reset"))

        assert response.status_code == 500
        assert json.loads(response.body) == {
            "detail": {"message": "Database operation failed", "code": "STORE_ERROR"}
        }
