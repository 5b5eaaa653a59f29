"""Unit tests for ChangeService: monotonic increases and the two-party approval gate."""

import pytest
from datetime import datetime, timezone
from bson import ObjectId

from common.utils.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from mentorhub.database import APPLICATIONS, CHANGE_REQUESTS, CIRCLES
from mentorhub.services.circles.change_service import (
    ChangeApprovalState,
    ChangeService,
    approval_state,
    pending_for,
)


@pytest.fixture
def service(mock_db, revalidator):
    return ChangeService(mock_db, revalidator=revalidator)


@pytest.fixture
def make_request(creator_id):
    def _make(circle_id, **overrides):
        now = datetime.now(timezone.utc)
        request = {
            "_id": ObjectId(),
            "circleId": circle_id,
            "newMaxCapacity": 12,
            "newDurationWeeks": None,
            "notes": None,
            "status": "PENDING",
            "creatorApproved": True,
            "mentorApproved": False,
            "proposedBy": creator_id,
            "appliedAt": None,
            "createdAt": now,
            "updatedAt": now,
        }
        request.update(overrides)
        return request
    return _make


def _circle_patch(circles_col):
    return circles_col.update_one.call_args[0][1]["$set"]


# ─────────────────────────────────────────────────────────────────
# approval_state
# ─────────────────────────────────────────────────────────────────


class TestApprovalState:
    def test_awaiting_creator(self):
        state = approval_state({"status": "PENDING", "creatorApproved": False, "mentorApproved": True})
        assert state is ChangeApprovalState.AWAITING_CREATOR
        assert pending_for(state) == "creator"

    def test_awaiting_mentor(self):
        state = approval_state({"status": "PENDING", "creatorApproved": True, "mentorApproved": False})
        assert state is ChangeApprovalState.AWAITING_MENTOR
        assert pending_for(state) == "mentor"

    def test_applied(self):
        state = approval_state({"status": "APPLIED", "creatorApproved": True, "mentorApproved": True})
        assert state is ChangeApprovalState.APPLIED
        assert pending_for(state) is None


# ─────────────────────────────────────────────────────────────────
# propose_circle_update: validation
# ─────────────────────────────────────────────────────────────────


class TestProposeValidation:
    @pytest.mark.asyncio
    async def test_empty_proposal(self, service, collections, self_mentored_circle, mentor_id):
        collections[CIRCLES].find_one.return_value = self_mentored_circle

        with pytest.raises(ValidationException) as exc_info:
            await service.propose_circle_update(str(self_mentored_circle["_id"]), mentor_id)

        assert exc_info.value.status_code == 422
        assert exc_info.value.code == "NO_CHANGE_REQUESTED"

    @pytest.mark.asyncio
    async def test_zero_week_extension_is_empty(
        self, service, collections, self_mentored_circle, mentor_id,
    ):
        collections[CIRCLES].find_one.return_value = self_mentored_circle

        with pytest.raises(ValidationException) as exc_info:
            await service.propose_circle_update(
                str(self_mentored_circle["_id"]), mentor_id, extend_by_weeks=0
            )

        assert exc_info.value.code == "NO_CHANGE_REQUESTED"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("capacity", [10, 8, 101])
    async def test_capacity_must_grow_within_limit(
        self, service, collections, self_mentored_circle, mentor_id, capacity,
    ):
        collections[CIRCLES].find_one.return_value = self_mentored_circle

        with pytest.raises(ValidationException) as exc_info:
            await service.propose_circle_update(
                str(self_mentored_circle["_id"]), mentor_id, new_max_capacity=capacity
            )

        assert exc_info.value.code == "INVALID_CAPACITY"
        collections[CIRCLES].update_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_duration_limit(self, service, collections, self_mentored_circle, mentor_id):
        collections[CIRCLES].find_one.return_value = self_mentored_circle

        with pytest.raises(ValidationException) as exc_info:
            await service.propose_circle_update(
                str(self_mentored_circle["_id"]), mentor_id, extend_by_weeks=200
            )

        assert exc_info.value.code == "INVALID_DURATION"

    @pytest.mark.asyncio
    async def test_negative_extension_rejected(
        self, service, collections, self_mentored_circle, mentor_id,
    ):
        collections[CIRCLES].find_one.return_value = self_mentored_circle

        with pytest.raises(ValidationException) as exc_info:
            await service.propose_circle_update(
                str(self_mentored_circle["_id"]), mentor_id, extend_by_weeks=-2
            )

        assert exc_info.value.code == "INVALID_DURATION"

    @pytest.mark.asyncio
    async def test_capacity_below_enrollment(
        self, service, collections, self_mentored_circle, mentor_id,
    ):
        collections[CIRCLES].find_one.return_value = self_mentored_circle
        # Over-admission from a race left more seats filled than capacity
        collections[APPLICATIONS].count_documents.return_value = 13

        with pytest.raises(ValidationException) as exc_info:
            await service.propose_circle_update(
                str(self_mentored_circle["_id"]), mentor_id, new_max_capacity=12
            )

        assert exc_info.value.code == "CAPACITY_BELOW_ENROLLMENT"

    @pytest.mark.asyncio
    async def test_member_cannot_propose(
        self, service, collections, self_mentored_circle, make_application, mentee_id,
    ):
        collections[CIRCLES].find_one.return_value = self_mentored_circle
        collections[APPLICATIONS].find_one.return_value = make_application(
            self_mentored_circle["_id"], status="ACCEPTED"
        )

        with pytest.raises(ForbiddenException) as exc_info:
            await service.propose_circle_update(
                str(self_mentored_circle["_id"]), mentee_id, new_max_capacity=12
            )

        assert exc_info.value.code == "NOT_CIRCLE_GOVERNOR"


# ─────────────────────────────────────────────────────────────────
# propose_circle_update: self-mentored fast path
# ─────────────────────────────────────────────────────────────────


class TestProposeSelfMentored:
    @pytest.mark.asyncio
    async def test_applies_immediately_without_request(
        self, service, collections, self_mentored_circle, mentor_id, revalidated_paths,
    ):
        collections[CIRCLES].find_one.return_value = self_mentored_circle

        result = await service.propose_circle_update(
            str(self_mentored_circle["_id"]), mentor_id, new_max_capacity=12, extend_by_weeks=4
        )

        assert result["status"] == "APPLIED"
        assert result["promoted"] == 0
        collections[CHANGE_REQUESTS].insert_one.assert_not_called()
        patch = _circle_patch(collections[CIRCLES])
        assert patch["maxCapacity"] == 12
        assert patch["durationWeeks"] == 12
        assert f"/circles/{self_mentored_circle['_id']}" in revalidated_paths

    @pytest.mark.asyncio
    async def test_extension_only_leaves_capacity(
        self, service, collections, self_mentored_circle, mentor_id,
    ):
        collections[CIRCLES].find_one.return_value = self_mentored_circle

        await service.propose_circle_update(
            str(self_mentored_circle["_id"]), mentor_id, extend_by_weeks=2
        )

        patch = _circle_patch(collections[CIRCLES])
        assert patch["durationWeeks"] == 10
        assert "maxCapacity" not in patch
        collections[APPLICATIONS].update_many.assert_not_called()

    @pytest.mark.asyncio
    async def test_mentorless_circle_applies_for_creator(
        self, service, collections, make_circle, creator_id,
    ):
        circle = make_circle(creatorId=creator_id, mentorId=None)
        collections[CIRCLES].find_one.return_value = circle

        result = await service.propose_circle_update(
            str(circle["_id"]), creator_id, new_max_capacity=14
        )

        assert result["status"] == "APPLIED"
        collections[CHANGE_REQUESTS].insert_one.assert_not_called()
        collections[CHANGE_REQUESTS].update_one.assert_not_called()
        assert _circle_patch(collections[CIRCLES])["maxCapacity"] == 14

    @pytest.mark.asyncio
    async def test_capacity_increase_promotes_oldest_waitlisted(
        self, service, collections, self_mentored_circle, make_application, mentor_id, cursor,
    ):
        circle_id = self_mentored_circle["_id"]
        collections[CIRCLES].find_one.return_value = self_mentored_circle
        collections[APPLICATIONS].count_documents.return_value = 10

        seated = [make_application(circle_id, minutes_ago=100 - i) for i in range(10)]
        waitlisted = [
            make_application(circle_id, status="WAITLIST", minutes_ago=50 - i) for i in range(3)
        ]
        collections[APPLICATIONS].find.return_value = cursor(seated + waitlisted)

        result = await service.propose_circle_update(
            str(circle_id), mentor_id, new_max_capacity=12
        )

        assert result["promoted"] == 2
        filter_, update = collections[APPLICATIONS].update_many.call_args[0]
        assert filter_["_id"]["$in"] == [waitlisted[0]["_id"], waitlisted[1]["_id"]]
        assert filter_["status"] == "WAITLIST"
        assert update["$set"]["status"] == "PENDING"


# ─────────────────────────────────────────────────────────────────
# propose_circle_update: dual approval
# ─────────────────────────────────────────────────────────────────


class TestProposeDualApproval:
    @pytest.mark.asyncio
    async def test_creator_proposal_waits_for_mentor(
        self, service, collections, co_governed_circle, creator_id,
    ):
        collections[CIRCLES].find_one.return_value = co_governed_circle

        result = await service.propose_circle_update(
            str(co_governed_circle["_id"]), creator_id, new_max_capacity=12, notes="More demand"
        )

        assert result["status"] == "PENDING"
        assert result["approvalState"] == "AWAITING_MENTOR"
        assert result["pendingFor"] == "mentor"
        assert result["message"] == "Change proposed. Waiting for mentor approval."
        request = collections[CHANGE_REQUESTS].insert_one.call_args[0][0]
        assert request["creatorApproved"] is True
        assert request["mentorApproved"] is False
        assert request["newMaxCapacity"] == 12
        assert request["newDurationWeeks"] is None
        assert request["proposedBy"] == creator_id
        collections[CIRCLES].update_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_mentor_proposal_waits_for_creator(
        self, service, collections, co_governed_circle, mentor_id,
    ):
        collections[CIRCLES].find_one.return_value = co_governed_circle

        result = await service.propose_circle_update(
            str(co_governed_circle["_id"]), mentor_id, extend_by_weeks=4
        )

        assert result["pendingFor"] == "creator"
        request = collections[CHANGE_REQUESTS].insert_one.call_args[0][0]
        assert request["newDurationWeeks"] == 12

    @pytest.mark.asyncio
    async def test_repeat_proposal_merges_into_pending_request(
        self, service, collections, co_governed_circle, make_request, creator_id,
    ):
        collections[CIRCLES].find_one.return_value = co_governed_circle
        existing = make_request(co_governed_circle["_id"])
        collections[CHANGE_REQUESTS].find_one.return_value = existing

        result = await service.propose_circle_update(
            str(co_governed_circle["_id"]), creator_id, new_max_capacity=12
        )

        assert result["status"] == "PENDING"
        assert result["requestId"] == str(existing["_id"])
        collections[CHANGE_REQUESTS].insert_one.assert_not_called()
        collections[CIRCLES].update_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_matching_counter_proposal_applies(
        self, service, collections, co_governed_circle, make_request, mentor_id,
    ):
        collections[CIRCLES].find_one.return_value = co_governed_circle
        existing = make_request(co_governed_circle["_id"])
        collections[CHANGE_REQUESTS].find_one.return_value = existing

        result = await service.propose_circle_update(
            str(co_governed_circle["_id"]), mentor_id, new_max_capacity=12
        )

        assert result["status"] == "APPLIED"
        assert result["approvalState"] == "APPLIED"
        assert _circle_patch(collections[CIRCLES])["maxCapacity"] == 12
        mark_filter, mark_update = collections[CHANGE_REQUESTS].update_one.call_args[0]
        assert mark_filter == {"_id": existing["_id"], "status": "PENDING"}
        assert mark_update["$set"]["status"] == "APPLIED"


# ─────────────────────────────────────────────────────────────────
# approve_circle_update_request
# ─────────────────────────────────────────────────────────────────


class TestApproveRequest:
    @pytest.mark.asyncio
    async def test_second_approval_applies(
        self, service, collections, co_governed_circle, make_request, mentor_id,
    ):
        collections[CIRCLES].find_one.return_value = co_governed_circle
        request = make_request(co_governed_circle["_id"], newDurationWeeks=10)
        collections[CHANGE_REQUESTS].find_one.return_value = request

        result = await service.approve_circle_update_request(
            str(co_governed_circle["_id"]), mentor_id, str(request["_id"])
        )

        assert result["status"] == "APPLIED"
        assert result["requestId"] == str(request["_id"])
        patch = _circle_patch(collections[CIRCLES])
        assert patch["maxCapacity"] == 12
        assert patch["durationWeeks"] == 10
        collections[CHANGE_REQUESTS].update_one.assert_awaited_once()
        filter_, update = collections[CHANGE_REQUESTS].update_one.call_args[0]
        assert filter_ == {"_id": request["_id"], "status": "PENDING"}
        assert update["$set"]["mentorApproved"] is True
        assert update["$set"]["status"] == "APPLIED"

    @pytest.mark.asyncio
    async def test_first_approval_is_recorded(
        self, service, collections, co_governed_circle, make_request, mentor_id,
    ):
        collections[CIRCLES].find_one.return_value = co_governed_circle
        request = make_request(co_governed_circle["_id"], creatorApproved=False)
        collections[CHANGE_REQUESTS].find_one.return_value = request

        result = await service.approve_circle_update_request(
            str(co_governed_circle["_id"]), mentor_id, str(request["_id"])
        )

        assert result["status"] == "PENDING"
        assert result["pendingFor"] == "creator"
        update = collections[CHANGE_REQUESTS].update_one.call_args[0][1]
        assert update["$set"]["mentorApproved"] is True
        assert "status" not in update["$set"]
        collections[CIRCLES].update_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_same_party_approval_stays_pending(
        self, service, collections, co_governed_circle, make_request, creator_id,
    ):
        collections[CIRCLES].find_one.return_value = co_governed_circle
        request = make_request(co_governed_circle["_id"])
        collections[CHANGE_REQUESTS].find_one.return_value = request

        result = await service.approve_circle_update_request(
            str(co_governed_circle["_id"]), creator_id, str(request["_id"])
        )

        assert result["status"] == "PENDING"
        assert result["pendingFor"] == "mentor"
        collections[CIRCLES].update_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_request(self, service, collections, co_governed_circle, mentor_id):
        collections[CIRCLES].find_one.return_value = co_governed_circle

        with pytest.raises(NotFoundException) as exc_info:
            await service.approve_circle_update_request(
                str(co_governed_circle["_id"]), mentor_id, str(ObjectId())
            )

        assert exc_info.value.code == "CHANGE_REQUEST_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_stale_capacity_rejected_on_apply(
        self, service, collections, make_circle, make_request, creator_id, mentor_id,
    ):
        circle = make_circle(creatorId=creator_id, mentorId=mentor_id, maxCapacity=15)
        collections[CIRCLES].find_one.return_value = circle
        collections[CHANGE_REQUESTS].find_one.return_value = make_request(circle["_id"])

        with pytest.raises(ValidationException) as exc_info:
            await service.approve_circle_update_request(
                str(circle["_id"]), mentor_id, str(ObjectId())
            )

        assert exc_info.value.code == "INVALID_CAPACITY"
        collections[CIRCLES].update_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejected_completion_leaves_approval_unset(
        self, service, collections, make_circle, make_request, creator_id, mentor_id,
    ):
        circle = make_circle(creatorId=creator_id, mentorId=mentor_id, durationWeeks=12)
        collections[CIRCLES].find_one.return_value = circle
        request = make_request(circle["_id"], newMaxCapacity=None, newDurationWeeks=10)
        collections[CHANGE_REQUESTS].find_one.return_value = request

        with pytest.raises(ValidationException) as exc_info:
            await service.approve_circle_update_request(
                str(circle["_id"]), mentor_id, str(request["_id"])
            )

        assert exc_info.value.code == "INVALID_DURATION"
        collections[CHANGE_REQUESTS].update_one.assert_not_called()
        assert request["mentorApproved"] is False
        assert approval_state(request) == ChangeApprovalState.AWAITING_MENTOR

    @pytest.mark.asyncio
    async def test_enrollment_rechecked_on_apply(
        self, service, collections, co_governed_circle, make_request, mentor_id,
    ):
        collections[CIRCLES].find_one.return_value = co_governed_circle
        collections[CHANGE_REQUESTS].find_one.return_value = make_request(co_governed_circle["_id"])
        collections[APPLICATIONS].count_documents.return_value = 14

        with pytest.raises(ValidationException) as exc_info:
            await service.approve_circle_update_request(
                str(co_governed_circle["_id"]), mentor_id, str(ObjectId())
            )

        assert exc_info.value.code == "CAPACITY_BELOW_ENROLLMENT"


class TestListChangeRequests:
    @pytest.mark.asyncio
    async def test_annotates_approval_state(
        self, service, collections, co_governed_circle, make_request, creator_id, cursor,
    ):
        collections[CIRCLES].find_one.return_value = co_governed_circle
        collections[CHANGE_REQUESTS].find.return_value = cursor([
            make_request(co_governed_circle["_id"]),
            make_request(co_governed_circle["_id"], status="APPLIED", mentorApproved=True),
        ])

        requests = await service.list_change_requests(str(co_governed_circle["_id"]), creator_id)

        assert [r["approvalState"] for r in requests] == ["AWAITING_MENTOR", "APPLIED"]
