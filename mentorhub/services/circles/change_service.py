"""
Circle capacity and duration change workflow.

Capacity and duration only ever grow. A self-mentored circle (creator is
the mentor, or no mentor yet) applies a valid proposal immediately. A
circle with a distinct mentor needs both the creator and the mentor to
approve the same target values before anything changes; the proposal is
kept as a circleChangeRequests document until then.

Like admission, each workflow is several independent statements. A
failure part-way leaves the earlier writes in place.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List, Dict, Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import NotFoundException, ValidationException
from mentorhub.database import APPLICATIONS, CHANGE_REQUESTS, CIRCLES
from mentorhub.services.circles.access_guard import AccessGuard, CircleAccess
from mentorhub.services.circles.constants import (
    REQUEST_APPLIED,
    REQUEST_PENDING,
    to_object_id,
)
from mentorhub.services.circles.enrollment import count_filled, promote_waitlist
from mentorhub.services.revalidation import PathRevalidator, circle_path

logger = logging.getLogger(__name__)


class ChangeApprovalState(Enum):
    """Where a change request stands."""

    AWAITING_CREATOR = "AWAITING_CREATOR"
    AWAITING_MENTOR = "AWAITING_MENTOR"
    APPLIED = "APPLIED"


def approval_state(request: Dict[str, Any]) -> ChangeApprovalState:
    """
    Derive the approval state from a stored change request.

    A PENDING request with both flags set only exists after an apply
    failed mid-way; it reports AWAITING_MENTOR so that an approval from
    either party retries the apply.
    """
    if request.get("status") == REQUEST_APPLIED:
        return ChangeApprovalState.APPLIED
    if not request.get("creatorApproved"):
        return ChangeApprovalState.AWAITING_CREATOR
    return ChangeApprovalState.AWAITING_MENTOR


def pending_for(state: ChangeApprovalState) -> Optional[str]:
    """Role name whose approval is outstanding."""
    if state is ChangeApprovalState.AWAITING_CREATOR:
        return "creator"
    if state is ChangeApprovalState.AWAITING_MENTOR:
        return "mentor"
    return None


class ChangeService:
    """
    Handles capacity increases and duration extensions for circles.
    """

    MAX_CAPACITY = 100
    MAX_DURATION_WEEKS = 104
    MAX_NOTES_LENGTH = 1000

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        access_guard: Optional[AccessGuard] = None,
        revalidator: Optional[PathRevalidator] = None,
    ):
        """
        Initialize ChangeService.

        Args:
            db: MongoDB database connection
            access_guard: Shared guard, created from db if omitted
            revalidator: UI cache invalidation signal
        """
        self._circles_collection = db[CIRCLES]
        self._applications_collection = db[APPLICATIONS]
        self._requests_collection = db[CHANGE_REQUESTS]
        self._access_guard = access_guard or AccessGuard(db)
        self._revalidator = revalidator

    async def propose_circle_update(
        self,
        circle_id: str,
        caller_id: Optional[str],
        new_max_capacity: Optional[int] = None,
        extend_by_weeks: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Propose raising capacity and/or extending duration.

        Args:
            circle_id: Circle to change
            caller_id: Creator or mentor proposing the change
            new_max_capacity: Target capacity, must exceed the current one
            extend_by_weeks: Weeks to add to the current duration
            notes: Free-text context for the other party

        Returns:
            dict with status (APPLIED or PENDING), message, and for the
            dual-approval path requestId, approvalState and pendingFor

        Raises:
            ForbiddenException: If the caller is not creator or mentor
            ValidationException: If the proposal is empty, not an increase,
                or below current enrollment
        """
        access = await self._access_guard.require_governor(circle_id, caller_id)
        circle = access.circle

        if new_max_capacity is None and not extend_by_weeks:
            raise ValidationException(
                message="Propose a new capacity or a duration extension",
                code="NO_CHANGE_REQUESTED",
            )

        if new_max_capacity is not None:
            if new_max_capacity <= circle["maxCapacity"]:
                raise ValidationException(
                    message=f"New capacity must be greater than the current {circle['maxCapacity']}",
                    code="INVALID_CAPACITY",
                )
            if new_max_capacity > self.MAX_CAPACITY:
                raise ValidationException(
                    message=f"Capacity cannot exceed {self.MAX_CAPACITY}",
                    code="INVALID_CAPACITY",
                )

        new_duration_weeks = None
        if extend_by_weeks:
            current_weeks = circle["durationWeeks"]
            new_duration_weeks = current_weeks + extend_by_weeks
            if new_duration_weeks <= current_weeks:
                raise ValidationException(
                    message=f"New duration must be longer than the current {current_weeks} weeks",
                    code="INVALID_DURATION",
                )
            if new_duration_weeks > self.MAX_DURATION_WEEKS:
                raise ValidationException(
                    message=f"Duration cannot exceed {self.MAX_DURATION_WEEKS} weeks",
                    code="INVALID_DURATION",
                )

        if new_max_capacity is not None:
            await self._check_enrollment(circle["_id"], new_max_capacity)

        if notes and len(notes) > self.MAX_NOTES_LENGTH:
            raise ValidationException(
                message=f"Notes cannot exceed {self.MAX_NOTES_LENGTH} characters",
                code="NOTES_TOO_LONG",
            )

        if not access.requires_dual_approval:
            promoted = await self._apply(circle, new_max_capacity, new_duration_weeks)
            await self._revalidate_circle(circle["_id"])
            return {
                "status": REQUEST_APPLIED,
                "message": "Circle updated.",
                "promoted": len(promoted),
            }

        request = await self._merge_or_create_request(
            access, new_max_capacity, new_duration_weeks, notes
        )

        if request["creatorApproved"] and request["mentorApproved"]:
            promoted = await self._apply(circle, new_max_capacity, new_duration_weeks)
            await self._mark_applied(request)
            await self._revalidate_circle(circle["_id"])
            return {
                "status": REQUEST_APPLIED,
                "message": "Both approvals received. Circle updated.",
                "requestId": str(request["_id"]),
                "approvalState": ChangeApprovalState.APPLIED.value,
                "promoted": len(promoted),
            }

        state = approval_state(request)
        waiting_on = pending_for(state)
        await self._revalidate_circle(circle["_id"])
        return {
            "status": REQUEST_PENDING,
            "message": f"Change proposed. Waiting for {waiting_on} approval.",
            "requestId": str(request["_id"]),
            "approvalState": state.value,
            "pendingFor": waiting_on,
        }

    async def approve_circle_update_request(
        self,
        circle_id: str,
        caller_id: Optional[str],
        request_id: str,
    ) -> Dict[str, Any]:
        """
        Approve a pending change request.

        When this approval completes the pair, the proposal is checked
        again against the circle as it is now and then applied.

        Raises:
            NotFoundException: If no pending request matches
            ValidationException: If the circle moved past the proposal
        """
        access = await self._access_guard.require_governor(circle_id, caller_id)
        circle = access.circle

        request = await self._requests_collection.find_one({
            "_id": to_object_id(request_id, "Change request", "CHANGE_REQUEST_NOT_FOUND"),
            "circleId": circle["_id"],
            "status": REQUEST_PENDING,
        })
        if not request:
            raise NotFoundException(
                message="Change request not found or already applied",
                code="CHANGE_REQUEST_NOT_FOUND",
            )

        approvals = self._caller_approvals(access)
        logger.info(f"Change request {request['_id']} approved by {access.role.value} {caller_id}")

        # Approval flags are written on the pending path, or with the APPLIED
        # mark once the completed pair passes re-validation.
        completed = {**request, **approvals}
        if not (completed.get("creatorApproved") and completed.get("mentorApproved")):
            await self._requests_collection.update_one(
                {"_id": request["_id"]},
                {"$set": {**approvals, "updatedAt": datetime.now(timezone.utc)}}
            )
            request.update(approvals)
            state = approval_state(request)
            await self._revalidate_circle(circle["_id"])
            return {
                "status": REQUEST_PENDING,
                "requestId": str(request["_id"]),
                "approvalState": state.value,
                "pendingFor": pending_for(state),
            }

        new_max_capacity = request.get("newMaxCapacity")
        new_duration_weeks = request.get("newDurationWeeks")

        if new_max_capacity is not None:
            if new_max_capacity < circle["maxCapacity"]:
                raise ValidationException(
                    message="Circle capacity has already grown past this proposal",
                    code="INVALID_CAPACITY",
                )
            await self._check_enrollment(circle["_id"], new_max_capacity)

        if new_duration_weeks is not None and new_duration_weeks < circle["durationWeeks"]:
            raise ValidationException(
                message="Circle duration has already grown past this proposal",
                code="INVALID_DURATION",
            )

        promoted = await self._apply(circle, new_max_capacity, new_duration_weeks)
        await self._mark_applied(request, approvals)
        await self._revalidate_circle(circle["_id"])

        return {
            "status": REQUEST_APPLIED,
            "requestId": str(request["_id"]),
            "approvalState": ChangeApprovalState.APPLIED.value,
            "promoted": len(promoted),
        }

    async def list_change_requests(
        self,
        circle_id: str,
        caller_id: Optional[str],
        status: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Change requests for a circle, newest first. Creator or mentor only."""
        access = await self._access_guard.require_governor(circle_id, caller_id)

        query: Dict[str, Any] = {"circleId": access.circle_id}
        if status:
            query["status"] = status.upper()

        cursor = self._requests_collection.find(query).sort("createdAt", -1)
        requests = await cursor.to_list(length=100)

        for request in requests:
            request["approvalState"] = approval_state(request).value

        return requests

    async def _merge_or_create_request(
        self,
        access: CircleAccess,
        new_max_capacity: Optional[int],
        new_duration_weeks: Optional[int],
        notes: Optional[str],
    ) -> Dict[str, Any]:
        """Fold the caller's approval into an identical pending request, or open one."""
        now = datetime.now(timezone.utc)
        approvals = self._caller_approvals(access)

        existing = await self._requests_collection.find_one({
            "circleId": access.circle_id,
            "status": REQUEST_PENDING,
            "newMaxCapacity": new_max_capacity,
            "newDurationWeeks": new_duration_weeks,
        })

        if existing:
            patch: Dict[str, Any] = {**approvals, "updatedAt": now}
            if notes:
                patch["notes"] = notes
            await self._requests_collection.update_one(
                {"_id": existing["_id"]},
                {"$set": patch}
            )
            existing.update(patch)
            logger.info(f"Change request {existing['_id']} re-proposed by {access.role.value}")
            return existing

        request_doc = {
            "circleId": access.circle_id,
            "newMaxCapacity": new_max_capacity,
            "newDurationWeeks": new_duration_weeks,
            "notes": notes,
            "status": REQUEST_PENDING,
            "creatorApproved": access.is_creator,
            "mentorApproved": access.is_mentor,
            "proposedBy": access.user_id,
            "appliedAt": None,
            "createdAt": now,
            "updatedAt": now,
        }
        result = await self._requests_collection.insert_one(request_doc)
        request_doc["_id"] = result.inserted_id

        logger.info(f"Change request {result.inserted_id} created for circle {access.circle_id}")
        return request_doc

    async def _apply(
        self,
        circle: Dict[str, Any],
        new_max_capacity: Optional[int],
        new_duration_weeks: Optional[int],
    ) -> List[ObjectId]:
        """Write the new values to the circle and fill any new seats from the waitlist."""
        patch: Dict[str, Any] = {"updatedAt": datetime.now(timezone.utc)}
        if new_max_capacity is not None:
            patch["maxCapacity"] = new_max_capacity
        if new_duration_weeks is not None:
            patch["durationWeeks"] = new_duration_weeks

        await self._circles_collection.update_one(
            {"_id": circle["_id"]},
            {"$set": patch}
        )
        logger.info(
            f"Circle {circle['_id']} updated: capacity={new_max_capacity} duration={new_duration_weeks}"
        )

        if new_max_capacity is not None and new_max_capacity > circle["maxCapacity"]:
            return await promote_waitlist(
                self._applications_collection, circle["_id"], new_max_capacity
            )
        return []

    async def _mark_applied(
        self,
        request: Dict[str, Any],
        approvals: Optional[Dict[str, bool]] = None,
    ) -> None:
        now = datetime.now(timezone.utc)
        await self._requests_collection.update_one(
            {"_id": request["_id"], "status": REQUEST_PENDING},
            {"$set": {**(approvals or {}), "status": REQUEST_APPLIED, "appliedAt": now, "updatedAt": now}}
        )
        request.update(approvals or {})
        request["status"] = REQUEST_APPLIED

    async def _check_enrollment(self, circle_id: ObjectId, new_max_capacity: int) -> None:
        filled = await count_filled(self._applications_collection, circle_id)
        if new_max_capacity < filled:
            raise ValidationException(
                message=f"Capacity cannot be below current enrollment of {filled}",
                code="CAPACITY_BELOW_ENROLLMENT",
            )

    @staticmethod
    def _caller_approvals(access: CircleAccess) -> Dict[str, bool]:
        """Approval flags the caller is entitled to set."""
        approvals = {}
        if access.is_creator:
            approvals["creatorApproved"] = True
        if access.is_mentor:
            approvals["mentorApproved"] = True
        return approvals

    async def _revalidate_circle(self, circle_id: ObjectId) -> None:
        if self._revalidator:
            await self._revalidator.revalidate(circle_path(circle_id), "/dashboard/mentor")
