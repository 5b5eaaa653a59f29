"""
Circle application admission service.

Decides whether a new application takes a seat (PENDING) or joins the
waitlist, keeps circle status in step with its fill level, and lets the
mentor review applications.

The submission path is a read-count-then-write sequence over separate
statements. Two submissions racing for the last seat can both be
admitted as PENDING; the store offers no isolation across the
statements and none is added here.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from mentorhub.database import APPLICATIONS, CIRCLES
from mentorhub.services.circles.access_guard import AccessGuard
from mentorhub.services.circles.constants import (
    ACCEPTING_STATUSES,
    ACCEPTED,
    ACTIVE,
    OPEN,
    PENDING,
    REJECTED,
    WAITLIST,
    to_object_id,
)
from mentorhub.services.circles.enrollment import count_filled
from mentorhub.services.revalidation import PathRevalidator, circle_path

logger = logging.getLogger(__name__)


class AdmissionService:
    """
    Handles application submission, review and listing.
    """

    MAX_INTENT_LENGTH = 2000
    DECISIONS = {"ACCEPT": ACCEPTED, "REJECT": REJECTED}

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        access_guard: Optional[AccessGuard] = None,
        revalidator: Optional[PathRevalidator] = None,
    ):
        """
        Initialize AdmissionService.

        Args:
            db: MongoDB database connection
            access_guard: Shared guard, created from db if omitted
            revalidator: UI cache invalidation signal
        """
        self._circles_collection = db[CIRCLES]
        self._applications_collection = db[APPLICATIONS]
        self._access_guard = access_guard or AccessGuard(db)
        self._revalidator = revalidator

    async def submit_application(
        self,
        circle_id: str,
        mentee_id: Optional[str],
        intent_statement: str,
    ) -> Dict[str, Any]:
        """
        Submit (or resubmit after rejection) an application to a circle.

        Args:
            circle_id: Circle to join
            mentee_id: Applicant
            intent_statement: Why the mentee wants to join

        Returns:
            dict with status (PENDING or WAITLIST) and applicationId

        Raises:
            UnauthorizedException: If not signed in
            NotFoundException: If circle doesn't exist
            ConflictException: If applications are closed or a live
                application already exists
        """
        access = await self._access_guard.resolve(circle_id, mentee_id)
        circle = access.circle

        if circle["status"] not in ACCEPTING_STATUSES:
            raise ConflictException(
                message="This circle is not accepting applications",
                code="APPLICATIONS_CLOSED",
            )

        intent_statement = intent_statement.strip() if intent_statement else ""
        if not intent_statement:
            raise ValidationException(
                message="Tell the mentor why you want to join",
                code="EMPTY_INTENT",
            )
        if len(intent_statement) > self.MAX_INTENT_LENGTH:
            raise ValidationException(
                message=f"Intent statement cannot exceed {self.MAX_INTENT_LENGTH} characters",
                code="INTENT_TOO_LONG",
            )

        if access.is_mentor:
            raise ForbiddenException(
                message="Mentors cannot apply to their own circle",
                code="MENTOR_CANNOT_APPLY",
            )

        existing = await self._applications_collection.find_one({
            "circleId": circle["_id"],
            "menteeId": mentee_id,
        })

        if existing and existing["status"] != REJECTED:
            raise ConflictException(
                message=f"You have already applied to this circle (status: {existing['status']})",
                code="DUPLICATE_APPLICATION",
                details={"status": existing["status"]},
            )

        filled = await count_filled(self._applications_collection, circle["_id"])
        status = WAITLIST if filled >= circle["maxCapacity"] else PENDING

        now = datetime.now(timezone.utc)

        if existing:
            await self._applications_collection.update_one(
                {"_id": existing["_id"]},
                {"$set": {
                    "intentStatement": intent_statement,
                    "status": status,
                    "updatedAt": now,
                }}
            )
            application_id = existing["_id"]
            logger.info(f"Application {application_id} resubmitted to circle {circle['_id']} as {status}")
        else:
            application_doc = {
                "circleId": circle["_id"],
                "menteeId": mentee_id,
                "intentStatement": intent_statement,
                "status": status,
                "createdAt": now,
                "updatedAt": now,
            }
            result = await self._applications_collection.insert_one(application_doc)
            application_id = result.inserted_id
            logger.info(f"Application {application_id} submitted to circle {circle['_id']} as {status}")

        if (
            status == PENDING
            and circle["status"] == OPEN
            and filled + 1 >= circle["maxCapacity"]
        ):
            await self._circles_collection.update_one(
                {"_id": circle["_id"]},
                {"$set": {"status": ACTIVE, "updatedAt": now}}
            )
            logger.info(f"Circle {circle['_id']} reached capacity and is now ACTIVE")

        await self._revalidate("/dashboard/mentee", circle_path(circle["_id"]))

        return {"status": status, "applicationId": str(application_id)}

    async def review_application(
        self,
        circle_id: str,
        caller_id: Optional[str],
        application_id: str,
        decision: str,
    ) -> Dict[str, Any]:
        """
        Accept or reject an application. Mentor only.

        A PENDING application may be accepted or rejected; a WAITLIST
        application may only be rejected.
        """
        access = await self._access_guard.require_access(circle_id, caller_id, mentor_only=True)

        decision = decision.upper()
        if decision not in self.DECISIONS:
            raise ValidationException(
                message=f"Decision must be one of: {', '.join(self.DECISIONS)}",
                code="INVALID_DECISION",
            )
        new_status = self.DECISIONS[decision]

        application = await self._applications_collection.find_one({
            "_id": to_object_id(application_id, "Application", "APPLICATION_NOT_FOUND"),
            "circleId": access.circle_id,
        })
        if not application:
            raise NotFoundException(message="Application not found", code="APPLICATION_NOT_FOUND")

        allowed_from = [PENDING] if new_status == ACCEPTED else [PENDING, WAITLIST]
        if application["status"] not in allowed_from:
            raise ConflictException(
                message=f"Cannot {decision.lower()} an application that is {application['status']}",
                code="INVALID_APPLICATION_STATE",
            )

        now = datetime.now(timezone.utc)
        await self._applications_collection.update_one(
            {"_id": application["_id"]},
            {"$set": {"status": new_status, "updatedAt": now}}
        )

        logger.info(f"Application {application['_id']} {application['status']} -> {new_status}")
        await self._revalidate("/dashboard/mentor", circle_path(access.circle_id))

        application["status"] = new_status
        application["updatedAt"] = now
        return application

    async def list_applications_for_circle(
        self,
        circle_id: str,
        caller_id: Optional[str],
        status: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Applications to a circle in submission order. Creator or mentor only."""
        access = await self._access_guard.require_governor(circle_id, caller_id)

        query: Dict[str, Any] = {"circleId": access.circle_id}
        if status:
            query["status"] = status.upper()

        cursor = self._applications_collection.find(query).sort("createdAt", 1)
        return await cursor.to_list(length=500)

    async def list_applications_for_mentee(self, mentee_id: str) -> List[Dict[str, Any]]:
        """A mentee's own applications, newest first, with circle titles."""
        cursor = self._applications_collection.find({"menteeId": mentee_id}).sort("createdAt", -1)
        applications = await cursor.to_list(length=100)

        circle_ids = list({a["circleId"] for a in applications})
        circles = {}
        if circle_ids:
            circle_cursor = self._circles_collection.find(
                {"_id": {"$in": circle_ids}},
                {"title": 1, "mentorId": 1},
            )
            circles = {c["_id"]: c for c in await circle_cursor.to_list(length=len(circle_ids))}

        for application in applications:
            circle = circles.get(application["circleId"], {})
            application["circleTitle"] = circle.get("title")
            application["circleMentorId"] = circle.get("mentorId")

        return applications

    async def _revalidate(self, *paths: str) -> None:
        if self._revalidator:
            await self._revalidator.revalidate(*paths)
