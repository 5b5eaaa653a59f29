"""Circle capacity, admission and lifecycle services."""

from mentorhub.services.circles.access_guard import AccessGuard, CallerRole, CircleAccess
from mentorhub.services.circles.admission_service import AdmissionService
from mentorhub.services.circles.change_service import ChangeService, ChangeApprovalState
from mentorhub.services.circles.lifecycle_service import LifecycleService
from mentorhub.services.circles.directory_service import DirectoryService

__all__ = [
    "AccessGuard",
    "CallerRole",
    "CircleAccess",
    "AdmissionService",
    "ChangeService",
    "ChangeApprovalState",
    "LifecycleService",
    "DirectoryService",
]
