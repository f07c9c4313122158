"""
Database models package.
"""

from app.models.user import User, UserRole, PermissionLevel
from app.models.company import Company
from app.models.contractor_join_request import ContractorJoinRequest, JoinRequestStatus
from app.models.application_assignment import ApplicationAssignment, AssignmentPermission
from app.models.registration_verification import RegistrationVerification
from app.models.user_session import UserSession

__all__ = [
    "User",
    "UserRole",
    "PermissionLevel",
    "Company",
    "ContractorJoinRequest",
    "JoinRequestStatus",
    "ApplicationAssignment",
    "AssignmentPermission",
    "RegistrationVerification",
    "UserSession",
]
