"""
Role and permission model.

Every check is a pure function over a Principal, which is one of seven frozen
dataclasses (one per role). Only the two team-member variants carry a
permission level. All predicates fail closed on a missing principal.
"""

import enum
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Optional, Union

from app.models.user import PermissionLevel, User, UserRole


class Permission(str, enum.Enum):
    # Company Management
    MANAGE_COMPANY = "manage_company"
    VIEW_COMPANY = "view_company"

    # Team Management
    INVITE_TEAM_MEMBERS = "invite_team_members"
    MANAGE_TEAM_MEMBERS = "manage_team_members"
    VIEW_TEAM_MEMBERS = "view_team_members"

    # Facility Management
    CREATE_FACILITIES = "create_facilities"
    EDIT_FACILITIES = "edit_facilities"
    DELETE_FACILITIES = "delete_facilities"
    VIEW_FACILITIES = "view_facilities"

    # Application Management
    CREATE_APPLICATIONS = "create_applications"
    EDIT_APPLICATIONS = "edit_applications"
    SUBMIT_APPLICATIONS = "submit_applications"
    DELETE_APPLICATIONS = "delete_applications"
    VIEW_APPLICATIONS = "view_applications"
    REVIEW_APPLICATIONS = "review_applications"

    # Document Management
    UPLOAD_DOCUMENTS = "upload_documents"
    DELETE_DOCUMENTS = "delete_documents"
    VIEW_DOCUMENTS = "view_documents"
    DOWNLOAD_DOCUMENTS = "download_documents"

    # Contractor Management
    MANAGE_CONTRACTORS = "manage_contractors"
    VIEW_CONTRACTORS = "view_contractors"

    # System Admin
    SYSTEM_ADMIN = "system_admin"


P = Permission

_TEAM_MEMBER_PERMISSIONS = frozenset({
    P.VIEW_COMPANY,
    P.VIEW_TEAM_MEMBERS,
    P.VIEW_FACILITIES,
    P.VIEW_APPLICATIONS,
    P.VIEW_DOCUMENTS,
    P.DOWNLOAD_DOCUMENTS,
    P.VIEW_CONTRACTORS,
})

_CONTRACTOR_LEAD_PERMISSIONS = frozenset({
    P.VIEW_COMPANY,
    P.INVITE_TEAM_MEMBERS,
    P.MANAGE_TEAM_MEMBERS,
    P.VIEW_TEAM_MEMBERS,
    P.VIEW_FACILITIES,
    P.VIEW_APPLICATIONS,
    P.EDIT_APPLICATIONS,
    P.UPLOAD_DOCUMENTS,
    P.VIEW_DOCUMENTS,
    P.DOWNLOAD_DOCUMENTS,
    P.MANAGE_CONTRACTORS,
    P.VIEW_CONTRACTORS,
})

ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[Permission]] = {
    UserRole.COMPANY_ADMIN: _TEAM_MEMBER_PERMISSIONS | {
        P.MANAGE_COMPANY,
        P.INVITE_TEAM_MEMBERS,
        P.MANAGE_TEAM_MEMBERS,
        P.CREATE_FACILITIES,
        P.EDIT_FACILITIES,
        P.DELETE_FACILITIES,
        P.CREATE_APPLICATIONS,
        P.EDIT_APPLICATIONS,
        P.SUBMIT_APPLICATIONS,
        P.DELETE_APPLICATIONS,
        P.UPLOAD_DOCUMENTS,
        P.DELETE_DOCUMENTS,
        P.MANAGE_CONTRACTORS,
    },
    UserRole.TEAM_MEMBER: _TEAM_MEMBER_PERMISSIONS,
    UserRole.CONTRACTOR_INDIVIDUAL: frozenset({
        P.VIEW_COMPANY,
        P.VIEW_FACILITIES,
        P.VIEW_APPLICATIONS,
        P.UPLOAD_DOCUMENTS,
        P.VIEW_DOCUMENTS,
        P.DOWNLOAD_DOCUMENTS,
    }),
    UserRole.CONTRACTOR_ACCOUNT_OWNER: _CONTRACTOR_LEAD_PERMISSIONS,
    UserRole.CONTRACTOR_MANAGER: _CONTRACTOR_LEAD_PERMISSIONS,
    # Edit and upload are granted per application through assignments
    UserRole.CONTRACTOR_TEAM_MEMBER: _TEAM_MEMBER_PERMISSIONS,
    UserRole.SYSTEM_ADMIN: frozenset(Permission),
}

ROLE_INFO = {
    UserRole.COMPANY_ADMIN: {
        "label": "Company Administrator",
        "description": "Full company control including company profile changes and team management",
    },
    UserRole.TEAM_MEMBER: {
        "label": "Team Member",
        "description": "Access to company data according to the assigned permission level",
    },
    UserRole.CONTRACTOR_ACCOUNT_OWNER: {
        "label": "Contractor Account Owner",
        "description": "Manages the contractor company, its team and application assignments",
    },
    UserRole.CONTRACTOR_INDIVIDUAL: {
        "label": "Individual Contractor",
        "description": "Limited access to view applications and upload documents",
    },
    UserRole.CONTRACTOR_MANAGER: {
        "label": "Contractor Manager",
        "description": "Manages contractor team members and application assignments",
    },
    UserRole.CONTRACTOR_TEAM_MEMBER: {
        "label": "Contractor Team Member",
        "description": "Works on the applications they are assigned to",
    },
    UserRole.SYSTEM_ADMIN: {
        "label": "System Admin",
        "description": "Full system access and administrative capabilities",
    },
}

PERMISSION_LEVEL_INFO = {
    PermissionLevel.VIEWER: {
        "label": "Viewer",
        "description": "Read-only access to view company data",
    },
    PermissionLevel.EDITOR: {
        "label": "Editor",
        "description": "Can create, edit and submit facilities and applications",
    },
    PermissionLevel.MANAGER: {
        "label": "Manager",
        "description": "Can invite users and assign permissions (except for other managers, owners, and company admin)",
    },
    PermissionLevel.OWNER: {
        "label": "Owner",
        "description": "Full access, cannot be demoted by others except system/company admin",
    },
}


# --- Principals -------------------------------------------------------------

@dataclass(frozen=True)
class CompanyAdmin:
    user_id: str
    company_id: Optional[int]


@dataclass(frozen=True)
class TeamMember:
    user_id: str
    company_id: Optional[int]
    permission_level: PermissionLevel = PermissionLevel.VIEWER


@dataclass(frozen=True)
class ContractorAccountOwner:
    user_id: str
    company_id: Optional[int]


@dataclass(frozen=True)
class ContractorIndividual:
    user_id: str
    company_id: Optional[int]


@dataclass(frozen=True)
class ContractorManager:
    user_id: str
    company_id: Optional[int]


@dataclass(frozen=True)
class ContractorTeamMember:
    user_id: str
    company_id: Optional[int]
    permission_level: PermissionLevel = PermissionLevel.VIEWER


@dataclass(frozen=True)
class SystemAdmin:
    user_id: str
    company_id: Optional[int] = None


Principal = Union[
    CompanyAdmin,
    TeamMember,
    ContractorAccountOwner,
    ContractorIndividual,
    ContractorManager,
    ContractorTeamMember,
    SystemAdmin,
]

_PRINCIPAL_ROLES = {
    CompanyAdmin: UserRole.COMPANY_ADMIN,
    TeamMember: UserRole.TEAM_MEMBER,
    ContractorAccountOwner: UserRole.CONTRACTOR_ACCOUNT_OWNER,
    ContractorIndividual: UserRole.CONTRACTOR_INDIVIDUAL,
    ContractorManager: UserRole.CONTRACTOR_MANAGER,
    ContractorTeamMember: UserRole.CONTRACTOR_TEAM_MEMBER,
    SystemAdmin: UserRole.SYSTEM_ADMIN,
}

_CONTRACTOR_LEADS = (ContractorIndividual, ContractorAccountOwner, ContractorManager)


def role_of(principal: Principal) -> UserRole:
    return _PRINCIPAL_ROLES[type(principal)]


def principal_from_user(user: Optional[User]) -> Optional[Principal]:
    """Project a stored user onto the principal variant for its role."""
    if user is None:
        return None
    role = UserRole(user.role)
    level = PermissionLevel(user.permission_level) if user.permission_level else PermissionLevel.VIEWER

    if role is UserRole.TEAM_MEMBER:
        return TeamMember(user.id, user.company_id, level)
    if role is UserRole.CONTRACTOR_TEAM_MEMBER:
        return ContractorTeamMember(user.id, user.company_id, level)
    if role is UserRole.SYSTEM_ADMIN:
        return SystemAdmin(user.id, user.company_id)

    variant = {
        UserRole.COMPANY_ADMIN: CompanyAdmin,
        UserRole.CONTRACTOR_ACCOUNT_OWNER: ContractorAccountOwner,
        UserRole.CONTRACTOR_INDIVIDUAL: ContractorIndividual,
        UserRole.CONTRACTOR_MANAGER: ContractorManager,
    }[role]
    return variant(user.id, user.company_id)


# --- Role table -------------------------------------------------------------

def _coerce_role(role) -> Optional[UserRole]:
    try:
        return UserRole(role)
    except ValueError:
        return None


def has_permission(role: Optional[UserRole], permission: Permission) -> bool:
    known = _coerce_role(role)
    if known is None:
        return False
    return permission in ROLE_PERMISSIONS[known]


def has_any_permission(role: Optional[UserRole], permissions: Iterable[Permission]) -> bool:
    return any(has_permission(role, permission) for permission in permissions)


def has_all_permissions(role: Optional[UserRole], permissions: Iterable[Permission]) -> bool:
    if _coerce_role(role) is None:
        return False
    return all(has_permission(role, permission) for permission in permissions)


def principal_has_permission(principal: Optional[Principal], permission: Permission) -> bool:
    if principal is None:
        return False
    return has_permission(role_of(principal), permission)


# --- Permission levels ------------------------------------------------------

def has_permission_level(principal: Optional[Principal], required: PermissionLevel) -> bool:
    """
    Company and system admins always pass. Company team members pass when their
    level ranks at or above the required one. Every other role fails.
    """
    if principal is None:
        return False
    if isinstance(principal, (CompanyAdmin, SystemAdmin)):
        return True
    if isinstance(principal, TeamMember):
        return principal.permission_level.rank >= PermissionLevel(required).rank
    return False


def can_invite_users(principal: Optional[Principal]) -> bool:
    return has_permission_level(principal, PermissionLevel.MANAGER)


def can_edit_permissions(principal: Optional[Principal]) -> bool:
    return has_permission_level(principal, PermissionLevel.MANAGER)


def can_create_edit(principal: Optional[Principal]) -> bool:
    if isinstance(principal, (ContractorAccountOwner, ContractorManager)):
        return True
    return has_permission_level(principal, PermissionLevel.EDITOR)


def can_view_only(principal: Optional[Principal]) -> bool:
    return has_permission_level(principal, PermissionLevel.VIEWER)


# --- Contractor assignments -------------------------------------------------

def _is_contractor_manager_level(principal: Principal) -> bool:
    return isinstance(principal, ContractorTeamMember) and principal.permission_level is PermissionLevel.MANAGER


def can_contractor_edit(principal: Optional[Principal], application_permissions: Iterable[str] = ()) -> bool:
    if isinstance(principal, _CONTRACTOR_LEADS):
        return True
    if isinstance(principal, ContractorTeamMember):
        if _is_contractor_manager_level(principal):
            return True
        return "edit" in set(application_permissions)
    return False


def can_contractor_view(principal: Optional[Principal], application_permissions: Iterable[str] = ()) -> bool:
    if isinstance(principal, _CONTRACTOR_LEADS):
        return True
    if isinstance(principal, ContractorTeamMember):
        if _is_contractor_manager_level(principal):
            return True
        granted = set(application_permissions)
        return "view" in granted or "edit" in granted
    return False


def can_manage_contractor_team(principal: Optional[Principal]) -> bool:
    if isinstance(principal, _CONTRACTOR_LEADS):
        return True
    return isinstance(principal, ContractorTeamMember) and _is_contractor_manager_level(principal)


def can_edit_application_permissions(principal: Optional[Principal]) -> bool:
    return can_manage_contractor_team(principal)
