"""
Team management endpoints for company administrators and managers.

- GET /team: List members of the caller's company
- PATCH /team/{user_id}/permission-level: Change a team member's permission level
- PATCH /users/{user_id}/deactivate: Deactivate an account (effective on its next request)
- DELETE /team/member/{user_id}: Remove a member from the company (account is kept)
"""

import logging
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_current_principal, require_permission
from app.core.exceptions import NotFoundError, PermissionDenied, ValidationFailed
from app.core.permissions import (
    CompanyAdmin,
    Permission,
    Principal,
    SystemAdmin,
    can_edit_permissions,
)
from app.models.user import PermissionLevel, User, UserRole
from app.schemas.common import MessageResponse
from app.schemas.team import PermissionLevelUpdate
from app.schemas.user import UserPublic

router = APIRouter(tags=["Team Management"])
logger = logging.getLogger(__name__)

LEVELED_ROLES = (UserRole.TEAM_MEMBER, UserRole.CONTRACTOR_TEAM_MEMBER)
PROTECTED_LEVELS = (PermissionLevel.MANAGER, PermissionLevel.OWNER)


def _is_admin(principal: Principal) -> bool:
    return isinstance(principal, (CompanyAdmin, SystemAdmin))


def _manageable_target(db: Session, principal: Principal, user_id: str) -> User:
    """
    Load a user the caller may manage.

    Raises:
        PermissionDenied: caller lacks manager clearance, targets a company admin
            without being an admin, or targets a protected level as a manager
        NotFoundError: no such user in the caller's company
        ValidationFailed: caller targets themselves
    """
    if not can_edit_permissions(principal):
        raise PermissionDenied("Insufficient permissions")

    if user_id == principal.user_id:
        raise ValidationFailed("You cannot change your own account here")

    target = db.get(User, user_id)
    if target is None:
        raise NotFoundError("User not found")
    if not isinstance(principal, SystemAdmin) and target.company_id != principal.company_id:
        # Users of other companies are indistinguishable from missing ones
        raise NotFoundError("User not found")

    if not _is_admin(principal):
        if target.role in (UserRole.COMPANY_ADMIN, UserRole.SYSTEM_ADMIN):
            raise PermissionDenied("Managers cannot change company administrators")
        if target.permission_level in PROTECTED_LEVELS:
            raise PermissionDenied("Managers cannot change other managers or owners")

    return target


@router.get("/team", response_model=List[UserPublic])
def list_team(
    principal: Principal = Depends(require_permission(Permission.VIEW_TEAM_MEMBERS)),
    db: Session = Depends(get_db),
):
    if principal.company_id is None:
        return []
    members = (
        db.query(User)
        .filter(User.company_id == principal.company_id)
        .order_by(User.created_at, User.email)
        .all()
    )
    return [UserPublic.model_validate(member) for member in members]


@router.patch("/team/{user_id}/permission-level", response_model=UserPublic)
def update_permission_level(
    user_id: str,
    payload: PermissionLevelUpdate,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    target = _manageable_target(db, principal, user_id)

    if target.role not in LEVELED_ROLES:
        raise ValidationFailed("Permission levels only apply to team members")

    if not _is_admin(principal) and payload.permission_level in PROTECTED_LEVELS:
        raise PermissionDenied("Managers cannot assign manager or owner permission levels")

    target.permission_level = payload.permission_level
    db.commit()
    db.refresh(target)

    logger.info(
        f"Permission level of user {target.id} set to {payload.permission_level.value} by {principal.user_id}"
    )
    return UserPublic.model_validate(target)


@router.patch("/users/{user_id}/deactivate", response_model=MessageResponse)
def deactivate_user(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    target = _manageable_target(db, principal, user_id)
    target.is_active = False
    db.commit()

    logger.info(f"User {target.id} deactivated by {principal.user_id}")
    return MessageResponse(message="User deactivated successfully")


@router.delete("/team/member/{user_id}", response_model=MessageResponse)
def remove_team_member(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    target = _manageable_target(db, principal, user_id)
    target.company_id = None
    db.commit()

    logger.info(f"User {target.id} removed from company {principal.company_id} by {principal.user_id}")
    return MessageResponse(message="Team member removed successfully")
