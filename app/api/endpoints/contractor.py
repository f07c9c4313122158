"""
Contractor application assignment endpoints.

Contractor team members see an application only through a per-application
assignment ({view, edit}); contractor leads and manager-level team members are
not limited by assignments.
"""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_current_principal
from app.core.exceptions import NotFoundError, PermissionDenied, ValidationFailed
from app.core.permissions import (
    Principal,
    can_contractor_edit,
    can_contractor_view,
    can_manage_contractor_team,
)
from app.models.application_assignment import ApplicationAssignment
from app.models.user import User, UserRole
from app.schemas.team import ApplicationAccessResponse, AssignmentResponse, AssignmentUpdateRequest

router = APIRouter(prefix="/contractor", tags=["Contractor"])
logger = logging.getLogger(__name__)


def _assignment(db: Session, application_id: str, user_id: str):
    return (
        db.query(ApplicationAssignment)
        .filter(
            ApplicationAssignment.application_id == application_id,
            ApplicationAssignment.user_id == user_id,
        )
        .first()
    )


@router.get("/applications/{application_id}/access", response_model=ApplicationAccessResponse)
def application_access(
    application_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    assignment = _assignment(db, application_id, principal.user_id)
    granted = assignment.permissions if assignment else []
    return ApplicationAccessResponse(
        can_view=can_contractor_view(principal, granted),
        can_edit=can_contractor_edit(principal, granted),
    )


@router.post("/applications/{application_id}/update-permissions", response_model=AssignmentResponse)
def update_application_permissions(
    application_id: str,
    payload: AssignmentUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """
    Replace a contractor team member's permissions on one application.

    An empty list revokes access to the application.
    """
    if not can_manage_contractor_team(principal):
        raise PermissionDenied("Only contractor account owners and managers can assign application permissions")

    target = db.get(User, payload.user_id)
    if target is None or target.company_id != principal.company_id:
        raise NotFoundError("User not found")
    if target.role != UserRole.CONTRACTOR_TEAM_MEMBER:
        raise ValidationFailed("Application permissions can only be assigned to contractor team members")

    # Stable order, no duplicates
    permissions = sorted({permission.value for permission in payload.permissions})

    assignment = _assignment(db, application_id, target.id)
    if assignment is None:
        assignment = ApplicationAssignment(application_id=application_id, user_id=target.id)
        db.add(assignment)
    assignment.permissions = permissions
    assignment.assigned_by = principal.user_id
    db.commit()
    db.refresh(assignment)

    logger.info(f"Application {application_id} permissions for user {target.id} set to {permissions}")
    return AssignmentResponse(
        application_id=application_id,
        user_id=target.id,
        permissions=assignment.permissions,
    )
