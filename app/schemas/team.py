"""
Pydantic schemas for team management and contractor application assignments.
"""

from typing import List

from app.models.application_assignment import AssignmentPermission
from app.models.user import PermissionLevel
from app.schemas.common import CamelModel


class PermissionLevelUpdate(CamelModel):
    permission_level: PermissionLevel


class AssignmentUpdateRequest(CamelModel):
    user_id: str
    permissions: List[AssignmentPermission]


class AssignmentResponse(CamelModel):
    application_id: str
    user_id: str
    permissions: List[AssignmentPermission]


class ApplicationAccessResponse(CamelModel):
    can_view: bool
    can_edit: bool
