"""
Pydantic schemas for account registration.

The client states its intent once through accountType; each variant carries
exactly the fields its registration path needs.
"""

from pydantic import EmailStr, Field, RootModel, field_validator
from typing import Annotated, List, Literal, Optional, Union

from app.core.security import check_password_policy
from app.models.user import PermissionLevel, UserRole
from app.schemas.common import CamelModel
from app.schemas.user import UserPublic


class _RegistrationBase(CamelModel):
    email: EmailStr
    password: str
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    business_mobile: Optional[str] = None

    @field_validator('password')
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return check_password_policy(v)


class _BusinessAddress(CamelModel):
    street_address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None


class TeamMemberRegistration(_RegistrationBase):
    account_type: Literal["team_member"]
    company_name: str = Field(..., min_length=1)


class ContractorJoinRegistration(_RegistrationBase):
    account_type: Literal["contractor_join"]
    selected_company_id: int
    requested_permission_level: PermissionLevel = PermissionLevel.EDITOR
    how_heard_about: Optional[str] = None
    how_heard_about_other: Optional[str] = None

    @field_validator('requested_permission_level')
    @classmethod
    def validate_requested_level(cls, v: PermissionLevel) -> PermissionLevel:
        # Manager and owner are granted by the company, never requested
        if v not in (PermissionLevel.VIEWER, PermissionLevel.EDITOR):
            raise ValueError("Requested permission level must be viewer or editor")
        return v


class ContractorCompanyRegistration(_RegistrationBase, _BusinessAddress):
    account_type: Literal["contractor_company"]
    contractor_type: Literal["contractor_individual", "contractor_account_owner"] = "contractor_account_owner"
    company_name: Optional[str] = None
    business_number: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    service_regions: List[str] = []
    supported_activities: List[str] = []
    capital_retrofit_technologies: List[str] = []

    has_code_of_conduct_agreement: bool = False
    has_terms_of_service_agreement: bool = False
    has_privacy_policy_agreement: bool = False
    has_data_sharing_agreement: bool = False


class CompanyOwnerRegistration(_RegistrationBase, _BusinessAddress):
    account_type: Literal["company_owner"]
    company_name: str = Field(..., min_length=1)
    company_short_name: str = Field(..., min_length=1)
    business_number: str = Field(..., min_length=1)
    company_website: Optional[str] = None
    how_heard_about: Optional[str] = None
    how_heard_about_other: Optional[str] = None

    agree_to_portal_services: bool = False
    agree_to_business_info: bool = False
    agree_to_contact: bool = False


class StandardRegistration(_RegistrationBase):
    account_type: Literal["standard"]
    role: Literal["team_member", "contractor_individual"] = "team_member"


class RegistrationRequest(RootModel):
    root: Annotated[
        Union[
            TeamMemberRegistration,
            ContractorJoinRegistration,
            ContractorCompanyRegistration,
            CompanyOwnerRegistration,
            StandardRegistration,
        ],
        Field(discriminator="account_type"),
    ]


class RegistrationResponse(CamelModel):
    message: str
    user: Optional[UserPublic] = None
    requires_email_verification: bool = False
    email: Optional[str] = None
    is_pending: bool = False
    is_join_request: bool = False
    redirect_to: Optional[str] = None


def dashboard_for(role: UserRole) -> str:
    return "/contractor-dashboard" if UserRole(role).is_contractor else "/"
