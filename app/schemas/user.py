"""
Pydantic schemas for login, profile and password reset.
"""

from pydantic import EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from app.core.security import check_password_policy
from app.models.user import PermissionLevel, UserRole
from app.schemas.common import CamelModel


class UserPublic(CamelModel):
    """User profile response (never the hash, codes or two-factor secret)."""
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    business_mobile: Optional[str] = None
    role: UserRole
    permission_level: Optional[PermissionLevel] = None
    company_id: Optional[int] = None
    is_active: bool
    is_email_verified: bool
    two_factor_enabled: bool = False
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    two_factor_token: Optional[str] = None


class LoginResponse(CamelModel):
    message: str
    user: Optional[UserPublic] = None
    requires_two_factor: bool = False
    redirect_to: Optional[str] = None


class ProfileUpdateRequest(CamelModel):
    first_name: str
    last_name: str

    @field_validator('first_name', 'last_name')
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError('First name and last name are required')
        return v.strip()


class PasswordResetRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    """
    With token: completes an emailed reset link.
    Without token: in-app password change for the signed-in user.
    """
    token: Optional[str] = None
    new_password: str

    @field_validator('new_password')
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return check_password_policy(v)
