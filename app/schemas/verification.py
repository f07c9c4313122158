"""
Pydantic schemas for email verification endpoints.
"""

from pydantic import EmailStr, Field, field_validator
from typing import Optional
import re

from app.schemas.common import CamelModel
from app.schemas.user import UserPublic


class VerifyCodeRequest(CamelModel):
    """Request to verify a 6-digit code"""
    email: EmailStr
    code: str = Field(..., min_length=6, max_length=6, description="6-digit verification code")

    @field_validator('code')
    @classmethod
    def validate_code_format(cls, v: str) -> str:
        """Ensure code is exactly 6 digits"""
        if not re.match(r'^\d{6}$', v):
            raise ValueError('Code must be exactly 6 digits')
        return v


class EmailOnlyRequest(CamelModel):
    """Send, or resend, a code to an address"""
    email: EmailStr


class VerifyCodeResponse(CamelModel):
    message: str
    verified: bool = True
    user: Optional[UserPublic] = None
    redirect_to: Optional[str] = None


class SendCodeResponse(CamelModel):
    """Response after sending verification code"""
    message: str
    email_sent: bool = True
    expires_in_minutes: int = 10
