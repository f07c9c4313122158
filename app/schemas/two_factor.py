"""
Pydantic schemas for two-factor enrollment.
"""

from typing import Optional

from app.schemas.common import CamelModel


class TwoFactorSetupResponse(CamelModel):
    secret: str
    qr_code_url: str  # PNG data URL
    manual_entry_key: str


class TwoFactorVerifyRequest(CamelModel):
    secret: Optional[str] = None
    token: Optional[str] = None


class TwoFactorDisableRequest(CamelModel):
    token: Optional[str] = None
