"""
Two-factor authentication endpoints (all require a signed-in user).

- POST /2fa/setup: Generate a secret and QR code (nothing is stored yet)
- POST /2fa/verify: Confirm a token against the new secret and enable 2FA
- POST /2fa/disable: Confirm a token against the stored secret and disable 2FA
"""

import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core import two_factor
from app.core.database import get_db
from app.core.deps import get_current_user
from app.core.exceptions import ValidationFailed
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.two_factor import TwoFactorDisableRequest, TwoFactorSetupResponse, TwoFactorVerifyRequest

router = APIRouter(prefix="/auth/2fa", tags=["Two-Factor Authentication"])
logger = logging.getLogger(__name__)


@router.post("/setup", response_model=TwoFactorSetupResponse)
def setup(current_user: User = Depends(get_current_user)):
    if current_user.two_factor_enabled:
        raise ValidationFailed("Two-factor authentication is already enabled")

    secret = two_factor.generate_secret()
    uri = two_factor.provisioning_uri(secret, current_user.email)

    return TwoFactorSetupResponse(
        secret=secret,
        qr_code_url=two_factor.qr_code_data_url(uri),
        manual_entry_key=secret,
    )


@router.post("/verify", response_model=MessageResponse)
def verify(
    payload: TwoFactorVerifyRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if current_user.two_factor_enabled:
        raise ValidationFailed("Two-factor authentication is already enabled. Disable it first.")

    if not payload.secret or not payload.token:
        raise ValidationFailed("Secret and token are required")

    if not two_factor.consume_token(current_user, payload.secret, payload.token):
        raise ValidationFailed("Invalid verification code")

    two_factor.enable(current_user, payload.secret)
    db.commit()

    logger.info(f"Two-factor authentication enabled for user {current_user.id}")
    return MessageResponse(message="Two-factor authentication enabled successfully")


@router.post("/disable", response_model=MessageResponse)
def disable(
    payload: TwoFactorDisableRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not current_user.two_factor_enabled or not current_user.two_factor_secret:
        raise ValidationFailed("Two-factor authentication is not enabled")

    if not payload.token:
        raise ValidationFailed("Verification code is required")

    if not two_factor.consume_token(current_user, two_factor.stored_secret(current_user), payload.token):
        raise ValidationFailed("Invalid verification code")

    two_factor.disable(current_user)
    db.commit()

    logger.info(f"Two-factor authentication disabled for user {current_user.id}")
    return MessageResponse(message="Two-factor authentication disabled successfully")
