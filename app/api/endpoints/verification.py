"""
Email verification endpoints.

Handles sending, resending and verifying 6-digit codes, both for existing
accounts and for prospective company owners who verify before registering.
"""

import logging
from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from app.core.celery_utils import queue_task_safely
from app.core.config import settings
from app.core.database import get_db
from app.core.deps import DEACTIVATED_MESSAGE, get_session_manager
from app.core.exceptions import DeliveryFailed, NotFoundError, PermissionDenied, ValidationFailed
from app.core.sessions import SessionManager
from app.core.verification import (
    create_registration_verification,
    issue_user_code,
    verify_registration_code,
    verify_user_code,
    verify_user_link_token,
)
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.registration import dashboard_for
from app.schemas.user import UserPublic
from app.schemas.verification import EmailOnlyRequest, SendCodeResponse, VerifyCodeRequest, VerifyCodeResponse
from app.tasks.email_tasks import send_verification_email_task
from app.api.endpoints.auth import start_session

router = APIRouter(prefix="/auth", tags=["Email Verification"])
logger = logging.getLogger(__name__)


@router.post("/verify-code", response_model=VerifyCodeResponse)
def verify_code(
    payload: VerifyCodeRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Verify the code sent after registration and sign the user in.

    Raises:
        400: user not found, already verified, wrong code, or expired code
        403: the account is deactivated
    """
    user = verify_user_code(db, payload.email, payload.code)
    if not user.is_active:
        logger.info("Verified email for deactivated account; no session issued", extra={"user_id": user.id})
        raise PermissionDenied(DEACTIVATED_MESSAGE)
    start_session(request, response, sessions, user)

    logger.info(f"Email verified for user {user.id}")

    return VerifyCodeResponse(
        message=f"Email verified successfully! Welcome to {settings.AWS_SES_FROM_NAME}.",
        user=UserPublic.model_validate(user),
        redirect_to=dashboard_for(user.role),
    )


@router.get("/verify-email", response_model=MessageResponse)
def verify_email(token: str = Query(None), db: Session = Depends(get_db)):
    """Legacy verification link."""
    if not token:
        raise ValidationFailed("Verification token is required")

    verify_user_link_token(db, token)
    return MessageResponse(message="Email successfully verified! You can now log in to your account.")


@router.post("/send-registration-verification", response_model=SendCodeResponse)
def send_registration_verification(payload: EmailOnlyRequest, db: Session = Depends(get_db)):
    """
    Send a code to an address that has no account yet.

    Delivery is the whole point of this request, so a queueing failure is a 500.
    """
    verification = create_registration_verification(db, payload.email)

    queued = queue_task_safely(
        send_verification_email_task,
        to_email=verification.email,
        verification_code=verification.code,
        user_name=None,
    )
    if not queued:
        raise DeliveryFailed("Failed to send verification email")

    return SendCodeResponse(
        message="Verification code sent successfully",
        expires_in_minutes=settings.VERIFICATION_CODE_EXPIRE_MINUTES,
    )


@router.post("/verify-registration-code", response_model=MessageResponse)
def verify_registration(payload: VerifyCodeRequest, db: Session = Depends(get_db)):
    verify_registration_code(db, payload.email, payload.code)
    return MessageResponse(message="Email verified successfully")


@router.post("/resend-verification", response_model=SendCodeResponse)
def resend_verification(payload: EmailOnlyRequest, db: Session = Depends(get_db)):
    """
    Issue a fresh code (the old one stops working) and email it.

    Raises:
        404: no such user
        400: already verified
        500: the email could not be queued
    """
    user = db.query(User).filter(User.email == payload.email).first()
    if not user:
        raise NotFoundError("User not found")

    if user.is_email_verified:
        raise ValidationFailed("Email is already verified")

    code = issue_user_code(user)
    db.commit()

    queued = queue_task_safely(
        send_verification_email_task,
        to_email=user.email,
        verification_code=code,
        user_name=user.first_name,
    )
    if not queued:
        raise DeliveryFailed("Failed to send verification email")

    return SendCodeResponse(
        message="Verification email sent! Please check your email.",
        expires_in_minutes=settings.VERIFICATION_CODE_EXPIRE_MINUTES,
    )
