"""
Celery tasks for email operations.

Handles asynchronous email sending with retry logic. Request handlers never
talk to SES directly: they queue one of these tasks via queue_task_safely().
"""

import logging
from typing import Optional
from celery import shared_task
from app.services.email_service import email_service

logger = logging.getLogger(__name__)

_RETRY_OPTIONS = dict(
    bind=True,
    max_retries=3,
    default_retry_delay=60,  # Retry after 60 seconds
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=600,  # Max 10 minutes between retries
    retry_jitter=True,
)


@shared_task(name="send_verification_email_task", **_RETRY_OPTIONS)
def send_verification_email_task(
    self,
    to_email: str,
    verification_code: str,
    user_name: Optional[str] = None
):
    """
    Send a verification code email asynchronously.

    Features:
    - Automatic retry on failure (up to 3 attempts)
    - Exponential backoff with jitter

    Raises:
        Exception: If email sending fails after all retries
    """
    try:
        logger.info(f"Sending verification email to {to_email} (attempt {self.request.retries + 1})")

        success = email_service.send_verification_email(
            to_email=to_email,
            verification_code=verification_code,
            user_name=user_name
        )

        if not success:
            raise Exception(f"Failed to send verification email to {to_email}")

        return {"status": "success", "email": to_email}

    except Exception as e:
        logger.error(f"Error sending verification email to {to_email}: {str(e)}")

        if self.request.retries >= self.max_retries:
            logger.error(f"All retry attempts exhausted for {to_email}")

        raise  # Re-raise to trigger Celery retry


@shared_task(name="send_password_reset_email_task", **_RETRY_OPTIONS)
def send_password_reset_email_task(
    self,
    to_email: str,
    reset_token: str,
    user_name: Optional[str] = None
):
    """Send the password reset link asynchronously."""
    logger.info(f"Sending password reset email to {to_email} (attempt {self.request.retries + 1})")

    success = email_service.send_password_reset_email(
        to_email=to_email,
        reset_token=reset_token,
        user_name=user_name
    )
    if not success:
        raise Exception(f"Failed to send password reset email to {to_email}")

    return {"status": "success", "email": to_email}


@shared_task(name="send_team_member_pending_email_task", **_RETRY_OPTIONS)
def send_team_member_pending_email_task(
    self,
    to_email: str,
    company_name: str,
    user_name: Optional[str] = None
):
    logger.info(f"Sending pending-approval email to {to_email} (attempt {self.request.retries + 1})")

    success = email_service.send_team_member_pending_email(
        to_email=to_email,
        company_name=company_name,
        user_name=user_name
    )
    if not success:
        raise Exception(f"Failed to send pending-approval email to {to_email}")

    return {"status": "success", "email": to_email}
