"""
Password reset and in-app password change.

Reset tokens are opaque, valid for one hour and single use: a successful reset
clears the token, so replaying the same link fails.
"""

import logging
from datetime import timedelta
from sqlalchemy.orm import Session

from app.core.celery_utils import queue_task_safely
from app.core.config import settings
from app.core.exceptions import ValidationFailed
from app.core.security import generate_reset_token, get_password_hash, is_expired, utcnow
from app.models.user import User
from app.tasks.email_tasks import send_password_reset_email_task

logger = logging.getLogger(__name__)

GENERIC_RESET_MESSAGE = "If an account exists, reset instructions have been sent"
INVALID_TOKEN_MESSAGE = "Invalid or expired reset token"


def request_reset(db: Session, email: str) -> str:
    """
    Issue a reset token and queue the email. The return value is always the
    generic message, whether or not the account exists.
    """
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        logger.info("Password reset requested for unknown email")
        return GENERIC_RESET_MESSAGE

    user.reset_token = generate_reset_token()
    user.reset_token_expires_at = utcnow() + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    db.commit()

    queued = queue_task_safely(
        send_password_reset_email_task,
        to_email=user.email,
        reset_token=user.reset_token,
        user_name=user.first_name,
    )
    if not queued:
        logger.error("Failed to queue password reset email", extra={"user_id": user.id})

    return GENERIC_RESET_MESSAGE


def reset_with_token(db: Session, token: str, new_password: str) -> User:
    """
    Consume a reset token and set the new password.

    Raises:
        ValidationFailed: unknown, already used or expired token
    """
    user = db.query(User).filter(User.reset_token == token).first()
    if user is None:
        raise ValidationFailed(INVALID_TOKEN_MESSAGE)

    if is_expired(user.reset_token_expires_at):
        user.reset_token = None
        user.reset_token_expires_at = None
        db.commit()
        raise ValidationFailed(INVALID_TOKEN_MESSAGE)

    user.hashed_password = get_password_hash(new_password)
    user.reset_token = None
    user.reset_token_expires_at = None
    db.commit()

    logger.info("Password reset completed", extra={"user_id": user.id})
    return user


def change_password(db: Session, user: User, new_password: str) -> User:
    """In-app change for an authenticated user. Any outstanding reset link dies too."""
    user.hashed_password = get_password_hash(new_password)
    user.reset_token = None
    user.reset_token_expires_at = None
    db.commit()

    logger.info("Password changed", extra={"user_id": user.id})
    return user


def clear_expired_reset_tokens(db: Session) -> int:
    cleared = db.query(User).filter(
        User.reset_token.isnot(None),
        User.reset_token_expires_at < utcnow(),
    ).update(
        {User.reset_token: None, User.reset_token_expires_at: None},
        synchronize_session=False,
    )
    db.commit()
    return cleared
