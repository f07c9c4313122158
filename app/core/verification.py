"""
Core email verification logic.

Two code lifecycles share the same 6-digit, 10-minute code:

- Post-account: the code lives on the user row (email_verification_token +
  verification_token_expiry) and is consumed by verify_user_code().
- Pre-account: the code lives in a RegistrationVerification row keyed by email,
  so a prospective company owner can prove the address before the account exists.
"""

import logging
import secrets
from datetime import timedelta
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError, ValidationFailed
from app.core.security import as_utc, constant_time_equals, is_expired, utcnow
from app.models.registration_verification import RegistrationVerification
from app.models.user import User

logger = logging.getLogger(__name__)

CODE_LENGTH = 6


def generate_verification_code() -> str:
    """
    Generate a 6-digit numeric code with cryptographic randomness.

    Returns:
        str: 6-digit numeric code (e.g., "123456")
    """
    return ''.join(secrets.choice('0123456789') for _ in range(CODE_LENGTH))


def _code_expiry():
    return utcnow() + timedelta(minutes=settings.VERIFICATION_CODE_EXPIRE_MINUTES)


# --- Post-account codes -----------------------------------------------------

def issue_user_code(user: User) -> str:
    """Set a fresh code on the user row (replacing any previous one). Caller commits."""
    code = generate_verification_code()
    user.email_verification_token = code
    user.verification_token_expiry = _code_expiry()
    return code


def mark_email_verified(user: User) -> None:
    user.is_email_verified = True
    user.email_verified_at = utcnow()
    user.email_verification_token = None
    user.verification_token_expiry = None


def verify_user_code(db: Session, email: str, code: str) -> User:
    """
    Consume a post-account verification code.

    Raises:
        NotFoundError (400): no such user
        ValidationFailed: already verified, code mismatch, or code expired
    """
    user = db.query(User).filter(User.email == email).first()
    if not user:
        raise NotFoundError("User not found", status_code=400)

    if user.is_email_verified:
        raise ValidationFailed("Email is already verified")

    if not constant_time_equals(code, user.email_verification_token):
        logger.info("Verification code mismatch", extra={"user_id": user.id})
        raise ValidationFailed("Invalid verification code")

    if is_expired(user.verification_token_expiry):
        logger.info("Verification code expired", extra={"user_id": user.id})
        raise ValidationFailed("Verification code has expired. Please request a new one.")

    mark_email_verified(user)
    db.commit()
    db.refresh(user)
    return user


def verify_user_link_token(db: Session, token: str) -> User:
    """
    Verify through the emailed link. Verifying clears the token, so a second
    click is rejected like an unknown token.

    Raises:
        ValidationFailed: unknown or expired token
    """
    user = db.query(User).filter(User.email_verification_token == token).first()
    if not user:
        raise ValidationFailed("Invalid or expired verification token")

    if is_expired(user.verification_token_expiry):
        raise ValidationFailed("Invalid or expired verification token")

    mark_email_verified(user)
    db.commit()
    return user


# --- Pre-account codes ------------------------------------------------------

def create_registration_verification(db: Session, email: str) -> RegistrationVerification:
    """
    Create (or replace) the pre-account verification record for an email.

    Raises:
        ConflictError: an account already uses this email
    """
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("User with this email already exists")

    verification = db.get(RegistrationVerification, email)
    if verification is None:
        verification = RegistrationVerification(email=email)
        db.add(verification)

    verification.code = generate_verification_code()
    verification.expires_at = _code_expiry()
    verification.created_at = utcnow()
    verification.attempts = 0
    verification.verified_at = None

    db.commit()
    db.refresh(verification)
    return verification


def verify_registration_code(db: Session, email: str, code: str) -> RegistrationVerification:
    """
    Check a pre-account code and mark the record verified.

    Raises:
        ValidationFailed: no pending record, expired, too many attempts, or wrong code
    """
    verification = db.get(RegistrationVerification, email)
    if verification is None:
        raise ValidationFailed("No pending verification found for this email")

    if verification.verified_at is not None:
        raise ValidationFailed("Email is already verified")

    if is_expired(verification.expires_at):
        raise ValidationFailed("Verification code has expired")

    verification.attempts += 1
    if verification.attempts > settings.VERIFICATION_MAX_ATTEMPTS:
        db.delete(verification)
        db.commit()
        raise ValidationFailed("Too many attempts. Please request a new code.")

    if not constant_time_equals(code, verification.code):
        db.commit()
        raise ValidationFailed("Invalid verification code")

    verification.verified_at = utcnow()

    # An account created meanwhile picks up the verification too
    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user and not existing_user.is_email_verified:
        mark_email_verified(existing_user)

    db.commit()
    db.refresh(verification)
    return verification


def has_verified_registration(db: Session, email: str) -> bool:
    verification = db.get(RegistrationVerification, email)
    if verification is None or verification.verified_at is None:
        return False
    valid_until = as_utc(verification.verified_at) + timedelta(hours=settings.REGISTRATION_VERIFICATION_VALID_HOURS)
    return valid_until > utcnow()


def consume_registration_verification(db: Session, email: str) -> None:
    """Delete the record once a registration has used it. Caller commits."""
    verification = db.get(RegistrationVerification, email)
    if verification is not None:
        db.delete(verification)


def cleanup_expired_registration_verifications(db: Session) -> int:
    """
    Delete pre-account records whose code expired unverified, or whose
    verification is older than the validity window.

    Returns:
        int: Number of records deleted
    """
    now = utcnow()
    stale_verified = now - timedelta(hours=settings.REGISTRATION_VERIFICATION_VALID_HOURS)

    unverified = db.query(RegistrationVerification).filter(
        RegistrationVerification.verified_at.is_(None),
        RegistrationVerification.expires_at < now,
    ).delete(synchronize_session=False)
    verified = db.query(RegistrationVerification).filter(
        RegistrationVerification.verified_at.isnot(None),
        RegistrationVerification.verified_at < stale_verified,
    ).delete(synchronize_session=False)

    db.commit()
    return unverified + verified
