"""
Password hashing, password policy and small credential helpers.

New hashes are always bcrypt. Stored values that are not bcrypt are treated as
the legacy scrypt format "<hex digest>.<salt>" so existing accounts keep working
until their next successful login rewrites the hash.
"""

import hashlib
import hmac
import logging
import re
import secrets
from datetime import datetime, timezone
from typing import Optional
from passlib.context import CryptContext
from app.core.config import settings

logger = logging.getLogger(__name__)

# Password hashing context (bcrypt, fixed cost)
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# Legacy scrypt parameters (N=2^14, r=8, p=1, 64-byte key)
LEGACY_SCRYPT_N = 16384
LEGACY_SCRYPT_R = 8
LEGACY_SCRYPT_P = 1
LEGACY_KEY_LENGTH = 64
LEGACY_SEPARATOR = "."

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 64
PASSWORD_SYMBOLS = '!@#$%^&*(),.?":{}|<>'

# bcrypt silently ignores input past this many bytes
BCRYPT_MAX_BYTES = 72


def fits_bcrypt(password: str) -> bool:
    return len(password.encode("utf-8")) <= BCRYPT_MAX_BYTES


def _bcrypt_input(password: str) -> bytes:
    if not fits_bcrypt(password):
        raise ValueError(f"Password exceeds {BCRYPT_MAX_BYTES} bytes")
    return password.encode("utf-8")


def check_password_policy(password: str) -> str:
    """
    Validate a new password against the portal policy.

    Raises:
        ValueError: naming the first rule the password breaks
    """
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if len(password) > PASSWORD_MAX_LENGTH:
        raise ValueError(f"Password cannot exceed {PASSWORD_MAX_LENGTH} characters")
    if not fits_bcrypt(password):
        raise ValueError(f"Password cannot exceed {BCRYPT_MAX_BYTES} bytes")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"\d", password):
        raise ValueError("Password must contain at least one number")
    if not any(ch in PASSWORD_SYMBOLS for ch in password):
        raise ValueError(f"Password must contain at least one special character ({PASSWORD_SYMBOLS})")
    return password


def get_password_hash(password: str) -> str:
    """
    Hash a password with bcrypt. Never produces the legacy format.

    Raises:
        ValueError: the password is longer than bcrypt can hash in full
    """
    return pwd_context.hash(_bcrypt_input(password))


def is_current_hash(stored: str) -> bool:
    return pwd_context.identify(stored) == "bcrypt"


def needs_rehash(stored: str) -> bool:
    """True for legacy hashes and for bcrypt hashes with an outdated cost."""
    if not is_current_hash(stored):
        return True
    return pwd_context.needs_update(stored)


def _verify_legacy(plain_password: str, stored: str) -> bool:
    parts = stored.split(LEGACY_SEPARATOR)
    if len(parts) < 2 or not parts[1]:
        logger.info("Stored password is not in a recognized format")
        return False
    hashed, salt = parts[0], parts[1]

    expected = bytes.fromhex(hashed)
    supplied = hashlib.scrypt(
        plain_password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=LEGACY_SCRYPT_N,
        r=LEGACY_SCRYPT_R,
        p=LEGACY_SCRYPT_P,
        dklen=LEGACY_KEY_LENGTH,
    )
    return hmac.compare_digest(expected, supplied)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verify a plain password against a stored bcrypt or legacy scrypt hash.

    Fails closed: any comparison error returns False, including malformed
    hashes and passwords too long for bcrypt.
    """
    if not plain_password or not hashed_password:
        return False
    try:
        if is_current_hash(hashed_password):
            return pwd_context.verify(_bcrypt_input(plain_password), hashed_password)
        return _verify_legacy(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.warning(f"Password comparison failed: {type(e).__name__}")
        return False


def generate_reset_token() -> str:
    """Opaque URL-safe token for password reset links."""
    return secrets.token_urlsafe(32)


def constant_time_equals(supplied: Optional[str], expected: Optional[str]) -> bool:
    if not supplied or not expected:
        return False
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_expired(expires_at: Optional[datetime]) -> bool:
    """Missing expiry counts as expired."""
    if expires_at is None:
        return True
    return as_utc(expires_at) <= utcnow()
