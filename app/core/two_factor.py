"""
TOTP (RFC 6238) two-factor authentication helpers.

Tokens are 6 digits on a 30 second step. A token is accepted within one step
of clock drift either way, and each accepted step is recorded on the user so
the same token cannot be replayed while it is still inside the window.
"""

import base64
import io
import logging
import re
import time
from typing import Optional
import pyotp
import qrcode

from app.core.config import settings
from app.core.encryption import get_secret_encryption
from app.core.security import constant_time_equals
from app.models.user import User

logger = logging.getLogger(__name__)

TOTP_DIGITS = 6
TOTP_INTERVAL = 30
TOTP_DRIFT_TOLERANCE = 1  # Accept codes from +/- this many time steps

_TOKEN_PATTERN = re.compile(r"^\d{6}$")


def generate_secret() -> str:
    """Random base32 secret for authenticator apps."""
    return pyotp.random_base32()


def provisioning_uri(secret: str, email: str) -> str:
    """otpauth:// URI scoped to the user's email."""
    return pyotp.TOTP(secret).provisioning_uri(name=email, issuer_name=settings.TOTP_ISSUER)


def qr_code_data_url(uri: str) -> str:
    """Render the provisioning URI as a PNG data URL for an <img> tag."""
    image = qrcode.make(uri)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def matched_step(secret: str, token: Optional[str], for_time: Optional[float] = None) -> Optional[int]:
    """
    Return the time step the token belongs to, or None if it matches none of
    the steps inside the drift window.
    """
    if not token:
        return None
    token = token.strip().replace(" ", "")
    if not _TOKEN_PATTERN.match(token):
        return None

    totp = pyotp.TOTP(secret, digits=TOTP_DIGITS, interval=TOTP_INTERVAL)
    now = time.time() if for_time is None else for_time
    current = int(now) // TOTP_INTERVAL

    for offset in range(-TOTP_DRIFT_TOLERANCE, TOTP_DRIFT_TOLERANCE + 1):
        step = current + offset
        if constant_time_equals(token, totp.generate_otp(step)):
            return step
    return None


def consume_token(user: User, secret: str, token: Optional[str], for_time: Optional[float] = None) -> bool:
    """
    Verify a token and mark its step used on the user. Caller commits.

    A token from a step at or before the last accepted one is a replay and fails.
    """
    step = matched_step(secret, token, for_time)
    if step is None:
        return False
    if user.two_factor_last_step is not None and step <= user.two_factor_last_step:
        logger.warning("Rejected replayed two-factor token", extra={"user_id": user.id})
        return False
    user.two_factor_last_step = step
    return True


def stored_secret(user: User) -> Optional[str]:
    if not user.two_factor_secret:
        return None
    return get_secret_encryption().decrypt(user.two_factor_secret)


def enable(user: User, secret: str) -> None:
    """Persist the confirmed secret. Caller commits."""
    user.two_factor_secret = get_secret_encryption().encrypt(secret)
    user.two_factor_enabled = True


def disable(user: User) -> None:
    user.two_factor_secret = None
    user.two_factor_enabled = False
    user.two_factor_last_step = None
