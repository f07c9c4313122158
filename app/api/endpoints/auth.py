"""
Authentication endpoints for registration, login and session lifecycle.

Implements cookie-based server-side sessions:
- POST /register: Create a new account along one of the registration paths
- POST /login: Authenticate and receive a session cookie
- POST /logout: Destroy the session and clear the cookie
- GET /user: Current user profile
- PATCH /profile: Update first/last name
- POST /request-reset: Email a single-use password reset link
- POST /reset-password: Complete a reset link, or change password in-app
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from app.core import two_factor
from app.core.database import get_db
from app.core.deps import DEACTIVATED_MESSAGE, get_current_user, get_optional_user, get_session_manager
from app.core.exceptions import AuthenticationRequired, PermissionDenied
from app.core.security import fits_bcrypt, get_password_hash, needs_rehash, utcnow, verify_password
from app.core.sessions import SessionManager
from app.models.user import User, UserRole
from app.schemas.common import MessageResponse
from app.schemas.registration import RegistrationRequest, RegistrationResponse, dashboard_for
from app.schemas.user import (
    LoginRequest,
    LoginResponse,
    PasswordResetRequest,
    ProfileUpdateRequest,
    ResetPasswordRequest,
    UserPublic,
)
from app.services import password_reset, registration

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


def start_session(request: Request, response: Response, sessions: SessionManager, user: User) -> None:
    """Issue a fresh session id for the user and set the cookie."""
    sid = sessions.regenerate(sessions.sid_from_request(request), user.id)
    sessions.attach_cookie(response, sid)


@router.post("/register", status_code=201, response_model=RegistrationResponse, response_model_exclude_none=True)
def register(
    payload: RegistrationRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Register a new account.

    The accountType field selects the path; see app.services.registration.
    Company owners and contractor companies are signed in immediately; every
    other path returns without a session.
    """
    result = registration.register(db, payload.root)

    if result.start_session:
        start_session(request, response, sessions, result.user)
        logger.info(f"Session started for new user {result.user.id}")

    return RegistrationResponse(
        message=result.message,
        user=UserPublic.model_validate(result.user),
        requires_email_verification=result.requires_email_verification,
        email=result.user.email if result.requires_email_verification else None,
        is_pending=result.is_pending,
        is_join_request=result.is_join_request,
        redirect_to=result.redirect_to,
    )


@router.post("/login", response_model=LoginResponse, response_model_exclude_none=True)
def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Authenticate with email and password (plus a TOTP token when two-factor is on).

    A legacy scrypt hash is upgraded to bcrypt on the first successful login.
    Updates last_login_at and regenerates the session id.
    """
    user = db.query(User).filter(User.email == payload.email).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise AuthenticationRequired(INVALID_CREDENTIALS_MESSAGE)

    if not user.is_active:
        raise PermissionDenied(DEACTIVATED_MESSAGE)

    # Contractor companies sign in without an email gate
    if not user.is_email_verified and user.role != UserRole.CONTRACTOR_ACCOUNT_OWNER:
        raise PermissionDenied("Please verify your email address before signing in")

    # Legacy passwords too long for bcrypt stay on scrypt
    if needs_rehash(user.hashed_password) and fits_bcrypt(payload.password):
        user.hashed_password = get_password_hash(payload.password)
        logger.info(f"Upgraded password hash for user {user.id}")

    if user.two_factor_enabled:
        if not payload.two_factor_token:
            db.commit()
            return LoginResponse(message="Two-factor authentication code required", requires_two_factor=True)

        if not two_factor.consume_token(user, two_factor.stored_secret(user), payload.two_factor_token):
            db.commit()
            raise AuthenticationRequired("Invalid two-factor authentication code")

    user.last_login_at = utcnow()
    db.commit()
    db.refresh(user)

    start_session(request, response, sessions, user)
    logger.info(f"User logged in: {user.id}")

    return LoginResponse(
        message="Login successful",
        user=UserPublic.model_validate(user),
        redirect_to=dashboard_for(user.role),
    )


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    sessions: SessionManager = Depends(get_session_manager),
):
    """Destroy the server-side session and clear the cookie. Safe to call when signed out."""
    sessions.destroy(sessions.sid_from_request(request))
    sessions.clear_cookie(response)
    return MessageResponse(message="Logged out successfully")


@router.get("/user", response_model=UserPublic)
def get_user(current_user: User = Depends(get_current_user)):
    return UserPublic.model_validate(current_user)


@router.patch("/profile", response_model=UserPublic)
def update_profile(
    payload: ProfileUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    current_user.first_name = payload.first_name
    current_user.last_name = payload.last_name
    db.commit()
    db.refresh(current_user)
    return UserPublic.model_validate(current_user)


@router.post("/request-reset", response_model=MessageResponse)
def request_reset(payload: PasswordResetRequest, db: Session = Depends(get_db)):
    """
    Start a password reset.

    The response never reveals whether the email belongs to an account.
    """
    return MessageResponse(message=password_reset.request_reset(db, payload.email))


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    payload: ResetPasswordRequest,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    """
    Set a new password.

    - With a token: completes an emailed reset link (single use, 1 hour).
    - Without a token: changes the password of the signed-in user.
    """
    if payload.token:
        password_reset.reset_with_token(db, payload.token, payload.new_password)
    elif current_user is not None:
        password_reset.change_password(db, current_user, payload.new_password)
    else:
        raise AuthenticationRequired("Authentication required")

    return MessageResponse(message="Password updated successfully")
