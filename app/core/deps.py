"""
FastAPI dependencies for authentication and authorization.

These dependencies are used to protect endpoints and extract user context.
The user is re-read from the database on every request, so a deactivation
takes effect on the user's very next call. Each authenticated request also
re-sends the session cookie, keeping its max-age in step with the sliding
server-side expiry.
"""

import logging
from typing import Optional
from fastapi import Depends, Request, Response
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import AuthenticationRequired, PermissionDenied
from app.core.permissions import Permission, Principal, principal_from_user, principal_has_permission
from app.core.sessions import SessionManager
from app.models.user import User

logger = logging.getLogger(__name__)

DEACTIVATED_MESSAGE = "Your account has been deactivated. Please contact support."


def get_session_manager(request: Request) -> SessionManager:
    """The manager is built once in the application lifespan."""
    return request.app.state.session_manager


def get_current_user(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
) -> User:
    """
    Resolve the session cookie to an active user.

    This dependency:
    1. Reads and verifies the signed session cookie
    2. Loads the session payload (sliding its expiry)
    3. Fetches the user from the database
    4. Ensures the user is active
    5. Re-sends the cookie with a fresh max-age

    Raises:
        AuthenticationRequired (401): no session, or the user no longer exists
        PermissionDenied (403): the account is deactivated
    """
    sid = sessions.sid_from_request(request)
    payload = sessions.get(sid)
    user_id = payload.get("userId") if payload else None
    if not user_id:
        raise AuthenticationRequired("Authentication required")

    user = db.get(User, user_id)
    if user is None:
        logger.info("Session references a missing user")
        raise AuthenticationRequired("User not found")

    if not user.is_active:
        logger.info("Rejected request from deactivated account", extra={"user_id": user.id})
        raise PermissionDenied(DEACTIVATED_MESSAGE)

    sessions.attach_cookie(response, sid)
    request.state.user = user
    return user


def get_optional_user(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
) -> Optional[User]:
    """Like get_current_user, but returns None instead of raising."""
    sid = sessions.sid_from_request(request)
    payload = sessions.get(sid)
    user_id = payload.get("userId") if payload else None
    if not user_id:
        return None

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        return None
    sessions.attach_cookie(response, sid)
    request.state.user = user
    return user


def get_current_principal(user: User = Depends(get_current_user)) -> Principal:
    return principal_from_user(user)


def require_permission(permission: Permission):
    """
    Dependency factory gating an endpoint on a role permission.

    Usage:
        @router.get("/team", dependencies=[Depends(require_permission(Permission.VIEW_TEAM_MEMBERS))])
    """
    def checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal_has_permission(principal, permission):
            raise PermissionDenied("Insufficient permissions")
        return principal

    return checker
