"""
Portal error taxonomy.

Services raise these instead of HTTPException so the same code can be driven
from endpoints, Celery tasks and tests. main.py maps every PortalError to a
JSON body of the form {"detail": message} with the error's status code.
"""

from typing import Optional


class PortalError(Exception):
    """Base class for all errors that carry a client-facing message."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(PortalError):
    """Malformed input or a policy violation the user can correct."""

    status_code = 400


class ConflictError(PortalError):
    """Duplicate email, ambiguous company match and similar clashes."""

    status_code = 400


class NotFoundError(PortalError):
    """A referenced company or user does not exist."""

    status_code = 404


class AuthenticationRequired(PortalError):
    status_code = 401


class PermissionDenied(PortalError):
    """Valid identity, insufficient role, permission level or deactivated account."""

    status_code = 403


class DeliveryFailed(PortalError):
    """Email could not be queued when delivery is the whole point of the request."""

    status_code = 500


class ShortNameExhausted(PortalError):
    """No free company short name after the maximum number of candidates."""

    status_code = 400
