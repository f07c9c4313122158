"""
Account registration.

register() dispatches on the request variant chosen by the client's
accountType. Every path hashes the password before anything is persisted and
logs which path ran and which validation rejected the request.

Paths:
- team_member: join an existing company (matched by exact name), pending approval
- contractor_join: request to join an existing contractor company, inactive until approved
- contractor_company: create a contractor company and sign in immediately
- company_owner: create a participant company after pre-account email verification
- standard: plain account that must verify its email before it can sign in
"""

import logging
from dataclasses import dataclass
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.celery_utils import queue_task_safely
from app.core.exceptions import ConflictError, NotFoundError, ValidationFailed
from app.core.security import get_password_hash, utcnow
from app.core.verification import consume_registration_verification, has_verified_registration, issue_user_code
from app.models.company import Company
from app.models.contractor_join_request import ContractorJoinRequest, JoinRequestStatus
from app.models.user import PermissionLevel, User, UserRole
from app.schemas.registration import (
    CompanyOwnerRegistration,
    ContractorCompanyRegistration,
    ContractorJoinRegistration,
    StandardRegistration,
    TeamMemberRegistration,
)
from app.services import companies
from app.tasks.email_tasks import send_team_member_pending_email_task, send_verification_email_task

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "User with this email already exists"


@dataclass
class RegistrationResult:
    user: User
    message: str
    start_session: bool = False
    is_pending: bool = False
    is_join_request: bool = False
    requires_email_verification: bool = False
    redirect_to: Optional[str] = None


# --- shared steps ------------------------------------------------------------

def email_taken(db: Session, email: str) -> bool:
    return db.query(User.id).filter(User.email == email).first() is not None


def _new_user(payload, **fields) -> User:
    return User(
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        business_mobile=payload.business_mobile or None,
        **fields,
    )


def _persist_user(db: Session, user: User) -> None:
    """
    Insert the user. The unique index on users.email is the final word on
    duplicates, so two concurrent registrations cannot both succeed.
    """
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.info("Registration rejected: email already registered (constraint)")
        raise ConflictError(DUPLICATE_EMAIL_MESSAGE)


def _reject(branch: str, reason: str, exc_type=ValidationFailed, message: Optional[str] = None):
    logger.info("Registration rejected", extra={"branch": branch, "reason": reason})
    raise exc_type(message or reason)


def _require_fields(branch: str, payload, names, message: str) -> None:
    missing = [name for name in names if not (getattr(payload, name) or "").strip()]
    if missing:
        logger.info("Registration rejected: missing fields", extra={"branch": branch, "missing": missing})
        raise ValidationFailed(message)


def _dispatch(task, **kwargs) -> bool:
    """Best-effort email: the account already exists, so a queue failure is only logged."""
    queued = queue_task_safely(task, **kwargs)
    if not queued:
        logger.warning(f"Could not queue {task.name}; continuing without email", extra={"to_email": kwargs.get("to_email")})
    return queued


# --- paths -------------------------------------------------------------------

def _register_team_member(db: Session, payload: TeamMemberRegistration) -> RegistrationResult:
    company = companies.find_company_by_exact_name(db, payload.company_name.strip())

    user = _new_user(
        payload,
        role=UserRole.TEAM_MEMBER,
        permission_level=PermissionLevel.EDITOR,
        company_id=company.id,
        # Approval is administrative, not email based
        is_email_verified=True,
        email_verified_at=utcnow(),
    )
    _persist_user(db, user)
    db.commit()
    db.refresh(user)

    _dispatch(
        send_team_member_pending_email_task,
        to_email=user.email,
        company_name=company.name,
        user_name=user.first_name,
    )

    return RegistrationResult(
        user=user,
        message=(
            "Registration submitted successfully! Your request is pending approval from your "
            "company administrator. You will receive an email confirmation once approved."
        ),
        is_pending=True,
    )


def _register_contractor_join(db: Session, payload: ContractorJoinRegistration) -> RegistrationResult:
    company = db.get(Company, payload.selected_company_id)
    if company is None or not company.is_contractor:
        _reject("contractor_join", "unknown contractor company", NotFoundError, "Contractor company not found")

    user = _new_user(
        payload,
        role=UserRole.CONTRACTOR_INDIVIDUAL,
        permission_level=PermissionLevel.EDITOR,
        company_id=None,  # Set when the join request is approved
        is_active=False,
        hear_about_us=payload.how_heard_about,
        hear_about_us_other=payload.how_heard_about_other,
    )
    _persist_user(db, user)

    db.add(ContractorJoinRequest(
        user_id=user.id,
        requested_company_id=company.id,
        requested_permission_level=payload.requested_permission_level,
        message=f"{user.first_name} {user.last_name} is requesting to join your contractor team.",
        status=JoinRequestStatus.PENDING,
    ))
    db.commit()
    db.refresh(user)

    return RegistrationResult(
        user=user,
        message=(
            "Join request submitted successfully! Your request is pending approval from the "
            "contractor company administrator. You will receive an email confirmation once approved."
        ),
        is_pending=True,
        is_join_request=True,
    )


def _register_contractor_company(db: Session, payload: ContractorCompanyRegistration) -> RegistrationResult:
    branch = "contractor_company"
    _require_fields(
        branch, payload,
        ("company_name", "street_address", "city", "province", "country"),
        "All business information fields are required for contractor registration",
    )
    agreements = (
        payload.has_code_of_conduct_agreement,
        payload.has_terms_of_service_agreement,
        payload.has_privacy_policy_agreement,
        payload.has_data_sharing_agreement,
    )
    if not all(agreements):
        _reject(branch, "agreements missing",
                message="You must agree to all terms and conditions to register as a contractor")

    base = companies.short_name_from_company_name(payload.company_name)

    user = _new_user(payload, role=UserRole.CONTRACTOR_ACCOUNT_OWNER, permission_level=PermissionLevel.EDITOR)
    code = issue_user_code(user)
    _persist_user(db, user)

    company = companies.create_company(
        db,
        base,
        name=payload.company_name.strip(),
        business_number=payload.business_number or None,
        website=payload.website or None,
        phone=payload.phone or None,
        street_address=payload.street_address,
        city=payload.city,
        province=payload.province,
        country=payload.country,
        postal_code=payload.postal_code or None,
        is_contractor=True,
        service_regions=payload.service_regions,
        supported_activities=payload.supported_activities,
        capital_retrofit_technologies=payload.capital_retrofit_technologies,
    )
    user.company_id = company.id
    db.commit()
    db.refresh(user)

    logger.info(
        f"Created contractor company {company.short_name}",
        extra={"branch": branch, "contractor_type": payload.contractor_type, "user_id": user.id},
    )

    _dispatch(send_verification_email_task, to_email=user.email, verification_code=code, user_name=user.first_name)

    return RegistrationResult(
        user=user,
        message="Registration successful! Welcome to your contractor dashboard.",
        start_session=True,
        redirect_to="/contractor-dashboard",
    )


def _register_company_owner(db: Session, payload: CompanyOwnerRegistration) -> RegistrationResult:
    branch = "company_owner"
    if not has_verified_registration(db, payload.email):
        _reject(branch, "email not verified",
                message="Email verification is required for company owner registration")

    _require_fields(
        branch, payload,
        ("company_name", "company_short_name", "business_number", "street_address",
         "city", "province", "country", "postal_code", "how_heard_about"),
        "All business information fields are required for company owners",
    )
    if not (payload.agree_to_portal_services and payload.agree_to_business_info and payload.agree_to_contact):
        _reject(branch, "agreements missing",
                message="You must agree to all terms and conditions to register as a company owner")

    now = utcnow()
    user = _new_user(
        payload,
        role=UserRole.COMPANY_ADMIN,
        permission_level=PermissionLevel.OWNER,
        is_email_verified=True,
        email_verified_at=now,
        hear_about_us=payload.how_heard_about,
        hear_about_us_other=payload.how_heard_about_other if payload.how_heard_about == "other" else None,
    )
    _persist_user(db, user)

    company = companies.create_company(
        db,
        payload.company_short_name.strip(),
        name=payload.company_name.strip(),
        business_number=payload.business_number,
        website=payload.company_website or None,
        street_address=payload.street_address,
        city=payload.city,
        province=payload.province,
        country=payload.country,
        postal_code=payload.postal_code,
        how_heard_about=payload.how_heard_about,
        how_heard_about_other=payload.how_heard_about_other if payload.how_heard_about == "other" else None,
    )
    user.company_id = company.id
    consume_registration_verification(db, payload.email)
    db.commit()
    db.refresh(user)

    logger.info(f"Created company {company.short_name}", extra={"branch": branch, "user_id": user.id})

    return RegistrationResult(
        user=user,
        message="Registration successful! Welcome to your dashboard.",
        start_session=True,
        redirect_to="/",
    )


def _register_standard(db: Session, payload: StandardRegistration) -> RegistrationResult:
    user = _new_user(payload, role=UserRole(payload.role), permission_level=PermissionLevel.EDITOR)
    code = issue_user_code(user)
    _persist_user(db, user)
    db.commit()
    db.refresh(user)

    _dispatch(send_verification_email_task, to_email=user.email, verification_code=code, user_name=user.first_name)

    return RegistrationResult(
        user=user,
        message="Registration successful! Please check your email for the verification code.",
        requires_email_verification=True,
    )


_PATHS = {
    TeamMemberRegistration: ("team_member", _register_team_member),
    ContractorJoinRegistration: ("contractor_join", _register_contractor_join),
    ContractorCompanyRegistration: ("contractor_company", _register_contractor_company),
    CompanyOwnerRegistration: ("company_owner", _register_company_owner),
    StandardRegistration: ("standard", _register_standard),
}


def register(db: Session, payload) -> RegistrationResult:
    """
    Create an account along the path selected by the request variant.

    Raises:
        ValidationFailed, ConflictError, NotFoundError, ShortNameExhausted
    """
    branch, handler = _PATHS[type(payload)]
    logger.info("Registration path selected", extra={"branch": branch, "email": payload.email})

    if email_taken(db, payload.email):
        _reject(branch, "email already registered", ConflictError, DUPLICATE_EMAIL_MESSAGE)

    try:
        return handler(db, payload)
    except Exception:
        db.rollback()
        raise
