"""
User model for authentication and company scoping.

A user belongs to at most one company through company_id. Team-scoped roles
(team_member and the contractor roles) are functionally inert until company_id
is set; removal from a company nulls company_id and keeps the account.
"""

import enum
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Enum, ForeignKey, func
from sqlalchemy.orm import relationship
from app.core.database import Base


class UserRole(str, enum.Enum):
    """
    Coarse account role.

    - COMPANY_ADMIN: owner of a participant company
    - TEAM_MEMBER: member of a participant company, refined by permission level
    - CONTRACTOR_*: members of a contractor company
    - SYSTEM_ADMIN: portal operator
    """
    COMPANY_ADMIN = "company_admin"
    TEAM_MEMBER = "team_member"
    CONTRACTOR_ACCOUNT_OWNER = "contractor_account_owner"
    CONTRACTOR_INDIVIDUAL = "contractor_individual"
    CONTRACTOR_MANAGER = "contractor_manager"
    CONTRACTOR_TEAM_MEMBER = "contractor_team_member"
    SYSTEM_ADMIN = "system_admin"

    @property
    def is_contractor(self) -> bool:
        return self.value.startswith("contractor_")


class PermissionLevel(str, enum.Enum):
    """Ordered clearance for team-scoped roles: viewer < editor < manager < owner."""
    VIEWER = "viewer"
    EDITOR = "editor"
    MANAGER = "manager"
    OWNER = "owner"

    @property
    def rank(self) -> int:
        return list(PermissionLevel).index(self)


def _new_user_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=_new_user_id, index=True)

    # Authentication credentials (email unique as stored, case-sensitive)
    email = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)

    # Profile
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    business_mobile = Column(String, nullable=True)
    hear_about_us = Column(String, nullable=True)
    hear_about_us_other = Column(String, nullable=True)

    # Authorization
    role = Column(Enum(UserRole, native_enum=False, length=32), nullable=False, default=UserRole.TEAM_MEMBER)
    permission_level = Column(Enum(PermissionLevel, native_enum=False, length=16), nullable=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"), nullable=True, index=True)

    # Account status
    is_active = Column(Boolean, default=True, nullable=False)

    # Email verification (post-account 6-digit code)
    is_email_verified = Column(Boolean, default=False, nullable=False)
    email_verified_at = Column(DateTime(timezone=True), nullable=True)
    email_verification_token = Column(String, nullable=True, index=True)
    verification_token_expiry = Column(DateTime(timezone=True), nullable=True)

    # Password reset (single-use)
    reset_token = Column(String, nullable=True, unique=True, index=True)
    reset_token_expires_at = Column(DateTime(timezone=True), nullable=True)

    # Two-factor authentication
    two_factor_secret = Column(String, nullable=True)  # Fernet-encrypted when ENCRYPTION_KEY is set
    two_factor_enabled = Column(Boolean, default=False, nullable=False)
    two_factor_last_step = Column(Integer, nullable=True)  # Last consumed TOTP time step

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    company = relationship("Company")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part) or self.email

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
