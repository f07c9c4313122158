"""
Pre-account email verification record.

Keyed by email and independent of the login session: a prospective company
owner proves ownership of an address before the account exists. Each record is
time-limited, attempt-limited and consumed by the registration that uses it.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Integer, Index
from app.core.database import Base


class RegistrationVerification(Base):
    __tablename__ = "registration_verifications"

    email = Column(String, primary_key=True)

    # 6-digit verification code
    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    attempts = Column(Integer, nullable=False, default=0)
    verified_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('ix_registration_verifications_created_at', 'created_at'),
    )

    def __repr__(self):
        return f"<RegistrationVerification(email={self.email}, expires_at={self.expires_at}, verified={self.verified_at is not None})>"
