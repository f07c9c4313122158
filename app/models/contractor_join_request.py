"""
Pending request by an individual contractor to join an existing contractor company.

Created during registration; approval or rejection happens in the admin tooling.
"""

import enum
from sqlalchemy import Column, String, DateTime, Integer, Enum, ForeignKey, func
from app.core.database import Base
from app.models.user import PermissionLevel


class JoinRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ContractorJoinRequest(Base):
    __tablename__ = "contractor_join_requests"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    requested_company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    requested_permission_level = Column(
        Enum(PermissionLevel, native_enum=False, length=16),
        nullable=False,
        default=PermissionLevel.EDITOR,
    )
    message = Column(String, nullable=True)
    status = Column(
        Enum(JoinRequestStatus, native_enum=False, length=16),
        nullable=False,
        default=JoinRequestStatus.PENDING,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ContractorJoinRequest(user_id={self.user_id}, company_id={self.requested_company_id}, status={self.status})>"
