"""
Per-application, per-user permission grant for contractor team members.

The application itself lives in the CRUD side of the portal; only its id is
needed here. permissions is a list drawn from {"view", "edit"}.
"""

import enum
from sqlalchemy import Column, String, Integer, DateTime, JSON, ForeignKey, UniqueConstraint, func
from app.core.database import Base


class AssignmentPermission(str, enum.Enum):
    VIEW = "view"
    EDIT = "edit"


class ApplicationAssignment(Base):
    __tablename__ = "application_assignments"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    application_id = Column(String, nullable=False, index=True)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    permissions = Column(JSON, nullable=False, default=list)
    assigned_by = Column(String(32), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("application_id", "user_id", name="uq_application_assignments_app_user"),
    )

    def __repr__(self):
        return f"<ApplicationAssignment(application_id={self.application_id}, user_id={self.user_id}, permissions={self.permissions})>"
