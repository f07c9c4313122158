"""
Durable server-side session row.

sid is the random session id carried (signed) in the session cookie, sess is
the small JSON payload ({"userId": ...}) and expire drives pruning.
"""

from sqlalchemy import Column, String, DateTime, JSON, Index
from app.core.database import Base


class UserSession(Base):
    __tablename__ = "user_sessions"

    sid = Column(String, primary_key=True)
    sess = Column(JSON, nullable=False)
    expire = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index('IDX_session_expire', 'expire'),
    )

    def __repr__(self):
        return f"<UserSession(sid=..., expire={self.expire})>"
