"""
Company model for participant organizations and contractor companies.

The short name is a unique namespace prefix used across the portal. Uniqueness
is enforced by the database; see app.services.companies for allocation.
"""

from sqlalchemy import Column, String, Boolean, DateTime, Integer, JSON, func
from app.core.database import Base

SHORT_NAME_MAX_LENGTH = 16


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    name = Column(String, nullable=False, index=True)
    short_name = Column(String(SHORT_NAME_MAX_LENGTH), unique=True, nullable=False, index=True)
    business_number = Column(String, nullable=True)
    website = Column(String, nullable=True)
    phone = Column(String, nullable=True)

    # Address
    street_address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    province = Column(String, nullable=True)
    country = Column(String, nullable=True)
    postal_code = Column(String, nullable=True)

    how_heard_about = Column(String, nullable=True)
    how_heard_about_other = Column(String, nullable=True)

    # Contractor companies
    is_contractor = Column(Boolean, default=False, nullable=False)
    service_regions = Column(JSON, nullable=True)
    supported_activities = Column(JSON, nullable=True)
    capital_retrofit_technologies = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Company(id={self.id}, short_name='{self.short_name}', is_contractor={self.is_contractor})>"
