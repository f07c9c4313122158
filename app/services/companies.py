"""
Company creation with unique short-name allocation.

A short name is derived from a base (the company name for contractors, the
requested short name for company owners). On collision the base is truncated
and suffixed with a counter: BASE, BASE[:5]+2 .. BASE[:5]+9, BASE[:4]+10 ..
BASE[:4]+100. That is 100 candidates in total, after which allocation gives up.

The pre-check is only a fast path. The unique constraint on
companies.short_name decides, and a constraint violation on insert simply moves
on to the next candidate.
"""

import logging
import re
from typing import Iterator, List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, NotFoundError, ShortNameExhausted, ValidationFailed
from app.models.company import Company, SHORT_NAME_MAX_LENGTH

logger = logging.getLogger(__name__)

MAX_SHORT_NAME_ATTEMPTS = 100
DERIVED_SHORT_NAME_LENGTH = 6


def short_name_from_company_name(company_name: str) -> str:
    """First 6 alphanumeric characters of the name, uppercased."""
    base = re.sub(r"[^A-Za-z0-9]", "", company_name or "").upper()[:DERIVED_SHORT_NAME_LENGTH]
    if not base:
        raise ValidationFailed("Company name must contain at least one letter or digit")
    return base


def short_name_candidates(base: str) -> Iterator[str]:
    """Yield the base followed by the counter-suffixed fallbacks, 100 names in total."""
    yield base[:SHORT_NAME_MAX_LENGTH]
    for counter in range(2, MAX_SHORT_NAME_ATTEMPTS + 1):
        if counter <= 9:
            yield f"{base[:5]}{counter}"
        else:
            yield f"{base[:4]}{counter}"


def _short_name_taken(db: Session, candidate: str) -> bool:
    return db.query(Company.id).filter(Company.short_name == candidate).first() is not None


def create_company(db: Session, short_name_base: str, **fields) -> Company:
    """
    Insert a company under the first free short name. Caller commits.

    Raises:
        ShortNameExhausted: all 100 candidates are taken
    """
    for candidate in short_name_candidates(short_name_base):
        if _short_name_taken(db, candidate):
            continue

        company = Company(short_name=candidate, **fields)
        try:
            with db.begin_nested():
                db.add(company)
                db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration; try the next candidate
            logger.info(f"Short name {candidate} claimed concurrently, trying next candidate")
            continue

        logger.info(f"Allocated short name {candidate} for company '{company.name}'")
        return company

    logger.warning(f"Short name allocation exhausted for base '{short_name_base}'")
    raise ShortNameExhausted("Unable to generate unique company identifier. Please contact support.")


def find_company_by_exact_name(db: Session, name: str) -> Company:
    """
    Raises:
        NotFoundError (400): no company has this exact name
        ConflictError: more than one company has this exact name
    """
    matches: List[Company] = db.query(Company).filter(Company.name == name).limit(2).all()
    if not matches:
        raise NotFoundError(
            "Company not found. Please verify the exact company name or contact your company administrator.",
            status_code=400,
        )
    if len(matches) > 1:
        raise ConflictError(
            "More than one company matches this name. Please contact your company administrator."
        )
    return matches[0]
