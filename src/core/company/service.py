"""Service for the company row (single tenant)."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.company.models import Company
from src.core.company.schemas import CompanyUpdate
from src.core.config import settings
from src.core.exceptions import NotFoundError

logger = logging.getLogger(__name__)


async def get_company(db: AsyncSession) -> Company:
    """Get the single company row; create it from settings defaults if missing."""
    result = await db.execute(select(Company).order_by(Company.id).limit(1))
    row = result.scalar_one_or_none()
    if row is None:
        row = Company(
            **settings.company_defaults,
            phone="",
            address="",
            default_payment_terms_days=settings.default_payment_terms_days,
        )
        db.add(row)
        await db.flush()
        await db.refresh(row)
        logger.info("Created company row id=%s from settings defaults", row.id)
    return row


async def get_company_by_id(db: AsyncSession, company_id: int) -> Company:
    """Get company by ID or raise NotFoundError."""
    result = await db.execute(select(Company).where(Company.id == company_id))
    company = result.scalar_one_or_none()
    if company is None:
        raise NotFoundError("Company", company_id)
    return company


async def update_company(db: AsyncSession, data: CompanyUpdate) -> Company:
    """Update company settings (only provided fields)."""
    row = await get_company(db)
    update = data.model_dump(exclude_unset=True)
    for key, value in update.items():
        if value is None and key in ("legal_name", "country", "currency", "default_payment_terms_days"):
            continue
        setattr(row, key, value)
    await db.flush()
    await db.refresh(row)
    return row
