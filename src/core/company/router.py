"""API for company settings."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.company.models import Company
from src.core.company.schemas import CompanyResponse, CompanyUpdate
from src.core.company.service import get_company, update_company
from src.core.database.session import get_db
from src.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/settings/company", tags=["Company Settings"])


def _to_response(row: Company) -> CompanyResponse:
    return CompanyResponse(
        id=row.id,
        legal_name=row.legal_name,
        trade_name=row.trade_name or "",
        tax_id=row.tax_id or "",
        email=row.email or "",
        phone=row.phone or "",
        address=row.address or "",
        bank_iban=row.bank_iban or "",
        country=row.country,
        currency=row.currency,
        default_payment_terms_days=row.default_payment_terms_days,
    )


@router.get("", response_model=ApiResponse[CompanyResponse])
async def get_settings(db: AsyncSession = Depends(get_db)):
    """Get company settings (created from defaults on first call)."""
    row = await get_company(db)
    await db.commit()
    return ApiResponse(success=True, data=_to_response(row))


@router.put("", response_model=ApiResponse[CompanyResponse])
async def put_settings(data: CompanyUpdate, db: AsyncSession = Depends(get_db)):
    """Update company settings."""
    row = await update_company(db, data)
    await db.commit()
    return ApiResponse(success=True, message="Company settings updated", data=_to_response(row))
