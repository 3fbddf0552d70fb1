"""API for document numbering settings: counters, preview and reset."""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.audit import AuditAction, AuditService
from src.core.company.service import get_company
from src.core.database.session import get_db
from src.core.documents.models import DOC_PREFIXES, DocType, format_doc_number
from src.core.documents.number_generator import DocumentNumberService
from src.core.documents.schemas import (
    NumberingCounterResponse,
    NumberingPreviewResponse,
    NumberingResetRequest,
    NumberingResetResponse,
)
from src.shared.schemas.base import ApiResponse

router = APIRouter(prefix="/settings/numbering", tags=["Numbering"])


@router.get("", response_model=ApiResponse[list[NumberingCounterResponse]])
async def list_counters(
    year: int | None = Query(None, ge=1900, le=9999),
    db: AsyncSession = Depends(get_db),
):
    """Counters of every document type for a year (current year by default)."""
    company = await get_company(db)
    counters = await DocumentNumberService(db).list_counters(
        company.id, year or date.today().year
    )
    await db.commit()
    return ApiResponse(success=True, data=counters)


@router.get("/preview", response_model=ApiResponse[NumberingPreviewResponse])
async def preview_next_number(
    doc_type: DocType = Query(DocType.INVOICE),
    year: int | None = Query(None, ge=1900, le=9999),
    db: AsyncSession = Depends(get_db),
):
    """Preview the next number. Advisory only, nothing is reserved."""
    company = await get_company(db)
    year = year or date.today().year
    next_number = await DocumentNumberService(db).peek_next(company.id, doc_type, year)
    await db.commit()
    return ApiResponse(
        success=True,
        data=NumberingPreviewResponse(
            doc_type=doc_type,
            prefix=DOC_PREFIXES[doc_type],
            year=year,
            next_number=next_number,
            formatted=format_doc_number(doc_type, year, next_number),
        ),
    )


@router.patch("", response_model=ApiResponse[NumberingResetResponse])
async def reset_counter(
    data: NumberingResetRequest,
    db: AsyncSession = Depends(get_db),
):
    """Set a counter to an explicit value (data migration)."""
    company = await get_company(db)
    year = data.year or date.today().year
    service = DocumentNumberService(db)
    old_value = await service.current(company.id, data.doc_type, year)
    value = await service.reset_counter(company.id, data.doc_type, year, data.reset_to)

    await AuditService(db).log(
        action=AuditAction.RESET_COUNTER,
        entity_type="DocumentCounter",
        entity_id=company.id,
        company_id=company.id,
        entity_identifier=f"{DOC_PREFIXES[data.doc_type]}-{year}",
        old_values={"current_number": old_value},
        new_values={"current_number": value},
    )
    await db.commit()
    return ApiResponse(
        success=True,
        message="Counter updated",
        data=NumberingResetResponse(doc_type=data.doc_type, year=year, current_number=value),
    )
