"""API endpoints for Purchases module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.session import get_db
from src.core.documents.schemas import DocumentLineResponse
from src.modules.purchases.models import PurchaseInvoice, PurchaseInvoiceStatus
from src.modules.purchases.schemas import (
    BookPurchaseRequest,
    PurchaseInvoiceCreate,
    PurchaseInvoiceFilters,
    PurchaseInvoiceResponse,
    PurchaseInvoiceSummary,
    PurchaseInvoiceUpdate,
)
from src.modules.purchases.service import PurchaseService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/purchases", tags=["Purchases"])


def _purchase_to_response(purchase: PurchaseInvoice) -> PurchaseInvoiceResponse:
    return PurchaseInvoiceResponse(
        id=purchase.id,
        company_id=purchase.company_id,
        provider_id=purchase.provider_id,
        provider_name=purchase.provider.name if purchase.provider else None,
        provider_invoice_number=purchase.provider_invoice_number,
        status=purchase.status,
        number=purchase.number,
        year=purchase.year,
        formatted_number=purchase.formatted_number,
        issue_date=purchase.issue_date,
        due_date=purchase.due_date,
        currency=purchase.currency,
        subtotal_cents=purchase.subtotal_cents,
        tax_cents=purchase.tax_cents,
        total_cents=purchase.total_cents,
        paid_cents=purchase.paid_cents,
        amount_due_cents=purchase.amount_due_cents,
        notes=purchase.notes,
        lines=[DocumentLineResponse.model_validate(line) for line in purchase.lines],
    )


def _purchase_to_summary(purchase: PurchaseInvoice) -> PurchaseInvoiceSummary:
    return PurchaseInvoiceSummary(
        id=purchase.id,
        provider_id=purchase.provider_id,
        provider_name=purchase.provider.name if purchase.provider else None,
        provider_invoice_number=purchase.provider_invoice_number,
        status=purchase.status,
        formatted_number=purchase.formatted_number,
        total_cents=purchase.total_cents,
        issue_date=purchase.issue_date,
        due_date=purchase.due_date,
    )


@router.post(
    "", response_model=ApiResponse[PurchaseInvoiceResponse], status_code=status.HTTP_201_CREATED
)
async def create_purchase(data: PurchaseInvoiceCreate, db: AsyncSession = Depends(get_db)):
    """Register a draft purchase invoice."""
    purchase = await PurchaseService(db).create_purchase(data)
    return ApiResponse(
        success=True,
        message="Purchase invoice created successfully",
        data=_purchase_to_response(purchase),
    )


@router.get("", response_model=ApiResponse[PaginatedResponse[PurchaseInvoiceSummary]])
async def list_purchases(
    provider_id: int | None = Query(None),
    status: PurchaseInvoiceStatus | None = Query(None),
    year: int | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    filters = PurchaseInvoiceFilters(
        provider_id=provider_id, status=status, year=year, page=page, limit=limit
    )
    purchases, total = await PurchaseService(db).list_purchases(filters)
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[_purchase_to_summary(p) for p in purchases],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get("/{purchase_id}", response_model=ApiResponse[PurchaseInvoiceResponse])
async def get_purchase(purchase_id: int, db: AsyncSession = Depends(get_db)):
    purchase = await PurchaseService(db).get_purchase_by_id(purchase_id)
    return ApiResponse(success=True, data=_purchase_to_response(purchase))


@router.put("/{purchase_id}", response_model=ApiResponse[PurchaseInvoiceResponse])
async def update_purchase(
    purchase_id: int, data: PurchaseInvoiceUpdate, db: AsyncSession = Depends(get_db)
):
    purchase = await PurchaseService(db).update_purchase(purchase_id, data)
    return ApiResponse(
        success=True,
        message="Purchase invoice updated successfully",
        data=_purchase_to_response(purchase),
    )


@router.delete("/{purchase_id}", response_model=ApiResponse[None])
async def delete_purchase(purchase_id: int, db: AsyncSession = Depends(get_db)):
    await PurchaseService(db).delete_purchase(purchase_id)
    return ApiResponse(success=True, message="Purchase invoice deleted", data=None)


@router.post("/{purchase_id}/book", response_model=ApiResponse[PurchaseInvoiceResponse])
async def book_purchase(
    purchase_id: int,
    data: BookPurchaseRequest | None = None,
    db: AsyncSession = Depends(get_db),
):
    """Assign the next internal number and book the purchase invoice."""
    issue_date = data.issue_date if data else None
    purchase = await PurchaseService(db).book_purchase(purchase_id, issue_date)
    return ApiResponse(
        success=True,
        message=f"Purchase invoice booked as {purchase.formatted_number}",
        data=_purchase_to_response(purchase),
    )


@router.post("/{purchase_id}/pay", response_model=ApiResponse[PurchaseInvoiceResponse])
async def pay_purchase(purchase_id: int, db: AsyncSession = Depends(get_db)):
    purchase = await PurchaseService(db).pay_purchase(purchase_id)
    return ApiResponse(
        success=True,
        message="Purchase invoice paid",
        data=_purchase_to_response(purchase),
    )
