"""API endpoints for Invoices module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.session import get_db
from src.core.documents.schemas import DocumentLineResponse
from src.modules.invoices.models import Invoice, InvoiceStatus, InvoiceType
from src.modules.invoices.schemas import (
    InvoiceCreate,
    InvoiceFilters,
    InvoiceResponse,
    InvoiceSummary,
    InvoiceUpdate,
    RecordPaymentRequest,
)
from src.modules.invoices.service import InvoiceService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/invoices", tags=["Invoices"])


def _invoice_to_response(invoice: Invoice) -> InvoiceResponse:
    """Convert Invoice model to response schema."""
    return InvoiceResponse(
        id=invoice.id,
        company_id=invoice.company_id,
        client_id=invoice.client_id,
        client_name=invoice.client.name if invoice.client else None,
        invoice_type=invoice.invoice_type,
        status=invoice.status,
        number=invoice.number,
        year=invoice.year,
        formatted_number=invoice.formatted_number,
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        currency=invoice.currency,
        subtotal_cents=invoice.subtotal_cents,
        tax_cents=invoice.tax_cents,
        total_cents=invoice.total_cents,
        paid_cents=invoice.paid_cents,
        amount_due_cents=invoice.amount_due_cents,
        notes=invoice.notes,
        public_notes=invoice.public_notes,
        source_quote_id=invoice.source_quote_id,
        rectified_invoice_id=invoice.rectified_invoice_id,
        lines=[DocumentLineResponse.model_validate(line) for line in invoice.lines],
    )


def _invoice_to_summary(invoice: Invoice) -> InvoiceSummary:
    """Convert Invoice model to summary schema."""
    return InvoiceSummary(
        id=invoice.id,
        client_id=invoice.client_id,
        client_name=invoice.client.name if invoice.client else None,
        invoice_type=invoice.invoice_type,
        status=invoice.status,
        formatted_number=invoice.formatted_number,
        total_cents=invoice.total_cents,
        paid_cents=invoice.paid_cents,
        amount_due_cents=invoice.amount_due_cents,
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
    )


@router.post("", response_model=ApiResponse[InvoiceResponse], status_code=status.HTTP_201_CREATED)
async def create_invoice(data: InvoiceCreate, db: AsyncSession = Depends(get_db)):
    """Create a draft invoice or credit note."""
    invoice = await InvoiceService(db).create_invoice(data)
    return ApiResponse(
        success=True,
        message="Invoice created successfully",
        data=_invoice_to_response(invoice),
    )


@router.get("", response_model=ApiResponse[PaginatedResponse[InvoiceSummary]])
async def list_invoices(
    client_id: int | None = Query(None),
    invoice_type: InvoiceType | None = Query(None),
    status: InvoiceStatus | None = Query(None),
    year: int | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List invoices with filters."""
    filters = InvoiceFilters(
        client_id=client_id,
        invoice_type=invoice_type,
        status=status,
        year=year,
        page=page,
        limit=limit,
    )
    invoices, total = await InvoiceService(db).list_invoices(filters)
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[_invoice_to_summary(inv) for inv in invoices],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get("/{invoice_id}", response_model=ApiResponse[InvoiceResponse])
async def get_invoice(invoice_id: int, db: AsyncSession = Depends(get_db)):
    """Get invoice by ID with all lines."""
    invoice = await InvoiceService(db).get_invoice_by_id(invoice_id)
    return ApiResponse(success=True, data=_invoice_to_response(invoice))


@router.put("/{invoice_id}", response_model=ApiResponse[InvoiceResponse])
async def update_invoice(
    invoice_id: int, data: InvoiceUpdate, db: AsyncSession = Depends(get_db)
):
    """Update a draft invoice."""
    invoice = await InvoiceService(db).update_invoice(invoice_id, data)
    return ApiResponse(
        success=True,
        message="Invoice updated successfully",
        data=_invoice_to_response(invoice),
    )


@router.delete("/{invoice_id}", response_model=ApiResponse[None])
async def delete_invoice(invoice_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a draft invoice."""
    await InvoiceService(db).delete_invoice(invoice_id)
    return ApiResponse(success=True, message="Invoice deleted", data=None)


@router.post("/{invoice_id}/emit", response_model=ApiResponse[InvoiceResponse])
async def emit_invoice(invoice_id: int, db: AsyncSession = Depends(get_db)):
    """Assign the next number and move the draft to issued."""
    invoice = await InvoiceService(db).emit_invoice(invoice_id)
    return ApiResponse(
        success=True,
        message=f"Invoice {invoice.formatted_number} issued",
        data=_invoice_to_response(invoice),
    )


@router.post("/{invoice_id}/void", response_model=ApiResponse[InvoiceResponse])
async def void_invoice(
    invoice_id: int,
    reason: str | None = Query(None, max_length=500),
    db: AsyncSession = Depends(get_db),
):
    """Void an issued invoice."""
    invoice = await InvoiceService(db).void_invoice(invoice_id, reason)
    return ApiResponse(
        success=True,
        message="Invoice voided",
        data=_invoice_to_response(invoice),
    )


@router.post("/{invoice_id}/payments", response_model=ApiResponse[InvoiceResponse])
async def record_payment(
    invoice_id: int, data: RecordPaymentRequest, db: AsyncSession = Depends(get_db)
):
    """Register a payment received."""
    invoice = await InvoiceService(db).record_payment(invoice_id, data.amount_cents)
    return ApiResponse(
        success=True,
        message="Payment recorded",
        data=_invoice_to_response(invoice),
    )
