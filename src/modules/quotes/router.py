"""API endpoints for Quotes module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.session import get_db
from src.core.documents.schemas import DocumentLineResponse
from src.modules.invoices.router import _invoice_to_response
from src.modules.invoices.schemas import InvoiceResponse
from src.modules.invoices.service import InvoiceService
from src.modules.quotes.models import Quote, QuoteStatus
from src.modules.quotes.schemas import (
    QuoteCreate,
    QuoteFilters,
    QuoteResponse,
    QuoteSummary,
    QuoteUpdate,
)
from src.modules.quotes.service import QuoteService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/quotes", tags=["Quotes"])


def _quote_to_response(quote: Quote) -> QuoteResponse:
    return QuoteResponse(
        id=quote.id,
        company_id=quote.company_id,
        client_id=quote.client_id,
        client_name=quote.client.name if quote.client else None,
        status=quote.status,
        number=quote.number,
        year=quote.year,
        formatted_number=quote.formatted_number,
        issue_date=quote.issue_date,
        valid_until=quote.valid_until,
        currency=quote.currency,
        subtotal_cents=quote.subtotal_cents,
        tax_cents=quote.tax_cents,
        total_cents=quote.total_cents,
        notes=quote.notes,
        public_notes=quote.public_notes,
        converted_invoice_id=quote.converted_invoice_id,
        lines=[DocumentLineResponse.model_validate(line) for line in quote.lines],
    )


def _quote_to_summary(quote: Quote) -> QuoteSummary:
    return QuoteSummary(
        id=quote.id,
        client_id=quote.client_id,
        client_name=quote.client.name if quote.client else None,
        status=quote.status,
        formatted_number=quote.formatted_number,
        total_cents=quote.total_cents,
        issue_date=quote.issue_date,
        valid_until=quote.valid_until,
    )


@router.post("", response_model=ApiResponse[QuoteResponse], status_code=status.HTTP_201_CREATED)
async def create_quote(data: QuoteCreate, db: AsyncSession = Depends(get_db)):
    """Create a draft quote."""
    quote = await QuoteService(db).create_quote(data)
    return ApiResponse(
        success=True,
        message="Quote created successfully",
        data=_quote_to_response(quote),
    )


@router.get("", response_model=ApiResponse[PaginatedResponse[QuoteSummary]])
async def list_quotes(
    client_id: int | None = Query(None),
    status: QuoteStatus | None = Query(None),
    year: int | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    filters = QuoteFilters(client_id=client_id, status=status, year=year, page=page, limit=limit)
    quotes, total = await QuoteService(db).list_quotes(filters)
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[_quote_to_summary(q) for q in quotes],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get("/{quote_id}", response_model=ApiResponse[QuoteResponse])
async def get_quote(quote_id: int, db: AsyncSession = Depends(get_db)):
    quote = await QuoteService(db).get_quote_by_id(quote_id)
    return ApiResponse(success=True, data=_quote_to_response(quote))


@router.put("/{quote_id}", response_model=ApiResponse[QuoteResponse])
async def update_quote(quote_id: int, data: QuoteUpdate, db: AsyncSession = Depends(get_db)):
    """Update a draft quote."""
    quote = await QuoteService(db).update_quote(quote_id, data)
    return ApiResponse(
        success=True,
        message="Quote updated successfully",
        data=_quote_to_response(quote),
    )


@router.delete("/{quote_id}", response_model=ApiResponse[None])
async def delete_quote(quote_id: int, db: AsyncSession = Depends(get_db)):
    """Delete a draft quote."""
    await QuoteService(db).delete_quote(quote_id)
    return ApiResponse(success=True, message="Quote deleted", data=None)


@router.post("/{quote_id}/emit", response_model=ApiResponse[QuoteResponse])
async def emit_quote(quote_id: int, db: AsyncSession = Depends(get_db)):
    """Assign the next quote number and mark the draft as sent."""
    quote = await QuoteService(db).emit_quote(quote_id)
    return ApiResponse(
        success=True,
        message=f"Quote {quote.formatted_number} sent",
        data=_quote_to_response(quote),
    )


@router.post("/{quote_id}/accept", response_model=ApiResponse[QuoteResponse])
async def accept_quote(quote_id: int, db: AsyncSession = Depends(get_db)):
    quote = await QuoteService(db).change_status(quote_id, QuoteStatus.ACCEPTED)
    return ApiResponse(success=True, message="Quote accepted", data=_quote_to_response(quote))


@router.post("/{quote_id}/reject", response_model=ApiResponse[QuoteResponse])
async def reject_quote(quote_id: int, db: AsyncSession = Depends(get_db)):
    quote = await QuoteService(db).change_status(quote_id, QuoteStatus.REJECTED)
    return ApiResponse(success=True, message="Quote rejected", data=_quote_to_response(quote))


@router.post("/{quote_id}/expire", response_model=ApiResponse[QuoteResponse])
async def expire_quote(quote_id: int, db: AsyncSession = Depends(get_db)):
    quote = await QuoteService(db).change_status(quote_id, QuoteStatus.EXPIRED)
    return ApiResponse(success=True, message="Quote expired", data=_quote_to_response(quote))


@router.post(
    "/{quote_id}/convert",
    response_model=ApiResponse[InvoiceResponse],
    status_code=status.HTTP_201_CREATED,
)
async def convert_quote(quote_id: int, db: AsyncSession = Depends(get_db)):
    """Create a draft invoice from an accepted quote."""
    invoice = await QuoteService(db).convert_to_invoice(quote_id)
    invoice = await InvoiceService(db).get_invoice_by_id(invoice.id)
    return ApiResponse(
        success=True,
        message="Draft invoice created from quote",
        data=_invoice_to_response(invoice),
    )
