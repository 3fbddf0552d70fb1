"""Schemas for Purchases module."""

from datetime import date

from pydantic import BaseModel, Field

from src.core.documents.schemas import DocumentLineCreate, DocumentLineResponse
from src.modules.purchases.models import PurchaseInvoiceStatus


class PurchaseInvoiceCreate(BaseModel):
    """Schema for registering a draft purchase invoice."""

    provider_id: int
    provider_invoice_number: str | None = Field(None, max_length=100)
    due_date: date | None = None
    notes: str | None = None
    lines: list[DocumentLineCreate] = Field(default_factory=list)


class PurchaseInvoiceUpdate(BaseModel):
    provider_id: int | None = None
    provider_invoice_number: str | None = Field(None, max_length=100)
    due_date: date | None = None
    notes: str | None = None
    lines: list[DocumentLineCreate] | None = None


class BookPurchaseRequest(BaseModel):
    """Booking date; defaults to today."""

    issue_date: date | None = None


class PurchaseInvoiceResponse(BaseModel):
    id: int
    company_id: int
    provider_id: int
    provider_name: str | None = None
    provider_invoice_number: str | None
    status: str
    number: int | None
    year: int | None
    formatted_number: str | None
    issue_date: date | None
    due_date: date | None
    currency: str
    subtotal_cents: int
    tax_cents: int
    total_cents: int
    paid_cents: int
    amount_due_cents: int
    notes: str | None
    lines: list[DocumentLineResponse] = Field(default_factory=list)


class PurchaseInvoiceSummary(BaseModel):
    id: int
    provider_id: int
    provider_name: str | None = None
    provider_invoice_number: str | None
    status: str
    formatted_number: str | None
    total_cents: int
    issue_date: date | None
    due_date: date | None


class PurchaseInvoiceFilters(BaseModel):
    provider_id: int | None = None
    status: PurchaseInvoiceStatus | None = None
    year: int | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(100, ge=1, le=500)
