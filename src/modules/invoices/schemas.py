"""Schemas for Invoices module."""

from datetime import date

from pydantic import BaseModel, Field, model_validator

from src.core.documents.schemas import DocumentLineCreate, DocumentLineResponse
from src.modules.invoices.models import InvoiceStatus, InvoiceType


class InvoiceCreate(BaseModel):
    """Schema for creating a draft invoice or credit note."""

    client_id: int
    invoice_type: InvoiceType = InvoiceType.INVOICE
    rectified_invoice_id: int | None = None
    notes: str | None = None
    public_notes: str | None = None
    lines: list[DocumentLineCreate] = Field(default_factory=list)

    @model_validator(mode="after")
    def credit_note_needs_invoice(self):
        if self.invoice_type == InvoiceType.CREDIT_NOTE and self.rectified_invoice_id is None:
            raise ValueError("A credit note must reference the invoice it corrects")
        if self.invoice_type == InvoiceType.INVOICE and self.rectified_invoice_id is not None:
            raise ValueError("Only credit notes can reference another invoice")
        return self


class InvoiceUpdate(BaseModel):
    """Schema for updating a draft invoice. Lines, when given, replace all lines."""

    client_id: int | None = None
    notes: str | None = None
    public_notes: str | None = None
    lines: list[DocumentLineCreate] | None = None


class InvoiceResponse(BaseModel):
    """Schema for invoice response."""

    id: int
    company_id: int
    client_id: int
    client_name: str | None = None
    invoice_type: str
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
    public_notes: str | None
    source_quote_id: int | None
    rectified_invoice_id: int | None
    lines: list[DocumentLineResponse] = Field(default_factory=list)


class InvoiceSummary(BaseModel):
    """Brief invoice summary for lists."""

    id: int
    client_id: int
    client_name: str | None = None
    invoice_type: str
    status: str
    formatted_number: str | None
    total_cents: int
    paid_cents: int
    amount_due_cents: int
    issue_date: date | None
    due_date: date | None


class RecordPaymentRequest(BaseModel):
    """Payment received against an issued invoice."""

    amount_cents: int = Field(..., gt=0)


class InvoiceFilters(BaseModel):
    """Filters for listing invoices."""

    client_id: int | None = None
    invoice_type: InvoiceType | None = None
    status: InvoiceStatus | None = None
    year: int | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(100, ge=1, le=500)
