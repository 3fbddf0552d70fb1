"""Schemas for Quotes module."""

from datetime import date

from pydantic import BaseModel, Field

from src.core.documents.schemas import DocumentLineCreate, DocumentLineResponse
from src.modules.quotes.models import QuoteStatus


class QuoteCreate(BaseModel):
    """Schema for creating a draft quote."""

    client_id: int
    valid_until: date | None = None
    notes: str | None = None
    public_notes: str | None = None
    lines: list[DocumentLineCreate] = Field(default_factory=list)


class QuoteUpdate(BaseModel):
    """Schema for updating a draft quote. Lines, when given, replace all lines."""

    client_id: int | None = None
    valid_until: date | None = None
    notes: str | None = None
    public_notes: str | None = None
    lines: list[DocumentLineCreate] | None = None


class QuoteResponse(BaseModel):
    id: int
    company_id: int
    client_id: int
    client_name: str | None = None
    status: str
    number: int | None
    year: int | None
    formatted_number: str | None
    issue_date: date | None
    valid_until: date | None
    currency: str
    subtotal_cents: int
    tax_cents: int
    total_cents: int
    notes: str | None
    public_notes: str | None
    converted_invoice_id: int | None
    lines: list[DocumentLineResponse] = Field(default_factory=list)


class QuoteSummary(BaseModel):
    id: int
    client_id: int
    client_name: str | None = None
    status: str
    formatted_number: str | None
    total_cents: int
    issue_date: date | None
    valid_until: date | None


class QuoteFilters(BaseModel):
    client_id: int | None = None
    status: QuoteStatus | None = None
    year: int | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(100, ge=1, le=500)
