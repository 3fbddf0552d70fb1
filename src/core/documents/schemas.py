"""Schemas for document numbering settings."""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.core.documents.models import DocType


class NumberingCounterResponse(BaseModel):
    """State of one counter for a year."""

    doc_type: DocType
    prefix: str
    year: int
    current_number: int
    next_number: int
    next_formatted: str


class NumberingPreviewResponse(BaseModel):
    """Next number preview. Advisory only: it is not reserved."""

    doc_type: DocType
    prefix: str
    year: int
    next_number: int
    formatted: str


class NumberingResetRequest(BaseModel):
    """Set a counter to an explicit value."""

    doc_type: DocType
    year: int | None = Field(None, ge=1900, le=9999)  # defaults to current year
    reset_to: int = Field(0, ge=0)


class NumberingResetResponse(BaseModel):
    doc_type: DocType
    year: int
    current_number: int


# --- Document lines (shared by quotes, invoices and purchase invoices) ---


class DocumentLineCreate(BaseModel):
    """Line input; totals are computed server side."""

    description: str = Field("", max_length=500)
    quantity: Decimal = Field(Decimal("1"), gt=0)
    unit_price_cents: int = Field(0, ge=0)
    tax_rate: Decimal = Field(Decimal("0"), ge=-100, le=100)


class DocumentLineResponse(BaseModel):
    id: int
    position: int
    description: str
    quantity: Decimal
    unit_price_cents: int
    tax_rate: Decimal
    line_subtotal_cents: int
    line_tax_cents: int
    line_total_cents: int

    model_config = {"from_attributes": True}
