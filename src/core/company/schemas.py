"""Schemas for company settings."""

from pydantic import BaseModel, Field


class CompanyUpdate(BaseModel):
    """Update company settings (all optional)."""

    legal_name: str | None = Field(None, min_length=1, max_length=255)
    trade_name: str | None = None
    tax_id: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    bank_iban: str | None = None
    country: str | None = Field(None, min_length=2, max_length=2)
    currency: str | None = Field(None, min_length=3, max_length=3)
    default_payment_terms_days: int | None = Field(None, ge=0, le=365)


class CompanyResponse(BaseModel):
    """Company settings for API response."""

    id: int
    legal_name: str
    trade_name: str = ""
    tax_id: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    bank_iban: str = ""
    country: str
    currency: str
    default_payment_terms_days: int

    model_config = {"from_attributes": True}
