"""Schemas for Clients module."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class ClientBase(BaseModel):
    tax_id: str | None = Field(None, max_length=50)
    email: str | None = Field(None, max_length=255)
    phone: str | None = Field(None, max_length=50)
    billing_address_line1: str | None = None
    billing_city: str | None = None
    billing_postal_code: str | None = None
    billing_province: str | None = None
    notes: str | None = None


class ClientCreate(ClientBase):
    """Schema for creating a client."""

    name: str = Field(..., max_length=255)
    billing_country: str = Field("ES", min_length=2, max_length=2)
    payment_terms_days: int | None = Field(None, ge=0, le=365)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class ClientUpdate(ClientBase):
    """Schema for updating a client (all optional)."""

    name: str | None = Field(None, min_length=1, max_length=255)
    billing_country: str | None = Field(None, min_length=2, max_length=2)
    payment_terms_days: int | None = Field(None, ge=0, le=365)


class ClientResponse(ClientBase):
    id: int
    company_id: int
    name: str
    billing_country: str
    payment_terms_days: int
    created_at: datetime

    model_config = {"from_attributes": True}
