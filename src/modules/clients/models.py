"""Client model."""

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import BaseModel, CompanyOwnedMixin, SoftDeleteMixin


class Client(CompanyOwnedMixin, SoftDeleteMixin, BaseModel):
    """Customer receiving quotes and invoices."""

    __tablename__ = "clients"

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    tax_id: Mapped[str | None] = mapped_column(String(50), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    billing_address_line1: Mapped[str | None] = mapped_column(String(255), nullable=True)
    billing_city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    billing_postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    billing_province: Mapped[str | None] = mapped_column(String(100), nullable=True)
    billing_country: Mapped[str] = mapped_column(String(2), nullable=False, default="ES")

    payment_terms_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
