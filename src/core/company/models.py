"""Company model: the single issuing company (fiscal identity and defaults)."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import BaseModel


class Company(BaseModel):
    """Single row: legal identity, bank details and default payment terms."""

    __tablename__ = "companies"

    legal_name: Mapped[str] = mapped_column(String(255), nullable=False)
    trade_name: Mapped[str | None] = mapped_column(String(255), nullable=True, default="")
    tax_id: Mapped[str | None] = mapped_column(String(50), nullable=True, default="")
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, default="")
    phone: Mapped[str | None] = mapped_column(String(100), nullable=True, default="")
    address: Mapped[str | None] = mapped_column(String(500), nullable=True, default="")
    bank_iban: Mapped[str | None] = mapped_column(String(50), nullable=True, default="")
    country: Mapped[str] = mapped_column(String(2), nullable=False, default="ES")
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")
    default_payment_terms_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
