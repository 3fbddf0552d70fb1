"""Quote and QuoteLine models."""

from datetime import date
from enum import StrEnum

from sqlalchemy import BigInteger, Date, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import BaseModel, BigIntPK, Base, CompanyOwnedMixin, SoftDeleteMixin
from src.core.documents.models import DocType, DocumentLineMixin, NumberedDocumentMixin


class QuoteStatus(StrEnum):
    """Quote status enumeration."""

    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


# Allowed transitions after the quote has been sent (draft -> sent goes through emit)
QUOTE_TRANSITIONS: dict[str, set[str]] = {
    QuoteStatus.SENT.value: {
        QuoteStatus.ACCEPTED.value,
        QuoteStatus.REJECTED.value,
        QuoteStatus.EXPIRED.value,
    },
}


class Quote(NumberedDocumentMixin, CompanyOwnedMixin, SoftDeleteMixin, BaseModel):
    """Quote (estimate) sent to a client."""

    __tablename__ = "quotes"

    DOC_TYPE = DocType.QUOTE

    client_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("clients.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=QuoteStatus.DRAFT.value, index=True
    )
    valid_until: Mapped[date | None] = mapped_column(Date, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")

    # Amounts in cents
    subtotal_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    tax_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    public_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Set once the accepted quote has been turned into a draft invoice
    converted_invoice_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    __table_args__ = (
        UniqueConstraint("company_id", "year", "number", name="uq_quote_company_year_number"),
    )

    client: Mapped["Client"] = relationship("Client")
    lines: Mapped[list["QuoteLine"]] = relationship(
        "QuoteLine",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteLine.position",
    )

    @property
    def is_editable(self) -> bool:
        return self.status == QuoteStatus.DRAFT.value

    @property
    def can_be_converted(self) -> bool:
        return self.status == QuoteStatus.ACCEPTED.value and self.converted_invoice_id is None


class QuoteLine(DocumentLineMixin, Base):
    """Line item in a quote."""

    __tablename__ = "quote_lines"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    quote_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True
    )

    quote: Mapped["Quote"] = relationship("Quote", back_populates="lines")


from src.modules.clients.models import Client  # noqa: E402
