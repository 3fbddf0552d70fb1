"""Invoice and InvoiceLine models."""

from enum import StrEnum

from sqlalchemy import BigInteger, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import BaseModel, BigIntPK, Base, CompanyOwnedMixin, SoftDeleteMixin
from src.core.documents.models import DocType, DocumentLineMixin, NumberedDocumentMixin


class InvoiceType(StrEnum):
    """Invoice type enumeration."""

    INVOICE = "invoice"
    CREDIT_NOTE = "credit_note"


class InvoiceStatus(StrEnum):
    """Invoice status enumeration."""

    DRAFT = "draft"
    ISSUED = "issued"
    PARTIALLY_PAID = "partially_paid"
    PAID = "paid"
    VOID = "void"


class Invoice(NumberedDocumentMixin, CompanyOwnedMixin, SoftDeleteMixin, BaseModel):
    """Sales invoice or credit note for a client."""

    __tablename__ = "invoices"

    DOC_TYPE = DocType.INVOICE

    client_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("clients.id"), nullable=False, index=True
    )

    invoice_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=InvoiceType.INVOICE.value, index=True
    )  # invoice | credit_note
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=InvoiceStatus.DRAFT.value, index=True
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")

    # Amounts in cents
    subtotal_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    tax_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    paid_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    public_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    source_quote_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("quotes.id"), nullable=True
    )
    # Credit notes point to the invoice they correct
    rectified_invoice_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("invoices.id"), nullable=True
    )

    __table_args__ = (
        UniqueConstraint(
            "company_id", "invoice_type", "year", "number", name="uq_invoice_company_type_year_number"
        ),
    )

    # Relationships
    client: Mapped["Client"] = relationship("Client")
    lines: Mapped[list["InvoiceLine"]] = relationship(
        "InvoiceLine",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLine.position",
    )

    @property
    def doc_type(self) -> DocType:
        if self.invoice_type == InvoiceType.CREDIT_NOTE.value:
            return DocType.CREDIT_NOTE
        return DocType.INVOICE

    @property
    def amount_due_cents(self) -> int:
        return self.total_cents - self.paid_cents

    @property
    def is_editable(self) -> bool:
        """Only drafts can change lines, client or notes."""
        return self.status == InvoiceStatus.DRAFT.value

    @property
    def can_receive_payment(self) -> bool:
        return self.status in (
            InvoiceStatus.ISSUED.value,
            InvoiceStatus.PARTIALLY_PAID.value,
        )

    @property
    def can_be_voided(self) -> bool:
        return self.status in (
            InvoiceStatus.ISSUED.value,
            InvoiceStatus.PARTIALLY_PAID.value,
        )


class InvoiceLine(DocumentLineMixin, Base):
    """Line item in an invoice."""

    __tablename__ = "invoice_lines"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    invoice_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True
    )

    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="lines")


# Import at the end to avoid circular imports
from src.modules.clients.models import Client  # noqa: E402
