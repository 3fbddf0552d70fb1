"""PurchaseInvoice and PurchaseInvoiceLine models."""

from enum import StrEnum

from sqlalchemy import BigInteger, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.database.base import BaseModel, BigIntPK, Base, CompanyOwnedMixin, SoftDeleteMixin
from src.core.documents.models import DocType, DocumentLineMixin, NumberedDocumentMixin


class PurchaseInvoiceStatus(StrEnum):
    """Purchase invoice status enumeration."""

    DRAFT = "draft"
    BOOKED = "booked"
    PAID = "paid"


class PurchaseInvoice(NumberedDocumentMixin, CompanyOwnedMixin, SoftDeleteMixin, BaseModel):
    """
    Invoice received from a provider.

    Booking gives it an internal sequential number (FP-YYYY-NNNN); the
    provider's own reference is kept in provider_invoice_number.
    """

    __tablename__ = "purchase_invoices"

    DOC_TYPE = DocType.PURCHASE_INVOICE

    provider_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("providers.id"), nullable=False, index=True
    )
    provider_invoice_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PurchaseInvoiceStatus.DRAFT.value, index=True
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="EUR")

    # Amounts in cents
    subtotal_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    tax_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    paid_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "company_id", "year", "number", name="uq_purchase_invoice_company_year_number"
        ),
    )

    provider: Mapped["Provider"] = relationship("Provider")
    lines: Mapped[list["PurchaseInvoiceLine"]] = relationship(
        "PurchaseInvoiceLine",
        back_populates="purchase_invoice",
        cascade="all, delete-orphan",
        order_by="PurchaseInvoiceLine.position",
    )

    @property
    def is_editable(self) -> bool:
        return self.status == PurchaseInvoiceStatus.DRAFT.value

    @property
    def amount_due_cents(self) -> int:
        return self.total_cents - self.paid_cents


class PurchaseInvoiceLine(DocumentLineMixin, Base):
    """Line item in a purchase invoice."""

    __tablename__ = "purchase_invoice_lines"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    purchase_invoice_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("purchase_invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    purchase_invoice: Mapped["PurchaseInvoice"] = relationship(
        "PurchaseInvoice", back_populates="lines"
    )


from src.modules.providers.models import Provider  # noqa: E402
