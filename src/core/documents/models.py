from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import ClassVar

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import Base


class DocType(StrEnum):
    """Kinds of documents sharing the sequential numbering mechanism."""

    INVOICE = "invoice"
    QUOTE = "quote"
    CREDIT_NOTE = "credit_note"
    PURCHASE_INVOICE = "purchase_invoice"


DOC_PREFIXES: dict[DocType, str] = {
    DocType.INVOICE: "FAC",
    DocType.QUOTE: "PRE",
    DocType.CREDIT_NOTE: "REC",
    DocType.PURCHASE_INVOICE: "FP",
}


def format_doc_number(doc_type: DocType | str, year: int, number: int) -> str:
    """
    Format a document number as PREFIX-YYYY-NNNN.

    Examples:
        FAC-2026-0003
        PRE-2026-0120
        FP-2027-0001
    """
    prefix = DOC_PREFIXES[DocType(doc_type)]
    return f"{prefix}-{year}-{number:04d}"


class DocumentCounter(Base):
    """Last issued number per company, year and document type."""

    __tablename__ = "document_counters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("companies.id"), nullable=False
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    doc_type: Mapped[str] = mapped_column(String(30), nullable=False)
    current_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint(
            "company_id", "year", "doc_type", name="uq_document_counter_company_year_type"
        ),
        CheckConstraint("current_number >= 0", name="ck_document_counter_non_negative"),
    )


class NumberedDocumentMixin:
    """
    Columns shared by documents that receive a sequential number on issuance.

    number and year stay NULL while the document is a draft and are assigned
    exactly once, in the same transaction that moves it out of draft.
    """

    DOC_TYPE: ClassVar[DocType]

    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    @property
    def doc_type(self) -> DocType:
        return self.DOC_TYPE

    @property
    def is_numbered(self) -> bool:
        return self.number is not None

    @property
    def formatted_number(self) -> str | None:
        if self.number is None or self.year is None:
            return None
        return format_doc_number(self.doc_type, self.year, self.number)


class DocumentLineMixin:
    """Line columns shared by quote, invoice and purchase invoice lines (amounts in cents)."""

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    quantity: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal("1"))
    unit_price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    # Percent; negative for withholdings (IRPF -15)
    tax_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0"))
    line_subtotal_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    line_tax_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    line_total_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
