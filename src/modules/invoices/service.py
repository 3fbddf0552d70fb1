"""Service for Invoices module."""

import logging
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from src.core.audit.service import AuditAction, AuditService
from src.core.company.service import get_company
from src.core.database.session import transaction_scope
from src.core.documents.lines import build_lines, recalculate_totals
from src.core.documents.number_generator import assign_document_number
from src.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from src.modules.clients.service import ClientService
from src.modules.invoices.models import Invoice, InvoiceLine, InvoiceStatus, InvoiceType
from src.modules.invoices.schemas import (
    InvoiceCreate,
    InvoiceFilters,
    InvoiceUpdate,
)

logger = logging.getLogger(__name__)


class InvoiceService:
    """Service for managing invoices and credit notes."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    # --- Helper Methods ---

    def _require_draft(self, invoice: Invoice, action: str) -> None:
        if not invoice.is_editable:
            raise InvalidStateError(
                f"Cannot {action} an invoice with status '{invoice.status}'",
                status=invoice.status,
            )

    def _update_payment_status(self, invoice: Invoice) -> None:
        """Derive issued/partially_paid/paid from paid amount."""
        if invoice.paid_cents >= invoice.total_cents:
            invoice.status = InvoiceStatus.PAID.value
        elif invoice.paid_cents > 0:
            invoice.status = InvoiceStatus.PARTIALLY_PAID.value
        else:
            invoice.status = InvoiceStatus.ISSUED.value

    async def _validate_rectified_invoice(self, invoice_id: int) -> Invoice:
        rectified = await self.get_invoice_by_id(invoice_id)
        if rectified.invoice_type != InvoiceType.INVOICE.value:
            raise ValidationError("A credit note can only correct an invoice", "rectified_invoice_id")
        if rectified.status in (InvoiceStatus.DRAFT.value, InvoiceStatus.VOID.value):
            raise ValidationError(
                f"Cannot correct an invoice with status '{rectified.status}'",
                "rectified_invoice_id",
            )
        return rectified

    # --- Invoice CRUD ---

    async def create_invoice(self, data: InvoiceCreate) -> Invoice:
        """Create a draft invoice or credit note (no number yet)."""
        company = await get_company(self.db)
        client = await ClientService(self.db).get_client_by_id(data.client_id)
        if data.rectified_invoice_id is not None:
            await self._validate_rectified_invoice(data.rectified_invoice_id)

        invoice = Invoice(
            company_id=company.id,
            client_id=client.id,
            invoice_type=data.invoice_type.value,
            status=InvoiceStatus.DRAFT.value,
            currency=company.currency,
            notes=data.notes,
            public_notes=data.public_notes,
            rectified_invoice_id=data.rectified_invoice_id,
            paid_cents=0,
        )
        invoice.lines = build_lines(InvoiceLine, data.lines)
        recalculate_totals(invoice)
        self.db.add(invoice)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="Invoice",
            entity_id=invoice.id,
            company_id=company.id,
            new_values={
                "client_id": client.id,
                "type": invoice.invoice_type,
                "total_cents": invoice.total_cents,
            },
        )

        await self.db.commit()
        return await self.get_invoice_by_id(invoice.id)

    async def update_invoice(self, invoice_id: int, data: InvoiceUpdate) -> Invoice:
        """Update a draft invoice; lines, when given, replace the existing ones."""
        invoice = await self.get_invoice_by_id(invoice_id)
        self._require_draft(invoice, "edit")

        changes = data.model_dump(exclude_unset=True, exclude={"lines"})
        if changes.get("client_id") is not None:
            await ClientService(self.db).get_client_by_id(changes["client_id"])
        for key, value in changes.items():
            if key == "client_id" and value is None:
                continue
            setattr(invoice, key, value)

        if data.lines is not None:
            invoice.lines = build_lines(InvoiceLine, data.lines)
            recalculate_totals(invoice)

        await self.audit.log(
            action=AuditAction.UPDATE,
            entity_type="Invoice",
            entity_id=invoice.id,
            company_id=invoice.company_id,
            new_values={**changes, "total_cents": invoice.total_cents},
        )

        await self.db.commit()
        return await self.get_invoice_by_id(invoice_id)

    async def delete_invoice(self, invoice_id: int) -> None:
        """Soft delete a draft invoice. Issued invoices are voided, never deleted."""
        invoice = await self.get_invoice_by_id(invoice_id)
        self._require_draft(invoice, "delete")
        invoice.deleted_at = datetime.now(timezone.utc)

        await self.audit.log(
            action=AuditAction.DELETE,
            entity_type="Invoice",
            entity_id=invoice.id,
            company_id=invoice.company_id,
        )
        await self.db.commit()

    async def get_invoice_by_id(self, invoice_id: int) -> Invoice:
        """Get invoice by ID with lines and client loaded."""
        result = await self.db.execute(
            select(Invoice)
            .where(Invoice.id == invoice_id, Invoice.deleted_at.is_(None))
            .options(selectinload(Invoice.lines), selectinload(Invoice.client))
            .execution_options(populate_existing=True)
        )
        invoice = result.scalar_one_or_none()
        if not invoice:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    async def list_invoices(self, filters: InvoiceFilters) -> tuple[list[Invoice], int]:
        """List invoices with filters, newest first."""
        query = select(Invoice).where(Invoice.deleted_at.is_(None))

        if filters.client_id is not None:
            query = query.where(Invoice.client_id == filters.client_id)
        if filters.invoice_type is not None:
            query = query.where(Invoice.invoice_type == filters.invoice_type.value)
        if filters.status is not None:
            query = query.where(Invoice.status == filters.status.value)
        if filters.year is not None:
            query = query.where(Invoice.year == filters.year)

        count_query = select(func.count()).select_from(query.subquery())
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        offset = (filters.page - 1) * filters.limit
        query = (
            query.options(selectinload(Invoice.client))
            .order_by(Invoice.created_at.desc(), Invoice.id.desc())
            .offset(offset)
            .limit(filters.limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    # --- Lifecycle ---

    async def emit_invoice(self, invoice_id: int, issue_date: date | None = None) -> Invoice:
        """
        Issue a draft invoice: assign its sequential number and move it to ISSUED.

        Number allocation, status change and audit entry commit together;
        on any failure the invoice stays a draft and the counter is untouched.
        """
        invoice = await self.get_invoice_by_id(invoice_id)
        self._require_draft(invoice, "issue")
        if not invoice.lines:
            raise ValidationError("Cannot issue an invoice with no lines")

        issue_date = issue_date or date.today()
        async with transaction_scope(self.db):
            await assign_document_number(
                self.db, invoice, InvoiceStatus.ISSUED.value, issue_date
            )
            invoice.due_date = issue_date + timedelta(days=invoice.client.payment_terms_days)

            await self.audit.log(
                action=AuditAction.EMIT,
                entity_type="Invoice",
                entity_id=invoice.id,
                company_id=invoice.company_id,
                entity_identifier=invoice.formatted_number,
                old_values={"status": InvoiceStatus.DRAFT.value},
                new_values={
                    "status": InvoiceStatus.ISSUED.value,
                    "number": invoice.number,
                    "year": invoice.year,
                    "type": invoice.invoice_type,
                },
            )

        logger.info("Invoice %s issued as %s", invoice_id, invoice.formatted_number)
        return await self.get_invoice_by_id(invoice_id)

    async def void_invoice(self, invoice_id: int, reason: str | None = None) -> Invoice:
        """Void an issued invoice. Its number stays assigned."""
        invoice = await self.get_invoice_by_id(invoice_id)
        if not invoice.can_be_voided:
            raise InvalidStateError(
                f"Cannot void an invoice with status '{invoice.status}'",
                status=invoice.status,
            )

        old_status = invoice.status
        invoice.status = InvoiceStatus.VOID.value

        await self.audit.log(
            action=AuditAction.VOID,
            entity_type="Invoice",
            entity_id=invoice.id,
            company_id=invoice.company_id,
            entity_identifier=invoice.formatted_number,
            old_values={"status": old_status},
            new_values={"status": InvoiceStatus.VOID.value},
            comment=reason,
        )
        await self.db.commit()
        return await self.get_invoice_by_id(invoice_id)

    async def record_payment(self, invoice_id: int, amount_cents: int) -> Invoice:
        """Register a payment received; moves the invoice to partially paid or paid."""
        invoice = await self.get_invoice_by_id(invoice_id)
        if not invoice.can_receive_payment:
            raise InvalidStateError(
                f"Cannot register payments on an invoice with status '{invoice.status}'",
                status=invoice.status,
            )
        if amount_cents > invoice.amount_due_cents:
            raise ValidationError(
                f"Payment exceeds amount due ({invoice.amount_due_cents} cents)", "amount_cents"
            )

        old_paid = invoice.paid_cents
        invoice.paid_cents += amount_cents
        self._update_payment_status(invoice)

        await self.audit.log(
            action=AuditAction.RECORD_PAYMENT,
            entity_type="Invoice",
            entity_id=invoice.id,
            company_id=invoice.company_id,
            entity_identifier=invoice.formatted_number,
            old_values={"paid_cents": old_paid},
            new_values={"paid_cents": invoice.paid_cents, "status": invoice.status},
        )
        await self.db.commit()
        return await self.get_invoice_by_id(invoice_id)
