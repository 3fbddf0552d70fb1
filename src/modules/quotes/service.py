"""Service for Quotes module."""

import logging
from datetime import date, datetime, timezone

from sqlalchemy import func, select, update
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
from src.modules.quotes.models import QUOTE_TRANSITIONS, Quote, QuoteLine, QuoteStatus
from src.modules.quotes.schemas import QuoteCreate, QuoteFilters, QuoteUpdate

logger = logging.getLogger(__name__)

_TRANSITION_ACTIONS = {
    QuoteStatus.ACCEPTED.value: AuditAction.ACCEPT,
    QuoteStatus.REJECTED.value: AuditAction.REJECT,
    QuoteStatus.EXPIRED.value: AuditAction.EXPIRE,
}


class QuoteService:
    """Service for managing quotes."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    def _require_draft(self, quote: Quote, action: str) -> None:
        if not quote.is_editable:
            raise InvalidStateError(
                f"Cannot {action} a quote with status '{quote.status}'",
                status=quote.status,
            )

    async def create_quote(self, data: QuoteCreate) -> Quote:
        """Create a draft quote (no number yet)."""
        company = await get_company(self.db)
        client = await ClientService(self.db).get_client_by_id(data.client_id)

        quote = Quote(
            company_id=company.id,
            client_id=client.id,
            status=QuoteStatus.DRAFT.value,
            valid_until=data.valid_until,
            currency=company.currency,
            notes=data.notes,
            public_notes=data.public_notes,
        )
        quote.lines = build_lines(QuoteLine, data.lines)
        recalculate_totals(quote)
        self.db.add(quote)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="Quote",
            entity_id=quote.id,
            company_id=company.id,
            new_values={"client_id": client.id, "total_cents": quote.total_cents},
        )
        await self.db.commit()
        return await self.get_quote_by_id(quote.id)

    async def update_quote(self, quote_id: int, data: QuoteUpdate) -> Quote:
        quote = await self.get_quote_by_id(quote_id)
        self._require_draft(quote, "edit")

        changes = data.model_dump(exclude_unset=True, exclude={"lines"})
        if changes.get("client_id") is not None:
            await ClientService(self.db).get_client_by_id(changes["client_id"])
        for key, value in changes.items():
            if key == "client_id" and value is None:
                continue
            setattr(quote, key, value)

        if data.lines is not None:
            quote.lines = build_lines(QuoteLine, data.lines)
            recalculate_totals(quote)

        await self.audit.log(
            action=AuditAction.UPDATE,
            entity_type="Quote",
            entity_id=quote.id,
            company_id=quote.company_id,
            new_values={
                **{k: str(v) if isinstance(v, date) else v for k, v in changes.items()},
                "total_cents": quote.total_cents,
            },
        )
        await self.db.commit()
        return await self.get_quote_by_id(quote_id)

    async def delete_quote(self, quote_id: int) -> None:
        """Soft delete a draft quote."""
        quote = await self.get_quote_by_id(quote_id)
        self._require_draft(quote, "delete")
        quote.deleted_at = datetime.now(timezone.utc)
        await self.audit.log(
            action=AuditAction.DELETE,
            entity_type="Quote",
            entity_id=quote.id,
            company_id=quote.company_id,
        )
        await self.db.commit()

    async def get_quote_by_id(self, quote_id: int) -> Quote:
        result = await self.db.execute(
            select(Quote)
            .where(Quote.id == quote_id, Quote.deleted_at.is_(None))
            .options(selectinload(Quote.lines), selectinload(Quote.client))
            .execution_options(populate_existing=True)
        )
        quote = result.scalar_one_or_none()
        if not quote:
            raise NotFoundError("Quote", quote_id)
        return quote

    async def list_quotes(self, filters: QuoteFilters) -> tuple[list[Quote], int]:
        query = select(Quote).where(Quote.deleted_at.is_(None))
        if filters.client_id is not None:
            query = query.where(Quote.client_id == filters.client_id)
        if filters.status is not None:
            query = query.where(Quote.status == filters.status.value)
        if filters.year is not None:
            query = query.where(Quote.year == filters.year)

        total_result = await self.db.execute(select(func.count()).select_from(query.subquery()))
        total = total_result.scalar() or 0

        query = (
            query.options(selectinload(Quote.client))
            .order_by(Quote.created_at.desc(), Quote.id.desc())
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    # --- Lifecycle ---

    async def emit_quote(self, quote_id: int, issue_date: date | None = None) -> Quote:
        """Assign the next quote number and move the draft to SENT, in one transaction."""
        quote = await self.get_quote_by_id(quote_id)
        self._require_draft(quote, "send")
        if not quote.lines:
            raise ValidationError("Cannot send a quote with no lines")

        async with transaction_scope(self.db):
            await assign_document_number(self.db, quote, QuoteStatus.SENT.value, issue_date)

            await self.audit.log(
                action=AuditAction.EMIT,
                entity_type="Quote",
                entity_id=quote.id,
                company_id=quote.company_id,
                entity_identifier=quote.formatted_number,
                old_values={"status": QuoteStatus.DRAFT.value},
                new_values={
                    "status": QuoteStatus.SENT.value,
                    "number": quote.number,
                    "year": quote.year,
                },
            )

        logger.info("Quote %s sent as %s", quote_id, quote.formatted_number)
        return await self.get_quote_by_id(quote_id)

    async def change_status(self, quote_id: int, new_status: QuoteStatus) -> Quote:
        """Move a sent quote to accepted, rejected or expired."""
        quote = await self.get_quote_by_id(quote_id)
        allowed = QUOTE_TRANSITIONS.get(quote.status, set())
        if new_status.value not in allowed:
            raise InvalidStateError(
                f"Cannot change quote from '{quote.status}' to '{new_status.value}'",
                status=quote.status,
            )

        old_status = quote.status
        quote.status = new_status.value
        await self.audit.log(
            action=_TRANSITION_ACTIONS[new_status.value],
            entity_type="Quote",
            entity_id=quote.id,
            company_id=quote.company_id,
            entity_identifier=quote.formatted_number,
            old_values={"status": old_status},
            new_values={"status": new_status.value},
        )
        await self.db.commit()
        return await self.get_quote_by_id(quote_id)

    async def convert_to_invoice(self, quote_id: int) -> Invoice:
        """
        Create a draft invoice from an accepted quote and link it back.

        A quote converts at most once. The invoice gets its own number when
        it is emitted, not here.
        """
        quote = await self.get_quote_by_id(quote_id)
        if not quote.can_be_converted:
            if quote.converted_invoice_id is not None:
                message = f"Quote already converted to invoice {quote.converted_invoice_id}"
            else:
                message = "Only accepted quotes can be converted to an invoice"
            raise InvalidStateError(message, status=quote.status)

        async with transaction_scope(self.db):
            invoice = Invoice(
                company_id=quote.company_id,
                client_id=quote.client_id,
                invoice_type=InvoiceType.INVOICE.value,
                status=InvoiceStatus.DRAFT.value,
                currency=quote.currency,
                notes=quote.notes,
                public_notes=quote.public_notes,
                subtotal_cents=quote.subtotal_cents,
                tax_cents=quote.tax_cents,
                total_cents=quote.total_cents,
                paid_cents=0,
                source_quote_id=quote.id,
            )
            invoice.lines = [
                InvoiceLine(
                    position=line.position,
                    description=line.description,
                    quantity=line.quantity,
                    unit_price_cents=line.unit_price_cents,
                    tax_rate=line.tax_rate,
                    line_subtotal_cents=line.line_subtotal_cents,
                    line_tax_cents=line.line_tax_cents,
                    line_total_cents=line.line_total_cents,
                )
                for line in quote.lines
            ]
            self.db.add(invoice)
            await self.db.flush()

            # Link only if no other request converted the quote meanwhile
            result = await self.db.execute(
                update(Quote)
                .where(
                    Quote.id == quote.id,
                    Quote.status == QuoteStatus.ACCEPTED.value,
                    Quote.converted_invoice_id.is_(None),
                )
                .values(converted_invoice_id=invoice.id)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise InvalidStateError(
                    f"Quote {quote_id} was already converted", status=QuoteStatus.ACCEPTED.value
                )
            quote.converted_invoice_id = invoice.id

            await self.audit.log(
                action=AuditAction.CONVERT,
                entity_type="Quote",
                entity_id=quote.id,
                company_id=quote.company_id,
                entity_identifier=quote.formatted_number,
                new_values={"invoice_id": invoice.id},
            )
            await self.audit.log(
                action=AuditAction.CREATE,
                entity_type="Invoice",
                entity_id=invoice.id,
                company_id=quote.company_id,
                new_values={"source_quote_id": quote.id},
            )

        return invoice
