"""Service for Purchases module."""

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
from src.modules.providers.service import ProviderService
from src.modules.purchases.models import (
    PurchaseInvoice,
    PurchaseInvoiceLine,
    PurchaseInvoiceStatus,
)
from src.modules.purchases.schemas import (
    PurchaseInvoiceCreate,
    PurchaseInvoiceFilters,
    PurchaseInvoiceUpdate,
)

logger = logging.getLogger(__name__)


def _jsonable(values: dict) -> dict:
    return {k: v.isoformat() if isinstance(v, date) else v for k, v in values.items()}


class PurchaseService:
    """Service for managing purchase invoices."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    def _require_draft(self, purchase: PurchaseInvoice, action: str) -> None:
        if not purchase.is_editable:
            raise InvalidStateError(
                f"Cannot {action} a purchase invoice with status '{purchase.status}'",
                status=purchase.status,
            )

    async def create_purchase(self, data: PurchaseInvoiceCreate) -> PurchaseInvoice:
        company = await get_company(self.db)
        provider = await ProviderService(self.db).get_provider_by_id(data.provider_id)

        purchase = PurchaseInvoice(
            company_id=company.id,
            provider_id=provider.id,
            provider_invoice_number=data.provider_invoice_number,
            status=PurchaseInvoiceStatus.DRAFT.value,
            currency=company.currency,
            due_date=data.due_date,
            notes=data.notes,
            paid_cents=0,
        )
        purchase.lines = build_lines(PurchaseInvoiceLine, data.lines)
        recalculate_totals(purchase)
        self.db.add(purchase)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="PurchaseInvoice",
            entity_id=purchase.id,
            company_id=company.id,
            entity_identifier=purchase.provider_invoice_number,
            new_values={"provider_id": provider.id, "total_cents": purchase.total_cents},
        )
        await self.db.commit()
        return await self.get_purchase_by_id(purchase.id)

    async def update_purchase(
        self, purchase_id: int, data: PurchaseInvoiceUpdate
    ) -> PurchaseInvoice:
        purchase = await self.get_purchase_by_id(purchase_id)
        self._require_draft(purchase, "edit")

        changes = data.model_dump(exclude_unset=True, exclude={"lines"})
        if changes.get("provider_id") is not None:
            await ProviderService(self.db).get_provider_by_id(changes["provider_id"])
        for key, value in changes.items():
            if key == "provider_id" and value is None:
                continue
            setattr(purchase, key, value)

        if data.lines is not None:
            purchase.lines = build_lines(PurchaseInvoiceLine, data.lines)
            recalculate_totals(purchase)

        await self.audit.log(
            action=AuditAction.UPDATE,
            entity_type="PurchaseInvoice",
            entity_id=purchase.id,
            company_id=purchase.company_id,
            new_values={**_jsonable(changes), "total_cents": purchase.total_cents},
        )
        await self.db.commit()
        return await self.get_purchase_by_id(purchase_id)

    async def delete_purchase(self, purchase_id: int) -> None:
        """Soft delete a draft purchase invoice."""
        purchase = await self.get_purchase_by_id(purchase_id)
        self._require_draft(purchase, "delete")
        purchase.deleted_at = datetime.now(timezone.utc)
        await self.audit.log(
            action=AuditAction.DELETE,
            entity_type="PurchaseInvoice",
            entity_id=purchase.id,
            company_id=purchase.company_id,
        )
        await self.db.commit()

    async def get_purchase_by_id(self, purchase_id: int) -> PurchaseInvoice:
        result = await self.db.execute(
            select(PurchaseInvoice)
            .where(PurchaseInvoice.id == purchase_id, PurchaseInvoice.deleted_at.is_(None))
            .options(
                selectinload(PurchaseInvoice.lines), selectinload(PurchaseInvoice.provider)
            )
            .execution_options(populate_existing=True)
        )
        purchase = result.scalar_one_or_none()
        if not purchase:
            raise NotFoundError("PurchaseInvoice", purchase_id)
        return purchase

    async def list_purchases(
        self, filters: PurchaseInvoiceFilters
    ) -> tuple[list[PurchaseInvoice], int]:
        query = select(PurchaseInvoice).where(PurchaseInvoice.deleted_at.is_(None))
        if filters.provider_id is not None:
            query = query.where(PurchaseInvoice.provider_id == filters.provider_id)
        if filters.status is not None:
            query = query.where(PurchaseInvoice.status == filters.status.value)
        if filters.year is not None:
            query = query.where(PurchaseInvoice.year == filters.year)

        total_result = await self.db.execute(select(func.count()).select_from(query.subquery()))
        total = total_result.scalar() or 0

        query = (
            query.options(selectinload(PurchaseInvoice.provider))
            .order_by(PurchaseInvoice.created_at.desc(), PurchaseInvoice.id.desc())
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    # --- Lifecycle ---

    async def book_purchase(
        self, purchase_id: int, issue_date: date | None = None
    ) -> PurchaseInvoice:
        """
        Book a draft purchase invoice under the next internal number.

        The due date keeps the value typed from the provider's invoice; when
        empty it is derived from the provider's payment terms.
        """
        purchase = await self.get_purchase_by_id(purchase_id)
        self._require_draft(purchase, "book")
        if not purchase.lines:
            raise ValidationError("Cannot book a purchase invoice with no lines")

        issue_date = issue_date or date.today()
        async with transaction_scope(self.db):
            await assign_document_number(
                self.db, purchase, PurchaseInvoiceStatus.BOOKED.value, issue_date
            )
            if purchase.due_date is None:
                purchase.due_date = issue_date + timedelta(
                    days=purchase.provider.payment_terms_days
                )

            await self.audit.log(
                action=AuditAction.BOOK,
                entity_type="PurchaseInvoice",
                entity_id=purchase.id,
                company_id=purchase.company_id,
                entity_identifier=purchase.formatted_number,
                old_values={"status": PurchaseInvoiceStatus.DRAFT.value},
                new_values={
                    "status": PurchaseInvoiceStatus.BOOKED.value,
                    "number": purchase.number,
                    "year": purchase.year,
                },
            )

        logger.info("Purchase invoice %s booked as %s", purchase_id, purchase.formatted_number)
        return await self.get_purchase_by_id(purchase_id)

    async def pay_purchase(self, purchase_id: int) -> PurchaseInvoice:
        """Mark a booked purchase invoice as fully paid."""
        purchase = await self.get_purchase_by_id(purchase_id)
        if purchase.status != PurchaseInvoiceStatus.BOOKED.value:
            raise InvalidStateError(
                f"Cannot pay a purchase invoice with status '{purchase.status}'",
                status=purchase.status,
            )

        purchase.paid_cents = purchase.total_cents
        purchase.status = PurchaseInvoiceStatus.PAID.value
        await self.audit.log(
            action=AuditAction.PAY,
            entity_type="PurchaseInvoice",
            entity_id=purchase.id,
            company_id=purchase.company_id,
            entity_identifier=purchase.formatted_number,
            old_values={"status": PurchaseInvoiceStatus.BOOKED.value},
            new_values={"status": purchase.status, "paid_cents": purchase.paid_cents},
        )
        await self.db.commit()
        return await self.get_purchase_by_id(purchase_id)
