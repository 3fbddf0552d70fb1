import asyncio
from datetime import date, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.company.service import get_company
from src.core.documents import DocType, DocumentNumberService
from src.core.documents.schemas import DocumentLineCreate
from src.core.exceptions import InvalidStateError, NotFoundError
from src.modules.providers.models import Provider
from src.modules.providers.schemas import ProviderCreate
from src.modules.providers.service import ProviderService
from src.modules.purchases.models import PurchaseInvoiceStatus
from src.modules.purchases.schemas import PurchaseInvoiceCreate, PurchaseInvoiceFilters
from src.modules.purchases.service import PurchaseService


class TestPurchaseService:
    """Tests for PurchaseService."""

    async def _draft(self, db_session: AsyncSession, provider: Provider, **kwargs):
        return await PurchaseService(db_session).create_purchase(
            PurchaseInvoiceCreate(
                provider_id=provider.id,
                provider_invoice_number="SL-2026/0458",
                lines=[DocumentLineCreate(description="Papel A4", unit_price_cents=2500, tax_rate=21)],
                **kwargs,
            )
        )

    async def test_book_assigns_internal_number(
        self, db_session: AsyncSession, provider: Provider
    ):
        purchase = await self._draft(db_session, provider)
        booked = await PurchaseService(db_session).book_purchase(purchase.id, date(2026, 2, 3))

        assert booked.status == PurchaseInvoiceStatus.BOOKED.value
        assert booked.formatted_number == "FP-2026-0001"
        assert booked.provider_invoice_number == "SL-2026/0458"
        assert booked.due_date == date(2026, 2, 3) + timedelta(days=60)

    async def test_book_keeps_typed_due_date(self, db_session: AsyncSession, provider: Provider):
        purchase = await self._draft(db_session, provider, due_date=date(2026, 2, 15))
        booked = await PurchaseService(db_session).book_purchase(purchase.id, date(2026, 2, 3))
        assert booked.due_date == date(2026, 2, 15)

    async def test_book_twice_fails(self, db_session: AsyncSession, provider: Provider):
        service = PurchaseService(db_session)
        purchase = await self._draft(db_session, provider)
        await service.book_purchase(purchase.id)
        with pytest.raises(InvalidStateError):
            await service.book_purchase(purchase.id)

    async def test_pay(self, db_session: AsyncSession, provider: Provider):
        service = PurchaseService(db_session)
        purchase = await self._draft(db_session, provider)

        with pytest.raises(InvalidStateError):
            await service.pay_purchase(purchase.id)

        await service.book_purchase(purchase.id)
        paid = await service.pay_purchase(purchase.id)
        assert paid.status == PurchaseInvoiceStatus.PAID.value
        assert paid.paid_cents == paid.total_cents == 3025
        assert paid.amount_due_cents == 0

    async def test_delete_only_drafts(self, db_session: AsyncSession, provider: Provider):
        service = PurchaseService(db_session)
        draft = await self._draft(db_session, provider)
        booked = await self._draft(db_session, provider)
        await service.book_purchase(booked.id)

        await service.delete_purchase(draft.id)
        with pytest.raises(NotFoundError):
            await service.get_purchase_by_id(draft.id)
        with pytest.raises(InvalidStateError):
            await service.delete_purchase(booked.id)

    async def test_list_by_provider(self, db_session: AsyncSession, provider: Provider):
        service = PurchaseService(db_session)
        await self._draft(db_session, provider)
        await self._draft(db_session, provider)

        purchases, total = await service.list_purchases(
            PurchaseInvoiceFilters(provider_id=provider.id)
        )
        assert total == 2
        assert all(p.provider_id == provider.id for p in purchases)



class TestConcurrentBooking:
    """Booking the same draft from two independent transactions."""

    async def test_same_draft_gets_one_number(
        self, file_sessions: async_sessionmaker[AsyncSession]
    ):
        async with file_sessions() as session:
            company = await get_company(session)
            await session.commit()
            company_id = company.id
            provider = await ProviderService(session).create_provider(
                ProviderCreate(name="Suministros Levante S.A.", tax_id="A87654321")
            )
            purchase = await PurchaseService(session).create_purchase(
                PurchaseInvoiceCreate(
                    provider_id=provider.id,
                    lines=[DocumentLineCreate(description="Tóner", unit_price_cents=9000)],
                )
            )
            purchase_id = purchase.id

        async def book():
            async with file_sessions() as session:
                booked = await PurchaseService(session).book_purchase(purchase_id, date(2026, 6, 1))
                return booked.number

        results = await asyncio.gather(book(), book(), return_exceptions=True)

        assert [r for r in results if not isinstance(r, Exception)] == [1]
        assert len([r for r in results if isinstance(r, InvalidStateError)]) == 1
        async with file_sessions() as session:
            counter = DocumentNumberService(session)
            assert await counter.current(company_id, DocType.PURCHASE_INVOICE, 2026) == 1

class TestPurchaseEndpoints:
    """Tests for purchase API endpoints."""

    async def test_book_and_pay(self, client: AsyncClient, provider: Provider):
        created = await client.post(
            "/api/v1/purchases",
            json={
                "provider_id": provider.id,
                "provider_invoice_number": "F-77",
                "lines": [{"description": "Hosting", "unit_price_cents": 1000, "tax_rate": "21"}],
            },
        )
        assert created.status_code == 201
        purchase_id = created.json()["data"]["id"]

        booked = await client.post(
            f"/api/v1/purchases/{purchase_id}/book", json={"issue_date": "2026-05-04"}
        )
        assert booked.status_code == 200
        assert booked.json()["data"]["formatted_number"] == "FP-2026-0001"

        paid = await client.post(f"/api/v1/purchases/{purchase_id}/pay")
        assert paid.status_code == 200
        assert paid.json()["data"]["status"] == "paid"

        again = await client.post(f"/api/v1/purchases/{purchase_id}/book")
        assert again.status_code == 409
