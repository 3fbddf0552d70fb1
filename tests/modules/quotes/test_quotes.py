import asyncio
from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.audit.service import AuditService
from src.core.company.models import Company
from src.core.company.service import get_company
from src.core.documents import DocType, DocumentNumberService
from src.core.documents.schemas import DocumentLineCreate
from src.core.exceptions import InvalidStateError, ValidationError
from src.modules.clients.models import Client
from src.modules.clients.schemas import ClientCreate
from src.modules.clients.service import ClientService
from src.modules.invoices.models import InvoiceStatus
from src.modules.invoices.schemas import InvoiceFilters
from src.modules.invoices.service import InvoiceService
from src.modules.quotes.models import QuoteStatus
from src.modules.quotes.schemas import QuoteCreate, QuoteFilters, QuoteUpdate
from src.modules.quotes.service import QuoteService


class TestQuoteService:
    """Tests for QuoteService."""

    async def _draft(self, db_session: AsyncSession, customer: Client):
        return await QuoteService(db_session).create_quote(
            QuoteCreate(
                client_id=customer.id,
                valid_until=date(2026, 2, 28),
                lines=[
                    DocumentLineCreate(
                        description="Mantenimiento anual",
                        quantity=Decimal("12"),
                        unit_price_cents=4500,
                        tax_rate=21,
                    )
                ],
            )
        )

    async def test_create_draft(self, db_session: AsyncSession, customer: Client):
        quote = await self._draft(db_session, customer)
        assert quote.status == QuoteStatus.DRAFT.value
        assert quote.number is None
        assert quote.total_cents == 65340

    async def test_update_draft(self, db_session: AsyncSession, customer: Client):
        quote = await self._draft(db_session, customer)
        updated = await QuoteService(db_session).update_quote(
            quote.id, QuoteUpdate(valid_until=date(2026, 3, 31), notes="Incluye desplazamientos")
        )
        assert updated.valid_until == date(2026, 3, 31)
        assert updated.notes == "Incluye desplazamientos"

    async def test_emit_numbers_quotes(self, db_session: AsyncSession, customer: Client):
        service = QuoteService(db_session)
        first = await service.emit_quote((await self._draft(db_session, customer)).id, date(2026, 1, 20))
        second = await service.emit_quote((await self._draft(db_session, customer)).id, date(2026, 1, 21))

        assert first.status == QuoteStatus.SENT.value
        assert first.formatted_number == "PRE-2026-0001"
        assert second.formatted_number == "PRE-2026-0002"

    async def test_emit_continues_imported_counter(
        self, db_session: AsyncSession, customer: Client, company: Company
    ):
        await DocumentNumberService(db_session).reset_counter(company.id, DocType.QUOTE, 2026, 5)
        await db_session.commit()
        service = QuoteService(db_session)

        a = await service.emit_quote((await self._draft(db_session, customer)).id, date(2026, 3, 1))
        b = await service.emit_quote((await self._draft(db_session, customer)).id, date(2026, 3, 1))
        assert (a.number, b.number) == (6, 7)

        counters = {
            c.doc_type: c for c in await DocumentNumberService(db_session).list_counters(company.id, 2026)
        }
        assert counters[DocType.QUOTE].current_number == 7

    async def test_emit_twice_fails(self, db_session: AsyncSession, customer: Client):
        service = QuoteService(db_session)
        quote = await self._draft(db_session, customer)
        await service.emit_quote(quote.id)
        with pytest.raises(InvalidStateError):
            await service.emit_quote(quote.id)

    async def test_failed_emit_keeps_draft(
        self, db_session: AsyncSession, customer: Client, company: Company
    ):
        company_id = company.id
        quote_id = (await self._draft(db_session, customer)).id
        service = QuoteService(db_session)

        with patch.object(AuditService, "log", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                await service.emit_quote(quote_id, date(2026, 9, 1))

        quote = await service.get_quote_by_id(quote_id)
        assert quote.status == QuoteStatus.DRAFT.value
        assert quote.number is None
        assert await DocumentNumberService(db_session).peek_next(company_id, DocType.QUOTE, 2026) == 1

    async def test_emit_without_lines_fails(self, db_session: AsyncSession, customer: Client):
        quote = await QuoteService(db_session).create_quote(QuoteCreate(client_id=customer.id))
        with pytest.raises(ValidationError):
            await QuoteService(db_session).emit_quote(quote.id)

    async def test_transitions(self, db_session: AsyncSession, customer: Client):
        service = QuoteService(db_session)
        quote = await self._draft(db_session, customer)

        with pytest.raises(InvalidStateError):
            await service.change_status(quote.id, QuoteStatus.ACCEPTED)

        await service.emit_quote(quote.id)
        rejected = await service.change_status(quote.id, QuoteStatus.REJECTED)
        assert rejected.status == QuoteStatus.REJECTED.value

        with pytest.raises(InvalidStateError):
            await service.change_status(quote.id, QuoteStatus.ACCEPTED)

    async def test_convert_accepted_quote(self, db_session: AsyncSession, customer: Client):
        service = QuoteService(db_session)
        quote = await self._draft(db_session, customer)
        await service.emit_quote(quote.id, date(2026, 2, 1))
        await service.change_status(quote.id, QuoteStatus.ACCEPTED)

        invoice = await service.convert_to_invoice(quote.id)
        invoice = await InvoiceService(db_session).get_invoice_by_id(invoice.id)

        assert invoice.status == InvoiceStatus.DRAFT.value
        assert invoice.number is None
        assert invoice.source_quote_id == quote.id
        assert invoice.total_cents == 65340
        assert len(invoice.lines) == 1

        reloaded = await service.get_quote_by_id(quote.id)
        assert reloaded.converted_invoice_id == invoice.id
        assert reloaded.formatted_number == "PRE-2026-0001"

        with pytest.raises(InvalidStateError):
            await service.convert_to_invoice(quote.id)

    async def test_convert_sent_quote_fails(self, db_session: AsyncSession, customer: Client):
        service = QuoteService(db_session)
        quote = await self._draft(db_session, customer)
        await service.emit_quote(quote.id)
        with pytest.raises(InvalidStateError):
            await service.convert_to_invoice(quote.id)

    async def test_list_by_status(self, db_session: AsyncSession, customer: Client):
        service = QuoteService(db_session)
        sent = await self._draft(db_session, customer)
        await self._draft(db_session, customer)
        await service.emit_quote(sent.id)

        quotes, total = await service.list_quotes(QuoteFilters(status=QuoteStatus.SENT))
        assert total == 1
        assert quotes[0].id == sent.id



class TestConcurrentQuoteLifecycle:
    """Emitting and converting the same quote from two independent transactions."""

    async def _setup_quote(
        self, file_sessions: async_sessionmaker[AsyncSession]
    ) -> tuple[int, int]:
        async with file_sessions() as session:
            company = await get_company(session)
            await session.commit()
            customer = await ClientService(session).create_client(
                ClientCreate(name="Talleres Ruiz S.L.", tax_id="B12345678")
            )
            quote = await QuoteService(session).create_quote(
                QuoteCreate(
                    client_id=customer.id,
                    lines=[DocumentLineCreate(description="Auditoría", unit_price_cents=80000)],
                )
            )
            return company.id, quote.id

    async def test_same_draft_gets_one_number(
        self, file_sessions: async_sessionmaker[AsyncSession]
    ):
        company_id, quote_id = await self._setup_quote(file_sessions)

        async def emit():
            async with file_sessions() as session:
                quote = await QuoteService(session).emit_quote(quote_id, date(2026, 5, 4))
                return quote.number

        results = await asyncio.gather(emit(), emit(), return_exceptions=True)

        assert [r for r in results if not isinstance(r, Exception)] == [1]
        assert len([r for r in results if isinstance(r, InvalidStateError)]) == 1
        async with file_sessions() as session:
            counter = DocumentNumberService(session)
            assert await counter.current(company_id, DocType.QUOTE, 2026) == 1

    async def test_converts_once(self, file_sessions: async_sessionmaker[AsyncSession]):
        _, quote_id = await self._setup_quote(file_sessions)
        async with file_sessions() as session:
            service = QuoteService(session)
            await service.emit_quote(quote_id, date(2026, 5, 4))
            await service.change_status(quote_id, QuoteStatus.ACCEPTED)

        async def convert():
            async with file_sessions() as session:
                invoice = await QuoteService(session).convert_to_invoice(quote_id)
                return invoice.id

        results = await asyncio.gather(convert(), convert(), return_exceptions=True)

        created = [r for r in results if not isinstance(r, Exception)]
        assert len(created) == 1
        assert len([r for r in results if isinstance(r, InvalidStateError)]) == 1

        async with file_sessions() as session:
            quote = await QuoteService(session).get_quote_by_id(quote_id)
            assert quote.converted_invoice_id == created[0]
            _, total = await InvoiceService(session).list_invoices(InvoiceFilters())
            assert total == 1

class TestQuoteEndpoints:
    """Tests for quote API endpoints."""

    async def test_full_flow(self, client: AsyncClient, customer: Client):
        created = await client.post(
            "/api/v1/quotes",
            json={
                "client_id": customer.id,
                "lines": [{"description": "Auditoría", "unit_price_cents": 80000, "tax_rate": "21"}],
            },
        )
        assert created.status_code == 201
        quote_id = created.json()["data"]["id"]

        sent = await client.post(f"/api/v1/quotes/{quote_id}/emit")
        assert sent.status_code == 200
        assert sent.json()["data"]["formatted_number"].startswith("PRE-")

        accepted = await client.post(f"/api/v1/quotes/{quote_id}/accept")
        assert accepted.json()["data"]["status"] == "accepted"

        converted = await client.post(f"/api/v1/quotes/{quote_id}/convert")
        assert converted.status_code == 201
        invoice = converted.json()["data"]
        assert invoice["status"] == "draft"
        assert invoice["source_quote_id"] == quote_id
        assert invoice["total_cents"] == 96800

        again = await client.post(f"/api/v1/quotes/{quote_id}/convert")
        assert again.status_code == 409

    async def test_expire_draft_conflict(self, client: AsyncClient, customer: Client):
        created = await client.post("/api/v1/quotes", json={"client_id": customer.id})
        quote_id = created.json()["data"]["id"]

        response = await client.post(f"/api/v1/quotes/{quote_id}/expire")
        assert response.status_code == 409

    async def test_delete_draft(self, client: AsyncClient, customer: Client):
        created = await client.post("/api/v1/quotes", json={"client_id": customer.id})
        quote_id = created.json()["data"]["id"]

        response = await client.delete(f"/api/v1/quotes/{quote_id}")
        assert response.status_code == 200
        assert (await client.get(f"/api/v1/quotes/{quote_id}")).status_code == 404
