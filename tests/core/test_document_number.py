import asyncio
from unittest.mock import patch

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.company.models import Company
from src.core.company.service import get_company
from src.core.documents import DocType, DocumentCounter, DocumentNumberService, format_doc_number
from src.core.exceptions import NotFoundError, ValidationError


async def _stored(db_session: AsyncSession, company_id: int, doc_type: DocType, year: int):
    result = await db_session.execute(
        select(DocumentCounter.current_number).where(
            DocumentCounter.company_id == company_id,
            DocumentCounter.doc_type == doc_type.value,
            DocumentCounter.year == year,
        )
    )
    return result.scalar_one_or_none()


class TestFormatDocNumber:
    """Tests for format_doc_number."""

    def test_prefixes(self):
        assert format_doc_number(DocType.INVOICE, 2026, 3) == "FAC-2026-0003"
        assert format_doc_number(DocType.QUOTE, 2026, 120) == "PRE-2026-0120"
        assert format_doc_number(DocType.CREDIT_NOTE, 2026, 1) == "REC-2026-0001"
        assert format_doc_number(DocType.PURCHASE_INVOICE, 2027, 1) == "FP-2027-0001"

    def test_accepts_raw_value(self):
        assert format_doc_number("quote", 2026, 7) == "PRE-2026-0007"

    def test_wider_than_padding(self):
        assert format_doc_number(DocType.INVOICE, 2026, 12345) == "FAC-2026-12345"


class TestAllocate:
    """Tests for DocumentNumberService.allocate."""

    async def test_first_allocation_is_one(self, db_session: AsyncSession, company: Company):
        service = DocumentNumberService(db_session)

        assert await _stored(db_session, company.id, DocType.INVOICE, 2026) is None
        assert await service.allocate(company.id, DocType.INVOICE, 2026) == 1
        assert await _stored(db_session, company.id, DocType.INVOICE, 2026) == 1

        assert await service.allocate(company.id, DocType.INVOICE, 2026) == 2
        assert await _stored(db_session, company.id, DocType.INVOICE, 2026) == 2

    async def test_sequential_without_gaps(self, db_session: AsyncSession, company: Company):
        service = DocumentNumberService(db_session)
        numbers = [await service.allocate(company.id, DocType.QUOTE, 2026) for _ in range(25)]
        await db_session.commit()

        assert numbers == list(range(1, 26))
        assert await _stored(db_session, company.id, DocType.QUOTE, 2026) == 25

    async def test_keys_are_independent(self, db_session: AsyncSession, company: Company):
        service = DocumentNumberService(db_session)

        assert await service.allocate(company.id, DocType.INVOICE, 2026) == 1
        assert await service.allocate(company.id, DocType.INVOICE, 2026) == 2
        assert await service.allocate(company.id, DocType.QUOTE, 2026) == 1
        assert await service.allocate(company.id, DocType.INVOICE, 2027) == 1
        assert await service.allocate(company.id, DocType.CREDIT_NOTE, 2026) == 1
        assert await service.allocate(company.id, DocType.INVOICE, 2026) == 3

    async def test_keys_are_independent_per_company(
        self, db_session: AsyncSession, company: Company
    ):
        other = Company(legal_name="Otra Empresa S.L.", country="ES", currency="EUR")
        db_session.add(other)
        await db_session.commit()
        service = DocumentNumberService(db_session)

        assert await service.allocate(company.id, DocType.INVOICE, 2026) == 1
        assert await service.allocate(other.id, DocType.INVOICE, 2026) == 1
        assert await service.allocate(company.id, DocType.INVOICE, 2026) == 2

    async def test_continues_after_reset(self, db_session: AsyncSession, company: Company):
        service = DocumentNumberService(db_session)
        await service.reset_counter(company.id, DocType.QUOTE, 2026, 5)
        await db_session.commit()

        assert await service.allocate(company.id, DocType.QUOTE, 2026) == 6
        assert await service.allocate(company.id, DocType.QUOTE, 2026) == 7
        await db_session.commit()
        assert await _stored(db_session, company.id, DocType.QUOTE, 2026) == 7

    async def test_accepts_string_doc_type(self, db_session: AsyncSession, company: Company):
        service = DocumentNumberService(db_session)
        assert await service.allocate(company.id, "purchase_invoice", 2026) == 1

    async def test_unknown_company(self, db_session: AsyncSession, company: Company):
        service = DocumentNumberService(db_session)
        with pytest.raises(NotFoundError):
            await service.allocate(company.id + 999, DocType.INVOICE, 2026)
        assert await _stored(db_session, company.id + 999, DocType.INVOICE, 2026) is None

    async def test_unknown_doc_type(self, db_session: AsyncSession, company: Company):
        service = DocumentNumberService(db_session)
        with pytest.raises(ValidationError):
            await service.allocate(company.id, "delivery_note", 2026)

    async def test_invalid_year(self, db_session: AsyncSession, company: Company):
        service = DocumentNumberService(db_session)
        with pytest.raises(ValidationError):
            await service.allocate(company.id, DocType.INVOICE, 26)

    async def test_rollback_discards_allocation(
        self, db_session: AsyncSession, company: Company
    ):
        company_id = company.id
        service = DocumentNumberService(db_session)
        assert await service.allocate(company_id, DocType.INVOICE, 2026) == 1
        await db_session.commit()

        assert await service.allocate(company_id, DocType.INVOICE, 2026) == 2
        await db_session.rollback()

        assert await _stored(db_session, company_id, DocType.INVOICE, 2026) == 1
        assert await service.allocate(company_id, DocType.INVOICE, 2026) == 2


class TestPeekNext:
    """Tests for DocumentNumberService.peek_next."""

    async def test_current_is_last_allocated(self, db_session: AsyncSession, company: Company):
        service = DocumentNumberService(db_session)
        assert await service.current(company.id, DocType.INVOICE, 2026) == 0

        await service.reset_counter(company.id, DocType.INVOICE, 2026, 9)
        assert await service.current(company.id, DocType.INVOICE, 2026) == 9
        assert await service.peek_next(company.id, DocType.INVOICE, 2026) == 10

    async def test_absent_counter(self, db_session: AsyncSession, company: Company):
        service = DocumentNumberService(db_session)
        assert await service.peek_next(company.id, DocType.INVOICE, 2026) == 1
        assert await _stored(db_session, company.id, DocType.INVOICE, 2026) is None

    async def test_repeated_peek_is_stable(self, db_session: AsyncSession, company: Company):
        service = DocumentNumberService(db_session)
        await service.allocate(company.id, DocType.INVOICE, 2026)
        await service.allocate(company.id, DocType.INVOICE, 2026)
        await db_session.commit()

        first = await service.peek_next(company.id, DocType.INVOICE, 2026)
        second = await service.peek_next(company.id, DocType.INVOICE, 2026)
        assert first == second == 3
        assert await _stored(db_session, company.id, DocType.INVOICE, 2026) == 2

    async def test_peek_matches_next_allocation(
        self, db_session: AsyncSession, company: Company
    ):
        service = DocumentNumberService(db_session)
        await service.reset_counter(company.id, DocType.CREDIT_NOTE, 2026, 41)

        peeked = await service.peek_next(company.id, DocType.CREDIT_NOTE, 2026)
        assert await service.allocate(company.id, DocType.CREDIT_NOTE, 2026) == peeked == 42

    async def test_unknown_company(self, db_session: AsyncSession, company: Company):
        with pytest.raises(NotFoundError):
            await DocumentNumberService(db_session).peek_next(
                company.id + 1, DocType.QUOTE, 2026
            )


class TestCounters:
    """Tests for list_counters and reset_counter."""

    async def test_list_counters_includes_every_type(
        self, db_session: AsyncSession, company: Company
    ):
        service = DocumentNumberService(db_session)
        await service.allocate(company.id, DocType.INVOICE, 2026)
        await service.allocate(company.id, DocType.INVOICE, 2026)

        counters = {c.doc_type: c for c in await service.list_counters(company.id, 2026)}
        assert set(counters) == set(DocType)
        assert counters[DocType.INVOICE].current_number == 2
        assert counters[DocType.INVOICE].next_formatted == "FAC-2026-0003"
        assert counters[DocType.QUOTE].current_number == 0
        assert counters[DocType.QUOTE].next_number == 1
        assert counters[DocType.PURCHASE_INVOICE].prefix == "FP"

    async def test_reset_creates_missing_counter(
        self, db_session: AsyncSession, company: Company
    ):
        service = DocumentNumberService(db_session)
        assert await service.reset_counter(company.id, DocType.INVOICE, 2025, 120) == 120
        assert await _stored(db_session, company.id, DocType.INVOICE, 2025) == 120

    async def test_reset_rejects_negative(self, db_session: AsyncSession, company: Company):
        with pytest.raises(ValidationError):
            await DocumentNumberService(db_session).reset_counter(
                company.id, DocType.INVOICE, 2026, -1
            )


class TestConcurrentAllocate:
    """Allocations from independent transactions on a file-based database."""

    async def _setup(self, file_sessions: async_sessionmaker[AsyncSession], current: int) -> int:
        async with file_sessions() as session:
            company = await get_company(session)
            await DocumentNumberService(session).reset_counter(
                company.id, DocType.INVOICE, 2026, current
            )
            await session.commit()
            return company.id

    async def test_parallel_allocations_get_distinct_numbers(
        self, file_sessions: async_sessionmaker[AsyncSession]
    ):
        company_id = await self._setup(file_sessions, 5)

        async def allocate_and_commit() -> int:
            async with file_sessions() as session:
                number = await DocumentNumberService(session).allocate(
                    company_id, DocType.INVOICE, 2026
                )
                # Keep the transaction open so the other caller has to wait
                await asyncio.sleep(0.05)
                await session.commit()
                return number

        results = await asyncio.gather(allocate_and_commit(), allocate_and_commit())

        assert sorted(results) == [6, 7]
        async with file_sessions() as session:
            assert await _stored(session, company_id, DocType.INVOICE, 2026) == 7

    async def test_parallel_allocations_without_gaps(
        self, file_sessions: async_sessionmaker[AsyncSession]
    ):
        company_id = await self._setup(file_sessions, 0)

        async def allocate_and_commit() -> int:
            async with file_sessions() as session:
                number = await DocumentNumberService(session).allocate(
                    company_id, DocType.INVOICE, 2026
                )
                await session.commit()
                return number

        results = await asyncio.gather(*(allocate_and_commit() for _ in range(8)))

        assert sorted(results) == list(range(1, 9))
        async with file_sessions() as session:
            assert await _stored(session, company_id, DocType.INVOICE, 2026) == 8


class TestLockedCounterFallback:
    """SELECT ... FOR UPDATE path used on dialects without an upsert."""

    @pytest.fixture(autouse=True)
    def no_upsert(self):
        with patch.object(DocumentNumberService, "_upsert_insert", return_value=None):
            yield

    async def test_sequence_starts_at_one(self, db_session: AsyncSession, company: Company):
        service = DocumentNumberService(db_session)

        assert await _stored(db_session, company.id, DocType.INVOICE, 2026) is None
        assert [await service.allocate(company.id, DocType.INVOICE, 2026) for _ in range(3)] == [
            1,
            2,
            3,
        ]
        await db_session.commit()
        assert await _stored(db_session, company.id, DocType.INVOICE, 2026) == 3

    async def test_reset_then_allocate(self, db_session: AsyncSession, company: Company):
        service = DocumentNumberService(db_session)
        await service.reset_counter(company.id, DocType.QUOTE, 2026, 5)
        await db_session.commit()

        assert await service.allocate(company.id, DocType.QUOTE, 2026) == 6
        assert await service.allocate(company.id, DocType.QUOTE, 2026) == 7
        await db_session.commit()
        assert await _stored(db_session, company.id, DocType.QUOTE, 2026) == 7

    async def test_rollback_discards_allocation(
        self, db_session: AsyncSession, company: Company
    ):
        company_id = company.id
        service = DocumentNumberService(db_session)
        assert await service.allocate(company_id, DocType.INVOICE, 2026) == 1
        await db_session.commit()

        assert await service.allocate(company_id, DocType.INVOICE, 2026) == 2
        await db_session.rollback()

        assert await _stored(db_session, company_id, DocType.INVOICE, 2026) == 1
        assert await service.allocate(company_id, DocType.INVOICE, 2026) == 2
