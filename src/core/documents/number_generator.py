import logging
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.company.models import Company
from src.core.documents.models import (
    DOC_PREFIXES,
    DocType,
    DocumentCounter,
    NumberedDocumentMixin,
    format_doc_number,
)
from src.core.documents.schemas import NumberingCounterResponse
from src.core.exceptions import (
    InvalidStateError,
    NotFoundError,
    StorageConflictError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Dialects supporting INSERT ... ON CONFLICT DO UPDATE ... RETURNING
_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

_KEY_COLUMNS = ["company_id", "year", "doc_type"]


def _coerce_doc_type(doc_type: DocType | str) -> DocType:
    try:
        return DocType(doc_type)
    except ValueError:
        allowed = ", ".join(t.value for t in DocType)
        raise ValidationError(f"Unknown document type '{doc_type}' (allowed: {allowed})", "doc_type")


def _check_year(year: int) -> int:
    if year < 1900 or year > 9999:
        raise ValidationError(f"Invalid year: {year}", "year")
    return year


class DocumentNumberService:
    """
    Sequential numbers per (company, year, document type).

    allocate() never commits: it runs inside the caller's transaction so the
    increment is committed or rolled back together with the document that
    consumes the number.

    Examples of formatted numbers:
        FAC-2026-0001
        PRE-2026-0042
        REC-2026-0003
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _ensure_company(self, company_id: int) -> None:
        result = await self.session.execute(select(Company.id).where(Company.id == company_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Company", company_id)

    def _upsert_insert(self):
        dialect = self.session.get_bind().dialect.name
        return _UPSERT_INSERTS.get(dialect)

    def _locked_select(self, company_id: int, doc_type: DocType, year: int):
        return (
            select(DocumentCounter)
            .where(
                DocumentCounter.company_id == company_id,
                DocumentCounter.year == year,
                DocumentCounter.doc_type == doc_type.value,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )

    async def _locked_counter(
        self, company_id: int, doc_type: DocType, year: int
    ) -> DocumentCounter:
        """Fetch the counter row with a row lock, creating it at zero if absent."""
        stmt = self._locked_select(company_id, doc_type, year)
        result = await self.session.execute(stmt)
        counter = result.scalar_one_or_none()

        if counter is None:
            counter = DocumentCounter(
                company_id=company_id, year=year, doc_type=doc_type.value, current_number=0
            )
            self.session.add(counter)
            await self.session.flush()

            # Re-fetch with lock
            result = await self.session.execute(stmt)
            counter = result.scalar_one()

        return counter

    async def allocate(self, company_id: int, doc_type: DocType | str, year: int) -> int:
        """
        Increment the counter for (company_id, year, doc_type) and return the new number.

        The first allocation for a key returns 1. Uses a single
        INSERT ... ON CONFLICT DO UPDATE ... RETURNING statement where the
        dialect supports it, SELECT FOR UPDATE otherwise.

        Raises:
            NotFoundError: company does not exist (nothing is written)
            StorageConflictError: the database could not lock or write the row
        """
        doc_type = _coerce_doc_type(doc_type)
        year = _check_year(year)
        await self._ensure_company(company_id)

        insert_ = self._upsert_insert()
        try:
            if insert_ is not None:
                table = DocumentCounter.__table__
                stmt = (
                    insert_(table)
                    .values(company_id=company_id, year=year, doc_type=doc_type.value, current_number=1)
                    .on_conflict_do_update(
                        index_elements=_KEY_COLUMNS,
                        set_={"current_number": table.c.current_number + 1},
                    )
                    .returning(table.c.current_number)
                )
                result = await self.session.execute(stmt)
                number = result.scalar_one()
            else:
                counter = await self._locked_counter(company_id, doc_type, year)
                counter.current_number += 1
                await self.session.flush()
                number = counter.current_number
        except (OperationalError, PoolTimeoutError) as exc:
            logger.warning(
                "Counter update failed for company=%s %s/%s: %s", company_id, doc_type, year, exc
            )
            raise StorageConflictError() from exc

        logger.info(
            "Allocated %s for company=%s", format_doc_number(doc_type, year, number), company_id
        )
        return number

    async def current(self, company_id: int, doc_type: DocType | str, year: int) -> int:
        """Last allocated number for the key, 0 when nothing was allocated yet."""
        doc_type = _coerce_doc_type(doc_type)
        year = _check_year(year)
        await self._ensure_company(company_id)

        result = await self.session.execute(
            select(DocumentCounter.current_number).where(
                DocumentCounter.company_id == company_id,
                DocumentCounter.year == year,
                DocumentCounter.doc_type == doc_type.value,
            )
        )
        return result.scalar_one_or_none() or 0

    async def peek_next(self, company_id: int, doc_type: DocType | str, year: int) -> int:
        """
        Return the number the next allocation would get, without changing anything.

        Advisory only: another request may allocate it first. Never use the
        result as the number of a document.
        """
        return await self.current(company_id, doc_type, year) + 1

    async def list_counters(self, company_id: int, year: int) -> list[NumberingCounterResponse]:
        """Current state of every document type for a year (zero when never used)."""
        year = _check_year(year)
        await self._ensure_company(company_id)

        result = await self.session.execute(
            select(DocumentCounter.doc_type, DocumentCounter.current_number).where(
                DocumentCounter.company_id == company_id,
                DocumentCounter.year == year,
            )
        )
        current_by_type = {row.doc_type: row.current_number for row in result.all()}

        counters = []
        for doc_type in DocType:
            current = current_by_type.get(doc_type.value, 0)
            counters.append(
                NumberingCounterResponse(
                    doc_type=doc_type,
                    prefix=DOC_PREFIXES[doc_type],
                    year=year,
                    current_number=current,
                    next_number=current + 1,
                    next_formatted=format_doc_number(doc_type, year, current + 1),
                )
            )
        return counters

    async def reset_counter(
        self, company_id: int, doc_type: DocType | str, year: int, value: int = 0
    ) -> int:
        """
        Set the counter to an explicit value (admin operation for data migration).

        Lowering the value makes already issued numbers reusable; callers must
        make sure no issued document of that key has a number above `value`.
        """
        doc_type = _coerce_doc_type(doc_type)
        year = _check_year(year)
        if value < 0:
            raise ValidationError("Counter value cannot be negative", "value")
        await self._ensure_company(company_id)

        insert_ = self._upsert_insert()
        try:
            if insert_ is not None:
                table = DocumentCounter.__table__
                stmt = (
                    insert_(table)
                    .values(company_id=company_id, year=year, doc_type=doc_type.value, current_number=value)
                    .on_conflict_do_update(
                        index_elements=_KEY_COLUMNS,
                        set_={"current_number": value},
                    )
                )
                await self.session.execute(stmt)
            else:
                counter = await self._locked_counter(company_id, doc_type, year)
                counter.current_number = value
                await self.session.flush()
        except (OperationalError, PoolTimeoutError) as exc:
            raise StorageConflictError() from exc

        logger.warning(
            "Counter %s/%s for company=%s reset to %s", doc_type, year, company_id, value
        )
        return value


async def _claim_draft(
    session: AsyncSession, document: NumberedDocumentMixin, new_status: str
) -> None:
    """
    Move the stored row out of draft with a conditional UPDATE.

    The WHERE clause re-checks draft status and the missing number against
    the database, so of two requests issuing the same draft only one updates
    a row; the other waits for the row lock and then matches nothing.
    """
    model = type(document)
    result = await session.execute(
        update(model)
        .where(
            model.id == document.id,
            model.status == "draft",
            model.number.is_(None),
            model.deleted_at.is_(None),
        )
        .values(status=new_status)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.info("%s %s was issued by another request", model.__name__, document.id)
        raise InvalidStateError(
            f"{model.__name__} {document.id} is no longer a draft",
            status=new_status,
        )


async def assign_document_number(
    session: AsyncSession,
    document: NumberedDocumentMixin,
    new_status: str,
    issue_date: date | None = None,
) -> int:
    """
    Give a draft document its sequential number, year and issue date, and
    move it to `new_status`.

    Must be called inside the transaction that commits the document. The
    draft is claimed in the database before the counter is touched, so a
    document never consumes two numbers.
    """
    if document.status != "draft" or document.is_numbered:
        raise InvalidStateError(
            f"Cannot issue a document with status '{document.status}'"
            + (f" and number {document.formatted_number}" if document.is_numbered else ""),
            status=document.status,
        )

    await _claim_draft(session, document, new_status)

    issue_date = issue_date or date.today()
    number = await DocumentNumberService(session).allocate(
        document.company_id, document.doc_type, issue_date.year
    )
    document.status = new_status
    document.number = number
    document.year = issue_date.year
    document.issue_date = issue_date
    return number
