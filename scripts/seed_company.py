#!/usr/bin/env python3
"""
Create the company row and, when migrating from another tool, set the
document counters to the last number already issued there.

Usage:
    python scripts/seed_company.py --dry-run
    python scripts/seed_company.py --confirm
    python scripts/seed_company.py --confirm --counter invoice:2026:41 --counter quote:2026:12

Requirements: migrations applied (alembic upgrade head), database reachable.
"""

import asyncio
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.audit.service import AuditAction, AuditService
from src.core.company.service import get_company
from src.core.config import settings
from src.core.database.session import async_session
from src.core.documents.models import DOC_PREFIXES, DocType
from src.core.documents.number_generator import DocumentNumberService


def parse_counter(raw: str) -> tuple[DocType, int, int]:
    """Parse 'doc_type:year:last_number' (e.g. invoice:2026:41)."""
    try:
        doc_type, year, value = raw.split(":")
        return DocType(doc_type), int(year), int(value)
    except ValueError:
        allowed = ", ".join(t.value for t in DocType)
        raise SystemExit(f"Invalid --counter '{raw}'. Expected <{allowed}>:<year>:<last_number>")


async def run_seed(
    session: AsyncSession, counters: list[tuple[DocType, int, int]], dry_run: bool
) -> None:
    company = await get_company(session)
    print(f"  Company #{company.id}: {company.legal_name} ({company.tax_id or 'no tax id'})")

    service = DocumentNumberService(session)
    audit = AuditService(session)
    for doc_type, year, value in counters:
        previous = await service.peek_next(company.id, doc_type, year) - 1
        await service.reset_counter(company.id, doc_type, year, value)
        await audit.log(
            action=AuditAction.RESET_COUNTER,
            entity_type="DocumentCounter",
            entity_id=company.id,
            company_id=company.id,
            entity_identifier=f"{DOC_PREFIXES[doc_type]}-{year}",
            old_values={"current_number": previous},
            new_values={"current_number": value},
            comment="Imported from previous system",
        )
        print(f"  Counter {DOC_PREFIXES[doc_type]}-{year}: {previous} -> {value}")

    if dry_run:
        await session.rollback()
        print("\n[DRY-RUN] Rolled back, no data written.")
    else:
        await session.commit()
        print("\nSeed completed successfully.")


async def main() -> None:
    import argparse
    parser = argparse.ArgumentParser(description="Create the company row and import counters")
    parser.add_argument("--dry-run", action="store_true", help="Do not commit")
    parser.add_argument("--confirm", action="store_true", help="Commit changes")
    parser.add_argument(
        "--counter",
        action="append",
        default=[],
        help="doc_type:year:last_number, may be repeated",
    )
    args = parser.parse_args()
    if not args.dry_run and not args.confirm:
        print("Use --dry-run or --confirm")
        sys.exit(1)

    counters = [parse_counter(raw) for raw in args.counter]
    print("Database:", settings.database_url.split("@")[-1] if "@" in settings.database_url else "?")
    print("Mode:", "DRY-RUN" if args.dry_run else "CONFIRM")
    async with async_session() as session:
        await run_seed(session, counters, dry_run=args.dry_run)
    print("Done.")


if __name__ == "__main__":
    asyncio.run(main())
