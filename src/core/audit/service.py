from enum import StrEnum
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.audit.models import AuditLog


class AuditAction(StrEnum):
    """Standard audit actions."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    # Document lifecycle
    EMIT = "EMIT"
    ACCEPT = "ACCEPT"
    REJECT = "REJECT"
    EXPIRE = "EXPIRE"
    CONVERT = "CONVERT"
    BOOK = "BOOK"
    PAY = "PAY"
    VOID = "VOID"
    RECORD_PAYMENT = "RECORD_PAYMENT"

    # Numbering administration
    RESET_COUNTER = "RESET_COUNTER"


class AuditService:
    """Service for creating audit logs."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log(
        self,
        action: str | AuditAction,
        entity_type: str,
        entity_id: int,
        company_id: int | None = None,
        user_id: int | None = None,
        entity_identifier: str | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        comment: str | None = None,
    ) -> AuditLog:
        """Create an audit log entry in the current unit of work."""
        audit_log = AuditLog(
            company_id=company_id,
            user_id=user_id,
            action=str(action),
            entity_type=entity_type,
            entity_id=entity_id,
            entity_identifier=entity_identifier,
            old_values=old_values,
            new_values=new_values,
            comment=comment,
        )

        self.db.add(audit_log)
        await self.db.flush()

        return audit_log


async def list_audit_entries(
    session: AsyncSession,
    *,
    company_id: int | None = None,
    entity_type: str | None = None,
    entity_id: int | None = None,
    action: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[AuditLog], int]:
    """
    List audit log entries with optional filters, newest first.
    Returns (entries, total_count).
    """
    q = select(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    count_q = select(func.count()).select_from(AuditLog)
    if company_id is not None:
        q = q.where(AuditLog.company_id == company_id)
        count_q = count_q.where(AuditLog.company_id == company_id)
    if entity_type is not None:
        q = q.where(AuditLog.entity_type == entity_type)
        count_q = count_q.where(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        q = q.where(AuditLog.entity_id == entity_id)
        count_q = count_q.where(AuditLog.entity_id == entity_id)
    if action is not None:
        q = q.where(AuditLog.action == action)
        count_q = count_q.where(AuditLog.action == action)

    total_result = await session.execute(count_q)
    total = total_result.scalar_one()

    q = q.offset((page - 1) * limit).limit(limit)
    result = await session.execute(q)
    return list(result.scalars().all()), total
