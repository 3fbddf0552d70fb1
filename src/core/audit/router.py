"""API for reading the audit trail."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.audit.schemas import AuditLogResponse
from src.core.audit.service import list_audit_entries
from src.core.database.session import get_db
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.get("", response_model=ApiResponse[PaginatedResponse[AuditLogResponse]])
async def list_audit(
    entity_type: str | None = Query(None),
    entity_id: int | None = Query(None),
    action: str | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """List audit entries, newest first."""
    entries, total = await list_audit_entries(
        db,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        page=page,
        limit=limit,
    )
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[AuditLogResponse.model_validate(e) for e in entries],
            total=total,
            page=page,
            limit=limit,
        ),
    )
