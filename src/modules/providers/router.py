"""API endpoints for Providers module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.session import get_db
from src.modules.providers.schemas import ProviderCreate, ProviderResponse, ProviderUpdate
from src.modules.providers.service import ProviderService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/providers", tags=["Providers"])


@router.post("", response_model=ApiResponse[ProviderResponse], status_code=status.HTTP_201_CREATED)
async def create_provider(data: ProviderCreate, db: AsyncSession = Depends(get_db)):
    provider = await ProviderService(db).create_provider(data)
    return ApiResponse(
        success=True,
        message="Provider created successfully",
        data=ProviderResponse.model_validate(provider),
    )


@router.get("", response_model=ApiResponse[PaginatedResponse[ProviderResponse]])
async def list_providers(
    q: str | None = Query(None, description="Search by name, email or tax id"),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    providers, total = await ProviderService(db).list_providers(q, page, limit)
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[ProviderResponse.model_validate(c) for c in providers],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get("/{provider_id}", response_model=ApiResponse[ProviderResponse])
async def get_provider(provider_id: int, db: AsyncSession = Depends(get_db)):
    provider = await ProviderService(db).get_provider_by_id(provider_id)
    return ApiResponse(success=True, data=ProviderResponse.model_validate(provider))


@router.put("/{provider_id}", response_model=ApiResponse[ProviderResponse])
async def update_provider(provider_id: int, data: ProviderUpdate, db: AsyncSession = Depends(get_db)):
    provider = await ProviderService(db).update_provider(provider_id, data)
    return ApiResponse(
        success=True,
        message="Provider updated successfully",
        data=ProviderResponse.model_validate(provider),
    )


@router.delete("/{provider_id}", response_model=ApiResponse[None])
async def delete_provider(provider_id: int, db: AsyncSession = Depends(get_db)):
    await ProviderService(db).delete_provider(provider_id)
    return ApiResponse(success=True, message="Provider deleted", data=None)
