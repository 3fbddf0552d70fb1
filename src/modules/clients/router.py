"""API endpoints for Clients module."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.session import get_db
from src.modules.clients.schemas import ClientCreate, ClientResponse, ClientUpdate
from src.modules.clients.service import ClientService
from src.shared.schemas.base import ApiResponse, PaginatedResponse

router = APIRouter(prefix="/clients", tags=["Clients"])


@router.post("", response_model=ApiResponse[ClientResponse], status_code=status.HTTP_201_CREATED)
async def create_client(data: ClientCreate, db: AsyncSession = Depends(get_db)):
    client = await ClientService(db).create_client(data)
    return ApiResponse(
        success=True,
        message="Client created successfully",
        data=ClientResponse.model_validate(client),
    )


@router.get("", response_model=ApiResponse[PaginatedResponse[ClientResponse]])
async def list_clients(
    q: str | None = Query(None, description="Search by name, email or tax id"),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    clients, total = await ClientService(db).list_clients(q, page, limit)
    return ApiResponse(
        success=True,
        data=PaginatedResponse.create(
            items=[ClientResponse.model_validate(c) for c in clients],
            total=total,
            page=page,
            limit=limit,
        ),
    )


@router.get("/{client_id}", response_model=ApiResponse[ClientResponse])
async def get_client(client_id: int, db: AsyncSession = Depends(get_db)):
    client = await ClientService(db).get_client_by_id(client_id)
    return ApiResponse(success=True, data=ClientResponse.model_validate(client))


@router.put("/{client_id}", response_model=ApiResponse[ClientResponse])
async def update_client(client_id: int, data: ClientUpdate, db: AsyncSession = Depends(get_db)):
    client = await ClientService(db).update_client(client_id, data)
    return ApiResponse(
        success=True,
        message="Client updated successfully",
        data=ClientResponse.model_validate(client),
    )


@router.delete("/{client_id}", response_model=ApiResponse[None])
async def delete_client(client_id: int, db: AsyncSession = Depends(get_db)):
    await ClientService(db).delete_client(client_id)
    return ApiResponse(success=True, message="Client deleted", data=None)
