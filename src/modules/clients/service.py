"""Service for Clients module."""

from datetime import datetime, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.audit import AuditAction, AuditService
from src.core.company.service import get_company
from src.core.exceptions import DuplicateError, NotFoundError
from src.modules.clients.models import Client
from src.modules.clients.schemas import ClientCreate, ClientUpdate


class ClientService:
    """Service for managing clients."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def get_client_by_id(self, client_id: int) -> Client:
        result = await self.db.execute(
            select(Client).where(Client.id == client_id, Client.deleted_at.is_(None))
        )
        client = result.scalar_one_or_none()
        if not client:
            raise NotFoundError("Client", client_id)
        return client

    async def list_clients(
        self, search: str | None = None, page: int = 1, limit: int = 100
    ) -> tuple[list[Client], int]:
        query = select(Client).where(Client.deleted_at.is_(None))
        if search:
            term = f"%{search}%"
            query = query.where(
                or_(Client.name.ilike(term), Client.email.ilike(term), Client.tax_id.ilike(term))
            )

        total_result = await self.db.execute(select(func.count()).select_from(query.subquery()))
        total = total_result.scalar() or 0

        query = query.order_by(Client.created_at.desc(), Client.id.desc())
        query = query.offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def _check_tax_id_unique(self, company_id: int, tax_id: str | None) -> None:
        if not tax_id:
            return
        result = await self.db.execute(
            select(Client.id).where(
                Client.company_id == company_id,
                Client.tax_id == tax_id,
                Client.deleted_at.is_(None),
            )
        )
        if result.scalar_one_or_none() is not None:
            raise DuplicateError("Client", "tax_id", tax_id)

    async def create_client(self, data: ClientCreate) -> Client:
        company = await get_company(self.db)
        await self._check_tax_id_unique(company.id, data.tax_id)
        values = data.model_dump()
        if values["payment_terms_days"] is None:
            values["payment_terms_days"] = company.default_payment_terms_days
        client = Client(company_id=company.id, **values)
        self.db.add(client)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="Client",
            entity_id=client.id,
            company_id=company.id,
            entity_identifier=client.name,
            new_values={"name": client.name, "tax_id": client.tax_id},
        )
        await self.db.commit()
        await self.db.refresh(client)
        return client

    async def update_client(self, client_id: int, data: ClientUpdate) -> Client:
        client = await self.get_client_by_id(client_id)
        changes = data.model_dump(exclude_unset=True)
        old_values = {key: getattr(client, key) for key in changes}
        for key, value in changes.items():
            setattr(client, key, value)

        await self.audit.log(
            action=AuditAction.UPDATE,
            entity_type="Client",
            entity_id=client.id,
            company_id=client.company_id,
            entity_identifier=client.name,
            old_values=old_values,
            new_values=changes,
        )
        await self.db.commit()
        await self.db.refresh(client)
        return client

    async def delete_client(self, client_id: int) -> None:
        """Soft delete; documents keep their reference."""
        client = await self.get_client_by_id(client_id)
        client.deleted_at = datetime.now(timezone.utc)
        await self.audit.log(
            action=AuditAction.DELETE,
            entity_type="Client",
            entity_id=client.id,
            company_id=client.company_id,
            entity_identifier=client.name,
        )
        await self.db.commit()
