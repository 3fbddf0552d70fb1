"""Service for Providers module."""

from datetime import datetime, timezone

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.audit import AuditAction, AuditService
from src.core.company.service import get_company
from src.core.exceptions import DuplicateError, NotFoundError
from src.modules.providers.models import Provider
from src.modules.providers.schemas import ProviderCreate, ProviderUpdate


class ProviderService:
    """Service for managing providers."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.audit = AuditService(db)

    async def get_provider_by_id(self, provider_id: int) -> Provider:
        result = await self.db.execute(
            select(Provider).where(Provider.id == provider_id, Provider.deleted_at.is_(None))
        )
        provider = result.scalar_one_or_none()
        if not provider:
            raise NotFoundError("Provider", provider_id)
        return provider

    async def list_providers(
        self, search: str | None = None, page: int = 1, limit: int = 100
    ) -> tuple[list[Provider], int]:
        query = select(Provider).where(Provider.deleted_at.is_(None))
        if search:
            term = f"%{search}%"
            query = query.where(
                or_(Provider.name.ilike(term), Provider.email.ilike(term), Provider.tax_id.ilike(term))
            )

        total_result = await self.db.execute(select(func.count()).select_from(query.subquery()))
        total = total_result.scalar() or 0

        query = query.order_by(Provider.created_at.desc(), Provider.id.desc())
        query = query.offset((page - 1) * limit).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def _check_tax_id_unique(self, company_id: int, tax_id: str | None) -> None:
        if not tax_id:
            return
        result = await self.db.execute(
            select(Provider.id).where(
                Provider.company_id == company_id,
                Provider.tax_id == tax_id,
                Provider.deleted_at.is_(None),
            )
        )
        if result.scalar_one_or_none() is not None:
            raise DuplicateError("Provider", "tax_id", tax_id)

    async def create_provider(self, data: ProviderCreate) -> Provider:
        company = await get_company(self.db)
        await self._check_tax_id_unique(company.id, data.tax_id)
        values = data.model_dump()
        if values["payment_terms_days"] is None:
            values["payment_terms_days"] = company.default_payment_terms_days
        provider = Provider(company_id=company.id, **values)
        self.db.add(provider)
        await self.db.flush()

        await self.audit.log(
            action=AuditAction.CREATE,
            entity_type="Provider",
            entity_id=provider.id,
            company_id=company.id,
            entity_identifier=provider.name,
            new_values={"name": provider.name, "tax_id": provider.tax_id},
        )
        await self.db.commit()
        await self.db.refresh(provider)
        return provider

    async def update_provider(self, provider_id: int, data: ProviderUpdate) -> Provider:
        provider = await self.get_provider_by_id(provider_id)
        changes = data.model_dump(exclude_unset=True)
        old_values = {key: getattr(provider, key) for key in changes}
        for key, value in changes.items():
            setattr(provider, key, value)

        await self.audit.log(
            action=AuditAction.UPDATE,
            entity_type="Provider",
            entity_id=provider.id,
            company_id=provider.company_id,
            entity_identifier=provider.name,
            old_values=old_values,
            new_values=changes,
        )
        await self.db.commit()
        await self.db.refresh(provider)
        return provider

    async def delete_provider(self, provider_id: int) -> None:
        """Soft delete; documents keep their reference."""
        provider = await self.get_provider_by_id(provider_id)
        provider.deleted_at = datetime.now(timezone.utc)
        await self.audit.log(
            action=AuditAction.DELETE,
            entity_type="Provider",
            entity_id=provider.id,
            company_id=provider.company_id,
            entity_identifier=provider.name,
        )
        await self.db.commit()
