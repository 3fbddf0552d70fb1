from src.core.database.session import async_session, engine, get_db, transaction_scope
from src.core.database.base import Base, BaseModel, BigIntPK, CompanyOwnedMixin, SoftDeleteMixin

__all__ = [
    "async_session",
    "engine",
    "get_db",
    "transaction_scope",
    "Base",
    "BaseModel",
    "BigIntPK",
    "CompanyOwnedMixin",
    "SoftDeleteMixin",
]
