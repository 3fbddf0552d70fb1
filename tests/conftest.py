from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.core.company.models import Company
from src.core.company.service import get_company
from src.core.database.base import Base
from src.core.database import get_db
from src.main import app
from src.modules.clients.models import Client
from src.modules.clients.schemas import ClientCreate
from src.modules.clients.service import ClientService
from src.modules.providers.models import Provider
from src.modules.providers.schemas import ProviderCreate
from src.modules.providers.service import ProviderService

# Test database URL (in-memory SQLite for speed, or use test PostgreSQL)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False)
test_async_session = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get test database session."""
    async with test_async_session() as session:
        yield session


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Get test HTTP client with overridden database dependency."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def company(db_session: AsyncSession) -> Company:
    """The single company row, created from settings defaults."""
    row = await get_company(db_session)
    await db_session.commit()
    return row


@pytest.fixture
async def customer(db_session: AsyncSession, company: Company) -> Client:
    """A client with 15 days payment terms."""
    return await ClientService(db_session).create_client(
        ClientCreate(name="Talleres Ruiz S.L.", tax_id="B12345678", payment_terms_days=15)
    )


@pytest.fixture
async def provider(db_session: AsyncSession, company: Company) -> Provider:
    """A provider with 60 days payment terms."""
    return await ProviderService(db_session).create_provider(
        ProviderCreate(name="Suministros Levante S.A.", tax_id="A87654321", payment_terms_days=60)
    )


@pytest.fixture
async def file_sessions(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Session factory on a file-based SQLite database.

    Every session gets its own connection, so two sessions run as two
    independent transactions that contend for the database write lock.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'concurrency.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()
