"""
Test configuration and shared fixtures
"""
import os
import tempfile
from datetime import datetime

import pytest

# point the app at SQLite before quotedesk reads its settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "quotedesk-test-logs"))
os.environ.setdefault("JWT_SECRET", "quotedesk-test-signing-secret-0123456789")

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from quotedesk.core.database import Base, get_db
from quotedesk.core.security import CurrentUser, get_current_user
from quotedesk.models import Company, Client
from quotedesk.services.numbering import DocumentNumberAllocator, LocalScopeLocks

FIXED_NOW = datetime(2025, 1, 15, 10, 30)


@pytest.fixture(scope="function")
async def engine(tmp_path):
    """Fresh SQLite file per test"""
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'quotedesk.db'}",
        echo=False,
        poolclass=NullPool,
        connect_args={"timeout": 30},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
async def company(db_session: AsyncSession) -> Company:
    company = Company(
        name="Aarti Interiors",
        code="AARTI",
        address="12 MG Road, Pune",
        phone="9800000000",
        gst_number="27ABCDE1234F1Z5",
        bank_details="HDFC Bank, A/C 001122334455, IFSC HDFC0000123",
        default_terms_conditions="50% advance before work starts.",
        default_payment_plan='[{"stage": "Advance", "percent": 50, "amount": 0}]',
    )
    db_session.add(company)
    await db_session.commit()
    return company


@pytest.fixture(scope="function")
async def other_company(db_session: AsyncSession) -> Company:
    company = Company(name="Other Studio", code="OTHER")
    db_session.add(company)
    await db_session.commit()
    return company


@pytest.fixture(scope="function")
async def client_record(db_session: AsyncSession, company: Company) -> Client:
    client = Client(
        company_id=company.id,
        name="Rahul Sharma",
        address="Flat 4B, Green Park",
        phone="9811111111",
        email="rahul@example.com",
        project_location="Baner, Pune",
    )
    db_session.add(client)
    await db_session.commit()
    return client


@pytest.fixture(scope="function")
def user(company: Company) -> CurrentUser:
    return CurrentUser(
        user_id=1,
        user_name="tester",
        company_id=company.id,
        company_code=company.code,
        company_name=company.name,
    )


@pytest.fixture(scope="function")
def allocator() -> DocumentNumberAllocator:
    """Allocator with a fixed clock and no backoff"""
    return DocumentNumberAllocator(
        locks=LocalScopeLocks(),
        max_attempts=5,
        backoff_seconds=0,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture(scope="function")
async def client(session_factory, user: CurrentUser, allocator, monkeypatch):
    """HTTP client against the app with the test database and caller"""
    from httpx import AsyncClient, ASGITransport
    from main import app
    from quotedesk.services.quotation_service import quotation_service
    from quotedesk.services.bill_service import bill_service
    from quotedesk.services.receipt_service import receipt_service

    for service in (quotation_service, bill_service, receipt_service):
        monkeypatch.setattr(service, "allocator", allocator)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_current_user():
        return user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
