"""
Shared test fixtures and configuration for the Web3 Payroll backend tests.
"""
import os
from datetime import timedelta
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

OWNER_WALLET = "0x1111111111111111111111111111111111111111"
EMPLOYEE_WALLET = "0x2222222222222222222222222222222222222222"
OTHER_WALLET = "0x3333333333333333333333333333333333333333"

# Set test environment before importing app modules
os.environ["ENVIRONMENT"] = "development"
os.environ["DEBUG"] = "true"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-min-32-chars"
os.environ["ENS_NETWORK"] = "local"
os.environ["ENS_PARENT_DOMAIN"] = "company.eth"
os.environ["RATE_LIMIT_DEFAULT"] = "100000/minute"
os.environ["DEFAULT_USER_ADDRESS"] = OWNER_WALLET
os.environ["DEFAULT_USER_ROLE"] = "admin"
os.environ["LEDGER_OWNER_ADDRESS"] = OWNER_WALLET
os.environ["LEDGER_COMPANY_DOMAIN"] = "company.eth"


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine with every table created."""
    from app.db import base  # noqa: F401
    from app.db.base_class import Base

    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def ledger():
    """Fresh payroll ledger owned by OWNER_WALLET."""
    from app.services.payroll_ledger import PayrollLedger

    return PayrollLedger(owner=OWNER_WALLET, company_domain="company.eth")


@pytest.fixture
def ens_service():
    from app.services.ens_service import ENSService

    return ENSService("local")


@pytest_asyncio.fixture
async def client(session_factory, ledger, ens_service) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, wired to the test database and services."""
    from app.api.deps import get_db
    from app.core.rate_limiter import limiter
    from app.db.init_db import seed_parent_domain
    from app.main import app
    from app.services.ens_service import get_ens_service
    from app.services.payroll_ledger import get_payroll_ledger

    async with session_factory() as session:
        await seed_parent_domain(session)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payroll_ledger] = lambda: ledger
    app.dependency_overrides[get_ens_service] = lambda: ens_service
    limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def wallet_headers():
    """Company-owner headers for the wallet-scoped routes."""
    return {"x-wallet-address": OWNER_WALLET}


@pytest.fixture
def mock_db_session():
    """Create a mock async database session."""
    session = AsyncMock(spec=AsyncSession)
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.add = MagicMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.fixture
def valid_jwt_token():
    """Generate a valid JWT token for testing."""
    from app.core.security import create_access_token
    return create_access_token(subject=EMPLOYEE_WALLET, role="employee", expires_delta=timedelta(hours=1))


@pytest.fixture
def expired_jwt_token():
    """Generate an expired JWT token for testing."""
    from app.core.security import create_access_token
    return create_access_token(subject=EMPLOYEE_WALLET, expires_delta=timedelta(seconds=-1))


@pytest.fixture
def mock_request():
    """Create a mock FastAPI request object."""
    request = MagicMock()
    request.cookies = {}
    request.client = MagicMock()
    request.client.host = "127.0.0.1"
    request.headers = {}
    request.url = MagicMock()
    request.url.path = "/api/test"
    request.method = "GET"
    return request


def employee_payload(
    wallet: str = EMPLOYEE_WALLET,
    email: str = "alice@example.com",
    subdomain: str = "alice",
    salary: str = "2.5",
    frequency: str = "MONTHLY",
    department: str = "Engineering",
    token: str = "ETH",
    **extra,
) -> dict:
    """Request body for POST /api/employees/."""
    payload = {
        "personal_info": {
            "name": "Alice Doe",
            "email": email,
            "phone": "+1-555-0100",
            "address": {"city": "Berlin", "country": "DE"},
        },
        "employment_details": {
            "position": "Engineer",
            "department": department,
            "employment_type": "full-time",
        },
        "payroll_settings": {
            "wallet_address": wallet,
            "salary_amount": salary,
            "payment_frequency": frequency,
            "preferred_token": token,
        },
        "ens_details": {"subdomain": subdomain},
    }
    payload.update(extra)
    return payload


@pytest_asyncio.fixture
async def company(client, wallet_headers) -> dict:
    """Company owned by OWNER_WALLET, created as after a confirmed ENS registration."""
    response = await client.post(
        "/api/companies/create-after-ens",
        headers=wallet_headers,
        json={
            "company_data": {
                "name": "Acme Corp",
                "ens_domain": "acme.eth",
                "owner_wallet": OWNER_WALLET,
            },
            "transaction_hash": "0x" + "ab" * 32,
            "block_number": 123,
            "gas_used": 21000,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["company"]
