"""
Pytest configuration and shared fixtures.

Settings and the module-level engine are built on import, so the environment
is prepared before anything from credibro is imported.
"""
import os

os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DB_DSN"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["PUBLIC_BASE_URL"] = "https://credibro.test"

import pytest
import pytest_asyncio
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from credibro.infrastructure.database import create_schema, get_session
from credibro.models import Profile, Referral


# ---------------------------------------------------------------------------
#  Unit-test fixtures (mocked store)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_session():
    """Session double: only the awaited methods services call directly"""
    session = MagicMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    return session


@pytest.fixture
def mock_profile_repo():
    repo = MagicMock()
    repo.get = AsyncMock(return_value=None)
    repo.get_by_email = AsyncMock(return_value=None)
    repo.exists_by_email = AsyncMock(return_value=False)
    repo.create = AsyncMock()
    repo.validation_code_exists = AsyncMock(return_value=False)
    repo.get_validation_row = AsyncMock(return_value=None)
    repo.list_validation_codes = AsyncMock(return_value=[])
    repo.set_referral_code = AsyncMock(return_value=True)
    repo.set_admin = AsyncMock(return_value=None)
    repo.list_with_referral_counts = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def mock_referral_repo():
    repo = MagicMock()
    repo.get = AsyncMock(return_value=None)
    repo.create = AsyncMock()
    repo.code_exists = AsyncMock(return_value=False)
    repo.list_codes = AsyncMock(return_value=[])
    repo.get_for_referrer = AsyncMock(return_value=[])
    repo.get_with_referrers = AsyncMock(return_value=[])
    repo.count_by_status = AsyncMock(return_value={})
    return repo


@pytest.fixture
def advisor_profile():
    """Advisor with a code, as loaded from the store"""
    return Profile(
        id="adv-1",
        email="asha@credibro.in",
        password_hash="not-a-hash",
        name="Asha Rao",
        mobile_no="9876543210",
        rm_name="VIKRAM",
        referral_code="482",
        is_admin=False,
    )


@pytest.fixture
def submitted_referral(advisor_profile):
    referral = Referral(
        id="ref-1",
        referrer_user_id=advisor_profile.id,
        name="Ravi Kumar",
        mobile_no="9123456780",
        residency_pincode="560001",
        employment_type="salaried",
        employer_name="Infosys",
        monthly_net_income=Decimal("55000.00"),
        referral_code="482",
        terms_accepted_at=datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc),
        status="InProgress",
        created_at=datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc),
    )
    referral.referrer = advisor_profile
    return referral


@pytest.fixture
def application_payload():
    """A valid apply-form body"""
    return {
        "name": "Ravi Kumar",
        "mobile_no": "+91 91234 56780",
        "residency_pincode": "560 001",
        "employment_type": "salaried",
        "employer_name": "Infosys",
        "monthly_net_income": 55000,
        "referral_code": "482",
        "terms_accepted": True,
    }


# ---------------------------------------------------------------------------
#  Integration fixtures (in-memory SQLite)
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await create_schema(conn)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """HTTP client against the app, bound to the test database"""
    from credibro.main import app

    async def _session_override():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _session_override
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()
