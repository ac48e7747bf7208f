import os
from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Tests run against in-memory SQLite with Redis-backed features switched off
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-not-for-production")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CACHE_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "console"

from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import insert  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from ayursutra.core.availability import DEFAULT_AVAILABILITY  # noqa: E402
from ayursutra.core.security import Role  # noqa: E402
from ayursutra.database import get_db  # noqa: E402
from ayursutra.main import app  # noqa: E402
from ayursutra.models import metadata, patients, practitioners, therapies  # noqa: E402
from tests.helpers import auth_headers_for, next_weekday_at  # noqa: E402


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh in-memory database and a session on it."""
    # Single shared connection so every session sees the same in-memory database
    test_engine = create_async_engine(
        os.environ["DATABASE_URL"],
        echo=False,
        poolclass=StaticPool,
    )

    # Create tables
    async with test_engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    # Create session
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await test_engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_user_id() -> UUID:
    return uuid4()


@pytest.fixture
def admin_headers(admin_user_id: UUID) -> dict[str, str]:
    """Authentication headers for an administrator."""
    return auth_headers_for(admin_user_id, Role.ADMIN)


@pytest_asyncio.fixture
async def test_practitioner(db_session: AsyncSession) -> dict:
    """Active practitioner on the default weekly template."""
    user_id = uuid4()
    practitioner_id = uuid4()
    await db_session.execute(
        insert(practitioners).values(
            id=practitioner_id,
            user_id=user_id,
            first_name="Anjali",
            last_name="Verma",
            title="Vaidya",
            specializations=["Panchakarma", "Abhyanga"],
            experience_years=12,
            phone="+919800000001",
            email="anjali@example.com",
            availability={day: s.to_dict() for day, s in DEFAULT_AVAILABILITY.items()},
        )
    )
    await db_session.commit()
    return {"id": practitioner_id, "user_id": user_id}


@pytest.fixture
def practitioner_headers(test_practitioner: dict) -> dict[str, str]:
    """Authentication headers for the test practitioner."""
    return auth_headers_for(test_practitioner["user_id"], Role.PRACTITIONER)


@pytest_asyncio.fixture
async def test_patient(db_session: AsyncSession) -> dict:
    """Registered patient linked to a user account."""
    user_id = uuid4()
    patient_id = uuid4()
    await db_session.execute(
        insert(patients).values(
            id=patient_id,
            user_id=user_id,
            first_name="Rohan",
            last_name="Mehta",
            date_of_birth=date(1990, 5, 17),
            gender="male",
            phone="+919800000002",
            email="rohan@example.com",
        )
    )
    await db_session.commit()
    return {"id": patient_id, "user_id": user_id}


@pytest.fixture
def patient_headers(test_patient: dict) -> dict[str, str]:
    """Authentication headers for the test patient."""
    return auth_headers_for(test_patient["user_id"], Role.PATIENT)


@pytest_asyncio.fixture
async def test_therapy(db_session: AsyncSession, admin_user_id: UUID) -> dict:
    """Sixty minute therapy priced at 2500 INR with a 10% package discount."""
    therapy_id = uuid4()
    await db_session.execute(
        insert(therapies).values(
            id=therapy_id,
            name="Abhyanga",
            sanskrit_name="अभ्यङ्ग",
            category="Panchakarma",
            type="Purvakarma",
            description="Full body warm oil massage",
            benefits=["Improves circulation"],
            duration_minutes=60,
            sessions_recommended=7,
            sessions_maximum=14,
            base_price=Decimal("2500.00"),
            package_discount=Decimal("10"),
            created_by=admin_user_id,
        )
    )
    await db_session.commit()
    return {"id": therapy_id}


@pytest.fixture
def booking_data(test_patient: dict, test_practitioner: dict, test_therapy: dict) -> dict:
    """Booking for next Monday 10:00 clinic time."""
    return {
        "patient_id": str(test_patient["id"]),
        "practitioner_id": str(test_practitioner["id"]),
        "therapy_id": str(test_therapy["id"]),
        "start_at": next_weekday_at(0, 10).isoformat(),
        "total_sessions": 7,
        "patient_notes": "First Panchakarma course",
    }
