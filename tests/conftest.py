"""Shared test fixtures — async DB, client, auth helpers, factories.

Reusable across all test modules (auth, employees, attendance, leave).
Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test settings before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import uuid
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from leavetrack.config import settings
from leavetrack.database import Base, get_db
from leavetrack.main import create_app

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import leavetrack.attendance.models  # noqa: F401
import leavetrack.auth.models  # noqa: F401
import leavetrack.employees.models  # noqa: F401
import leavetrack.leave.models  # noqa: F401

from leavetrack.auth.models import LoginAccount
from leavetrack.auth.service import hash_password
from leavetrack.employees.models import Employee
from leavetrack.leave.models import LeavePolicy

# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)

DEFAULT_PASSWORD = "secret123"
# bcrypt is slow on purpose; hash the shared test password once.
DEFAULT_PASSWORD_HASH = hash_password(DEFAULT_PASSWORD)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from leavetrack.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

async def seed_policy(
    db: AsyncSession,
    *,
    sick_total: int = 12,
    casual_total: int = 12,
) -> LeavePolicy:
    policy = LeavePolicy(
        key=settings.LEAVE_POLICY_KEY,
        sick_total=sick_total,
        casual_total=casual_total,
    )
    db.add(policy)
    await db.flush()
    return policy


async def seed_employee(
    db: AsyncSession,
    *,
    name: str = "Ravi Kumar",
    is_manager: bool = False,
    manager_name: Optional[str] = "Asha Menon",
    sick_taken: int = 0,
    casual_taken: int = 0,
) -> Employee:
    emp = Employee(
        id=uuid.uuid4(),
        emp_name=name,
        is_manager=is_manager,
        manager_name=manager_name,
        total_sick_leave_taken=sick_taken,
        total_casual_leave_taken=casual_taken,
    )
    db.add(emp)
    await db.flush()
    return emp


async def seed_account(
    db: AsyncSession,
    employee: Employee,
    *,
    employee_number: int = 1001,
    password_hash: str = DEFAULT_PASSWORD_HASH,
    active_token: Optional[str] = None,
) -> LoginAccount:
    account = LoginAccount(
        id=uuid.uuid4(),
        employee_number=employee_number,
        employee_id=employee.id,
        password_hash=password_hash,
        active_token=active_token,
    )
    db.add(account)
    await db.flush()
    return account


@pytest.fixture
async def policy(db) -> LeavePolicy:
    """The singleton leave policy: 12 sick / 12 casual days."""
    return await seed_policy(db)


@pytest.fixture
async def manager(db) -> Employee:
    return await seed_employee(db, name="Asha Menon", is_manager=True, manager_name=None)


@pytest.fixture
async def employee(db, manager) -> Employee:
    """An employee reporting to ``manager``."""
    return await seed_employee(db, name="Ravi Kumar", manager_name=manager.emp_name)


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    account: LoginAccount,
    *,
    is_manager: bool = False,
    expired: bool = False,
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(minutes=5)
    else:
        exp = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRY_MINUTES)
    payload = {
        "sub": str(account.id),
        "employee_number": account.employee_number,
        "is_manager": is_manager,
        "jti": uuid.uuid4().hex,
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
async def logged_in(db, employee) -> tuple[LoginAccount, dict[str, str]]:
    """An account with an active session, plus matching Bearer headers."""
    account = await seed_account(db, employee)
    token = create_access_token(account)
    account.active_token = token
    await db.commit()
    return account, {"Authorization": f"Bearer {token}"}
