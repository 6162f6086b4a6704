"""Shared test fixtures — async DB, client, repositories, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test settings before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import itertools
import uuid
from datetime import date, datetime, timedelta, timezone
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

from leave_portal.auth.service import hash_password
from leave_portal.common.constants import (
    ApproverRole,
    Department,
    LeaveCategory,
    LeaveStatus,
    Role,
)
from leave_portal.config import settings
from leave_portal.database import Base, get_db
from leave_portal.leave.quota import default_quotas
from leave_portal.leave.schemas import LeaveRequestOut
from leave_portal.main import create_app
from leave_portal.storage.base import LeaveRepository
from leave_portal.storage.memory import InMemoryLeaveRepository
from leave_portal.storage.sql import SqlLeaveRepository
from leave_portal.users.schemas import UserOut

# Import ALL model modules so SQLAlchemy can resolve cross-module relationships
import leave_portal.common.models  # noqa: F401
import leave_portal.leave.models  # noqa: F401
import leave_portal.users.models  # noqa: F401

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
    from leave_portal.common.rate_limit import limiter

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


# ── Repositories ────────────────────────────────────────────────────

@pytest.fixture
def memory_repo() -> InMemoryLeaveRepository:
    return InMemoryLeaveRepository()


@pytest.fixture
def sql_repo(db) -> SqlLeaveRepository:
    return SqlLeaveRepository(db)


@pytest.fixture(params=["memory", "sql"])
def repo(request) -> LeaveRepository:
    """The same behaviour must hold on every backend."""
    if request.param == "memory":
        return request.getfixturevalue("memory_repo")
    return request.getfixturevalue("sql_repo")


async def store_users(*users: UserOut) -> None:
    """Commit users through a separate session so API requests can see them."""
    async with TestSessionFactory() as session:
        repo = SqlLeaveRepository(session)
        for user in users:
            await repo.upsert_user(user)
        await session.commit()


async def store_requests(*requests: LeaveRequestOut) -> list[LeaveRequestOut]:
    async with TestSessionFactory() as session:
        repo = SqlLeaveRepository(session)
        created = [await repo.create_leave_request(r) for r in requests]
        await session.commit()
    return created


# ── Model factories ─────────────────────────────────────────────────

_BASE_TIME = datetime(2024, 6, 1, 9, 0, tzinfo=timezone.utc)
_registration_order = itertools.count()


def _make_user(
    *,
    name: str = "Test Staff",
    email: Optional[str] = None,
    role: Role = Role.teaching_staff,
    department: Department = Department.comps,
    approver_role: Optional[ApproverRole] = None,
    approver_id: Optional[uuid.UUID] = None,
    quotas: Optional[dict[LeaveCategory, int]] = None,
    password: str = DEFAULT_PASSWORD,
) -> UserOut:
    """A user snapshot; each call registers strictly later than the previous one."""
    n = next(_registration_order)
    return UserOut(
        id=uuid.uuid4(),
        email=email or f"staff{n}@scoe.edu",
        name=name,
        role=role,
        department=department,
        date_of_joining=date(2022, 7, 1),
        approver_role=approver_role,
        approver_id=approver_id,
        quotas=quotas if quotas is not None else default_quotas(),
        created_at=_BASE_TIME + timedelta(minutes=n),
        password_hash=hash_password(password),
    )


def _make_leave_request(
    user: UserOut,
    *,
    category: LeaveCategory = LeaveCategory.CL,
    start_date: date = date(2024, 7, 1),
    end_date: date = date(2024, 7, 3),
    manual_days: Optional[int] = None,
    total_days: int = 3,
    status: LeaveStatus = LeaveStatus.pending,
    approver_id: Optional[uuid.UUID] = None,
    applied_at: Optional[datetime] = None,
    deduction_applied: bool = False,
) -> LeaveRequestOut:
    return LeaveRequestOut(
        user_id=user.id,
        user_name=user.name,
        department=user.department,
        category=category,
        start_date=start_date,
        end_date=end_date,
        manual_days=manual_days,
        total_days=total_days,
        status=status,
        applied_at=applied_at or datetime.now(timezone.utc),
        approver_id=approver_id,
        deduction_applied=deduction_applied,
    )


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    user_id: uuid.UUID,
    role: Role = Role.teaching_staff,
    expired: bool = False,
) -> str:
    """Generate a JWT access token for testing."""
    if expired:
        exp = datetime.now(timezone.utc) - timedelta(hours=1)
    else:
        exp = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRY_HOURS)
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "type": "access",
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth_headers(user: UserOut) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}
