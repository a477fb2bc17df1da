"""Pytest fixtures for testing."""

import os
from collections.abc import AsyncGenerator, Iterable
from uuid import UUID

# Settings are read at import time; configure them before importing the app.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./auditdesk_test.db")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-auditdesk-tests-0123456789")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ENVIRONMENT", "development")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from auditdesk.core.database import get_db
from auditdesk.core.security import create_access_token, hash_password
from auditdesk.main import app
from auditdesk.models.base import Base
from auditdesk.models.enums import OrgRole
from auditdesk.models.membership import Membership
from auditdesk.models.organization import Organization
from auditdesk.models.principal import Principal

TEST_PASSWORD = "TestPass123!"


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a fresh SQLite database file for each test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'auditdesk.db'}",
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory for tests that need independent sessions (concurrency)."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session shared with the app under test."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


@pytest_asyncio.fixture(scope="function")
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database dependency override.

    Args:
        db: Test database session

    Yields:
        AsyncClient configured for testing
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


async def create_principal(
    db: AsyncSession,
    email: str,
    *,
    is_super_admin: bool = False,
    full_name: str | None = None,
    password: str = TEST_PASSWORD,
) -> Principal:
    """Create and commit a registered principal."""
    principal = Principal(
        email=email,
        full_name=full_name,
        password_hash=hash_password(password),
        is_super_admin=is_super_admin,
    )
    db.add(principal)
    await db.commit()
    return principal


async def create_organization(
    db: AsyncSession,
    name: str,
    *,
    admins: Iterable[Principal] = (),
    members: Iterable[Principal] = (),
) -> Organization:
    """Create and commit an organization with the given admins and members."""
    org = Organization(name=name)
    db.add(org)
    await db.flush()

    for principal in admins:
        db.add(Membership(org_id=org.id, principal_id=principal.id, role=OrgRole.ADMIN))
    for principal in members:
        db.add(Membership(org_id=org.id, principal_id=principal.id, role=OrgRole.MEMBER))

    await db.commit()
    return org


async def get_membership(db: AsyncSession, org_id: UUID, principal_id: UUID) -> Membership | None:
    result = await db.execute(
        select(Membership)
        .where(Membership.org_id == org_id, Membership.principal_id == principal_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def count_rows(db: AsyncSession, model, *criteria) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


def auth_headers(principal: Principal) -> dict[str, str]:
    token = create_access_token({"sub": str(principal.id), "email": principal.email})
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Principals and organizations
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def super_admin(db: AsyncSession) -> Principal:
    return await create_principal(db, "root@example.com", is_super_admin=True, full_name="Root")


@pytest_asyncio.fixture
async def org_admin(db: AsyncSession) -> Principal:
    return await create_principal(db, "admin@example.com", full_name="Org Admin")


@pytest_asyncio.fixture
async def org_member(db: AsyncSession) -> Principal:
    return await create_principal(db, "member@example.com", full_name="Org Member")


@pytest_asyncio.fixture
async def outsider(db: AsyncSession) -> Principal:
    return await create_principal(db, "outsider@example.com")


@pytest_asyncio.fixture
async def test_org(db: AsyncSession, org_admin: Principal, org_member: Principal) -> Organization:
    """Organization with one admin and one member."""
    return await create_organization(
        db, "Acme Quality", admins=[org_admin], members=[org_member]
    )


@pytest_asyncio.fixture
async def other_org(db: AsyncSession, outsider: Principal) -> Organization:
    """A second organization administered by ``outsider``."""
    return await create_organization(db, "Globex", admins=[outsider])
