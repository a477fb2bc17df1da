"""Unit tests for TenantStore's database error mapping."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError

from auditdesk.core.errors import ConflictError, TransientStoreError
from auditdesk.models.principal import Principal
from auditdesk.services.tenant_store import TenantStore


def connection_lost() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("server closed the connection unexpectedly"))


def make_store(**session_methods) -> tuple[TenantStore, MagicMock]:
    session = MagicMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    for name, mock in session_methods.items():
        setattr(session, name, mock)
    return TenantStore(session), session


@pytest.mark.asyncio
class TestUnavailableStore:
    async def test_query_failure_is_transient(self):
        store, _ = make_store(execute=AsyncMock(side_effect=connection_lost()))

        with pytest.raises(TransientStoreError) as exc_info:
            await store.get_principal(uuid4())

        assert exc_info.value.status_code == 503

    async def test_interface_error_is_transient(self):
        error = InterfaceError("SELECT 1", {}, Exception("connection is closed"))
        store, _ = make_store(execute=AsyncMock(side_effect=error))

        with pytest.raises(TransientStoreError):
            await store.has_any_super_admin()

    async def test_flush_failure_is_transient(self):
        store, _ = make_store(flush=AsyncMock(side_effect=connection_lost()))

        with pytest.raises(TransientStoreError):
            await store.flush()

    async def test_commit_failure_is_transient(self):
        store, _ = make_store(commit=AsyncMock(side_effect=connection_lost()))

        with pytest.raises(TransientStoreError):
            await store.commit()

    async def test_other_errors_are_not_masked(self):
        store, _ = make_store(execute=AsyncMock(side_effect=ValueError("bad statement")))

        with pytest.raises(ValueError):
            await store._execute(select(Principal))

    async def test_duplicate_registration_is_conflict(self):
        duplicate = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
        store, session = make_store(flush=AsyncMock(side_effect=duplicate))

        with pytest.raises(ConflictError):
            await store.add_principal(Principal(email="taken@example.com"))

        session.add.assert_called_once()
