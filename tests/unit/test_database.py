"""Unit tests for engine pool selection."""

from sqlalchemy.pool import NullPool

from auditdesk.core.config import Settings
from auditdesk.core.database import _engine_options

JWT_SECRET = "unit-test-secret-0123456789abcdefghij"


class TestEngineOptions:
    def test_sqlite_uses_null_pool(self):
        settings = Settings(database_url="sqlite+aiosqlite:///./local.db", jwt_secret=JWT_SECRET)

        assert _engine_options(settings) == {"poolclass": NullPool}

    def test_postgres_pool_is_sized_from_settings(self):
        settings = Settings(
            database_url="postgresql://auditdesk:secret@db:5432/auditdesk",
            jwt_secret=JWT_SECRET,
            db_pool_size=20,
            db_max_overflow=0,
        )

        assert _engine_options(settings) == {
            "pool_size": 20,
            "max_overflow": 0,
            "pool_pre_ping": True,
        }
