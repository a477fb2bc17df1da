"""Database connection and session management."""

from __future__ import annotations

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from auditdesk.core.config import Settings, get_settings

settings = get_settings()


def _engine_options(settings: Settings) -> dict:
    """Pool options for the configured backend.

    SQLite files are opened per use; PostgreSQL keeps a pool whose
    connections are pinged before reuse, so a dropped connection surfaces as
    a fresh connect attempt rather than a failed query.
    """
    url = make_url(settings.database_url)
    if url.get_backend_name() == "sqlite":
        return {"poolclass": NullPool}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": True,
    }


engine = create_async_engine(
    settings.database_url.replace("postgresql://", "postgresql+asyncpg://"),
    echo=False,
    **_engine_options(settings),
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncSession:
    """Get database session dependency.

    The session is committed when the request handler returns and rolled
    back if it raises, so a failed request never leaves partial writes.

    Yields:
        AsyncSession: Database session
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
