import logging
from collections.abc import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.core.config import get_settings
from app.models.base import Base

settings = get_settings()
logger = logging.getLogger(__name__)


def engine_options(database_url: str) -> dict:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return {"future": True, "pool_pre_ping": True}
    # In-memory SQLite only exists on one connection; share it across sessions.
    if url.database in (None, "", ":memory:"):
        return {"future": True, "poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {"future": True, "connect_args": {"check_same_thread": False}}


def build_engine(database_url: str) -> AsyncEngine:
    return create_async_engine(database_url, **engine_options(database_url))


async def create_all_tables(bind: AsyncEngine) -> None:
    async with bind.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)


resolved_database_url = settings.resolved_database_url
resolved_database_url_source = settings.resolved_database_url_source
logger.info(
    "Database URL resolved",
    extra={
        "database_url_source": resolved_database_url_source,
        "database_backend": make_url(resolved_database_url).get_backend_name(),
        "database_host": settings.postgres_host if resolved_database_url_source == "postgres_fallback" else None,
        "database_name": settings.postgres_db if resolved_database_url_source == "postgres_fallback" else None,
    },
)

engine = build_engine(resolved_database_url)
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
