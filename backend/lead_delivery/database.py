"""Database engine, sessions and table creation."""

from typing import Any, Dict
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from lead_delivery.config import Settings, settings


def async_database_url(url: str) -> str:
    """Plain postgres URLs are switched to the asyncpg driver."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


def engine_options(url: str, config: Settings) -> Dict[str, Any]:
    """Keyword arguments for create_async_engine; SQLite gets no pool sizing."""
    options: Dict[str, Any] = {"echo": config.LOG_LEVEL == "DEBUG"}
    if url.startswith("sqlite"):
        return options
    options.update(
        pool_pre_ping=True,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW
    )
    return options


database_url = async_database_url(settings.DATABASE_URL)
engine = create_async_engine(database_url, **engine_options(database_url, settings))

# Objects stay readable after commit; delivery runs after the lead is committed
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)

Base = declarative_base()


async def get_db():
    """Request-scoped session; uncommitted work is rolled back on error."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_models():
    """Create missing tables (no migrations)."""
    # Register every model on Base.metadata before create_all
    from lead_delivery import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
