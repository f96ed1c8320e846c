from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from loguru import logger
from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from kindred.core.config import get_settings

# Naming convention for constraints
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)


class Base(DeclarativeBase):
    """Base class for all models."""
    metadata = metadata


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, the format every timestamp column uses."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def process_database_url(url: str) -> str:
    """Normalize a database URL to an async driver."""
    if not url:
        logger.warning("No database URL provided, falling back to SQLite")
        return "sqlite+aiosqlite:///./kindred.db"

    if url.startswith('sqlite'):
        if 'aiosqlite' not in url:
            url = url.replace('sqlite://', 'sqlite+aiosqlite://', 1)
        return url

    # Hosted Postgres providers hand out postgres:// URLs
    if url.startswith('postgres://'):
        return url.replace('postgres://', 'postgresql+asyncpg://', 1)
    if url.startswith('postgresql://'):
        return url.replace('postgresql://', 'postgresql+asyncpg://', 1)

    logger.warning(f"Unrecognized database URL format: {url[:10]}...")
    return url


def create_engine_from_url(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with pool settings suited to the backend."""
    url = process_database_url(url)
    logger.info(f"Using database driver: {url.split('://')[0]}")

    if url.startswith('postgresql'):
        timeout = get_settings().STORE_TIMEOUT_SECONDS
        return create_async_engine(
            url,
            echo=echo,
            pool_pre_ping=True,               # Verify connections before using them
            pool_recycle=60,
            pool_size=3,
            max_overflow=5,
            pool_use_lifo=True,
            connect_args={
                "timeout": timeout,
                "command_timeout": timeout,
                "server_settings": {"application_name": "kindred"},
                "statement_cache_size": 0,
            },
        )
    return create_async_engine(url, echo=echo)


_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


def get_engine() -> AsyncEngine:
    """Get the process-wide engine, creating it on first use."""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_engine_from_url(settings.db_url, echo=settings.debug)
    return _engine


def get_session_factory() -> async_sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            expire_on_commit=False,
            class_=AsyncSession,
        )
    return _session_factory


async def get_session() -> AsyncIterator[AsyncSession]:
    """Get a database session."""
    async with get_session_factory()() as session:
        yield session


async def init_models(engine: AsyncEngine) -> MetaData:
    """Create any missing tables."""
    # Register every model on the metadata before create_all
    import kindred.db.models  # noqa: F401

    logger.info("Initializing database models...")
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    logger.info("Database models initialized successfully")
    return metadata
