"""Database configuration and session management."""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from storedash.config import settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""

    pass


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=10,  # A dashboard fan-out holds one connection per aggregate
    max_overflow=20,
    pool_recycle=3600,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db() -> None:
    """Create reporting tables when explicitly enabled.

    Production schemas are owned by the writers of the transactional
    collections; this service only reads them.
    """
    from storedash.logger import get_logger

    logger = get_logger(__name__)
    if settings.auto_create_schema:
        import storedash.models  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema created")
        return
    logger.info("Database initialized (schema managed externally)")
