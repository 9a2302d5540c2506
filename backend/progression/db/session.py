"""
Engine, session factory and the request-scoped session dependency.
"""
from collections.abc import AsyncGenerator

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from progression.core.config import settings

logger = structlog.get_logger()

engine = create_async_engine(
    settings.database_url_computed,
    echo=settings.db_echo,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_recycle=1800,
    pool_timeout=20,
)

# Shared with the statistics provider, which opens one session per query
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Session for one request.

    Whatever the handler left pending is committed when it returns; an
    exception rolls it back.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error("Request session rolled back", error=str(e), error_type=type(e).__name__)
            raise
