"""
Transaction boundaries for progression writes.

An achievement check inserts unlock rows and moves the user's XP in one
go; ``atomic`` makes that all-or-nothing. Individual unlock inserts run in
a ``savepoint`` so a duplicate row only discards itself.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


@asynccontextmanager
async def atomic(db: AsyncSession, operation: str = "transaction") -> AsyncGenerator[AsyncSession, None]:
    """
    Commit everything done in the block, or nothing.

    Usage:
        async with atomic(db, "check_achievements"):
            db.add(unlock)
            progression.total_xp += reward

    Any exception rolls back, is logged with ``operation`` and re-raised.
    """
    try:
        yield db
        await db.commit()
    except Exception as e:
        await db.rollback()
        logger.error(
            "Transaction rolled back",
            operation=operation,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise


@asynccontextmanager
async def savepoint(db: AsyncSession, name: str = "sp") -> AsyncGenerator[AsyncSession, None]:
    """
    Nested transaction inside the current one.

    On error only the block's writes are discarded and the exception is
    re-raised; the enclosing transaction can carry on.
    """
    async with db.begin_nested():
        try:
            yield db
        except Exception as e:
            logger.debug("Savepoint rolled back", savepoint=name, error_type=type(e).__name__)
            raise
