"""
Race-tolerant get-or-create.

Used for rows that many requests may try to create at once: catalog
entries on the first check after a deploy, and a user's progression row on
their first check.
"""
from typing import Any, Optional, Type, TypeVar

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from progression.db.base import Base
from progression.db.transaction import savepoint

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=Base)


async def get_or_create(
    db: AsyncSession,
    model: Type[ModelT],
    defaults: Optional[dict[str, Any]] = None,
    **lookup: Any,
) -> tuple[ModelT, bool]:
    """
    Fetch the row matching ``lookup``, creating it if missing.

    ``lookup`` must be covered by a unique constraint. If another request
    inserts the same row between our read and our insert, the insert fails
    inside a savepoint and the winner's row is returned instead.

    Returns:
        ``(row, created)``
    """
    result = await db.execute(select(model).filter_by(**lookup))
    row = result.scalar_one_or_none()
    if row is not None:
        return row, False

    try:
        async with savepoint(db, f"create_{model.__tablename__}"):
            row = model(**{**lookup, **(defaults or {})})
            db.add(row)
            await db.flush()
    except IntegrityError:
        logger.info(
            "Lost create race, using existing row",
            table=model.__tablename__,
            **{k: str(v) for k, v in lookup.items()},
        )
        result = await db.execute(select(model).filter_by(**lookup))
        return result.scalar_one(), False

    return row, True
