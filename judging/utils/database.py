"""Database utility functions"""
import logging
from typing import Any, Awaitable, Callable, Optional, Type, TypeVar, Union

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from judging.core.config import settings
from judging.types import Page
from judging.workflow.result import Result

logger = logging.getLogger(__name__)

T = TypeVar('T')

ConflictHandler = Union[Result, Callable[[], Awaitable[Result]]]


async def get_or_none(
    db: AsyncSession,
    model: Type[T],
    entity_id: Any
) -> Optional[T]:
    """
    Generic helper to fetch entity or return None

    Args:
        db: Database session
        model: SQLAlchemy model class
        entity_id: Primary key of the entity to fetch

    Returns:
        The entity instance or None if not found

    Example:
        request = await get_or_none(db, DeductionRequest, request_id)
        if request:
            # ... do something
    """
    return await db.get(model, entity_id)


async def run_atomic(
    db: AsyncSession,
    operation: Callable[[], Awaitable[Result]],
    on_conflict: Optional[ConflictHandler] = None,
) -> Result:
    """
    Run a workflow operation as one transaction.

    The operation's checks and writes share the session's transaction. A
    successful Result commits; a failed Result rolls back so no partial
    write survives. A unique-constraint violation (a lost race) rolls back
    and is reported through ``on_conflict``, which is either the Result to
    return or a coroutine function producing it.

    Args:
        db: Database session
        operation: Zero-argument coroutine function returning a Result
        on_conflict: What a lost unique-constraint race reports

    Returns:
        The operation's Result, or the conflict Result

    Raises:
        IntegrityError: If no on_conflict is given
        Exception: Anything unexpected, after rollback

    Example:
        return await run_atomic(db, lambda: self._certify(...), on_conflict=conflict)
    """
    try:
        result = await operation()
        if result.ok:
            await db.commit()
        else:
            await db.rollback()
        return result
    except IntegrityError as exc:
        await db.rollback()
        if on_conflict is None:
            raise
        logger.warning(f"Unique constraint race lost, reporting conflict: {exc.__class__.__name__}")
        if isinstance(on_conflict, Result):
            return on_conflict
        return await on_conflict()
    except Exception:
        await db.rollback()
        raise


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    limit: Optional[int] = None,
) -> Page:
    """
    Run a select for one page and count the whole result set.

    Args:
        db: Database session
        query: Ordered select over a single entity
        page: 1-based page number (values below 1 are treated as 1)
        limit: Page size, clamped to settings.max_page_size

    Returns:
        Page with items and pagination metadata
    """
    page = max(page, 1)
    limit = min(max(limit or settings.default_page_size, 1), settings.max_page_size)

    total = (
        await db.execute(select(func.count()).select_from(query.order_by(None).subquery()))
    ).scalar_one()
    result = await db.execute(query.offset((page - 1) * limit).limit(limit))
    total_pages = (total + limit - 1) // limit

    return {
        "items": list(result.scalars().all()),
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }
