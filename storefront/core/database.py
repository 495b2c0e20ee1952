"""Async database engine, session factory and guarded store access."""

import asyncio
import logging
from collections.abc import AsyncGenerator, Awaitable, Coroutine
from typing import Any, TypeVar

from sqlalchemy import Executable, Result
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from storefront.core.config import settings
from storefront.core.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

engine = create_async_engine(
    str(settings.database_url),
    echo=False,
    future=True,
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for a single request."""
    async with async_session_maker() as session:
        yield session


async def _guarded(awaitable: Awaitable[T], *, operation: str, timeout: float | None) -> T:
    limit = settings.store_timeout_seconds if timeout is None else timeout
    try:
        return await asyncio.wait_for(awaitable, timeout=limit)
    except TimeoutError as exc:
        logger.warning("Catalog store timed out after %.1fs: %s", limit, operation)
        raise StoreUnavailableError(operation) from exc
    except SQLAlchemyError as exc:
        logger.warning("Catalog store failed: %s (%s)", operation, exc.__class__.__name__)
        raise StoreUnavailableError(operation) from exc


async def execute_guarded(
    session: AsyncSession,
    statement: Executable,
    *,
    operation: str,
    timeout: float | None = None,
) -> Result[Any]:
    """Execute a statement under the store timeout.

    Timeouts and driver errors are re-raised as StoreUnavailableError so that
    callers surface a single "store unavailable" failure instead of hanging.
    """
    return await _guarded(session.execute(statement), operation=operation, timeout=timeout)


async def commit_guarded(
    session: AsyncSession,
    *,
    operation: str,
    timeout: float | None = None,
) -> None:
    """Commit under the store timeout, with the same error mapping as reads."""
    await _guarded(session.commit(), operation=operation, timeout=timeout)


async def run_concurrently(*coros: Coroutine[Any, Any, Any]) -> list[Any]:
    """Await independent store reads together and return their results in order.

    The first failure cancels the reads still running and is re-raised
    unwrapped, so callers see a StoreUnavailableError, not an ExceptionGroup.
    """
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(coro) for coro in coros]
    except ExceptionGroup as group:
        first = group.exceptions[0]
        raise first from first.__cause__
    return [task.result() for task in tasks]
