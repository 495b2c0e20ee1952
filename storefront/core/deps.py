"""Dependency injection for FastAPI routes."""

from collections.abc import AsyncGenerator
from typing import Annotated

import redis.asyncio as aioredis
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Re-export auth dependencies for convenience
from storefront.core.auth import BearerToken, get_bearer_token
from storefront.core.config import settings
from storefront.core.database import async_session_maker, engine, get_async_session
from storefront.schemas.search import FilterSpec
from storefront.services.analytics_service import (
    LoggingSearchEventSink,
    RedisSearchEventSink,
    SearchEventSink,
)
from storefront.services.filter_normalizer import normalize_filters
from storefront.services.text_index import TextIndex, get_text_index


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session, used by the health checks."""
    async for session in get_async_session():
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for services that open one session per concurrent read."""
    return async_session_maker


def get_store_text_index() -> TextIndex | None:
    """Weighted text index for the configured database, if enabled."""
    return get_text_index(engine.dialect.name)


# Shared Redis connection pool
_redis_pool: aioredis.ConnectionPool | None = None


def _get_redis_pool() -> aioredis.ConnectionPool:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.ConnectionPool.from_url(
            str(settings.redis_url), decode_responses=True
        )
    return _redis_pool


async def get_redis() -> AsyncGenerator[aioredis.Redis, None]:
    """Yield a Redis client from the shared connection pool."""
    pool = _get_redis_pool()
    r = aioredis.Redis(connection_pool=pool)
    try:
        yield r
    finally:
        await r.aclose()


def get_search_event_sink() -> SearchEventSink:
    """Analytics sink selected by ``settings.analytics_sink``.

    The Redis sink holds its own client on the shared pool because it is
    used from background tasks that outlive the request dependencies.
    """
    if settings.analytics_sink == "redis":
        return RedisSearchEventSink(aioredis.Redis(connection_pool=_get_redis_pool()))
    return LoggingSearchEventSink()


def get_filter_spec(request: Request) -> FilterSpec:
    """Normalize the raw query string; malformed values are dropped, never rejected."""
    return normalize_filters(request.query_params)


# Type aliases for dependency injection
DBSession = Annotated[AsyncSession, Depends(get_db)]
SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]
StoreTextIndex = Annotated[TextIndex | None, Depends(get_store_text_index)]
EventSink = Annotated[SearchEventSink, Depends(get_search_event_sink)]
Filters = Annotated[FilterSpec, Depends(get_filter_spec)]


__all__ = [
    "BearerToken",
    "DBSession",
    "EventSink",
    "Filters",
    "SessionFactory",
    "StoreTextIndex",
    "get_db",
    "get_bearer_token",
    "get_filter_spec",
    "get_redis",
    "get_search_event_sink",
    "get_session_factory",
    "get_store_text_index",
]
