"""Search analytics: query events and view-count bumps.

Recording runs after the search response has been produced and must never
affect it, so every failure here is logged and swallowed.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

import redis.asyncio as aioredis
from sqlalchemy import or_, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.core.config import settings
from storefront.core.database import commit_guarded, execute_guarded
from storefront.models.product import Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchEvent:
    """A free-text search as seen by analytics."""

    query: str
    result_count: int
    user_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


class SearchEventSink(Protocol):
    """Destination for search events."""

    async def record(self, event: SearchEvent) -> None: ...


class LoggingSearchEventSink:
    """Emit each event as a structured log line."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log or logging.getLogger("storefront.search_events")

    async def record(self, event: SearchEvent) -> None:
        self.log.info("search_event", extra={"search_event": event.to_dict()})


class RedisSearchEventSink:
    """Append events to a capped Redis list and count queries in a sorted set."""

    def __init__(
        self,
        redis: aioredis.Redis,
        events_key: str = settings.analytics_redis_events_key,
        queries_key: str = settings.analytics_redis_queries_key,
        max_events: int = settings.analytics_redis_max_events,
    ) -> None:
        self.redis = redis
        self.events_key = events_key
        self.queries_key = queries_key
        self.max_events = max_events

    async def record(self, event: SearchEvent) -> None:
        async with self.redis.pipeline(transaction=False) as pipe:
            pipe.lpush(self.events_key, json.dumps(event.to_dict()))
            pipe.ltrim(self.events_key, 0, self.max_events - 1)
            pipe.zincrby(self.queries_key, 1, event.query.lower())
            await pipe.execute()


class SearchAnalyticsService:
    """Record search events and bump view counters on matching products."""

    def __init__(
        self,
        sink: SearchEventSink,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self.sink = sink
        self.session_factory = session_factory

    async def record_search(
        self,
        query: str,
        result_count: int,
        user_id: str | None = None,
    ) -> None:
        """Record one search. Blank queries are ignored."""
        query = query.strip()
        if not query:
            return

        event = SearchEvent(query=query, result_count=result_count, user_id=user_id)
        try:
            await self.sink.record(event)
        except Exception:
            logger.exception("Failed to record search event for %r", query)

        if result_count > 0:
            try:
                await self._increment_view_counts(query)
            except Exception:
                logger.exception("Failed to update view counts for %r", query)

    async def _increment_view_counts(self, query: str) -> None:
        stmt = (
            update(Product)
            .where(
                Product.is_active.is_(True),
                or_(
                    Product.name.icontains(query, autoescape=True),
                    Product.brand.icontains(query, autoescape=True),
                ),
            )
            .values(view_count=Product.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        async with self.session_factory() as session:
            await execute_guarded(session, stmt, operation="view count update")
            await commit_guarded(session, operation="view count update")
