"""Tests for search analytics recording."""

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, patch

import fakeredis.aioredis
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.core.config import settings
from storefront.models.product import Product
from storefront.services.analytics_service import (
    LoggingSearchEventSink,
    RedisSearchEventSink,
    SearchAnalyticsService,
    SearchEvent,
)
from tests.conftest import RecordingSink


async def _view_counts(factory: async_sessionmaker[AsyncSession]) -> dict[str, int]:
    async with factory() as session:
        result = await session.execute(select(Product.name, Product.view_count))
        return {name: count for name, count in result.all()}


class TestRecordSearch:
    """Tests for SearchAnalyticsService.record_search()."""

    @pytest.mark.asyncio
    async def test_records_event_and_bumps_matching_views(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        recording_sink: RecordingSink,
        category_factory: Callable[..., Any],
        product_factory: Callable[..., Any],
    ) -> None:
        tops = await category_factory(name="Tops")
        await product_factory(category=tops, name="Silk Shirt", view_count=3)
        await product_factory(category=tops, name="Wool Scarf", brand="Shirtworks")
        await product_factory(category=tops, name="Denim Jacket")
        await product_factory(category=tops, name="Old Shirt", is_active=False)

        service = SearchAnalyticsService(recording_sink, session_factory)
        await service.record_search(" shirt ", 2, user_id="user-1")

        assert len(recording_sink.events) == 1
        event = recording_sink.events[0]
        assert event.query == "shirt"
        assert event.result_count == 2
        assert event.user_id == "user-1"

        counts = await _view_counts(session_factory)
        assert counts == {"Silk Shirt": 4, "Wool Scarf": 1, "Denim Jacket": 0, "Old Shirt": 0}

    @pytest.mark.asyncio
    async def test_zero_results_skip_view_bump(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        recording_sink: RecordingSink,
        category_factory: Callable[..., Any],
        product_factory: Callable[..., Any],
    ) -> None:
        tops = await category_factory(name="Tops")
        await product_factory(category=tops, name="Silk Shirt")

        await SearchAnalyticsService(recording_sink, session_factory).record_search("shirt", 0)

        assert len(recording_sink.events) == 1
        assert (await _view_counts(session_factory))["Silk Shirt"] == 0

    @pytest.mark.asyncio
    async def test_blank_query_is_ignored(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        recording_sink: RecordingSink,
    ) -> None:
        await SearchAnalyticsService(recording_sink, session_factory).record_search("   ", 5)
        assert recording_sink.events == []

    @pytest.mark.asyncio
    async def test_sink_failure_is_swallowed(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        category_factory: Callable[..., Any],
        product_factory: Callable[..., Any],
    ) -> None:
        tops = await category_factory(name="Tops")
        await product_factory(category=tops, name="Silk Shirt")
        sink = AsyncMock()
        sink.record.side_effect = ConnectionError("redis down")

        await SearchAnalyticsService(sink, session_factory).record_search("shirt", 1)

        assert (await _view_counts(session_factory))["Silk Shirt"] == 1

    @pytest.mark.asyncio
    async def test_store_failure_is_swallowed(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        recording_sink: RecordingSink,
    ) -> None:
        service = SearchAnalyticsService(recording_sink, session_factory)
        service._increment_view_counts = AsyncMock(side_effect=RuntimeError("db down"))  # type: ignore[method-assign]

        await service.record_search("shirt", 3)
        assert len(recording_sink.events) == 1

    @pytest.mark.asyncio
    async def test_hung_commit_gives_up_after_store_timeout(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        recording_sink: RecordingSink,
        category_factory: Callable[..., Any],
        product_factory: Callable[..., Any],
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        tops = await category_factory(name="Tops")
        await product_factory(category=tops, name="Silk Shirt")

        async def _hang(*_args: Any, **_kwargs: Any) -> None:
            await asyncio.sleep(10)

        monkeypatch.setattr(settings, "store_timeout_seconds", 0.05)
        service = SearchAnalyticsService(recording_sink, session_factory)
        with patch.object(AsyncSession, "commit", _hang), caplog.at_level(logging.ERROR):
            await asyncio.wait_for(service.record_search("shirt", 1), timeout=2)

        assert "Failed to update view counts" in caplog.text
        assert (await _view_counts(session_factory))["Silk Shirt"] == 0


class TestRedisSearchEventSink:
    @pytest.mark.asyncio
    async def test_appends_events_and_counts_queries(
        self, fake_redis: fakeredis.aioredis.FakeRedis
    ) -> None:
        sink = RedisSearchEventSink(fake_redis, "events", "queries", max_events=2)

        await sink.record(SearchEvent(query="Shirt", result_count=4))
        await sink.record(SearchEvent(query="shirt", result_count=4))
        await sink.record(SearchEvent(query="dress", result_count=0, user_id="u1"))

        raw = await fake_redis.lrange("events", 0, -1)
        assert len(raw) == 2
        latest = json.loads(raw[0])
        assert latest["query"] == "dress"
        assert latest["user_id"] == "u1"
        assert "timestamp" in latest

        assert await fake_redis.zrevrange("queries", 0, -1, withscores=True) == [
            ("shirt", 2.0),
            ("dress", 1.0),
        ]


class TestLoggingSearchEventSink:
    @pytest.mark.asyncio
    async def test_logs_structured_event(self, caplog: pytest.LogCaptureFixture) -> None:
        sink = LoggingSearchEventSink()
        with caplog.at_level(logging.INFO, logger="storefront.search_events"):
            await sink.record(SearchEvent(query="boots", result_count=7))

        record = caplog.records[-1]
        assert record.getMessage() == "search_event"
        assert record.search_event["query"] == "boots"  # type: ignore[attr-defined]
        assert record.search_event["result_count"] == 7  # type: ignore[attr-defined]
