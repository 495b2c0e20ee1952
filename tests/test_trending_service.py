"""Tests for TrendingService listings."""

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.schemas.search import CategoryById, CategoryByName
from storefront.services.trending_service import TrendingService


class TestTrendingCategories:
    @pytest.mark.asyncio
    async def test_ranked_by_count_times_display_order(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        category_factory: Callable[..., Any],
    ) -> None:
        await category_factory(name="Bags", product_count=10, active_product_count=5, display_order=1)
        await category_factory(name="Shoes", product_count=4, active_product_count=4, display_order=5)
        await category_factory(name="Hidden", product_count=99, active_product_count=9, display_order=9, is_active=False)
        await category_factory(name="Empty", product_count=50, active_product_count=0, display_order=9)

        categories = await TrendingService(session_factory).get_trending_categories()

        assert [c.name for c in categories] == ["Shoes", "Bags"]
        assert categories[0].trending_score == 20
        assert categories[1].trending_score == 10

    @pytest.mark.asyncio
    async def test_limit(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        category_factory: Callable[..., Any],
    ) -> None:
        for i in range(3):
            await category_factory(name=f"Cat {i}", product_count=1, active_product_count=1, display_order=i)

        categories = await TrendingService(session_factory).get_trending_categories(limit=2)
        assert [c.name for c in categories] == ["Cat 2", "Cat 1"]


class TestPopularProducts:
    @pytest.mark.asyncio
    async def test_priority_chain(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        category_factory: Callable[..., Any],
        product_factory: Callable[..., Any],
    ) -> None:
        shoes = await category_factory(name="Shoes")
        await product_factory(category=shoes, name="Many Reviews", rating=4.5, rating_count=200)
        await product_factory(category=shoes, name="Few Reviews", rating=4.5, rating_count=3)
        await product_factory(category=shoes, name="Top Rated", rating=4.9, rating_count=1)
        await product_factory(category=shoes, name="Inactive", rating=5.0, is_active=False)

        products = await TrendingService(session_factory).get_popular_products()
        assert [p.name for p in products] == ["Top Rated", "Many Reviews", "Few Reviews"]

    @pytest.mark.asyncio
    async def test_category_scope_by_id_and_name(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        category_factory: Callable[..., Any],
        product_factory: Callable[..., Any],
    ) -> None:
        shoes = await category_factory(name="Shoes")
        bags = await category_factory(name="Bags")
        await product_factory(category=shoes, name="Runner")
        await product_factory(category=bags, name="Tote")
        service = TrendingService(session_factory)

        by_id = await service.get_popular_products(CategoryById(id=bags.id))
        by_name = await service.get_popular_products(CategoryByName(name="shoes"))

        assert [p.name for p in by_id] == ["Tote"]
        assert [p.name for p in by_name] == ["Runner"]


class TestFeaturedProducts:
    @pytest.mark.asyncio
    async def test_newest_featured_first(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        category_factory: Callable[..., Any],
        product_factory: Callable[..., Any],
    ) -> None:
        shoes = await category_factory(name="Shoes")
        base = datetime(2026, 3, 1, 9, 0, 0)
        await product_factory(category=shoes, name="Older", is_featured=True, created_at=base)
        await product_factory(
            category=shoes, name="Newer", is_featured=True, created_at=base + timedelta(hours=1)
        )
        await product_factory(category=shoes, name="Regular", created_at=base + timedelta(hours=2))

        products = await TrendingService(session_factory).get_featured_products(limit=5)
        assert [p.name for p in products] == ["Newer", "Older"]
