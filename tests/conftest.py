"""Pytest configuration and fixtures for the storefront search test suite.

Provides:
- A fresh catalog database per test (SQLite file by default, or the
  database named by ``TEST_DATABASE_URL``)
- Session factory wired into the app in place of the production engine
- Mock Redis (fakeredis) and a recording analytics sink
- Disabled rate limiting
- Model factory fixtures for Category and Product
"""

import os
from collections.abc import AsyncGenerator, Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import fakeredis.aioredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from storefront.core.deps import (
    get_db,
    get_redis,
    get_search_event_sink,
    get_session_factory,
    get_store_text_index,
)
from storefront.core.rate_limit import limiter
from storefront.main import app
from storefront.models.base import Base
from storefront.models.category import Category
from storefront.models.product import Product, ProductColor, ProductSearchTag, ProductSize
from storefront.services.analytics_service import SearchEvent

# ---------------------------------------------------------------------------
# Disable rate limiting globally for tests
# ---------------------------------------------------------------------------
limiter.enabled = False


# ---------------------------------------------------------------------------
# Per-test engine & tables
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Create all tables in a throwaway database for one test.

    Uses NullPool so every session gets its own connection, which lets the
    services run their concurrent reads the same way they do in production.
    """
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}"
    test_engine = create_async_engine(url, echo=False, poolclass=NullPool)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for test setup (factory fixtures)."""
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Fake Redis & analytics sink
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_redis() -> fakeredis.aioredis.FakeRedis:
    """Provide a fresh fakeredis instance per test."""
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


class RecordingSink:
    """Analytics sink that keeps events in memory."""

    def __init__(self) -> None:
        self.events: list[SearchEvent] = []

    async def record(self, event: SearchEvent) -> None:
        self.events.append(event)


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


# ---------------------------------------------------------------------------
# Client (overrides DB, session factory, Redis and analytics sink)
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    fake_redis: fakeredis.aioredis.FakeRedis,
    recording_sink: RecordingSink,
) -> AsyncGenerator[AsyncClient, None]:
    """Async test client bound to the per-test database."""

    async def _override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as s:
            yield s

    async def _override_redis() -> AsyncGenerator[fakeredis.aioredis.FakeRedis, None]:
        yield fake_redis

    app.dependency_overrides[get_db] = _override_session
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_store_text_index] = lambda: None
    app.dependency_overrides[get_redis] = _override_redis
    app.dependency_overrides[get_search_event_sink] = lambda: recording_sink

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Model Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def category_factory(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory that creates Category instances."""

    async def _create(
        *,
        name: str = "Clothing",
        description: str = "",
        image: str | None = None,
        display_order: int = 0,
        product_count: int = 0,
        active_product_count: int = 0,
        is_active: bool = True,
    ) -> Category:
        category = Category(
            name=name,
            description=description,
            image=image,
            display_order=display_order,
            product_count=product_count,
            active_product_count=active_product_count,
            is_active=is_active,
        )
        db_session.add(category)
        await db_session.commit()
        await db_session.refresh(category)
        return category

    return _create


@pytest.fixture
def product_factory(db_session: AsyncSession) -> Callable[..., Any]:
    """Factory that creates Product instances with ordered colors, sizes and tags."""

    async def _create(
        *,
        category: Category,
        name: str = "Test Product",
        brand: str = "Acme",
        description: str = "A test product",
        price: float = 100.0,
        discount_percent: int = 0,
        images: list[str] | None = None,
        rating: float = 0.0,
        rating_count: int = 0,
        stock: int = 10,
        is_active: bool = True,
        is_featured: bool = False,
        is_new: bool = False,
        is_bestseller: bool = False,
        is_on_sale: bool = False,
        view_count: int = 0,
        purchase_count: int = 0,
        colors: list[str] | None = None,
        sizes: list[str] | None = None,
        tags: list[str] | None = None,
        created_at: datetime | None = None,
    ) -> Product:
        product = Product(
            category_id=category.id,
            category_name=category.name,
            name=name,
            brand=brand,
            description=description,
            price=price,
            discount_percent=discount_percent,
            images=images or [],
            rating=rating,
            rating_count=rating_count,
            stock=stock,
            is_active=is_active,
            is_featured=is_featured,
            is_new=is_new,
            is_bestseller=is_bestseller,
            is_on_sale=is_on_sale,
            view_count=view_count,
            purchase_count=purchase_count,
            color_entries=[ProductColor(color=c, position=i) for i, c in enumerate(colors or [])],
            size_entries=[ProductSize(size=s, position=i) for i, s in enumerate(sizes or [])],
            tag_entries=[ProductSearchTag(tag=t, position=i) for i, t in enumerate(tags or [])],
        )
        if created_at is not None:
            product.created_at = created_at
        db_session.add(product)
        await db_session.commit()
        await db_session.refresh(product)
        return product

    return _create
