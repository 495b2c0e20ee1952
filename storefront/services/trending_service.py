"""Trending categories, popular products and featured products."""

import logging
from typing import Any

from sqlalchemy import ColumnElement, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload

from storefront.core.database import execute_guarded
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.schemas.search import CategoryById, CategoryByName, ProductItem
from storefront.schemas.suggestions import TrendingCategory
from storefront.services.predicate_builder import resolve_category

logger = logging.getLogger(__name__)


class TrendingService:
    """Rank categories and products by documented proxy signals.

    There is no real trend signal in the catalog. Category "trendiness" is
    ``product_count * display_order``, with ``display_order`` acting as a
    merchandiser-tunable boost. Product popularity is a fixed priority
    chain of review and engagement counters, not a blended score.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory

    async def get_trending_categories(self, limit: int = 10) -> list[TrendingCategory]:
        """Active categories with live products, by trending score."""
        score = (Category.product_count * Category.display_order).label("trending_score")
        stmt = (
            select(Category, score)
            .where(
                Category.is_active.is_(True),
                Category.active_product_count > 0,
            )
            .order_by(
                score.desc(),
                Category.active_product_count.desc(),
                Category.name.asc(),
            )
            .limit(limit)
        )
        async with self.session_factory() as session:
            result = await execute_guarded(session, stmt, operation="trending categories")
            rows = result.all()

        return [
            TrendingCategory(
                id=row.Category.id,
                name=row.Category.name,
                description=row.Category.description,
                image=row.Category.image,
                product_count=row.Category.product_count,
                active_product_count=row.Category.active_product_count,
                trending_score=row.trending_score,
            )
            for row in rows
        ]

    async def get_popular_products(
        self,
        category: CategoryById | CategoryByName | None = None,
        limit: int = 20,
    ) -> list[ProductItem]:
        """Active products by rating, review count, purchases, then views."""
        return await self._list_products(
            category,
            limit,
            extra_clauses=[],
            order=[
                Product.rating.desc(),
                Product.rating_count.desc(),
                Product.purchase_count.desc(),
                Product.view_count.desc(),
                Product.id.asc(),
            ],
            operation="popular products",
        )

    async def get_featured_products(
        self,
        category: CategoryById | CategoryByName | None = None,
        limit: int = 20,
    ) -> list[ProductItem]:
        """Newest featured products first."""
        return await self._list_products(
            category,
            limit,
            extra_clauses=[Product.is_featured.is_(True)],
            order=[Product.created_at.desc(), Product.rating.desc(), Product.id.asc()],
            operation="featured products",
        )

    async def _list_products(
        self,
        category: CategoryById | CategoryByName | None,
        limit: int,
        *,
        extra_clauses: list[ColumnElement[bool]],
        order: list[ColumnElement[Any]],
        operation: str,
    ) -> list[ProductItem]:
        async with self.session_factory() as session:
            clauses = [Product.is_active.is_(True), *extra_clauses]
            category_id = await resolve_category(session, category)
            if category_id is not None:
                clauses.append(Product.category_id == category_id)

            stmt = (
                select(Product)
                .options(joinedload(Product.category))
                .where(*clauses)
                .order_by(*order)
                .limit(limit)
            )
            result = await execute_guarded(session, stmt, operation=operation)
            return [ProductItem.model_validate(p) for p in result.scalars().all()]
