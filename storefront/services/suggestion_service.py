"""Autocomplete suggestions merged from product, brand and category candidates."""

import logging

from sqlalchemy import ColumnElement, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.core.database import execute_guarded, run_concurrently
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.schemas.suggestions import SuggestionItem, SuggestionsData, SuggestionType
from storefront.services.predicate_builder import tag_contains
from storefront.services.trending_service import TrendingService

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
DEFAULT_SUGGESTION_LIMIT = 10
MAX_SUGGESTION_LIMIT = 50

PRODUCT_CANDIDATES = 5
BRAND_CANDIDATES = 3
CATEGORY_CANDIDATES = 3

# Additive score components for product candidates
NAME_PREFIX_SCORE = 10
NAME_CONTAINS_SCORE = 5
BRAND_PREFIX_SCORE = 8
BRAND_CONTAINS_SCORE = 3


def product_relevance(query: str) -> ColumnElement[int]:
    """SQL expression scoring how well name and brand match ``query``.

    A name that starts with the query also contains it, so a prefix match
    always outscores a plain substring match.
    """
    return (
        case((Product.name.istartswith(query, autoescape=True), NAME_PREFIX_SCORE), else_=0)
        + case((Product.name.icontains(query, autoescape=True), NAME_CONTAINS_SCORE), else_=0)
        + case((Product.brand.istartswith(query, autoescape=True), BRAND_PREFIX_SCORE), else_=0)
        + case((Product.brand.icontains(query, autoescape=True), BRAND_CONTAINS_SCORE), else_=0)
    )


def rank_suggestions(items: list[SuggestionItem], limit: int) -> list[SuggestionItem]:
    """Order merged candidates by score, then rating, then count; keep ``limit``.

    The sort is stable, so equal candidates keep source order
    (products, brands, categories).
    """
    ranked = sorted(
        items,
        key=lambda item: (
            -item.relevance_score,
            -(item.rating or 0.0),
            -(item.count or 0),
        ),
    )
    return ranked[:limit]


class SuggestionService:
    """Autocomplete for partial search queries."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        trending: TrendingService | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.trending = trending or TrendingService(session_factory)

    async def suggest(self, query: str, limit: int = DEFAULT_SUGGESTION_LIMIT) -> SuggestionsData:
        """Suggestions for ``query``; trending categories fill in when there are none.

        Errors never propagate: they degrade to an empty list plus trending.
        """
        query = query.strip()
        limit = max(1, min(limit, MAX_SUGGESTION_LIMIT))
        suggestions: list[SuggestionItem] = []

        if len(query) >= MIN_QUERY_LENGTH:
            try:
                products, brands, categories = await run_concurrently(
                    self._product_candidates(query),
                    self._brand_candidates(query),
                    self._category_candidates(query),
                )
                suggestions = rank_suggestions([*products, *brands, *categories], limit)
            except Exception:
                logger.exception("Suggestion lookup failed for %r", query)
                suggestions = []

        trending = [] if suggestions else await self.trending_fallback()
        return SuggestionsData(suggestions=suggestions, query=query, trending=trending)

    async def trending_fallback(self) -> list[SuggestionItem]:
        """Trending categories shaped as suggestions; empty on failure."""
        try:
            categories = await self.trending.get_trending_categories()
        except Exception:
            logger.exception("Trending categories unavailable for suggestions")
            return []
        return [
            SuggestionItem(
                text=c.name,
                type=SuggestionType.CATEGORY,
                id=c.id,
                image=c.image,
                count=c.product_count,
            )
            for c in categories
        ]

    async def _product_candidates(self, query: str) -> list[SuggestionItem]:
        score = product_relevance(query).label("relevance_score")
        stmt = (
            select(Product, score)
            .where(
                Product.is_active.is_(True),
                or_(
                    Product.name.icontains(query, autoescape=True),
                    Product.brand.icontains(query, autoescape=True),
                    tag_contains(query),
                ),
            )
            .order_by(score.desc(), Product.rating.desc(), Product.name.asc(), Product.id.asc())
            .limit(PRODUCT_CANDIDATES)
        )
        async with self.session_factory() as session:
            result = await execute_guarded(session, stmt, operation="product suggestions")
            rows = result.all()

        return [
            SuggestionItem(
                text=row.Product.name,
                type=SuggestionType.PRODUCT,
                relevance_score=row.relevance_score,
                id=row.Product.id,
                brand=row.Product.brand,
                price=row.Product.price,
                image=row.Product.images[0] if row.Product.images else None,
                rating=row.Product.rating,
            )
            for row in rows
        ]

    async def _brand_candidates(self, query: str) -> list[SuggestionItem]:
        match_count = func.count(Product.id).label("match_count")
        stmt = (
            select(Product.brand, match_count, func.avg(Product.price).label("avg_price"))
            .where(
                Product.is_active.is_(True),
                Product.brand.icontains(query, autoescape=True),
            )
            .group_by(Product.brand)
            .order_by(match_count.desc(), Product.brand.asc())
            .limit(BRAND_CANDIDATES)
        )
        async with self.session_factory() as session:
            result = await execute_guarded(session, stmt, operation="brand suggestions")
            rows = result.all()
            images = await self._brand_images(session, [row.brand for row in rows])

        return [
            SuggestionItem(
                text=row.brand,
                type=SuggestionType.BRAND,
                count=row.match_count,
                avg_price=float(round(row.avg_price)) if row.avg_price is not None else None,
                image=images.get(row.brand),
            )
            for row in rows
        ]

    @staticmethod
    async def _brand_images(session: AsyncSession, brands: list[str]) -> dict[str, str]:
        """First image of the earliest active product per brand."""
        if not brands:
            return {}
        stmt = (
            select(Product.brand, Product.images)
            .where(Product.is_active.is_(True), Product.brand.in_(brands))
            .order_by(Product.created_at.asc(), Product.id.asc())
        )
        result = await execute_guarded(session, stmt, operation="brand images")
        images: dict[str, str] = {}
        for brand, product_images in result.all():
            if brand not in images and product_images:
                images[brand] = product_images[0]
        return images

    async def _category_candidates(self, query: str) -> list[SuggestionItem]:
        stmt = (
            select(Category)
            .where(
                Category.is_active.is_(True),
                Category.name.icontains(query, autoescape=True),
            )
            .order_by(Category.product_count.desc(), Category.name.asc())
            .limit(CATEGORY_CANDIDATES)
        )
        async with self.session_factory() as session:
            result = await execute_guarded(session, stmt, operation="category suggestions")
            categories = result.scalars().all()

        return [
            SuggestionItem(
                text=c.name,
                type=SuggestionType.CATEGORY,
                id=c.id,
                image=c.image,
                count=c.product_count,
            )
            for c in categories
        ]
