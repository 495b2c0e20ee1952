"""Facet aggregation over the products matching a search predicate."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.core.database import execute_guarded
from storefront.core.exceptions import StoreUnavailableError
from storefront.models.category import Category
from storefront.models.product import Product, ProductColor, ProductSize
from storefront.schemas.search import FacetCategory, FacetResult, FilterSpec, PriceRange
from storefront.services.predicate_builder import Predicate, PredicateBuilder
from storefront.services.text_index import TextIndex

logger = logging.getLogger(__name__)


class FacetService:
    """Compute available filter values for a predicate.

    Colors and sizes are reduced to the lead entry (position 0) of each
    matching product, so rarely-listed variants do not show up as facets.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        text_index: TextIndex | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.text_index = text_index

    async def compute(self, predicate: Predicate) -> FacetResult:
        """Aggregate facets; store errors propagate."""
        async with self.session_factory() as session:
            categories = await self._active_categories(session)

            summary_stmt = predicate.apply(
                select(
                    func.count(Product.id).label("total"),
                    func.min(Product.price).label("min_price"),
                    func.max(Product.price).label("max_price"),
                    func.avg(Product.rating).label("avg_rating"),
                )
            )
            summary = (
                await execute_guarded(session, summary_stmt, operation="facet summary")
            ).one()
            if not summary.total:
                return FacetResult.sentinel(categories)

            matching_ids = predicate.apply(select(Product.id))

            brands_stmt = (
                predicate.apply(select(Product.brand).distinct()).order_by(Product.brand)
            )
            colors_stmt = (
                select(ProductColor.color)
                .distinct()
                .where(ProductColor.position == 0, ProductColor.product_id.in_(matching_ids))
                .order_by(ProductColor.color)
            )
            sizes_stmt = (
                select(ProductSize.size)
                .distinct()
                .where(ProductSize.position == 0, ProductSize.product_id.in_(matching_ids))
                .order_by(ProductSize.size)
            )

            brands = (await execute_guarded(session, brands_stmt, operation="brand facet")).scalars()
            colors = (await execute_guarded(session, colors_stmt, operation="color facet")).scalars()
            sizes = (await execute_guarded(session, sizes_stmt, operation="size facet")).scalars()

            return FacetResult(
                brands=[b for b in brands if b],
                colors=[c for c in colors if c],
                sizes=[s for s in sizes if s],
                price_range=PriceRange(min=float(summary.min_price), max=float(summary.max_price)),
                avg_rating=round(float(summary.avg_rating or 0.0), 1),
                total_products=summary.total,
                categories=categories,
            )

    async def compute_safe(self, predicate: Predicate) -> FacetResult:
        """Aggregate facets, degrading to the sentinel on any failure."""
        try:
            return await self.compute(predicate)
        except Exception:
            logger.exception("Facet aggregation failed, returning empty facets")
            return FacetResult.sentinel()

    async def filter_options(self, spec: FilterSpec) -> FacetResult:
        """Facets for a filter spec without running the product search."""
        try:
            async with self.session_factory() as session:
                predicate = await PredicateBuilder(session, self.text_index).build(spec)
        except StoreUnavailableError:
            logger.exception("Could not build facet predicate, returning empty facets")
            return FacetResult.sentinel()
        return await self.compute_safe(predicate)

    @staticmethod
    async def _active_categories(session: AsyncSession) -> list[FacetCategory]:
        stmt = select(Category).where(Category.is_active.is_(True)).order_by(Category.name)
        result = await execute_guarded(session, stmt, operation="category facet")
        return [FacetCategory.model_validate(c) for c in result.scalars().all()]
