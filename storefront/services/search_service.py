"""Catalog search: predicate, paginated fetch, count and facets."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload

from storefront.core.database import execute_guarded, run_concurrently
from storefront.models.product import Product
from storefront.schemas.search import (
    FilterSpec,
    Pagination,
    ProductItem,
    SearchData,
    SearchResult,
)
from storefront.services.facet_service import FacetService
from storefront.services.predicate_builder import Predicate, PredicateBuilder
from storefront.services.sort_resolver import resolve_sort
from storefront.services.text_index import TextIndex

logger = logging.getLogger(__name__)


class SearchService:
    """Filtered, sorted and paginated product search with facets.

    Each concurrent read gets its own session from ``session_factory``;
    a single AsyncSession cannot run two statements at once.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        text_index: TextIndex | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.text_index = text_index
        self.facets = FacetService(session_factory, text_index)

    async def search(self, spec: FilterSpec) -> SearchData:
        """Run the search and facet aggregation for one request.

        Facet failures degrade to the sentinel; store failures in the
        search itself raise StoreUnavailableError.
        """
        async with self.session_factory() as session:
            predicate = await PredicateBuilder(session, self.text_index).build(spec)

        result, facets = await run_concurrently(
            self.execute(spec, predicate),
            self.facets.compute_safe(predicate),
        )

        logger.info(
            "Search q=%r sort=%s page=%d returned %d of %d",
            spec.query,
            spec.sort.value,
            spec.page,
            len(result.products),
            result.total,
        )

        return SearchData(
            products=result.products,
            pagination=result.pagination,
            filters=facets,
            search_query=spec.query,
            applied_filters=spec.applied_filters(),
        )

    async def execute(self, spec: FilterSpec, predicate: Predicate) -> SearchResult:
        """Fetch one page and the total count concurrently.

        If either read fails the other is cancelled. The two reads are
        independent; under concurrent catalog edits the page and the total
        may briefly disagree.
        """
        products, total = await run_concurrently(
            self._fetch_page(spec, predicate),
            self._count(predicate),
        )
        return SearchResult(
            products=products,
            total=total,
            pagination=Pagination.build(spec.page, spec.limit, total),
        )

    async def _fetch_page(self, spec: FilterSpec, predicate: Predicate) -> list[ProductItem]:
        order = resolve_sort(
            spec.sort,
            has_query=spec.has_query,
            text_score=predicate.text_score,
        )
        stmt = (
            predicate.apply(select(Product).options(joinedload(Product.category)))
            .order_by(*order)
            .offset(spec.offset)
            .limit(spec.limit)
        )
        async with self.session_factory() as session:
            result = await execute_guarded(session, stmt, operation="product search")
            return [ProductItem.model_validate(p) for p in result.scalars().all()]

    async def _count(self, predicate: Predicate) -> int:
        stmt = predicate.apply(select(func.count()).select_from(Product))
        async with self.session_factory() as session:
            result = await execute_guarded(session, stmt, operation="product count")
            return result.scalar() or 0
