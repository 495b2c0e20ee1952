"""Popular products, featured products and trending categories."""

from fastapi import APIRouter, Request

from storefront.core.deps import SessionFactory
from storefront.core.rate_limit import SEARCH_LIMIT, limiter
from storefront.schemas.common import ApiResponse
from storefront.schemas.search import ProductItem
from storefront.schemas.suggestions import TrendingCategory
from storefront.services.filter_normalizer import parse_category, parse_limit
from storefront.services.trending_service import TrendingService

DEFAULT_TRENDING_LIMIT = 10
MAX_TRENDING_LIMIT = 50

products_router = APIRouter()
categories_router = APIRouter()


@products_router.get("/popular", response_model=ApiResponse[list[ProductItem]])
@limiter.limit(SEARCH_LIMIT)
async def get_popular_products(
    request: Request,
    session_factory: SessionFactory,
) -> ApiResponse[list[ProductItem]]:
    """Most popular active products, optionally within one category."""
    category = parse_category(request.query_params.get("category"))
    limit = parse_limit(request.query_params.get("limit"))
    products = await TrendingService(session_factory).get_popular_products(category, limit)
    return ApiResponse(data=products, message=f"Found {len(products)} popular products")


@products_router.get("/featured", response_model=ApiResponse[list[ProductItem]])
@limiter.limit(SEARCH_LIMIT)
async def get_featured_products(
    request: Request,
    session_factory: SessionFactory,
) -> ApiResponse[list[ProductItem]]:
    """Featured active products, newest first."""
    category = parse_category(request.query_params.get("category"))
    limit = parse_limit(request.query_params.get("limit"))
    products = await TrendingService(session_factory).get_featured_products(category, limit)
    return ApiResponse(data=products, message=f"Found {len(products)} featured products")


@categories_router.get("/trending", response_model=ApiResponse[list[TrendingCategory]])
@limiter.limit(SEARCH_LIMIT)
async def get_trending_categories(
    request: Request,
    session_factory: SessionFactory,
) -> ApiResponse[list[TrendingCategory]]:
    """Categories ranked by trending score."""
    limit = parse_limit(
        request.query_params.get("limit"),
        default=DEFAULT_TRENDING_LIMIT,
        cap=MAX_TRENDING_LIMIT,
    )
    categories = await TrendingService(session_factory).get_trending_categories(limit)
    return ApiResponse(data=categories, message=f"Found {len(categories)} trending categories")
