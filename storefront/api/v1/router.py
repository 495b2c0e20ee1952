"""API v1 router combining all route modules."""

from fastapi import APIRouter

from storefront.api.v1 import catalog, health, search

api_router = APIRouter()

# Include health check routes (no prefix)
api_router.include_router(health.router)

# Product search, suggestions and filter options (public)
api_router.include_router(
    search.router,
    prefix="/products",
    tags=["search"],
)

# Popular and featured product listings (public)
api_router.include_router(
    catalog.products_router,
    prefix="/products",
    tags=["products"],
)

# Trending categories (public)
api_router.include_router(
    catalog.categories_router,
    prefix="/categories",
    tags=["categories"],
)
