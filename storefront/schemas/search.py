"""Pydantic schemas for product search, filtering and facets."""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from storefront.schemas.common import CamelSchema

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Placeholder bounds returned when no product matches; not real prices.
SENTINEL_PRICE_MIN = 0.0
SENTINEL_PRICE_MAX = 50000.0


class SortKey(StrEnum):
    """Result orderings accepted by the search endpoint."""

    RELEVANCE = "relevance"
    PRICE_LOW = "price_low"
    PRICE_HIGH = "price_high"
    RATING = "rating"
    NEWEST = "newest"
    POPULAR = "popular"
    NAME = "name"


class CategoryById(BaseModel):
    """Category filter given as a category id."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["id"] = "id"
    id: UUID

    def __str__(self) -> str:
        return str(self.id)


class CategoryByName(BaseModel):
    """Category filter given as free text, resolved to an id before querying."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["name"] = "name"
    name: str

    def __str__(self) -> str:
        return self.name


CategoryRef = Annotated[CategoryById | CategoryByName, Field(discriminator="kind")]


class FilterSpec(BaseModel):
    """Normalized search and filter parameters for one request.

    ``None`` on an optional filter means "don't care".
    """

    model_config = ConfigDict(frozen=True)

    page: int = Field(1, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    sort: SortKey = SortKey.RELEVANCE
    query: str = ""

    category: CategoryRef | None = None
    brand: str | None = None
    price_min: float | None = None
    price_max: float | None = None
    min_rating: float | None = None
    discount_min: int | None = None

    in_stock: bool | None = None
    is_new: bool | None = None
    is_featured: bool | None = None
    is_bestseller: bool | None = None
    is_on_sale: bool | None = None

    colors: tuple[str, ...] = ()
    sizes: tuple[str, ...] = ()

    @property
    def has_query(self) -> bool:
        return bool(self.query)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def applied_filters(self) -> dict[str, Any]:
        """Echo the effective filters using the request parameter names."""
        applied: dict[str, Any] = {
            "page": self.page,
            "limit": self.limit,
            "sort": self.sort.value,
        }
        optional: dict[str, Any] = {
            "category": str(self.category) if self.category is not None else None,
            "brand": self.brand,
            "minPrice": self.price_min,
            "maxPrice": self.price_max,
            "rating": self.min_rating,
            "discount": self.discount_min,
            "inStock": self.in_stock,
            "isNew": self.is_new,
            "isFeatured": self.is_featured,
            "isBestseller": self.is_bestseller,
            "isOnSale": self.is_on_sale,
            "colors": list(self.colors) or None,
            "sizes": list(self.sizes) or None,
        }
        applied.update({key: value for key, value in optional.items() if value is not None})
        return applied


class CategorySummary(CamelSchema):
    """Category fields joined onto a product."""

    id: UUID
    name: str
    image: str | None = None


class ProductItem(CamelSchema):
    """A product as returned by search and listing endpoints."""

    id: UUID
    name: str
    brand: str
    description: str = ""
    price: float
    original_price: float | None = None
    discount_percent: int = 0
    images: list[str] = []
    category_id: UUID
    category: CategorySummary | None = None
    subcategory: str = ""
    rating: float = 0.0
    rating_count: int = 0
    stock: int = 0
    in_stock: bool = False
    is_featured: bool = False
    is_new: bool = False
    is_bestseller: bool = False
    is_on_sale: bool = False
    colors: list[str] = []
    sizes: list[str] = []
    view_count: int = 0
    purchase_count: int = 0
    created_at: datetime


class Pagination(CamelSchema):
    """Page position within a result set."""

    current_page: int
    total_pages: int
    total_results: int
    has_next_page: bool
    has_prev_page: bool
    results_per_page: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        """Compute page counts; an empty result set has zero pages."""
        total_pages = (total + limit - 1) // limit
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_results=total,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
            results_per_page=limit,
        )


class PriceRange(CamelSchema):
    min: float
    max: float


class FacetCategory(CamelSchema):
    """Active category offered as a navigation facet."""

    id: UUID
    name: str
    product_count: int = 0


class FacetResult(CamelSchema):
    """Filter values available across the currently matching products."""

    brands: list[str] = []
    colors: list[str] = []
    sizes: list[str] = []
    price_range: PriceRange
    avg_rating: float = 0.0
    total_products: int = 0
    categories: list[FacetCategory] = []

    @classmethod
    def sentinel(cls, categories: list[FacetCategory] | None = None) -> "FacetResult":
        """Stable placeholder for "no data"; its price range is not a real bound."""
        return cls(
            price_range=PriceRange(min=SENTINEL_PRICE_MIN, max=SENTINEL_PRICE_MAX),
            categories=categories or [],
        )

    @property
    def is_sentinel(self) -> bool:
        return self.total_products == 0


class SearchData(CamelSchema):
    """Payload of the search endpoint."""

    products: list[ProductItem]
    pagination: Pagination
    filters: FacetResult
    search_query: str
    applied_filters: dict[str, Any]


class SearchResult(BaseModel):
    """Executor output before it is wrapped into a response payload."""

    products: list[ProductItem]
    total: int
    pagination: Pagination
