"""Pydantic schemas for autocomplete suggestions and trending/popular listings."""

from enum import StrEnum
from uuid import UUID

from storefront.schemas.common import CamelSchema


class SuggestionType(StrEnum):
    PRODUCT = "product"
    BRAND = "brand"
    CATEGORY = "category"


class SuggestionItem(CamelSchema):
    """One autocomplete candidate.

    Only product candidates carry a computed ``relevance_score``; brand and
    category candidates rank with the default of 0.
    """

    text: str
    type: SuggestionType
    relevance_score: int = 0
    id: UUID | None = None
    brand: str | None = None
    price: float | None = None
    image: str | None = None
    rating: float | None = None
    count: int | None = None
    avg_price: float | None = None


class SuggestionsData(CamelSchema):
    """Payload of the suggestions endpoint."""

    suggestions: list[SuggestionItem]
    query: str
    trending: list[SuggestionItem]


class TrendingCategory(CamelSchema):
    """Category ranked by the trending proxy score."""

    id: UUID
    name: str
    description: str = ""
    image: str | None = None
    product_count: int
    active_product_count: int
    trending_score: int
