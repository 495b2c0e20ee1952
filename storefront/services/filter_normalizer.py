"""Normalize raw query parameters into a FilterSpec.

Normalization is fail-open: malformed values are dropped or defaulted,
never reported back to the caller.
"""

import math
from collections.abc import Mapping
from uuid import UUID

from storefront.schemas.search import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    CategoryById,
    CategoryByName,
    FilterSpec,
    SortKey,
)

# Request parameter -> FilterSpec field, for the boolean flags
FLAG_PARAMS = {
    "inStock": "in_stock",
    "isNew": "is_new",
    "isFeatured": "is_featured",
    "isBestseller": "is_bestseller",
    "isOnSale": "is_on_sale",
}


def parse_float(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def parse_flag(raw: str | None) -> bool | None:
    """Only the literal "true" is true; an absent flag stays undecided."""
    if raw is None:
        return None
    return raw == "true"


def parse_csv(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def parse_text(raw: str | None) -> str | None:
    if raw is None:
        return None
    return raw.strip() or None


def parse_category(raw: str | None) -> CategoryById | CategoryByName | None:
    """Classify a category parameter as an id or a name to look up later."""
    text = parse_text(raw)
    if text is None:
        return None
    try:
        return CategoryById(id=UUID(text))
    except ValueError:
        return CategoryByName(name=text)


def parse_sort(raw: str | None) -> SortKey:
    try:
        return SortKey(raw) if raw else SortKey.RELEVANCE
    except ValueError:
        return SortKey.RELEVANCE


def parse_page(raw: str | None) -> int:
    page = parse_int(raw)
    return page if page is not None and page >= 1 else 1


def parse_limit(raw: str | None, default: int = DEFAULT_PAGE_SIZE, cap: int = MAX_PAGE_SIZE) -> int:
    limit = parse_int(raw)
    if limit is None or limit < 1:
        return default
    return min(limit, cap)


def normalize_filters(params: Mapping[str, str]) -> FilterSpec:
    """Build a FilterSpec from raw string parameters."""
    flags = {field: parse_flag(params.get(param)) for param, field in FLAG_PARAMS.items()}
    return FilterSpec(
        page=parse_page(params.get("page")),
        limit=parse_limit(params.get("limit")),
        sort=parse_sort(params.get("sort")),
        query=(params.get("q") or "").strip(),
        category=parse_category(params.get("category")),
        brand=parse_text(params.get("brand")),
        price_min=parse_float(params.get("minPrice")),
        price_max=parse_float(params.get("maxPrice")),
        min_rating=parse_float(params.get("rating")),
        discount_min=parse_int(params.get("discount")),
        colors=parse_csv(params.get("colors")),
        sizes=parse_csv(params.get("sizes")),
        **flags,
    )
