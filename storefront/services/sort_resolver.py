"""Map sort keys to ORDER BY clauses."""

from typing import Any

from sqlalchemy import ColumnElement, UnaryExpression

from storefront.models.product import Product
from storefront.schemas.search import SortKey

SORT_ORDERS: dict[SortKey, tuple[UnaryExpression[Any], ...]] = {
    SortKey.PRICE_LOW: (Product.price.asc(),),
    SortKey.PRICE_HIGH: (Product.price.desc(),),
    SortKey.RATING: (Product.rating.desc(), Product.rating_count.desc()),
    SortKey.NEWEST: (Product.created_at.desc(),),
    SortKey.POPULAR: (Product.rating_count.desc(), Product.rating.desc()),
    SortKey.NAME: (Product.name.asc(),),
}

RELEVANCE_FALLBACK = (
    Product.rating.desc(),
    Product.rating_count.desc(),
    Product.created_at.desc(),
)


def resolve_sort(
    sort: SortKey,
    *,
    has_query: bool,
    text_score: ColumnElement[float] | None = None,
) -> list[ColumnElement[Any]]:
    """Return the ordering for ``sort``.

    Relevance without a query term has no meaning and orders like
    ``newest``. Every ordering ends on ``id`` so pages are deterministic.
    """
    order: list[ColumnElement[Any]]
    if sort is SortKey.RELEVANCE:
        if not has_query:
            order = list(SORT_ORDERS[SortKey.NEWEST])
        elif text_score is not None:
            order = [text_score.desc(), *RELEVANCE_FALLBACK]
        else:
            order = list(RELEVANCE_FALLBACK)
    else:
        order = list(SORT_ORDERS[sort])
    order.append(Product.id.asc())
    return order
