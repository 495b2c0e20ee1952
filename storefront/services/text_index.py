"""Weighted full-text ranking backed by PostgreSQL tsvector functions.

The capability is optional: without it, free-text search falls back to a
case-insensitive substring match and relevance ordering falls back to
rating-based ordering.
"""

from typing import Any, Protocol

from sqlalchemy import ColumnElement, Float, cast, func, literal, select, text

from storefront.core.config import settings
from storefront.models.product import Product, ProductSearchTag

# Field weights for relevance scoring
TEXT_INDEX_WEIGHTS: dict[str, int] = {
    "name": 10,
    "brand": 8,
    "category_name": 6,
    "search_tags": 5,
    "subcategory": 3,
    "description": 1,
}


class TextIndex(Protocol):
    """A store-maintained text index able to match and score a query."""

    def match(self, query: str) -> ColumnElement[bool]: ...

    def score(self, query: str) -> ColumnElement[float]: ...


class PostgresWeightedTextIndex:
    """Match with ``@@`` and score with a weighted sum of ``ts_rank`` per field."""

    def __init__(self, regconfig: str = "english") -> None:
        self._regconfig = text(f"'{regconfig}'::regconfig")

    def _fields(self) -> dict[str, ColumnElement[Any]]:
        tags = (
            select(func.string_agg(ProductSearchTag.tag, literal(" ")))
            .where(ProductSearchTag.product_id == Product.id)
            .correlate(Product)
            .scalar_subquery()
        )
        return {
            "name": Product.name,
            "brand": Product.brand,
            "category_name": Product.category_name,
            "search_tags": tags,
            "subcategory": Product.subcategory,
            "description": Product.description,
        }

    def _vector(self, expr: ColumnElement[Any]) -> ColumnElement[Any]:
        return func.to_tsvector(self._regconfig, func.coalesce(expr, literal("")))

    def _query(self, query: str) -> ColumnElement[Any]:
        return func.plainto_tsquery(self._regconfig, query)

    def match(self, query: str) -> ColumnElement[bool]:
        document: ColumnElement[Any] | None = None
        for expr in self._fields().values():
            part = func.coalesce(expr, literal(""))
            document = part if document is None else document + literal(" ") + part
        return func.to_tsvector(self._regconfig, document).op("@@")(self._query(query))

    def score(self, query: str) -> ColumnElement[float]:
        tsq = self._query(query)
        total: ColumnElement[Any] = literal(0.0)
        for field, expr in self._fields().items():
            total = total + TEXT_INDEX_WEIGHTS[field] * func.ts_rank(self._vector(expr), tsq)
        return cast(total, Float)


def get_text_index(dialect_name: str) -> TextIndex | None:
    """Return the text index when enabled and supported by the store dialect."""
    if settings.text_index_enabled and dialect_name == "postgresql":
        return PostgresWeightedTextIndex()
    return None
