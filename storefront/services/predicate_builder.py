"""Build catalog predicates from a normalized FilterSpec."""

import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sqlalchemy import ColumnElement, case, exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.database import execute_guarded
from storefront.models.category import Category
from storefront.models.product import Product, ProductColor, ProductSearchTag, ProductSize
from storefront.schemas.search import CategoryById, CategoryByName, FilterSpec
from storefront.services.text_index import TextIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Predicate:
    """Store-native filter for one request.

    ``clauses`` are ANDed together; ``text_score`` is set only when a
    text index scores the free-text query.
    """

    clauses: list[ColumnElement[bool]] = field(default_factory=list)
    text_score: ColumnElement[float] | None = None

    def apply(self, stmt: Any) -> Any:
        return stmt.where(*self.clauses)


def escape_like(text: str) -> str:
    """Escape LIKE wildcards using "/" as the escape character."""
    return text.replace("/", "//").replace("%", "/%").replace("_", "/_")


def tag_contains(text: str) -> ColumnElement[bool]:
    """True when any search tag of the product contains ``text``."""
    return exists().where(
        ProductSearchTag.product_id == Product.id,
        ProductSearchTag.tag.icontains(text, autoescape=True),
    )


def text_match(query: str) -> ColumnElement[bool]:
    """Case-insensitive substring match across name, brand, description and tags."""
    return or_(
        Product.name.icontains(query, autoescape=True),
        Product.brand.icontains(query, autoescape=True),
        Product.description.icontains(query, autoescape=True),
        tag_contains(query),
    )


def build_clauses(
    spec: FilterSpec,
    category_id: UUID | None,
    text_index: TextIndex | None = None,
) -> list[ColumnElement[bool]]:
    """Translate a FilterSpec into ANDed clauses, always scoped to active products."""
    clauses: list[ColumnElement[bool]] = [Product.is_active.is_(True)]

    if spec.has_query:
        if text_index is not None:
            clauses.append(text_index.match(spec.query))
        else:
            clauses.append(text_match(spec.query))

    if category_id is not None:
        clauses.append(Product.category_id == category_id)

    if spec.brand:
        clauses.append(Product.brand.icontains(spec.brand, autoescape=True))

    # Inclusive ranges
    if spec.price_min is not None:
        clauses.append(Product.price >= spec.price_min)
    if spec.price_max is not None:
        clauses.append(Product.price <= spec.price_max)
    if spec.min_rating is not None:
        clauses.append(Product.rating >= spec.min_rating)
    if spec.discount_min is not None:
        clauses.append(Product.discount_percent >= spec.discount_min)

    if spec.in_stock is not None:
        clauses.append(Product.stock > 0 if spec.in_stock else Product.stock <= 0)

    flag_columns = [
        (Product.is_new, spec.is_new),
        (Product.is_featured, spec.is_featured),
        (Product.is_bestseller, spec.is_bestseller),
        (Product.is_on_sale, spec.is_on_sale),
    ]
    for column, wanted in flag_columns:
        if wanted is not None:
            clauses.append(column.is_(wanted))

    if spec.colors:
        clauses.append(
            exists().where(
                ProductColor.product_id == Product.id,
                ProductColor.color.in_(spec.colors),
            )
        )
    if spec.sizes:
        clauses.append(
            exists().where(
                ProductSize.product_id == Product.id,
                ProductSize.size.in_(spec.sizes),
            )
        )

    return clauses


async def resolve_category(
    session: AsyncSession,
    ref: CategoryById | CategoryByName | None,
) -> UUID | None:
    """Resolve a category reference to an id; unknown names resolve to None."""
    if ref is None:
        return None
    if isinstance(ref, CategoryById):
        return ref.id

    exact = Category.name.ilike(escape_like(ref.name), escape="/")
    stmt = (
        select(Category.id)
        .where(or_(exact, Category.name.icontains(ref.name, autoescape=True)))
        .order_by(
            case((exact, 0), else_=1),
            Category.display_order,
            Category.name,
        )
        .limit(1)
    )
    result = await execute_guarded(session, stmt, operation="category lookup")
    category_id = result.scalar_one_or_none()
    if category_id is None:
        logger.info("Category %r not found, dropping category filter", ref.name)
    return category_id


class PredicateBuilder:
    """Build the predicate for a FilterSpec, resolving category names first."""

    def __init__(self, db: AsyncSession, text_index: TextIndex | None = None) -> None:
        self.db = db
        self.text_index = text_index

    async def build(self, spec: FilterSpec) -> Predicate:
        category_id = await resolve_category(self.db, spec.category)
        text_score = None
        if spec.has_query and self.text_index is not None:
            text_score = self.text_index.score(spec.query)
        return Predicate(
            clauses=build_clauses(spec, category_id, self.text_index),
            text_score=text_score,
        )
