"""Catalog product model and its ordered attribute tables."""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, Float, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.models.base import Base

if TYPE_CHECKING:
    from storefront.models.category import Category


class Product(Base):
    """Product in the storefront catalog.

    The catalog is owned by the merchandising backend; this service only
    reads it, apart from bumping ``view_count`` from search analytics.
    Colors, sizes and search tags keep their listed order through a
    ``position`` column so that "first color" stays meaningful.
    """

    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    brand: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)

    # Pricing
    price: Mapped[float] = mapped_column(Float, nullable=False)
    original_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    discount_percent: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    images: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    # Category (denormalized name/subcategory feed the weighted text ranking)
    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
    )
    category_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    subcategory: Mapped[str] = mapped_column(String(100), default="", nullable=False)

    # Reviews
    rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    rating_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Inventory and merchandising flags
    stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_new: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_bestseller: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_on_sale: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Engagement counters
    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    purchase_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relationships
    category: Mapped["Category"] = relationship("Category", back_populates="products")
    color_entries: Mapped[list["ProductColor"]] = relationship(
        "ProductColor",
        order_by="ProductColor.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    size_entries: Mapped[list["ProductSize"]] = relationship(
        "ProductSize",
        order_by="ProductSize.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    tag_entries: Mapped[list["ProductSearchTag"]] = relationship(
        "ProductSearchTag",
        order_by="ProductSearchTag.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_products_name", "name"),
        Index("ix_products_brand_active", "brand", "is_active"),
        Index("ix_products_price_active", "price", "is_active"),
        Index("ix_products_rating_active", "rating", "is_active"),
        Index("ix_products_category_active", "category_id", "is_active"),
        Index("ix_products_stock_active", "stock", "is_active"),
        Index("ix_products_created_at", "created_at"),
        Index("ix_products_featured_active", "is_featured", "is_active"),
        Index("ix_products_new_active", "is_new", "is_active"),
        Index("ix_products_bestseller_active", "is_bestseller", "is_active"),
        Index("ix_products_on_sale_active", "is_on_sale", "is_active"),
    )

    @property
    def colors(self) -> list[str]:
        return [entry.color for entry in self.color_entries]

    @property
    def sizes(self) -> list[str]:
        return [entry.size for entry in self.size_entries]

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    def __repr__(self) -> str:
        return f"<Product {self.name} ({self.brand})>"


class ProductColor(Base):
    """A color a product is offered in; position 0 is the lead color."""

    __tablename__ = "product_colors"

    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    color: Mapped[str] = mapped_column(String(50), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        Index("ix_product_colors_product_position", "product_id", "position"),
        Index("ix_product_colors_color", "color"),
    )


class ProductSize(Base):
    """A size a product is offered in; position 0 is the lead size."""

    __tablename__ = "product_sizes"

    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    size: Mapped[str] = mapped_column(String(20), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        Index("ix_product_sizes_product_position", "product_id", "position"),
        Index("ix_product_sizes_size", "size"),
    )


class ProductSearchTag(Base):
    """Lowercase keyword attached to a product for search matching."""

    __tablename__ = "product_search_tags"

    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    tag: Mapped[str] = mapped_column(String(50), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (Index("ix_product_search_tags_product_id", "product_id"),)
