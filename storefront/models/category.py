"""Catalog category model."""

from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.models.base import Base

if TYPE_CHECKING:
    from storefront.models.product import Product


class Category(Base):
    """Top-level catalog category.

    ``product_count`` and ``active_product_count`` are maintained by the
    catalog backend; search reads them as-is.
    """

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    subcategories: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)

    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    product_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    active_product_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    products: Mapped[list["Product"]] = relationship("Product", back_populates="category")

    __table_args__ = (
        Index("ix_categories_active_display_order", "is_active", "display_order"),
        Index("ix_categories_product_count_active", "product_count", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Category {self.name}>"
