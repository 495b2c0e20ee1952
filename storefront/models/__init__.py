"""SQLAlchemy models."""

from storefront.models.base import Base
from storefront.models.category import Category
from storefront.models.product import Product, ProductColor, ProductSearchTag, ProductSize

__all__ = [
    # Base
    "Base",
    # Catalog
    "Category",
    "Product",
    "ProductColor",
    "ProductSize",
    "ProductSearchTag",
]
