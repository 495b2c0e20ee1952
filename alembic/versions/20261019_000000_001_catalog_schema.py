"""Catalog schema: categories, products and ordered product attributes.

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _base_columns() -> list[sa.Column]:  # type: ignore[type-arg]
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def _ordered_attribute_table(table: str, column: str, length: int) -> None:
    op.create_table(
        table,
        *_base_columns(),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column(column, sa.String(length), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(
            ["product_id"],
            ["products.id"],
            name=op.f(f"fk_{table}_product_id_products"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f(f"pk_{table}")),
    )


def upgrade() -> None:
    # Categories
    op.create_table(
        "categories",
        *_base_columns(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("image", sa.String(500), nullable=True),
        sa.Column("subcategories", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("product_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("active_product_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_categories")),
        sa.UniqueConstraint("name", name=op.f("uq_categories_name")),
    )
    op.create_index(
        "ix_categories_active_display_order", "categories", ["is_active", "display_order"]
    )
    op.create_index(
        "ix_categories_product_count_active", "categories", ["product_count", "is_active"]
    )

    # Products
    op.create_table(
        "products",
        *_base_columns(),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("brand", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("original_price", sa.Float(), nullable=True),
        sa.Column("discount_percent", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("images", sa.JSON(), nullable=False, server_default="[]"),
        sa.Column("category_id", sa.Uuid(), nullable=False),
        sa.Column("category_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("subcategory", sa.String(100), nullable=False, server_default=""),
        sa.Column("rating", sa.Float(), nullable=False, server_default="0"),
        sa.Column("rating_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_new", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_bestseller", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_on_sale", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("purchase_count", sa.Integer(), nullable=False, server_default="0"),
        sa.ForeignKeyConstraint(
            ["category_id"],
            ["categories.id"],
            name=op.f("fk_products_category_id_categories"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_products")),
    )
    op.create_index("ix_products_name", "products", ["name"])
    op.create_index("ix_products_created_at", "products", ["created_at"])
    for name, column in [
        ("brand", "brand"),
        ("price", "price"),
        ("rating", "rating"),
        ("category", "category_id"),
        ("stock", "stock"),
        ("featured", "is_featured"),
        ("new", "is_new"),
        ("bestseller", "is_bestseller"),
        ("on_sale", "is_on_sale"),
    ]:
        op.create_index(f"ix_products_{name}_active", "products", [column, "is_active"])

    # Ordered attributes
    _ordered_attribute_table("product_colors", "color", 50)
    op.create_index(
        "ix_product_colors_product_position", "product_colors", ["product_id", "position"]
    )
    op.create_index("ix_product_colors_color", "product_colors", ["color"])

    _ordered_attribute_table("product_sizes", "size", 20)
    op.create_index(
        "ix_product_sizes_product_position", "product_sizes", ["product_id", "position"]
    )
    op.create_index("ix_product_sizes_size", "product_sizes", ["size"])

    _ordered_attribute_table("product_search_tags", "tag", 50)
    op.create_index("ix_product_search_tags_product_id", "product_search_tags", ["product_id"])


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table("product_search_tags")
    op.drop_table("product_sizes")
    op.drop_table("product_colors")
    op.drop_table("products")
    op.drop_table("categories")
