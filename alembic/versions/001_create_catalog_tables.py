"""Create categories, allergens, products and product_allergens tables.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create catalog tables."""
    op.create_table(
        "categories",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.UniqueConstraint("name", name="categories_name_key"),
    )

    op.create_table(
        "allergens",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("code", sa.String(10), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.UniqueConstraint("code", name="allergens_code_key"),
    )

    op.create_table(
        "products",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column("name", sa.String(500), nullable=False),
        sa.Column("ean_code", sa.String(50), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "category_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("categories.id", name="products_category_id_fkey"),
            nullable=False,
            index=True,
        ),
        sa.Column("enterprise_id", sa.String(100), nullable=False, index=True),
        sa.Column("unit", sa.String(50), nullable=False, server_default="Unidad"),
        sa.Column("stock", sa.Numeric(12, 3), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint("stock >= 0", name="products_stock_non_negative"),
    )

    # EAN is unique per enterprise; NULLs never collide
    op.create_unique_constraint(
        "uq_products_enterprise_ean",
        "products",
        ["enterprise_id", "ean_code"],
    )

    op.create_table(
        "product_allergens",
        sa.Column(
            "product_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "allergen_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("allergens.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )


def downgrade() -> None:
    """Drop catalog tables."""
    op.drop_table("product_allergens")
    op.drop_constraint("uq_products_enterprise_ean", "products", type_="unique")
    op.drop_table("products")
    op.drop_table("allergens")
    op.drop_table("categories")
