"""SQLAlchemy models for the product catalog.

Defines products, categories, allergens and the product/allergen join
table.
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from product_catalog.domain.entities import Allergen, Category, Product
from product_catalog.infrastructure.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


product_allergens = Table(
    "product_allergens",
    Base.metadata,
    Column(
        "product_id",
        UUID(as_uuid=False),
        ForeignKey("products.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "allergen_id",
        UUID(as_uuid=False),
        ForeignKey("allergens.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class CategoryModel(Base):
    """Category row. ``name`` carries a global unique constraint."""

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    products: Mapped[list["ProductModel"]] = relationship(
        "ProductModel",
        back_populates="category",
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Category(id={self.id}, name={self.name})>"

    def to_entity(self) -> Category:
        """Convert to domain entity."""
        return Category(id=self.id, name=self.name, description=self.description)


class AllergenModel(Base):
    """Allergen reference row."""

    __tablename__ = "allergens"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    code: Mapped[str | None] = mapped_column(String(10), nullable=True, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Allergen(id={self.id}, code={self.code})>"

    def to_entity(self) -> Allergen:
        """Convert to domain entity."""
        return Allergen(
            id=self.id,
            name=self.name,
            code=self.code or "",
            description=self.description,
        )


class ProductModel(Base):
    """Product row.

    Attributes:
        id: Unique product identifier (UUID).
        name: Product name.
        ean_code: EAN barcode (unique per enterprise).
        description: Product description.
        category_id: Owning category.
        enterprise_id: Owning tenant.
        unit: Unit label.
        stock: Non-negative decimal stock.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    ean_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("categories.id"),
        nullable=False,
        index=True,
    )
    enterprise_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    unit: Mapped[str] = mapped_column(String(50), nullable=False, default="Unidad")
    stock: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, default=Decimal("0"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    # Relationships
    category: Mapped[CategoryModel] = relationship(
        CategoryModel,
        back_populates="products",
    )
    allergens: Mapped[list[AllergenModel]] = relationship(
        AllergenModel,
        secondary=product_allergens,
        order_by=AllergenModel.name,
    )

    __table_args__ = (
        UniqueConstraint("enterprise_id", "ean_code", name="uq_products_enterprise_ean"),
        CheckConstraint("stock >= 0", name="products_stock_non_negative"),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Product(id={self.id}, name={self.name[:30]})>"

    def to_entity(self) -> Product:
        """Convert to domain entity.

        Relationships must already be loaded.
        """
        return Product(
            id=self.id,
            name=self.name,
            enterprise_id=self.enterprise_id,
            category_id=self.category_id,
            unit=self.unit,
            stock=self.stock if self.stock is not None else Decimal("0"),
            ean_code=self.ean_code,
            description=self.description,
            category=self.category.to_entity() if self.category else None,
            allergens=[a.to_entity() for a in self.allergens],
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
