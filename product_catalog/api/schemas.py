"""API schemas for the product catalog.

Pydantic models for request validation. Field names follow the
camelCase wire format used by the upstream services.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from product_catalog.domain.entities import NewProduct, ProductChanges, StockAdjustment

# Largest value the Numeric(12, 3) stock column holds
MAX_STOCK = Decimal("999999999.999")


# ============================================================================
# Common Schemas
# ============================================================================


class CamelModel(BaseModel):
    """Base model accepting both camelCase aliases and field names."""

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Any = Field(default_factory=list, description="Additional error details")
    request_id: str | None = Field(default=None, description="Request ID for correlation")


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str


# ============================================================================
# Product Schemas
# ============================================================================


class ProductCreateRequest(CamelModel):
    """Request to create a product."""

    name: str = Field(..., min_length=1)
    enterprise_id: str = Field(..., alias="enterpriseId", min_length=1)
    category_id: str = Field(..., alias="categoryId", min_length=1)
    ean_code: str | None = Field(default=None, alias="eanCode")
    description: str | None = None
    unit: str | None = None
    stock: Decimal | None = Field(default=None, ge=0, le=MAX_STOCK)
    allergen_ids: list[str] | None = Field(default=None, alias="allergenIds")

    def to_domain(self, default_unit: str) -> NewProduct:
        return NewProduct(
            name=self.name,
            enterprise_id=self.enterprise_id,
            category_id=self.category_id,
            unit=self.unit or default_unit,
            stock=self.stock or Decimal("0"),
            ean_code=self.ean_code,
            description=self.description,
            allergen_ids=list(self.allergen_ids or []),
        )


class ProductUpdateRequest(CamelModel):
    """Partial product update; ``allergenIds`` replaces the whole set."""

    name: str | None = Field(default=None, min_length=1)
    ean_code: str | None = Field(default=None, alias="eanCode")
    description: str | None = None
    category_id: str | None = Field(default=None, alias="categoryId")
    unit: str | None = None
    stock: Decimal | None = Field(default=None, ge=0, le=MAX_STOCK)
    allergen_ids: list[str] | None = Field(default=None, alias="allergenIds")

    def to_domain(self) -> ProductChanges:
        return ProductChanges(
            name=self.name,
            ean_code=self.ean_code,
            description=self.description,
            category_id=self.category_id,
            unit=self.unit,
            stock=self.stock,
            allergen_ids=self.allergen_ids,
        )


class FindOrCreateRequest(CamelModel):
    """Partial product identity read by the document-analysis flow."""

    name: str = Field(..., min_length=1)
    enterprise_id: str = Field(..., alias="enterpriseId", min_length=1)
    ean_code: str | None = Field(default=None, alias="eanCode")
    category_name: str | None = Field(default=None, alias="categoryName")


class StockItemRequest(CamelModel):
    """Signed stock delta for one product."""

    product_id: str = Field(..., alias="productId", min_length=1)
    quantity: Decimal = Field(..., ge=-MAX_STOCK, le=MAX_STOCK)

    def to_domain(self) -> StockAdjustment:
        return StockAdjustment(product_id=self.product_id, quantity=self.quantity)


class BulkStockRequest(CamelModel):
    """Batch of stock deltas."""

    items: list[StockItemRequest]


class IdentifyAllergensRequest(CamelModel):
    """Free text to run allergen identification on."""

    description: str


# ============================================================================
# Category / Allergen Schemas
# ============================================================================


class CategoryCreateRequest(CamelModel):
    name: str = Field(..., min_length=1)
    description: str | None = None


class CategoryUpdateRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None


class AllergenCreateRequest(CamelModel):
    name: str = Field(..., min_length=1)
    code: str | None = None
    description: str | None = None


class AllergenUpdateRequest(CamelModel):
    name: str | None = Field(default=None, min_length=1)
    code: str | None = None
    description: str | None = None
