"""Application layer module.

Contains application services (use cases) that orchestrate
domain logic and infrastructure.
"""

from product_catalog.application.allergen_mapper import AllergenMapper
from product_catalog.application.catalog_service import (
    AllergenService,
    CategoryService,
    ProductService,
)
from product_catalog.application.category_resolver import CategoryResolver
from product_catalog.application.formatting import format_product
from product_catalog.application.product_resolution import ProductResolutionService
from product_catalog.application.stock_service import StockReconciliationService

__all__ = [
    "AllergenMapper",
    "AllergenService",
    "CategoryResolver",
    "CategoryService",
    "ProductResolutionService",
    "ProductService",
    "StockReconciliationService",
    "format_product",
]
