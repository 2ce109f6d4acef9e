"""Domain layer: catalog entities, error taxonomy and service contracts."""

from product_catalog.domain.entities import (
    ALLERGEN_CODES,
    Allergen,
    AllergenIdentification,
    Category,
    CategorySuggestion,
    Confidence,
    NewProduct,
    Product,
    ProductChanges,
    StockAdjustment,
    StockItemResult,
    StockLevel,
    StockUpdateOutcome,
)
from product_catalog.domain.exceptions import (
    CatalogError,
    ClassifierError,
    ConflictError,
    NotFoundError,
    StockUpdateAbortedError,
    StoreUnavailableError,
)
from product_catalog.domain.ports import CatalogStore, Classifier

__all__ = [
    # Entities
    "ALLERGEN_CODES",
    "Allergen",
    "AllergenIdentification",
    "Category",
    "CategorySuggestion",
    "Confidence",
    "NewProduct",
    "Product",
    "ProductChanges",
    "StockAdjustment",
    "StockItemResult",
    "StockLevel",
    "StockUpdateOutcome",
    # Exceptions
    "CatalogError",
    "ClassifierError",
    "ConflictError",
    "NotFoundError",
    "StockUpdateAbortedError",
    "StoreUnavailableError",
    # Contracts
    "CatalogStore",
    "Classifier",
]
