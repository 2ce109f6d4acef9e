"""Contracts the application services depend on.

Services receive implementations of these protocols by injection:
``SqlCatalogStore`` or ``InMemoryCatalogStore`` for the store,
``GeminiClassifier`` or a test double for the classifier.
"""

from collections.abc import Iterable, Sequence
from typing import Protocol

from product_catalog.domain.entities import (
    Allergen,
    AllergenIdentification,
    Category,
    CategorySuggestion,
    NewProduct,
    Product,
    ProductChanges,
    StockLevel,
)


class CatalogStore(Protocol):
    """Persistence contract for products, categories and allergens.

    Every method raises a ``CatalogError`` subclass on failure.
    """

    # Resolution lookups
    async def find_product_by_ean(self, ean_code: str, enterprise_id: str) -> Product | None: ...

    async def find_product_by_name_ci(self, name: str, enterprise_id: str) -> Product | None: ...

    async def find_category_by_name_contains_ci(self, text: str) -> Category | None: ...

    async def find_category_by_name_equals_ci(self, text: str) -> Category | None: ...

    async def list_category_names(self) -> list[str]: ...

    async def find_allergens_by_codes(self, codes: Iterable[str]) -> list[Allergen]: ...

    # Stock
    async def find_products_by_ids(self, product_ids: Iterable[str]) -> list[Product]: ...

    async def update_products_stock_atomically(
        self, levels: Sequence[StockLevel]
    ) -> list[Product]: ...

    # Products
    async def create_product(self, data: NewProduct) -> Product: ...

    async def get_product(
        self, product_id: str, enterprise_id: str | None = None
    ) -> Product | None: ...

    async def list_products(
        self,
        enterprise_id: str,
        search: str | None = None,
        category_id: str | None = None,
        allergen_id: str | None = None,
    ) -> list[Product]: ...

    async def update_product(self, product_id: str, changes: ProductChanges) -> Product: ...

    async def delete_product(self, product_id: str) -> None: ...

    # Categories
    async def create_category(self, name: str, description: str | None = None) -> Category: ...

    async def get_category(self, category_id: str) -> Category | None: ...

    async def list_categories_with_counts(self) -> list[tuple[Category, int]]: ...

    async def update_category(
        self, category_id: str, name: str | None = None, description: str | None = None
    ) -> Category: ...

    async def delete_category(self, category_id: str) -> None: ...

    # Allergens
    async def create_allergen(
        self, name: str, code: str | None = None, description: str | None = None
    ) -> Allergen: ...

    async def get_allergen(self, allergen_id: str) -> Allergen | None: ...

    async def list_allergens(self) -> list[Allergen]: ...

    async def update_allergen(
        self,
        allergen_id: str,
        name: str | None = None,
        code: str | None = None,
        description: str | None = None,
    ) -> Allergen: ...

    async def delete_allergen(self, allergen_id: str) -> None: ...


class Classifier(Protocol):
    """Text classifier for allergen and category suggestions.

    Implementations never raise: when unconfigured, unreachable, slow or
    given empty input they return the low-confidence empty result.
    """

    async def identify_allergens(self, text: str) -> AllergenIdentification: ...

    async def suggest_category(
        self, product_name: str, candidates: Sequence[str]
    ) -> CategorySuggestion: ...
