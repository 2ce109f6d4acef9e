"""CRUD services for products, categories and allergens.

Thin wrappers over the catalog store that format results and turn
missing rows into ``NotFoundError``.
"""

from typing import Any

import structlog

from product_catalog.application.formatting import (
    format_allergen,
    format_category,
    format_product,
)
from product_catalog.domain.entities import NewProduct, ProductChanges
from product_catalog.domain.exceptions import NotFoundError
from product_catalog.domain.ports import CatalogStore

logger = structlog.get_logger()


class ProductService:
    """Product CRUD."""

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    async def create(self, data: NewProduct) -> dict[str, Any]:
        product = await self.store.create_product(data)
        logger.info("Product created", product_id=product.id, enterprise_id=product.enterprise_id)
        return format_product(product)

    async def find_all(
        self,
        enterprise_id: str,
        search: str | None = None,
        category_id: str | None = None,
        allergen_id: str | None = None,
    ) -> list[dict[str, Any]]:
        """List an enterprise's products ordered by name.

        Args:
            enterprise_id: Owning enterprise.
            search: Case-insensitive match on name, description or EAN.
            category_id: Restrict to one category.
            allergen_id: Restrict to products carrying this allergen.

        Returns:
            Formatted products.
        """
        products = await self.store.list_products(
            enterprise_id,
            search=search,
            category_id=category_id,
            allergen_id=allergen_id,
        )
        return [format_product(p) for p in products]

    async def find_one(self, product_id: str, enterprise_id: str | None = None) -> dict[str, Any]:
        product = await self.store.get_product(product_id, enterprise_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        return format_product(product)

    async def update(self, product_id: str, changes: ProductChanges) -> dict[str, Any]:
        """Update provided fields; a given allergen list replaces the current set."""
        product = await self.store.update_product(product_id, changes)
        logger.info("Product updated", product_id=product_id)
        return format_product(product)

    async def remove(self, product_id: str) -> dict[str, str]:
        await self.store.delete_product(product_id)
        logger.info("Product deleted", product_id=product_id)
        return {"message": "Product deleted successfully"}


class CategoryService:
    """Category CRUD."""

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    async def create(self, name: str, description: str | None = None) -> dict[str, Any]:
        category = await self.store.create_category(name, description)
        logger.info("Category created", category_id=category.id, name=category.name)
        return format_category(category)

    async def find_all(self) -> list[dict[str, Any]]:
        """Categories ordered by name, each with its product count."""
        rows = await self.store.list_categories_with_counts()
        return [
            {**format_category(category), "productsCount": count}
            for category, count in rows
        ]

    async def find_one(self, category_id: str) -> dict[str, Any]:
        category = await self.store.get_category(category_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        return format_category(category)

    async def update(
        self, category_id: str, name: str | None = None, description: str | None = None
    ) -> dict[str, Any]:
        category = await self.store.update_category(category_id, name, description)
        return format_category(category)

    async def remove(self, category_id: str) -> dict[str, str]:
        await self.store.delete_category(category_id)
        logger.info("Category deleted", category_id=category_id)
        return {"message": "Category deleted successfully"}


class AllergenService:
    """Allergen CRUD."""

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    async def create(
        self, name: str, code: str | None = None, description: str | None = None
    ) -> dict[str, Any]:
        allergen = await self.store.create_allergen(name, code, description)
        logger.info("Allergen created", allergen_id=allergen.id, code=allergen.code)
        return format_allergen(allergen)

    async def find_all(self) -> list[dict[str, Any]]:
        return [format_allergen(a) for a in await self.store.list_allergens()]

    async def find_one(self, allergen_id: str) -> dict[str, Any]:
        allergen = await self.store.get_allergen(allergen_id)
        if allergen is None:
            raise NotFoundError("Allergen", allergen_id)
        return format_allergen(allergen)

    async def update(
        self,
        allergen_id: str,
        name: str | None = None,
        code: str | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        allergen = await self.store.update_allergen(allergen_id, name, code, description)
        return format_allergen(allergen)

    async def remove(self, allergen_id: str) -> dict[str, str]:
        await self.store.delete_allergen(allergen_id)
        logger.info("Allergen deleted", allergen_id=allergen_id)
        return {"message": "Allergen deleted successfully"}
