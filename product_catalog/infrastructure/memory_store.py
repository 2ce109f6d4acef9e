"""In-memory implementation of the catalog store.

Mirrors the SQL store's semantics, including the unique constraints
(category name, allergen code, EAN per enterprise) and the
all-or-nothing stock update. Used by the ``memory`` store backend and by
the test suite.
"""

import asyncio
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import datetime, timezone
from uuid import uuid4

from product_catalog.domain.entities import (
    Allergen,
    Category,
    NewProduct,
    Product,
    ProductChanges,
    StockLevel,
    normalize_ean,
)
from product_catalog.domain.exceptions import (
    ConflictError,
    NotFoundError,
    StockUpdateAbortedError,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryCatalogStore:
    """Catalog store keeping all rows in dictionaries.

    Products store allergen ids only; categories and allergens are
    joined in on read, the same way the SQL store loads relationships.
    """

    def __init__(self) -> None:
        self._products: dict[str, Product] = {}
        self._product_allergens: dict[str, list[str]] = {}
        self._categories: dict[str, Category] = {}
        self._allergens: dict[str, Allergen] = {}
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _view(self, product: Product) -> Product:
        """Copy of a stored product with relationships attached."""
        category = self._categories.get(product.category_id)
        allergens = [
            replace(self._allergens[aid])
            for aid in self._product_allergens.get(product.id, [])
            if aid in self._allergens
        ]
        allergens.sort(key=lambda a: a.name)
        return replace(
            product,
            category=replace(category) if category else None,
            allergens=allergens,
        )

    def _check_ean_unique(
        self, ean_code: str | None, enterprise_id: str, exclude_id: str | None = None
    ) -> None:
        if ean_code is None:
            return
        for product in self._products.values():
            if (
                product.id != exclude_id
                and product.enterprise_id == enterprise_id
                and product.ean_code == ean_code
            ):
                raise ConflictError("uq_products_enterprise_ean")

    def _check_category_name_unique(self, name: str, exclude_id: str | None = None) -> None:
        for category in self._categories.values():
            if category.id != exclude_id and category.name == name:
                raise ConflictError("categories_name_key")

    def _check_allergen_code_unique(self, code: str | None, exclude_id: str | None = None) -> None:
        if not code:
            return
        for allergen in self._allergens.values():
            if allergen.id != exclude_id and allergen.code == code:
                raise ConflictError("allergens_code_key")

    def _require_allergens(self, allergen_ids: Sequence[str]) -> list[str]:
        unique_ids = list(dict.fromkeys(allergen_ids))
        for aid in unique_ids:
            if aid not in self._allergens:
                raise NotFoundError("Allergen", aid)
        return unique_ids

    def _require_category(self, category_id: str) -> None:
        if category_id not in self._categories:
            raise ConflictError("products_category_id_fkey")

    # ------------------------------------------------------------------
    # Resolution lookups
    # ------------------------------------------------------------------

    async def find_product_by_ean(self, ean_code: str, enterprise_id: str) -> Product | None:
        for product in self._products.values():
            if product.enterprise_id == enterprise_id and product.ean_code == ean_code:
                return self._view(product)
        return None

    async def find_product_by_name_ci(self, name: str, enterprise_id: str) -> Product | None:
        wanted = name.lower()
        for product in self._products.values():
            if product.enterprise_id == enterprise_id and product.name.lower() == wanted:
                return self._view(product)
        return None

    async def find_category_by_name_contains_ci(self, text: str) -> Category | None:
        wanted = text.lower()
        matches = sorted(
            (c for c in self._categories.values() if wanted in c.name.lower()),
            key=lambda c: c.name,
        )
        return replace(matches[0]) if matches else None

    async def find_category_by_name_equals_ci(self, text: str) -> Category | None:
        wanted = text.lower()
        for category in self._categories.values():
            if category.name.lower() == wanted:
                return replace(category)
        return None

    async def list_category_names(self) -> list[str]:
        return sorted(c.name for c in self._categories.values())

    async def find_allergens_by_codes(self, codes: Iterable[str]) -> list[Allergen]:
        wanted = set(codes)
        found = [replace(a) for a in self._allergens.values() if a.code in wanted]
        return sorted(found, key=lambda a: a.name)

    # ------------------------------------------------------------------
    # Stock
    # ------------------------------------------------------------------

    async def find_products_by_ids(self, product_ids: Iterable[str]) -> list[Product]:
        return [
            self._view(self._products[pid])
            for pid in dict.fromkeys(product_ids)
            if pid in self._products
        ]

    def _apply_stock(self, product: Product, level: StockLevel, now: datetime) -> Product:
        """Staged copy of ``product`` carrying the new stock level."""
        return replace(product, stock=level.new_stock, updated_at=now)

    async def update_products_stock_atomically(
        self, levels: Sequence[StockLevel]
    ) -> list[Product]:
        async with self._lock:
            missing = [lv.product_id for lv in levels if lv.product_id not in self._products]
            if missing:
                raise StockUpdateAbortedError(missing, "product removed during update")

            # Stage every write before touching the table
            now = _now()
            staged: dict[str, Product] = {}
            for level in levels:
                current = staged.get(level.product_id, self._products[level.product_id])
                staged[level.product_id] = self._apply_stock(current, level, now)

            self._products.update(staged)
            return [self._view(self._products[lv.product_id]) for lv in levels]

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def create_product(self, data: NewProduct) -> Product:
        self._require_category(data.category_id)
        ean_code = normalize_ean(data.ean_code)
        self._check_ean_unique(ean_code, data.enterprise_id)
        allergen_ids = self._require_allergens(data.allergen_ids)

        now = _now()
        product = Product(
            id=str(uuid4()),
            name=data.name,
            enterprise_id=data.enterprise_id,
            category_id=data.category_id,
            unit=data.unit,
            stock=data.stock,
            ean_code=ean_code,
            description=data.description,
            created_at=now,
            updated_at=now,
        )
        self._products[product.id] = product
        self._product_allergens[product.id] = allergen_ids
        return self._view(product)

    async def get_product(
        self, product_id: str, enterprise_id: str | None = None
    ) -> Product | None:
        product = self._products.get(product_id)
        if product is None:
            return None
        if enterprise_id and product.enterprise_id != enterprise_id:
            return None
        return self._view(product)

    async def list_products(
        self,
        enterprise_id: str,
        search: str | None = None,
        category_id: str | None = None,
        allergen_id: str | None = None,
    ) -> list[Product]:
        needle = search.lower() if search else None
        results = []
        for product in self._products.values():
            if product.enterprise_id != enterprise_id:
                continue
            if category_id and product.category_id != category_id:
                continue
            if allergen_id and allergen_id not in self._product_allergens.get(product.id, []):
                continue
            if needle:
                haystacks = (product.name, product.description or "", product.ean_code or "")
                if not any(needle in h.lower() for h in haystacks):
                    continue
            results.append(self._view(product))
        return sorted(results, key=lambda p: p.name)

    async def update_product(self, product_id: str, changes: ProductChanges) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError("Product", product_id)

        updates = {
            name: getattr(changes, name)
            for name in ("name", "description", "category_id", "unit", "stock")
            if getattr(changes, name) is not None
        }
        if changes.ean_code is not None:
            updates["ean_code"] = normalize_ean(changes.ean_code)
        if "category_id" in updates:
            self._require_category(updates["category_id"])
        self._check_ean_unique(
            updates.get("ean_code", product.ean_code), product.enterprise_id, exclude_id=product_id
        )
        allergen_ids = (
            self._require_allergens(changes.allergen_ids)
            if changes.allergen_ids is not None
            else None
        )

        updated = replace(product, updated_at=_now(), **updates)
        self._products[product_id] = updated
        if allergen_ids is not None:
            self._product_allergens[product_id] = allergen_ids
        return self._view(updated)

    async def delete_product(self, product_id: str) -> None:
        if self._products.pop(product_id, None) is None:
            raise NotFoundError("Product", product_id)
        self._product_allergens.pop(product_id, None)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def create_category(self, name: str, description: str | None = None) -> Category:
        self._check_category_name_unique(name)
        category = Category(id=str(uuid4()), name=name, description=description)
        self._categories[category.id] = category
        return replace(category)

    async def get_category(self, category_id: str) -> Category | None:
        category = self._categories.get(category_id)
        return replace(category) if category else None

    async def list_categories_with_counts(self) -> list[tuple[Category, int]]:
        counts: dict[str, int] = {}
        for product in self._products.values():
            counts[product.category_id] = counts.get(product.category_id, 0) + 1
        return [
            (replace(c), counts.get(c.id, 0))
            for c in sorted(self._categories.values(), key=lambda c: c.name)
        ]

    async def update_category(
        self, category_id: str, name: str | None = None, description: str | None = None
    ) -> Category:
        category = self._categories.get(category_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        if name is not None:
            self._check_category_name_unique(name, exclude_id=category_id)
        updated = replace(
            category,
            name=name if name is not None else category.name,
            description=description if description is not None else category.description,
        )
        self._categories[category_id] = updated
        return replace(updated)

    async def delete_category(self, category_id: str) -> None:
        if category_id not in self._categories:
            raise NotFoundError("Category", category_id)
        if any(p.category_id == category_id for p in self._products.values()):
            raise ConflictError("products_category_id_fkey")
        del self._categories[category_id]

    # ------------------------------------------------------------------
    # Allergens
    # ------------------------------------------------------------------

    async def create_allergen(
        self, name: str, code: str | None = None, description: str | None = None
    ) -> Allergen:
        self._check_allergen_code_unique(code)
        allergen = Allergen(id=str(uuid4()), name=name, code=code or "", description=description)
        self._allergens[allergen.id] = allergen
        return replace(allergen)

    async def get_allergen(self, allergen_id: str) -> Allergen | None:
        allergen = self._allergens.get(allergen_id)
        return replace(allergen) if allergen else None

    async def list_allergens(self) -> list[Allergen]:
        return [replace(a) for a in sorted(self._allergens.values(), key=lambda a: a.name)]

    async def update_allergen(
        self,
        allergen_id: str,
        name: str | None = None,
        code: str | None = None,
        description: str | None = None,
    ) -> Allergen:
        allergen = self._allergens.get(allergen_id)
        if allergen is None:
            raise NotFoundError("Allergen", allergen_id)
        if code is not None:
            self._check_allergen_code_unique(code, exclude_id=allergen_id)
        updated = replace(
            allergen,
            name=name if name is not None else allergen.name,
            code=code if code is not None else allergen.code,
            description=description if description is not None else allergen.description,
        )
        self._allergens[allergen_id] = updated
        return replace(updated)

    async def delete_allergen(self, allergen_id: str) -> None:
        if self._allergens.pop(allergen_id, None) is None:
            raise NotFoundError("Allergen", allergen_id)
        for allergen_ids in self._product_allergens.values():
            if allergen_id in allergen_ids:
                allergen_ids.remove(allergen_id)
