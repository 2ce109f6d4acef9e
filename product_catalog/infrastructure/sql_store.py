"""SQL implementation of the catalog store.

Each operation runs in its own session and transaction; SQLAlchemy
errors are translated with ``map_store_error`` before leaving this module.
"""

from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

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
    CatalogError,
    ConflictError,
    NotFoundError,
    StockUpdateAbortedError,
    StoreUnavailableError,
)
from product_catalog.infrastructure.models import AllergenModel, CategoryModel, ProductModel
from product_catalog.infrastructure.store_errors import map_store_error

_PRODUCT_LOADS = (
    selectinload(ProductModel.category),
    selectinload(ProductModel.allergens),
)


def _valid_id(value: str | None) -> bool:
    """Whether ``value`` can be bound to a UUID primary key column."""
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True


class SqlCatalogStore:
    """Catalog store backed by SQLAlchemy async sessions.

    Example usage:
        store = SqlCatalogStore(get_session_factory())
        product = await store.find_product_by_ean("8410000000000", "ent-1")
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize store with a session factory.

        Args:
            session_factory: Factory producing AsyncSession instances.
        """
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        """Open a session inside a transaction, translating store errors."""
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except CatalogError:
            raise
        except SQLAlchemyError as exc:
            raise map_store_error(exc) from exc
        except OSError as exc:
            raise StoreUnavailableError(
                "Catalog store unavailable", details={"reason": str(exc)}
            ) from exc

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _load_product(
        self, session: AsyncSession, product_id: str
    ) -> ProductModel | None:
        if not _valid_id(product_id):
            return None
        query = (
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .options(*_PRODUCT_LOADS)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(query)
        return result.scalar_one_or_none()

    async def _first_product(self, session: AsyncSession, *conditions) -> Product | None:
        query = (
            select(ProductModel)
            .where(and_(*conditions))
            .options(*_PRODUCT_LOADS)
            .order_by(ProductModel.created_at)
            .limit(1)
        )
        result = await session.execute(query)
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def _allergens_by_ids(
        self, session: AsyncSession, allergen_ids: Sequence[str]
    ) -> list[AllergenModel]:
        if not allergen_ids:
            return []
        wanted = set(allergen_ids)
        invalid = sorted(aid for aid in wanted if not _valid_id(aid))
        if invalid:
            raise NotFoundError("Allergen", invalid[0])
        result = await session.execute(
            select(AllergenModel).where(AllergenModel.id.in_(wanted))
        )
        allergens = list(result.scalars().all())
        missing = wanted - {a.id for a in allergens}
        if missing:
            raise NotFoundError("Allergen", sorted(missing)[0])
        return allergens

    # ------------------------------------------------------------------
    # Resolution lookups
    # ------------------------------------------------------------------

    async def find_product_by_ean(self, ean_code: str, enterprise_id: str) -> Product | None:
        async with self._transaction() as session:
            return await self._first_product(
                session,
                ProductModel.ean_code == ean_code,
                ProductModel.enterprise_id == enterprise_id,
            )

    async def find_product_by_name_ci(self, name: str, enterprise_id: str) -> Product | None:
        async with self._transaction() as session:
            return await self._first_product(
                session,
                func.lower(ProductModel.name) == name.lower(),
                ProductModel.enterprise_id == enterprise_id,
            )

    async def find_category_by_name_contains_ci(self, text: str) -> Category | None:
        async with self._transaction() as session:
            result = await session.execute(
                select(CategoryModel)
                .where(CategoryModel.name.icontains(text, autoescape=True))
                .order_by(CategoryModel.name)
                .limit(1)
            )
            model = result.scalar_one_or_none()
            return model.to_entity() if model else None

    async def find_category_by_name_equals_ci(self, text: str) -> Category | None:
        async with self._transaction() as session:
            result = await session.execute(
                select(CategoryModel)
                .where(func.lower(CategoryModel.name) == text.lower())
                .limit(1)
            )
            model = result.scalar_one_or_none()
            return model.to_entity() if model else None

    async def list_category_names(self) -> list[str]:
        async with self._transaction() as session:
            result = await session.execute(
                select(CategoryModel.name).order_by(CategoryModel.name)
            )
            return list(result.scalars().all())

    async def find_allergens_by_codes(self, codes: Iterable[str]) -> list[Allergen]:
        wanted = list(codes)
        if not wanted:
            return []
        async with self._transaction() as session:
            result = await session.execute(
                select(AllergenModel)
                .where(AllergenModel.code.in_(wanted))
                .order_by(AllergenModel.name)
            )
            return [a.to_entity() for a in result.scalars().all()]

    # ------------------------------------------------------------------
    # Stock
    # ------------------------------------------------------------------

    async def find_products_by_ids(self, product_ids: Iterable[str]) -> list[Product]:
        wanted = [pid for pid in dict.fromkeys(product_ids) if _valid_id(pid)]
        if not wanted:
            return []
        async with self._transaction() as session:
            result = await session.execute(
                select(ProductModel)
                .where(ProductModel.id.in_(wanted))
                .options(*_PRODUCT_LOADS)
            )
            return [p.to_entity() for p in result.scalars().all()]

    async def update_products_stock_atomically(
        self, levels: Sequence[StockLevel]
    ) -> list[Product]:
        """Write every stock level in one transaction, or none of them.

        Rows are locked for the duration of the transaction. If any
        product is gone by the time the lock is taken, the whole batch
        is rolled back.

        Args:
            levels: New absolute stock per product.

        Returns:
            Updated products in the order of ``levels``.

        Raises:
            StockUpdateAbortedError: If a product vanished mid-batch.
        """
        if not levels:
            return []

        ids = list(dict.fromkeys(level.product_id for level in levels))
        async with self._transaction() as session:
            result = await session.execute(
                select(ProductModel)
                .where(ProductModel.id.in_(ids))
                .options(*_PRODUCT_LOADS)
                .with_for_update()
            )
            rows = {p.id: p for p in result.scalars().all()}

            missing = [pid for pid in ids if pid not in rows]
            if missing:
                raise StockUpdateAbortedError(missing, "product removed during update")

            now = datetime.now(timezone.utc)
            for level in levels:
                model = rows[level.product_id]
                model.stock = level.new_stock
                model.updated_at = now

            await session.flush()
            return [rows[level.product_id].to_entity() for level in levels]

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def create_product(self, data: NewProduct) -> Product:
        if not _valid_id(data.category_id):
            raise ConflictError("products_category_id_fkey")
        async with self._transaction() as session:
            model = ProductModel(
                name=data.name,
                ean_code=normalize_ean(data.ean_code),
                description=data.description,
                category_id=data.category_id,
                enterprise_id=data.enterprise_id,
                unit=data.unit,
                stock=data.stock,
            )
            model.allergens = await self._allergens_by_ids(session, data.allergen_ids)
            session.add(model)
            await session.flush()

            loaded = await self._load_product(session, model.id)
            return loaded.to_entity()

    async def get_product(
        self, product_id: str, enterprise_id: str | None = None
    ) -> Product | None:
        if not _valid_id(product_id):
            return None
        conditions = [ProductModel.id == product_id]
        if enterprise_id:
            conditions.append(ProductModel.enterprise_id == enterprise_id)
        async with self._transaction() as session:
            return await self._first_product(session, *conditions)

    async def list_products(
        self,
        enterprise_id: str,
        search: str | None = None,
        category_id: str | None = None,
        allergen_id: str | None = None,
    ) -> list[Product]:
        if (category_id and not _valid_id(category_id)) or (
            allergen_id and not _valid_id(allergen_id)
        ):
            return []

        conditions = [ProductModel.enterprise_id == enterprise_id]

        if search:
            conditions.append(
                or_(
                    ProductModel.name.icontains(search, autoescape=True),
                    ProductModel.description.icontains(search, autoescape=True),
                    ProductModel.ean_code.icontains(search, autoescape=True),
                )
            )

        if category_id:
            conditions.append(ProductModel.category_id == category_id)

        if allergen_id:
            conditions.append(ProductModel.allergens.any(AllergenModel.id == allergen_id))

        async with self._transaction() as session:
            result = await session.execute(
                select(ProductModel)
                .where(and_(*conditions))
                .options(*_PRODUCT_LOADS)
                .order_by(ProductModel.name)
            )
            return [p.to_entity() for p in result.scalars().all()]

    async def update_product(self, product_id: str, changes: ProductChanges) -> Product:
        if changes.category_id is not None and not _valid_id(changes.category_id):
            raise ConflictError("products_category_id_fkey")
        async with self._transaction() as session:
            model = await self._load_product(session, product_id)
            if model is None:
                raise NotFoundError("Product", product_id)

            for field_name in ("name", "description", "category_id", "unit", "stock"):
                value = getattr(changes, field_name)
                if value is not None:
                    setattr(model, field_name, value)
            if changes.ean_code is not None:
                model.ean_code = normalize_ean(changes.ean_code)

            if changes.allergen_ids is not None:
                model.allergens = await self._allergens_by_ids(session, changes.allergen_ids)

            model.updated_at = datetime.now(timezone.utc)
            await session.flush()

            loaded = await self._load_product(session, product_id)
            return loaded.to_entity()

    async def delete_product(self, product_id: str) -> None:
        if not _valid_id(product_id):
            raise NotFoundError("Product", product_id)
        async with self._transaction() as session:
            model = await session.get(ProductModel, product_id)
            if model is None:
                raise NotFoundError("Product", product_id)
            await session.delete(model)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def create_category(self, name: str, description: str | None = None) -> Category:
        async with self._transaction() as session:
            model = CategoryModel(name=name, description=description)
            session.add(model)
            await session.flush()
            return model.to_entity()

    async def get_category(self, category_id: str) -> Category | None:
        if not _valid_id(category_id):
            return None
        async with self._transaction() as session:
            model = await session.get(CategoryModel, category_id)
            return model.to_entity() if model else None

    async def list_categories_with_counts(self) -> list[tuple[Category, int]]:
        async with self._transaction() as session:
            result = await session.execute(
                select(CategoryModel, func.count(ProductModel.id))
                .outerjoin(ProductModel, ProductModel.category_id == CategoryModel.id)
                .group_by(CategoryModel.id)
                .order_by(CategoryModel.name)
            )
            return [(category.to_entity(), count) for category, count in result.all()]

    async def update_category(
        self, category_id: str, name: str | None = None, description: str | None = None
    ) -> Category:
        if not _valid_id(category_id):
            raise NotFoundError("Category", category_id)
        async with self._transaction() as session:
            model = await session.get(CategoryModel, category_id)
            if model is None:
                raise NotFoundError("Category", category_id)
            if name is not None:
                model.name = name
            if description is not None:
                model.description = description
            await session.flush()
            return model.to_entity()

    async def delete_category(self, category_id: str) -> None:
        if not _valid_id(category_id):
            raise NotFoundError("Category", category_id)
        async with self._transaction() as session:
            model = await session.get(CategoryModel, category_id)
            if model is None:
                raise NotFoundError("Category", category_id)
            await session.delete(model)

    # ------------------------------------------------------------------
    # Allergens
    # ------------------------------------------------------------------

    async def create_allergen(
        self, name: str, code: str | None = None, description: str | None = None
    ) -> Allergen:
        async with self._transaction() as session:
            model = AllergenModel(name=name, code=code, description=description)
            session.add(model)
            await session.flush()
            return model.to_entity()

    async def get_allergen(self, allergen_id: str) -> Allergen | None:
        if not _valid_id(allergen_id):
            return None
        async with self._transaction() as session:
            model = await session.get(AllergenModel, allergen_id)
            return model.to_entity() if model else None

    async def list_allergens(self) -> list[Allergen]:
        async with self._transaction() as session:
            result = await session.execute(select(AllergenModel).order_by(AllergenModel.name))
            return [a.to_entity() for a in result.scalars().all()]

    async def update_allergen(
        self,
        allergen_id: str,
        name: str | None = None,
        code: str | None = None,
        description: str | None = None,
    ) -> Allergen:
        if not _valid_id(allergen_id):
            raise NotFoundError("Allergen", allergen_id)
        async with self._transaction() as session:
            model = await session.get(AllergenModel, allergen_id)
            if model is None:
                raise NotFoundError("Allergen", allergen_id)
            if name is not None:
                model.name = name
            if code is not None:
                model.code = code
            if description is not None:
                model.description = description
            await session.flush()
            return model.to_entity()

    async def delete_allergen(self, allergen_id: str) -> None:
        if not _valid_id(allergen_id):
            raise NotFoundError("Allergen", allergen_id)
        async with self._transaction() as session:
            model = await session.get(AllergenModel, allergen_id)
            if model is None:
                raise NotFoundError("Allergen", allergen_id)
            await session.delete(model)
