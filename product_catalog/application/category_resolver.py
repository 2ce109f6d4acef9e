"""Resolution of free-text category hints to category ids."""

import structlog

from product_catalog.domain.exceptions import ConflictError
from product_catalog.domain.ports import CatalogStore

logger = structlog.get_logger()

AUTO_CREATED_DESCRIPTION = "Auto-created from the import flow"
FALLBACK_DESCRIPTION = "Default category for unclassified products"


class CategoryResolver:
    """Maps a category hint to an existing or newly created category.

    A non-blank hint matches the first category whose name contains it
    (case-insensitive) or creates a category with that name. A blank or
    missing hint resolves to the fallback category, created on first use.

    At most one category row is created per call. When a concurrent
    caller wins the unique-name race, the resolver re-reads and returns
    the winner's id.
    """

    def __init__(self, store: CatalogStore, fallback_name: str = "Otros") -> None:
        self.store = store
        self.fallback_name = fallback_name

    async def resolve(self, hint: str | None) -> str:
        """Resolve a category hint.

        Args:
            hint: Free-text category name, possibly blank.

        Returns:
            Category id.

        Raises:
            ConflictError: If creation collided and the winner cannot be read back.
        """
        trimmed = hint.strip() if hint else ""

        if trimmed:
            existing = await self.store.find_category_by_name_contains_ci(trimmed)
            if existing:
                return existing.id
            return await self._create(trimmed, AUTO_CREATED_DESCRIPTION)

        fallback = await self.store.find_category_by_name_equals_ci(self.fallback_name)
        if fallback:
            return fallback.id
        return await self._create(self.fallback_name, FALLBACK_DESCRIPTION)

    async def _create(self, name: str, description: str) -> str:
        try:
            category = await self.store.create_category(name, description)
        except ConflictError:
            winner = await self.store.find_category_by_name_equals_ci(name)
            if winner is None:
                raise
            logger.info("Category created concurrently, reusing", name=name, category_id=winner.id)
            return winner.id

        logger.info("Auto-created category", name=category.name, category_id=category.id)
        return category.id
