"""Mapping of allergen codes to allergen record ids."""

from collections.abc import Iterable

import structlog

from product_catalog.domain.entities import ALLERGEN_CODES
from product_catalog.domain.ports import CatalogStore

logger = structlog.get_logger()


def normalize_codes(codes: Iterable[str]) -> list[str]:
    """Upper-case, de-duplicate and keep only the 14 regulatory codes."""
    normalized = (c.strip().upper() for c in codes if c and c.strip())
    return [c for c in dict.fromkeys(normalized) if c in ALLERGEN_CODES]


class AllergenMapper:
    """Turns allergen codes into ids of allergen records in the store.

    Unknown codes are dropped silently: classifiers produce codes outside
    the regulatory set, and reference rows may be missing.
    """

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    async def map_codes_to_ids(self, codes: Iterable[str]) -> set[str]:
        """Look up allergen ids for ``codes``.

        Args:
            codes: Allergen codes, possibly including unknown values.

        Returns:
            Ids of the matching allergen records; empty without touching
            the store when no known code is given.
        """
        known = normalize_codes(codes)
        if not known:
            return set()

        allergens = await self.store.find_allergens_by_codes(known)
        found = {a.code for a in allergens}
        dropped = [c for c in known if c not in found]
        if dropped:
            logger.debug("Allergen codes without reference rows", codes=dropped)
        return {a.id for a in allergens}
