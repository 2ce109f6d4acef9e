"""Product resolution ("find or create") service.

Used by the document-analysis flow: upstream sends whatever it could
read off an invoice line (name, maybe an EAN, maybe a category) and
expects a catalog product back, created on the fly if needed.

Resolution order, first match wins:

1. EAN within the enterprise.
2. Exact name within the enterprise, case-insensitive.
3. Auto-create, enriched with classifier-suggested allergens and
   category. Classifier failures never block creation.
"""

import asyncio
from typing import Any

import structlog

from product_catalog.application.allergen_mapper import AllergenMapper, normalize_codes
from product_catalog.application.category_resolver import CategoryResolver
from product_catalog.application.formatting import format_allergen, format_product
from product_catalog.domain.entities import NewProduct, normalize_ean
from product_catalog.domain.ports import CatalogStore, Classifier
from product_catalog.infrastructure.config import settings

logger = structlog.get_logger()


class ProductResolutionService:
    """Finds a product by EAN or name, creating it when absent.

    Example usage:
        service = ProductResolutionService(store, classifier)
        product = await service.find_or_create(
            name="Leche entera",
            ean_code="8410000000000",
            enterprise_id="ent-1",
        )
    """

    def __init__(
        self,
        store: CatalogStore,
        classifier: Classifier,
        default_unit: str | None = None,
        fallback_category_name: str | None = None,
        request_id: str | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            store: Catalog store.
            classifier: Allergen/category classifier.
            default_unit: Unit for auto-created products.
            fallback_category_name: Category used when no hint resolves.
            request_id: Request ID for log correlation.
        """
        self.store = store
        self.classifier = classifier
        self.default_unit = default_unit or settings.default_unit
        self.request_id = request_id
        self.allergen_mapper = AllergenMapper(store)
        self.category_resolver = CategoryResolver(
            store, fallback_category_name or settings.fallback_category_name
        )

    async def find_or_create(
        self,
        name: str,
        enterprise_id: str,
        ean_code: str | None = None,
        category_hint: str | None = None,
    ) -> dict[str, Any]:
        """Resolve a product, creating it if no match exists.

        Args:
            name: Product name as read upstream.
            enterprise_id: Owning enterprise.
            ean_code: Optional EAN barcode.
            category_hint: Optional free-text category name.

        Returns:
            Formatted product.

        Raises:
            CatalogError: On store failures (conflict, not found, internal).
        """
        ean_code = normalize_ean(ean_code)

        if ean_code:
            product = await self.store.find_product_by_ean(ean_code, enterprise_id)
            if product:
                logger.info(
                    "Product found by EAN",
                    ean_code=ean_code,
                    product_id=product.id,
                    request_id=self.request_id,
                )
                return format_product(product)

        product = await self.store.find_product_by_name_ci(name, enterprise_id)
        if product:
            logger.info(
                "Product found by name",
                name=name,
                product_id=product.id,
                request_id=self.request_id,
            )
            return format_product(product)

        logger.info(
            "Creating new product",
            name=name,
            enterprise_id=enterprise_id,
            request_id=self.request_id,
        )

        results = await asyncio.gather(
            self._detect_allergen_ids(name),
            self._suggest_category_hint(name, category_hint),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                logger.warning(
                    "Product enrichment failed",
                    name=name,
                    error=str(result),
                    request_id=self.request_id,
                )
                raise result
        allergen_ids, resolved_hint = results
        category_id = await self.category_resolver.resolve(resolved_hint)

        product = await self.store.create_product(
            NewProduct(
                name=name,
                enterprise_id=enterprise_id,
                category_id=category_id,
                unit=self.default_unit,
                ean_code=ean_code,
                allergen_ids=sorted(allergen_ids),
            )
        )

        logger.info(
            "Product created",
            product_id=product.id,
            allergen_count=len(allergen_ids),
            category_id=category_id,
            request_id=self.request_id,
        )
        return format_product(product)

    async def _detect_allergen_ids(self, name: str) -> set[str]:
        """Classifier-detected allergen ids; empty when the classifier fails."""
        try:
            identification = await self.classifier.identify_allergens(name)
        except Exception as e:
            logger.warning(
                "Allergen detection failed, continuing without allergens",
                name=name,
                error=str(e),
                request_id=self.request_id,
            )
            return set()

        if not identification.codes:
            return set()

        allergen_ids = await self.allergen_mapper.map_codes_to_ids(identification.codes)
        logger.info(
            "Auto-detected allergens",
            codes=list(identification.codes),
            confidence=identification.confidence.value,
            reasoning=identification.reasoning,
            request_id=self.request_id,
        )
        return allergen_ids

    async def _suggest_category_hint(self, name: str, category_hint: str | None) -> str | None:
        """Category hint, replaced by the classifier's pick when it names an existing category."""
        category_names = await self.store.list_category_names()
        if not category_names:
            return category_hint

        try:
            suggestion = await self.classifier.suggest_category(name, category_names)
        except Exception as e:
            logger.warning(
                "Category suggestion failed, using caller hint",
                name=name,
                error=str(e),
                request_id=self.request_id,
            )
            return category_hint

        if suggestion.category and suggestion.category in category_names:
            logger.info(
                "Auto-suggested category",
                category=suggestion.category,
                confidence=suggestion.confidence.value,
                reasoning=suggestion.reasoning,
                request_id=self.request_id,
            )
            return suggestion.category
        return category_hint

    async def identify_allergens_for_product(self, description: str) -> dict[str, Any]:
        """Run allergen identification and attach the matching allergen records.

        Args:
            description: Product description text.

        Returns:
            Detected codes, the known allergen records, confidence and reasoning.
        """
        identification = await self.classifier.identify_allergens(description)
        known = normalize_codes(identification.codes)
        allergens = await self.store.find_allergens_by_codes(known) if known else []

        return {
            "allergenCodes": list(identification.codes),
            "allergens": [format_allergen(a) for a in allergens],
            "confidence": identification.confidence.value,
            "reasoning": identification.reasoning,
        }
