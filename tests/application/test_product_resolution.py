"""Tests for the find-or-create product resolution service."""

import asyncio
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from product_catalog.application.product_resolution import ProductResolutionService
from product_catalog.domain.entities import (
    CategorySuggestion,
    Confidence,
    NewProduct,
)
from product_catalog.domain.exceptions import StoreUnavailableError
from product_catalog.infrastructure.memory_store import InMemoryCatalogStore
from product_catalog.infrastructure.reference_data import seed_reference_data

ENTERPRISE_ID = "ent-1"


class CategoriesUnavailableStore(InMemoryCatalogStore):
    """Store that fails when listing category names."""

    async def list_category_names(self) -> list[str]:
        raise StoreUnavailableError("Catalog store unavailable")


async def _category_id(store, name: str) -> str:
    category = await store.find_category_by_name_equals_ci(name)
    assert category is not None
    return category.id


async def _add_product(store, name: str, ean_code: str | None = None, enterprise_id: str = ENTERPRISE_ID):
    return await store.create_product(
        NewProduct(
            name=name,
            enterprise_id=enterprise_id,
            category_id=await _category_id(store, "Carnes"),
            unit="Kg",
            stock=Decimal("3"),
            ean_code=ean_code,
        )
    )


class TestLookup:
    """Tests for the EAN and name lookup steps."""

    @pytest.mark.asyncio
    async def test_ean_hit_returns_existing_without_create(self, store, classifier) -> None:
        """Should return the EAN match unchanged and never call the classifier."""
        existing = await _add_product(store, "Pollo entero", ean_code="5000")
        service = ProductResolutionService(store, classifier)

        result = await service.find_or_create(name="X", ean_code="5000", enterprise_id=ENTERPRISE_ID)

        assert result["id"] == existing.id
        assert result["name"] == "Pollo entero"
        assert classifier.allergen_calls == []
        assert len(await store.list_products(ENTERPRISE_ID)) == 1

    @pytest.mark.asyncio
    async def test_ean_is_scoped_to_enterprise(self, store, classifier) -> None:
        """Should not match an EAN owned by another enterprise."""
        await _add_product(store, "Pollo entero", ean_code="5000", enterprise_id="ent-2")
        service = ProductResolutionService(store, classifier)

        result = await service.find_or_create(name="Pollo", ean_code="5000", enterprise_id=ENTERPRISE_ID)

        assert result["enterpriseId"] == ENTERPRISE_ID
        assert result["eanCode"] == "5000"
        assert len(await store.list_products("ent-2")) == 1

    @pytest.mark.asyncio
    async def test_name_match_is_case_insensitive(self, store, classifier) -> None:
        """Should match an existing product by name regardless of case."""
        existing = await _add_product(store, "Leche Entera")
        service = ProductResolutionService(store, classifier)

        result = await service.find_or_create(name="leche entera", enterprise_id=ENTERPRISE_ID)

        assert result["id"] == existing.id

    @pytest.mark.asyncio
    async def test_ean_miss_falls_back_to_name(self, store, classifier) -> None:
        """Should fall through to the name lookup when the EAN is unknown."""
        existing = await _add_product(store, "Arroz")
        service = ProductResolutionService(store, classifier)

        result = await service.find_or_create(name="ARROZ", ean_code="999", enterprise_id=ENTERPRISE_ID)

        assert result["id"] == existing.id

    @pytest.mark.asyncio
    async def test_blank_ean_is_ignored(self, store, classifier) -> None:
        """Should treat a whitespace EAN as absent."""
        service = ProductResolutionService(store, classifier)

        result = await service.find_or_create(name="Sal", ean_code="   ", enterprise_id=ENTERPRISE_ID)

        assert result["eanCode"] is None

    @pytest.mark.asyncio
    async def test_blank_eans_do_not_collide(self, store, classifier) -> None:
        """Should create several products with a blank EAN in one enterprise."""
        service = ProductResolutionService(store, classifier)

        first = await service.find_or_create(name="Sal", ean_code="  ", enterprise_id=ENTERPRISE_ID)
        second = await service.find_or_create(name="Azúcar", ean_code="", enterprise_id=ENTERPRISE_ID)

        assert first["id"] != second["id"]
        assert first["eanCode"] is None
        assert second["eanCode"] is None
        assert all(p.ean_code is None for p in await store.list_products(ENTERPRISE_ID))

    @pytest.mark.asyncio
    async def test_ean_is_stripped(self, store, classifier) -> None:
        """Should look up and store the EAN without surrounding whitespace."""
        existing = await _add_product(store, "Pollo entero", ean_code="5000")
        service = ProductResolutionService(store, classifier)

        result = await service.find_or_create(name="X", ean_code=" 5000 ", enterprise_id=ENTERPRISE_ID)

        assert result["id"] == existing.id


class TestIdempotency:
    """Tests for repeated resolution of the same product."""

    @pytest.mark.asyncio
    async def test_same_ean_twice_returns_same_product(self, store, classifier) -> None:
        """Should create once and return the same id on the second call."""
        service = ProductResolutionService(store, classifier)

        first = await service.find_or_create(name="Atún en aceite", ean_code="8410", enterprise_id=ENTERPRISE_ID)
        second = await service.find_or_create(name="Atun", ean_code="8410", enterprise_id=ENTERPRISE_ID)

        assert first["id"] == second["id"]
        assert len(await store.list_products(ENTERPRISE_ID)) == 1

    @pytest.mark.asyncio
    async def test_same_name_twice_returns_same_product(self, store, classifier) -> None:
        """Should match the auto-created product by name on the second call."""
        service = ProductResolutionService(store, classifier)

        first = await service.find_or_create(name="Pan de molde", enterprise_id=ENTERPRISE_ID)
        second = await service.find_or_create(name="PAN DE MOLDE", enterprise_id=ENTERPRISE_ID)

        assert first["id"] == second["id"]
        assert len(await store.list_products(ENTERPRISE_ID)) == 1


class TestAutoCreate:
    """Tests for product creation with classifier enrichment."""

    @pytest.mark.asyncio
    async def test_milk_detected_for_whole_milk(self, store, make_classifier, make_allergens) -> None:
        """Should attach exactly the MILK allergen."""
        classifier = make_classifier(allergens=make_allergens("MILK"))
        service = ProductResolutionService(store, classifier)

        result = await service.find_or_create(name="Leche entera", enterprise_id=ENTERPRISE_ID)

        assert [a["code"] for a in result["allergens"]] == ["MILK"]
        assert result["category"]["name"] == "Otros"
        assert result["unit"] == "Unidad"
        assert result["stock"] == 0

    @pytest.mark.asyncio
    async def test_unknown_codes_are_dropped(self, store, make_classifier, make_allergens) -> None:
        """Should keep only the known code out of a noisy classifier result."""
        classifier = make_classifier(allergens=make_allergens("GLU", "XYZ", "gluten"))
        service = ProductResolutionService(store, classifier)

        result = await service.find_or_create(name="Pan rallado", enterprise_id=ENTERPRISE_ID)

        assert [a["code"] for a in result["allergens"]] == ["GLU"]

    @pytest.mark.asyncio
    async def test_unconfigured_classifier_still_creates(self, store, classifier) -> None:
        """Should create the product with no allergens when the classifier is silent."""
        service = ProductResolutionService(store, classifier)

        result = await service.find_or_create(name="Detergente", enterprise_id=ENTERPRISE_ID)

        assert result["id"]
        assert result["allergens"] == []

    @pytest.mark.asyncio
    async def test_classifier_exceptions_do_not_block_creation(self, store, make_classifier) -> None:
        """Should absorb classifier exceptions and use the caller hint."""
        classifier = make_classifier(
            allergen_error=RuntimeError("boom"),
            suggestion_error=RuntimeError("boom"),
        )
        service = ProductResolutionService(store, classifier)

        result = await service.find_or_create(
            name="Agua mineral", category_hint="bebida", enterprise_id=ENTERPRISE_ID
        )

        assert result["allergens"] == []
        assert result["category"]["name"] == "Bebidas"

    @pytest.mark.asyncio
    async def test_suggested_category_used_when_it_exists(self, store, make_classifier) -> None:
        """Should prefer the classifier's category over the caller hint."""
        classifier = make_classifier(
            suggestion=CategorySuggestion("Lácteos", Confidence.HIGH, "dairy")
        )
        service = ProductResolutionService(store, classifier)

        result = await service.find_or_create(
            name="Yogur natural", category_hint="Conservas", enterprise_id=ENTERPRISE_ID
        )

        assert result["category"]["name"] == "Lácteos"
        product_name, candidates = classifier.suggestion_calls[0]
        assert product_name == "Yogur natural"
        assert "Lácteos" in candidates

    @pytest.mark.asyncio
    async def test_suggested_category_ignored_when_not_verbatim(self, store, make_classifier) -> None:
        """Should fall back to the caller hint for an unknown suggestion."""
        classifier = make_classifier(
            suggestion=CategorySuggestion("lacteos", Confidence.MEDIUM, "close")
        )
        service = ProductResolutionService(store, classifier)

        result = await service.find_or_create(
            name="Queso curado", category_hint="Conservas", enterprise_id=ENTERPRISE_ID
        )

        assert result["category"]["name"] == "Conservas"

    @pytest.mark.asyncio
    async def test_no_categories_skips_suggestion(self, empty_store, classifier) -> None:
        """Should not ask for a category when the store has none."""
        service = ProductResolutionService(empty_store, classifier)

        result = await service.find_or_create(name="Generic Item", enterprise_id=ENTERPRISE_ID)

        assert classifier.suggestion_calls == []
        assert result["category"]["name"] == "Otros"

    @pytest.mark.asyncio
    async def test_fallback_category_created_once(self, store, classifier) -> None:
        """Should create the fallback category on first use and reuse it."""
        service = ProductResolutionService(store, classifier)

        first = await service.find_or_create(name="Generic Item", enterprise_id=ENTERPRISE_ID)
        second = await service.find_or_create(name="Another Item", enterprise_id=ENTERPRISE_ID)

        assert first["categoryId"] == second["categoryId"]
        names = await store.list_category_names()
        assert names.count("Otros") == 1

    @pytest.mark.asyncio
    async def test_custom_defaults(self, store, classifier) -> None:
        """Should honor the configured unit and fallback category name."""
        service = ProductResolutionService(
            store, classifier, default_unit="Kg", fallback_category_name="Varios"
        )

        result = await service.find_or_create(name="Garbanzos", enterprise_id=ENTERPRISE_ID)

        assert result["unit"] == "Kg"
        assert result["category"]["name"] == "Varios"

    @pytest.mark.asyncio
    async def test_store_failure_waits_for_allergen_detection(self, make_allergens) -> None:
        """Should finish the allergen branch before raising the store error."""
        store = CategoriesUnavailableStore()
        await seed_reference_data(store)
        finished: list[str] = []

        async def slow_identify(text: str):
            await asyncio.sleep(0.05)
            finished.append(text)
            return make_allergens("MILK")

        classifier = MagicMock()
        classifier.identify_allergens = slow_identify
        service = ProductResolutionService(store, classifier)

        with pytest.raises(StoreUnavailableError):
            await service.find_or_create(name="Leche entera", enterprise_id=ENTERPRISE_ID)

        assert finished == ["Leche entera"]
        assert asyncio.all_tasks() == {asyncio.current_task()}
        assert await store.list_products(ENTERPRISE_ID) == []


class TestIdentifyAllergensForProduct:
    """Tests for the standalone allergen identification operation."""

    @pytest.mark.asyncio
    async def test_returns_codes_and_records(self, store, make_classifier, make_allergens) -> None:
        """Should return raw codes with the matching allergen records."""
        classifier = make_classifier(allergens=make_allergens("MILK", "NUTS", "XYZ"))
        service = ProductResolutionService(store, classifier)

        result = await service.identify_allergens_for_product("Yogur con nueces")

        assert result["allergenCodes"] == ["MILK", "NUTS", "XYZ"]
        assert sorted(a["code"] for a in result["allergens"]) == ["MILK", "NUTS"]
        assert result["confidence"] == "high"

    @pytest.mark.asyncio
    async def test_degraded_result(self, store, classifier) -> None:
        """Should return an empty low-confidence result when nothing is detected."""
        service = ProductResolutionService(store, classifier)

        result = await service.identify_allergens_for_product("Aceite de oliva")

        assert result["allergenCodes"] == []
        assert result["allergens"] == []
        assert result["confidence"] == "low"
