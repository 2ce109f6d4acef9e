"""Tests for domain entities and the error taxonomy."""

from decimal import Decimal

from product_catalog.application.formatting import format_product
from product_catalog.domain.entities import (
    ALLERGEN_CODES,
    Allergen,
    AllergenIdentification,
    Category,
    CategorySuggestion,
    Confidence,
    Product,
    StockItemResult,
    StockUpdateOutcome,
    normalize_ean,
)
from product_catalog.domain.exceptions import (
    CatalogError,
    ConflictError,
    NotFoundError,
    StockUpdateAbortedError,
    StoreUnavailableError,
)


class TestReferenceData:
    """Tests for allergen reference constants."""

    def test_fourteen_codes(self) -> None:
        """Should carry the 14 EU allergen codes."""
        assert len(ALLERGEN_CODES) == 14
        assert {"GLU", "MILK", "MOL", "SUL"} <= ALLERGEN_CODES


class TestNormalizeEan:
    """Tests for EAN normalization."""

    def test_blank_becomes_none(self) -> None:
        """Should treat missing, empty and whitespace EANs alike."""
        assert normalize_ean(None) is None
        assert normalize_ean("") is None
        assert normalize_ean("   ") is None

    def test_strips_whitespace(self) -> None:
        """Should keep the code without surrounding whitespace."""
        assert normalize_ean(" 8410 ") == "8410"


class TestClassifierResults:
    """Tests for classifier result defaults."""

    def test_empty_allergen_identification(self) -> None:
        """Should be low confidence with no codes."""
        result = AllergenIdentification.empty("no key")

        assert result.codes == ()
        assert result.confidence is Confidence.LOW
        assert result.reasoning == "no key"

    def test_empty_category_suggestion(self) -> None:
        """Should be low confidence with a blank category."""
        result = CategorySuggestion.empty()

        assert result.category == ""
        assert result.confidence is Confidence.LOW


class TestStockResults:
    """Tests for stock result wire shapes."""

    def test_success_item_omits_error(self) -> None:
        """Should not include an error key on success."""
        item = StockItemResult(product_id="p1", new_stock=Decimal("2.500"), success=True)

        assert item.to_dict() == {"productId": "p1", "newStock": 2.5, "success": True}

    def test_outcome(self) -> None:
        """Should render every result."""
        outcome = StockUpdateOutcome(
            success=False,
            results=[StockItemResult("p1", Decimal("0"), False, "Product not found")],
        )

        assert outcome.to_dict() == {
            "success": False,
            "results": [
                {"productId": "p1", "newStock": 0.0, "success": False, "error": "Product not found"}
            ],
        }


class TestFormatProduct:
    """Tests for the product wire format."""

    def test_camel_case_shape(self) -> None:
        """Should render relationships, a numeric stock and ISO timestamps."""
        product = Product(
            id="p1",
            name="Leche",
            enterprise_id="ent-1",
            category_id="c1",
            unit="L",
            stock=Decimal("1.250"),
            category=Category(id="c1", name="Lácteos"),
            allergens=[Allergen(id="a1", name="Lácteos", code="MILK")],
        )

        data = format_product(product)

        assert data["enterpriseId"] == "ent-1"
        assert data["stock"] == 1.25
        assert data["category"] == {"id": "c1", "name": "Lácteos", "description": None}
        assert data["allergens"][0]["code"] == "MILK"
        assert data["createdAt"] == product.created_at.isoformat()


class TestExceptions:
    """Tests for the error taxonomy."""

    def test_status_codes(self) -> None:
        """Should map each kind to its status and code."""
        assert (ConflictError().status_code, ConflictError().error_code) == (409, "DUPLICATE_ENTRY")
        assert (NotFoundError().status_code, NotFoundError().error_code) == (404, "NOT_FOUND")
        assert StoreUnavailableError("down").status_code == 500
        assert CatalogError("boom").error_code == "INTERNAL_ERROR"

    def test_stock_abort_is_unavailable(self) -> None:
        """Should be a store-unavailable error carrying the product ids."""
        error = StockUpdateAbortedError(["p1"], "product removed during update")

        assert isinstance(error, StoreUnavailableError)
        assert error.error_code == "STOCK_UPDATE_ABORTED"
        assert error.details == {"product_ids": ["p1"]}
        assert error.message == "Stock update aborted: product removed during update"
